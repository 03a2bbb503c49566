"""Flask app factory for the HTTP server."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException

from ..config.settings import load_settings
from ..pipeline import AnalysisPipeline
from ..utils.logging import setup_logging
from .jobs import JobRegistry

logger = logging.getLogger("workflow_analyzer.api")

PipelineFactory = Callable[[Optional[str]], AnalysisPipeline]

# Rate limiter instance - 60 requests/minute per IP
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["60 per minute"],
    storage_uri="memory://",
)


def default_pipeline_factory(project_id: Optional[str]) -> AnalysisPipeline:
    return AnalysisPipeline.from_settings(load_settings(project_id=project_id))


def parse_project_id(raw: Any) -> Optional[str]:
    """Return the project id as text, or None when absent.

    Raises ValueError when the id is present but not a whole number.
    """
    if raw is None or raw == "":
        return None
    text = str(raw).strip()
    if isinstance(raw, bool) or not text.isdigit():
        raise ValueError(f"Project ID must be numeric, got {raw!r}")
    return text


def cors_origins() -> list[str]:
    raw = os.getenv("WORKFLOW_ANALYZER_CORS_ORIGINS", "").strip()
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return ["*"]


def create_app(
    pipeline_factory: PipelineFactory = default_pipeline_factory,
    jobs: Optional[JobRegistry] = None,
) -> Flask:
    """Build the API app.

    A fresh pipeline is built per request through `pipeline_factory`; the job
    registry is the only state shared between requests.
    """
    setup_logging()
    app = Flask(__name__)
    CORS(app, origins=cors_origins())
    limiter.init_app(app)
    registry = jobs if jobs is not None else JobRegistry()
    app.extensions["analysis_jobs"] = registry

    @app.before_request
    def log_request() -> None:
        logger.info("HTTP %s %s from %s", request.method, request.path, request.remote_addr)

    @app.errorhandler(Exception)
    def handle_error(exc: Exception) -> Any:
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.name, "message": exc.description}), exc.code
        logger.exception("API error on %s", request.path)
        return jsonify({"error": "Internal server error", "message": str(exc)}), 500

    @app.post("/api/analyze")
    def analyze() -> Any:
        payload = request.get_json(force=True, silent=True) or {}
        board_id = str(payload.get("boardId") or "").strip()
        if not board_id:
            return jsonify({"error": "Board ID is required"}), 400

        try:
            project_id = parse_project_id(payload.get("projectId"))
        except ValueError:
            return jsonify({"error": "Project ID must be numeric"}), 400
        output_dir = payload.get("outputDir") or None
        workflow_name = payload.get("workflowName") or None

        pipeline = pipeline_factory(project_id)
        logger.info("Starting workflow analysis for board %s, project %s", board_id, project_id)

        def work() -> dict:
            result = pipeline.run(board_id, output_dir=output_dir, workflow_name=workflow_name)
            return result.summary()

        job = registry.start(work, board_id=board_id, project_id=project_id)
        return (
            jsonify(
                {
                    "success": True,
                    "message": "Workflow analysis started successfully",
                    "projectId": project_id or "unknown",
                    "boardId": board_id,
                    "status": "processing",
                    "jobId": job.id,
                }
            ),
            202,
        )

    @app.get("/api/analyze/<job_id>")
    def analysis_status(job_id: str) -> Any:
        job = registry.get(job_id)
        if job is None:
            return jsonify({"error": "Job not found"}), 404
        return jsonify(job.to_dict())

    @app.get("/api/boards")
    def list_boards() -> Any:
        try:
            project_id = parse_project_id(request.args.get("projectId"))
        except ValueError:
            return jsonify({"error": "Project ID must be numeric"}), 400
        pipeline = pipeline_factory(project_id)
        boards = pipeline.list_boards()
        return jsonify({"success": True, "boards": [board.to_dict() for board in boards]})

    @app.get("/health")
    @limiter.exempt
    def health() -> Any:
        return jsonify({"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()})

    return app
