"""End-to-end pipeline: board -> workflow graph -> LLM insights -> work items -> report."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .analysis.analyzer import InsightAnalyzer
from .analysis.llm import LLMClient, LLMConfig
from .analysis.models import WorkflowInsights
from .config.settings import Settings
from .core.models import WorkflowAnalysis
from .graph.builder import WorkflowGraphBuilder
from .publishing.client import TargetProcessClient
from .publishing.publisher import WorkItemCreationResults, WorkItemPublisher
from .services.miro_client import MiroBoard, MiroClient

logger = logging.getLogger("workflow_analyzer.pipeline")

DEFAULT_OUTPUT_DIR = Path("./output")


def artifact_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with `:` and `.` replaced, e.g. 2024-05-01T10-20-30-123Z."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"


@dataclass
class ArtifactPaths:
    raw_data: Path
    report: Path
    work_items: Path


@dataclass
class PipelineResult:
    workflow: WorkflowAnalysis
    insights: WorkflowInsights
    work_items: WorkItemCreationResults
    report: str
    artifacts: ArtifactPaths

    def summary(self) -> Dict[str, Any]:
        return {
            "board": self.workflow.board_info.name,
            "nodes": len(self.workflow.nodes),
            "connections": len(self.workflow.connections),
            "epicsCreated": sum(1 for r in self.work_items.epics if r.success),
            "featuresCreated": sum(1 for r in self.work_items.features if r.success),
            "userStoriesCreated": sum(1 for r in self.work_items.user_stories if r.success),
            "artifacts": {
                "rawData": str(self.artifacts.raw_data),
                "report": str(self.artifacts.report),
                "workItems": str(self.artifacts.work_items),
            },
        }


def write_artifacts(
    output_dir: Path,
    workflow: WorkflowAnalysis,
    insights: WorkflowInsights,
    work_items: WorkItemCreationResults,
    report: str,
    *,
    timestamp: Optional[str] = None,
) -> ArtifactPaths:
    stamp = timestamp or artifact_timestamp()
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = ArtifactPaths(
        raw_data=output_dir / f"workflow-data-{stamp}.json",
        report=output_dir / f"workflow-report-{stamp}.md",
        work_items=output_dir / f"work-items-{stamp}.json",
    )
    raw = {
        "workflowData": workflow.to_dict(),
        "openaiInsights": insights.to_dict(),
        "workItemResults": work_items.to_dict(),
    }
    paths.raw_data.write_text(json.dumps(raw, indent=2, ensure_ascii=False), encoding="utf-8")
    paths.report.write_text(report, encoding="utf-8")
    paths.work_items.write_text(
        json.dumps(work_items.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
    )
    logger.info("Artifacts written to %s", output_dir)
    return paths


class AnalysisPipeline:
    """Sequential orchestration of the three API clients."""

    def __init__(
        self,
        miro: MiroClient,
        builder: WorkflowGraphBuilder,
        analyzer: InsightAnalyzer,
        publisher: WorkItemPublisher,
        *,
        output_dir: Path = DEFAULT_OUTPUT_DIR,
    ):
        self.miro = miro
        self.builder = builder
        self.analyzer = analyzer
        self.publisher = publisher
        self.output_dir = Path(output_dir)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnalysisPipeline":
        miro = MiroClient(settings.miro_access_token)
        return cls(
            miro=miro,
            builder=WorkflowGraphBuilder(miro),
            analyzer=InsightAnalyzer(LLMClient(LLMConfig.from_settings(settings))),
            publisher=WorkItemPublisher(
                TargetProcessClient(settings.target_api_base_url, settings.target_api_access_token),
                project_id=settings.project_id,
            ),
            output_dir=settings.output_dir,
        )

    def run(
        self,
        board_id: str,
        *,
        output_dir: Optional[Path | str] = None,
        workflow_name: Optional[str] = None,
    ) -> PipelineResult:
        """Analyze a board and publish its backlog.

        Raises:
            MiroAPIError: If the board itself cannot be read
        """
        logger.info("Starting analysis of Miro board %s", board_id)

        workflow = self.builder.analyze_board(board_id)
        logger.info(
            "Extracted %d nodes and %d connections", len(workflow.nodes), len(workflow.connections)
        )

        insights = self.analyzer.analyze(workflow)

        logger.info("Creating work items in target system")
        work_items = self.publisher.publish(insights, workflow_name or workflow.board_info.name)

        report = self.analyzer.generate_report(workflow, insights)

        artifacts = write_artifacts(
            Path(output_dir) if output_dir else self.output_dir,
            workflow,
            insights,
            work_items,
            report,
        )
        logger.info("Analysis complete for board %s", board_id)
        return PipelineResult(
            workflow=workflow,
            insights=insights,
            work_items=work_items,
            report=report,
            artifacts=artifacts,
        )

    def list_boards(self, limit: int = 20) -> List[MiroBoard]:
        boards = self.miro.list_boards(limit=limit)
        logger.info("Found %d boards", len(boards))
        return boards
