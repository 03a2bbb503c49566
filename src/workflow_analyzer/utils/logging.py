"""Logging configuration.

The analyzer uses standard library `logging` with named module loggers:
- `setup_logging()` configures the root logger once (console, optional file).
- `JsonLogFormatter` emits machine-readable lines when
  WORKFLOW_ANALYZER_LOG_JSON is set.
"""

from __future__ import annotations

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

_CONFIGURED = False

_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


class JsonLogFormatter(logging.Formatter):
    """Minimal JSON formatter for machine-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Include `extra=` fields if present
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RESERVED_ATTRS:
                continue
            payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(log_path: Optional[Path] = None, *, level: Optional[str] = None) -> Optional[Path]:
    """Configure root logging once.

    Args:
        log_path: Optional file to log into. Falls back to WORKFLOW_ANALYZER_LOG_FILE.
        level: Root log level; defaults to WORKFLOW_ANALYZER_LOG_LEVEL or INFO.

    Returns:
        The log file path in use, if any.
    """
    global _CONFIGURED
    resolved = _resolve_log_path(log_path)
    if _CONFIGURED:
        return resolved

    level_name = (level or os.environ.get("WORKFLOW_ANALYZER_LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    json_logs = os.environ.get("WORKFLOW_ANALYZER_LOG_JSON", "").lower() in {"1", "true", "yes"}

    formatter: logging.Formatter
    if json_logs:
        formatter = JsonLogFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    root = logging.getLogger()
    root.setLevel(numeric_level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if resolved is not None:
        resolved.parent.mkdir(parents=True, exist_ok=True)
        rotate_bytes = int(os.environ.get("WORKFLOW_ANALYZER_LOG_ROTATE_BYTES", "0"))
        backup_count = int(os.environ.get("WORKFLOW_ANALYZER_LOG_BACKUP_COUNT", "3"))
        file_handler = _build_handler(resolved, rotate_bytes=rotate_bytes, backup_count=backup_count)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Third-party HTTP chatter stays at WARNING unless explicitly debugging.
    if numeric_level > logging.DEBUG:
        for noisy in ("urllib3", "httpx", "openai"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    _CONFIGURED = True
    logging.getLogger("workflow_analyzer").debug("Logging initialized: %s", resolved or "console")
    return resolved


def _resolve_log_path(log_path: Optional[Path]) -> Optional[Path]:
    if log_path is not None:
        return log_path
    env_path = os.environ.get("WORKFLOW_ANALYZER_LOG_FILE")
    if env_path:
        return Path(env_path)
    return None


def _build_handler(path: Path, *, rotate_bytes: int, backup_count: int) -> logging.Handler:
    if rotate_bytes > 0:
        return RotatingFileHandler(
            path,
            maxBytes=rotate_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(path, encoding="utf-8")
