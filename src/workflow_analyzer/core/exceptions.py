"""Custom exception hierarchy for the workflow analyzer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class WorkflowAnalyzerError(Exception):
    """Base exception type for all analyzer errors."""

    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"


class ConfigurationError(WorkflowAnalyzerError):
    """Raised when required configuration is missing or invalid."""


@dataclass
class MiroAPIError(WorkflowAnalyzerError):
    """Raised for Miro API failures."""

    status_code: Optional[int] = None


class InsightParseError(WorkflowAnalyzerError):
    """Raised when an LLM reply carries no usable JSON block."""


@dataclass
class WorkItemAPIError(WorkflowAnalyzerError):
    """Raised when the ticketing API rejects a create call."""

    status_code: Optional[int] = None
