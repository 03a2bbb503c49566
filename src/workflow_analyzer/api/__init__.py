"""HTTP server exposing the analysis pipeline."""

from .app import create_app
from .jobs import AnalysisJob, JobRegistry, JobStatus

__all__ = ["AnalysisJob", "JobRegistry", "JobStatus", "create_app"]
