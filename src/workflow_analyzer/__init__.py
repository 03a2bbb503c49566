"""Miro workflow analyzer - whiteboard workflow to tracked backlog pipeline."""

from typing import TYPE_CHECKING

__all__ = ["Settings", "AnalysisPipeline"]

if TYPE_CHECKING:
    from .config.settings import Settings
    from .pipeline import AnalysisPipeline


def __getattr__(name: str):
    if name == "Settings":
        from .config.settings import Settings

        return Settings
    if name == "AnalysisPipeline":
        from .pipeline import AnalysisPipeline

        return AnalysisPipeline
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
