"""Workflow graph extraction from board items and connectors."""

from .builder import WorkflowGraphBuilder, build_connections, fetch_all_items
from .extraction import ItemType, extract_item_content
from .insights import InsightThresholds, derive_insights

__all__ = [
    "InsightThresholds",
    "ItemType",
    "WorkflowGraphBuilder",
    "build_connections",
    "derive_insights",
    "extract_item_content",
    "fetch_all_items",
]
