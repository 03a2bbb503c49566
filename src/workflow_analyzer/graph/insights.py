"""Structural insight derivation over a workflow graph."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from ..core.models import Insights, WorkflowConnection, WorkflowNode

# A node with more incoming connections than this is flagged as a bottleneck.
BOTTLENECK_INCOMING_THRESHOLD = 2
# More entry (or exit) points than this triggers a consolidation suggestion.
TERMINAL_POINT_THRESHOLD = 3


@dataclass(frozen=True)
class InsightThresholds:
    bottleneck_incoming: int = BOTTLENECK_INCOMING_THRESHOLD
    max_entry_points: int = TERMINAL_POINT_THRESHOLD
    max_exit_points: int = TERMINAL_POINT_THRESHOLD


DEFAULT_THRESHOLDS = InsightThresholds()


def find_entry_points(nodes: Sequence[WorkflowNode]) -> List[str]:
    return [node.id for node in nodes if not node.connections.incoming]


def find_exit_points(nodes: Sequence[WorkflowNode]) -> List[str]:
    return [node.id for node in nodes if not node.connections.outgoing]


def find_bottlenecks(nodes: Sequence[WorkflowNode], threshold: int = BOTTLENECK_INCOMING_THRESHOLD) -> List[str]:
    return [node.id for node in nodes if len(node.connections.incoming) > threshold]


def build_recommendations(
    nodes: Sequence[WorkflowNode],
    connections: Sequence[WorkflowConnection],
    thresholds: InsightThresholds = DEFAULT_THRESHOLDS,
) -> List[str]:
    recommendations: List[str] = []

    connected = {conn.from_ for conn in connections} | {conn.to for conn in connections}
    disconnected = [node for node in nodes if node.id not in connected]
    if disconnected:
        recommendations.append(
            f"Found {len(disconnected)} disconnected nodes that might need connections"
        )

    entry_count = len(find_entry_points(nodes))
    if entry_count > thresholds.max_entry_points:
        recommendations.append(
            f"Consider consolidating {entry_count} entry points for clearer workflow start"
        )

    exit_count = len(find_exit_points(nodes))
    if exit_count > thresholds.max_exit_points:
        recommendations.append(
            f"Consider consolidating {exit_count} exit points for clearer workflow end"
        )

    return recommendations


def derive_insights(
    nodes: Sequence[WorkflowNode],
    connections: Sequence[WorkflowConnection],
    thresholds: InsightThresholds = DEFAULT_THRESHOLDS,
) -> Insights:
    """Compute entry/exit points, bottlenecks and recommendations.

    Pure function of its inputs; nothing here touches the network.
    """
    return Insights(
        total_steps=len(nodes),
        entry_points=find_entry_points(nodes),
        exit_points=find_exit_points(nodes),
        bottlenecks=find_bottlenecks(nodes, thresholds.bottleneck_incoming),
        recommendations=build_recommendations(nodes, connections, thresholds),
    )
