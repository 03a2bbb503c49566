"""Domain models for the workflow graph extracted from a board.

These models are built by `WorkflowGraphBuilder` and consumed by the insight
analyzer and the persisted JSON artifacts. Field names are snake_case in Python
and camelCase on the wire (`model_dump(by_alias=True)`).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _GraphModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class BoardInfo(_GraphModel):
    id: str
    name: str = "Untitled"
    description: Optional[str] = None


class Position(_GraphModel):
    x: float = 0
    y: float = 0


class NodeConnections(_GraphModel):
    incoming: List[str] = Field(default_factory=list)
    outgoing: List[str] = Field(default_factory=list)


class WorkflowNode(_GraphModel):
    """One non-connector board item."""

    id: str
    type: str
    title: str
    description: Optional[str] = None
    position: Position = Field(default_factory=Position)
    connections: NodeConnections = Field(default_factory=NodeConnections)
    tags: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class WorkflowConnection(_GraphModel):
    """A directed edge between two items.

    `from_`/`to` are not checked against the node set; boards with dangling
    connector endpoints are passed through as-is.
    """

    id: str
    from_: str = Field(alias="from")
    to: str
    label: Optional[str] = None
    type: str = "connector"


class WorkflowGroup(_GraphModel):
    id: str
    name: Optional[str] = None
    node_ids: List[str] = Field(default_factory=list)


class BoardTag(_GraphModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    fill_color: Optional[str] = None


class Insights(_GraphModel):
    """Structural insights derived from nodes and connections."""

    total_steps: int = 0
    entry_points: List[str] = Field(default_factory=list)
    exit_points: List[str] = Field(default_factory=list)
    bottlenecks: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class WorkflowAnalysis(_GraphModel):
    """Aggregate root handed to the insight analyzer."""

    board_info: BoardInfo
    nodes: List[WorkflowNode] = Field(default_factory=list)
    connections: List[WorkflowConnection] = Field(default_factory=list)
    groups: List[WorkflowGroup] = Field(default_factory=list)
    tags: List[BoardTag] = Field(default_factory=list)
    insights: Insights = Field(default_factory=Insights)

    def node_by_id(self, node_id: str) -> Optional[WorkflowNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
