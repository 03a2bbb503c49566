"""Build a typed workflow graph from a Miro board.

`WorkflowGraphBuilder.analyze_board()` is the entry point: it fetches board
metadata, items (paged), connectors, groups and tags through the Miro client,
then turns them into nodes, connections and groups and derives insights.

Only the board metadata and item list are required; every other lookup fails
soft and is replaced by an empty result.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..core.exceptions import MiroAPIError
from ..core.models import (
    BoardInfo,
    BoardTag,
    NodeConnections,
    Position,
    WorkflowAnalysis,
    WorkflowConnection,
    WorkflowGroup,
    WorkflowNode,
)
from ..services.miro_client import MiroClient
from .extraction import ItemType, extract_item_content
from .insights import DEFAULT_THRESHOLDS, InsightThresholds, derive_insights

logger = logging.getLogger("workflow_analyzer.graph")

# Items are fetched in fixed batches until a short page or this offset ceiling.
PAGE_SIZE = 50
MAX_ITEM_OFFSET = 500

# Connectors and groups are read as a single page.
CONNECTOR_LIMIT = 50
GROUP_LIMIT = 50

_METADATA_KEYS = ("createdAt", "modifiedAt", "createdBy", "modifiedBy", "style", "geometry")


def fetch_all_items(
    client: MiroClient,
    board_id: str,
    *,
    page_size: int = PAGE_SIZE,
    max_offset: int = MAX_ITEM_OFFSET,
) -> List[Dict[str, Any]]:
    """Concatenate item pages until a short page or the offset ceiling.

    Boards with more than `max_offset` items are truncated.
    """
    items: List[Dict[str, Any]] = []
    offset = 0
    while True:
        page = client.get_items(board_id, limit=page_size, offset=offset)
        batch = page.get("data", []) or []
        items.extend(batch)
        offset += page_size
        if len(batch) < page_size:
            break
        if offset >= max_offset:
            logger.warning(
                "Item listing for board %s stopped at offset ceiling %d", board_id, max_offset
            )
            break
    logger.info("Fetched %d items from board %s", len(items), board_id)
    return items


def _endpoint_id(connector: Dict[str, Any], key: str) -> Optional[str]:
    endpoint = connector.get(key)
    if not isinstance(endpoint, dict):
        return None
    value = endpoint.get("id")
    return str(value) if value else None


def build_connections(connectors: Sequence[Dict[str, Any]]) -> List[WorkflowConnection]:
    """Map connectors with both endpoints to workflow connections."""
    connections: List[WorkflowConnection] = []
    for connector in connectors:
        if not connector:
            continue
        start = _endpoint_id(connector, "startItem")
        end = _endpoint_id(connector, "endItem")
        if start is None or end is None:
            continue
        captions = connector.get("captions") or []
        label = captions[0].get("content") if captions and isinstance(captions[0], dict) else None
        connections.append(
            WorkflowConnection(
                id=str(connector.get("id", "")),
                from_=start,
                to=end,
                label=label or None,
                type="connector",
            )
        )
    return connections


def _position(item: Dict[str, Any]) -> Position:
    position = item.get("position") or {}
    geometry = item.get("geometry") or {}
    return Position(
        x=position.get("x") or geometry.get("x") or 0,
        y=position.get("y") or geometry.get("y") or 0,
    )


class WorkflowGraphBuilder:
    """Turn raw board payloads into a `WorkflowAnalysis`."""

    def __init__(
        self,
        client: MiroClient,
        *,
        thresholds: InsightThresholds = DEFAULT_THRESHOLDS,
        page_size: int = PAGE_SIZE,
        max_offset: int = MAX_ITEM_OFFSET,
    ):
        self.client = client
        self.thresholds = thresholds
        self.page_size = page_size
        self.max_offset = max_offset

    def analyze_board(self, board_id: str) -> WorkflowAnalysis:
        """Fetch a board and build its workflow graph.

        Raises:
            MiroAPIError: If the board metadata or item list cannot be fetched
        """
        logger.info("Getting board info for %s", board_id)
        board = self.client.get_board(board_id)

        items = fetch_all_items(
            self.client, board_id, page_size=self.page_size, max_offset=self.max_offset
        )
        connectors = self._soft_list(
            "connectors", board_id, lambda: self.client.get_connectors(board_id, limit=CONNECTOR_LIMIT)
        )
        groups = self._soft_list(
            "groups", board_id, lambda: self.client.get_groups(board_id, limit=GROUP_LIMIT)
        )
        raw_tags = self._soft_list("tags", board_id, lambda: self.client.get_tags(board_id))

        connections = build_connections(connectors)
        nodes = self.build_nodes(board_id, items, connections)
        workflow_groups = self.resolve_groups(board_id, groups)
        insights = derive_insights(nodes, connections, self.thresholds)

        tags = []
        for raw in raw_tags:
            if isinstance(raw, dict) and raw.get("id"):
                tags.append(BoardTag.model_validate(raw))

        logger.info(
            "Built workflow graph for board %s: nodes=%d connections=%d groups=%d tags=%d",
            board_id,
            len(nodes),
            len(connections),
            len(workflow_groups),
            len(tags),
        )
        return WorkflowAnalysis(
            board_info=BoardInfo(
                id=board.id,
                name=board.name,
                description=board.description or None,
            ),
            nodes=nodes,
            connections=connections,
            groups=workflow_groups,
            tags=tags,
            insights=insights,
        )

    def build_nodes(
        self,
        board_id: str,
        items: Sequence[Dict[str, Any]],
        connections: Sequence[WorkflowConnection],
    ) -> List[WorkflowNode]:
        nodes: List[WorkflowNode] = []
        for item in items:
            if item.get("type") == ItemType.CONNECTOR.value:
                continue
            item_id = str(item.get("id", ""))

            incoming = [conn.id for conn in connections if conn.to == item_id]
            outgoing = [conn.id for conn in connections if conn.from_ == item_id]
            content = extract_item_content(item)

            nodes.append(
                WorkflowNode(
                    id=item_id,
                    type=str(item.get("type", "")),
                    title=content.title,
                    description=content.description,
                    position=_position(item),
                    connections=NodeConnections(incoming=incoming, outgoing=outgoing),
                    tags=self._item_tags(board_id, item_id),
                    metadata={
                        key: item.get(key)
                        for key in _METADATA_KEYS
                        if item.get(key) is not None
                    },
                )
            )
        return nodes

    def resolve_groups(self, board_id: str, groups: Sequence[Dict[str, Any]]) -> List[WorkflowGroup]:
        resolved: List[WorkflowGroup] = []
        for group in groups:
            group_id = str(group.get("id", ""))
            try:
                page = self.client.get_group_items(board_id, group_id)
            except MiroAPIError as exc:
                logger.warning("Could not get items for group %s: %s", group_id, exc)
                continue
            node_ids = [str(member.get("id")) for member in page.get("data", []) or []]
            resolved.append(WorkflowGroup(id=group_id, name=None, node_ids=node_ids))
        return resolved

    def _item_tags(self, board_id: str, item_id: str) -> List[str]:
        try:
            page = self.client.get_item_tags(board_id, item_id)
        except MiroAPIError as exc:
            # Not every item type supports tags.
            logger.debug("No tags for item %s: %s", item_id, exc)
            return []
        return [str(tag.get("title", "")) for tag in page.get("data", []) or []]

    def _soft_list(self, what: str, board_id: str, fetch) -> List[Dict[str, Any]]:
        logger.info("Getting %s for board %s", what, board_id)
        try:
            page = fetch()
        except MiroAPIError as exc:
            logger.warning("Could not fetch %s: %s", what, exc)
            return []
        return list(page.get("data", []) or [])
