"""Title/description extraction for board items.

Each known Miro item type maps to one extraction rule. Types outside the enum
fall through to a generic rule that takes the first text-like field present.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

MAX_TITLE_LENGTH = 100


class ItemType(str, Enum):
    STICKY_NOTE = "sticky_note"
    TEXT = "text"
    SHAPE = "shape"
    CARD = "card"
    APP_CARD = "app_card"
    FRAME = "frame"
    DOCUMENT = "document"
    MINDMAP_NODE = "mindmap_node"
    IMAGE = "image"
    EMBED = "embed"
    CONNECTOR = "connector"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["ItemType"]:
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass(frozen=True)
class ItemContent:
    title: str
    description: Optional[str] = None


def _first(data: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if value:
            return str(value)
    return None


def _inline_text(data: Mapping[str, Any], item_id: str) -> Tuple[Optional[str], Optional[str]]:
    return _first(data, "content", "text"), None


def _titled_card(data: Mapping[str, Any], item_id: str) -> Tuple[Optional[str], Optional[str]]:
    description = data.get("description")
    return _first(data, "title"), str(description) if description else None


def _titled(data: Mapping[str, Any], item_id: str) -> Tuple[Optional[str], Optional[str]]:
    return _first(data, "title"), None


def _mindmap(data: Mapping[str, Any], item_id: str) -> Tuple[Optional[str], Optional[str]]:
    return _first(data, "content"), None


def _image(data: Mapping[str, Any], item_id: str) -> Tuple[Optional[str], Optional[str]]:
    return _first(data, "title") or f"Image {item_id}", None


def _embed(data: Mapping[str, Any], item_id: str) -> Tuple[Optional[str], Optional[str]]:
    return _first(data, "title", "url"), None


def _unknown(data: Mapping[str, Any], item_id: str) -> Tuple[Optional[str], Optional[str]]:
    return _first(data, "content", "text", "title"), None


Rule = Callable[[Mapping[str, Any], str], Tuple[Optional[str], Optional[str]]]

EXTRACTION_RULES: Dict[ItemType, Rule] = {
    ItemType.STICKY_NOTE: _inline_text,
    ItemType.TEXT: _inline_text,
    ItemType.SHAPE: _inline_text,
    ItemType.CARD: _titled_card,
    ItemType.APP_CARD: _titled_card,
    ItemType.FRAME: _titled,
    ItemType.DOCUMENT: _titled,
    ItemType.MINDMAP_NODE: _mindmap,
    ItemType.IMAGE: _image,
    ItemType.EMBED: _embed,
    # Connectors never become nodes; kept so every member has a rule.
    ItemType.CONNECTOR: _unknown,
}

_missing = set(ItemType) - set(EXTRACTION_RULES)
if _missing:  # pragma: no cover - import-time guard
    raise RuntimeError(f"Item types without an extraction rule: {sorted(m.value for m in _missing)}")


def extract_item_content(item: Mapping[str, Any]) -> ItemContent:
    """Derive a node title and optional description from a raw board item."""
    item_id = str(item.get("id", ""))
    raw_type = str(item.get("type", ""))
    data = item.get("data") or {}

    item_type = ItemType.parse(raw_type)
    rule = EXTRACTION_RULES[item_type] if item_type is not None else _unknown
    title, description = rule(data, item_id)

    if not title:
        title = f"{raw_type} {item_id}"
    return ItemContent(title=title[:MAX_TITLE_LENGTH], description=description)
