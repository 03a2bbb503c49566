"""Decode the server-assigned id from a ticketing API create response.

The API answers either with JSON (`{"Id": 123, ...}`) or with an XML fragment
(`<Epic Id="123" .../>`). `decode_created_id` picks a strategy from the
content type and falls back to sniffing the body.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Protocol, Sequence

import requests

_XML_ID = re.compile(r'Id="(\d+)"')


class IdDecoder(Protocol):
    def accepts(self, content_type: str, body: str) -> bool: ...

    def decode(self, body: str) -> Optional[int]: ...


def _coerce_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


class JsonIdDecoder:
    """Reads `Id` (or `id`) from a JSON object body."""

    def accepts(self, content_type: str, body: str) -> bool:
        if "json" in content_type:
            return True
        return body.lstrip().startswith("{")

    def decode(self, body: str) -> Optional[int]:
        try:
            data = json.loads(body)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        for key in ("Id", "id"):
            if key in data:
                return _coerce_id(data[key])
        return None


class XmlIdDecoder:
    """Extracts the first `Id="<digits>"` attribute from an XML fragment."""

    def accepts(self, content_type: str, body: str) -> bool:
        if "xml" in content_type:
            return True
        return body.lstrip().startswith("<")

    def decode(self, body: str) -> Optional[int]:
        match = _XML_ID.search(body)
        return int(match.group(1)) if match else None


DEFAULT_DECODERS: Sequence[IdDecoder] = (JsonIdDecoder(), XmlIdDecoder())


def decode_id(
    body: str,
    content_type: str = "",
    decoders: Sequence[IdDecoder] = DEFAULT_DECODERS,
) -> int:
    """Return the created id, or 0 when no strategy can read one."""
    content_type = (content_type or "").lower()
    body = body or ""
    for decoder in decoders:
        if decoder.accepts(content_type, body):
            value = decoder.decode(body)
            if value is not None:
                return value
    return 0


def decode_created_id(response: requests.Response) -> int:
    return decode_id(response.text, response.headers.get("Content-Type", ""))
