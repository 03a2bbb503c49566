"""Miro API client for fetching board data.

This client wraps the Miro REST API v2 to retrieve boards, items, connectors,
groups and tags for workflow extraction. List endpoints return the raw page
payload (`{"data": [...], ...}`); pagination policy is left to the caller.

Usage:
    client = MiroClient(access_token="your-token")
    page = client.get_items("board_id", limit=50, offset=0)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlparse

import requests

from ..core.exceptions import MiroAPIError

logger = logging.getLogger("workflow_analyzer.miro")

# Miro API base URL
MIRO_API_BASE = "https://api.miro.com/v2"

# Request timeout in seconds
REQUEST_TIMEOUT = 30

# Item type -> typed sub-resource collection
ITEM_ENDPOINTS = {
    "card": "cards",
    "app_card": "app_cards",
    "sticky_note": "sticky_notes",
    "text": "texts",
    "image": "images",
    "shape": "shapes",
    "frame": "frames",
    "document": "documents",
    "embed": "embeds",
    "mindmap_node": "mindmap_nodes",
}


@dataclass
class MiroBoard:
    """Miro board metadata."""

    id: str
    name: str
    description: str
    created_at: str
    modified_at: str

    @classmethod
    def from_payload(cls, data: Dict[str, Any], fallback_id: str = "") -> "MiroBoard":
        return cls(
            id=data.get("id", fallback_id),
            name=data.get("name") or "Untitled",
            description=data.get("description") or "",
            created_at=data.get("createdAt", ""),
            modified_at=data.get("modifiedAt", ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at,
            "modifiedAt": self.modified_at,
        }


def _segment(value: str) -> str:
    # Board ids end in "=" and must be escaped in the path.
    return quote(value, safe="")


class MiroClient:
    """Client for interacting with the Miro REST API v2."""

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str = MIRO_API_BASE,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the Miro client.

        Args:
            access_token: Miro personal access token
            base_url: API root, overridable for tests
            session: Optional preconfigured requests session
        """
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Make a request to the Miro API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (e.g., "/boards/{board_id}")
            params: Query parameters

        Returns:
            JSON response data

        Raises:
            MiroAPIError: If the request fails
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug("Miro %s %s params=%s", method, endpoint, params)

        try:
            response = self._session.request(
                method,
                url,
                params=params,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.exceptions.Timeout as exc:
            raise MiroAPIError("Request to Miro API timed out", context={"endpoint": endpoint}) from exc
        except requests.exceptions.ConnectionError as exc:
            raise MiroAPIError("Could not connect to Miro API", context={"endpoint": endpoint}) from exc
        except requests.exceptions.RequestException as exc:
            raise MiroAPIError(f"Miro API request failed: {exc}", context={"endpoint": endpoint}) from exc

        # Handle specific error codes
        if response.status_code == 401:
            raise MiroAPIError(
                "Invalid or expired Miro access token.",
                context={"endpoint": endpoint},
                status_code=401,
            )
        if response.status_code == 403:
            raise MiroAPIError(
                "Access denied. Your token may not have permission to access this board.",
                context={"endpoint": endpoint},
                status_code=403,
            )
        if response.status_code == 404:
            raise MiroAPIError(
                "Resource not found. Please check the board and item IDs.",
                context={"endpoint": endpoint},
                status_code=404,
            )
        if response.status_code == 429:
            raise MiroAPIError(
                "Rate limit exceeded. Please try again later.",
                context={"endpoint": endpoint},
                status_code=429,
            )

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            raise MiroAPIError(
                f"Miro API request failed: {exc}",
                context={"endpoint": endpoint},
                status_code=response.status_code,
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise MiroAPIError(
                "Miro API returned a non-JSON response",
                context={"endpoint": endpoint},
                status_code=response.status_code,
            ) from exc

    # ------------------------------------------------------------------
    # Boards
    # ------------------------------------------------------------------

    def list_boards(self, limit: int = 50, offset: int = 0) -> List[MiroBoard]:
        """Get boards accessible to the token.

        Args:
            limit: Maximum number of boards to return
            offset: Page offset

        Returns:
            List of MiroBoard objects
        """
        data = self._request("GET", "/boards", params={"limit": limit, "offset": offset})
        return [MiroBoard.from_payload(item) for item in data.get("data", [])]

    def get_board(self, board_id: str) -> MiroBoard:
        """Get board metadata.

        Args:
            board_id: The Miro board ID

        Returns:
            MiroBoard object with board metadata
        """
        data = self._request("GET", f"/boards/{_segment(board_id)}")
        return MiroBoard.from_payload(data, fallback_id=board_id)

    def get_board_members(self, board_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/boards/{_segment(board_id)}/members")

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def get_items(self, board_id: str, limit: int = 50, offset: int = 0) -> Dict[str, Any]:
        """Get a single page of board items.

        Args:
            board_id: The Miro board ID
            limit: Page size
            offset: Number of items to skip

        Returns:
            Raw page payload with a "data" list
        """
        return self._request(
            "GET",
            f"/boards/{_segment(board_id)}/items",
            params={"limit": limit, "offset": offset},
        )

    def get_item(self, board_id: str, item_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/boards/{_segment(board_id)}/items/{_segment(item_id)}")

    def get_typed_item(self, board_id: str, item_type: str, item_id: str) -> Dict[str, Any]:
        """Get an item through its type-specific sub-resource (e.g. /cards/{id}).

        Raises:
            ValueError: If the item type has no typed endpoint
        """
        collection = ITEM_ENDPOINTS.get(item_type)
        if collection is None:
            raise ValueError(f"No typed endpoint for item type: {item_type}")
        return self._request(
            "GET", f"/boards/{_segment(board_id)}/{collection}/{_segment(item_id)}"
        )

    def get_mindmap_nodes(self, board_id: str, limit: int = 50) -> Dict[str, Any]:
        return self._request(
            "GET", f"/boards/{_segment(board_id)}/mindmap_nodes", params={"limit": limit}
        )

    # ------------------------------------------------------------------
    # Connectors and groups
    # ------------------------------------------------------------------

    def get_connectors(self, board_id: str, limit: int = 50) -> Dict[str, Any]:
        """Get connectors (edges) from a board.

        Miro has a separate endpoint for connectors: /v2/boards/{board_id}/connectors
        """
        return self._request(
            "GET", f"/boards/{_segment(board_id)}/connectors", params={"limit": limit}
        )

    def get_connector(self, board_id: str, connector_id: str) -> Dict[str, Any]:
        return self._request(
            "GET", f"/boards/{_segment(board_id)}/connectors/{_segment(connector_id)}"
        )

    def get_groups(self, board_id: str, limit: int = 50) -> Dict[str, Any]:
        return self._request(
            "GET", f"/boards/{_segment(board_id)}/groups", params={"limit": limit}
        )

    def get_group(self, board_id: str, group_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/boards/{_segment(board_id)}/groups/{_segment(group_id)}")

    def get_group_items(self, board_id: str, group_id: str) -> Dict[str, Any]:
        return self._request(
            "GET", f"/boards/{_segment(board_id)}/groups/{_segment(group_id)}/items"
        )

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def get_tags(self, board_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/boards/{_segment(board_id)}/tags")

    def get_tag(self, board_id: str, tag_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/boards/{_segment(board_id)}/tags/{_segment(tag_id)}")

    def get_item_tags(self, board_id: str, item_id: str) -> Dict[str, Any]:
        return self._request(
            "GET", f"/boards/{_segment(board_id)}/items/{_segment(item_id)}/tags"
        )

    def test_connection(self) -> bool:
        """Test if the access token is valid.

        Returns:
            True if connection is successful
        """
        try:
            self._request("GET", "/boards", params={"limit": 1})
            return True
        except MiroAPIError:
            return False


def extract_board_id(url_or_id: str) -> str:
    """Extract board ID from a Miro URL or return the ID as-is.

    Handles URLs like:
        - https://miro.com/app/board/uXjVK5jR2xc=/
        - https://miro.com/app/board/uXjVK5jR2xc=
        - uXjVK5jR2xc=

    Raises:
        ValueError: If the URL/ID format is invalid
    """
    url_or_id = url_or_id.strip()

    if url_or_id.startswith("http"):
        parsed = urlparse(url_or_id)

        # Expected path: /app/board/{board_id}/
        path_match = re.match(r"/app/board/([^/]+)/?", parsed.path)
        if path_match:
            return path_match.group(1)

        raise ValueError(
            f"Could not extract board ID from URL: {url_or_id}. "
            "Expected format: https://miro.com/app/board/{board_id}/"
        )

    if not url_or_id:
        raise ValueError("Board ID cannot be empty")

    return url_or_id
