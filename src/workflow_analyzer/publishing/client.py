"""Ticketing (TargetProcess-style) REST client for creating work items."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from ..core.exceptions import WorkItemAPIError
from .decoding import decode_created_id

logger = logging.getLogger("workflow_analyzer.publish")

# Request timeout in seconds
REQUEST_TIMEOUT = 30

PROJECT_ENDPOINT = "/api/v1/Project/"
EPIC_ENDPOINT = "/api/v1/Epic/"
FEATURE_ENDPOINT = "/api/v1/features/"
USER_STORY_ENDPOINT = "/api/v1/UserStory/"


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("message", "Message", "error", "Error"):
            if data.get(key):
                return str(data[key])
    text = (response.text or "").strip()
    return text[:500] if text else f"HTTP {response.status_code}"


class TargetProcessClient:
    """Authenticates with both a bearer header and an `access_token` query param."""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        *,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._access_token = access_token
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            }
        )

    def _create(self, endpoint: str, payload: Dict[str, Any]) -> int:
        """POST a create payload and return the server-assigned id (0 if unreadable).

        Raises:
            WorkItemAPIError: On transport failures or non-2xx responses
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug("POST %s payload=%s", endpoint, json.dumps(payload, ensure_ascii=False))
        try:
            response = self._session.post(
                url,
                json=payload,
                params={"access_token": self._access_token},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.exceptions.RequestException as exc:
            raise WorkItemAPIError(
                f"Request to ticketing API failed: {exc}", context={"endpoint": endpoint}
            ) from exc

        if not response.ok:
            raise WorkItemAPIError(
                _error_message(response),
                context={"endpoint": endpoint},
                status_code=response.status_code,
            )
        created_id = decode_created_id(response)
        if not created_id:
            logger.warning("Could not read created id from %s response", endpoint)
        return created_id

    def create_project(self, name: str) -> int:
        return self._create(PROJECT_ENDPOINT, {"Name": name})

    def create_epic(self, project_id: int, name: str, description: str) -> int:
        return self._create(
            EPIC_ENDPOINT,
            {"Name": name, "Description": description, "Project": {"Id": project_id}},
        )

    def create_feature(self, project_id: int, epic_id: int, name: str, description: str) -> int:
        return self._create(
            FEATURE_ENDPOINT,
            {
                "Name": name,
                "Description": description,
                "Epic": {"Id": epic_id},
                "Project": {"Id": project_id},
            },
        )

    def create_user_story(self, project_id: int, feature_id: int, name: str, description: str) -> int:
        return self._create(
            USER_STORY_ENDPOINT,
            {
                "Name": name,
                "Description": description,
                "Feature": {"Id": feature_id},
                "Project": {"Id": project_id},
            },
        )
