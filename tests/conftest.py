"""Shared fixtures: an in-memory Miro board and scripted LLM / ticketing fakes."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

import pytest

from workflow_analyzer.core.exceptions import MiroAPIError, WorkItemAPIError
from workflow_analyzer.services.miro_client import MiroBoard


def connector(conn_id: str, start: Optional[str], end: Optional[str], caption: str = "") -> Dict[str, Any]:
    payload: Dict[str, Any] = {"id": conn_id, "type": "connector"}
    if start is not None:
        payload["startItem"] = {"id": start}
    if end is not None:
        payload["endItem"] = {"id": end}
    if caption:
        payload["captions"] = [{"content": caption}]
    return payload


def sticky(item_id: str, text: str, x: float = 0, y: float = 0) -> Dict[str, Any]:
    return {
        "id": item_id,
        "type": "sticky_note",
        "data": {"content": text},
        "position": {"x": x, "y": y},
    }


class FakeMiroClient:
    """Serves one board from memory and records every call."""

    def __init__(
        self,
        *,
        board_id: str = "uXjVBoard=",
        name: str = "Onboarding Flow",
        items: Optional[List[Dict[str, Any]]] = None,
        connectors: Optional[List[Dict[str, Any]]] = None,
        groups: Optional[List[Dict[str, Any]]] = None,
        group_items: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        tags: Optional[List[Dict[str, Any]]] = None,
        item_tags: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        failing: Optional[Set[str]] = None,
    ):
        self.board_id = board_id
        self.name = name
        self.items = items or []
        self.connectors = connectors or []
        self.groups = groups or []
        self.group_items = group_items or {}
        self.tags = tags or []
        self.item_tags = item_tags or {}
        # Names of methods (or "group:<id>") that raise MiroAPIError.
        self.failing = failing or set()
        self.calls: List[tuple] = []

    def _maybe_fail(self, name: str) -> None:
        if name in self.failing:
            raise MiroAPIError(f"{name} failed", status_code=500)

    def list_boards(self, limit: int = 50, offset: int = 0) -> List[MiroBoard]:
        self.calls.append(("list_boards", limit, offset))
        self._maybe_fail("list_boards")
        return [MiroBoard(self.board_id, self.name, "", "2024-01-01T00:00:00Z", "2024-02-01T00:00:00Z")]

    def get_board(self, board_id: str) -> MiroBoard:
        self.calls.append(("get_board", board_id))
        self._maybe_fail("get_board")
        return MiroBoard(board_id, self.name, "Board used in tests", "", "")

    def get_items(self, board_id: str, limit: int = 50, offset: int = 0) -> Dict[str, Any]:
        self.calls.append(("get_items", board_id, limit, offset))
        self._maybe_fail("get_items")
        return {"data": self.items[offset : offset + limit]}

    def get_connectors(self, board_id: str, limit: int = 50) -> Dict[str, Any]:
        self.calls.append(("get_connectors", board_id, limit))
        self._maybe_fail("get_connectors")
        return {"data": self.connectors[:limit]}

    def get_groups(self, board_id: str, limit: int = 50) -> Dict[str, Any]:
        self.calls.append(("get_groups", board_id, limit))
        self._maybe_fail("get_groups")
        return {"data": self.groups[:limit]}

    def get_group_items(self, board_id: str, group_id: str) -> Dict[str, Any]:
        self.calls.append(("get_group_items", board_id, group_id))
        self._maybe_fail(f"group:{group_id}")
        return {"data": self.group_items.get(group_id, [])}

    def get_tags(self, board_id: str) -> Dict[str, Any]:
        self.calls.append(("get_tags", board_id))
        self._maybe_fail("get_tags")
        return {"data": self.tags}

    def get_item_tags(self, board_id: str, item_id: str) -> Dict[str, Any]:
        self._maybe_fail("get_item_tags")
        return {"data": self.item_tags.get(item_id, [])}


class ScriptedLLM:
    """Returns queued replies in order; an Exception in the queue is raised."""

    def __init__(self, *replies: Any):
        self.replies = list(replies)
        self.prompts: List[str] = []

    def complete(self, prompt: str, *, max_tokens: int = 4000, temperature: float = 0.7, system=None) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeTicketClient:
    """Assigns increasing ids; names listed in `reject` fail with WorkItemAPIError."""

    def __init__(self, *, start_id: int = 100, reject: Optional[Set[str]] = None, zero_ids: Optional[Set[str]] = None):
        self._next_id = start_id
        self.reject = reject or set()
        self.zero_ids = zero_ids or set()
        self.created: List[Dict[str, Any]] = []

    def _create(self, kind: str, name: str, **fields: Any) -> int:
        if name in self.reject:
            raise WorkItemAPIError(f"{kind} rejected", status_code=400)
        created_id = 0 if name in self.zero_ids else self._next_id
        if created_id:
            self._next_id += 1
        self.created.append({"kind": kind, "name": name, "id": created_id, **fields})
        return created_id

    def create_project(self, name: str) -> int:
        return self._create("project", name)

    def create_epic(self, project_id: int, name: str, description: str) -> int:
        return self._create("epic", name, project_id=project_id, description=description)

    def create_feature(self, project_id: int, epic_id: int, name: str, description: str) -> int:
        return self._create(
            "feature", name, project_id=project_id, epic_id=epic_id, description=description
        )

    def create_user_story(self, project_id: int, feature_id: int, name: str, description: str) -> int:
        return self._create(
            "story", name, project_id=project_id, feature_id=feature_id, description=description
        )

    def of_kind(self, kind: str) -> List[Dict[str, Any]]:
        return [entry for entry in self.created if entry["kind"] == kind]


INSIGHTS_JSON = """Here is the analysis:

```json
{
  "workflowSummary": "Customer onboarding from signup to first login",
  "epics": [
    {"epicId": "EPIC-001", "title": "Account Setup", "description": "Create accounts", "priority": "high"},
    {"epicId": "EPIC-002", "title": "Activation", "description": "Activate users", "priority": "urgent"}
  ],
  "features": [
    {
      "featureId": "FEAT-001",
      "epicId": "EPIC-001",
      "title": "Signup Form",
      "description": "Collect details",
      "userStories": [
        {
          "storyId": "US-001",
          "title": "Register with email",
          "asA": "As a visitor",
          "iWant": "I want to register with my email",
          "soThat": "so that I can use the product",
          "tasks": [{"taskId": "TASK-001", "title": "Build form", "estimatedHours": 8}]
        }
      ]
    },
    {
      "featureId": "FEAT-002",
      "epicId": "EPIC-002",
      "title": "Welcome Email",
      "description": "Send welcome email",
      "userStories": []
    }
  ],
  "targetProcessImplementation": {"processName": "Onboarding", "targetSystem": "TargetProcess"},
  "businessValue": "Faster activation",
  "riskAssessment": [{"risk": "Email deliverability", "impact": "low", "mitigation": "Use a provider"}]
}
```
"""


@pytest.fixture
def linear_board() -> FakeMiroClient:
    """Start -> Process -> End plus one connector item on the item list."""
    return FakeMiroClient(
        items=[
            sticky("n1", "Start", 0, 0),
            {"id": "n2", "type": "card", "data": {"title": "Process", "description": "Do work"}},
            {"id": "n3", "type": "shape", "data": {"content": "End"}, "geometry": {"x": 5, "y": 6}},
            {"id": "c1", "type": "connector"},
        ],
        connectors=[connector("c1", "n1", "n2", "next"), connector("c2", "n2", "n3")],
        groups=[{"id": "g1"}],
        group_items={"g1": [{"id": "n1"}, {"id": "n2"}]},
        tags=[{"id": "t1", "title": "MVP", "fillColor": "red"}, {"title": "no id"}],
        item_tags={"n1": [{"id": "t1", "title": "MVP"}]},
    )


@pytest.fixture
def insights_reply() -> str:
    return INSIGHTS_JSON


@pytest.fixture
def fake_miro():
    """Factory for `FakeMiroClient` boards."""
    return FakeMiroClient


@pytest.fixture
def make_connector():
    return connector


@pytest.fixture
def make_sticky():
    return sticky


@pytest.fixture
def scripted_llm():
    return ScriptedLLM


@pytest.fixture
def ticket_client() -> FakeTicketClient:
    return FakeTicketClient()
