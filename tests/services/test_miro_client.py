"""Tests for the Miro REST client error mapping and endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, Mock

import pytest
import requests

from workflow_analyzer.core.exceptions import MiroAPIError
from workflow_analyzer.services.miro_client import MiroBoard, MiroClient, extract_board_id


def _response(status: int = 200, payload=None):
    response = Mock()
    response.status_code = status
    if payload is None:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status} error")
    return response


@pytest.fixture
def session():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def client(session) -> MiroClient:
    return MiroClient("token", session=session)


def test_sets_bearer_header(client, session):
    assert session.headers["Authorization"] == "Bearer token"
    assert session.headers["Accept"] == "application/json"


def test_get_board_escapes_board_id(client, session):
    session.request.return_value = _response(payload={"id": "uXjV=", "name": "Flow"})
    board = client.get_board("uXjV=")

    args, kwargs = session.request.call_args
    assert args == ("GET", "https://api.miro.com/v2/boards/uXjV%3D")
    assert kwargs["timeout"] == 30
    assert board == MiroBoard("uXjV=", "Flow", "", "", "")


def test_board_without_name_is_untitled(client, session):
    session.request.return_value = _response(payload={})
    board = client.get_board("b1")
    assert board.id == "b1"
    assert board.name == "Untitled"


def test_get_items_passes_paging(client, session):
    session.request.return_value = _response(payload={"data": [{"id": "1"}]})
    page = client.get_items("b1", limit=50, offset=100)
    assert page == {"data": [{"id": "1"}]}
    assert session.request.call_args.kwargs["params"] == {"limit": 50, "offset": 100}


def test_list_boards_maps_payload(client, session):
    session.request.return_value = _response(
        payload={"data": [{"id": "b1", "name": "One", "modifiedAt": "2024-03-01T10:00:00Z"}]}
    )
    boards = client.list_boards(limit=20)
    assert boards[0].to_dict() == {
        "id": "b1",
        "name": "One",
        "description": "",
        "createdAt": "",
        "modifiedAt": "2024-03-01T10:00:00Z",
    }


@pytest.mark.parametrize(
    "method, args, path",
    [
        ("get_connectors", ("b1",), "/boards/b1/connectors"),
        ("get_groups", ("b1",), "/boards/b1/groups"),
        ("get_group_items", ("b1", "g1"), "/boards/b1/groups/g1/items"),
        ("get_tags", ("b1",), "/boards/b1/tags"),
        ("get_item_tags", ("b1", "i1"), "/boards/b1/items/i1/tags"),
        ("get_typed_item", ("b1", "sticky_note", "i1"), "/boards/b1/sticky_notes/i1"),
        ("get_board_members", ("b1",), "/boards/b1/members"),
        ("get_item", ("b1", "i1"), "/boards/b1/items/i1"),
        ("get_mindmap_nodes", ("b1",), "/boards/b1/mindmap_nodes"),
        ("get_connector", ("b1", "c1"), "/boards/b1/connectors/c1"),
        ("get_group", ("b1", "g1"), "/boards/b1/groups/g1"),
        ("get_tag", ("b1", "t1"), "/boards/b1/tags/t1"),
    ],
)
def test_endpoints(client, session, method, args, path):
    session.request.return_value = _response(payload={"data": []})
    getattr(client, method)(*args)
    assert session.request.call_args.args[1] == f"https://api.miro.com/v2{path}"


def test_typed_item_rejects_unknown_type(client):
    with pytest.raises(ValueError):
        client.get_typed_item("b1", "connector", "i1")


@pytest.mark.parametrize("status", [401, 403, 404, 429, 500])
def test_error_statuses_raise(client, session, status):
    session.request.return_value = _response(status=status, payload={})
    with pytest.raises(MiroAPIError) as excinfo:
        client.get_board("b1")
    assert excinfo.value.status_code == status


def test_non_json_body_raises(client, session):
    session.request.return_value = _response(payload=None)
    with pytest.raises(MiroAPIError):
        client.get_tags("b1")


@pytest.mark.parametrize(
    "exc",
    [requests.exceptions.Timeout("slow"), requests.exceptions.ConnectionError("down")],
)
def test_transport_errors_raise(client, session, exc):
    session.request.side_effect = exc
    with pytest.raises(MiroAPIError) as excinfo:
        client.get_items("b1")
    assert excinfo.value.status_code is None


def test_connection_check(client, session):
    session.request.return_value = _response(payload={"data": []})
    assert client.test_connection() is True
    session.request.return_value = _response(status=401, payload={})
    assert client.test_connection() is False


class TestExtractBoardId:
    @pytest.mark.parametrize(
        "raw",
        [
            "https://miro.com/app/board/uXjVK5jR2xc=/",
            "https://miro.com/app/board/uXjVK5jR2xc=",
            "https://miro.com/app/board/uXjVK5jR2xc=/?share_link_id=1",
            "  uXjVK5jR2xc=  ",
        ],
    )
    def test_extracts_id(self, raw):
        assert extract_board_id(raw) == "uXjVK5jR2xc="

    def test_rejects_foreign_url(self):
        with pytest.raises(ValueError):
            extract_board_id("https://example.com/boards/1")

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            extract_board_id("   ")
