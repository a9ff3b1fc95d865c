"""Tests for the Zenkit API client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from zenkit_api import DEFAULT_ENDPOINT, ZenkitClient, ZenkitError
from zenkit_types import ElementCategory, Workspace

WORKSPACES = [
    {
        "id": 10,
        "uuid": "ws-uuid",
        "name": "Team",
        "lists": [
            {"id": 1, "shortId": "aa", "uuid": "tasks-uuid", "name": "Tasks", "workspaceId": 10},
            {"id": 2, "shortId": "bb", "uuid": "notes-uuid", "name": "Notes", "workspaceId": 10},
        ],
    },
    {"id": 11, "uuid": "other-uuid", "name": "Personal", "lists": []},
]


def json_response(payload, status=200):
    response = MagicMock()
    response.status_code = status
    response.content = b"{}"
    response.json.return_value = payload
    return response


def http_error_response(status, payload):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status} Error", response=response)
    return response


class TestZenkitClient:
    """Tests for the Zenkit API client."""

    @patch("zenkit_api.requests.Session")
    def test_session_headers(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session

        client = ZenkitClient("secret-token")

        mock_session.headers.update.assert_called_once()
        sent = mock_session.headers.update.call_args.args[0]
        assert sent["Zenkit-API-Key"] == "secret-token"
        assert client.endpoint == DEFAULT_ENDPOINT

    @patch("zenkit_api.requests.Session")
    def test_get_list_entries_page(self, mock_session_class):
        """Test one page request and the entries it returns."""
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = json_response([
            {"id": 5, "uuid": "e5", "displayString": "Five", "abc_text": "x"},
        ])

        client = ZenkitClient("t", endpoint="https://example.test/api/v1/")
        entries = client.get_list_entries(1, skip=500, limit=500, include_archived=True)

        call = mock_session.request.call_args
        assert call.kwargs["method"] == "POST"
        assert call.kwargs["url"] == "https://example.test/api/v1/lists/1/entries/filter"
        assert call.kwargs["json"] == {"limit": 500, "skip": 500, "allowDeprecated": True}
        assert call.kwargs["timeout"] == 30
        assert entries[0].id == 5
        assert entries[0].display_string == "Five"
        assert entries[0].fields == {"abc_text": "x"}

    @patch("zenkit_api.requests.Session")
    def test_malformed_entry_page(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = json_response({"unexpected": True})

        with pytest.raises(ZenkitError):
            ZenkitClient("t").get_list_entries(1, 0, 500)

    @patch("zenkit_api.requests.Session")
    def test_http_error_carries_status_and_message(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = http_error_response(
            404, {"error": {"code": "D1", "message": "List not found"}}
        )

        with pytest.raises(ZenkitError) as exc_info:
            ZenkitClient("t").get_list_elements(99)

        assert exc_info.value.status == 404
        assert "List not found" in str(exc_info.value)

    @patch("zenkit_api.requests.Session")
    def test_network_error(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.side_effect = requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(ZenkitError) as exc_info:
            ZenkitClient("t").get_webhooks()

        assert "Network error" in str(exc_info.value)
        assert exc_info.value.status is None

    @patch("zenkit_api.requests.Session")
    def test_undecodable_body(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        response = json_response(None)
        response.json.side_effect = ValueError("not json")
        mock_session.request.return_value = response

        with pytest.raises(ZenkitError) as exc_info:
            ZenkitClient("t").get_users(10)
        assert "Malformed response" in str(exc_info.value)

    @patch("zenkit_api.requests.Session")
    def test_get_workspace_by_name_id_or_uuid(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = json_response(WORKSPACES)

        client = ZenkitClient("t")

        assert client.get_workspace("team").uuid == "ws-uuid"
        assert client.get_workspace("11").name == "Personal"
        assert client.get_workspace("ws-uuid").id == 10
        assert [l.name for l in client.get_workspace("Team").lists] == ["Tasks", "Notes"]
        with pytest.raises(ZenkitError):
            client.get_workspace("Missing")

    @patch("zenkit_api.requests.Session")
    def test_get_list_info_resolves_name(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = json_response(
            [{"id": 101, "uuid": "f1", "name": "Title", "elementcategory": 1}]
        )

        info = ZenkitClient("t").get_list_info(Workspace.from_dict(WORKSPACES[0]), "Notes")

        assert info.uuid == "notes-uuid"
        assert info.fields[0].category == ElementCategory.TEXT
        # only the elements are loaded; the workspace is not fetched again
        assert mock_session.request.call_count == 1
        assert mock_session.request.call_args.kwargs["url"].endswith("/lists/2/elements")

    @patch("zenkit_api.requests.Session")
    def test_get_list_info_unknown_list(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session

        with pytest.raises(ZenkitError) as exc_info:
            ZenkitClient("t").get_list_info(Workspace.from_dict(WORKSPACES[0]), "Archive")
        assert "Archive" in str(exc_info.value)
        mock_session.request.assert_not_called()

    @patch("zenkit_api.requests.Session")
    def test_entry_without_id_is_malformed(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = json_response([{"uuid": "e-1"}])

        with pytest.raises(ZenkitError) as exc_info:
            ZenkitClient("t").get_list_entries(1, 0, 500)
        assert "Malformed response from /lists/1/entries/filter" in str(exc_info.value)

    @patch("zenkit_api.requests.Session")
    def test_entry_page_with_non_object_is_malformed(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = json_response([{"id": 1, "uuid": "e-1"}, "oops"])

        with pytest.raises(ZenkitError):
            ZenkitClient("t").get_list_entries(1, 0, 500)

    @patch("zenkit_api.requests.Session")
    def test_workspace_without_uuid_is_malformed(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = json_response([{"id": 1, "name": "W"}])

        with pytest.raises(ZenkitError) as exc_info:
            ZenkitClient("t").get_workspace("W")
        assert "Malformed response from /users/me/workspacesWithLists" in str(exc_info.value)

    @patch("zenkit_api.requests.Session")
    def test_webhook_without_trigger_type(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = json_response([{"id": 3, "url": "https://h.test"}])

        hooks = ZenkitClient("t").get_webhooks()

        assert hooks[0].to_dict()["triggerType"] is None

    @patch("zenkit_api.requests.Session")
    def test_add_comment(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        mock_session.request.return_value = json_response({"uuid": "act"})

        ZenkitClient("t").add_comment(1, "e5", "Looks good")

        call = mock_session.request.call_args
        assert call.kwargs["url"].endswith("/users/me/lists/1/entries/e5/activities")
        assert call.kwargs["json"] == {"message": "Looks good"}

    @patch("zenkit_api.requests.Session")
    def test_delete_webhook_no_content(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        response = json_response(None, status=204)
        response.content = b""
        mock_session.request.return_value = response

        assert ZenkitClient("t").delete_webhook(3) is None
        assert mock_session.request.call_args.kwargs["method"] == "DELETE"
