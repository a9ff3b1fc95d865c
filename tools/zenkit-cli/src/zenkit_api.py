"""
Client for the Zenkit REST API.

Wraps a single ``requests.Session``. Every failure (HTTP status, network,
undecodable body, unresolvable name) is raised as ``ZenkitError``.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from zenkit_types import Entry, Field, ListInfo, User, Webhook, Workspace

DEFAULT_ENDPOINT = "https://zenkit.com/api/v1"
DEFAULT_TIMEOUT = 30


class ZenkitError(Exception):
    """Error returned by (or while talking to) the Zenkit API."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ZenkitClient:
    """Client for the Zenkit API."""

    def __init__(self, token: str, endpoint: str = DEFAULT_ENDPOINT, timeout: float = DEFAULT_TIMEOUT):
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Zenkit-API-Key": token,
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        data: Optional[Any] = None,
    ) -> Any:
        """Make an API request and return the decoded JSON body."""
        url = f"{self.endpoint}{path}"
        logging.debug("%s %s", method, url)

        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=data,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            error_msg = str(e)
            try:
                error_data = e.response.json()
                err = error_data.get("error") or {}
                error_msg = err.get("message") or error_data.get("message") or error_msg
            except (ValueError, AttributeError):
                pass
            status = e.response.status_code if e.response is not None else None
            raise ZenkitError(f"API error: {error_msg}", status=status)
        except requests.exceptions.RequestException as e:
            raise ZenkitError(f"Network error: {e}")

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise ZenkitError(f"Malformed response from {path}", status=response.status_code)

    def _parse(self, path: str, build: Callable[[Any], Any], data: Any) -> Any:
        """Build records from a decoded body; a payload of the wrong shape is a ZenkitError."""
        try:
            return build(data)
        except (KeyError, TypeError, AttributeError) as e:
            raise ZenkitError(f"Malformed response from {path}: {e}")

    def get(self, path: str, params: Optional[dict] = None) -> Any:
        return self._request("GET", path, params=params)

    def post(self, path: str, data: Optional[Any] = None) -> Any:
        return self._request("POST", path, data=data)

    def put(self, path: str, data: Optional[Any] = None) -> Any:
        return self._request("PUT", path, data=data)

    def delete(self, path: str) -> Any:
        return self._request("DELETE", path)

    # Workspaces
    def get_all_workspaces_and_lists(self) -> List[Workspace]:
        path = "/users/me/workspacesWithLists"
        data = self.get(path) or []
        return self._parse(path, lambda d: [Workspace.from_dict(w) for w in d], data)

    def get_workspace(self, spec: str) -> Workspace:
        """Find a workspace by id, uuid or name (name is case-insensitive)."""
        workspaces = self.get_all_workspaces_and_lists()
        for ws in workspaces:
            if spec in (str(ws.id), ws.uuid):
                return ws
        wanted = spec.strip().lower()
        for ws in workspaces:
            if ws.name.lower() == wanted:
                return ws
        raise ZenkitError(f"Workspace '{spec}' not found")

    def get_users(self, workspace_id: int) -> List[User]:
        path = f"/workspaces/{workspace_id}/users"
        data = self.get(path) or []
        return self._parse(path, lambda d: [User.from_dict(u) for u in d], data)

    # Lists and fields
    def get_list_elements(self, list_id: Any) -> List[Field]:
        path = f"/lists/{list_id}/elements"
        data = self.get(path) or []
        return self._parse(path, lambda d: [Field.from_dict(f) for f in d], data)

    def get_list_info(self, workspace: Workspace, spec: str) -> ListInfo:
        """Resolve a list of ``workspace`` by name, id, short id or uuid and load its fields."""
        for lst in workspace.lists:
            if lst.matches(spec):
                return ListInfo(list=lst, fields=self.get_list_elements(lst.id))
        raise ZenkitError(f"List '{spec}' not found in workspace '{workspace.name}'")

    # Entries
    def get_list_entries(self, list_id: Any, skip: int, limit: int, include_archived: bool = False) -> List[Entry]:
        """Fetch one page of entries, in the server's order."""
        path = f"/lists/{list_id}/entries/filter"
        body = {
            "limit": limit,
            "skip": skip,
            "allowDeprecated": include_archived,
        }
        data = self.post(path, body)
        if not isinstance(data, list):
            raise ZenkitError(f"Malformed entry page for list {list_id}")
        return self._parse(path, lambda d: [Entry.from_dict(e) for e in d], data)

    def get_entry(self, list_id: Any, spec: str) -> Entry:
        """Get an entry by its numeric id or uuid."""
        path = f"/lists/{list_id}/entries/{spec}"
        return self._parse(path, Entry.from_dict, self.get(path))

    def create_entry(self, list_id: Any, values: Dict[str, Any]) -> Entry:
        path = f"/lists/{list_id}/entries"
        return self._parse(path, Entry.from_dict, self.post(path, values))

    def update_entry(self, list_id: Any, entry_id: Any, values: Dict[str, Any]) -> Entry:
        path = f"/lists/{list_id}/entries/{entry_id}"
        return self._parse(path, Entry.from_dict, self.put(path, values))

    def add_comment(self, list_id: Any, entry_id: Any, message: str) -> Any:
        return self.post(
            f"/users/me/lists/{list_id}/entries/{entry_id}/activities",
            {"message": message},
        )

    # Webhooks
    def get_webhooks(self) -> List[Webhook]:
        path = "/users/me/webhooks"
        data = self.get(path) or []
        return self._parse(path, lambda d: [Webhook.from_dict(w) for w in d], data)

    def create_webhook(self, hook: Dict[str, Any]) -> Webhook:
        return self._parse("/webhooks", Webhook.from_dict, self.post("/webhooks", hook))

    def delete_webhook(self, webhook_id: int) -> Any:
        return self.delete(f"/webhooks/{webhook_id}")
