"""
Shared fixtures for zenkit-cli tests.

Run with: python -m pytest tools/zenkit-cli/tests -v
"""

import os
import sys
from typing import Dict, List, Optional
from unittest.mock import patch

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from zenkit_api import ZenkitError
from zenkit_types import Entry, Field, ListInfo, ListRecord, Workspace

ZENKIT_VARS = ("ZENKIT_TOKEN", "ZENKIT_API_TOKEN", "ZENKIT_WORKSPACE", "ZENKIT_ENDPOINT", "ZENKIT_TIMEOUT")


def make_entry(n: int, list_id: int = 1, **extra) -> Entry:
    data = {
        "id": n,
        "uuid": f"entry-{list_id}-{n}",
        "shortId": f"s{n}",
        "listId": list_id,
        "displayString": f"Entry {n}",
        "sortOrder": n,
        "created_at": "2021-01-01T00:00:00.000Z",
        "updated_at": "2021-01-02T00:00:00.000Z",
        "deprecated_at": None,
    }
    data.update(extra)
    return Entry.from_dict(data)


def make_list(list_id: int, name: str, uuid: str) -> ListRecord:
    return ListRecord(id=list_id, uuid=uuid, name=name, short_id=f"L{list_id}", workspace_id=10)


def make_fields(list_id: int) -> List[Field]:
    return [
        Field.from_dict({
            "id": list_id * 100 + 1,
            "uuid": f"field-{list_id}-title",
            "name": "Title",
            "elementcategory": 1,
            "isPrimary": True,
            "listId": list_id,
        }),
        Field.from_dict({
            "id": list_id * 100 + 2,
            "uuid": f"field-{list_id}-status",
            "name": "Status",
            "elementcategory": 6,
            "elementData": {"predefinedCategories": [{"id": 7, "name": "Open"}, {"id": 8, "name": "Done"}]},
            "listId": list_id,
        }),
    ]


class FakeZenkit:
    """In-memory stand-in for ZenkitClient, serving entries in pages."""

    def __init__(self, lists: List[ListRecord], entries: Dict[int, List[Entry]], fail_list: Optional[int] = None):
        self.workspace = Workspace(id=10, uuid="ws-uuid", name="Team", lists=lists)
        self.entries = entries
        self.fail_list = fail_list
        self.calls: List[tuple] = []
        self.list_specs: List[str] = []

    def get_workspace(self, spec: str) -> Workspace:
        if spec not in (self.workspace.name, self.workspace.uuid, str(self.workspace.id)):
            raise ZenkitError(f"Workspace '{spec}' not found")
        return self.workspace

    def get_list_info(self, workspace: Workspace, spec: str) -> ListInfo:
        self.list_specs.append(spec)
        for lst in workspace.lists:
            if lst.matches(spec):
                return ListInfo(list=lst, fields=make_fields(lst.id))
        raise ZenkitError(f"List '{spec}' not found")

    def get_list_entries(self, list_id, skip, limit, include_archived=False) -> List[Entry]:
        self.calls.append((list_id, skip, limit, include_archived))
        if list_id == self.fail_list:
            raise ZenkitError("API error: Too Many Requests", status=429)
        return self.entries.get(list_id, [])[skip:skip + limit]


@pytest.fixture
def tasks_and_notes() -> FakeZenkit:
    lists = [make_list(1, "Tasks", "tasks-uuid"), make_list(2, "Notes", "notes-uuid")]
    return FakeZenkit(lists, {1: [make_entry(n, 1) for n in range(1, 4)], 2: []})


@pytest.fixture
def clean_env(tmp_path):
    """Environment without Zenkit settings and without a default env file."""
    with patch.dict(os.environ, {"AGENTS_ENV_PATH": str(tmp_path / "missing.env")}):
        for key in ZENKIT_VARS:
            os.environ.pop(key, None)
        yield
