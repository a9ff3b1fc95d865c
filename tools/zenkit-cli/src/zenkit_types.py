"""
Record types for the Zenkit API.

Records are read-only snapshots of remote state. ``from_dict`` builds one from
the JSON the API returns and ``to_dict`` writes it back using the API's own
key names. Only ``Entry`` keeps attributes it does not model (in ``fields``),
so list and field snapshots drop anything not listed here.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Union


class ElementCategory(IntEnum):
    TEXT = 1
    NUMBER = 2
    URL = 3
    DATE = 4
    CHECKBOX = 5
    CATEGORIES = 6
    FORMULA = 7
    DATE_CREATED = 8
    DATE_UPDATED = 9
    DATE_DEPRECATED = 10
    USER_CREATED = 11
    USER_UPDATED = 12
    USER_DEPRECATED = 13
    PERSONS = 14
    FILES = 15
    REFERENCES = 16
    HIERARCHY = 17
    SUB_ENTRIES = 18
    DEPENDENCIES = 19


class TextFormat(str, Enum):
    PLAIN = "plain"
    MARKDOWN = "markdown"
    HTML = "html"


class WebhookTriggerType(IntEnum):
    ENTRY = 0
    ACTIVITY = 1
    NOTIFICATION = 2
    SYSTEM_MESSAGE = 3
    COMMENT = 4
    ELEMENT = 5


def _category(value: Any) -> Union[ElementCategory, int]:
    try:
        return ElementCategory(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class ListRecord:
    id: int
    uuid: str
    name: str
    short_id: Optional[str] = None
    description: Optional[str] = None
    workspace_id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    deprecated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ListRecord":
        return cls(
            id=data["id"],
            uuid=data["uuid"],
            name=data.get("name", ""),
            short_id=data.get("shortId"),
            description=data.get("description"),
            workspace_id=data.get("workspaceId"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            deprecated_at=data.get("deprecated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "shortId": self.short_id,
            "uuid": self.uuid,
            "name": self.name,
            "description": self.description,
            "workspaceId": self.workspace_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "deprecated_at": self.deprecated_at,
        }

    def matches(self, spec: str) -> bool:
        return spec in (self.name, self.uuid, str(self.id), self.short_id)


@dataclass(frozen=True)
class Workspace:
    id: int
    uuid: str
    name: str
    description: Optional[str] = None
    lists: List[ListRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Workspace":
        return cls(
            id=data["id"],
            uuid=data["uuid"],
            name=data.get("name", ""),
            description=data.get("description"),
            lists=[ListRecord.from_dict(l) for l in data.get("lists") or []],
        )


@dataclass(frozen=True)
class Field:
    """One element (column) of a list."""

    id: int
    uuid: str
    name: str
    category: Union[ElementCategory, int]
    element_data: Dict[str, Any] = field(default_factory=dict)
    is_primary: bool = False
    sort_order: Optional[float] = None
    visible: bool = True
    list_id: Optional[int] = None
    description: Optional[str] = None
    deprecated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Field":
        return cls(
            id=data["id"],
            uuid=data["uuid"],
            name=data.get("name", ""),
            category=_category(data.get("elementcategory")),
            element_data=data.get("elementData") or {},
            is_primary=bool(data.get("isPrimary", False)),
            sort_order=data.get("sortOrder"),
            visible=bool(data.get("visible", True)),
            list_id=data.get("listId"),
            description=data.get("description"),
            deprecated_at=data.get("deprecated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "uuid": self.uuid,
            "name": self.name,
            "description": self.description,
            "elementcategory": int(self.category) if self.category is not None else None,
            "elementData": self.element_data,
            "isPrimary": self.is_primary,
            "sortOrder": self.sort_order,
            "visible": self.visible,
            "listId": self.list_id,
            "deprecated_at": self.deprecated_at,
        }

    def matches(self, spec: str) -> bool:
        return spec in (self.name, self.uuid, str(self.id))

    @property
    def choices(self) -> List[Dict[str, Any]]:
        """Predefined categories of a choice field (empty for other fields)."""
        return list(self.element_data.get("predefinedCategories") or [])


# Entry keys modelled explicitly; everything else lands in Entry.fields.
_ENTRY_KEYS = {
    "id": "id",
    "uuid": "uuid",
    "shortId": "short_id",
    "listId": "list_id",
    "displayString": "display_string",
    "sortOrder": "sort_order",
    "created_at": "created_at",
    "updated_at": "updated_at",
    "deprecated_at": "deprecated_at",
}


@dataclass(frozen=True)
class Entry:
    """
    One list item.

    Field values (keyed ``<field-uuid>_<kind>``) and any attribute the API adds
    later are kept verbatim in ``fields`` so a backup writes back everything
    that was read.
    """

    id: int
    uuid: str
    short_id: Optional[str] = None
    list_id: Optional[int] = None
    display_string: str = ""
    sort_order: Optional[Any] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    deprecated_at: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        known = {attr: data.get(key) for key, attr in _ENTRY_KEYS.items() if key in data}
        extra = {k: v for k, v in data.items() if k not in _ENTRY_KEYS}
        if known.get("display_string") is None:
            known["display_string"] = ""
        return cls(fields=extra, **known)

    def to_dict(self) -> Dict[str, Any]:
        out = {key: getattr(self, attr) for key, attr in _ENTRY_KEYS.items()}
        out.update(self.fields)
        return out

    @property
    def is_archived(self) -> bool:
        return self.deprecated_at is not None


@dataclass(frozen=True)
class User:
    id: int
    uuid: str
    display_name: str = ""
    full_name: Optional[str] = None
    username: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            uuid=data["uuid"],
            display_name=data.get("displayname") or "",
            full_name=data.get("fullname"),
            username=data.get("username"),
        )


@dataclass(frozen=True)
class Webhook:
    id: int
    trigger_type: Union[WebhookTriggerType, int]
    url: str
    list_id: Optional[int] = None
    list_entry_id: Optional[int] = None
    workspace_id: Optional[int] = None
    element_id: Optional[int] = None
    locale: str = "en"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Webhook":
        trigger = data.get("triggerType")
        try:
            trigger = WebhookTriggerType(trigger)
        except ValueError:
            pass
        return cls(
            id=data["id"],
            trigger_type=trigger,
            url=data.get("url", ""),
            list_id=data.get("listId"),
            list_entry_id=data.get("listEntryId"),
            workspace_id=data.get("workspaceId"),
            element_id=data.get("elementId"),
            locale=data.get("locale") or "en",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "triggerType": int(self.trigger_type) if self.trigger_type is not None else None,
            "url": self.url,
            "listId": self.list_id,
            "listEntryId": self.list_entry_id,
            "workspaceId": self.workspace_id,
            "elementId": self.element_id,
            "locale": self.locale,
        }


@dataclass(frozen=True)
class ListInfo:
    """A resolved list together with its field schema."""

    list: ListRecord
    fields: List[Field]

    @property
    def id(self) -> int:
        return self.list.id

    @property
    def uuid(self) -> str:
        return self.list.uuid

    def find_field(self, spec: str) -> Optional[Field]:
        for f in self.fields:
            if f.matches(spec):
                return f
        return None


@dataclass(frozen=True)
class BackupItem:
    name: str
    uuid: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "uuid": self.uuid}


@dataclass(frozen=True)
class BackupSummary:
    workspace: str
    uuid: str
    tstamp: int
    lists: List[BackupItem]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workspace": self.workspace,
            "uuid": self.uuid,
            "tstamp": self.tstamp,
            "lists": [item.to_dict() for item in self.lists],
        }
