#!/usr/bin/env python3
"""
zenkit-cli - command-line tool for the Zenkit API

Usage:
    zenkit [-c ENV_FILE] [-w WORKSPACE] [-f tsv|json|table] COMMAND [options]

Commands:
    workspaces, users, lists, items, fields, field, item, choices,
    set, create, comment, webhook, list-webhooks, delete-webhook, backup

Environment:
    ZENKIT_TOKEN      - Required: Zenkit API token
    ZENKIT_WORKSPACE  - Optional: default workspace (name, id or uuid)
    ZENKIT_ENDPOINT   - Optional: API base url
    AGENTS_ENV_PATH   - Optional: Path to env file (default: ~/AGENTS.env)
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

from tabulate import tabulate

from zenkit_api import ZenkitClient, ZenkitError
from zenkit_backup import BackupError, backup_workspace, fetch_all_entries
from zenkit_config import ConfigError, Settings, load_settings
from zenkit_types import (
    ElementCategory,
    Field,
    ListInfo,
    TextFormat,
    User,
    WebhookTriggerType,
)


class CommandError(Exception):
    """Bad command input (unknown field, invalid value, ...)."""


class FormattedText(NamedTuple):
    text: str
    format: TextFormat


FieldValue = Union[str, List[str], FormattedText]

WEBHOOK_TYPES = {
    "item": WebhookTriggerType.ENTRY,
    "activity": WebhookTriggerType.ACTIVITY,
    "notification": WebhookTriggerType.NOTIFICATION,
    "system": WebhookTriggerType.SYSTEM_MESSAGE,
    "comment": WebhookTriggerType.COMMENT,
    "field": WebhookTriggerType.ELEMENT,
}


# ─────────────────────────────────────────────────────────────────────────────
# Output
# ─────────────────────────────────────────────────────────────────────────────

def format_rows(rows: Sequence[Sequence[Any]], headers: Sequence[str], fmt: str = "tsv") -> str:
    """Format rows as tab-separated lines, a grid table, or a JSON array."""
    if fmt == "json":
        keys = [h.lower().replace(" ", "_") for h in headers]
        return json.dumps([dict(zip(keys, row)) for row in rows], indent=2, ensure_ascii=False)
    if fmt == "table":
        return tabulate(rows, headers=headers, tablefmt="grid")
    if not rows:
        return ""
    return tabulate(rows, tablefmt="tsv", stralign=None, numalign=None, disable_numparse=True)


def print_rows(rows: Sequence[Sequence[Any]], headers: Sequence[str], fmt: str) -> None:
    output = format_rows(rows, headers, fmt)
    if output:
        print(output)


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def deprecated_marker(deprecated_at: Optional[str]) -> str:
    return "(Deprecated)" if deprecated_at else ""


# ─────────────────────────────────────────────────────────────────────────────
# Values
# ─────────────────────────────────────────────────────────────────────────────

def parse_key_val(s: str) -> Tuple[str, str]:
    """Parse a ``key=value`` token."""
    key, sep, value = s.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"invalid KEY=value: no `=` found in `{s}`")
    return key, value


def parse_setval(s: str) -> FieldValue:
    """
    Interpret a value given on the command line.

    ``[a,b]`` is a list of strings; ``plain::``, ``markdown::`` and ``html::``
    prefixes give formatted text; anything else is a plain string.
    """
    if s.startswith("[") and s.endswith("]"):
        return s[1:-1].split(",")
    for fmt in TextFormat:
        prefix = f"{fmt.value}::"
        if s.startswith(prefix):
            return FormattedText(s[len(prefix):], fmt)
    return s


def _as_list(value: FieldValue) -> List[str]:
    if isinstance(value, FormattedText):
        return [value.text]
    if isinstance(value, list):
        return [v.strip() for v in value if v.strip()]
    return [value]


def _as_text(value: FieldValue) -> str:
    if isinstance(value, FormattedText):
        return value.text
    if isinstance(value, list):
        return ",".join(value)
    return value


def resolve_choice_ids(field: Field, names: List[str]) -> List[int]:
    """Map choice names (case-sensitive) or ids to category ids."""
    ids: List[int] = []
    for name in names:
        match = None
        for c in field.choices:
            if str(c.get("id")) == name or c.get("name") == name:
                match = c
                break
        if match is None:
            available = ", ".join(str(c.get("name")) for c in field.choices)
            raise CommandError(f"Choice '{name}' not valid for field '{field.name}'. Available: {available}")
        ids.append(match["id"])
    return ids


def resolve_person_ids(users: List[User], specs: List[str]) -> List[int]:
    """Map user uuids or display names (case-insensitive) to user ids."""
    ids: List[int] = []
    for spec in specs:
        wanted = spec.lower()
        match = None
        for u in users:
            if u.uuid == spec or u.display_name.lower() == wanted:
                match = u
                break
        if match is None:
            raise CommandError(f"No user matched: {spec}")
        ids.append(match.id)
    return ids


def field_value(
    field: Field,
    value: FieldValue,
    text_format: Optional[TextFormat] = None,
    users: Optional[List[User]] = None,
) -> Dict[str, Any]:
    """Build the entry attributes that set ``field`` to ``value``."""
    key = field.uuid
    category = field.category
    if category == ElementCategory.TEXT:
        out: Dict[str, Any] = {f"{key}_text": _as_text(value)}
        if isinstance(value, FormattedText):
            text_format = value.format
        if text_format is not None:
            out[f"{key}_textType"] = text_format.value
        return out
    if category == ElementCategory.NUMBER:
        try:
            return {f"{key}_number": float(_as_text(value))}
        except ValueError:
            raise CommandError(f"Field '{field.name}' needs a number, got '{_as_text(value)}'")
    if category == ElementCategory.URL:
        return {f"{key}_link": _as_text(value)}
    if category == ElementCategory.DATE:
        return {f"{key}_date": _as_text(value)}
    if category == ElementCategory.CHECKBOX:
        return {f"{key}_checked": _as_text(value).strip().lower() in ("true", "yes", "1", "on")}
    if category == ElementCategory.CATEGORIES:
        return {f"{key}_categories": resolve_choice_ids(field, _as_list(value))}
    if category == ElementCategory.PERSONS:
        return {f"{key}_persons": resolve_person_ids(users or [], _as_list(value))}
    if category == ElementCategory.REFERENCES:
        return {f"{key}_references": _as_list(value)}
    raise CommandError(f"Field '{field.name}' (category {field.to_dict()['elementcategory']}) cannot be set from the command line")


def require_field(info: ListInfo, spec: str) -> Field:
    field = info.find_field(spec)
    if field is None:
        raise CommandError(f"Field '{spec}' not found in list '{info.list.name}'")
    return field


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────

def _list_info(client: ZenkitClient, settings: Settings, list_spec: str) -> ListInfo:
    ws = client.get_workspace(settings.workspace)
    return client.get_list_info(ws, list_spec)


def cmd_workspaces(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    """Show all workspaces and their lists."""
    workspaces = client.get_all_workspaces_and_lists()
    if args.format == "json":
        print_json([
            {
                "id": ws.id,
                "uuid": ws.uuid,
                "name": ws.name,
                "lists": [l.to_dict() for l in ws.lists],
            }
            for ws in workspaces
        ])
        return 0
    rows: List[List[Any]] = []
    for ws in workspaces:
        rows.append(["W", ws.id, ws.uuid, ws.name, ""])
        for l in ws.lists:
            rows.append(["L", l.id, l.uuid, l.name, deprecated_marker(l.deprecated_at)])
    print_rows(rows, ["Kind", "ID", "UUID", "Name", "Status"], args.format)
    return 0


def cmd_users(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    ws = client.get_workspace(settings.workspace)
    rows = [[u.id, u.uuid, u.display_name] for u in client.get_users(ws.id)]
    print_rows(rows, ["ID", "UUID", "Name"], args.format)
    return 0


def cmd_lists(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    ws = client.get_workspace(settings.workspace)
    rows = [[l.id, l.uuid, l.name, deprecated_marker(l.deprecated_at)] for l in ws.lists]
    print_rows(rows, ["ID", "UUID", "Name", "Status"], args.format)
    return 0


def cmd_items(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    info = _list_info(client, settings, args.list)
    entries = fetch_all_entries(client.get_list_entries, info.id, args.include_archived)
    rows = [[e.id, e.uuid, e.display_string] for e in entries]
    print_rows(rows, ["ID", "UUID", "Name"], args.format)
    return 0


def cmd_fields(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    info = _list_info(client, settings, args.list)
    rows = [[f.id, f.uuid, f.name, int(f.category) if f.category is not None else ""] for f in info.fields]
    print_rows(rows, ["ID", "UUID", "Name", "Category"], args.format)
    return 0


def cmd_field(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    """Describe one field of a list."""
    info = _list_info(client, settings, args.list)
    field = info.find_field(args.field)
    if field is None:
        print(f"Field '{args.field}' not found")
        return 0
    print_json(field.to_dict())
    return 0


def cmd_choices(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    """Show the predefined choices of a category field."""
    info = _list_info(client, settings, args.list)
    field = info.find_field(args.field)
    if field is None:
        print(f"Field '{args.field}' not found")
    elif field.category != ElementCategory.CATEGORIES:
        print(f"Field '{args.field}' is not a choice field")
    else:
        rows = [[c.get("id"), c.get("name")] for c in field.choices]
        print_rows(rows, ["ID", "Name"], args.format)
    return 0


def cmd_item(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    info = _list_info(client, settings, args.list)
    print_json(client.get_entry(info.id, args.item).to_dict())
    return 0


def cmd_set(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    """Replace the value of one field of an item."""
    if args.value is not None:
        raw = args.value
    else:
        logging.info("Reading value from file %s", args.file)
        with open(args.file, "r", encoding="utf-8") as f:
            raw = f.read()
    text_format = TextFormat(args.text) if args.text else None

    ws = client.get_workspace(settings.workspace)
    info = client.get_list_info(ws, args.list)
    field = require_field(info, args.field)
    users = client.get_users(ws.id) if field.category == ElementCategory.PERSONS else None
    body = field_value(field, raw, text_format, users)
    body["updateAction"] = "replace"
    client.update_entry(info.id, args.item, body)
    return 0


def cmd_create(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    """Create a list item from field=value pairs."""
    ws = client.get_workspace(settings.workspace)
    info = client.get_list_info(ws, args.list)
    users: Optional[List[User]] = None
    body: Dict[str, Any] = {}
    for name, raw in args.fields or []:
        field = require_field(info, name)
        if field.category == ElementCategory.PERSONS and users is None:
            users = client.get_users(ws.id)
        body.update(field_value(field, parse_setval(raw), users=users))
    entry = client.create_entry(info.id, body)
    print_json(entry.to_dict())
    return 0


def cmd_comment(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    info = _list_info(client, settings, args.list)
    client.add_comment(info.id, args.item, args.comment)
    return 0


def cmd_webhook(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    """Register a webhook on the workspace, a list, an item or a field."""
    ws = client.get_workspace(settings.workspace)
    list_id = item_id = field_id = None
    workspace_id = ws.id if args.workspace_scope else None
    if args.list:
        info = client.get_list_info(ws, args.list)
        list_id = info.id
        if args.item:
            item_id = client.get_entry(info.id, args.item).id
        if args.field:
            field_id = require_field(info, args.field).id
    elif args.item:
        raise CommandError("If you use item id, you must also specify list id")
    else:
        workspace_id = ws.id

    hook = {
        "triggerType": int(WEBHOOK_TYPES[args.type]),
        "url": args.url,
        "listId": list_id,
        "listEntryId": item_id,
        "workspaceId": workspace_id,
        "elementId": field_id,
        "locale": args.locale,
    }
    print_json(client.create_webhook(hook).to_dict())
    return 0


def cmd_list_webhooks(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    print_json([w.to_dict() for w in client.get_webhooks()])
    return 0


def cmd_delete_webhook(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    print_json(client.delete_webhook(args.webhook))
    return 0


def cmd_backup(client: ZenkitClient, settings: Settings, args: argparse.Namespace) -> int:
    """Back up one list or every list of the workspace to JSON files."""
    ws = client.get_workspace(settings.workspace)
    summary, path = backup_workspace(
        client,
        ws,
        args.output,
        list_spec=args.list,
        include_archived=args.include_archived,
    )
    logging.info("Backed up %d list(s) from '%s'", len(summary.lists), summary.workspace)
    print(path)
    return 0


# ─────────────────────────────────────────────────────────────────────────────
# Parser
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    p = argparse.ArgumentParser(
        prog="zenkit",
        description="Zenkit command-line tool. The API token is read from ZENKIT_TOKEN, "
        "in the environment or in the env file given with -c.",
    )
    p.add_argument("-c", "--config", help="Path to env file (default $AGENTS_ENV_PATH or ~/AGENTS.env)")
    p.add_argument("-w", "--workspace", help="Workspace name, id, or uuid; else ZENKIT_WORKSPACE")
    p.add_argument(
        "-f", "--format",
        choices=["tsv", "json", "table"],
        default="tsv",
        help="Output format for listings (default: tsv)",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")

    sp = p.add_subparsers(dest="cmd", required=True)

    pw = sp.add_parser("workspaces", help="Show all workspaces and lists")
    pw.set_defaults(func=cmd_workspaces, needs_workspace=False)

    pu = sp.add_parser("users", help="Show users in workspace")
    pu.set_defaults(func=cmd_users, needs_workspace=True)

    pl = sp.add_parser("lists", help="Show lists in workspace")
    pl.set_defaults(func=cmd_lists, needs_workspace=True)

    pi = sp.add_parser("items", aliases=["list"], help="Show items in list")
    pi.add_argument("-l", "--list", required=True, help="List name or id")
    pi.add_argument("--include-archived", action="store_true", help="Include archived items")
    pi.set_defaults(func=cmd_items, needs_workspace=True)

    pf = sp.add_parser("fields", help="Show fields for a list")
    pf.add_argument("-l", "--list", required=True, help="List name or id")
    pf.set_defaults(func=cmd_fields, needs_workspace=True)

    pfd = sp.add_parser("field", help="Describe field of a list (detail view)")
    pfd.add_argument("-l", "--list", required=True, help="List name or id")
    pfd.add_argument("-f", "--field", required=True, help="Field id or name")
    pfd.set_defaults(func=cmd_field, needs_workspace=True)

    pit = sp.add_parser("item", help="Describe a list item (detail view)")
    pit.add_argument("-l", "--list", required=True, help="List name or id")
    pit.add_argument("-i", "--item", required=True, help="Item id (integer) or uuid")
    pit.set_defaults(func=cmd_item, needs_workspace=True)

    pch = sp.add_parser("choices", help="Show choices for a category field")
    pch.add_argument("-l", "--list", required=True, help="List name or id")
    pch.add_argument("-f", "--field", required=True, help="Field id or name")
    pch.set_defaults(func=cmd_choices, needs_workspace=True)

    pset = sp.add_parser("set", help="Set field value")
    pset.add_argument("-l", "--list", required=True, help="List name or id")
    pset.add_argument("-i", "--item", required=True, type=int, help="Item id to modify")
    pset.add_argument("-f", "--field", required=True, help="Field name or id")
    src = pset.add_mutually_exclusive_group(required=True)
    src.add_argument(
        "-v", "--value",
        help="Value. Item references must be uuids; persons may be uuid or display name "
        "(case-insensitive); choices may be id or name (case-sensitive)",
    )
    src.add_argument("-F", "--file", help="Read value from file (Text fields only)")
    pset.add_argument(
        "-t", "--text",
        choices=[f.value for f in TextFormat],
        help="Text format; if unspecified, leave as-is (Text fields only)",
    )
    pset.set_defaults(func=cmd_set, needs_workspace=True)

    pcr = sp.add_parser("create", help="Create new list item")
    pcr.add_argument("-l", "--list", required=True, help="List name or id")
    pcr.add_argument(
        "-F", dest="fields", action="append", type=parse_key_val, metavar="FIELD=VALUE",
        help="Field value; repeat for more fields. Field names are case-sensitive",
    )
    pcr.set_defaults(func=cmd_create, needs_workspace=True)

    pcm = sp.add_parser("comment", help="Add comment to list item")
    pcm.add_argument("-l", "--list", required=True, help="List name or id")
    pcm.add_argument("-i", "--item", required=True, help="Item id or uuid")
    pcm.add_argument("-c", "--comment", required=True, help="Comment")
    pcm.set_defaults(func=cmd_comment, needs_workspace=True)

    pwh = sp.add_parser("webhook", aliases=["new-webhook"], help="Add a webhook")
    pwh.add_argument("-t", "--type", required=True, choices=sorted(WEBHOOK_TYPES), help="Webhook trigger type")
    pwh.add_argument("-u", "--url", required=True, help="Server url")
    pwh.add_argument("-l", "--list", help="List id to restrict webhook to this list")
    pwh.add_argument("-i", "--item", help="Item id to restrict webhook to this item")
    pwh.add_argument("-f", "--field", help="Field id to restrict webhook to this field")
    pwh.add_argument("--locale", default="en", help="Locale")
    pwh.add_argument("-w", "--workspace", dest="workspace_scope", action="store_true", help="Limit to the workspace")
    pwh.set_defaults(func=cmd_webhook, needs_workspace=True)

    plw = sp.add_parser("list-webhooks", help="List webhooks")
    plw.set_defaults(func=cmd_list_webhooks, needs_workspace=False)

    pdw = sp.add_parser("delete-webhook", help="Delete webhook")
    pdw.add_argument("-W", "--webhook", required=True, type=int, help="Webhook id")
    pdw.set_defaults(func=cmd_delete_webhook, needs_workspace=False)

    pb = sp.add_parser("backup", help="Backup lists to json files")
    pb.add_argument("-o", "--output", required=True, help="Output folder where json files will be created")
    pb.add_argument("-l", "--list", help="Backup single list. If not specified, backs up all lists")
    pb.add_argument("--include-archived", action="store_true", help="Include archived items")
    pb.set_defaults(func=cmd_backup, needs_workspace=True)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s: %(message)s")
    try:
        settings = load_settings(args.config, args.workspace, require_workspace=args.needs_workspace)
        client = ZenkitClient(settings.token, settings.endpoint, settings.timeout)
        return args.func(client, settings, args)
    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except (ConfigError, ZenkitError, BackupError, CommandError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
