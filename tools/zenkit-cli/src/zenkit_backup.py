"""
Backup of Zenkit lists to JSON files.

For each list three files are written to the output directory, all named
after the list uuid:

    <uuid>_list.json    list metadata
    <uuid>_fields.json  field definitions
    <uuid>_items.json   every entry of the list

A run over one or more lists ends with ``summary_<tstamp>.json`` naming the
workspace and the lists that were saved.

The files hold the records as re-serialized by ``zenkit_types``, not the raw
server responses. List and field attributes that are not modelled there are
dropped; entries keep unknown attributes in their catch-all ``fields``.
"""

import json
import logging
import os
import time
from typing import Any, Callable, List, Optional, Tuple

from zenkit_api import ZenkitError
from zenkit_types import BackupItem, BackupSummary, Entry, Workspace

# entries requested per call
PAGE_SIZE = 500

FetchPage = Callable[[Any, int, int, bool], List[Entry]]


class BackupError(Exception):
    """An artifact could not be encoded as JSON."""


def fetch_all_entries(
    fetch: FetchPage,
    list_id: Any,
    include_archived: bool = False,
    page_size: int = PAGE_SIZE,
) -> List[Entry]:
    """
    Read every entry of a list, one page at a time.

    ``fetch(list_id, skip, limit, include_archived)`` returns one page. Only an
    empty page ends the loop; a short page just moves the offset forward by
    the number of entries it held.
    """
    all_items: List[Entry] = []
    skip = 0
    while True:
        try:
            batch = fetch(list_id, skip, page_size, include_archived)
        except ZenkitError:
            logging.error("Error getting items from list %s (start=%d)", list_id, skip)
            raise
        if not batch:
            break
        skip += len(batch)
        all_items.extend(batch)
        logging.debug("list %s: %d entries so far", list_id, skip)
    return all_items


def _encode(data: Any, what: str) -> str:
    try:
        return json.dumps(data, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise BackupError(f"Error creating json output for {what}: {e}") from e


def _write(path: str, text: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def artifact_paths(output_dir: str, list_uuid: str) -> Tuple[str, str, str]:
    """Paths of the list, fields and items files for one list."""
    return (
        os.path.join(output_dir, f"{list_uuid}_list.json"),
        os.path.join(output_dir, f"{list_uuid}_fields.json"),
        os.path.join(output_dir, f"{list_uuid}_items.json"),
    )


def backup_list(
    client,
    workspace: Workspace,
    list_spec: str,
    output_dir: str,
    include_archived: bool = False,
    page_size: int = PAGE_SIZE,
) -> BackupItem:
    """Save one list (metadata, fields and all entries) of ``workspace`` to ``output_dir``."""
    try:
        info = client.get_list_info(workspace, list_spec)
    except ZenkitError as e:
        raise ZenkitError(f"Error loading list {list_spec}: {e}", status=e.status) from e

    logging.info("Backing up list '%s' (%s)", info.list.name, info.uuid)
    entries = fetch_all_entries(client.get_list_entries, info.id, include_archived, page_size)

    # nothing is written until all three artifacts are encoded
    list_data = _encode(info.list.to_dict(), f"list {info.uuid}")
    fields_data = _encode([f.to_dict() for f in info.fields], f"fields of {info.uuid}")
    items_data = _encode([e.to_dict() for e in entries], f"items of {info.uuid}")

    list_path, fields_path, items_path = artifact_paths(output_dir, info.uuid)
    _write(list_path, list_data)
    _write(fields_path, fields_data)
    _write(items_path, items_data)
    logging.info("  %d fields, %d items", len(info.fields), len(entries))

    return BackupItem(name=info.list.name, uuid=info.uuid)


def now_millis() -> int:
    """Milliseconds since the Unix epoch, 0 if the clock is set before it."""
    millis = int(time.time() * 1000)
    return millis if millis >= 0 else 0


def backup_workspace(
    client,
    workspace: Workspace,
    output_dir: str,
    list_spec: Optional[str] = None,
    include_archived: bool = False,
    page_size: int = PAGE_SIZE,
) -> Tuple[BackupSummary, str]:
    """
    Back up one list, or every list of the workspace, then write the summary.

    Lists are saved in workspace order. The first failure stops the run and no
    summary is written. Returns the summary and the path it was written to.
    """
    if list_spec is not None:
        selected = [list_spec]
    else:
        selected = [lst.uuid for lst in workspace.lists]

    items: List[BackupItem] = []
    for spec in selected:
        items.append(backup_list(client, workspace, spec, output_dir, include_archived, page_size))

    tstamp = now_millis()
    summary = BackupSummary(workspace=workspace.name, uuid=workspace.uuid, tstamp=tstamp, lists=items)
    summary_path = os.path.join(output_dir, f"summary_{tstamp}.json")
    try:
        summary_data = json.dumps(summary.to_dict(), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise BackupError(f"Error generating summary: {e}") from e
    _write(summary_path, summary_data)
    logging.info("Wrote %s (%d lists)", summary_path, len(items))
    return summary, summary_path
