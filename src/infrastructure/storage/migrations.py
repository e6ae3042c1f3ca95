"""Upgrade any known collection file layout to the current one.

Each layout is one row of ``MIGRATIONS``: a fingerprint over the decoded
JSON and a converter producing ``TaskDocument``. Rows are tried in order
and the first match wins.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from domain.entities.collection import Collection
from domain.entities.task import ROOT_SCOPE, Clock, Task, TaskStatus, new_uid, utc_now
from domain.services.reorder import reorder_all
from infrastructure.storage.schemas import (
    CURRENT_VERSION,
    NestedDocument,
    NestedTaskRecord,
    NumberedTaskRecord,
    RegistryDocument,
    TaskDocument,
)


@dataclass(frozen=True)
class Migration:
    """One row of the decision table."""

    name: str
    matches: Callable[[Any], bool]
    convert: Callable[[Any, Clock], TaskDocument]


def _status_of(status: str | None, statuses: dict[str, str] | None = None) -> TaskStatus:
    value = status or (statuses or {}).get("completion") or TaskStatus.PENDING
    return TaskStatus.DONE if value == TaskStatus.DONE else TaskStatus.PENDING


def _normalized(tasks: list[Task]) -> TaskDocument:
    """Build a collection from converted tasks and restore the position invariant."""
    collection = Collection()
    for task in tasks:
        if task.uid in collection:
            raise ValueError(f"duplicate task id {task.uid!r}")
        collection.add(task)
    reorder_all(collection)
    return TaskDocument.from_collection(collection)


# -------------------- fingerprints --------------------
def _is_current(data: Any) -> bool:
    return isinstance(data, dict) and "items" in data and data.get("version") == CURRENT_VERSION


def _is_registry(data: Any) -> bool:
    return isinstance(data, dict) and "items" in data and "version" not in data


def _is_wrapped_tree(data: Any) -> bool:
    return isinstance(data, dict) and "todos" in data


def _is_bare_tree(data: Any) -> bool:
    return isinstance(data, list) and all(
        isinstance(entry, dict) and ("items" in entry or isinstance(entry.get("id"), str))
        for entry in data
    )


def _is_numbered(data: Any) -> bool:
    return isinstance(data, list) and all(
        isinstance(entry, dict)
        and isinstance(entry.get("id"), int)
        and not isinstance(entry.get("id"), bool)
        for entry in data
    )


# -------------------- converters --------------------
def _from_current(data: Any, clock: Clock) -> TaskDocument:
    return TaskDocument.model_validate(data)


def _from_registry(data: Any, clock: Clock) -> TaskDocument:
    document = RegistryDocument.model_validate(data)
    return _normalized(
        [
            Task(
                uid=record.uid,
                parent_id=record.parent_id,
                text=record.text,
                status=_status_of(None, record.statuses),
                modified=record.modified or clock(),
            )
            for record in document.items
        ]
    )


def _flatten(records: list[NestedTaskRecord], parent_id: str, clock: Clock) -> list[Task]:
    tasks: list[Task] = []
    for record in records:
        task = Task(
            uid=record.id or new_uid(),
            parent_id=parent_id,
            position=record.position,
            text=record.text,
            status=_status_of(record.status, record.statuses),
            modified=record.modified or clock(),
        )
        tasks.append(task)
        tasks.extend(_flatten(record.items or [], task.uid, clock))
    return tasks


def _from_wrapped_tree(data: Any, clock: Clock) -> TaskDocument:
    document = NestedDocument.model_validate(data)
    return _normalized(_flatten(document.todos, ROOT_SCOPE, clock))


def _from_bare_tree(data: Any, clock: Clock) -> TaskDocument:
    document = NestedDocument.model_validate({"todos": data})
    return _normalized(_flatten(document.todos, ROOT_SCOPE, clock))


def _from_numbered(data: Any, clock: Clock) -> TaskDocument:
    records = [NumberedTaskRecord.model_validate(entry) for entry in data]
    return _normalized(
        [
            Task(
                text=record.text,
                position=record.id,
                status=_status_of(record.status),
                modified=record.modified or clock(),
            )
            for record in records
        ]
    )


REPAIRED_POSITIONS = "current-repaired"

MIGRATIONS: tuple[Migration, ...] = (
    Migration("current", _is_current, _from_current),
    Migration("flat-registry", _is_registry, _from_registry),
    Migration("wrapped-tree", _is_wrapped_tree, _from_wrapped_tree),
    Migration("bare-tree", _is_bare_tree, _from_bare_tree),
    Migration("numbered", _is_numbered, _from_numbered),
)


def _repaired(document: TaskDocument) -> tuple[TaskDocument, str | None]:
    """Renumber a current document whose sibling positions are not dense."""
    collection = document.to_collection()
    if reorder_all(collection) == 0:
        return document, None
    return TaskDocument.from_collection(collection), REPAIRED_POSITIONS


def upgrade(raw: bytes, clock: Clock = utc_now) -> tuple[TaskDocument, str | None]:
    """Decode a collection file into the current layout.

    Returns the document and the name of the layout it was converted
    from, or None when it was already current (or empty). A current
    document with gaps or duplicates among sibling positions is
    renumbered and reported as ``REPAIRED_POSITIONS``. Raises
    ValueError when the content is not JSON or matches no layout.
    """
    if not raw.strip():
        return TaskDocument(), None

    data = json.loads(raw)
    for migration in MIGRATIONS:
        if migration.matches(data):
            document = migration.convert(data, clock)
            if migration.name == "current":
                return _repaired(document)
            return document, migration.name

    raise ValueError("content matches no known collection layout")
