"""Dot-notation position paths ("1.2.3") to task uids and back."""

import re

from core.exceptions import AmbiguousReferenceError, InvalidPathError, TaskNotFoundError
from domain.entities.collection import Collection
from domain.entities.task import ROOT_SCOPE, Task

POSITION_PATH_RE = re.compile(r"^\d+(\.\d+)*$")


def is_position_path(reference: str) -> bool:
    """True when a reference looks like "1" or "1.2.3" rather than a short id."""
    return bool(POSITION_PATH_RE.match(reference.strip()))


def parse_path(path: str) -> list[int]:
    """Split a position path into positive integer segments.

    The empty string is the root scope and parses to ``[]``.
    """
    if path == "":
        return []

    segments: list[int] = []
    for raw in path.split("."):
        part = raw.strip()
        if not (part.isascii() and part.isdigit()):
            raise InvalidPathError(path, f"segment {raw!r} is not a positive integer")
        value = int(part)
        if value < 1:
            raise InvalidPathError(path, f"positions start at 1, got {value}")
        segments.append(value)
    return segments


def resolve(collection: Collection, path: str, scope: str = ROOT_SCOPE) -> str:
    """Resolve a position path relative to ``scope`` to a uid.

    Each segment picks the pending sibling holding that position; done
    siblings are skipped. The empty path resolves to ``scope`` itself, so
    the root scope comes back as ``ROOT_SCOPE``.
    """
    current = scope
    if current != ROOT_SCOPE and current not in collection:
        raise TaskNotFoundError(current)

    for depth, position in enumerate(parse_path(path), start=1):
        siblings = collection.pending_children_of(current)
        match = next((task for task in siblings if task.position == position), None)
        if match is None:
            walked = ".".join(path.split(".")[:depth])
            raise TaskNotFoundError(path, message=f"No task at position {walked}")
        current = match.uid
    return current


def position_path(collection: Collection, uid: str) -> str | None:
    """Build the position path of a task.

    Returns None when the task, or any of its ancestors, is done or
    detached, since such tasks have no position path.
    """
    task = collection.get(uid)
    segments: list[str] = []
    seen: set[str] = set()
    while task is not None:
        if task.is_done or task.position < 1 or task.uid in seen:
            return None
        seen.add(task.uid)
        segments.append(str(task.position))
        if task.is_root:
            return ".".join(reversed(segments))
        task = collection.get(task.parent_id)
    return None


def find_by_short_id(collection: Collection, prefix: str) -> Task:
    """Find the single task whose uid starts with ``prefix``."""
    needle = prefix.strip().lower()
    if not needle:
        raise TaskNotFoundError(prefix)

    matches = [task for task in collection if task.uid.lower().startswith(needle)]
    if not matches:
        raise TaskNotFoundError(prefix)
    if len(matches) > 1:
        raise AmbiguousReferenceError(prefix, len(matches))
    return matches[0]


def find_by_reference(collection: Collection, reference: str) -> Task:
    """Look a task up by position path or, failing the path syntax, short id."""
    if is_position_path(reference):
        return collection.require(resolve(collection, reference.strip()))
    return find_by_short_id(collection, reference)
