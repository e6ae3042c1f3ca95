"""Status propagation.

Two independent rules:

* Display suppression (downward): in the active and done views a done
  task is emitted as a leaf, whatever its children look like. The "all"
  view returns the literal tree.
* Bottom-up completion (upward): once every child of a task is done the
  task is marked done too, repeating up the ancestor chain. Reopening is
  always local.
"""

from collections.abc import Callable
from dataclasses import replace
from enum import StrEnum

import structlog

from domain.entities.collection import Collection, TaskNode
from domain.entities.task import ROOT_SCOPE, Clock, Task, TaskStatus, utc_now
from domain.services.reorder import renumber_scope

logger = structlog.get_logger()


class View(StrEnum):
    """Which part of the forest a listing shows."""

    ACTIVE = "active"
    DONE = "done"
    ALL = "all"


def filter_tree(
    collection: Collection,
    predicate: Callable[[Task], bool],
    parent_id: str = ROOT_SCOPE,
) -> list[TaskNode]:
    """Filter a scope recursively, never descending below a done task."""
    nodes: list[TaskNode] = []
    for child in collection.children_of(parent_id):
        if not predicate(child):
            continue
        node = TaskNode(task=replace(child))
        if child.is_pending:
            node.children = filter_tree(collection, predicate, child.uid)
        nodes.append(node)
    return nodes


def list_active(collection: Collection) -> list[TaskNode]:
    return filter_tree(collection, lambda task: task.is_pending)


def list_archived(collection: Collection) -> list[TaskNode]:
    return filter_tree(collection, lambda task: task.is_done)


def list_all(collection: Collection) -> list[TaskNode]:
    return collection.tree()


def list_view(collection: Collection, view: View | str = View.ACTIVE) -> list[TaskNode]:
    """Dispatch to the listing for ``view``."""
    view = View(view)
    if view is View.DONE:
        return list_archived(collection)
    if view is View.ALL:
        return list_all(collection)
    return list_active(collection)


def complete_ancestors(collection: Collection, task: Task, clock: Clock = utc_now) -> list[Task]:
    """Auto-complete ancestors whose children are now all done.

    Walks upwards from ``task`` and stops at the first ancestor that still
    has a pending child. Returns the ancestors that changed, nearest first.
    """
    completed: list[Task] = []
    for parent in collection.ancestors(task.uid):
        children = collection.children_of(parent.uid)
        if not children or any(child.is_pending for child in children):
            break
        if parent.complete(clock):
            renumber_scope(collection, parent.parent_id)
            completed.append(parent)
            logger.debug("task_auto_completed", uid=parent.uid, child_count=len(children))
    return completed


def apply_status(
    collection: Collection,
    task: Task,
    status: TaskStatus,
    clock: Clock = utc_now,
) -> list[Task]:
    """Set a task's status and run the side effects.

    The task's sibling group is renumbered. Completing a task also runs
    bottom-up completion; the auto-completed ancestors are returned.
    """
    if not task.set_status(status, clock):
        return []
    renumber_scope(collection, task.parent_id)
    if task.is_done:
        return complete_ancestors(collection, task, clock)
    return []
