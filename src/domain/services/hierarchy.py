"""Reparenting (move) and sibling exchange (swap)."""

from dataclasses import dataclass

import structlog

from core.exceptions import CircularReferenceError, InvalidOperationError
from domain.entities.collection import Collection
from domain.entities.task import ROOT_SCOPE, Clock, Task, utc_now
from domain.services.position_resolver import position_path, resolve
from domain.services.reorder import renumber_scope

logger = structlog.get_logger()


@dataclass
class MoveOutcome:
    """Where a moved task was and where it ended up."""

    task: Task
    old_path: str
    new_path: str
    old_parent_id: str
    new_parent_id: str


def would_create_cycle(collection: Collection, uid: str, new_parent_id: str) -> bool:
    """Check if putting ``uid`` under ``new_parent_id`` would create a cycle.

    True when the destination is the task itself or one of its descendants.
    """
    if new_parent_id == ROOT_SCOPE:
        return False
    if new_parent_id == uid:
        return True
    return any(ancestor.uid == uid for ancestor in collection.ancestors(new_parent_id))


def move(
    collection: Collection,
    source_path: str,
    dest_scope_path: str,
    clock: Clock = utc_now,
) -> MoveOutcome:
    """Move the task at ``source_path`` to the end of ``dest_scope_path``.

    An empty destination is the root scope. Both sibling groups are
    renumbered, and the new path is read back afterwards. Moving never
    completes the old parent, even when every child left behind is done;
    only a status change runs bottom-up completion.
    """
    uid = resolve(collection, source_path)
    dest_id = resolve(collection, dest_scope_path)
    task = collection.require(uid)

    if would_create_cycle(collection, uid, dest_id):
        raise CircularReferenceError()

    old_parent_id = task.parent_id
    old_path = position_path(collection, uid) or source_path

    task.position = collection.next_position(dest_id)
    task.parent_id = dest_id
    task.modified = clock()

    renumber_scope(collection, old_parent_id)
    if dest_id != old_parent_id:
        renumber_scope(collection, dest_id)

    new_path = position_path(collection, uid)
    if new_path is None:
        raise InvalidOperationError(
            "Moved task has no position path", details={"uid": uid, "parent_id": dest_id}
        )

    logger.debug(
        "task_moved",
        uid=uid,
        old_path=old_path,
        new_path=new_path,
        old_parent_id=old_parent_id,
        new_parent_id=dest_id,
    )
    return MoveOutcome(
        task=task,
        old_path=old_path,
        new_path=new_path,
        old_parent_id=old_parent_id,
        new_parent_id=dest_id,
    )


def swap(
    collection: Collection,
    path_a: str,
    path_b: str,
    clock: Clock = utc_now,
) -> tuple[Task, Task]:
    """Exchange the positions of two pending siblings.

    This is the flat addressing mode: no reparenting happens, so no cycle
    check is needed. Swapping a task with itself is a no-op.
    """
    task_a = collection.require(resolve(collection, path_a))
    task_b = collection.require(resolve(collection, path_b))

    if task_a.parent_id != task_b.parent_id:
        raise InvalidOperationError(
            "Only tasks in the same scope can be swapped",
            details={"paths": [path_a, path_b]},
        )
    if task_a.uid == task_b.uid:
        return task_a, task_b

    task_a.position, task_b.position = task_b.position, task_a.position
    now = clock()
    task_a.modified = now
    task_b.modified = now
    renumber_scope(collection, task_a.parent_id)

    logger.debug("tasks_swapped", first=task_a.uid, second=task_b.uid)
    return task_a, task_b
