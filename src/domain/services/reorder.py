"""Position maintenance for sibling groups."""

import structlog

from domain.entities.collection import Collection
from domain.entities.task import ROOT_SCOPE, Task

logger = structlog.get_logger()


def renumber(siblings: list[Task]) -> int:
    """Restore the position invariant of one sibling group in place.

    Ranked pending tasks keep their relative order (stable sort on the old
    position), reopened tasks (pending with position 0) follow them in
    their prior order, and done tasks go last with position 0. Positions
    1..N are then assigned to the pending part. Idempotent.

    Returns the number of tasks whose position changed.
    """
    ranked = [task for task in siblings if task.is_pending and task.position != 0]
    reopened = [task for task in siblings if task.is_pending and task.position == 0]
    done = [task for task in siblings if task.is_done]

    ranked.sort(key=lambda task: task.position)
    active = ranked + reopened

    changed = 0
    for position, task in enumerate(active, start=1):
        if task.position != position:
            task.position = position
            changed += 1
    for task in done:
        if task.position != 0:
            task.position = 0
            changed += 1

    siblings[:] = active + done
    return changed


def renumber_scope(collection: Collection, parent_id: str = ROOT_SCOPE) -> int:
    """Renumber the children of one scope."""
    return renumber(collection.children_of(parent_id))


def reorder_all(collection: Collection) -> int:
    """Renumber every scope of the forest, root first."""
    scopes = collection.scopes()
    changed = 0
    for scope in scopes:
        changed += renumber_scope(collection, scope)
    logger.debug("tasks_reordered", scopes=len(scopes), changed=changed)
    return changed
