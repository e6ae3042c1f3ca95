"""Task collection: a flat uid registry with a derived tree view."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace

from core.exceptions import InvalidOperationError, TaskNotFoundError
from domain.entities.task import ROOT_SCOPE, Task, TaskStatus


def sibling_order_key(task: Task) -> tuple[int, int]:
    """Iteration order inside a scope.

    Ranked pending tasks first by position, then pending tasks still
    waiting for a position (reopened), then done tasks. Ties keep registry
    order because callers sort stably.
    """
    if task.is_done:
        return (2, 0)
    if task.position == 0:
        return (1, 0)
    return (0, task.position)


@dataclass
class TaskNode:
    """Materialized tree node used for listings."""

    task: Task
    children: list["TaskNode"] = field(default_factory=list)

    @property
    def uid(self) -> str:
        return self.task.uid

    @property
    def text(self) -> str:
        return self.task.text

    @property
    def status(self) -> TaskStatus:
        return self.task.status

    @property
    def position(self) -> int:
        return self.task.position

    def walk(self) -> Iterator["TaskNode"]:
        """Yield this node and its descendants, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


class Collection:
    """Ordered forest of tasks stored as a flat registry keyed by uid.

    The registry is the only mutable copy. Sibling groups, ancestry and
    the nested view are all derived from ``parent_id`` on demand.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: dict[str, Task] = {}
        for task in tasks:
            self.add(task)

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks.values()))

    def __contains__(self, uid: object) -> bool:
        return uid in self._tasks

    # -------------------- registry --------------------
    def get(self, uid: str) -> Task | None:
        return self._tasks.get(uid)

    def require(self, uid: str) -> Task:
        """Get a task by uid or raise TaskNotFoundError."""
        task = self._tasks.get(uid)
        if task is None:
            raise TaskNotFoundError(uid)
        return task

    def add(self, task: Task) -> Task:
        """Register a task. The uid must not already be taken."""
        if task.uid in self._tasks:
            raise InvalidOperationError(
                f"Duplicate task uid: {task.uid}", details={"uid": task.uid}
            )
        self._tasks[task.uid] = task
        return task

    def remove(self, uid: str) -> Task:
        """Drop a single record. Children are left in place as orphans."""
        try:
            return self._tasks.pop(uid)
        except KeyError:
            raise TaskNotFoundError(uid) from None

    # -------------------- hierarchy --------------------
    def children_of(self, parent_id: str = ROOT_SCOPE) -> list[Task]:
        """Direct children of a scope in iteration order."""
        children = [task for task in self._tasks.values() if task.parent_id == parent_id]
        return sorted(children, key=sibling_order_key)

    def pending_children_of(self, parent_id: str = ROOT_SCOPE) -> list[Task]:
        return [task for task in self.children_of(parent_id) if task.is_pending]

    def has_children(self, uid: str) -> bool:
        return any(task.parent_id == uid for task in self._tasks.values())

    def next_position(self, parent_id: str = ROOT_SCOPE) -> int:
        """Position the next pending task appended to a scope receives."""
        positions = [task.position for task in self.pending_children_of(parent_id)]
        return max(positions, default=0) + 1

    def parent_of(self, task: Task) -> Task | None:
        if task.is_root:
            return None
        return self._tasks.get(task.parent_id)

    def ancestors(self, uid: str) -> Iterator[Task]:
        """Walk parent references upwards, nearest first.

        Stops at the root, at a dangling reference, or when a uid repeats.
        """
        seen = {uid}
        current = self._tasks.get(uid)
        while current is not None and not current.is_root:
            parent = self._tasks.get(current.parent_id)
            if parent is None or parent.uid in seen:
                return
            seen.add(parent.uid)
            yield parent
            current = parent

    def descendants(self, uid: str) -> list[Task]:
        """All tasks below ``uid``, depth-first in iteration order."""
        result: list[Task] = []
        for child in self.children_of(uid):
            result.append(child)
            result.extend(self.descendants(child.uid))
        return result

    def walk(self, parent_id: str = ROOT_SCOPE) -> Iterator[Task]:
        """Every task reachable from a scope, depth-first in iteration order."""
        for child in self.children_of(parent_id):
            yield child
            yield from self.walk(child.uid)

    def scopes(self) -> list[str]:
        """Root scope plus every reachable task that has children."""
        return [ROOT_SCOPE] + [task.uid for task in self.walk() if self.has_children(task.uid)]

    def orphans(self) -> list[Task]:
        """Non-root tasks whose parent reference points at nothing."""
        return [
            task
            for task in self._tasks.values()
            if not task.is_root and task.parent_id not in self._tasks
        ]

    # -------------------- views --------------------
    def tree(self, parent_id: str = ROOT_SCOPE) -> list[TaskNode]:
        """Materialize the nested view of a scope.

        Nodes wrap copies, so callers may not mutate the registry through
        the view.
        """
        return [
            TaskNode(task=replace(child), children=self.tree(child.uid))
            for child in self.children_of(parent_id)
        ]

    def count(self) -> tuple[int, int]:
        """Return (total, done) over every reachable task."""
        total = done = 0
        for task in self.walk():
            total += 1
            if task.is_done:
                done += 1
        return total, done

    def clone(self) -> "Collection":
        """Deep copy used for transactional updates."""
        return Collection(replace(task) for task in self._tasks.values())
