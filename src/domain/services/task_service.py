"""Task service layer: every collection operation runs inside a unit of work."""

import functools
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import ParamSpec, TypeVar

import structlog

from core.exceptions import AppException, EmptyInputError, InvalidTextError
from domain.entities.collection import Collection, TaskNode
from domain.entities.task import (
    ROOT_SCOPE,
    SHORT_ID_LENGTH,
    Clock,
    Task,
    TaskStatus,
    utc_now,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services import hierarchy
from domain.services.outline_parser import OutlineItem, parse_outline
from domain.services.position_resolver import find_by_reference, position_path, resolve
from domain.services.propagation import View, apply_status, list_view
from domain.services.reorder import renumber_scope, reorder_all

logger = structlog.get_logger()

P = ParamSpec("P")
R = TypeVar("R")


# -------------------- results --------------------
@dataclass
class AddResult:
    task: Task
    path: str | None
    created: list[Task] = field(default_factory=list)


@dataclass
class StatusResult:
    task: Task
    old_status: TaskStatus
    new_status: TaskStatus
    old_path: str | None
    new_path: str | None
    auto_completed: list[Task] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.old_status is not self.new_status


@dataclass
class ModifyResult:
    task: Task
    path: str | None
    old_text: str


@dataclass
class MoveResult:
    task: Task
    old_path: str
    new_path: str


@dataclass
class SwapResult:
    first: Task
    second: Task
    first_path: str | None
    second_path: str | None


@dataclass
class CleanResult:
    """Tasks removed by a clean, depth-first, and the pending tasks left."""

    removed: list[Task]
    active_count: int

    @property
    def removed_count(self) -> int:
        return len(self.removed)


@dataclass
class ReorderResult:
    changed: int


@dataclass
class ListResult:
    """A filtered forest plus counts over the unfiltered collection."""

    view: View
    tasks: list[TaskNode]
    total_count: int
    done_count: int


@dataclass
class SearchMatch:
    task: Task
    path: str | None
    short_id: str


@dataclass
class SearchResult:
    query: str
    matches: list[SearchMatch]


def _logs_failures(method: Callable[P, R]) -> Callable[P, R]:
    """Log application errors once at the service boundary, then re-raise."""

    @functools.wraps(method)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return method(*args, **kwargs)
        except AppException as e:
            logger.warning(
                "task_operation_failed",
                operation=method.__name__,
                error_code=e.error_code,
                message=e.message,
                details=e.details,
            )
            raise

    return wrapper


def _require_text(text: str, field: str = "text") -> str:
    """Return ``text`` stripped, rejecting blank or unencodable input."""
    stripped = text.strip()
    if not stripped:
        raise EmptyInputError(field)
    try:
        stripped.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidTextError(field) from None
    return stripped


def _path_sort_key(path: str | None) -> tuple[int, tuple[int, ...]]:
    if path is None:
        return (1, ())
    return (0, tuple(int(part) for part in path.split(".")))


class TaskService:
    """Service layer for task collection business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Clock = utc_now,
        short_id_length: int = SHORT_ID_LENGTH,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._short_id_length = short_id_length

    # -------------------- mutations --------------------
    @_logs_failures
    def add(self, text: str, parent_path: str = "") -> AddResult:
        """Append a task to the scope at ``parent_path``.

        Multi-line outline text creates the whole nested batch at once;
        ``task`` is then the first top-level item.
        """
        stripped = _require_text(text)
        if "\n" in stripped:
            items = parse_outline(text)
        else:
            items = [OutlineItem(text=stripped)]

        with self._uow_factory() as uow:
            collection = uow.collection
            parent_id = resolve(collection, parent_path)
            created: list[Task] = []
            self._add_items(collection, items, parent_id, created)
            uow.commit()

            first = created[0]
            path = position_path(collection, first.uid)
            logger.info(
                "task_added",
                uid=first.uid,
                path=path,
                parent_id=parent_id,
                created=len(created),
            )
            return AddResult(
                task=replace(first),
                path=path,
                created=[replace(task) for task in created],
            )

    def _add_items(
        self,
        collection: Collection,
        items: list[OutlineItem],
        parent_id: str,
        created: list[Task],
    ) -> None:
        for item in items:
            task = Task(
                text=item.text,
                parent_id=parent_id,
                position=collection.next_position(parent_id),
                modified=self._clock(),
            )
            collection.add(task)
            created.append(task)
            self._add_items(collection, item.children, task.uid, created)
        renumber_scope(collection, parent_id)

    @_logs_failures
    def complete(self, reference: str) -> StatusResult:
        """Mark a task done; ancestors whose children are all done follow."""
        return self._set_status(reference, TaskStatus.DONE)

    @_logs_failures
    def reopen(self, reference: str) -> StatusResult:
        """Mark a task pending again. Never cascades."""
        return self._set_status(reference, TaskStatus.PENDING)

    def _set_status(self, reference: str, status: TaskStatus) -> StatusResult:
        with self._uow_factory() as uow:
            collection = uow.collection
            task = find_by_reference(collection, reference)
            old_status = task.status
            old_path = position_path(collection, task.uid)

            auto_completed = apply_status(collection, task, status, self._clock)
            if old_status is not task.status:
                uow.commit()

            new_path = position_path(collection, task.uid)
            event = "task_completed" if status is TaskStatus.DONE else "task_reopened"
            logger.info(
                event,
                uid=task.uid,
                old_path=old_path,
                new_path=new_path,
                changed=old_status is not task.status,
                auto_completed=[parent.uid for parent in auto_completed],
            )
            return StatusResult(
                task=replace(task),
                old_status=old_status,
                new_status=task.status,
                old_path=old_path,
                new_path=new_path,
                auto_completed=[replace(parent) for parent in auto_completed],
            )

    @_logs_failures
    def modify(self, reference: str, text: str) -> ModifyResult:
        """Replace a task's text; its position is untouched."""
        new_text = _require_text(text)

        with self._uow_factory() as uow:
            collection = uow.collection
            task = find_by_reference(collection, reference)
            old_text = task.text
            task.rename(new_text, self._clock)
            uow.commit()

            path = position_path(collection, task.uid)
            logger.info("task_modified", uid=task.uid, path=path)
            return ModifyResult(task=replace(task), path=path, old_text=old_text)

    @_logs_failures
    def move(self, source_path: str, dest_scope_path: str = "") -> MoveResult:
        """Reparent the task at ``source_path`` under ``dest_scope_path``."""
        with self._uow_factory() as uow:
            outcome = hierarchy.move(uow.collection, source_path, dest_scope_path, self._clock)
            uow.commit()
            return MoveResult(
                task=replace(outcome.task),
                old_path=outcome.old_path,
                new_path=outcome.new_path,
            )

    @_logs_failures
    def swap(self, path_a: str, path_b: str) -> SwapResult:
        """Exchange the positions of two pending siblings."""
        with self._uow_factory() as uow:
            collection = uow.collection
            first, second = hierarchy.swap(collection, path_a, path_b, self._clock)
            uow.commit()
            return SwapResult(
                first=replace(first),
                second=replace(second),
                first_path=position_path(collection, first.uid),
                second_path=position_path(collection, second.uid),
            )

    @_logs_failures
    def clean(self) -> CleanResult:
        """Remove done tasks with their whole subtrees, plus orphaned records.

        Every removed record is reported, so ``removed_count`` counts
        descendants as well as the done tasks themselves.
        """
        with self._uow_factory() as uow:
            collection = uow.collection
            removed = self._collect_removable(collection)

            touched_scopes: set[str] = set()
            for task in removed:
                collection.remove(task.uid)
                touched_scopes.add(task.parent_id)
            for scope in touched_scopes:
                if scope == ROOT_SCOPE or scope in collection:
                    renumber_scope(collection, scope)

            if removed:
                uow.commit()

            total, done = collection.count()
            logger.info("tasks_cleaned", removed=len(removed), active=total - done)
            return CleanResult(removed=removed, active_count=total - done)

    @staticmethod
    def _collect_removable(collection: Collection) -> list[Task]:
        removed: list[Task] = []
        seen: set[str] = set()

        def take(task: Task) -> None:
            for doomed in (task, *collection.descendants(task.uid)):
                if doomed.uid not in seen:
                    seen.add(doomed.uid)
                    removed.append(doomed)

        for task in collection.walk():
            if task.is_done and task.uid not in seen:
                take(task)
        for orphan in collection.orphans():
            take(orphan)
        return removed

    @_logs_failures
    def reorder(self) -> ReorderResult:
        """Renumber every scope of the forest."""
        with self._uow_factory() as uow:
            changed = reorder_all(uow.collection)
            if changed:
                uow.commit()
            return ReorderResult(changed=changed)

    # -------------------- queries --------------------
    @_logs_failures
    def list_tasks(self, view: View | str = View.ACTIVE) -> ListResult:
        """Filtered forest for rendering; counts ignore the filter."""
        view = View(view)
        with self._uow_factory() as uow:
            collection = uow.collection
            total, done = collection.count()
            return ListResult(
                view=view,
                tasks=list_view(collection, view),
                total_count=total,
                done_count=done,
            )

    @_logs_failures
    def search(self, query: str, case_sensitive: bool = False) -> SearchResult:
        """Substring search over every task, ordered by position path.

        Tasks without a path (done, or below a done ancestor) come last.
        """
        _require_text(query, "query")

        needle = query if case_sensitive else query.lower()
        with self._uow_factory() as uow:
            collection = uow.collection
            matches: list[SearchMatch] = []
            for task in collection.walk():
                haystack = task.text if case_sensitive else task.text.lower()
                if needle in haystack:
                    matches.append(
                        SearchMatch(
                            task=replace(task),
                            path=position_path(collection, task.uid),
                            short_id=task.short_id_of(self._short_id_length),
                        )
                    )
            matches.sort(key=lambda match: _path_sort_key(match.path))
            return SearchResult(query=query, matches=matches)

    @_logs_failures
    def find(self, reference: str) -> Task:
        """Look a task up by position path or short id."""
        with self._uow_factory() as uow:
            return replace(find_by_reference(uow.collection, reference))

    # -------------------- storage --------------------
    def data_path(self) -> Path:
        """Path of the collection file the service is bound to."""
        return self._uow_factory().store.path

    @_logs_failures
    def init(self) -> Path:
        """Create an empty collection file if none exists yet."""
        store = self._uow_factory().store
        if store.init():
            logger.info("store_initialized", path=str(store.path))
        return store.path
