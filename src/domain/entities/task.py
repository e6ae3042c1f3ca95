"""Task domain entity."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4

Clock = Callable[[], datetime]

ROOT_SCOPE = ""
SHORT_ID_LENGTH = 7


def utc_now() -> datetime:
    """Default clock for task timestamps."""
    return datetime.now(UTC)


def new_uid() -> str:
    """Generate a process-wide unique task identifier."""
    return str(uuid4())


class TaskStatus(StrEnum):
    """Completion state of a task."""

    PENDING = "pending"
    DONE = "done"


@dataclass
class Task:
    """Domain entity for a single task.

    ``parent_id`` is a lookup key into the owning collection, empty for
    root tasks. ``position`` is the 1-based rank among pending siblings and
    is always 0 once the task is done.
    """

    text: str
    uid: str = field(default_factory=new_uid)
    parent_id: str = ROOT_SCOPE
    position: int = 0
    status: TaskStatus = TaskStatus.PENDING
    modified: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        """Normalise status and hold the done-position invariant."""
        self.status = TaskStatus(self.status)
        if self.status is TaskStatus.DONE:
            self.position = 0

    @property
    def is_done(self) -> bool:
        return self.status is TaskStatus.DONE

    @property
    def is_pending(self) -> bool:
        return self.status is TaskStatus.PENDING

    @property
    def is_root(self) -> bool:
        return self.parent_id == ROOT_SCOPE

    @property
    def short_id(self) -> str:
        """First characters of the uid, used to address done tasks."""
        return self.short_id_of(SHORT_ID_LENGTH)

    def short_id_of(self, length: int) -> str:
        return self.uid[:length]

    def set_status(self, status: TaskStatus, clock: Clock = utc_now) -> bool:
        """Change status, returning whether anything changed.

        Becoming done clears the position. A reopened task keeps position
        0 until its sibling group is renumbered, which places it last.
        """
        status = TaskStatus(status)
        if status is self.status:
            return False
        self.status = status
        if status is TaskStatus.DONE:
            self.position = 0
        self.modified = clock()
        return True

    def complete(self, clock: Clock = utc_now) -> bool:
        """Mark the task as done."""
        return self.set_status(TaskStatus.DONE, clock)

    def reopen(self, clock: Clock = utc_now) -> bool:
        """Mark the task as pending."""
        return self.set_status(TaskStatus.PENDING, clock)

    def rename(self, text: str, clock: Clock = utc_now) -> None:
        """Replace the task text."""
        self.text = text
        self.modified = clock()
