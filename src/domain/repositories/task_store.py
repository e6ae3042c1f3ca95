"""Task store protocol."""

from collections.abc import Callable
from pathlib import Path
from typing import Protocol, TypeVar

from domain.entities.collection import Collection

T = TypeVar("T")


class ITaskStore(Protocol):
    """Persistence interface for a whole task collection."""

    @property
    def path(self) -> Path:
        """Location the store persists to."""
        ...

    def exists(self) -> bool:
        """Check whether anything has been persisted yet."""
        ...

    def load(self) -> Collection:
        """Load the persisted collection (empty when nothing exists)."""
        ...

    def save(self, collection: Collection) -> None:
        """Replace the persisted collection atomically."""
        ...

    def update(self, mutator: Callable[[Collection], T]) -> T:
        """Run ``mutator`` on a copy and persist it only if it succeeds."""
        ...

    def init(self) -> bool:
        """Persist an empty collection unless one exists; True if created."""
        ...
