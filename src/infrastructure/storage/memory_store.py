"""In-process store, for tests and embedders that manage persistence themselves."""

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TypeVar

import structlog

from domain.entities.collection import Collection
from domain.entities.task import Task

logger = structlog.get_logger()

T = TypeVar("T")


class MemoryStore:
    """Keeps the collection in memory with the same copy-on-update semantics."""

    def __init__(self, tasks: Iterable[Task] = (), path: Path | str = ":memory:") -> None:
        tasks = list(tasks)
        self._collection: Collection | None = Collection(tasks) if tasks else None
        self._path = Path(path)
        self.save_count = 0

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._collection is not None

    def load(self) -> Collection:
        if self._collection is None:
            return Collection()
        return self._collection.clone()

    def save(self, collection: Collection) -> None:
        self._collection = collection.clone()
        self.save_count += 1

    def update(self, mutator: Callable[[Collection], T]) -> T:
        working = self.load()
        try:
            result = mutator(working)
        except Exception as e:
            logger.debug("store_update_rolled_back", path=str(self._path), error=str(e))
            raise
        self.save(working)
        return result

    def init(self) -> bool:
        if self.exists():
            return False
        self.save(Collection())
        return True
