"""Unit of Work over a task store."""

from typing import Any, Optional

import structlog

from domain.entities.collection import Collection
from domain.repositories.task_store import ITaskStore

logger = structlog.get_logger()


class StoreUnitOfWork:
    """Unit of Work implementation over any ``ITaskStore``.

    Entering loads a snapshot of the stored collection and hands out a
    private working copy of it. ``commit`` persists the copy; leaving the
    block with an exception rolls it back to the snapshot.
    """

    def __init__(self, store: ITaskStore) -> None:
        self.store = store
        self._snapshot: Optional[Collection] = None
        self._collection: Optional[Collection] = None

    @property
    def collection(self) -> Collection:
        """Get the working copy."""
        if self._collection is None:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._collection

    def commit(self) -> None:
        """Persist the working copy."""
        self.store.save(self.collection)
        self._snapshot = self.collection.clone()

    def rollback(self) -> None:
        """Discard changes made since entering or the last commit."""
        if self._snapshot is not None:
            self._collection = self._snapshot.clone()

    def __enter__(self) -> "StoreUnitOfWork":
        """Enter the context manager and load the working copy."""
        self._snapshot = self.store.load()
        self._collection = self._snapshot.clone()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Any,
    ) -> None:
        """Exit the context manager, rolling back on error."""
        if exc_type:
            self.rollback()
            logger.debug(
                "unit_of_work_rolled_back", path=str(self.store.path), error=str(exc_val)
            )
        self._snapshot = None
        self._collection = None
