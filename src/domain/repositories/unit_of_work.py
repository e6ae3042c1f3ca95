"""Unit of Work protocol."""

from typing import Protocol

from domain.entities.collection import Collection
from domain.repositories.task_store import ITaskStore


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    store: ITaskStore
    collection: Collection

    def commit(self) -> None:
        """Persist the working copy."""
        ...

    def rollback(self) -> None:
        """Discard the working copy."""
        ...

    def __enter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
