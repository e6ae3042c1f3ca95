"""Atomic JSON file store for a task collection."""

import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import structlog
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from core.exceptions import InvalidOperationError, StorageIOError, StoreFormatError
from domain.entities.collection import Collection
from domain.entities.task import Clock, utc_now
from infrastructure.storage.migrations import upgrade
from infrastructure.storage.schemas import TaskDocument

logger = structlog.get_logger()

T = TypeVar("T")


class JSONFileStore:
    """Store bound to one JSON file.

    Saves go through a temporary file in the target directory followed by
    ``os.replace``, so the canonical path never holds a partial document.
    Older layouts are upgraded on load and written back straight away.
    """

    def __init__(self, path: Path | str, indent: int = 2, clock: Clock = utc_now) -> None:
        self._path = Path(path)
        self._indent = indent
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> Collection:
        """Read the collection, treating a missing file as empty."""
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            logger.debug("store_loaded", path=str(self._path), tasks=0, missing=True)
            return Collection()
        except OSError as e:
            raise StorageIOError(self._path, "read", e) from e

        try:
            document, migrated_from = upgrade(raw, self._clock)
            collection = document.to_collection()
        except (ValueError, ValidationError, InvalidOperationError) as e:
            raise StoreFormatError(self._path, getattr(e, "message", str(e))) from e

        if migrated_from is not None:
            self.save(collection)
            logger.info(
                "store_migrated",
                path=str(self._path),
                source_layout=migrated_from,
                tasks=len(collection),
            )

        logger.debug("store_loaded", path=str(self._path), tasks=len(collection))
        return collection

    def save(self, collection: Collection) -> None:
        """Replace the file contents atomically."""
        try:
            payload = TaskDocument.from_collection(collection).model_dump_json(
                by_alias=True, indent=self._indent or None
            )
        except (ValidationError, PydanticSerializationError) as e:
            raise StoreFormatError(self._path, f"cannot serialize collection: {e}") from e

        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.write("\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as e:
            raise StorageIOError(self._path, "write", e) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug("store_saved", path=str(self._path), tasks=len(collection))

    def update(self, mutator: Callable[[Collection], T]) -> T:
        """Run ``mutator`` on a copy of the stored collection.

        The copy is saved only when the mutator returns normally; any
        exception leaves the file untouched and is re-raised.
        """
        working = self.load().clone()
        try:
            result = mutator(working)
        except Exception as e:
            logger.debug("store_update_rolled_back", path=str(self._path), error=str(e))
            raise
        self.save(working)
        return result

    def init(self) -> bool:
        """Create an empty collection file unless one exists.

        Returns True when a file was created.
        """
        if self.exists():
            return False
        self.save(Collection())
        return True
