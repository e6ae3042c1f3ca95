"""Composition root: wires settings, logging, storage and the task service."""

from collections.abc import Callable
from pathlib import Path

import structlog

from core.config import Settings, get_settings
from core.logging import setup_logging
from domain.services.task_service import TaskService
from infrastructure.storage.json_file_store import JSONFileStore
from infrastructure.storage.store_uow import StoreUnitOfWork

logger = structlog.get_logger()


def get_store(settings: Settings, path: Path | None = None) -> JSONFileStore:
    """Store bound to ``path``, or to the file the settings resolve to."""
    return JSONFileStore(path or settings.resolve_data_file(), indent=settings.json_indent)


def get_uow_factory(store: JSONFileStore) -> Callable[[], StoreUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> StoreUnitOfWork:
        return StoreUnitOfWork(store)

    return factory


def get_task_service(settings: Settings | None = None, path: Path | None = None) -> TaskService:
    """Build a ready task service.

    Logging is configured from the settings, and the collection file is
    ``path`` when given, otherwise the one ``Settings.resolve_data_file``
    finds.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, json=settings.log_json)

    store = get_store(settings, path)
    logger.debug("task_service_created", path=str(store.path))
    return TaskService(get_uow_factory(store), short_id_length=settings.short_id_length)
