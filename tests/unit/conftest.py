"""Shared fixtures for unit tests."""

from typing import Any

import pytest

from domain.entities.collection import Collection
from domain.entities.task import ROOT_SCOPE, Task, TaskStatus, new_uid
from infrastructure.storage.memory_store import MemoryStore


class FakeUnitOfWork:
    """Fake Unit of Work over an in-memory store, recording commits."""

    def __init__(self, store: MemoryStore | None = None) -> None:
        self.store = store or MemoryStore()
        self.collection = Collection()
        self.commits = 0
        self.rolled_back = False

    @property
    def committed(self) -> bool:
        return self.commits > 0

    def commit(self) -> None:
        self.store.save(self.collection)
        self.commits += 1

    def rollback(self) -> None:
        self.rolled_back = True

    def __enter__(self) -> "FakeUnitOfWork":
        self.collection = self.store.load()
        return self

    def __exit__(self, exc_type: Any, *args: Any) -> None:
        if exc_type:
            self.rollback()


def node(text: str, *children: dict[str, Any], done: bool = False, uid: str | None = None) -> dict:
    """Describe one task for ``make_collection``."""
    return {"text": text, "done": done, "uid": uid, "children": list(children)}


def make_collection(*nodes: dict[str, Any]) -> Collection:
    """Build a collection from ``node`` descriptions, positions already dense."""
    collection = Collection()
    _add_nodes(collection, nodes, ROOT_SCOPE)
    return collection


def _add_nodes(collection: Collection, nodes: tuple | list, parent_id: str) -> None:
    position = 0
    for spec in nodes:
        if not spec["done"]:
            position += 1
        task = Task(
            text=spec["text"],
            uid=spec["uid"] or new_uid(),
            parent_id=parent_id,
            position=0 if spec["done"] else position,
            status=TaskStatus.DONE if spec["done"] else TaskStatus.PENDING,
        )
        collection.add(task)
        _add_nodes(collection, spec["children"], task.uid)


def by_text(collection: Collection, text: str) -> Task:
    """The single task with ``text``."""
    matches = [task for task in collection if task.text == text]
    assert len(matches) == 1, f"expected one task named {text!r}, got {len(matches)}"
    return matches[0]


def assert_dense(collection: Collection) -> None:
    """Every scope holds positions 1..N for pending tasks and 0 for done ones."""
    scopes = {ROOT_SCOPE} | {task.parent_id for task in collection}
    for scope in scopes:
        siblings = [task for task in collection if task.parent_id == scope]
        pending = sorted(task.position for task in siblings if task.is_pending)
        assert pending == list(range(1, len(pending) + 1)), (scope, pending)
        assert all(task.position == 0 for task in siblings if task.is_done)


@pytest.fixture
def store() -> MemoryStore:
    """An empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def uow(store: MemoryStore) -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork(store)
