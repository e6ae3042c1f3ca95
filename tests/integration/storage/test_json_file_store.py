"""Integration tests for the atomic JSON file store."""

import json
from pathlib import Path

import pytest

from core.exceptions import InvalidOperationError, StorageIOError, StoreFormatError
from domain.entities.collection import Collection
from domain.entities.task import Task, TaskStatus
from infrastructure.storage.json_file_store import JSONFileStore


@pytest.fixture
def path(tmp_path: Path) -> Path:
    return tmp_path / ".todos.json"


@pytest.fixture
def store(path: Path, clock) -> JSONFileStore:
    return JSONFileStore(path, clock=clock)


def _add(collection: Collection, text: str) -> Task:
    return collection.add(Task(text=text, position=collection.next_position()))


class TestLoad:
    def test_missing_file_is_empty(self, store: JSONFileStore, path: Path) -> None:
        """A missing file loads as an empty collection and is not created."""
        assert len(store.load()) == 0
        assert not path.exists()

    def test_empty_file_is_empty(self, store: JSONFileStore, path: Path) -> None:
        path.write_text("  \n")

        assert len(store.load()) == 0

    def test_corrupt_file(self, store: JSONFileStore, path: Path) -> None:
        path.write_text("{not json")

        with pytest.raises(StoreFormatError) as exc_info:
            store.load()

        assert exc_info.value.path == path

    def test_unknown_layout(self, store: JSONFileStore, path: Path) -> None:
        path.write_text('{"something": "else"}')

        with pytest.raises(StoreFormatError):
            store.load()

    def test_invalid_record(self, store: JSONFileStore, path: Path) -> None:
        """A current-layout record failing validation is a format error."""
        path.write_text('{"version": 3, "items": [{"uid": "", "modified": "x"}]}')

        with pytest.raises(StoreFormatError):
            store.load()

    def test_duplicate_uids(self, store: JSONFileStore, path: Path) -> None:
        record = {"uid": "u1", "text": "t", "modified": "2024-01-01T00:00:00Z"}
        path.write_text(json.dumps({"version": 3, "items": [record, record]}))

        with pytest.raises(StoreFormatError, match="Duplicate task uid"):
            store.load()

    def test_unencodable_text(self, store: JSONFileStore, path: Path) -> None:
        """A lone surrogate escape in stored text is a format error, not a crash on save."""
        path.write_text(
            '{"version": 3, "items": [{"uid": "u1", "text": "bad \\ud800",'
            ' "modified": "2024-01-01T00:00:00Z"}]}'
        )

        with pytest.raises(StoreFormatError):
            store.load()

    def test_unencodable_text_in_legacy_layout(self, store: JSONFileStore, path: Path) -> None:
        path.write_text('[{"id": 1, "text": "bad \\udc80"}]')

        with pytest.raises(StoreFormatError):
            store.load()

        assert "udc80" in path.read_text()

    def test_unreadable_path(self, tmp_path: Path) -> None:
        """A directory at the target path surfaces as StorageIOError."""
        target = tmp_path / "dir.json"
        target.mkdir()

        with pytest.raises(StorageIOError) as exc_info:
            JSONFileStore(target).load()

        assert exc_info.value.path == target


class TestSave:
    def test_writes_current_layout(self, store: JSONFileStore, path: Path) -> None:
        collection = Collection()
        parent = _add(collection, "parent")
        collection.add(Task(text="child", parent_id=parent.uid, position=1))

        store.save(collection)

        document = json.loads(path.read_text())
        assert document["version"] == 3
        assert [item["text"] for item in document["items"]] == ["parent", "child"]
        assert document["items"][1]["parentId"] == parent.uid
        assert document["items"][0]["status"] == "pending"

    def test_round_trip(self, store: JSONFileStore) -> None:
        collection = Collection()
        task = _add(collection, "a")
        done = collection.add(Task(text="b", status=TaskStatus.DONE))

        store.save(collection)
        loaded = store.load()

        assert loaded.require(task.uid) == task
        assert loaded.require(done.uid).is_done

    def test_no_temp_files_left(self, store: JSONFileStore, tmp_path: Path) -> None:
        store.save(Collection())
        store.save(Collection())

        assert [p.name for p in tmp_path.iterdir()] == [".todos.json"]

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        store = JSONFileStore(tmp_path / "a" / "b" / "todos.json")

        store.save(Collection())

        assert store.exists()

    def test_failed_replace_keeps_old_file(
        self, store: JSONFileStore, path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """If the rename fails the original bytes survive and the temp file is removed."""
        collection = Collection()
        _add(collection, "original")
        store.save(collection)
        before = path.read_bytes()

        def broken_replace(src: str, dst: Path) -> None:
            raise OSError("disk full")

        monkeypatch.setattr("infrastructure.storage.json_file_store.os.replace", broken_replace)
        _add(collection, "new")

        with pytest.raises(StorageIOError):
            store.save(collection)

        assert path.read_bytes() == before
        assert [p.name for p in path.parent.iterdir()] == [path.name]

    def test_unencodable_text_is_format_error(
        self, store: JSONFileStore, path: Path, tmp_path: Path
    ) -> None:
        """Serialization failures keep the old file and leave no temp file behind."""
        collection = Collection()
        _add(collection, "keep")
        store.save(collection)
        before = path.read_bytes()
        collection.add(Task(text="bad \udc80", position=2))

        with pytest.raises(StoreFormatError) as exc_info:
            store.save(collection)

        assert exc_info.value.path == path
        assert path.read_bytes() == before
        assert [p.name for p in tmp_path.iterdir()] == [".todos.json"]

    def test_indent(self, path: Path) -> None:
        JSONFileStore(path, indent=0).save(Collection())

        assert "\n" not in path.read_text().strip()


class TestUpdate:
    def test_commits_on_success(self, store: JSONFileStore) -> None:
        result = store.update(lambda collection: _add(collection, "a").uid)

        assert store.load().require(result).text == "a"

    def test_rollback_leaves_bytes_identical(self, store: JSONFileStore, path: Path) -> None:
        """A failing mutator leaves the file byte-for-byte unchanged."""
        store.update(lambda collection: _add(collection, "keep"))
        before = path.read_bytes()

        def mutator(collection: Collection) -> None:
            _add(collection, "lost")
            for task in collection:
                task.text = "clobbered"
            raise InvalidOperationError("nope")

        with pytest.raises(InvalidOperationError):
            store.update(mutator)

        assert path.read_bytes() == before

    def test_rollback_on_missing_file_writes_nothing(
        self, store: JSONFileStore, path: Path
    ) -> None:
        def mutator(collection: Collection) -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError):
            store.update(mutator)

        assert not path.exists()


class TestInit:
    def test_creates_empty_file_once(self, store: JSONFileStore, path: Path) -> None:
        assert store.init() is True
        store.update(lambda collection: _add(collection, "a"))

        assert store.init() is False
        assert len(store.load()) == 1
