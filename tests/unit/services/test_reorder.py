"""Unit tests for sibling renumbering."""

from domain.entities.task import ROOT_SCOPE, Task, TaskStatus
from domain.services.reorder import renumber, renumber_scope, reorder_all
from tests.unit.conftest import assert_dense, by_text, make_collection, node


def _positions(tasks: list[Task]) -> list[tuple[str, int]]:
    return [(task.text, task.position) for task in tasks]


class TestRenumber:
    def test_closes_gaps(self) -> None:
        """Positions 2, 5, 9 become 1, 2, 3 in the same order."""
        siblings = [
            Task(text="c", position=9),
            Task(text="a", position=2),
            Task(text="b", position=5),
        ]

        changed = renumber(siblings)

        assert _positions(siblings) == [("a", 1), ("b", 2), ("c", 3)]
        assert changed == 3

    def test_reopened_goes_last_among_pending(self) -> None:
        """A pending task at position 0 is placed after the ranked ones."""
        siblings = [
            Task(text="reopened", position=0),
            Task(text="first", position=1),
            Task(text="second", position=2),
        ]

        renumber(siblings)

        assert _positions(siblings) == [("first", 1), ("second", 2), ("reopened", 3)]

    def test_done_last_with_zero(self) -> None:
        """Done tasks follow the pending ones and keep position 0."""
        done = Task(text="done", status=TaskStatus.DONE)
        siblings = [done, Task(text="a", position=3)]

        renumber(siblings)

        assert siblings[-1] is done
        assert _positions(siblings) == [("a", 1), ("done", 0)]

    def test_ties_keep_relative_order(self) -> None:
        """Duplicate positions are resolved by prior order."""
        siblings = [Task(text="x", position=1), Task(text="y", position=1)]

        renumber(siblings)

        assert _positions(siblings) == [("x", 1), ("y", 2)]

    def test_idempotent(self) -> None:
        """A second run changes nothing."""
        siblings = [
            Task(text="a", position=4),
            Task(text="b", position=0),
            Task(text="c", status=TaskStatus.DONE),
        ]
        renumber(siblings)
        snapshot = _positions(siblings)

        assert renumber(siblings) == 0
        assert _positions(siblings) == snapshot


class TestReorderAll:
    def test_recurses_into_every_scope(self) -> None:
        """Nested scopes are renumbered, not only the root."""
        collection = make_collection(node("a", node("a1"), node("a2", node("deep"))), node("b"))
        by_text(collection, "a1").position = 7
        by_text(collection, "a2").position = 3
        by_text(collection, "deep").position = 5
        by_text(collection, "b").position = 10

        changed = reorder_all(collection)

        assert changed == 4
        assert by_text(collection, "a2").position == 1
        assert by_text(collection, "a1").position == 2
        assert by_text(collection, "deep").position == 1
        assert_dense(collection)

    def test_renumber_scope_only_touches_one_scope(self) -> None:
        """renumber_scope leaves other scopes alone."""
        collection = make_collection(node("a", node("a1")), node("b"))
        by_text(collection, "a1").position = 4
        by_text(collection, "b").position = 6

        renumber_scope(collection, ROOT_SCOPE)

        assert by_text(collection, "b").position == 2
        assert by_text(collection, "a1").position == 4
