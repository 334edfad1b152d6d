# file: tests/test_selection.py

import pytest

from oggscope.services.inspect.selection import SelectionCursor


class TestSelectionCursor:

    def test_starts_unselected(self):
        cursor = SelectionCursor.with_items(["a", "b", "c"])
        assert cursor.selected is None
        assert cursor.current() is None

    def test_next_wraps(self):
        cursor = SelectionCursor.with_items(["a", "b", "c"])
        seen = []
        for _ in range(4):
            cursor = cursor.next()
            seen.append(cursor.current())
        assert seen == ["a", "b", "c", "a"]

    def test_previous_wraps(self):
        cursor = SelectionCursor.with_items(["a", "b", "c"]).previous()
        assert cursor.current() == "a"
        cursor = cursor.previous()
        assert cursor.current() == "c"
        assert cursor.previous().current() == "b"

    def test_unselect(self):
        cursor = SelectionCursor.with_items(["a", "b"]).next().unselect()
        assert cursor.current() is None

    def test_moves_return_new_cursors(self):
        cursor = SelectionCursor.with_items(["a", "b"])
        moved = cursor.next()
        assert cursor.selected is None
        assert moved.selected == 0
        assert moved.items is cursor.items

    def test_empty(self):
        cursor = SelectionCursor.with_items([])
        assert cursor.next().current() is None
        assert cursor.previous().current() is None

    def test_select(self):
        cursor = SelectionCursor.with_items(["a", "b", "c"]).select(2)
        assert cursor.current() == "c"
        with pytest.raises(IndexError):
            cursor.select(3)
