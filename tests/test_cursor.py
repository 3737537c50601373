"""Tests for the selection cursor."""

from auox.state.cursor import SelectionCursor


class TestSelectionCursor:
    """Tests for SelectionCursor."""

    def test_empty_cursor_has_no_selection(self):
        """Test an empty list has no selected index."""
        cursor = SelectionCursor()
        assert cursor.index is None
        assert cursor.length == 0

    def test_non_empty_cursor_starts_at_top(self):
        """Test the first item is selected by default."""
        assert SelectionCursor(3).index == 0

    def test_initial_index_is_clamped(self):
        """Test an out of range initial index is clamped."""
        assert SelectionCursor(3, index=10).index == 2
        assert SelectionCursor(3, index=-4).index == 0

    def test_next_wraps_to_top(self):
        """Test moving past the last item wraps to the first."""
        cursor = SelectionCursor(3, index=2)
        cursor.next()
        assert cursor.index == 0

    def test_previous_wraps_to_bottom(self):
        """Test moving before the first item wraps to the last."""
        cursor = SelectionCursor(3)
        cursor.previous()
        assert cursor.index == 2

    def test_full_cycle_returns_to_start(self):
        """Test n moves in either direction come back to the start."""
        for length in range(1, 6):
            for start in range(length):
                cursor = SelectionCursor(length, index=start)
                for _ in range(length):
                    cursor.next()
                assert cursor.index == start
                for _ in range(length):
                    cursor.previous()
                assert cursor.index == start

    def test_next_then_previous_is_identity(self):
        """Test next and previous undo each other."""
        cursor = SelectionCursor(4, index=1)
        cursor.next()
        cursor.previous()
        assert cursor.index == 1

    def test_single_item_stays_put(self):
        """Test a one item list always selects that item."""
        cursor = SelectionCursor(1)
        cursor.next()
        assert cursor.index == 0
        cursor.previous()
        assert cursor.index == 0

    def test_moves_on_empty_list_are_noops(self):
        """Test moving on an empty list does nothing."""
        cursor = SelectionCursor()
        cursor.next()
        cursor.previous()
        cursor.select(3)
        assert cursor.index is None

    def test_resize_shrink_clamps(self):
        """Test shrinking the list keeps the index in range."""
        cursor = SelectionCursor(5, index=4)
        cursor.resize(2)
        assert cursor.index == 1

    def test_resize_grow_keeps_selection(self):
        """Test growing the list keeps the selected index."""
        cursor = SelectionCursor(2, index=1)
        cursor.resize(5)
        assert cursor.index == 1

    def test_resize_to_empty_and_back(self):
        """Test an emptied list selects the top item once refilled."""
        cursor = SelectionCursor(3, index=2)
        cursor.resize(0)
        assert cursor.index is None
        cursor.resize(4)
        assert cursor.index == 0

    def test_reset(self):
        """Test reset goes back to the first item."""
        cursor = SelectionCursor(3, index=2)
        cursor.reset()
        assert cursor.index == 0
        empty = SelectionCursor()
        empty.reset()
        assert empty.index is None
