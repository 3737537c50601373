"""Wrap-around selection cursor for list views."""


class SelectionCursor:
    """Selected index into a list of known length.

    The index is None exactly when the list is empty; otherwise it always
    points inside the list.
    """

    def __init__(self, length: int = 0, index: int | None = None):
        self._length = 0
        self._index: int | None = None
        self.resize(length)
        if index is not None:
            self.select(index)

    def __repr__(self) -> str:
        return f"SelectionCursor(length={self._length}, index={self._index})"

    @property
    def index(self) -> int | None:
        """Currently selected index."""
        return self._index

    @property
    def length(self) -> int:
        """Length of the list the cursor ranges over."""
        return self._length

    def resize(self, length: int) -> None:
        """Adopt a new list length, clamping the selection into range."""
        self._length = max(length, 0)
        if self._length == 0:
            self._index = None
        elif self._index is None:
            self._index = 0
        elif self._index >= self._length:
            self._index = self._length - 1

    def select(self, index: int) -> None:
        """Select an index, clamped into range."""
        if self._length == 0:
            return
        self._index = min(max(index, 0), self._length - 1)

    def reset(self) -> None:
        """Go back to the first item."""
        self._index = 0 if self._length else None

    def next(self) -> None:
        """Move down one item, wrapping to the top."""
        if self._index is None:
            return
        self._index = (self._index + 1) % self._length

    def previous(self) -> None:
        """Move up one item, wrapping to the bottom."""
        if self._index is None:
            return
        self._index = (self._index + self._length - 1) % self._length
