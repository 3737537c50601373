"""Views and the navigation stack."""

from collections.abc import Iterator
from enum import Enum


class View(Enum):
    """One screen of the navigation stack."""

    ACCOUNT_LIST = "accounts"
    ACTION_MENU = "menu"
    TRANSACTION_LIST = "transactions"
    TRANSFER_ACCOUNT_PICKER = "transfer_picker"
    TRANSFER_FORM = "transfer_form"

    @property
    def is_text_entry(self) -> bool:
        """Views where printable keys are typed text rather than commands."""
        return self is View.TRANSFER_FORM


class MenuItem(Enum):
    """Entries of the per-account action menu."""

    TRANSACTIONS = ("Transactions", View.TRANSACTION_LIST)
    TRANSFER_FROM = ("Transfer from", View.TRANSFER_ACCOUNT_PICKER)

    def __init__(self, label: str, view: View):
        self.label = label
        self.view = view


MENU_ITEMS = list(MenuItem)


class NavigationStack:
    """Stack of views. The account list is always at the bottom."""

    def __init__(self):
        self._frames: list[View] = [View.ACCOUNT_LIST]

    def __repr__(self) -> str:
        return f"NavigationStack({[v.name for v in self._frames]})"

    def __iter__(self) -> Iterator[View]:
        return iter(self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def top(self) -> View:
        """View currently shown."""
        return self._frames[-1]

    @property
    def views(self) -> list[View]:
        """Copy of the frames, bottom first."""
        return list(self._frames)

    def push(self, view: View) -> None:
        """Show a new view on top."""
        self._frames.append(view)

    def pop(self) -> View | None:
        """Leave the top view. Does nothing at the root."""
        if len(self._frames) > 1:
            return self._frames.pop()
        return None

    def collapse(self) -> None:
        """Go back to the account list."""
        del self._frames[1:]
