"""Application state and keyboard routing.

All UI state lives in one ``AppState`` owned by the app. ``route_key`` applies
a key press to it and returns a command when the press needs I/O (fetching
transactions, submitting a transfer, reloading accounts). The caller runs the
command and feeds the result back through ``open_transactions``,
``TransferWizard.complete`` or ``AppState.set_accounts``.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from auox.db.models import Account, Transaction
from auox.state.cursor import SelectionCursor
from auox.state.navigation import MENU_ITEMS, MenuItem, NavigationStack, View
from auox.state.transfer import TransferDraft

DOWN_KEYS = frozenset({"down", "j"})
UP_KEYS = frozenset({"up", "k"})


@dataclass(frozen=True)
class KeyPress:
    """Key event independent of the terminal toolkit.

    ``key`` is the key name (``"up"``, ``"enter"``, ``"a"``); ``character`` is
    set only for printable keys.
    """

    key: str
    character: str | None = None


@dataclass(frozen=True)
class FetchTransactions:
    """Load transactions for an account, then show them."""

    account_key: str


@dataclass(frozen=True)
class SubmitTransfer:
    """Send the current transfer draft."""


@dataclass(frozen=True)
class RefreshAccounts:
    """Reload the account list."""


Command = FetchTransactions | SubmitTransfer | RefreshAccounts


@dataclass
class AppState:
    """Everything the views render and the key handlers mutate."""

    accounts: list[Account] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    stack: NavigationStack = field(default_factory=NavigationStack)
    account_cursor: SelectionCursor = field(default_factory=SelectionCursor)
    menu_cursor: SelectionCursor = field(
        default_factory=lambda: SelectionCursor(len(MENU_ITEMS))
    )
    transaction_cursor: SelectionCursor = field(default_factory=SelectionCursor)
    picker_cursor: SelectionCursor = field(default_factory=SelectionCursor)
    draft: TransferDraft = field(default_factory=TransferDraft)
    show_balance: bool = False
    show_credit_cards: bool = False
    menu_account_index: int | None = None

    def __post_init__(self):
        self.sync_cursors()

    @property
    def view(self) -> View:
        """View on top of the stack."""
        return self.stack.top

    def visible_accounts(self) -> list[int]:
        """Indices into ``accounts`` shown in account lists."""
        return [
            i
            for i, account in enumerate(self.accounts)
            if self.show_credit_cards or not account.is_credit_card
        ]

    def sync_cursors(self) -> None:
        """Clamp every cursor against the list it currently ranges over."""
        visible = len(self.visible_accounts())
        self.account_cursor.resize(visible)
        self.picker_cursor.resize(visible)
        self.menu_cursor.resize(len(MENU_ITEMS))
        self.transaction_cursor.resize(len(self.transactions))

    def account_at(self, cursor: SelectionCursor) -> int | None:
        """Index into ``accounts`` of the row a cursor points at."""
        visible = self.visible_accounts()
        if cursor.index is None or cursor.index >= len(visible):
            return None
        return visible[cursor.index]

    def selected_account(self) -> Account | None:
        """Account highlighted in the account list."""
        index = self.account_at(self.account_cursor)
        return self.accounts[index] if index is not None else None

    def menu_account(self) -> Account | None:
        """Account the action menu was opened for.

        Pinned when the menu opens, so showing or hiding credit cards while
        the menu is up does not change which account it acts on.
        """
        index = self.menu_account_index
        if index is None or index >= len(self.accounts):
            return None
        return self.accounts[index]

    def selected_menu_item(self) -> MenuItem | None:
        """Menu entry under the menu cursor."""
        if self.menu_cursor.index is None:
            return None
        return MENU_ITEMS[self.menu_cursor.index]

    def set_accounts(self, accounts: list[Account]) -> None:
        """Replace the account list after a fetch."""
        self.accounts = accounts
        self.sync_cursors()

    def toggle_credit_cards(self) -> None:
        """Show or hide credit card accounts, keeping selections where possible."""
        selected = self.account_at(self.account_cursor)
        picked = self.account_at(self.picker_cursor)
        self.show_credit_cards = not self.show_credit_cards
        self.sync_cursors()
        visible = self.visible_accounts()
        for cursor, index in ((self.account_cursor, selected), (self.picker_cursor, picked)):
            if index in visible:
                cursor.select(visible.index(index))


def open_transactions(state: AppState, transactions: list[Transaction]) -> None:
    """Show fetched transactions."""
    state.transactions = transactions
    state.transaction_cursor.resize(len(transactions))
    state.transaction_cursor.reset()
    state.stack.push(View.TRANSACTION_LIST)


def _move(cursor: SelectionCursor, key: str) -> bool:
    if key in DOWN_KEYS:
        cursor.next()
        return True
    if key in UP_KEYS:
        cursor.previous()
        return True
    return False


def _handle_account_list(state: AppState, press: KeyPress) -> Command | None:
    if _move(state.account_cursor, press.key):
        return None
    if press.key == "enter":
        index = state.account_at(state.account_cursor)
        if index is not None:
            state.menu_account_index = index
            state.menu_cursor.reset()
            state.stack.push(View.ACTION_MENU)
    elif press.character == "b":
        state.show_balance = not state.show_balance
    elif press.character == "r":
        return RefreshAccounts()
    return None


def _handle_action_menu(state: AppState, press: KeyPress) -> Command | None:
    if _move(state.menu_cursor, press.key) or press.key != "enter":
        return None
    item = state.selected_menu_item()
    account = state.menu_account()
    if item is None or account is None:
        return None
    if item is MenuItem.TRANSACTIONS:
        return FetchTransactions(account.key)
    if item is MenuItem.TRANSFER_FROM:
        state.draft.from_account = state.menu_account_index
        state.picker_cursor.reset()
    state.stack.push(item.view)
    return None


def _handle_transaction_list(state: AppState, press: KeyPress) -> Command | None:
    _move(state.transaction_cursor, press.key)
    return None


def _handle_transfer_picker(state: AppState, press: KeyPress) -> Command | None:
    if _move(state.picker_cursor, press.key) or press.key != "enter":
        return None
    destination = state.account_at(state.picker_cursor)
    if destination is None:
        return None
    state.draft.to_account = destination
    state.stack.push(View.TRANSFER_FORM)
    return None


def _handle_transfer_form(state: AppState, press: KeyPress) -> Command | None:
    if press.key == "enter":
        return SubmitTransfer()
    if press.key == "tab":
        state.draft.toggle_field()
    elif not state.draft.edit(press.key) and press.character:
        state.draft.type_character(press.character)
    return None


Handler = Callable[[AppState, KeyPress], Command | None]

HANDLERS: dict[View, Handler] = {
    View.ACCOUNT_LIST: _handle_account_list,
    View.ACTION_MENU: _handle_action_menu,
    View.TRANSACTION_LIST: _handle_transaction_list,
    View.TRANSFER_ACCOUNT_PICKER: _handle_transfer_picker,
    View.TRANSFER_FORM: _handle_transfer_form,
}

_unhandled = set(View) - set(HANDLERS)
if _unhandled:  # pragma: no cover
    raise RuntimeError(f"No key handler for views: {sorted(v.name for v in _unhandled)}")


def route_key(state: AppState, press: KeyPress) -> Command | None:
    """Apply one key press to the state for the view on top of the stack."""
    state.sync_cursors()
    if press.key == "escape":
        state.stack.pop()
        return None
    if press.character == "m" and not state.view.is_text_entry:
        state.toggle_credit_cards()
        return None
    return HANDLERS[state.view](state, press)
