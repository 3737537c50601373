"""Main screen driving the navigation stack."""

import logging

from textual import events
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import Label, Static

from auox.api import BankAPIError
from auox.state.navigation import View
from auox.state.router import (
    Command,
    FetchTransactions,
    KeyPress,
    RefreshAccounts,
    SubmitTransfer,
    open_transactions,
    route_key,
)
from auox.state.transfer import TransferWizard
from auox.widgets.view_panel import VIEW_TITLES, ViewPanel

QUIT_KEY = "q"
PROGRESS_WIDTH = 10

VIEW_HINTS = {
    View.ACCOUNT_LIST: "↑↓: Navigate | Enter: Select | b: Balance | m: Cards | r: Reload",
    View.ACTION_MENU: "↑↓: Navigate | Enter: Select | Esc: Back",
    View.TRANSACTION_LIST: "↑↓: Navigate | Esc: Back",
    View.TRANSFER_ACCOUNT_PICKER: "↑↓: Navigate | Enter: Select | m: Cards | Esc: Back",
    View.TRANSFER_FORM: "Tab: Switch field | Enter: Send | Esc: Back",
}

log = logging.getLogger("auox.ui")


class StatusBar(Static):
    """Status bar showing where we are and the quit countdown."""

    DEFAULT_CSS = """
    StatusBar {
        dock: bottom;
        height: 1;
        background: $primary;
        color: $text;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._breadcrumb = ''
        self._hint = ''
        self._quit_progress: float | None = None
        self._exiting = False

    def compose(self) -> ComposeResult:
        """Create status bar content."""
        yield Label('', id='status-text')

    def set_location(self, views: list[View]) -> None:
        """Update the breadcrumb and key hints for the current stack."""
        self._breadcrumb = ' › '.join(VIEW_TITLES[v] for v in views)
        self._hint = VIEW_HINTS[views[-1]]
        self._refresh_text()

    def set_quit_progress(self, progress: float | None) -> None:
        """Show how far the quit key has been held."""
        if progress != self._quit_progress:
            self._quit_progress = progress
            self._refresh_text()

    def set_exiting(self) -> None:
        self._exiting = True
        self._refresh_text()

    def _refresh_text(self) -> None:
        """Refresh the status bar text."""
        if self._exiting:
            text = 'Goodbye!'
        elif self._quit_progress is not None:
            filled = round(self._quit_progress * PROGRESS_WIDTH)
            bar = '█' * filled + '░' * (PROGRESS_WIDTH - filled)
            text = f'Hold {QUIT_KEY} to quit {bar}'
        else:
            text = f'{self._breadcrumb} | {self._hint}'
        self.query_one('#status-text', Label).update(text)


class MainScreen(Screen):
    """Screen showing the view on top of the navigation stack."""

    DEFAULT_CSS = """
    #main-panel {
        height: 100%;
    }
    """

    BINDINGS = [
        Binding('tab', "route_key('tab')", 'Switch field', show=False, priority=True),
    ]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._submitting = False

    def compose(self) -> ComposeResult:
        """Create screen layout."""
        with Vertical(id='main-panel'):
            yield ViewPanel(id='view')
        yield StatusBar()

    def on_mount(self) -> None:
        """Draw the initial view and load accounts."""
        self.refresh_view()
        self.run_worker(self._load_accounts(), group='accounts')

    def refresh_view(self) -> None:
        """Redraw the panel and status bar from the app state."""
        state = self.app.state
        self.query_one('#view', ViewPanel).show(state)
        self.query_one(StatusBar).set_location(state.stack.views)

    def on_key(self, event: events.Key) -> None:
        """Route key presses into the navigation state."""
        if self.app.exiting:
            return
        event.stop()
        if event.key == QUIT_KEY and not self.app.state.view.is_text_entry:
            self.app.quit_gesture.on_key_held()
        self.handle_key(KeyPress(event.key, event.character if event.is_printable else None))

    def action_route_key(self, key: str) -> None:
        """Route a key claimed by a binding."""
        if not self.app.exiting:
            self.handle_key(KeyPress(key))

    def handle_key(self, press: KeyPress) -> None:
        """Apply a key press and start any command it produced."""
        command = route_key(self.app.state, press)
        if command is not None:
            self._run_command(command)
        self.refresh_view()

    def _run_command(self, command: Command) -> None:
        if isinstance(command, FetchTransactions):
            self.run_worker(self._fetch_transactions(command.account_key), group='transactions')
        elif isinstance(command, SubmitTransfer):
            if not self._submitting:
                self._submitting = True
                self.run_worker(self._submit_transfer(), group='transfer')
        elif isinstance(command, RefreshAccounts):
            self.run_worker(self._load_accounts(), group='accounts')

    async def _load_accounts(self) -> None:
        """Fetch the account list."""
        try:
            accounts = await self.app.client.get_accounts()
        except BankAPIError as e:
            log.error(f'Fetching accounts failed: {e}')
            self.notify(f'Could not load accounts: {e}. Press r to retry.', severity='error')
            return
        self.app.state.set_accounts(accounts)
        self.refresh_view()

    async def _fetch_transactions(self, account_key: str) -> None:
        """Fetch transactions and show them if the menu is still open."""
        try:
            transactions = await self.app.client.get_transactions(account_key)
        except BankAPIError as e:
            log.error(f'Fetching transactions for {account_key} failed: {e}')
            self.notify(f'Could not load transactions: {e}', severity='error')
            return
        state = self.app.state
        if state.view is View.ACTION_MENU:
            open_transactions(state, transactions)
            self.refresh_view()

    async def _submit_transfer(self) -> None:
        """Send the transfer draft and apply the outcome."""
        state = self.app.state
        try:
            outcome = await TransferWizard(self.app.client).submit(state.draft, state.accounts)
        finally:
            self._submitting = False
        if outcome is None:
            return
        if TransferWizard.complete(outcome, state.draft, state.stack):
            self.notify('Transfer completed')
            self.refresh_view()
            await self._load_accounts()
            return
        for error in outcome.errors:
            self.notify(f'{error.code}: {error.display_message}', severity='error')
        self.refresh_view()
