"""Tests for the main application and screen."""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
import respx
from textual.widgets import Label

from auox.api import ACCOUNTS_PATH, BASE_URL, BankAPIError
from auox.app import EXIT_DURATION_SECONDS, AuoxApp, setup_logging
from auox.config import LoggingConfig
from auox.db.models import TransferError, TransferOutcome
from auox.screens.main import MainScreen, StatusBar
from auox.state.navigation import View
from factories import make_token, make_transaction


@pytest.fixture
def client(accounts):
    """Create a mocked API client."""
    mock = MagicMock()
    mock.get_accounts = AsyncMock(return_value=accounts)
    mock.get_transactions = AsyncMock(
        return_value=[make_transaction(), make_transaction("Kiwi")]
    )
    mock.create_transfer = AsyncMock(return_value=TransferOutcome(payment_id="p-1"))
    mock.create_credit_card_transfer = AsyncMock(return_value=TransferOutcome(payment_id="p-2"))
    return mock


@pytest.fixture
def app(config, client):
    """Create the app with a mocked client."""
    return AuoxApp(config, make_token(), client=client)


async def settle(app, pilot):
    """Wait for background workers and the resulting redraw."""
    await app.workers.wait_for_complete()
    await pilot.pause()


def status_text(app) -> str:
    return str(app.screen.query_one("#status-text", Label).content)


class TestAuoxApp:
    """Tests for AuoxApp."""

    def test_app_has_correct_title(self, app):
        """Test app title."""
        assert app.TITLE == "Auox"

    def test_app_has_quit_bindings(self, app):
        """Test ctrl+c and ctrl+q start the shutdown."""
        bindings = {b.key: b for b in app.BINDINGS}
        assert bindings["ctrl+c"].action == "begin_exit"
        assert bindings["ctrl+q"].action == "begin_exit"
        assert bindings["ctrl+c"].priority is True

    def test_app_properties(self, app, config, client):
        """Test the config and client properties."""
        assert app.config is config
        assert app.client is client
        assert app.exiting is False

    async def test_app_pushes_main_screen_on_mount(self, app):
        """Test the main screen is shown on mount."""
        async with app.run_test():
            assert isinstance(app.screen, MainScreen)

    async def test_accounts_load_on_mount(self, app, client, accounts):
        """Test accounts are fetched when the screen opens."""
        async with app.run_test() as pilot:
            await settle(app, pilot)
            client.get_accounts.assert_awaited()
            assert app.state.accounts == accounts
            assert app.state.account_cursor.index == 0

    async def test_account_load_failure_keeps_running(self, app, client):
        """Test a failed account fetch leaves an empty list to retry."""
        client.get_accounts.side_effect = BankAPIError("boom", 500)
        async with app.run_test() as pilot:
            await settle(app, pilot)
            assert app.state.accounts == []
            client.get_accounts.side_effect = None
            await pilot.press("r")
            await settle(app, pilot)
            assert len(app.state.accounts) == 4

    @respx.mock
    async def test_malformed_accounts_keep_running(self, config):
        """Test an unparseable account reply is reported and the app stays up."""
        respx.get(f"{BASE_URL}{ACCOUNTS_PATH}").mock(
            return_value=httpx.Response(
                200, json={"accounts": [{"key": "k1", "name": "Brukskonto", "balance": None}]}
            )
        )
        app = AuoxApp(config, make_token())
        async with app.run_test() as pilot:
            await settle(app, pilot)
            assert app.is_running
            assert app.state.accounts == []

    async def test_navigate_to_transactions(self, app, client):
        """Test Enter twice shows the selected account's transactions."""
        async with app.run_test() as pilot:
            await settle(app, pilot)
            await pilot.press("down", "enter", "enter")
            await settle(app, pilot)
            client.get_transactions.assert_awaited_once_with("b")
            assert app.state.view is View.TRANSACTION_LIST
            assert len(app.state.transactions) == 2
            await pilot.press("escape", "escape")
            assert app.state.view is View.ACCOUNT_LIST

    async def test_transactions_ignored_after_leaving_menu(self, app, client):
        """Test late transactions do not open once the menu is closed."""
        async with app.run_test() as pilot:
            await settle(app, pilot)
            await pilot.press("enter")
            app.state.stack.pop()
            await app.screen._fetch_transactions("a")
            assert app.state.view is View.ACCOUNT_LIST

    async def test_transfer_success(self, app, client):
        """Test a completed transfer returns to the accounts and reloads them."""
        async with app.run_test() as pilot:
            await settle(app, pilot)
            await pilot.press("enter", "down", "enter", "down", "enter")
            assert app.state.view is View.TRANSFER_FORM
            await pilot.press("2", "5", "0", "comma", "5", "0", "tab", "m", "a", "t")
            assert app.state.draft.message.value == "mat"
            await pilot.press("enter")
            await settle(app, pilot)

            request = client.create_transfer.call_args[0][0]
            assert request.amount == "250,50"
            assert request.from_account == "11111111111"
            assert request.to_account == "22222222222"
            assert request.message == "mat"
            assert app.state.stack.views == [View.ACCOUNT_LIST]
            assert app.state.draft.amount.value == ""
            assert client.get_accounts.await_count == 2

    async def test_transfer_failure_keeps_form(self, app, client):
        """Test a declined transfer leaves the form open with its input."""
        client.create_transfer.return_value = TransferOutcome(
            errors=[TransferError("insufficient_funds", "Insufficient funds", 422, "t")]
        )
        async with app.run_test() as pilot:
            await settle(app, pilot)
            await pilot.press("enter", "down", "enter", "down", "enter", "9", "9")
            await pilot.press("enter")
            await settle(app, pilot)
            assert app.state.view is View.TRANSFER_FORM
            assert app.state.draft.amount.value == "99"
            assert client.get_accounts.await_count == 1

    async def test_enter_with_empty_amount_sends_nothing(self, app, client):
        """Test submitting an empty form does not call the API."""
        async with app.run_test() as pilot:
            await settle(app, pilot)
            await pilot.press("enter", "down", "enter", "down", "enter", "enter")
            await settle(app, pilot)
            client.create_transfer.assert_not_called()
            assert app.state.view is View.TRANSFER_FORM

    async def test_quit_key_feeds_gesture(self, app):
        """Test q outside the form counts towards the hold."""
        async with app.run_test() as pilot:
            await settle(app, pilot)
            with patch.object(app.quit_gesture, "on_key_held") as held:
                await pilot.press("q")
            held.assert_called_once()

    async def test_quit_key_is_text_in_form(self, app):
        """Test q is typed into the message field inside the form."""
        async with app.run_test() as pilot:
            await settle(app, pilot)
            await pilot.press("enter", "down", "enter", "down", "enter", "tab")
            with patch.object(app.quit_gesture, "on_key_held") as held:
                await pilot.press("q")
            held.assert_not_called()
            assert app.state.draft.message.value == "q"
            app._tick()
            assert app.quit_gesture.enabled is False

    async def test_begin_exit(self, app):
        """Test ctrl+c starts the shutdown and shows a goodbye."""
        async with app.run_test() as pilot:
            await settle(app, pilot)
            await pilot.press("ctrl+c")
            assert app.exiting is True
            assert app.quit_gesture.enabled is False
            assert "Goodbye" in status_text(app)
            app.state.stack.push(View.ACTION_MENU)
            with patch.object(MainScreen, "handle_key") as handle_key:
                await pilot.press("down")
            handle_key.assert_not_called()

    async def test_exit_after_delay(self, app):
        """Test the app exits once the shutdown delay has passed."""
        async with app.run_test() as pilot:
            await settle(app, pilot)
            app.action_begin_exit()
            with patch.object(app, "exit") as exit_:
                app._tick()
                exit_.assert_not_called()
                app._exit_started = time.monotonic() - EXIT_DURATION_SECONDS
                app._tick()
                exit_.assert_called_once()

    async def test_status_bar_breadcrumb(self, app):
        """Test the status bar follows the navigation stack."""
        async with app.run_test() as pilot:
            await settle(app, pilot)
            await pilot.press("enter")
            text = status_text(app)
            assert "Accounts › Menu" in text
            assert "Esc: Back" in text

    async def test_quit_progress_in_status_bar(self, app):
        """Test the hold progress replaces the breadcrumb."""
        async with app.run_test() as pilot:
            await settle(app, pilot)
            status_bar = app.screen.query_one(StatusBar)
            status_bar.set_quit_progress(0.5)
            assert "Hold q to quit █████░░░░░" in status_text(app)
            status_bar.set_quit_progress(None)
            assert "Accounts" in status_text(app)


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_creates_log_directory(self, temp_dir):
        """Test the log directory is created."""
        log_path = temp_dir / "logs" / "auox.log"
        with patch("auox.app.logging.basicConfig") as basic_config:
            setup_logging(LoggingConfig(path=log_path, level="DEBUG"))
        assert log_path.parent.is_dir()
        kwargs = basic_config.call_args.kwargs
        assert kwargs["filename"] == log_path
        assert kwargs["level"] == 10
