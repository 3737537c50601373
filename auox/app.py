"""Main Textual application for Auox."""

import asyncio
import logging
import sys
import time

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header

from auox.api import SpareBankClient
from auox.auth import OAuthClient, OAuthError, TokenEncryption, TokenLifecycleManager
from auox.config import Config, ConfigError, LoggingConfig, ensure_config_file, load_config
from auox.db.models import TokenRecord
from auox.db.repository import TokenStore, TokenStoreError
from auox.screens.main import MainScreen, StatusBar
from auox.state.quit_gesture import QuitGesture
from auox.state.router import AppState

FRAME_INTERVAL_SECONDS = 0.1
EXIT_DURATION_SECONDS = 0.5

log = logging.getLogger("auox")


class AuoxApp(App):
    """Terminal client for SpareBank 1 accounts and transfers."""

    TITLE = "Auox"
    SUB_TITLE = "SpareBank 1 in your terminal"

    CSS = """
    Screen {
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "begin_exit", "Quit", show=True, priority=True),
        Binding("ctrl+q", "begin_exit", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        config: Config,
        token: TokenRecord,
        client: SpareBankClient | None = None,
        quit_gesture: QuitGesture | None = None,
    ):
        super().__init__()
        self._config = config
        self._token = token
        self._client = client
        self._owns_client = client is None
        self.state = AppState()
        self.quit_gesture = quit_gesture or QuitGesture()
        self._exit_started: float | None = None

    @property
    def config(self) -> Config:
        """Get application configuration."""
        return self._config

    @property
    def client(self) -> SpareBankClient | None:
        """Get the banking API client."""
        return self._client

    @property
    def exiting(self) -> bool:
        """Whether the shutdown delay has started."""
        return self._exit_started is not None

    def compose(self) -> ComposeResult:
        """Create child widgets for the app."""
        yield Header()
        yield Footer()

    async def on_mount(self) -> None:
        """Open the API client and show the main screen."""
        if self._client is None:
            self._client = SpareBankClient(self._token.access_token)
            await self._client.__aenter__()
        self.set_interval(FRAME_INTERVAL_SECONDS, self._tick)
        self.push_screen(MainScreen())

    async def on_unmount(self) -> None:
        """Clean up resources when app closes."""
        if self._client and self._owns_client:
            await self._client.__aexit__(None, None, None)

    def action_begin_exit(self) -> None:
        """Start the shutdown delay."""
        if self.exiting:
            return
        log.debug("Shutting down")
        self._exit_started = time.monotonic()
        self.quit_gesture.enabled = False
        for status_bar in self.screen.query(StatusBar):
            status_bar.set_exiting()

    def _tick(self) -> None:
        """Advance the quit gesture and the shutdown timer once per frame."""
        if self.exiting:
            if time.monotonic() - self._exit_started >= EXIT_DURATION_SECONDS:
                self.exit()
            return
        self.quit_gesture.enabled = not self.state.view.is_text_entry
        should_quit, progress = self.quit_gesture.tick()
        for status_bar in self.screen.query(StatusBar):
            status_bar.set_quit_progress(progress)
        if should_quit:
            self.action_begin_exit()


def setup_logging(config: LoggingConfig) -> None:
    """Send log records to the configured log file."""
    config.path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=config.path,
        level=getattr(logging, config.level, logging.WARNING),
        format='%(asctime)s %(levelname)s: %(message)s'
    )


async def obtain_token(config: Config) -> TokenRecord:
    """Load, refresh or authorize the access token before the UI starts."""
    try:
        cipher = TokenEncryption(config.security.encryption_key)
    except ValueError as e:
        raise ConfigError(f"Invalid encryption key: {e}") from e
    async with TokenStore(config.database.path, cipher) as store:
        manager = TokenLifecycleManager(OAuthClient(config.bank), store)
        return await manager.ensure_valid_token()


def main() -> None:  # pragma: no cover
    """Entry point for the application."""
    try:
        config = load_config(ensure_config_file())
        setup_logging(config.logging)
        if not config.bank.is_configured:
            raise ConfigError("Please add your SpareBank 1 API credentials to the config file.")
        token = asyncio.run(obtain_token(config))
    except (ConfigError, OAuthError, TokenStoreError, OSError) as e:
        log.error(f"Startup failed: {e}")
        sys.exit(f"[auox] {e}")
    app = AuoxApp(config, token)
    app.run()


if __name__ == "__main__":  # pragma: no cover
    main()
