"""Authentication module for SpareBank 1 OAuth."""

import asyncio
import logging
import secrets
import webbrowser
from collections.abc import Awaitable, Callable
from urllib.parse import urlencode

import httpx
from cryptography.fernet import Fernet

from auox.api import SpareBankClient
from auox.auth.callback import (
    CALLBACK_TIMEOUT_SECONDS,
    CallbackHandler,
    CallbackListener,
    CallbackResult,
    capture_code,
)
from auox.auth.errors import CallbackTimeout, OAuthError
from auox.config import DEFAULT_REDIRECT_URI, BankConfig
from auox.db.models import TokenRecord
from auox.db.repository import TokenStore

AUTHORIZE_URL = "https://api-auth.sparebank1.no/oauth/authorize"
TOKEN_URL = "https://api-auth.sparebank1.no/oauth/token"

log = logging.getLogger("auox.auth")

Probe = Callable[[str], Awaitable[bool]]

__all__ = [
    "AUTHORIZE_URL",
    "CALLBACK_TIMEOUT_SECONDS",
    "TOKEN_URL",
    "CallbackHandler",
    "CallbackListener",
    "CallbackResult",
    "CallbackTimeout",
    "OAuthClient",
    "OAuthError",
    "TokenEncryption",
    "TokenLifecycleManager",
    "capture_code",
    "ensure_valid_token",
    "probe_access_token",
]


class TokenEncryption:
    """Handles encryption and decryption of OAuth tokens."""

    def __init__(self, encryption_key: str | None):
        self._fernet = Fernet(encryption_key.encode()) if encryption_key else None

    def encrypt(self, value: str) -> str:
        """Encrypt a value if encryption is configured."""
        if self._fernet:
            return self._fernet.encrypt(value.encode()).decode()
        return value

    def decrypt(self, value: str) -> str:
        """Decrypt a value if encryption is configured."""
        if self._fernet:
            return self._fernet.decrypt(value.encode()).decode()
        return value


class OAuthClient:
    """OAuth client for SpareBank 1 authentication."""

    def __init__(
        self,
        config: BankConfig,
        authorize_url: str = AUTHORIZE_URL,
        token_url: str = TOKEN_URL,
    ):
        self._config = config
        self._authorize_url = authorize_url
        self._token_url = token_url
        self._state: str | None = None

    def get_authorization_url(self) -> str:
        """Generate the authorization URL with a fresh anti-forgery state."""
        self._state = secrets.token_urlsafe(32)
        params = {
            "client_id": self._config.client_id,
            "state": self._state,
            "redirect_uri": self._config.redirect_uri,
            "finInst": self._config.financial_institution,
            "response_type": "code",
        }
        return f"{self._authorize_url}?{urlencode(params)}"

    async def authorize(
        self, open_browser: bool = True, timeout: float = CALLBACK_TIMEOUT_SECONDS
    ) -> TokenRecord:
        """Run the full browser authorization flow."""
        auth_url = self.get_authorization_url()
        listener = CallbackListener(self._config.callback_port, expected_state=self._state)
        listener.start()
        try:
            if open_browser:
                log.info("Opening browser for authorization")
                webbrowser.open(auth_url)
            code = await asyncio.get_running_loop().run_in_executor(
                None, listener.wait_for_code, timeout
            )
        finally:
            listener.stop()
        return await self.exchange_code(code)

    async def exchange_code(self, code: str) -> TokenRecord:
        """Exchange authorization code for tokens."""
        data = {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self._config.redirect_uri,
        }
        if self._state:
            data["state"] = self._state
        return await self._request_token(data)

    async def refresh_token(self, refresh_token: str) -> TokenRecord:
        """Refresh an expired access token."""
        data = {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
        return await self._request_token(data)

    async def _request_token(self, data: dict) -> TokenRecord:
        """POST to the token endpoint and parse the token set."""
        grant_type = data["grant_type"]
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    self._token_url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            raise OAuthError(f"Token request ({grant_type}) failed: {e}") from e
        if response.is_error:
            log.error(f"Token endpoint returned HTTP {response.status_code}: {response.text}")
            raise OAuthError(
                f"Token request ({grant_type}) returned HTTP {response.status_code}"
            )
        try:
            return self._parse_token(response.json())
        except (ValueError, KeyError) as e:
            raise OAuthError(f"Token response ({grant_type}) is not in proper format") from e

    def _parse_token(self, data: dict) -> TokenRecord:
        """Parse token data from the token endpoint."""
        return TokenRecord(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_in=int(data.get("expires_in", 0)),
            refresh_token_expires_in=int(data.get("refresh_token_expires_in", 0)),
            refresh_token_absolute_expires_in=int(
                data.get("refresh_token_absolute_expires_in", 0)
            ),
            token_type=data.get("token_type", "Bearer"),
        )


async def probe_access_token(access_token: str) -> bool:
    """Check the access token against the hello world endpoint."""
    async with SpareBankClient(access_token) as client:
        return await client.hello_world()


class TokenLifecycleManager:
    """Decides between the cached token, a refresh, and a full authorization."""

    def __init__(
        self,
        oauth: OAuthClient,
        store: TokenStore,
        probe: Probe = probe_access_token,
        open_browser: bool = True,
        callback_timeout: float = CALLBACK_TIMEOUT_SECONDS,
    ):
        self._oauth = oauth
        self._store = store
        self._probe = probe
        self._open_browser = open_browser
        self._callback_timeout = callback_timeout

    async def ensure_valid_token(self) -> TokenRecord:
        """Return a token the API accepts, authorizing again if needed.

        Refresh failures fall through to the browser flow. Failures in the
        browser flow raise OAuthError.
        """
        record = await self._store.load()
        if record is not None:
            if await self._probe(record.access_token):
                log.info("Cached access token is valid")
                return record
            refreshed = await self._try_refresh(record)
            if refreshed is not None:
                return refreshed
        return await self._authorize()

    async def _try_refresh(self, record: TokenRecord) -> TokenRecord | None:
        """Refresh the cached token, or None when the provider refuses."""
        log.info("Cached access token rejected, refreshing")
        try:
            refreshed = await self._oauth.refresh_token(record.refresh_token)
        except OAuthError as e:
            log.warning(f"Token refresh failed, falling back to authorization: {e}")
            return None
        return await self._store.save(refreshed)

    async def _authorize(self) -> TokenRecord:
        """Run the browser flow and persist the result."""
        log.info("Starting OAuth authorization flow")
        record = await self._oauth.authorize(
            open_browser=self._open_browser, timeout=self._callback_timeout
        )
        saved = await self._store.save(record)
        log.info("Authentication successful")
        return saved


async def ensure_valid_token(
    client_id: str,
    client_secret: str,
    institution_id: str,
    store: TokenStore,
    redirect_uri: str = DEFAULT_REDIRECT_URI,
) -> TokenRecord:
    """Obtain a valid token for the given client credentials."""
    config = BankConfig(
        client_id=client_id,
        client_secret=client_secret,
        financial_institution=institution_id,
        redirect_uri=redirect_uri,
    )
    manager = TokenLifecycleManager(OAuthClient(config), store)
    return await manager.ensure_valid_token()
