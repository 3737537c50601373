"""One-shot local HTTP listener capturing the OAuth redirect."""

import logging
import queue
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread
from urllib.parse import parse_qs, urlparse

from auox.auth.errors import CallbackTimeout, OAuthError

CALLBACK_TIMEOUT_SECONDS = 120.0

log = logging.getLogger("auox.auth")


@dataclass
class CallbackResult:
    """What the browser redirect carried."""

    code: str | None = None
    state: str | None = None
    error: str | None = None


_CANCELLED = CallbackResult(error="cancelled")


class CallbackHTTPServer(HTTPServer):
    """HTTP server owning the single result slot."""

    def __init__(self, address: tuple[str, int], expected_state: str | None = None):
        super().__init__(address, CallbackHandler)
        self.expected_state = expected_state
        self.results: queue.Queue[CallbackResult] = queue.Queue(maxsize=1)

    def deliver(self, result: CallbackResult) -> bool:
        """Fill the result slot. Returns False when it is already taken."""
        try:
            self.results.put_nowait(result)
        except queue.Full:
            return False
        return True


class CallbackHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the OAuth callback."""

    server: CallbackHTTPServer

    def log_message(self, format: str, *args) -> None:
        """Route HTTP server logging to the auth logger."""
        log.debug(f"Callback server: {format % args}")

    def do_GET(self) -> None:
        """Handle GET request from OAuth callback."""
        params = parse_qs(urlparse(self.path).query)
        code = params.get("code", [None])[0]
        state = params.get("state", [None])[0]
        error = params.get("error", [None])[0]

        if (error or code) and not self._state_matches(state):
            log.warning("Ignoring callback with mismatched state")
            self._send_page(
                400, "Authorization Failed", "State mismatch. Please try again.", ok=False
            )
        elif error:
            self.server.deliver(CallbackResult(state=state, error=error))
            self._send_page(200, "Authorization Failed", f"Error: {error}", ok=False)
        elif code:
            if not self.server.deliver(CallbackResult(code=code, state=state)):
                log.debug("Authorization code already captured, ignoring repeat callback")
            self._send_page(
                200,
                "Authorization Successful",
                "You can close this window and return to Auox.",
                ok=True,
            )
        else:
            self._send_page(404, "Waiting for Authorization", "No authorization code here.")

    def _state_matches(self, state: str | None) -> bool:
        expected = self.server.expected_state
        return expected is None or state == expected

    def _send_page(self, status: int, title: str, message: str, ok: bool | None = None) -> None:
        """Write a short HTML status page."""
        if ok is None:
            icon, color = "&#8987;", "#ffc107"
        elif ok:
            icon, color = "&#10004;", "#28a745"
        else:
            icon, color = "&#10060;", "#dc3545"
        html = f'''<!DOCTYPE html>
<html>
<head>
    <title>Auox - {title}</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            display: flex;
            justify-content: center;
            align-items: center;
            min-height: 100vh;
            margin: 0;
            background: #14213d;
            color: #fff;
        }}
        .container {{
            text-align: center;
            padding: 3rem;
            background: rgba(255, 255, 255, 0.1);
            border-radius: 1rem;
        }}
        .icon {{
            font-size: 4rem;
            color: {color};
            margin-bottom: 1rem;
        }}
    </style>
</head>
<body>
    <div class="container">
        <div class="icon">{icon}</div>
        <h1>{title}</h1>
        <p>{message}</p>
    </div>
</body>
</html>'''
        body = html.encode()
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


class CallbackListener:
    """Background listener that hands one authorization code to the caller."""

    def __init__(self, port: int, expected_state: str | None = None, host: str = "localhost"):
        self._host = host
        self._port = port
        self._expected_state = expected_state
        self._server: CallbackHTTPServer | None = None
        self._thread: Thread | None = None

    def __enter__(self) -> "CallbackListener":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    @property
    def port(self) -> int:
        """Port actually bound, which differs from the requested one for port 0."""
        if self._server:
            return self._server.server_address[1]
        return self._port

    def start(self) -> None:
        """Bind the listener and serve requests on a background thread."""
        try:
            self._server = CallbackHTTPServer((self._host, self._port), self._expected_state)
        except OSError as e:
            raise OAuthError(f"Could not listen on port {self._port}: {e}") from e
        self._thread = Thread(
            target=self._server.serve_forever,
            kwargs={"poll_interval": 0.1},
            name="oauth-callback",
            daemon=True,
        )
        self._thread.start()
        log.info(f"Waiting for OAuth callback on {self._host}:{self.port}")

    def wait_for_code(self, timeout: float = CALLBACK_TIMEOUT_SECONDS) -> str:
        """Block until the redirect delivers a code, an error, or the timeout passes."""
        if self._server is None:
            raise OAuthError("Callback listener is not running")
        try:
            result = self._server.results.get(timeout=timeout)
        except queue.Empty:
            raise CallbackTimeout(
                f"No authorization callback received within {timeout:.0f} seconds"
            ) from None
        if result is _CANCELLED:
            raise OAuthError("Authorization cancelled")
        if result.error:
            raise OAuthError(f"Authorization failed: {result.error}")
        return result.code

    def stop(self) -> None:
        """Stop accepting requests and wake any waiter."""
        if self._server:
            self._server.deliver(_CANCELLED)
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None


def capture_code(
    port: int,
    expected_state: str | None = None,
    timeout: float = CALLBACK_TIMEOUT_SECONDS,
) -> str:
    """Listen on loopback:port until one authorization code arrives."""
    with CallbackListener(port, expected_state) as listener:
        return listener.wait_for_code(timeout)
