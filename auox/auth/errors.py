"""Authentication errors."""


class OAuthError(Exception):
    """Exception raised for OAuth-related errors."""

    pass


class CallbackTimeout(OAuthError):
    """No authorization callback arrived in time."""

    pass
