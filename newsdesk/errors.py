"""Error taxonomy shared by the fetch path, the daemon and the entrypoint."""

from __future__ import annotations

PAYWALL_HINT = "paywall detected - add subscriber cookies to config.yaml to read full articles"
CONTENT_MISSING_HINT = "no article content found - check your subscriber cookies in config.yaml"


class NewsdeskError(Exception):
    """Base class for application errors."""


class UserError(NewsdeskError):
    """Raised for conditions the user can act on; printed plainly, not as a crash."""


class PaywallError(UserError):
    """Raised when the fetched page is a paywall teaser instead of the article."""

    def __init__(self, message: str = PAYWALL_HINT) -> None:
        super().__init__(message)


class ContentMissingError(UserError):
    """Raised when a fetch succeeds but yields no article body."""

    def __init__(self, message: str = CONTENT_MISSING_HINT) -> None:
        super().__init__(message)


class DaemonNotRunning(NewsdeskError):
    """The fetch daemon is absent, refused the connection, or timed out."""

    def __init__(self, message: str = "newsdesk daemon not running") -> None:
        super().__init__(message)


class DaemonAlreadyRunning(NewsdeskError):
    """Another daemon answers on the socket this one was asked to bind."""


class TransportError(NewsdeskError):
    """Network or IPC failure that is not a daemon-availability problem."""


class ConfigError(NewsdeskError):
    """Raised when the configuration file is invalid."""


def describe_error(exc: BaseException) -> str:
    """User-facing text: actionable errors as-is, everything else prefixed."""
    if isinstance(exc, UserError):
        return str(exc)
    return f"Error: {exc}"
