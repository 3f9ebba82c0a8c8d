"""
Defines custom exception classes for the Wayfarer framework.

Using custom exceptions keeps the failure classes the orchestrator cares about
apart: configuration problems, tool contract violations, driver failures and
backend (provider) failures each get their own type so callers can decide
what is reported to the user and what is a bug.
"""
from enum import Enum
from typing import Optional


class WayfarerError(Exception):
    """Base exception class for all custom errors in the Wayfarer application."""

    pass


class ConfigurationError(WayfarerError):
    """Raised when there is an error in loading or validating configuration.

    This can include a missing backends.yaml, an unknown backend profile, or
    an unresolvable secret.
    """

    pass


class ToolError(WayfarerError):
    """Base exception for errors related to tool handling."""

    pass


class ToolNotFoundError(ToolError, KeyError):
    """Raised when a requested tool is not part of the tool catalog.

    Inherits from `KeyError` so catalog lookups behave like mapping lookups.
    """

    pass


class ToolValidationError(ToolError, ValueError):
    """Raised when the arguments of a tool call fail input-model validation.

    This happens before anything is dispatched to the automation driver.
    """

    def __init__(self, message: str, missing: Optional[list] = None):
        super().__init__(message)
        self.missing = missing or []


class ToolExecutionError(ToolError):
    """Raised when a tool fails while running for reasons other than
    invalid input (driver errors, timeouts, script failures)."""

    pass


class DriverError(WayfarerError):
    """Raised by automation drivers when the browser itself is unusable."""

    pass


class ProviderErrorKind(str, Enum):
    """Classification of backend failures."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


_USER_MESSAGES = {
    ProviderErrorKind.AUTH: "{name} authentication failed. Please check your API key.",
    ProviderErrorKind.RATE_LIMIT: "{name} rate limit exceeded. Please try again later.",
    ProviderErrorKind.SERVER: "{name} server error. Please try again later.",
    ProviderErrorKind.NETWORK: "Network error connecting to {name}. Please check your internet connection.",
    ProviderErrorKind.TIMEOUT: "{name} request timed out. Please try again.",
    ProviderErrorKind.UNKNOWN: "{name} error: {detail}",
}


class ProviderError(WayfarerError):
    """Raised by provider adapters when a backend call fails.

    Backend-specific error shapes never leave the adapter; they are folded
    into one of the `ProviderErrorKind` classes.
    """

    def __init__(
        self,
        message: str,
        kind: ProviderErrorKind = ProviderErrorKind.UNKNOWN,
        provider: str = "backend",
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = ProviderErrorKind(kind)
        self.provider = provider
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        """A sentence suitable for showing to the person chatting."""
        template = _USER_MESSAGES[self.kind]
        return template.format(name=self.provider, detail=str(self) or "Unknown error occurred")
