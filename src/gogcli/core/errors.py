"""
Typed errors raised by gog commands.

Every error carries a user-facing message, an optional suggested action and
the exit code the CLI terminates with. The ``handle_errors`` boundary in
``cli_common`` renders them; nothing else should print errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .exit_codes import (
    EXIT_AUTH_REQUIRED,
    EXIT_CONFIG,
    EXIT_ERROR,
    EXIT_NOT_FOUND,
    EXIT_USAGE,
)


@dataclass
class GogError(Exception):
    """Base class for all gog errors."""

    user_message: str
    suggested_action: str | None = None
    exit_code: int = field(default=EXIT_ERROR, kw_only=True)

    def __post_init__(self) -> None:
        super().__init__(self.user_message)

    def __str__(self) -> str:
        return self.user_message


@dataclass
class UsageError(GogError):
    """Invalid flags or arguments, detected before any remote call."""

    exit_code: int = field(default=EXIT_USAGE, kw_only=True)


@dataclass
class ConfigError(GogError):
    """Local configuration is missing or malformed."""

    exit_code: int = field(default=EXIT_CONFIG, kw_only=True)


@dataclass
class AuthRequiredError(GogError):
    """No usable credentials for the requested account."""

    account: str = ""
    exit_code: int = field(default=EXIT_AUTH_REQUIRED, kw_only=True)


@dataclass
class NotFoundError(GogError):
    """A resource resolved locally (label name, file) does not exist."""

    exit_code: int = field(default=EXIT_NOT_FOUND, kw_only=True)


@dataclass
class CancelledError(GogError):
    """The user declined a confirmation prompt."""


@dataclass
class PaginationError(GogError):
    """The server returned a pagination sequence that never terminates."""
