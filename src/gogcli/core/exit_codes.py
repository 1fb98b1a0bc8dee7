"""
Exit codes for the gog CLI.

Stable exit codes so scripts and agents can branch on exit status without
parsing human-oriented stderr. All commands MUST use these constants.

Exit Code Semantics:
  0: Success - command completed successfully
  1: Error - generic failure (local I/O, unmapped API errors)
  2: Usage Error - bad flags, invalid inputs, missing required args
  3: Empty Results - list command with --fail-empty returned nothing
  4: Auth Required - no credentials/token for the account
  5: Not Found - the API reported the resource does not exist
  6: Permission Denied - the API refused access
  7: Rate Limited - quota or rate limit exceeded
  8: Retryable - server error or timeout; safe to retry externally
  10: Config Error - missing or invalid local configuration
  130: Cancelled - user cancelled operation (SIGINT)

Note: Click/Typer argument parsing errors (EXIT_USAGE) occur before
commands run, so they emit to stderr without a JSON payload.
"""

from __future__ import annotations

import json
from typing import Any

# Success
EXIT_SUCCESS = 0

EXIT_ERROR = 1
EXIT_USAGE = 2  # Click default
EXIT_EMPTY_RESULTS = 3
EXIT_AUTH_REQUIRED = 4
EXIT_NOT_FOUND = 5
EXIT_PERMISSION_DENIED = 6
EXIT_RATE_LIMITED = 7
EXIT_RETRYABLE = 8
EXIT_CONFIG = 10

# Cancellation (SIGINT convention)
EXIT_CANCELLED = 130

# Map exception type names to exit codes.
# Matched by name so this module never has to import google client libraries.
EXIT_CODE_MAP = {
    # Usage errors
    "UsageError": EXIT_USAGE,
    "BadParameter": EXIT_USAGE,
    # Auth
    "AuthRequiredError": EXIT_AUTH_REQUIRED,
    "RefreshError": EXIT_AUTH_REQUIRED,
    "DefaultCredentialsError": EXIT_AUTH_REQUIRED,
    # Config
    "ConfigError": EXIT_CONFIG,
    # Not found
    "NotFoundError": EXIT_NOT_FOUND,
    # Transient failures
    "TimeoutError": EXIT_RETRYABLE,
    "TransportError": EXIT_RETRYABLE,
    # Cancellation
    "KeyboardInterrupt": EXIT_CANCELLED,
}

# Reasons Google reports on 403 responses that mean "slow down", not "forbidden".
_QUOTA_REASONS = frozenset(
    {
        "ratelimitexceeded",
        "userratelimitexceeded",
        "quotaexceeded",
        "dailylimitexceeded",
        "resourceexhausted",
    }
)


def stable_exit_codes() -> dict[str, int]:
    """Return the machine-readable exit code table."""
    return {
        "ok": EXIT_SUCCESS,
        "error": EXIT_ERROR,
        "usage": EXIT_USAGE,
        "empty_results": EXIT_EMPTY_RESULTS,
        "auth_required": EXIT_AUTH_REQUIRED,
        "not_found": EXIT_NOT_FOUND,
        "permission_denied": EXIT_PERMISSION_DENIED,
        "rate_limited": EXIT_RATE_LIMITED,
        "retryable": EXIT_RETRYABLE,
        "config": EXIT_CONFIG,
        "cancelled": EXIT_CANCELLED,
    }


def is_quota_or_rate_limit_reason(reason: str) -> bool:
    return reason.strip().lower() in _QUOTA_REASONS


def _body_reason(exc: Any) -> str:
    """Return ``error.errors[0].reason`` from a Google API error body."""
    content = getattr(exc, "content", None)
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    if not isinstance(content, str) or not content:
        return ""
    try:
        body = json.loads(content)
    except ValueError:
        return ""
    error = body.get("error") if isinstance(body, dict) else None
    errors = error.get("errors") if isinstance(error, dict) else None
    if not isinstance(errors, list) or not errors or not isinstance(errors[0], dict):
        return ""
    reason = errors[0].get("reason")
    return reason if isinstance(reason, str) else ""


def _http_error_reason(exc: Any) -> str:
    """Return the structured ``reason`` of a Google API error, if any.

    The legacy ``errors[].reason`` list carries the camelCase reasons
    (``rateLimitExceeded``) and is preferred over ``error.details``.
    """
    reason = _body_reason(exc)
    if reason:
        return reason
    details = getattr(exc, "error_details", None)
    if isinstance(details, list):
        for detail in details:
            if isinstance(detail, dict) and detail.get("reason"):
                return str(detail["reason"])
    reason = getattr(exc, "reason", "")
    return reason if isinstance(reason, str) else ""


def http_status(exc: Any) -> int | None:
    """Return the HTTP status code carried by a Google API error."""
    resp = getattr(exc, "resp", None)
    status = getattr(resp, "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def google_api_exit_code(exc: Any) -> int:
    """Map a ``googleapiclient.errors.HttpError`` to a stable exit code.

    Args:
        exc: The HttpError (or any object exposing ``resp.status``).

    Returns:
        The exit code, EXIT_ERROR when the status has no specific meaning.
    """
    status = http_status(exc)
    if status is None:
        return EXIT_ERROR

    if status == 401:
        return EXIT_AUTH_REQUIRED
    if status == 403:
        if is_quota_or_rate_limit_reason(_http_error_reason(exc)):
            return EXIT_RATE_LIMITED
        return EXIT_PERMISSION_DENIED
    if status == 404:
        return EXIT_NOT_FOUND
    if status == 429:
        return EXIT_RATE_LIMITED
    if status >= 500:
        return EXIT_RETRYABLE
    return EXIT_ERROR


def get_exit_code_for_exception(exc: BaseException) -> int:
    """Return the appropriate exit code for an exception.

    Errors that carry their own ``exit_code`` win. Google API errors are
    mapped by HTTP status. Otherwise walk up the exception's MRO to find a
    matching type in EXIT_CODE_MAP, falling back to EXIT_ERROR.

    Args:
        exc: The exception instance to map.

    Returns:
        The standardized exit code for the exception.
    """
    code = getattr(exc, "exit_code", None)
    if isinstance(code, int):
        return code

    for cls in type(exc).__mro__:
        if cls.__name__ == "HttpError":
            return google_api_exit_code(exc)
        if cls.__name__ in EXIT_CODE_MAP:
            return EXIT_CODE_MAP[cls.__name__]

    return EXIT_ERROR
