"""Helpers for executing googleapiclient requests."""

from __future__ import annotations

import logging
from typing import Any

from googleapiclient.errors import HttpError

from .core.exit_codes import http_status

logger = logging.getLogger(__name__)


def execute(request: Any) -> Any:
    """Run a prepared API request, logging it at debug level."""
    logger.debug(
        "%s %s",
        getattr(request, "method", "?"),
        getattr(request, "uri", request),
    )
    return request.execute()


def execute_delete(request: Any) -> bool:
    """Run a delete request; a 404 means it was already gone.

    Returns True when the resource was deleted, False when it did not exist.
    """
    try:
        execute(request)
    except HttpError as e:
        if http_status(e) == 404:
            logger.debug("delete target not found: %s", e)
            return False
        raise
    return True


def is_not_found(exc: BaseException) -> bool:
    return isinstance(exc, HttpError) and http_status(exc) == 404
