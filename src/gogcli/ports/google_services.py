"""Google service factory port definition."""

from __future__ import annotations

from typing import Any, Protocol


class ServiceFactory(Protocol):
    """Open an authenticated Google API service session for an account."""

    def build(self, api: str, version: str, account: str) -> Any:
        """Return a discovery resource for ``api``/``version`` acting as ``account``."""
