"""Test fakes for gog ports."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

from googleapiclient.errors import HttpError

from gogcli.bootstrap import DefaultAdapters


class FakeServiceFactory:
    """ServiceFactory returning one MagicMock per API and recording every build."""

    def __init__(self) -> None:
        self.services: dict[str, MagicMock] = {}
        self.builds: list[tuple[str, str, str]] = []

    def service(self, api: str) -> MagicMock:
        """The mock that ``build(api, ...)`` will return; configure it before invoking."""
        if api not in self.services:
            self.services[api] = MagicMock(name=f"{api}-service")
        return self.services[api]

    def build(self, api: str, version: str, account: str) -> Any:
        self.builds.append((api, version, account))
        return self.service(api)


def build_fake_adapters() -> DefaultAdapters:
    """Return default adapters wired with fakes."""
    return DefaultAdapters(services=FakeServiceFactory())


def http_error(
    status: int, reason: str = "", message: str = "error", details: list[dict[str, Any]] | None = None
) -> HttpError:
    """Build a googleapiclient HttpError with an optional structured reason."""
    resp = MagicMock()
    resp.status = status
    resp.reason = message
    error: dict[str, Any] = {"code": status, "message": message}
    if reason:
        error["errors"] = [{"reason": reason, "message": message}]
    if details:
        error["details"] = details
    return HttpError(resp, json.dumps({"error": error}).encode("utf-8"))
