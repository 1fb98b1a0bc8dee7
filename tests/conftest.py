"""Shared fixtures for gog tests."""

from __future__ import annotations

import pytest

from tests.fakes import FakeServiceFactory, build_fake_adapters

_GOG_ENV = (
    "GOG_ACCOUNT",
    "GOG_JSON",
    "GOG_PLAIN",
    "GOG_AUTO_JSON",
    "GOG_ENABLE_COMMANDS",
    "GOG_DISABLE_COMMANDS",
)


@pytest.fixture(autouse=True)
def temp_config_dir(tmp_path, monkeypatch):
    """Point GOG_CONFIG_DIR at a temp dir and clear ambient GOG_* settings."""
    config_dir = tmp_path / "gogcli"
    monkeypatch.setenv("GOG_CONFIG_DIR", str(config_dir))
    for key in _GOG_ENV:
        monkeypatch.delenv(key, raising=False)
    return config_dir


@pytest.fixture
def adapters():
    """Fake adapters; pass as ``obj=`` to ``runner.invoke``."""
    return build_fake_adapters()


@pytest.fixture
def services(adapters) -> FakeServiceFactory:
    """The fake service factory inside ``adapters``."""
    return adapters.services
