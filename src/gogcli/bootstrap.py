"""Composition root wiring gog adapters."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from gogcli.adapters.google_discovery import DiscoveryServiceFactory
from gogcli.ports.google_services import ServiceFactory


@dataclass(frozen=True)
class DefaultAdapters:
    """Container for default adapter instances."""

    services: ServiceFactory


@lru_cache(maxsize=1)
def get_default_adapters() -> DefaultAdapters:
    """Return the default adapter wiring for gog."""

    return DefaultAdapters(services=DiscoveryServiceFactory())
