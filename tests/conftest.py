"""
Pytest configuration and shared fixtures

- in-memory row store (no database needed for service tests)
- manual clock for deterministic TTL assertions
- settings cache factory wired to the in-memory store
"""

from __future__ import annotations

import os

# Must be set before admin_console.core.config is imported.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest

from admin_console.services.app_settings_service import load_app_settings, load_phase_levels
from admin_console.services.row_store import InMemoryRowStore
from admin_console.services.settings_cache import SettingsCache
from admin_console.services.site_mode_service import SiteModeService


class ManualClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store() -> InMemoryRowStore:
    return InMemoryRowStore()


@pytest.fixture
def service(store) -> SiteModeService:
    return SiteModeService(store)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def make_cache(store, clock):
    """Build a SettingsCache over `store`; loader calls are counted by the store."""

    def _make(**kwargs) -> SettingsCache:
        kwargs.setdefault("ttl_seconds", 300)
        kwargs.setdefault("clock", clock)
        return SettingsCache(
            lambda: load_app_settings(store),
            lambda: load_phase_levels(store),
            **kwargs,
        )

    return _make
