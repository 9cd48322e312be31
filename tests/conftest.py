"""Shared test fixtures for the spread monitor."""

import pytest

from spread_monitor.config import AppSettings, MonitorSettings, StreamSettings
from spread_monitor.market_data.price_store import PriceStore


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with fast timings for tests."""
    return AppSettings(
        log_level="DEBUG",
        stream=StreamSettings(
            spot_url="wss://spot.test/ws",
            perp_url="wss://perp.test/ws",
            reconnect_delay=0.01,
        ),
        monitor=MonitorSettings(throttle_ms=20, top_k=10),
    )


@pytest.fixture
def price_store() -> PriceStore:
    """Fresh, empty PriceStore."""
    return PriceStore()

