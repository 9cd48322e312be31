"""Configuration system using pydantic-settings with environment variable loading.

Every default reproduces the monitor's stock behavior, so running with an
empty environment tracks Binance spot vs USD-M perpetual USDT pairs.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class StreamSettings(BaseSettings):
    """Market data stream endpoints and connection behavior."""

    model_config = SettingsConfigDict(env_prefix="STREAM_")

    spot_url: str = "wss://stream.binance.com:9443/ws/!ticker@arr"
    perp_url: str = "wss://fstream.binance.com/ws/!ticker@arr"
    quote_asset: str = "USDT"  # only pairs quoted in this asset are tracked
    reconnect_delay: float = 5.0  # fixed, no backoff growth
    ping_interval: float = 20.0


class MonitorSettings(BaseSettings):
    """Spread ranking and refresh parameters."""

    model_config = SettingsConfigDict(env_prefix="MONITOR_")

    throttle_ms: int = 200  # minimum spacing between recomputations
    top_k: int = 10  # rows per ranked list


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"  # LOG_FORMAT
    stream: StreamSettings = StreamSettings()
    monitor: MonitorSettings = MonitorSettings()
