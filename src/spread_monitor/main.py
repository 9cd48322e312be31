"""Entry point for the spot vs perpetual spread monitor.

Wires all components together and runs until interrupted.

Component wiring order (in _build_components):
1. PriceStore (shared spot/perp books)
2. SpreadRanker (top-K spread selection)
3. ConsoleRenderer (terminal output)
4. SpreadMonitor (recompute path + UpdateScheduler)
5. FeedConnector x2 (spot, perp), each signalling the scheduler

Handles SIGINT/SIGTERM for shutdown.
"""

import asyncio
import signal
from typing import Any

from spread_monitor.config import AppSettings
from spread_monitor.display.renderer import ConsoleRenderer
from spread_monitor.logging import get_logger, setup_logging
from spread_monitor.market_data.feed_connector import FeedConnector
from spread_monitor.market_data.price_store import PriceStore
from spread_monitor.market_data.spread_ranker import SpreadRanker
from spread_monitor.models import Market
from spread_monitor.monitor import SpreadMonitor


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all monitor components from settings.

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    store = PriceStore()
    ranker = SpreadRanker(top_k=settings.monitor.top_k)
    renderer = ConsoleRenderer(top_k=settings.monitor.top_k)
    monitor = SpreadMonitor(
        store=store,
        ranker=ranker,
        renderer=renderer,
        throttle_ms=settings.monitor.throttle_ms,
    )

    urls = {
        Market.SPOT: settings.stream.spot_url,
        Market.PERP: settings.stream.perp_url,
    }
    for market, url in urls.items():
        monitor.add_connector(
            FeedConnector(
                market=market,
                url=url,
                store=store,
                on_batch=monitor.scheduler.notify,
                quote_asset=settings.stream.quote_asset,
                reconnect_delay=settings.stream.reconnect_delay,
                ping_interval=settings.stream.ping_interval,
            )
        )

    return {
        "store": store,
        "ranker": ranker,
        "renderer": renderer,
        "monitor": monitor,
    }


def _setup_signal_handlers(monitor: SpreadMonitor) -> None:
    """Register SIGINT/SIGTERM to stop the monitor.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("spread_monitor.main")
    loop = asyncio.get_running_loop()

    def _shutdown_handler() -> None:
        logger.info("shutdown_signal")
        asyncio.create_task(monitor.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _shutdown_handler)


async def run() -> None:
    """Run the spread monitor until interrupted."""
    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("spread_monitor.main")

    # 3. Build all components
    components = _build_components(settings)
    monitor: SpreadMonitor = components["monitor"]

    _setup_signal_handlers(monitor)

    logger.info(
        "starting_spread_monitor",
        spot_url=settings.stream.spot_url,
        perp_url=settings.stream.perp_url,
        quote_asset=settings.stream.quote_asset,
        throttle_ms=settings.monitor.throttle_ms,
    )
    components["renderer"].show_banner()

    await monitor.start()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
