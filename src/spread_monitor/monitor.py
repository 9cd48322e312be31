"""Spread monitor -- wires feeds, store, throttle, ranker, and renderer.

Data flow:
  FeedConnector -> PriceStore (write) -> UpdateScheduler.notify()
  UpdateScheduler fire -> recompute(): PriceStore.snapshot_join(), rank, render

The monitor runs until stop() is called or the process is terminated.
No feed failure is fatal; the view just shows fewer pairs while a feed is
reconnecting.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from spread_monitor.logging import get_logger
from spread_monitor.market_data.feed_connector import FeedConnector
from spread_monitor.market_data.price_store import PriceStore
from spread_monitor.market_data.spread_ranker import SpreadRanker
from spread_monitor.market_data.update_scheduler import UpdateScheduler
from spread_monitor.models import RankedSpreads

logger = get_logger(__name__)


class Renderer(Protocol):
    """Anything that can draw one ranked result."""

    def render(self, ranked: RankedSpreads) -> None: ...


class SpreadMonitor:
    """Owns the recomputation path and the lifecycle of both feeds.

    Args:
        store: Shared price store written by the connectors.
        ranker: Spread ranker applied on every fire.
        renderer: Receives each ranked result.
        throttle_ms: Minimum spacing between recomputations.
    """

    def __init__(
        self,
        store: PriceStore,
        ranker: SpreadRanker,
        renderer: Renderer,
        throttle_ms: int = 200,
    ) -> None:
        self._store = store
        self._ranker = ranker
        self._renderer = renderer
        self._scheduler = UpdateScheduler(self.recompute, throttle_ms=throttle_ms)
        self._connectors: list[FeedConnector] = []
        self._stopped = asyncio.Event()
        self._last_ranked: RankedSpreads | None = None

    @property
    def scheduler(self) -> UpdateScheduler:
        return self._scheduler

    @property
    def connectors(self) -> list[FeedConnector]:
        return list(self._connectors)

    @property
    def last_ranked(self) -> RankedSpreads | None:
        """Most recent ranked result, or None before the first fire."""
        return self._last_ranked

    def add_connector(self, connector: FeedConnector) -> None:
        self._connectors.append(connector)

    async def recompute(self) -> None:
        """Rank the current store contents and hand the result to the renderer.

        Each book is snapshotted under its own lock; the two snapshots are
        not taken atomically together.
        """
        records = await self._store.snapshot_join()
        ranked = self._ranker.rank_records(records)
        self._last_ranked = ranked
        self._renderer.render(ranked)

    async def start(self) -> None:
        """Start every feed, then block until stop() is called."""
        logger.info("spread_monitor_starting", feeds=len(self._connectors))
        self._stopped.clear()
        for connector in self._connectors:
            await connector.start()

        try:
            await self._stopped.wait()
        finally:
            for connector in self._connectors:
                await connector.stop()
            await self._scheduler.stop()
            logger.info("spread_monitor_stopped")

    async def stop(self) -> None:
        """Signal start() to return."""
        logger.info("spread_monitor_stopping")
        self._stopped.set()
