"""Shared in-memory price store for spot and perpetual tickers.

Holds one symbol -> Ticker mapping per market. Each feed connector writes
only its own half; the spread ranker reads both. Every half is guarded by
its own asyncio.Lock, so a snapshot of one market never observes a partially
applied batch, while the two halves are free to drift relative to each other.
"""

import asyncio

from collections.abc import Iterable

from spread_monitor.market_data.spread_ranker import join_spreads
from spread_monitor.models import Market, SpreadRecord, Ticker


class _MarketBook:
    """One half of the store: symbol -> latest Ticker plus its lock."""

    def __init__(self) -> None:
        self.tickers: dict[str, Ticker] = {}
        self.lock = asyncio.Lock()


class PriceStore:
    """Last-write-wins ticker cache, one independently locked book per market.

    Entries are added the first time a symbol is seen and are never removed;
    a disconnected feed leaves its last known prices in place until fresh
    data overwrites them.
    """

    def __init__(self) -> None:
        self._books: dict[Market, _MarketBook] = {
            market: _MarketBook() for market in Market
        }

    async def upsert(self, market: Market, ticker: Ticker) -> None:
        """Store the latest ticker for a symbol, replacing any previous one."""
        book = self._books[market]
        async with book.lock:
            book.tickers[ticker.symbol] = ticker

    async def upsert_many(self, market: Market, tickers: Iterable[Ticker]) -> int:
        """Apply a whole batch under a single lock acquisition.

        Returns:
            Number of tickers written.
        """
        book = self._books[market]
        count = 0
        async with book.lock:
            for ticker in tickers:
                book.tickers[ticker.symbol] = ticker
                count += 1
        return count

    async def get(self, market: Market, symbol: str) -> Ticker | None:
        """Return the cached ticker for a symbol, or None if never seen."""
        book = self._books[market]
        async with book.lock:
            return book.tickers.get(symbol)

    async def snapshot(self, market: Market) -> dict[str, Ticker]:
        """Return a point-in-time copy of one market's book.

        The copy preserves insertion order, which the ranker relies on for
        tie-breaking.
        """
        book = self._books[market]
        async with book.lock:
            return dict(book.tickers)

    async def count(self, market: Market) -> int:
        """Return the number of symbols tracked for a market."""
        book = self._books[market]
        async with book.lock:
            return len(book.tickers)

    async def snapshot_join(self) -> list[SpreadRecord]:
        """Join both halves on symbol and return one SpreadRecord per match.

        The halves are snapshotted one after the other, not atomically; a
        record may pair a spot price with a slightly older perp price.
        Records with a non-positive perp price are skipped.
        """
        spot = await self.snapshot(Market.SPOT)
        perp = await self.snapshot(Market.PERP)
        return join_spreads(spot, perp)
