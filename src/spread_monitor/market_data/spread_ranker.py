"""Spread ranking engine for spot vs perpetual prices.

Joins the spot and perp books on symbol and ranks the resulting spreads.

Core formula:
  absolute_diff = spot_price - perp_price
  percent_diff  = absolute_diff / perp_price * 100

Positive spreads (spot above perp) are ranked descending, negative spreads
(perp above spot) ascending so the most negative comes first. A spread of
exactly zero appears in neither list.
"""

import math

from collections.abc import Mapping

from spread_monitor.logging import get_logger
from spread_monitor.models import RankedSpreads, SpreadRecord, Ticker

logger = get_logger(__name__)

DEFAULT_TOP_K = 10


def compute_spread(spot: Ticker, perp: Ticker) -> SpreadRecord | None:
    """Build the SpreadRecord for one symbol, or None for unusable prices.

    A perp price that is zero, negative, or non-finite would put inf/NaN
    into the sort, so such pairs are dropped here.
    """
    if not (math.isfinite(spot.price) and math.isfinite(perp.price)):
        return None
    if perp.price <= 0:
        return None

    diff = spot.price - perp.price
    return SpreadRecord(
        symbol=spot.symbol,
        spot_price=spot.price,
        perp_price=perp.price,
        absolute_diff=diff,
        percent_diff=diff / perp.price * 100,
    )


def join_spreads(
    spot: Mapping[str, Ticker], perp: Mapping[str, Ticker]
) -> list[SpreadRecord]:
    """Return a SpreadRecord for every symbol present in both books.

    Output follows the iteration order of the spot mapping. Symbols found
    in only one book are skipped silently.
    """
    records: list[SpreadRecord] = []
    skipped = 0

    for symbol, spot_ticker in spot.items():
        perp_ticker = perp.get(symbol)
        if perp_ticker is None:
            continue

        record = compute_spread(spot_ticker, perp_ticker)
        if record is None:
            skipped += 1
            continue
        records.append(record)

    if skipped:
        logger.debug("spread_records_skipped", count=skipped, reason="invalid_price")

    return records


class SpreadRanker:
    """Selects the top-K positive and negative spreads.

    Args:
        top_k: Maximum number of rows in each ranked list.
    """

    def __init__(self, top_k: int = DEFAULT_TOP_K) -> None:
        if top_k < 0:
            raise ValueError(f"top_k must be non-negative, got {top_k}")
        self._top_k = top_k

    @property
    def top_k(self) -> int:
        return self._top_k

    def rank(
        self, spot: Mapping[str, Ticker], perp: Mapping[str, Ticker]
    ) -> RankedSpreads:
        """Rank spreads from two book snapshots.

        Pure function of its inputs: neither mapping is modified, and equal
        inputs always produce identical ordered lists. Ties keep the spot
        iteration order (sorted() is stable, including with reverse=True).

        Args:
            spot: symbol -> Ticker snapshot of the spot market.
            perp: symbol -> Ticker snapshot of the perpetual market.

        Returns:
            RankedSpreads with both lists truncated to top_k and the count
            of matched pairs.
        """
        return self.rank_records(join_spreads(spot, perp))

    def rank_records(self, records: list[SpreadRecord]) -> RankedSpreads:
        """Partition, sort, and truncate already-joined spread records."""
        positive = sorted(
            (r for r in records if r.percent_diff > 0),
            key=lambda r: r.percent_diff,
            reverse=True,
        )
        negative = sorted(
            (r for r in records if r.percent_diff < 0),
            key=lambda r: r.percent_diff,
        )

        return RankedSpreads(
            positive=positive[: self._top_k],
            negative=negative[: self._top_k],
            total_pairs=len(records),
        )
