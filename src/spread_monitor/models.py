"""Shared data models for the spread monitor.

Prices are plain floats: the monitor displays spreads, it never settles money.
"""

from dataclasses import dataclass, field
from enum import Enum


class Market(str, Enum):
    """Which half of the price store a ticker belongs to."""

    SPOT = "spot"
    PERP = "perp"


@dataclass(frozen=True)
class Ticker:
    """Latest snapshot of a single trading pair on one market."""

    symbol: str  # exchange pair id, e.g. "BTCUSDT"
    price: float  # last traded price
    change_percent: float  # 24h change, informational only


@dataclass(frozen=True)
class SpreadRecord:
    """Spot vs perp price difference for one symbol within a ranking cycle."""

    symbol: str
    spot_price: float
    perp_price: float
    absolute_diff: float  # spot - perp
    percent_diff: float  # absolute_diff / perp * 100


@dataclass
class RankedSpreads:
    """Result of one ranking cycle, handed to the renderer as-is.

    positive is sorted descending by percent_diff, negative ascending
    (most negative first); both are already truncated to top_k.
    """

    positive: list[SpreadRecord] = field(default_factory=list)
    negative: list[SpreadRecord] = field(default_factory=list)
    total_pairs: int = 0
