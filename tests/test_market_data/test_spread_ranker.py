"""Tests for SpreadRanker -- spread formula, partitioning, ordering, truncation.

Verifies:
- percent_diff = (spot - perp) / perp * 100
- Positive list descending, negative list ascending (most negative first)
- Zero spreads and single-sided symbols excluded
- Lists truncated to top_k, ties keep spot iteration order
- Zero / negative / non-finite prices filtered before ranking
"""

import math

import pytest

from spread_monitor.market_data.spread_ranker import (
    SpreadRanker,
    compute_spread,
    join_spreads,
)
from spread_monitor.models import Ticker


def _ticker(symbol: str, price: float) -> Ticker:
    return Ticker(symbol=symbol, price=price, change_percent=0.0)


def _books(pairs: dict[str, tuple[float, float]]) -> tuple[dict, dict]:
    """Build (spot, perp) books from {symbol: (spot_price, perp_price)}."""
    spot = {s: _ticker(s, sp) for s, (sp, _) in pairs.items()}
    perp = {s: _ticker(s, pp) for s, (_, pp) in pairs.items()}
    return spot, perp


@pytest.fixture
def ranker() -> SpreadRanker:
    return SpreadRanker(top_k=10)


class TestComputeSpread:
    def test_positive_spread(self) -> None:
        record = compute_spread(_ticker("BTCUSDT", 100.0), _ticker("BTCUSDT", 99.0))
        assert record is not None
        assert record.absolute_diff == pytest.approx(1.0)
        assert record.percent_diff == pytest.approx(1.0101010101)

    def test_negative_spread(self) -> None:
        record = compute_spread(_ticker("ETHUSDT", 50.0), _ticker("ETHUSDT", 51.0))
        assert record is not None
        assert record.absolute_diff == pytest.approx(-1.0)
        assert record.percent_diff == pytest.approx(-1.9607843137)

    @pytest.mark.parametrize("perp_price", [0.0, -1.0, math.inf, math.nan])
    def test_unusable_perp_price_dropped(self, perp_price: float) -> None:
        assert compute_spread(_ticker("X", 1.0), _ticker("X", perp_price)) is None

    def test_non_finite_spot_price_dropped(self) -> None:
        assert compute_spread(_ticker("X", math.nan), _ticker("X", 1.0)) is None


class TestJoin:
    def test_only_common_symbols(self) -> None:
        spot = {"BTCUSDT": _ticker("BTCUSDT", 100.0), "AAAUSDT": _ticker("AAAUSDT", 10.0)}
        perp = {"BTCUSDT": _ticker("BTCUSDT", 99.0), "ZZZUSDT": _ticker("ZZZUSDT", 1.0)}
        assert [r.symbol for r in join_spreads(spot, perp)] == ["BTCUSDT"]

    def test_follows_spot_order(self) -> None:
        spot, perp = _books({"CUSDT": (1, 1), "AUSDT": (1, 1), "BUSDT": (1, 1)})
        perp = dict(reversed(list(perp.items())))
        assert [r.symbol for r in join_spreads(spot, perp)] == [
            "CUSDT",
            "AUSDT",
            "BUSDT",
        ]


class TestRank:
    def test_btc_positive_first(self, ranker: SpreadRanker) -> None:
        ranked = ranker.rank(*_books({"BTCUSDT": (100.0, 99.0)}))
        assert [r.symbol for r in ranked.positive] == ["BTCUSDT"]
        assert ranked.positive[0].percent_diff == pytest.approx(1.0101, abs=1e-4)
        assert ranked.negative == []

    def test_eth_negative_first(self, ranker: SpreadRanker) -> None:
        ranked = ranker.rank(*_books({"ETHUSDT": (50.0, 51.0)}))
        assert [r.symbol for r in ranked.negative] == ["ETHUSDT"]
        assert ranked.negative[0].percent_diff == pytest.approx(-1.9608, abs=1e-4)
        assert ranked.positive == []

    def test_unmatched_symbol_excluded(self, ranker: SpreadRanker) -> None:
        spot = {"AAAUSDT": _ticker("AAAUSDT", 10.0)}
        ranked = ranker.rank(spot, {})
        assert ranked.positive == []
        assert ranked.negative == []
        assert ranked.total_pairs == 0

    def test_empty_books(self, ranker: SpreadRanker) -> None:
        ranked = ranker.rank({}, {})
        assert ranked.positive == []
        assert ranked.negative == []
        assert ranked.total_pairs == 0

    def test_zero_spread_in_neither_list(self, ranker: SpreadRanker) -> None:
        ranked = ranker.rank(*_books({"FLATUSDT": (10.0, 10.0)}))
        assert ranked.positive == []
        assert ranked.negative == []
        assert ranked.total_pairs == 1

    def test_truncates_to_top_k(self, ranker: SpreadRanker) -> None:
        pairs = {f"S{i:02d}USDT": (100.0 + i + 1, 100.0) for i in range(15)}
        ranked = ranker.rank(*_books(pairs))
        assert len(ranked.positive) == 10
        assert ranked.negative == []
        assert ranked.total_pairs == 15
        # largest spreads kept
        assert ranked.positive[0].symbol == "S14USDT"
        assert ranked.positive[-1].symbol == "S05USDT"

    def test_ordering(self, ranker: SpreadRanker) -> None:
        pairs = {
            "AUSDT": (101.0, 100.0),
            "BUSDT": (99.0, 100.0),
            "CUSDT": (103.0, 100.0),
            "DUSDT": (95.0, 100.0),
            "EUSDT": (102.0, 100.0),
            "FUSDT": (98.0, 100.0),
        }
        ranked = ranker.rank(*_books(pairs))
        assert [r.symbol for r in ranked.positive] == ["CUSDT", "EUSDT", "AUSDT"]
        assert [r.symbol for r in ranked.negative] == ["DUSDT", "FUSDT", "BUSDT"]

        pos = [r.percent_diff for r in ranked.positive]
        neg = [r.percent_diff for r in ranked.negative]
        assert pos == sorted(pos, reverse=True)
        assert neg == sorted(neg)

    def test_ties_keep_spot_order(self, ranker: SpreadRanker) -> None:
        pairs = {
            "ZUSDT": (101.0, 100.0),
            "AUSDT": (101.0, 100.0),
            "MUSDT": (101.0, 100.0),
            "NEG2USDT": (99.0, 100.0),
            "NEG1USDT": (99.0, 100.0),
        }
        ranked = ranker.rank(*_books(pairs))
        assert [r.symbol for r in ranked.positive] == ["ZUSDT", "AUSDT", "MUSDT"]
        assert [r.symbol for r in ranked.negative] == ["NEG2USDT", "NEG1USDT"]

    def test_zero_perp_price_filtered(self, ranker: SpreadRanker) -> None:
        ranked = ranker.rank(*_books({"BADUSDT": (1.0, 0.0), "BTCUSDT": (100.0, 99.0)}))
        assert [r.symbol for r in ranked.positive] == ["BTCUSDT"]
        assert ranked.total_pairs == 1

    def test_deterministic_and_idempotent(self, ranker: SpreadRanker) -> None:
        pairs = {f"S{i}USDT": (100.0 + (i % 7) - 3, 100.0) for i in range(30)}
        spot, perp = _books(pairs)
        first = ranker.rank(spot, perp)
        second = ranker.rank(spot, perp)
        assert first == second
        # inputs untouched
        assert len(spot) == 30
        assert len(perp) == 30

    def test_custom_top_k(self) -> None:
        pairs = {f"S{i}USDT": (99.0 - i, 100.0) for i in range(5)}
        ranked = SpreadRanker(top_k=2).rank(*_books(pairs))
        assert [r.symbol for r in ranked.negative] == ["S4USDT", "S3USDT"]

    def test_negative_top_k_rejected(self) -> None:
        with pytest.raises(ValueError):
            SpreadRanker(top_k=-1)
