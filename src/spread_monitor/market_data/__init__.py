"""Market data layer -- ticker streaming, shared price store, throttling, and spread ranking."""

from spread_monitor.market_data.feed_connector import FeedConnector
from spread_monitor.market_data.price_store import PriceStore
from spread_monitor.market_data.spread_ranker import SpreadRanker
from spread_monitor.market_data.update_scheduler import UpdateScheduler

__all__ = ["FeedConnector", "PriceStore", "SpreadRanker", "UpdateScheduler"]
