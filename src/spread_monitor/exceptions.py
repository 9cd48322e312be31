"""Custom exceptions for the spread monitor.

None of these are fatal to the process: the feed connectors catch them,
log, and keep streaming.
"""


class MonitorError(Exception):
    """Base exception for all monitor errors."""


class TickerParseError(MonitorError):
    """Raised when a single raw ticker record cannot be converted to a Ticker."""


class MalformedBatchError(MonitorError):
    """Raised when an inbound stream message is not a ticker batch at all."""
