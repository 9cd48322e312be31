"""Feed connector -- streams all-market ticker batches over a websocket.

Each inbound message is a JSON array with one raw ticker per symbol listed
on the market. The connector keeps pairs quoted in a single asset, upserts
them into its half of the PriceStore, and signals the scheduler once per
message (not once per ticker), so signal volume follows message rate.

BINANCE TICKER FIELDS: "s" symbol, "c" last price, "P" 24h change percent.
Prices arrive as numeric strings.

Disconnects never clear the store: stale prices stay visible until the
reconnected stream overwrites them.
"""

import asyncio
import json
import math

from collections.abc import Callable
from typing import Any

import websockets
from websockets.exceptions import WebSocketException

from spread_monitor.exceptions import MalformedBatchError, TickerParseError
from spread_monitor.logging import get_logger
from spread_monitor.market_data.price_store import PriceStore
from spread_monitor.models import Market, Ticker

logger = get_logger(__name__)


def parse_ticker(raw: Any) -> Ticker:
    """Convert one raw ticker record into a Ticker.

    Raises:
        TickerParseError: If a field is missing or not a finite number.
    """
    try:
        symbol = raw["s"]
        price = float(raw["c"])
        change_percent = float(raw["P"])
    except (KeyError, TypeError, ValueError) as e:
        raise TickerParseError(f"unparseable ticker record: {raw!r}") from e

    if not isinstance(symbol, str) or not symbol:
        raise TickerParseError(f"invalid symbol in ticker record: {raw!r}")
    if not (math.isfinite(price) and math.isfinite(change_percent)):
        raise TickerParseError(f"non-finite value in ticker record: {raw!r}")

    return Ticker(symbol=symbol, price=price, change_percent=change_percent)


def parse_batch(
    message: str | bytes, quote_asset: str
) -> tuple[list[Ticker], list[str]]:
    """Parse one stream message into Tickers quoted in quote_asset.

    Records for other quote assets are ignored. Records that match the
    quote asset but fail numeric parsing are reported, not raised.

    Returns:
        (tickers, failed_symbols)

    Raises:
        MalformedBatchError: If the message is not a JSON array.
    """
    try:
        payload = json.loads(message)
    except (TypeError, ValueError, RecursionError) as e:
        # RecursionError: nesting deeper than the decoder allows
        raise MalformedBatchError("message is not valid JSON") from e

    if not isinstance(payload, list):
        raise MalformedBatchError(
            f"expected a ticker array, got {type(payload).__name__}"
        )

    tickers: list[Ticker] = []
    failed: list[str] = []

    for raw in payload:
        symbol = raw.get("s") if isinstance(raw, dict) else None
        if not isinstance(symbol, str) or not symbol.endswith(quote_asset):
            continue
        try:
            tickers.append(parse_ticker(raw))
        except TickerParseError:
            failed.append(symbol)

    return tickers, failed


class FeedConnector:
    """Keeps one market's ticker stream connected and feeds the PriceStore.

    Args:
        market: Which half of the store this connector owns.
        url: Websocket endpoint delivering ticker arrays.
        store: Shared price store.
        on_batch: Called once after each successfully parsed message.
        quote_asset: Suffix a symbol must carry to be tracked.
        reconnect_delay: Fixed delay in seconds before reconnecting.
        ping_interval: Websocket keepalive interval in seconds.
        connect: Websocket connect factory (injectable for tests).
    """

    def __init__(
        self,
        market: Market,
        url: str,
        store: PriceStore,
        on_batch: Callable[[], None],
        quote_asset: str = "USDT",
        reconnect_delay: float = 5.0,
        ping_interval: float = 20.0,
        connect: Callable[..., Any] = websockets.connect,
    ) -> None:
        self._market = market
        self._url = url
        self._store = store
        self._on_batch = on_batch
        self._quote_asset = quote_asset
        self._reconnect_delay = reconnect_delay
        self._ping_interval = ping_interval
        self._connect = connect
        self._log = logger.bind(market=market.value)
        self._running = False
        self._connected = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._connection_attempts = 0
        self._messages_received = 0

    @property
    def market(self) -> Market:
        return self._market

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def connection_attempts(self) -> int:
        return self._connection_attempts

    @property
    def messages_received(self) -> int:
        return self._messages_received

    async def start(self) -> None:
        """Begin streaming in the background."""
        if self._running:
            self._log.warning("feed_connector_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._stream_loop())
        self._log.info("feed_connector_started", url=self._url)

    async def stop(self) -> None:
        """Stop streaming and close the connection."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._connected = False
        self._log.info("feed_connector_stopped")

    async def _stream_loop(self) -> None:
        """Connect, receive until the connection drops, wait, repeat forever."""
        while self._running:
            self._connection_attempts += 1
            try:
                async with self._connect(
                    self._url, ping_interval=self._ping_interval
                ) as ws:
                    self._connected = True
                    self._log.info(
                        "feed_connected", attempt=self._connection_attempts
                    )
                    async for message in ws:
                        await self.handle_message(message)
                self._log.warning("feed_disconnected", reason="closed")
            except asyncio.CancelledError:
                raise
            except (WebSocketException, OSError, asyncio.TimeoutError) as e:
                self._log.warning(
                    "feed_disconnected", reason=type(e).__name__, error=str(e)
                )
            except Exception:
                self._log.warning("feed_stream_error", exc_info=True)
            finally:
                self._connected = False

            if self._running:
                self._log.info("feed_reconnecting", delay=self._reconnect_delay)
                await asyncio.sleep(self._reconnect_delay)

    async def handle_message(self, message: str | bytes) -> None:
        """Parse one stream message, upsert its tickers, and signal once.

        A malformed message is logged and dropped without signalling.
        """
        self._messages_received += 1
        try:
            tickers, failed = parse_batch(message, self._quote_asset)
        except MalformedBatchError as e:
            self._log.warning("malformed_batch", error=str(e), cause=repr(e.__cause__))
            return

        if failed:
            self._log.warning(
                "ticker_parse_failed", count=len(failed), symbols=failed[:5]
            )

        await self._store.upsert_many(self._market, tickers)
        self._on_batch()
