import asyncio
from typing import Any, Dict, Iterable, Optional, Tuple

import aiohttp

from ...domain.models import BookLevel, Order, OrderBookSnapshot, PricePoint
from ...infrastructure.clock import Clock, SystemClock
from ...infrastructure.logging import get_logger
from ...ports.broker import BrokerPort
from ...ports.errors import VenueError
from ...ports.market_data import MarketDataPort

logger = get_logger(__name__)

LIVE_BASE_URL = "https://api.binance.com"
TESTNET_BASE_URL = "https://testnet.binance.vision"


def parse_levels(raw_levels: Iterable[Any]) -> Tuple[BookLevel, ...]:
    """Convert ``[["price", "qty"], ...]`` string pairs into float tuples."""
    levels = []
    for raw in raw_levels:
        try:
            levels.append((float(raw[0]), float(raw[1])))
        except (TypeError, ValueError, IndexError) as exc:
            raise VenueError(f"Failed to parse book level {raw!r}: {exc}") from exc
    return tuple(levels)


def parse_orderbook(symbol: str, payload: Dict[str, Any], timestamp: int) -> OrderBookSnapshot:
    try:
        bids = payload["bids"]
        asks = payload["asks"]
    except (KeyError, TypeError) as exc:
        raise VenueError(f"Malformed order book for {symbol}: {exc}") from exc
    return OrderBookSnapshot(
        symbol=symbol,
        bids=parse_levels(bids),
        asks=parse_levels(asks),
        timestamp=timestamp,
    )


class BinanceVenue(MarketDataPort, BrokerPort):
    """REST client for Binance spot market data with a simulated order path.

    Order submission is only honoured in simulation mode; live mode refuses every
    order until real routing is implemented. ``secret_key`` is kept for the signed
    order endpoints that live routing will need. Request signing is out of scope
    while no order reaches the venue, so only public market data calls go out.

    One ``aiohttp.ClientSession`` is opened lazily on the first request and
    reused until ``close`` is called.
    """

    SIMULATED_SUBMIT_DELAY = 0.05
    ORDERBOOK_DEPTH = 10

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        base_url: str,
        simulation: bool,
        timeout: float = 10.0,
        clock: Optional[Clock] = None,
    ) -> None:
        self.api_key = api_key
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.simulation = simulation
        self.timeout = timeout
        self.clock = clock or SystemClock()
        self._session: Optional[aiohttp.ClientSession] = None

    async def get_price(self, symbol: str) -> PricePoint:
        payload = await self._get("/api/v3/ticker/price", {"symbol": symbol})
        try:
            price = float(payload["price"])
            reported_symbol = payload.get("symbol", symbol)
        except (KeyError, TypeError, ValueError) as exc:
            raise VenueError(f"Failed to parse price for {symbol}: {exc}") from exc

        try:
            volume = await self._get_24hr_volume(symbol)
        except VenueError as exc:
            logger.warning("volume_fetch_failed", symbol=symbol, error=str(exc))
            volume = 0.0

        return PricePoint(
            symbol=reported_symbol,
            price=price,
            timestamp=self.clock.now(),
            volume=volume,
        )

    async def get_orderbook(self, symbol: str) -> OrderBookSnapshot:
        payload = await self._get(
            "/api/v3/depth", {"symbol": symbol, "limit": str(self.ORDERBOOK_DEPTH)}
        )
        return parse_orderbook(symbol, payload, self.clock.now())

    async def submit_order(self, order: Order) -> str:
        if not self.simulation:
            logger.warning("live_trading_disabled", order_id=order.id, symbol=order.symbol)
            raise VenueError("Live trading not implemented yet for safety")

        logger.info(
            "simulated_order_submit",
            order_id=order.id,
            symbol=order.symbol,
            side=order.side,
            quantity=order.quantity,
        )
        await asyncio.sleep(self.SIMULATED_SUBMIT_DELAY)
        return f"testnet_{order.id}"

    async def cancel_order(self, order_id: str) -> None:
        if not self.simulation:
            raise VenueError("Live trading not implemented yet for safety")
        logger.info("simulated_order_cancel", order_id=order_id)

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"X-MBX-APIKEY": self.api_key},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def _get_24hr_volume(self, symbol: str) -> float:
        payload = await self._get("/api/v3/ticker/24hr", {"symbol": symbol})
        try:
            return float(payload["volume"])
        except (KeyError, TypeError, ValueError) as exc:
            raise VenueError(f"Failed to parse volume for {symbol}: {exc}") from exc

    async def _get(self, path: str, params: Dict[str, str]) -> Any:
        url = f"{self.base_url}{path}"
        session = self._get_session()
        try:
            async with session.get(url, params=params) as response:
                if response.status != 200:
                    raise VenueError(f"API error: {response.status} for {path}")
                return await response.json()
        except aiohttp.ClientError as exc:
            raise VenueError(f"Request failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise VenueError(f"Request timed out: {path}") from exc
        except ValueError as exc:
            raise VenueError(f"Failed to parse response: {exc}") from exc
