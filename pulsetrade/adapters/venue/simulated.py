import asyncio
from collections import defaultdict, deque
from typing import DefaultDict, Deque, Dict, Iterable, List, Optional, Set

from ...domain.models import Order, OrderBookSnapshot, PricePoint
from ...infrastructure.clock import Clock, SystemClock
from ...ports.broker import BrokerPort
from ...ports.errors import VenueError
from ...ports.market_data import MarketDataPort


class SimulatedVenue(MarketDataPort, BrokerPort):
    """In-memory venue with scripted prices, used for tests and offline runs.

    Scripted prices are served in order; once a symbol's script runs out the
    last served price is repeated.
    """

    def __init__(self, clock: Optional[Clock] = None, submit_delay: float = 0.0) -> None:
        self.clock = clock or SystemClock()
        self.submit_delay = submit_delay
        self._scripts: DefaultDict[str, Deque[PricePoint]] = defaultdict(deque)
        self._last: Dict[str, PricePoint] = {}
        self._books: Dict[str, OrderBookSnapshot] = {}
        self.failing_price_symbols: Set[str] = set()
        self.failing_orderbook_symbols: Set[str] = set()
        self.fail_submissions = False
        self.submitted: List[Order] = []
        self.cancelled: List[str] = []
        self.price_requests: DefaultDict[str, int] = defaultdict(int)

    def script_prices(self, symbol: str, prices: Iterable[float], volume: float = 5000.0) -> None:
        for price in prices:
            self._scripts[symbol].append(
                PricePoint(symbol=symbol, price=price, timestamp=self.clock.now(), volume=volume)
            )

    def set_orderbook(self, orderbook: OrderBookSnapshot) -> None:
        self._books[orderbook.symbol] = orderbook

    async def get_price(self, symbol: str) -> PricePoint:
        self.price_requests[symbol] += 1
        if symbol in self.failing_price_symbols:
            raise VenueError(f"Simulated price failure for {symbol}")
        script = self._scripts[symbol]
        if script:
            self._last[symbol] = script.popleft()
        if symbol not in self._last:
            raise VenueError(f"No price available for {symbol}")
        return self._last[symbol]

    async def get_orderbook(self, symbol: str) -> OrderBookSnapshot:
        if symbol in self.failing_orderbook_symbols:
            raise VenueError(f"Simulated order book failure for {symbol}")
        book = self._books.get(symbol)
        if book is not None:
            return book
        last = self._last.get(symbol)
        mid = last.price if last is not None else 0.0
        return OrderBookSnapshot(
            symbol=symbol,
            bids=((mid, 1.0),),
            asks=((mid, 1.0),),
            timestamp=self.clock.now(),
        )

    async def submit_order(self, order: Order) -> str:
        if self.submit_delay:
            await asyncio.sleep(self.submit_delay)
        if self.fail_submissions:
            raise VenueError(f"Simulated rejection of order {order.id}")
        self.submitted.append(order)
        return f"sim_{order.id}"

    async def cancel_order(self, order_id: str) -> None:
        self.cancelled.append(order_id)
