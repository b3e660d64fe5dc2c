from abc import ABC, abstractmethod

from ..domain.models import OrderBookSnapshot, PricePoint


class MarketDataPort(ABC):
    """Abstract interface for pulling market data from a venue."""

    @abstractmethod
    async def get_price(self, symbol: str) -> PricePoint:
        raise NotImplementedError

    @abstractmethod
    async def get_orderbook(self, symbol: str) -> OrderBookSnapshot:
        raise NotImplementedError
