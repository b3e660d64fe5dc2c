from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..models import OrderBookSnapshot, PricePoint, TradingSignal


class StrategyBase(ABC):
    """Base class for trading strategies."""

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def analyze(
        self, history: Sequence[PricePoint], orderbook: OrderBookSnapshot
    ) -> Optional[TradingSignal]:
        """Inspect arrival-ordered history and optionally emit a TradingSignal."""
        raise NotImplementedError
