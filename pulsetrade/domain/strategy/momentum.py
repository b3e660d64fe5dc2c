from typing import List, Optional, Sequence

from ...infrastructure.logging import get_logger
from ..models import OrderBookSnapshot, OrderSide, PricePoint, TradingSignal
from .base import StrategyBase

logger = get_logger(__name__)


class MomentumStrategy(StrategyBase):
    """Trades in the direction of the price change over a short lookback window.

    A signal is only emitted when the relative move clears ``momentum_threshold``
    and the window's average traded volume clears ``MIN_AVERAGE_VOLUME``.
    """

    MIN_AVERAGE_VOLUME = 1000.0

    def __init__(
        self,
        lookback_period: int = 5,
        momentum_threshold: float = 0.001,
        quantity: float = 0.001,
    ) -> None:
        if lookback_period < 2:
            raise ValueError("lookback_period must be at least 2")
        self.lookback_period = lookback_period
        self.momentum_threshold = momentum_threshold
        self.quantity = quantity

    @property
    def name(self) -> str:
        return "MomentumStrategy"

    def analyze(
        self, history: Sequence[PricePoint], orderbook: OrderBookSnapshot
    ) -> Optional[TradingSignal]:
        window = self._window(history)
        if len(window) < 2:
            return None

        newest = window[0]
        oldest = window[-1]
        if oldest.price == 0:
            return None

        change = (newest.price - oldest.price) / oldest.price
        average_volume = sum(point.volume for point in window) / len(window)

        if abs(change) > self.momentum_threshold and average_volume > self.MIN_AVERAGE_VOLUME:
            side: OrderSide = "BUY" if change > 0 else "SELL"
            return TradingSignal(
                symbol=newest.symbol,
                side=side,
                confidence=min(abs(change), 1.0),
                target_price=newest.price,
                quantity=self.quantity,
                strategy=self.name,
            )

        logger.debug(
            "momentum_below_threshold",
            symbol=newest.symbol,
            change_pct=round(change * 100, 3),
            threshold_pct=self.momentum_threshold * 100,
            average_volume=average_volume,
        )
        return None

    def _window(self, history: Sequence[PricePoint]) -> List[PricePoint]:
        # newest first
        return list(reversed(history[-self.lookback_period:]))
