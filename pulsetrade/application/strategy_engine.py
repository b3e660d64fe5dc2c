from typing import Iterable, List, Optional, Sequence, Tuple

from ..domain.models import OrderBookSnapshot, PricePoint, TradingSignal
from ..domain.strategy.base import StrategyBase
from ..infrastructure.logging import get_logger

logger = get_logger(__name__)


class StrategyEngine:
    """Registry of independent strategies evaluated against the same market view."""

    def __init__(self, strategies: Optional[Iterable[StrategyBase]] = None) -> None:
        self._strategies: List[StrategyBase] = list(strategies or [])

    @property
    def strategies(self) -> Tuple[StrategyBase, ...]:
        return tuple(self._strategies)

    def register(self, strategy: StrategyBase) -> None:
        self._strategies.append(strategy)

    def evaluate(
        self, history: Sequence[PricePoint], orderbook: OrderBookSnapshot
    ) -> List[TradingSignal]:
        """Run every strategy and collect the signals they emit.

        A failing strategy is logged and skipped so the others still run.
        """
        signals: List[TradingSignal] = []
        for strategy in self._strategies:
            try:
                signal = strategy.analyze(history, orderbook)
            except Exception as exc:
                logger.error(
                    "strategy_failed",
                    strategy=strategy.name,
                    symbol=orderbook.symbol,
                    error=str(exc),
                )
                continue
            if signal is not None:
                logger.info(
                    "signal_emitted",
                    strategy=strategy.name,
                    symbol=signal.symbol,
                    side=signal.side,
                    confidence=signal.confidence,
                    target_price=signal.target_price,
                )
                signals.append(signal)
        return signals
