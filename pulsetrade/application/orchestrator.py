"""Run/stop lifecycle and the decision loop tying strategies, risk and execution together."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

from ..domain.models import Order, TradingSignal
from ..infrastructure.cancellation import CancellationToken
from ..infrastructure.clock import Clock, SystemClock
from ..infrastructure.ids import generate_order_id
from ..infrastructure.logging import get_logger
from ..ports.errors import VenueError
from ..ports.market_data import MarketDataPort
from .collector import DEFAULT_COLLECT_INTERVAL, MarketDataCollector
from .execution import OrderExecutionCoordinator, OrderSubmissionError
from .fsm import RUNNING, STOPPED, RunStateMachine
from .price_history import PriceHistoryStore
from .risk_gate import RiskGate
from .strategy_engine import StrategyEngine

logger = get_logger(__name__)

DEFAULT_DECISION_INTERVAL = 10.0
DEFAULT_MIN_HISTORY = 3


class TradingOrchestrator:
    """Owns the collectors and the decision loop for a set of symbols.

    ``start`` runs until ``stop`` is called (or the awaiting task is cancelled).
    Collectors and the decision loop observe the stop at the top of their next
    iteration; an in-flight venue call is allowed to finish.
    """

    def __init__(
        self,
        market_data: MarketDataPort,
        strategy_engine: StrategyEngine,
        risk_gate: RiskGate,
        executor: OrderExecutionCoordinator,
        store: Optional[PriceHistoryStore] = None,
        clock: Optional[Clock] = None,
        collect_interval: float = DEFAULT_COLLECT_INTERVAL,
        decision_interval: float = DEFAULT_DECISION_INTERVAL,
        min_history: int = DEFAULT_MIN_HISTORY,
    ) -> None:
        self.market_data = market_data
        self.strategy_engine = strategy_engine
        self.risk_gate = risk_gate
        self.executor = executor
        self.store = store or PriceHistoryStore()
        self.clock = clock or SystemClock()
        self.collect_interval = collect_interval
        self.decision_interval = decision_interval
        self.min_history = min_history
        self._fsm = RunStateMachine()
        self._token: Optional[CancellationToken] = None

    @property
    def state(self) -> str:
        return self._fsm.state

    @property
    def is_running(self) -> bool:
        return self._fsm.running

    async def start(self, symbols: Sequence[str]) -> None:
        self._fsm.transition(RUNNING)
        token = CancellationToken()
        self._token = token
        logger.info("orchestrator_started", symbols=list(symbols))

        tasks: List[asyncio.Task[None]] = []
        for symbol in symbols:
            collector = MarketDataCollector(
                symbol, self.market_data, self.store, interval=self.collect_interval
            )
            tasks.append(asyncio.create_task(collector.run(token), name=f"collector-{symbol}"))
        tasks.append(asyncio.create_task(self._decision_loop(token), name="decision-loop"))

        try:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for task, result in zip(tasks, results):
                if isinstance(result, Exception):
                    logger.error("task_failed", task=task.get_name(), error=str(result))
        finally:
            token.cancel()
            if self._fsm.running and self._token is token:
                self._fsm.transition(STOPPED)
            logger.info("orchestrator_stopped")

    def stop(self) -> None:
        if not self._fsm.running:
            logger.info("orchestrator_already_stopped")
            return
        self._fsm.transition(STOPPED)
        if self._token is not None:
            self._token.cancel()
        logger.info("orchestrator_stop_requested")

    async def run_decision_cycle(self) -> int:
        """Evaluate every symbol once and return the number of orders submitted."""

        snapshot = await self.store.snapshot()
        submitted = 0
        for symbol, history in snapshot.items():
            logger.debug("checking_symbol", symbol=symbol, points=len(history))
            if len(history) < self.min_history:
                continue

            try:
                orderbook = await self.market_data.get_orderbook(symbol)
            except VenueError as exc:
                logger.warning("orderbook_fetch_failed", symbol=symbol, error=str(exc))
                continue

            for signal in self.strategy_engine.evaluate(history, orderbook):
                if await self.process_signal(signal) is not None:
                    submitted += 1
        return submitted

    async def process_signal(self, signal: TradingSignal) -> Optional[str]:
        """Turn a signal into a market order and push it through risk and execution."""

        order = Order(
            id=generate_order_id(),
            symbol=signal.symbol,
            side=signal.side,
            kind="MARKET",
            quantity=signal.quantity,
            price=None,
            created_at=self.clock.now(),
        )
        if not await self.risk_gate.validate_order(order, signal.target_price):
            return None

        try:
            venue_order_id = await self.executor.submit_order(order)
        except OrderSubmissionError:
            logger.warning("signal_dropped", order_id=order.id, symbol=order.symbol, strategy=signal.strategy)
            return None

        await self.risk_gate.update_position(order.symbol, order.signed_quantity, signal.target_price)
        return venue_order_id

    async def _decision_loop(self, token: CancellationToken) -> None:
        while not token.cancelled:
            try:
                await self.run_decision_cycle()
            except Exception as exc:
                logger.exception("decision_cycle_failed", error=str(exc))
            await token.sleep(self.decision_interval)
