"""Pre-trade validation and post-trade position bookkeeping."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Dict, Optional, Tuple

from ..domain.models import Order, Position, RiskLimits
from ..domain.risk.kill_switch import KillSwitch, KillSwitchEngaged
from ..domain.risk.rules import MaxLossPerTradeRule, MaxPositionRule, RiskViolation
from ..infrastructure.locks import AsyncRWLock
from ..infrastructure.logging import get_logger

logger = get_logger(__name__)


class RiskGate:
    """Applies the kill switch and per-order rules, and owns the position map.

    Daily PnL sits behind an exclusive lock and positions behind a reader/writer
    lock. ``validate_order`` reads them separately, so the two reads are not
    atomic with respect to each other.
    """

    def __init__(self, limits: Optional[RiskLimits] = None) -> None:
        self.limits = limits or RiskLimits()
        self.kill_switch = KillSwitch(daily_loss_limit=self.limits.max_daily_loss)
        self.position_rule = MaxPositionRule(max_quantity=self.limits.max_position_size)
        self.loss_rule = MaxLossPerTradeRule(
            max_loss=self.limits.max_loss_per_trade,
            stop_loss_pct=self.limits.stop_loss_pct,
        )
        self._daily_pnl = 0.0
        self._pnl_lock = asyncio.Lock()
        self._positions: Dict[str, Position] = {}
        self._positions_lock = AsyncRWLock()

    async def validate_order(self, order: Order, reference_price: float) -> bool:
        """Return True when the order passes every gate, False otherwise.

        Gates run in a fixed order (kill switch, position size, loss per trade)
        and the first failure rejects the order.
        """
        try:
            async with self._pnl_lock:
                pnl = self._daily_pnl
            self.kill_switch.check(pnl=pnl)

            async with self._positions_lock.read():
                position = self._positions.get(order.symbol)
                self.position_rule.evaluate(position, order)

            self.loss_rule.evaluate(order, reference_price)
        except (KillSwitchEngaged, RiskViolation) as exc:
            logger.warning(
                "order_rejected",
                order_id=order.id,
                symbol=order.symbol,
                side=order.side,
                quantity=order.quantity,
                reason=str(exc),
            )
            return False
        return True

    async def update_position(self, symbol: str, signed_quantity: float, fill_price: float) -> Position:
        """Apply a fill to the symbol's position, creating it on first use."""

        async with self._positions_lock.write():
            position = self._positions.setdefault(symbol, Position(symbol=symbol))
            position.apply_fill(signed_quantity, fill_price)
            updated = replace(position)
        logger.info(
            "position_updated",
            symbol=symbol,
            quantity=updated.quantity,
            average_price=updated.average_price,
        )
        return updated

    async def get_position(self, symbol: str) -> Optional[Position]:
        async with self._positions_lock.read():
            position = self._positions.get(symbol)
            return replace(position) if position is not None else None

    async def positions(self) -> Tuple[Position, ...]:
        """Return copies of every tracked position."""

        async with self._positions_lock.read():
            return tuple(replace(position) for position in self._positions.values())

    async def daily_pnl(self) -> float:
        async with self._pnl_lock:
            return self._daily_pnl

    async def record_realized_pnl(self, delta: float) -> float:
        """Add a realized PnL delta reported by a fill/settlement collaborator."""

        async with self._pnl_lock:
            self._daily_pnl += delta
            total = self._daily_pnl
        logger.info("daily_pnl_updated", delta=delta, daily_pnl=total)
        return total

    async def reset_daily_pnl(self) -> None:
        async with self._pnl_lock:
            self._daily_pnl = 0.0

    def halt(self) -> None:
        self.kill_switch.trigger_manual()
        logger.warning("trading_halted")

    def resume(self) -> None:
        self.kill_switch.release_manual()
        logger.info("trading_resumed")
