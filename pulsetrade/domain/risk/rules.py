from dataclasses import dataclass
from typing import Optional

from ..models import Order, Position


class RiskViolation(Exception):
    """Raised when a risk rule fails."""


@dataclass(frozen=True)
class MaxPositionRule:
    """Caps the absolute net quantity a symbol may reach after an order fills."""

    max_quantity: float

    def evaluate(self, position: Optional[Position], order: Order) -> None:
        current = position.quantity if position is not None else 0.0
        resulting = current + order.signed_quantity
        if abs(resulting) > self.max_quantity:
            raise RiskViolation(
                f"Position size limit exceeded for {order.symbol}: "
                f"{abs(resulting)} > {self.max_quantity}"
            )


@dataclass(frozen=True)
class MaxLossPerTradeRule:
    """Caps the loss an order would realize if its stop-loss were hit."""

    max_loss: float
    stop_loss_pct: float

    def evaluate(self, order: Order, reference_price: float) -> None:
        potential_loss = order.quantity * reference_price * self.stop_loss_pct
        if potential_loss > self.max_loss:
            raise RiskViolation(
                f"Potential loss too high for {order.symbol}: {potential_loss} > {self.max_loss}"
            )
