import asyncio
from typing import List, Tuple

from ..domain.models import Order
from ..infrastructure.logging import get_logger
from ..ports.broker import BrokerPort
from ..ports.errors import VenueError

logger = get_logger(__name__)


class OrderSubmissionError(Exception):
    """Raised when the venue refuses or fails an order submission."""

    def __init__(self, order_id: str, message: str) -> None:
        super().__init__(message)
        self.order_id = order_id


class OrderExecutionCoordinator:
    """Submits orders through the broker port and tracks them as pending.

    An order is recorded as pending before the venue is called. It stays pending
    after a successful submission and is rolled back if the submission fails.
    """

    def __init__(self, broker: BrokerPort) -> None:
        self.broker = broker
        self._pending: List[Order] = []
        self._lock = asyncio.Lock()

    async def submit_order(self, order: Order) -> str:
        async with self._lock:
            self._pending.append(order)

        try:
            venue_order_id = await self.broker.submit_order(order)
        except VenueError as exc:
            await self._remove(order.id)
            logger.error("order_submission_failed", order_id=order.id, symbol=order.symbol, error=str(exc))
            raise OrderSubmissionError(order.id, str(exc)) from exc

        logger.info("order_submitted", order_id=order.id, venue_order_id=venue_order_id, symbol=order.symbol)
        return venue_order_id

    async def cancel_order(self, order_id: str) -> None:
        """Forget a pending order; unknown ids are ignored."""

        removed = await self._remove(order_id)
        logger.info("order_cancelled", order_id=order_id, was_pending=removed)

    async def pending_orders(self) -> Tuple[Order, ...]:
        async with self._lock:
            return tuple(self._pending)

    async def _remove(self, order_id: str) -> bool:
        async with self._lock:
            before = len(self._pending)
            self._pending = [order for order in self._pending if order.id != order_id]
            return len(self._pending) != before
