from abc import ABC, abstractmethod

from ..domain.models import Order


class BrokerPort(ABC):
    """Abstract order execution interface."""

    @abstractmethod
    async def submit_order(self, order: Order) -> str:
        """Submit an order and return the venue's order id."""
        raise NotImplementedError

    @abstractmethod
    async def cancel_order(self, order_id: str) -> None:
        raise NotImplementedError
