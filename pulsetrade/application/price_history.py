"""Shared, bounded per-symbol price history."""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Tuple

from ..domain.models import PricePoint
from ..infrastructure.locks import AsyncRWLock

DEFAULT_HISTORY_BOUND = 100


class PriceHistoryStore:
    """Keeps the most recent ``bound`` price points per symbol in arrival order.

    Collectors append under the write lock; the decision loop copies the store
    under the read lock so it never holds the lock across venue calls.
    """

    def __init__(self, bound: int = DEFAULT_HISTORY_BOUND) -> None:
        if bound < 1:
            raise ValueError("history bound must be positive")
        self._bound = bound
        self._history: Dict[str, Deque[PricePoint]] = {}
        self._lock = AsyncRWLock()

    @property
    def bound(self) -> int:
        return self._bound

    async def append(self, point: PricePoint) -> None:
        """Record a price point, evicting the oldest entry past the bound."""

        async with self._lock.write():
            series = self._history.get(point.symbol)
            if series is None:
                series = deque(maxlen=self._bound)
                self._history[point.symbol] = series
            series.append(point)

    async def history(self, symbol: str) -> Tuple[PricePoint, ...]:
        """Return the arrival-ordered history for a symbol (empty if unseen)."""

        async with self._lock.read():
            return tuple(self._history.get(symbol, ()))

    async def snapshot(self) -> Dict[str, Tuple[PricePoint, ...]]:
        """Return a copy of every symbol's history for one decision cycle."""

        async with self._lock.read():
            return {symbol: tuple(series) for symbol, series in self._history.items()}

    async def symbols(self) -> Tuple[str, ...]:
        async with self._lock.read():
            return tuple(self._history)
