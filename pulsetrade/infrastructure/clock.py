import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        ...


class SystemClock:
    """Wall clock reporting whole unix seconds."""

    def now(self) -> int:
        return int(time.time())


class FixedClock:
    """Deterministic clock for tests."""

    def __init__(self, value: int) -> None:
        self.value = value

    def now(self) -> int:
        return self.value
