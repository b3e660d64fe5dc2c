import asyncio


class CancellationToken:
    """Cooperative stop signal shared by the orchestrator's tasks.

    Tasks check ``cancelled`` at the top of each loop iteration and use
    ``sleep`` between iterations, which returns as soon as the token is cancelled.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if woken by cancellation."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True
