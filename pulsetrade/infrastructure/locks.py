import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class AsyncRWLock:
    """Reader/writer lock for asyncio tasks.

    Any number of readers may hold the lock together; a writer holds it alone.
    Once a writer is waiting, new readers queue behind it.
    """

    def __init__(self) -> None:
        self._condition = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def write_locked(self) -> bool:
        return self._writer

    async def acquire_read(self) -> None:
        async with self._condition:
            await self._condition.wait_for(lambda: not self._writer and self._waiting_writers == 0)
            self._readers += 1

    async def release_read(self) -> None:
        async with self._condition:
            self._readers -= 1
            if self._readers == 0:
                self._condition.notify_all()

    async def acquire_write(self) -> None:
        async with self._condition:
            self._waiting_writers += 1
            acquired = False
            try:
                await self._condition.wait_for(lambda: not self._writer and self._readers == 0)
                acquired = True
            finally:
                self._waiting_writers -= 1
                if not acquired:
                    # readers parked behind this writer must re-check
                    self._condition.notify_all()
            self._writer = True

    async def release_write(self) -> None:
        async with self._condition:
            self._writer = False
            self._condition.notify_all()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        await self.acquire_read()
        try:
            yield
        finally:
            await self.release_read()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        await self.acquire_write()
        try:
            yield
        finally:
            await self.release_write()
