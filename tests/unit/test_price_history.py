import asyncio

import pytest

from pulsetrade.application.price_history import PriceHistoryStore
from pulsetrade.domain.models import PricePoint
from pulsetrade.infrastructure.locks import AsyncRWLock


def _point(symbol: str, price: float, ts: int) -> PricePoint:
    return PricePoint(symbol=symbol, price=price, timestamp=ts, volume=1.0)


@pytest.mark.parametrize("inserts", [1, 5, 6, 37])
def test_store_keeps_most_recent_points_in_arrival_order(inserts):
    async def _run() -> None:
        store = PriceHistoryStore(bound=5)
        points = [_point("BTCUSDT", float(i), i) for i in range(inserts)]
        for point in points:
            await store.append(point)
            assert len(await store.history("BTCUSDT")) <= store.bound

        assert list(await store.history("BTCUSDT")) == points[-5:]

    asyncio.run(_run())


def test_store_preserves_arrival_order_not_timestamp_order():
    async def _run() -> None:
        store = PriceHistoryStore(bound=3)
        late = _point("ETHUSDT", 2.0, 10)
        early = _point("ETHUSDT", 1.0, 5)
        await store.append(late)
        await store.append(early)
        assert await store.history("ETHUSDT") == (late, early)

    asyncio.run(_run())


def test_store_separates_symbols_and_snapshots_are_copies():
    async def _run() -> None:
        store = PriceHistoryStore(bound=2)
        await store.append(_point("BTCUSDT", 1.0, 1))
        await store.append(_point("ETHUSDT", 2.0, 1))

        snapshot = await store.snapshot()
        await store.append(_point("BTCUSDT", 3.0, 2))

        assert [p.price for p in snapshot["BTCUSDT"]] == [1.0]
        assert [p.price for p in (await store.history("BTCUSDT"))] == [1.0, 3.0]
        assert set(await store.symbols()) == {"BTCUSDT", "ETHUSDT"}
        assert await store.history("SOLUSDT") == ()

    asyncio.run(_run())


def test_concurrent_appends_are_not_lost():
    async def _run() -> None:
        store = PriceHistoryStore(bound=1000)

        async def writer(symbol: str) -> None:
            for i in range(200):
                await store.append(_point(symbol, float(i), i))
                await asyncio.sleep(0)

        await asyncio.gather(writer("BTCUSDT"), writer("BTCUSDT"), writer("ETHUSDT"))
        assert len(await store.history("BTCUSDT")) == 400
        assert len(await store.history("ETHUSDT")) == 200

    asyncio.run(_run())


def test_store_rejects_non_positive_bound():
    with pytest.raises(ValueError):
        PriceHistoryStore(bound=0)


def test_rwlock_allows_concurrent_readers():
    async def _run() -> None:
        lock = AsyncRWLock()
        both_inside = asyncio.Event()
        inside = 0

        async def reader() -> None:
            nonlocal inside
            async with lock.read():
                inside += 1
                if inside == 2:
                    both_inside.set()
                await asyncio.wait_for(both_inside.wait(), timeout=1.0)
                inside -= 1

        await asyncio.gather(reader(), reader())
        assert lock.readers == 0

    asyncio.run(_run())


def test_rwlock_writer_excludes_readers():
    async def _run() -> None:
        lock = AsyncRWLock()
        events = []

        async def writer() -> None:
            async with lock.write():
                events.append("write-start")
                assert lock.write_locked
                await asyncio.sleep(0.01)
                events.append("write-end")

        async def reader() -> None:
            await asyncio.sleep(0)
            async with lock.read():
                events.append("read")

        await asyncio.gather(writer(), reader())
        assert events == ["write-start", "write-end", "read"]
        assert not lock.write_locked

    asyncio.run(_run())


def test_rwlock_waiting_writer_blocks_new_readers():
    async def _run() -> None:
        lock = AsyncRWLock()
        events = []
        await lock.acquire_read()

        async def writer() -> None:
            async with lock.write():
                events.append("write")

        async def late_reader() -> None:
            async with lock.read():
                events.append("read")

        writer_task = asyncio.create_task(writer())
        await asyncio.sleep(0.01)
        reader_task = asyncio.create_task(late_reader())
        await asyncio.sleep(0.01)
        assert events == []

        await lock.release_read()
        await asyncio.gather(writer_task, reader_task)
        assert events == ["write", "read"]

    asyncio.run(_run())
