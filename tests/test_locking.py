"""
Tests for the order lock and the clock.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest
from filelock import FileLock

from queue_portal.core.clock import Clock, FrozenClock
from queue_portal.core.exceptions import StoreUnavailable
from queue_portal.services.locking import OrderLock


class TestOrderLock:

    async def test_serializes_holders(self, tmp_path):
        lock = OrderLock(tmp_path / "orders.lock", timeout=5)
        inside = 0
        peak = 0

        async def worker():
            nonlocal inside, peak
            async with lock.hold():
                inside += 1
                peak = max(peak, inside)
                await asyncio.sleep(0.01)
                inside -= 1

        await asyncio.gather(*[worker() for _ in range(5)])
        assert peak == 1

    async def test_held_by_other_process_times_out(self, tmp_path):
        path = tmp_path / "orders.lock"
        other_worker = FileLock(str(path))
        other_worker.acquire()
        try:
            lock = OrderLock(path, timeout=0.1)
            with pytest.raises(StoreUnavailable):
                async with lock.hold():
                    pass
        finally:
            other_worker.release()

        async with lock.hold():
            pass

    async def test_cancelled_wait_does_not_keep_lock(self, tmp_path):
        path = tmp_path / "orders.lock"
        other_worker = FileLock(str(path))
        other_worker.acquire()
        lock = OrderLock(path, timeout=5)

        async def waiter():
            async with lock.hold():
                pass

        task = asyncio.create_task(waiter())
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        # The background acquire now succeeds and must hand the lock back
        other_worker.release()
        await asyncio.sleep(0.5)
        next_worker = FileLock(str(path), thread_local=False)
        await asyncio.to_thread(next_worker.acquire, timeout=2)
        next_worker.release()

        async with lock.hold():
            pass
        assert not lock._file_lock.is_locked

    async def test_released_after_error(self, tmp_path):
        lock = OrderLock(tmp_path / "orders.lock", timeout=1)

        with pytest.raises(ValueError):
            async with lock.hold():
                raise ValueError("boom")

        async with lock.hold():
            pass

    async def test_in_process_only(self):
        lock = OrderLock(None)
        async with lock.hold():
            pass
        assert lock.lock_path is None


class TestClock:

    def test_day_for_uses_time_zone(self):
        clock = Clock(timezone(timedelta(hours=-5)))
        # 2024-05-02 03:00 UTC is still 1 May at UTC-5
        ts = datetime(2024, 5, 2, 3, 0, tzinfo=timezone.utc).timestamp()
        assert clock.day_for(ts) == date(2024, 5, 1)
        assert Clock(timezone.utc).day_for(ts) == date(2024, 5, 2)

    def test_frozen_clock_advances(self):
        clock = FrozenClock(datetime(2024, 5, 1, 23, 59).timestamp())
        assert clock.today() == date(2024, 5, 1)

        clock.advance(120)
        assert clock.today() == date(2024, 5, 2)

        clock.set(datetime(2024, 6, 1, 8, 0).timestamp())
        assert clock.today() == date(2024, 6, 1)
