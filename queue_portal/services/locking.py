"""
Order Lock with Concurrency Control

Serializes the read-then-write sequences of the order flow:
- "find existing order, then insert" (one order per device per day)
- "read highest queue number, then insert with the next one"

Two layers:
- asyncio.Lock for coroutines inside one worker process
- FileLock for worker processes sharing the same store
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Union

from filelock import FileLock, Timeout

from queue_portal.core.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


class OrderLock:
    """
    Store-wide writer lock.

    Create one per event loop (the application creates it at startup).

    Attributes:
        lock_path: Lock file shared by all workers, or None for in-process only
        timeout: Seconds to wait for the file lock
    """

    def __init__(self, lock_path: Optional[Union[str, Path]] = None, timeout: float = 10.0):
        self.lock_path = Path(lock_path) if lock_path else None
        self.timeout = timeout
        self._local = asyncio.Lock()
        self._file_lock: Optional[FileLock] = None

        if self.lock_path is not None:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            # Acquired in a worker thread, released on the event loop thread
            self._file_lock = FileLock(str(self.lock_path), timeout=timeout, thread_local=False)

    def _release_abandoned(self, acquiring: "asyncio.Future[object]") -> None:
        """Release a file lock acquired on behalf of a cancelled holder."""
        if acquiring.cancelled() or acquiring.exception() is not None:
            return
        self._file_lock.release()
        logger.debug("Order lock released after cancelled wait")

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        """
        Hold the lock for one atomic unit.

        Raises:
            StoreUnavailable: The file lock was not acquired within the timeout
        """
        async with self._local:
            if self._file_lock is None:
                yield
                return

            acquiring = asyncio.ensure_future(asyncio.to_thread(self._file_lock.acquire))
            try:
                await asyncio.shield(acquiring)
            except asyncio.CancelledError:
                # The worker thread may still get the lock after we stop waiting
                acquiring.add_done_callback(self._release_abandoned)
                raise
            except Timeout as e:
                logger.error(f"Order lock timeout ({self.timeout}s) on {self.lock_path}")
                raise StoreUnavailable("Order store is busy", cause=e) from e

            logger.debug("Order lock acquired")
            try:
                yield
            finally:
                self._file_lock.release()
                logger.debug("Order lock released")
