"""Per-spreadsheet mutual exclusion for table writes."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional
from weakref import WeakKeyDictionary

from sheets_table.errors import LockTimeoutError

logger = logging.getLogger(__name__)


class LockRegistry:
    """Hand out one :class:`asyncio.Lock` per spreadsheet ID.

    Locks are created on first use and kept for the lifetime of the registry,
    separately for each event loop: a registry shared by several
    ``asyncio.run`` calls hands every loop its own locks.
    Waiters on the same spreadsheet are served in arrival order; different
    spreadsheets never block each other.  When ``timeout`` is set, a waiter
    that cannot acquire the lock in time raises :class:`LockTimeoutError`
    and leaves the queue.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout
        self._loops: "WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[str, asyncio.Lock]]" = (
            WeakKeyDictionary()
        )

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    def _loop_locks(self) -> Dict[str, asyncio.Lock]:
        loop = asyncio.get_running_loop()
        locks = self._loops.get(loop)
        if locks is None:
            locks = {}
            self._loops[loop] = locks
        return locks

    def lock_for(self, spreadsheet_id: str) -> asyncio.Lock:
        """Return the lock for ``spreadsheet_id`` on the running event loop."""

        locks = self._loop_locks()
        lock = locks.get(spreadsheet_id)
        if lock is None:
            lock = asyncio.Lock()
            locks[spreadsheet_id] = lock
        return lock

    def __contains__(self, spreadsheet_id: object) -> bool:
        return any(spreadsheet_id in locks for locks in self._loops.values())

    @asynccontextmanager
    async def acquire(self, spreadsheet_id: str) -> AsyncIterator[None]:
        """Hold the lock for ``spreadsheet_id`` for the duration of the block."""

        lock = self.lock_for(spreadsheet_id)
        if self._timeout is None:
            await lock.acquire()
        else:
            try:
                await asyncio.wait_for(lock.acquire(), self._timeout)
            except asyncio.TimeoutError as exc:
                raise LockTimeoutError(
                    f"Timed out after {self._timeout}s waiting for spreadsheet {spreadsheet_id}"
                ) from exc
        logger.debug("Acquired write lock for spreadsheet %s", spreadsheet_id)
        try:
            yield
        finally:
            lock.release()
            logger.debug("Released write lock for spreadsheet %s", spreadsheet_id)


default_registry = LockRegistry()


__all__ = ["LockRegistry", "default_registry"]
