"""
Periodic Snapshot Scheduler

Runs as a background asyncio task next to the TCP server. On every tick
it copies the store under its lock and hands the copy to a worker thread
for writing, so request handling never waits on disk I/O.
"""

import asyncio
import logging
import time
from typing import Optional

from ..config.settings import settings
from .snapshot import SnapshotFile
from .store import MultiValueStore

logger = logging.getLogger(__name__)


class SnapshotScheduler:
    """
    Saves the live store to a snapshot file on a fixed interval.

    A failed periodic save is logged and retried on the next tick; it
    never touches the in-memory store.

    Usage:
        scheduler = SnapshotScheduler(store, SnapshotFile(path))
        scheduler.start()
        ...
        await scheduler.stop()
        await scheduler.save()  # final snapshot before exit

    Attributes:
        store: The live MultiValueStore
        snapshot: Where snapshots are written
        interval: Seconds between saves
    """

    def __init__(
            self,
            store: MultiValueStore,
            snapshot: SnapshotFile,
            interval: float = None,
    ):
        self.store = store
        self.snapshot = snapshot
        self.interval = interval if interval is not None else settings.SNAPSHOT_INTERVAL

        self._task: Optional[asyncio.Task] = None
        self._save_lock = asyncio.Lock()
        self._pending: Optional[asyncio.Future] = None
        self._save_count = 0
        self._failed_saves = 0
        self._last_saved_at: Optional[float] = None

    def start(self) -> None:
        """Start the periodic save task on the running event loop."""
        if self.is_running():
            return
        if self.interval <= 0:
            raise ValueError("snapshot interval must be positive")

        self._task = asyncio.create_task(self._run())
        logger.info(f"Saving snapshots to {self.snapshot.path} every {self.interval}s")

    async def stop(self) -> None:
        """
        Cancel the periodic task and wait for it to finish.

        A write already handed to the worker thread cannot be interrupted,
        so this also waits for it to land before returning.
        """
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            finally:
                self._task = None

        await self._wait_for_pending()

    async def save(self) -> None:
        """
        Write one snapshot of the live store.

        Saves never overlap: a new save waits for the previous write to
        finish before copying the store, so the newest copy always lands last.

        Raises:
            OSError: If the snapshot cannot be written
        """
        async with self._save_lock:
            await self._wait_for_pending()

            data = self.store.snapshot()
            logger.info(f"Saving {len(data)} keys to {self.snapshot.path}")
            self._pending = asyncio.ensure_future(asyncio.to_thread(self._write, data))
            # The write outlives a cancelled caller; stop() and the next save wait on it
            await asyncio.shield(self._pending)

    def _write(self, data) -> None:
        self.snapshot.save(data)
        self._save_count += 1
        self._last_saved_at = time.time()

    async def _wait_for_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            logger.debug(f"Waiting for in-flight snapshot to {self.snapshot.path}")
            await asyncio.wait({self._pending})

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.save()
            except Exception:
                self._failed_saves += 1
                logger.exception(f"Periodic snapshot to {self.snapshot.path} failed")

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def get_stats(self) -> dict:
        return {
            "running": self.is_running(),
            "interval": self.interval,
            "path": str(self.snapshot.path),
            "saves": self._save_count,
            "failed_saves": self._failed_saves,
            "last_saved_at": self._last_saved_at,
        }
