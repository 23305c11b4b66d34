from __future__ import annotations

import asyncio
from typing import Optional, Protocol

import structlog

from ttlstate.utils.validate import require_positive

log = structlog.get_logger("sweeper")


class Sweepable(Protocol):
    name: str

    async def sweep_expired(self) -> int: ...


class CleanupScheduler:
    """
    Background task that periodically drops expired entries from one store.

    Purely memory reclamation: every read path already checks staleness, so
    reads stay correct whether or not a sweep has run. The sweep goes through
    the store's own lock like any other mutation.

    Lifecycle is explicit (nothing starts in __init__):
        sched = CleanupScheduler(store, interval_s=60)
        await sched.start() ... await sched.stop()
    or scoped:
        async with CleanupScheduler(store, 60):
            ...
    """
    def __init__(self, store: Sweepable, interval_s: float, name: Optional[str] = None):
        require_positive(interval_s, "interval_s")
        self.store = store
        self.interval_s = float(interval_s)
        self.name = name or getattr(store, "name", type(store).__name__)
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._loop(), name=f"sweeper-{self.name}")

    async def stop(self) -> None:
        self._stop.set()
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            # the sweeper ending cancelled is expected; our own caller being
            # cancelled while we wait is not ours to swallow
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise

    async def __aenter__(self) -> "CleanupScheduler":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def run_once(self) -> int:
        """One sweep; logs and returns the number of entries removed."""
        removed = await self.store.sweep_expired()
        if removed:
            log.info("sweep_removed", store=self.name, removed=removed)
        return removed

    async def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_s)
                return  # stop requested
            except TimeoutError:
                pass
            try:
                await self.run_once()
            except Exception as e:
                # keep sweeping; a failed pass only delays reclamation
                log.warning("sweep_failed", store=self.name, err=str(e))
