"""
EduBoost Gateway — Background Store Sweeper
============================================

What:  Periodically evicts expired sessions and elapsed rate buckets.
Why:   Lazy eviction only touches keys that are looked up again; tokens and
       IPs that never come back would otherwise stay in memory forever.
How:   One asyncio.Task started in the lifespan, cancelled and awaited on
       shutdown.

Race safety:
    A sweep runs between awaits, never in the middle of a store method.
    The auth dependency keeps the Session object it validated, so a sweep
    that lands later in the same request cannot revoke that request.
"""

import asyncio
import logging
from typing import Optional

from eduboost.services.rate_limiter import RateLimiter
from eduboost.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class StoreSweeper:
    def __init__(
        self,
        session_store: SessionStore,
        rate_limiter: RateLimiter,
        interval_seconds: float,
    ):
        self.session_store = session_store
        self.rate_limiter = rate_limiter
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> None:
        sessions = self.session_store.sweep()
        buckets = self.rate_limiter.sweep()
        if sessions or buckets:
            logger.info(
                "Sweep removed %d sessions and %d rate buckets (%d / %d remain)",
                sessions,
                buckets,
                len(self.session_store),
                len(self.rate_limiter),
            )

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.sweep_once()
            except Exception:
                # A failed sweep must not kill the timer; the next tick retries
                logger.exception("Store sweep failed")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="store-sweeper")
        logger.info("Store sweeper started (every %.0fs)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        if not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Store sweeper stopped")
