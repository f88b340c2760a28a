"""
Ratings Scheduler

Background asyncio task that triggers the rating sweep on a fixed interval.
The sweep itself goes through the engine's locking, so it may overlap with
interactive requests.
"""

import asyncio

import structlog

from channelhub.domain.outcomes import RatingsReport
from channelhub.stores.subscriptions import SubscriptionEngine

logger = structlog.get_logger(__name__)


class RatingsScheduler:
    """Runs ``recompute_ratings`` once at start (optionally) and then every interval."""

    def __init__(
        self,
        engine: SubscriptionEngine,
        interval_seconds: float,
        run_on_start: bool = True,
    ):
        self.engine = engine
        self.interval_seconds = interval_seconds
        self.run_on_start = run_on_start
        self.runs = 0
        self.failures = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the sweep loop."""
        if self.running:
            return
        logger.info(
            "Starting ratings scheduler",
            interval_seconds=self.interval_seconds,
            run_on_start=self.run_on_start,
        )
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to exit."""
        if self._task is None:
            return
        logger.info("Stopping ratings scheduler", runs=self.runs)
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def run_once(self) -> RatingsReport | None:
        """
        Run one sweep.

        Returns:
            The sweep report, or None if the sweep raised
        """
        try:
            report = await self.engine.recompute_ratings()
        except Exception as e:
            self.failures += 1
            logger.error("Rating sweep failed", error=str(e), exc_info=True)
            return None

        self.runs += 1
        return report

    async def _loop(self) -> None:
        if self.run_on_start:
            await self.run_once()
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
