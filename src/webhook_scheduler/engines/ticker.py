"""
Periodic driver for the trigger engines.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional

from ..domain.models import DeferredFiringResult, ScheduleFiringResult
from ..metrics import MetricsCollector
from .deferred import DeferredSendEngine
from .recurring import RecurringScheduleEngine

logger = logging.getLogger(__name__)


class ScheduleTicker:
    """
    Runs both engines on a fixed cadence and keeps runs of one engine from
    overlapping.

    The in-process loop and the cron HTTP endpoints go through the same
    ticker, so an externally triggered run that arrives while the previous run
    of that engine is still in flight is skipped rather than run twice.
    """

    def __init__(
        self,
        recurring: RecurringScheduleEngine,
        deferred: DeferredSendEngine,
        interval_seconds: float = 60.0,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Initialize the ticker.

        Args:
            recurring: Recurring schedule engine
            deferred: Deferred send engine
            interval_seconds: Seconds between ticks of the background loop
            metrics: Optional metrics collector
        """
        self.recurring = recurring
        self.deferred = deferred
        self.interval_seconds = interval_seconds
        self.metrics = metrics

        self._recurring_lock = asyncio.Lock()
        self._deferred_lock = asyncio.Lock()

        # Worker task
        self._task: Optional[asyncio.Task] = None
        self._shutdown_event = asyncio.Event()

    async def run_recurring(self) -> Optional[List[ScheduleFiringResult]]:
        """
        Run the recurring schedule engine once.

        Returns:
            Firing results, or None if a run was already in progress
        """
        return await self._run_guarded(
            self._recurring_lock, self.recurring.name, self.recurring.process_due_schedules
        )

    async def run_deferred(self) -> Optional[List[DeferredFiringResult]]:
        """
        Run the deferred send engine once.

        Returns:
            Firing results, or None if a run was already in progress
        """
        return await self._run_guarded(
            self._deferred_lock, self.deferred.name, self.deferred.process_due_pending
        )

    async def tick(self) -> dict[str, Any]:
        """Run both engines once, recurring schedules first."""
        return {
            "schedules": await self.run_recurring(),
            "deferred": await self.run_deferred(),
        }

    async def _run_guarded(
        self,
        lock: asyncio.Lock,
        engine: str,
        run: Callable[[], Awaitable[list]],
    ) -> Optional[list]:
        if lock.locked():
            logger.warning(f"Previous {engine} run still in progress, skipping")
            if self.metrics:
                self.metrics.record_tick_skipped(engine)
            return None

        async with lock:
            started = time.perf_counter()
            results = await run()
            if self.metrics:
                self.metrics.record_tick(engine, time.perf_counter() - started)
            return results

    @property
    def is_running(self) -> bool:
        """True while the background loop is active."""
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background tick loop."""
        if self._task is None or self._task.done():
            logger.info(f"Starting schedule ticker (interval={self.interval_seconds}s)")
            self._shutdown_event.clear()
            self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Stop the background tick loop."""
        logger.info("Stopping schedule ticker")
        self._shutdown_event.set()

        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Schedule ticker stopped")

    async def _loop(self) -> None:
        while not self._shutdown_event.is_set():
            try:
                await self.tick()
            except Exception as e:
                # Storage failures end this tick only; the next tick retries
                logger.error(f"Schedule tick failed: {e}", exc_info=True)
                if self.metrics:
                    self.metrics.record_error("ticker", type(e).__name__)

            try:
                await asyncio.wait_for(
                    self._shutdown_event.wait(), timeout=self.interval_seconds
                )
            except asyncio.TimeoutError:
                pass
