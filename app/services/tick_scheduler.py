"""
Tick Scheduler

Host-owned loop that runs the dispatch processor on a fixed cadence. The
engine itself never starts timers; the FastAPI app creates one of these on
startup when RECURRING_TICK_SECONDS is set.
"""

import asyncio
import logging
import os
from typing import Callable, Optional

from sqlmodel import Session

from app.schemas.recurring_message import TickResult
from app.services.clock import Clock
from app.services.dispatch_processor import DispatchProcessor
from app.services.message_sink import SQLMessageSink
from app.services.rule_store import SQLRuleStore

logger = logging.getLogger(__name__)

# 0 disables the in-process loop
RECURRING_TICK_SECONDS = int(os.environ.get("RECURRING_TICK_SECONDS", "0"))


class TickScheduler:
    """Runs one dispatcher tick every ``interval_seconds`` in a background task."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        interval_seconds: int = RECURRING_TICK_SECONDS,
        clock: Optional[Clock] = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self.clock = clock or Clock()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> TickResult:
        """Run a single tick with a fresh session."""
        with self.session_factory() as session:
            processor = DispatchProcessor(
                SQLRuleStore(session),
                SQLMessageSink(session),
                clock=self.clock,
            )
            return processor.run_tick()

    async def _loop(self):
        logger.info(f"Recurring message ticks every {self.interval_seconds}s")
        while True:
            try:
                # Store calls are blocking; keep them off the event loop
                await asyncio.to_thread(self.run_once)
            except Exception as e:
                logger.error(f"Recurring message tick failed: {str(e)}")
            await asyncio.sleep(self.interval_seconds)

    def start(self):
        """Start the loop on the running event loop."""
        if self.running:
            logger.warning("Tick scheduler is already running")
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self):
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Tick scheduler stopped")
