"""
Data Ingestion - Ingestion Ticker.

============================================================
RESPONSIBILITY
============================================================
Fires the ingestion job on a fixed interval.

- Each tick dispatches job.run() as a task
- Ticks keep their cadence even if a run is slow; the job's
  run-in-progress guard skips overlapping ticks
- Graceful stop waits for the in-flight run to finish, then
  cancels it once the shutdown timeout passes

============================================================
"""

import asyncio
import logging
import math
from typing import Optional, Set

from data_ingestion.ingestion_job import IngestionJob


class IngestionTicker:
    """Fixed-interval trigger for an IngestionJob."""

    def __init__(
        self,
        job: IngestionJob,
        interval_seconds: float,
        run_immediately: bool = True,
        shutdown_timeout_seconds: float = 30.0,
    ) -> None:
        """
        Initialize the ticker.

        Args:
            job: Job whose run() is triggered
            interval_seconds: Seconds between ticks
            run_immediately: Fire the first tick at start instead of after one interval
            shutdown_timeout_seconds: How long stop() waits for an in-flight run
        """
        if not math.isfinite(interval_seconds) or interval_seconds <= 0:
            raise ValueError("interval_seconds must be a positive finite number")

        self._job = job
        self._interval = interval_seconds
        self._run_immediately = run_immediately
        self._shutdown_timeout = shutdown_timeout_seconds
        self._logger = logging.getLogger("ingestion_ticker")

        self._loop_task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    # --------------------------------------------------------
    # Lifecycle
    # --------------------------------------------------------

    def start(self) -> asyncio.Task:
        """Start ticking in the running event loop."""
        if self.is_running:
            return self._loop_task

        self._stop_event = asyncio.Event()
        self._loop_task = asyncio.create_task(self._tick_loop(), name="ingestion-ticker")
        self._logger.info(f"Ingestion ticker started | interval={self._interval}s")
        return self._loop_task

    async def stop(self) -> None:
        """Stop ticking and wait for the in-flight run."""
        if self._stop_event is not None:
            self._stop_event.set()

        if self._loop_task is not None:
            await self._loop_task
            self._loop_task = None

        if self._in_flight:
            _, pending = await asyncio.wait(set(self._in_flight), timeout=self._shutdown_timeout)
            if pending:
                self._logger.warning("In-flight ingestion run did not finish before shutdown timeout, cancelling")
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

        self._logger.info("Ingestion ticker stopped")

    # --------------------------------------------------------
    # Main Loop
    # --------------------------------------------------------

    async def _tick_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() if self._run_immediately else loop.time() + self._interval

        while not self._stop_event.is_set():
            wait_seconds = next_tick - loop.time()
            if wait_seconds > 0:
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=wait_seconds)
                    break
                except asyncio.TimeoutError:
                    pass

            self.tick()
            next_tick += self._interval

            # Fell behind by more than a whole interval: realign instead of bursting
            if next_tick < loop.time():
                next_tick = loop.time() + self._interval

    def tick(self) -> asyncio.Task:
        """Dispatch one job run."""
        self._tick_count += 1
        self._logger.debug(f"Tick {self._tick_count}")
        task = asyncio.create_task(self._job.run())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task
