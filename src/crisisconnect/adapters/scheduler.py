"""ABOUTME: Background scheduler that periodically sweeps the in-memory rate limit tables
ABOUTME: Wraps APScheduler's BackgroundScheduler with explicit start and shutdown"""

import logging
from collections.abc import Callable

from apscheduler.schedulers.background import BackgroundScheduler

SWEEP_JOB_ID = "rate_limit_sweep"


class SweepScheduler:
    """Runs `sweep` every `interval_minutes` in a background thread of this process."""

    def __init__(
        self,
        sweep: Callable[[], object],
        interval_minutes: int = 60,
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        if interval_minutes < 1:
            raise ValueError(f"interval_minutes must be at least 1, got {interval_minutes}")
        self._sweep = sweep
        self.interval_minutes = interval_minutes
        self._scheduler = scheduler or BackgroundScheduler(timezone="UTC")

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def run_now(self) -> object:
        """Run one sweep synchronously, logging rather than raising on failure."""
        try:
            return self._sweep()
        except Exception as exc:
            # a failed sweep must not kill the scheduler thread
            logging.error(f"Error in rate limit sweep: {exc}", exc_info=True)
            return None

    def start(self) -> None:
        if self.running:
            return
        self._scheduler.add_job(
            self.run_now,
            "interval",
            minutes=self.interval_minutes,
            id=SWEEP_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self._scheduler.start()
        logging.info(f"Started rate limit sweeper, running every {self.interval_minutes} minutes")

    def shutdown(self, wait: bool = False) -> None:
        if not self.running:
            return
        self._scheduler.shutdown(wait=wait)
        logging.info("Stopped rate limit sweeper")
