"""
APScheduler-based recurring trigger for the refresh orchestrator.

The scheduled job and an on-demand refresh call the same
``RefreshOrchestrator.run``; only the caller differs. In serverless
deployments the timer is never started and refreshes come from the
platform scheduler through ``rural_data.lambda_handler``.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..application.domain import utcnow
from ..application.exceptions import RuralDataError
from ..application.service import RefreshOrchestrator

_JOB_ID = "refresh_all_sources"


class RefreshScheduler:
    """Runs the orchestrator after a short delay, then every interval."""

    def __init__(
        self,
        orchestrator: RefreshOrchestrator,
        interval: timedelta,
        initial_delay: timedelta,
        serverless: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.orchestrator = orchestrator
        self.interval = interval
        self.initial_delay = initial_delay
        self.serverless = serverless
        self.clock = clock
        self._scheduler = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def _run_refresh(self):
        try:
            await self.orchestrator.run()
        except (RuralDataError, OSError) as e:
            self.logger.error(f"Scheduled data update failed: {e}")

    def start(self) -> bool:
        """
        Start the recurring refresh. Must be called from a running event
        loop. Returns False, without scheduling, in serverless mode or when
        already started.
        """

        if self.serverless:
            self.logger.info("Serverless deployment, recurring updates disabled.")
            return False
        if self.running:
            return False

        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._scheduler.add_job(
            self._run_refresh,
            "interval",
            seconds=self.interval.total_seconds(),
            next_run_time=self.clock() + self.initial_delay,
            id=_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()

        self.logger.info(
            f"Scheduled data updates every "
            f"{self.interval.total_seconds() / 3600:g} hours, first run in "
            f"{self.initial_delay.total_seconds():g}s."
        )
        return True

    def shutdown(self):
        if self.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
