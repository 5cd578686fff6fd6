# file: dashboard_backend/scheduler.py

import asyncio
import logging
import schedule
from typing import Optional, Set

from dashboard_backend.snapshot_store import SnapshotStore


class RefreshScheduler:
    """Schedule periodic snapshot refreshes on the running event loop."""

    def __init__(self, store: SnapshotStore, interval_seconds: int, poll_seconds: float = 1.0):
        self.store = store
        self.interval_seconds = interval_seconds
        self.poll_seconds = poll_seconds
        self.scheduler = schedule.Scheduler()
        self._runner: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

    def job(self) -> None:
        # cycles may overlap; the store discards results of superseded cycles
        task = asyncio.get_running_loop().create_task(self.store.refresh())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def run_continuously(self) -> None:
        while True:
            self.scheduler.run_pending()
            await asyncio.sleep(self.poll_seconds)

    def start(self) -> None:
        self.scheduler.every(self.interval_seconds).seconds.do(self.job)
        self._runner = asyncio.get_running_loop().create_task(self.run_continuously())
        logging.info(f"Scheduler started, refreshing every {self.interval_seconds}s")

    async def stop(self) -> None:
        self.scheduler.clear()
        tasks = list(self._in_flight)
        if self._runner is not None:
            tasks.append(self._runner)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._runner = None
        logging.info("Scheduler stopped")
