# file: dashboard_backend/snapshot_store.py

import asyncio
import itertools
import logging
from typing import Optional, Set

from dashboard_backend.aggregator import Aggregator
from dashboard_backend.errors import AggregationFailed
from dashboard_backend.models import Snapshot, SnapshotNotice

SUBSCRIBER_QUEUE_SIZE = 16


class SnapshotStore:
    """Holds the latest Snapshot and replaces it only with results of newer cycles.

    Cycle ids are taken when a cycle starts, so a slow cycle that settles after
    a newer one is discarded instead of overwriting the newer Snapshot.
    """

    def __init__(self, aggregator: Aggregator):
        self.aggregator = aggregator
        self._snapshot: Optional[Snapshot] = None
        self._cycles = itertools.count(1)
        self._subscribers: Set[asyncio.Queue] = set()
        self.last_error: Optional[str] = None

    def get_snapshot(self) -> Optional[Snapshot]:
        return self._snapshot

    def next_cycle_id(self) -> int:
        return next(self._cycles)

    def publish(self, snapshot: Snapshot) -> bool:
        current = self._snapshot
        if current is not None and snapshot.cycle_id <= current.cycle_id:
            logging.info(f"Discarding stale snapshot {snapshot.cycle_id}, snapshot {current.cycle_id} is newer")
            return False
        self._snapshot = snapshot
        self._notify(SnapshotNotice(cycle_id=snapshot.cycle_id, last_updated=snapshot.last_updated))
        return True

    async def refresh(self) -> Optional[Snapshot]:
        """Run one aggregation cycle; returns the Snapshot if it was published."""
        cycle_id = self.next_cycle_id()
        try:
            snapshot = await self.aggregator.build_snapshot(cycle_id)
        except AggregationFailed as e:
            self.last_error = str(e)
            logging.error(f"Aggregation cycle {cycle_id} failed, keeping previous snapshot: {e}")
            return None
        return snapshot if self.publish(snapshot) else None

    def subscribe(self) -> asyncio.Queue:
        """Queue receiving a SnapshotNotice each time the Snapshot is replaced."""
        queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def _notify(self, notice: SnapshotNotice) -> None:
        for queue in self._subscribers:
            if queue.full():
                # slow subscriber, only the most recent notices matter
                queue.get_nowait()
            queue.put_nowait(notice)
