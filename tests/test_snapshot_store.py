import asyncio
from typing import Dict

from dashboard_backend.errors import AggregationFailed
from dashboard_backend.scheduler import RefreshScheduler
from dashboard_backend.snapshot_store import SnapshotStore

from conftest import make_snapshot


class GatedAggregator:
    """Each cycle waits until the test releases it."""

    def __init__(self):
        self.gates: Dict[int, asyncio.Event] = {}
        self.failing = set()

    def gate(self, cycle_id: int) -> asyncio.Event:
        return self.gates.setdefault(cycle_id, asyncio.Event())

    async def build_snapshot(self, cycle_id: int = 0):
        await self.gate(cycle_id).wait()
        if cycle_id in self.failing:
            raise AggregationFailed(f"cycle {cycle_id} broke")
        return make_snapshot(cycle_id)


class InstantAggregator:
    async def build_snapshot(self, cycle_id: int = 0):
        return make_snapshot(cycle_id)


def test_stale_cycle_does_not_overwrite_newer_snapshot():
    async def scenario():
        aggregator = GatedAggregator()
        store = SnapshotStore(aggregator)
        first = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        second = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)

        aggregator.gate(2).set()
        assert (await second).cycle_id == 2
        aggregator.gate(1).set()
        assert await first is None
        return store.get_snapshot()

    assert asyncio.run(scenario()).cycle_id == 2


def test_failed_cycle_keeps_last_known_good_snapshot():
    async def scenario():
        aggregator = GatedAggregator()
        aggregator.failing.add(2)
        aggregator.gate(1).set()
        aggregator.gate(2).set()
        store = SnapshotStore(aggregator)
        await store.refresh()
        assert await store.refresh() is None
        return store

    store = asyncio.run(scenario())
    assert store.get_snapshot().cycle_id == 1
    assert "cycle 2 broke" in store.last_error


def test_subscribers_are_notified_of_replacement():
    async def scenario():
        store = SnapshotStore(InstantAggregator())
        queue = store.subscribe()
        await store.refresh()
        await store.refresh()
        notices = [queue.get_nowait(), queue.get_nowait()]
        store.unsubscribe(queue)
        await store.refresh()
        return notices, queue.empty()

    notices, drained = asyncio.run(scenario())
    assert [notice.cycle_id for notice in notices] == [1, 2]
    assert all(notice.type == "snapshot_replaced" for notice in notices)
    assert drained


def test_publish_rejects_older_cycles():
    store = SnapshotStore(InstantAggregator())
    assert store.get_snapshot() is None
    assert store.publish(make_snapshot(3))
    assert not store.publish(make_snapshot(2))
    assert not store.publish(make_snapshot(3))
    assert store.get_snapshot().cycle_id == 3


def test_scheduler_refreshes_until_stopped():
    async def scenario():
        store = SnapshotStore(InstantAggregator())
        scheduler = RefreshScheduler(store, interval_seconds=1, poll_seconds=0.05)
        scheduler.start()
        await asyncio.sleep(1.3)
        await scheduler.stop()
        refreshed = store.get_snapshot()
        await asyncio.sleep(0.1)
        return refreshed, store.get_snapshot(), scheduler

    refreshed, later, scheduler = asyncio.run(scenario())
    assert refreshed is not None and refreshed.cycle_id >= 1
    assert later is refreshed
    assert not scheduler.scheduler.get_jobs()
