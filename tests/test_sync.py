import asyncio

import pytest

from evfleet.errors import RemoteRejected, TransientNetworkError
from evfleet.notices import NoticeBoard
from evfleet.services.tracking.sync import RouteSyncScheduler

from helpers import make_route, make_stop


class Recorder:
    def __init__(self):
        self.snapshots = []

    def __call__(self, routes):
        self.snapshots.append(list(routes))


def test_activation_fetches_immediately_without_timer():
    fetched = []
    recorder = Recorder()

    async def fetch():
        fetched.append(1)
        return [make_route(make_stop(1))]

    async def scenario():
        scheduler = RouteSyncScheduler(fetch, recorder, NoticeBoard())
        await scheduler.activate()
        polling = scheduler.polling
        await asyncio.sleep(0.02)
        await scheduler.deactivate()
        return polling

    polling = asyncio.run(scenario())

    assert not polling
    assert len(fetched) == 1
    assert len(recorder.snapshots) == 1


def test_interval_repeats_until_deactivated():
    fetched = []

    async def fetch():
        fetched.append(1)
        return []

    async def scenario():
        scheduler = RouteSyncScheduler(fetch, Recorder(), NoticeBoard(), interval_seconds=0.01)
        await scheduler.activate()
        await asyncio.sleep(0.06)
        await scheduler.deactivate()
        stopped_at = len(fetched)
        await asyncio.sleep(0.05)
        return scheduler, stopped_at

    scheduler, stopped_at = asyncio.run(scenario())

    assert stopped_at >= 3
    assert len(fetched) == stopped_at
    assert not scheduler.polling
    assert not scheduler.active


def test_failed_refresh_keeps_last_good_snapshot():
    recorder = Recorder()
    notices = NoticeBoard()
    responses = [[make_route(make_stop(1))], TransientNetworkError("timed out")]

    async def fetch():
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def scenario():
        scheduler = RouteSyncScheduler(fetch, recorder, notices)
        await scheduler.activate()
        ok = await scheduler.refresh()
        await scheduler.deactivate()
        return scheduler, ok

    scheduler, ok = asyncio.run(scenario())

    assert not ok
    assert len(recorder.snapshots) == 1
    assert isinstance(scheduler.last_error, TransientNetworkError)
    assert notices.latest().level == "error"
    assert "timed out" in notices.latest().message


def test_polling_survives_errors():
    calls = []

    async def fetch():
        calls.append(1)
        raise RemoteRejected("boom", status_code=500)

    async def scenario():
        scheduler = RouteSyncScheduler(fetch, Recorder(), NoticeBoard(), interval_seconds=0.01)
        await scheduler.activate()
        await asyncio.sleep(0.05)
        polling = scheduler.polling
        await scheduler.deactivate()
        return polling

    assert asyncio.run(scenario())
    assert len(calls) >= 2


def test_overlapping_fetches_apply_in_completion_order():
    recorder = Recorder()
    delays = [0.0, 0.03, 0.0]
    counter = iter(range(1, 10))

    async def fetch():
        marker = next(counter)
        await asyncio.sleep(delays.pop(0) if delays else 0)
        return [make_route(make_stop(1), route_id=marker)]

    async def scenario():
        scheduler = RouteSyncScheduler(fetch, recorder, NoticeBoard())
        await scheduler.activate()
        await asyncio.gather(scheduler.refresh(), scheduler.refresh())
        return scheduler

    asyncio.run(scenario())

    assert [snapshot[0].id for snapshot in recorder.snapshots] == [1, 3, 2]


def test_snapshot_arriving_after_teardown_is_dropped():
    recorder = Recorder()

    async def fetch():
        await asyncio.sleep(0.02)
        return [make_route(make_stop(1))]

    async def scenario():
        scheduler = RouteSyncScheduler(fetch, recorder, NoticeBoard())
        await scheduler.activate()
        pending = asyncio.create_task(scheduler.refresh())
        await asyncio.sleep(0)
        await scheduler.deactivate()
        return await pending

    applied = asyncio.run(scenario())

    assert not applied
    assert len(recorder.snapshots) == 1


def test_deactivate_lets_timer_fetch_finish_without_applying_it():
    recorder = Recorder()
    started = []
    finished = []

    async def fetch():
        started.append(1)
        await asyncio.sleep(0.05)
        finished.append(1)
        return [make_route(make_stop(1))]

    async def scenario():
        scheduler = RouteSyncScheduler(fetch, recorder, NoticeBoard(), interval_seconds=0.01)
        await scheduler.activate()
        await asyncio.sleep(0.03)
        in_flight = len(started) - len(finished)
        await scheduler.deactivate()
        await asyncio.sleep(0.08)
        return in_flight

    in_flight = asyncio.run(scenario())

    assert in_flight == 1
    assert len(finished) == len(started) == 2
    assert len(recorder.snapshots) == 1


def test_interval_must_be_positive():
    async def fetch():
        return []

    with pytest.raises(ValueError):
        RouteSyncScheduler(fetch, Recorder(), NoticeBoard(), interval_seconds=0)
