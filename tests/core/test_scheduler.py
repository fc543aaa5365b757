import asyncio

from craftbot.core.scheduler import Scheduler


def test_tick_once_runs_in_registration_order():
    scheduler = Scheduler()
    calls = []
    scheduler.register("a", 1, lambda: calls.append("a"))

    async def second():
        calls.append("b")

    scheduler.register("b", 1, second)
    asyncio.run(scheduler.tick_once())

    assert calls == ["a", "b"]
    assert [p.name for p in scheduler] == ["a", "b"]


def test_failing_poll_is_swallowed_and_counted():
    scheduler = Scheduler()
    calls = []

    def boom():
        raise RuntimeError("nope")

    scheduler.register("boom", 1, boom)
    scheduler.register("after", 1, lambda: calls.append(1))
    asyncio.run(scheduler.tick_once())

    assert scheduler.get("boom").errors == 1
    assert scheduler.get("boom").runs == 1
    assert calls == [1]


def test_register_replaces_and_unregister_removes():
    scheduler = Scheduler()
    scheduler.register("poll", 1, lambda: None)
    scheduler.register("poll", 2, lambda: None)

    assert len(list(scheduler)) == 1
    assert scheduler.get("poll").interval == 2

    scheduler.unregister("poll")
    assert scheduler.get("poll") is None


def test_run_until_fires_polls_repeatedly_then_stops():
    scheduler = Scheduler()
    ticks = []
    scheduler.register("fast", 0.01, lambda: ticks.append(1))

    async def main():
        await scheduler.run(asyncio.sleep(0.1))
        return scheduler.running

    assert asyncio.run(main()) is False
    assert len(ticks) >= 3
