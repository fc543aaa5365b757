from craftbot.core.cooldowns import CooldownTracker


def test_try_trigger_waits_for_cooldown(clock):
    tracker = CooldownTracker(clock)

    assert tracker.try_trigger("melee", 0.6)
    assert not tracker.try_trigger("melee", 0.6)
    clock.advance(0.59)
    assert not tracker.available("melee", 0.6)
    clock.advance(0.01)
    assert tracker.try_trigger("melee", 0.6)


def test_actions_are_independent(clock):
    tracker = CooldownTracker(clock)
    tracker.trigger("bow")

    assert tracker.available("melee", 10)
    assert not tracker.available("bow", 10)
    assert tracker.last("bow") == clock.now
    assert tracker.last("eat") is None


def test_clear(clock):
    tracker = CooldownTracker(clock)
    tracker.trigger("bow")
    tracker.trigger("eat")

    tracker.clear("bow")
    assert tracker.available("bow", 10)
    assert not tracker.available("eat", 10)

    tracker.clear()
    assert tracker.available("eat", 10)
