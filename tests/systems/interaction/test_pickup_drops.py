import asyncio

from craftbot.core.vec import Vec3
from craftbot.systems.interaction.pickup import collect_drops, find_drops


def test_find_drops_filters_by_name_and_radius(world):
    world.drop_item("oak_log", (3, 64, 0))
    world.drop_item("sugar_cane", (5, 64, 2))
    world.drop_item("oak_log", (30, 64, 0))
    world.spawn("zombie", (2, 64, 0))

    drops = find_drops(world, Vec3(0, 64, 0), 10, ["oak_log"])

    assert [d.item_name for d in drops] == ["oak_log"]
    assert len(find_drops(world, Vec3(0, 64, 0), 10)) == 2


def test_collect_drops_counts_pickups(world):
    world.drop_item("oak_log", (3, 64, 0))
    world.drop_item("oak_log", (6, 64, 0), count=2)
    world.drop_item("sugar_cane", (5, 64, 2))

    collected = asyncio.run(collect_drops(world, Vec3(0, 64, 0), 10, ["oak_log"]))

    assert collected == 2
    assert world.count("oak_log") == 3
    assert world.count("sugar_cane") == 0


def test_collect_drops_nothing_nearby(world):
    assert asyncio.run(collect_drops(world, Vec3(0, 64, 0), 10)) == 0
    assert world.goto_calls == 0


def test_stalled_walk_times_out_and_is_skipped(world):
    world.drop_item("oak_log", (8, 64, 0))
    world.stall = True

    collected = asyncio.run(collect_drops(world, Vec3(0, 64, 0), 10, timeout=0.05))

    assert collected == 0
    assert world.goal is None
    assert not world.moving


def test_unreachable_drop_does_not_stop_batch(world):
    world.drop_item("oak_log", (3, 64, 0))
    world.drop_item("oak_log", (-6, 64, 0))
    world.unreachable.add((3, 64, 0))

    collected = asyncio.run(collect_drops(world, Vec3(0, 64, 0), 10))

    assert collected == 1
    assert world.count("oak_log") == 1
