import asyncio

import pytest

from craftbot.config import StorageConfig
from craftbot.core.errors import PreconditionError
from craftbot.persistence.event_log import DEPOSIT
from craftbot.systems.interaction.storage import Depositor


ANCHOR = (10, 64, -55)


def _depositor(world, state, navigator, behavior, event_log=None, **storage):
    return Depositor(world, state, navigator, behavior, StorageConfig(**storage), event_log)


def test_full_chest_excluded_and_next_one_used(world, state, navigator, behavior, event_log):
    first = world.add_chest(ANCHOR, capacity=0)
    second = world.add_chest((12, 64, -55))
    world.give("oak_log", 70)
    depositor = _depositor(world, state, navigator, behavior, event_log)

    result = asyncio.run(depositor.execute_deposit("oak_log", threshold=1))

    assert result.success
    assert result.message == "Deposited 70 oak_log into chest!"
    assert result.data["deposited"] == 70
    assert result.data["containers_tried"] == 2
    assert result.data["excluded"] == [(10.0, 64.0, -55.0)]
    assert len(result.data["excluded"]) == 1
    assert first.stored == 0
    assert second.contents == {"oak_log": 70}
    assert world.count("oak_log") == 0
    assert state.statistics.items_deposited == 70
    assert event_log.of_type(DEPOSIT)[0]["data"]["count"] == 70
    assert state.current_task is None


def test_all_chests_full_reports_containers_tried(world, state, navigator, behavior):
    for dx in range(3):
        world.add_chest((10 + dx, 64, -55), capacity=0)
    world.give("oak_log", 10)
    depositor = _depositor(world, state, navigator, behavior)

    result = asyncio.run(depositor.execute_deposit("oak_log", threshold=1))

    assert not result.success
    assert result.message == "No room after trying 3 containers! Deposited 0 oak_log, 10 left."
    assert result.data["containers_tried"] == 3
    assert world.count("oak_log") == 10


def test_partial_deposit_is_preserved(world, state, navigator, behavior):
    partial = world.add_chest(ANCHOR, capacity=4)
    world.add_chest((13, 64, -55), capacity=0)
    world.give("sugar_cane", 10)
    depositor = _depositor(world, state, navigator, behavior)

    result = asyncio.run(depositor.execute_deposit("sugar_cane", threshold=1))

    assert not result.success
    assert result.message == "No room after trying 2 containers! Deposited 4 sugar_cane, 6 left."
    assert result.data["deposited"] == 4
    assert partial.contents == {"sugar_cane": 4}
    assert state.statistics.items_deposited == 4


def test_container_attempts_are_bounded(world, state, navigator, behavior):
    for dx in range(7):
        world.add_chest((10 + dx, 64, -55), capacity=0)
    world.give("oak_log", 5)
    depositor = _depositor(world, state, navigator, behavior, max_container_attempts=5)

    result = asyncio.run(depositor.execute_deposit("oak_log", threshold=1))

    assert not result.success
    assert result.data["containers_tried"] == 5
    assert "after trying 5 containers" in result.message


def test_unreachable_chest_is_skipped(world, state, navigator, behavior):
    world.add_chest(ANCHOR)
    world.unreachable.add(ANCHOR)
    backup = world.add_chest((14, 64, -55))
    world.give("oak_log", 3)
    depositor = _depositor(world, state, navigator, behavior)

    result = asyncio.run(depositor.execute_deposit("oak_log", threshold=1))

    assert result.success
    assert backup.contents == {"oak_log": 3}
    assert result.data["containers_tried"] == 2


def test_no_chest_near_anchor(world, state, navigator, behavior):
    world.add_chest((60, 64, -55))
    world.give("oak_log", 64)
    depositor = _depositor(world, state, navigator, behavior)

    result = asyncio.run(depositor.execute_deposit("oak_log"))

    assert not result.success
    assert result.message == "No chest found near target location!"
    assert state.current_task is None


def test_below_threshold(world, state, navigator, behavior):
    world.give("oak_log", 5)
    depositor = _depositor(world, state, navigator, behavior)

    result = asyncio.run(depositor.execute_deposit("oak_log"))

    assert not result.success
    assert result.message == "Not enough oak_log to deposit (5/64)"


def test_deposit_items_requires_chest(world, state, navigator, behavior):
    depositor = _depositor(world, state, navigator, behavior)

    with pytest.raises(PreconditionError):
        asyncio.run(depositor.deposit_items(None, "oak_log"))


def test_find_chest(world, state, navigator, behavior):
    world.add_chest((12, 64, -55))
    depositor = _depositor(world, state, navigator, behavior)

    found = asyncio.run(depositor.find_chest())
    missing = asyncio.run(depositor.find_nearest_chest(location=(500, 64, 500)))

    assert found.success
    assert found.data["position"] == {"x": 12.0, "y": 64.0, "z": -55.0}
    assert missing is None


def test_deposit_all_reports_items_left_over(world, state, navigator, behavior):
    chest = world.add_chest(ANCHOR, capacity=10)
    world.give("sugar_cane", 8)
    world.give("oak_log", 5)
    world.give("stone_pickaxe")
    depositor = _depositor(world, state, navigator, behavior)

    result = asyncio.run(depositor.execute_deposit_all())

    assert not result.success
    assert result.message == "Deposited 10 items, no room for oak_log!"
    assert result.data["failed"] == ["oak_log"]
    assert chest.contents == {"sugar_cane": 8, "oak_log": 2}
    assert world.count("oak_log") == 3
    assert world.count("stone_pickaxe") == 1
    assert state.current_task is None


def test_deposit_all_without_chest(world, state, navigator, behavior):
    world.give("dirt", 3)
    depositor = _depositor(world, state, navigator, behavior)

    result = asyncio.run(depositor.execute_deposit_all())

    assert not result.success
    assert result.message == "No chest found near target location!"
    assert world.count("dirt") == 3


def test_kept_items():
    assert Depositor.is_kept("iron_axe")
    assert Depositor.is_kept("diamond_sword")
    assert Depositor.is_kept("golden_leggings")
    assert Depositor.is_kept("arrow")
    assert not Depositor.is_kept("oak_log")
    assert not Depositor.is_kept("sugar_cane")
