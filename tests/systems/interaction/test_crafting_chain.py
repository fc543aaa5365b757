import asyncio

from craftbot.core.state import Mood
from craftbot.core.vec import Vec3
from craftbot.persistence.event_log import CRAFT
from craftbot.systems.interaction.crafting import TABLE_LANDMARK, Crafter
from craftbot.systems.interaction.lumberjack import Lumberjack
from craftbot.systems.interaction.pipeline import Step


def _lumberjack(world, state, navigator, crafting, settings, harvest, behavior, event_log=None):
    crafter = Crafter(world, state, navigator, crafting, event_log)
    return Lumberjack(
        world, state, navigator, crafter, None, settings, harvest, behavior, event_log
    )


def test_no_materials_fails_and_resets_state(world, state, navigator, crafting, settings, harvest, behavior):
    lumberjack = _lumberjack(world, state, navigator, crafting, settings, harvest, behavior)

    result = asyncio.run(lumberjack.execute_chop())

    assert not result.success
    assert "no materials" in result.message
    assert result.data["reason"] == "no_materials"
    assert state.current_task is None
    assert state.mood is Mood.IDLE
    assert not result.data["chain"].reached(Step.LOCATE)


def test_tool_chain_no_materials(world, state, navigator, crafting):
    crafter = Crafter(world, state, navigator, crafting)

    result = asyncio.run(crafter.craft_tool_chain())

    assert not result.success
    assert result.data["reason"] == "no_materials"
    assert world.crafted == []


def test_no_placeable_table_stops_before_locate(world, state, navigator, crafting, settings, harvest, behavior):
    world.give("oak_log", 3)
    world.add_block("oak_log", (5, 64, 5))
    world.can_place = False
    lumberjack = _lumberjack(world, state, navigator, crafting, settings, harvest, behavior)

    result = asyncio.run(lumberjack.execute_chop())

    assert not result.success
    assert "crafting table" in result.message
    chain = result.data["chain"]
    assert chain.failed_step is Step.ENSURE_PREREQUISITE
    assert not chain.reached(Step.LOCATE)
    assert world.dug == []
    assert state.current_task is None
    assert state.mood is Mood.IDLE


def test_tool_chain_detours_through_planks_and_sticks(world, state, navigator, crafting, event_log):
    world.give("oak_log", 3)
    crafter = Crafter(world, state, navigator, crafting, event_log)

    result = asyncio.run(crafter.craft_tool_chain())

    assert result.success
    assert result.message == "Crafted wooden_axe!"
    # three logs into planks, then one batch of sticks
    assert world.crafted.count("oak_planks") == 3
    assert world.crafted.count("stick") == 1
    assert world.count("stick") == 2
    assert "crafting_table" in world.crafted
    assert world.blocks[(0, 64, 0)].name == "crafting_table"
    assert world.count("wooden_axe") == 1
    assert world.held == "wooden_axe"
    assert state.statistics.axes_crafted == 1
    assert state.recall(TABLE_LANDMARK) is not None
    assert [e["data"]["item"] for e in event_log.of_type(CRAFT)][-1] == "wooden_axe"
    assert state.current_task is None


def test_chop_crafts_axe_then_harvests(world, state, navigator, crafting, settings, harvest, behavior):
    world.give("oak_log", 3)
    world.add_block("oak_log", (5, 64, 5))
    lumberjack = _lumberjack(world, state, navigator, crafting, settings, harvest, behavior)

    result = asyncio.run(lumberjack.execute_chop())

    assert result.success
    assert result.message == "Log chopped successfully!"
    assert world.count("wooden_axe") == 1
    assert world.count("oak_log") == 1
    assert state.statistics.logs_chopped == 1
    chain = result.data["chain"]
    assert [s.step for s in chain.steps][:2] == [Step.ENSURE_PREREQUISITE, Step.LOCATE]
    assert chain.harvested == 1
    assert chain.collected == 1


def test_existing_axe_skips_crafting(world, state, navigator, crafting):
    world.give("stone_axe", 1)
    crafter = Crafter(world, state, navigator, crafting)

    result = asyncio.run(crafter.craft_tool_chain())

    assert result.success
    assert world.crafted == []


def test_craft_planks_and_sticks(world, state, navigator, crafting):
    crafter = Crafter(world, state, navigator, crafting)
    assert asyncio.run(crafter.craft_planks(8)).message == "No logs in inventory!"
    assert asyncio.run(crafter.craft_sticks(4)).message == "No planks in inventory!"

    world.give("birch_log", 5)
    planks = asyncio.run(crafter.craft_planks(8))
    sticks = asyncio.run(crafter.craft_sticks(4))

    assert planks.message == "Crafted 8 planks!"
    assert world.count("birch_planks") == 6
    assert world.count("birch_log") == 3
    assert sticks.message == "Crafted 4 sticks!"
    assert world.count("stick") == 4


def test_craft_crafting_table_needs_planks(world, state, navigator, crafting):
    crafter = Crafter(world, state, navigator, crafting)
    world.give("oak_planks", 3)

    assert asyncio.run(crafter.craft_crafting_table()).message == "Need 4 planks to craft a crafting table!"

    world.give("oak_planks", 1)
    assert asyncio.run(crafter.craft_crafting_table()).message == "Crafted crafting table!"
    assert world.count("crafting_table") == 1


def test_remembered_table_used_and_stale_memory_forgotten(world, state, navigator, crafting):
    crafter = Crafter(world, state, navigator, crafting)
    world.add_block("crafting_table", (200, 64, 0))
    state.remember(TABLE_LANDMARK, Vec3(200, 64, 0))

    table = asyncio.run(crafter.find_or_place_crafting_table())
    assert table is not None and table.position == Vec3(200, 64, 0)

    world.remove_block((200, 64, 0))
    assert asyncio.run(crafter.find_or_place_crafting_table()) is None
    assert state.recall(TABLE_LANDMARK) is None


def test_craft_axe_walks_to_distant_table(world, state, navigator, crafting):
    world.add_block("crafting_table", (20, 64, 0))
    world.give("oak_planks", 3)
    world.give("stick", 2)
    crafter = Crafter(world, state, navigator, crafting)

    result = asyncio.run(crafter.craft_axe())

    assert result.success
    assert world.position.distance_to(Vec3(20, 64, 0)) <= 2


def test_craft_axe_reports_missing_materials(world, state, navigator, crafting):
    world.add_block("crafting_table", (1, 64, 0))
    world.give("oak_planks", 1)
    crafter = Crafter(world, state, navigator, crafting)

    result = asyncio.run(crafter.craft_axe())

    assert not result.success
    assert result.data["reason"] == "materials"
    assert result.message.startswith("Cannot craft any axe! Have: 1 planks, 0 sticks.")


def test_debug_info(world, state, navigator, crafting):
    world.give("oak_log", 2)
    world.give("oak_planks", 3)
    world.give("stick", 2)
    crafter = Crafter(world, state, navigator, crafting)

    info = crafter.debug_info()

    assert info.data["logs"] == 2
    assert info.data["planks"] == 3
    assert info.data["craftable_axes"] == ["wooden_axe"]
