import asyncio

import pytest

from craftbot.core.agent import Agent
from craftbot.core.state import Mood
from craftbot.core.vec import Vec3
from craftbot.persistence.event_log import EventLog
from craftbot.persistence.settings import SettingsStore
from craftbot.utils.cli.commands import COMMANDS, execute


@pytest.fixture
def agent(world, config):
    return Agent(world, config, settings=SettingsStore(), event_log=EventLog())


def run(agent, line, username="Steve"):
    name, *args = line.split()
    return asyncio.run(execute(agent, name, args, username))


def test_every_command_has_usage():
    for name, cmd in COMMANDS.items():
        assert cmd.name == name
        assert cmd.usage.startswith(name)


def test_unknown_command(agent):
    result = run(agent, "fly away")
    assert not result.success
    assert result.message == "Unknown command: fly. Type 'help' for available commands."


def test_goto_usage_and_bad_coordinates(agent):
    assert run(agent, "goto 1 2").message == "Usage: goto <x> <y> <z>"
    assert run(agent, "goto a b c").message.startswith("Invalid coordinates!")


def test_goto_reaches_coordinates(agent, world):
    result = run(agent, "goto 5 64 5")
    assert result.success
    assert result.message.startswith("Reached destination!")
    assert world.position == Vec3(5, 64, 5)
    assert agent.state.current_task is None


def test_sethome_and_home(agent, world):
    world.teleport((3.7, 64, -2.2))
    assert run(agent, "sethome").message == "Home set to 3, 64, -3!"
    assert agent.settings.home == Vec3(3, 64, -3)
    assert run(agent, "home").message == "Already home!"


def test_home_without_home_resets_mood(agent):
    agent.state.set_mood(Mood.WORKING)
    result = run(agent, "home")
    assert result.message == "No home set! Use 'sethome' first."
    assert agent.state.mood is Mood.IDLE


def test_handler_exception_resets_state(agent, monkeypatch):
    async def boom():
        agent.state.set_task("chop", "Chopping")
        raise RuntimeError("boom")

    monkeypatch.setattr(agent.lumberjack, "execute_chop", boom)

    result = run(agent, "chop")

    assert not result.success
    assert result.message == "Error: boom"
    assert agent.state.current_task is None
    assert agent.state.mood is Mood.IDLE


def test_chop_argument_validation(agent):
    assert run(agent, "chop lots").message == "Usage: chop [count|tree]"
    assert run(agent, "chop 0").message == "Count must be positive!"


def test_follow_and_stop(agent, world):
    world.add_player("Steve", (4, 64, 0))
    assert run(agent, "follow").message == "Now following Steve! Use 'stop' to stop following."
    assert agent.state.task_name() == "follow"
    assert run(agent, "stop").message == "Stopped following!"
    assert run(agent, "stop").message == "Stopped moving!"
    assert agent.state.is_idle()


def test_come_needs_known_player(agent):
    assert run(agent, "come").message == "Cannot find player Steve!"
    assert not asyncio.run(execute(agent, "come", [], None)).success


def test_toggles(agent):
    assert run(agent, "autofarm on").message.startswith("Auto-farm enabled!")
    assert agent.settings.auto_farm
    assert run(agent, "autofarm").message == "Auto-farm disabled."
    assert not agent.settings.auto_farm

    assert run(agent, "defend on").message == "Auto-defend enabled!"
    assert agent.settings.auto_defend
    assert run(agent, "defend off").message == "Auto-defend disabled."

    assert run(agent, "eat off").message.startswith("Auto-eat disabled.")
    assert not agent.auto_eat.enabled
    assert run(agent, "eat").message.startswith("Auto-eat: NO")


def test_introspection(agent, world):
    assert run(agent, "pos").message == "I am at 0, 64, 0"
    assert run(agent, "inv").message == "Inventory is empty!"
    world.give("stick", 2)
    world.give("oak_log", 3)
    assert run(agent, "inv").message == "Inventory: oak_log x3, stick x2"
    assert run(agent, "status").message.startswith("Status: idle | Task: none | Health: 20/20")
    assert run(agent, "tools").message == "No tools in inventory!"
    assert run(agent, "weapons").message == "No weapons in inventory!"
    assert "Not in combat" in run(agent, "combat").message


def test_help(agent):
    result = run(agent, "help")
    assert result.message.startswith("Commands: come, goto")
    assert "chop" in result.data["commands"]
    assert run(agent, "help goto").message == "goto <x> <y> <z> - Go to coordinates"
    assert not run(agent, "help nope").success


def test_deposit_defaults_to_crop(agent):
    result = run(agent, "deposit")
    assert result.message == "Not enough sugar_cane to deposit (0/1)"


def test_findtable(agent, world):
    assert not run(agent, "findtable").success
    world.add_block("crafting_table", (3, 64, 4))
    result = run(agent, "findtable")
    assert result.message == "Found crafting table at 3, 64, 4 (5.0 blocks away)"


def test_craftaxe_with_empty_inventory_reports_no_materials(agent, world):
    result = run(agent, "craftaxe")

    assert not result.success
    assert "no materials" in result.message
    assert result.data["reason"] == "no_materials"
    assert world.crafted == []
    assert agent.state.current_task is None


def test_craftaxe_skips_when_axe_carried(agent, world):
    world.give("stone_axe")

    result = run(agent, "craftaxe")

    assert result.success
    assert result.message == "Axe already available"


def test_work_commands_refused_mid_engagement(agent, world):
    world.add_block("oak_log", (5, 64, 5))
    world.add_block("sand", (4, 63, 0))
    world.add_block("sugar_cane", (4, 64, 0))
    world.add_block("sugar_cane", (4, 65, 0))
    world.give("cobblestone", 5)
    agent.state.set_task("combat", "Fighting zombie")

    for line in ("chop", "chop 3", "chop tree", "farm", "deposit cobblestone", "depositall", "goto 5 64 5"):
        result = run(agent, line)
        assert not result.success, line
        assert result.message == "Busy: in combat", line

    assert world.dug == []
    assert world.position == Vec3(0, 64, 0)
    assert agent.state.task_name() == "combat"


def test_armor_commands(agent, world):
    assert run(agent, "armor").message == "Head: empty | Torso: empty | Legs: empty | Feet: empty"
    assert run(agent, "equiparmor").message == "No armor in inventory!"

    world.give("leather_helmet")
    world.give("iron_helmet")
    world.give("diamond_boots")

    result = run(agent, "equiparmor")

    assert result.success
    assert result.message == "Equipped iron_helmet, diamond_boots!"
    assert world.worn["head"] == "iron_helmet"
    assert world.worn["feet"] == "diamond_boots"
    assert world.count("leather_helmet") == 1
    assert run(agent, "armor").message == "Head: iron_helmet | Torso: empty | Legs: empty | Feet: diamond_boots"
    assert run(agent, "equiparmor").message == "Already wearing the best armor available."


def test_weapon_commands(agent, world):
    assert run(agent, "weapon").message.startswith("Holding: empty")
    assert run(agent, "equipweapon").message == "No weapons found in inventory!"

    world.give("stone_sword")
    world.give("iron_sword")

    result = run(agent, "equipweapon")

    assert result.success
    assert result.message == "Equipped iron_sword (6 damage)"
    assert world.held == "iron_sword"
    assert run(agent, "weapon").message == "Holding: iron_sword | Type: Weapon | Damage: 6"
    assert run(agent, "equipweapon").data["already_equipped"]


def test_equiptool_command(agent, world):
    assert run(agent, "equiptool").message == "Usage: equiptool <pickaxe|axe|shovel|hoe>"
    assert run(agent, "equiptool spoon").message == "Invalid tool type! Use: pickaxe, axe, shovel, hoe"
    assert run(agent, "equiptool pickaxe").message == "No pickaxe found in inventory!"

    world.give("wooden_pickaxe")
    world.give("iron_pickaxe")

    result = run(agent, "equiptool pickaxe")

    assert result.message == "Equipped iron_pickaxe (efficiency: 6)"
    assert world.held == "iron_pickaxe"
    assert run(agent, "weapon").message == "Holding: iron_pickaxe | Type: Tool | Efficiency: 6"


def test_depositall_keeps_gear(agent, world):
    assert run(agent, "depositall").message == "Nothing to deposit!"

    chest = world.add_chest((10, 64, -55))
    world.give("sugar_cane", 12)
    world.give("oak_log", 5)
    world.give("iron_axe")
    world.give("iron_sword")
    world.give("iron_helmet")
    world.give("arrow", 16)

    result = run(agent, "depositall")

    assert result.success
    assert result.message == "Deposited 17 items into chest!"
    assert result.data["items"] == ["sugar_cane", "oak_log"]
    assert chest.contents == {"sugar_cane": 12, "oak_log": 5}
    assert world.count("iron_axe") == 1
    assert world.count("iron_sword") == 1
    assert world.count("iron_helmet") == 1
    assert world.count("arrow") == 16
