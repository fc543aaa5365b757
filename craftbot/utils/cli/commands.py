"""Implementations of operator chat commands.

Every command is a coroutine ``(agent, username, args) -> Result``. The
dispatcher :func:`execute` turns unexpected exceptions into a failure result
and resets the agent state so a crashed command never leaves a task behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional

from ...core.result import Result
from ...core.state import Mood
from ...core.world import count_items
from ...systems.combat.armor import armor_status, equip_best_armor
from ...systems.combat.weapons import equip_best_weapon, list_weapons, weapon_status
from ...systems.interaction.tools import TOOL_TYPES, equip_best_tool, list_tools

if TYPE_CHECKING:
    from ...core.agent import Agent


logger = logging.getLogger(__name__)

Handler = Callable[["Agent", Optional[str], List[str]], Awaitable[Result]]


@dataclass
class Command:
    name: str
    handler: Handler
    usage: str
    description: str


def _toggle(args: List[str]) -> Optional[bool]:
    if not args:
        return None
    value = args[0].lower()
    if value in ("on", "true", "yes", "enable"):
        return True
    if value in ("off", "false", "no", "disable"):
        return False
    return None


def _fmt(position: Any) -> str:
    return f"{int(position.x)}, {int(position.y)}, {int(position.z)}"


# ----------------------------------------------------------------------
# Movement
# ----------------------------------------------------------------------
async def come(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    if username is None:
        return Result.fail("I don't know who to come to!")
    return await agent.navigator.go_to_player(username)


async def goto(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    if len(args) < 3:
        return Result.fail("Usage: goto <x> <y> <z>")
    try:
        x, y, z = (float(a) for a in args[:3])
    except ValueError:
        return Result.fail("Invalid coordinates! Usage: goto <x> <y> <z>")
    return await agent.navigator.go_to_position((x, y, z))


async def follow(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    target = args[0] if args else username
    if target is None:
        return Result.fail("Usage: follow <player>")
    return agent.navigator.follow_player(target)


async def stop(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    if agent.combat.in_combat:
        agent.combat.stop_combat()
    return agent.navigator.stop()


async def explore(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    distance = None
    if args:
        try:
            distance = float(args[0])
        except ValueError:
            return Result.fail("Usage: explore [distance]")
    return await agent.navigator.explore(distance)


async def opendoor(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    opened = await agent.navigator.open_nearby_doors(radius=5)
    if opened:
        return Result.ok(f"Opened {opened} door(s)!", opened=opened)
    return Result.fail("No closed doors nearby!")


async def home(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await agent.navigator.return_home(agent.settings.home)


async def sethome(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    position = agent.world.position.floored()
    if agent.settings.set_home(position):
        return Result.ok(f"Home set to {_fmt(position)}!")
    return Result.ok(f"Home set to {_fmt(position)} (warning: failed to save to file)")


# ----------------------------------------------------------------------
# Resources
# ----------------------------------------------------------------------
async def chop(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    if not args:
        return await agent.lumberjack.execute_chop()
    if args[0].lower() == "tree":
        return await agent.lumberjack.chop_tree()
    try:
        count = int(args[0])
    except ValueError:
        return Result.fail("Usage: chop [count|tree]")
    if count <= 0:
        return Result.fail("Count must be positive!")
    return await agent.lumberjack.chop_area(count)


async def farm(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await agent.farmer.execute_harvest()


async def autofarm(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    enabled = _toggle(args)
    if enabled is None:
        enabled = not agent.settings.auto_farm
    agent.settings.set_auto_farm(enabled)
    if enabled:
        return Result.ok("Auto-farm enabled! I will keep harvesting sugar cane.")
    return Result.ok("Auto-farm disabled.")


async def craftaxe(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await agent.crafter.craft_tool_chain()


async def craftplanks(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await agent.crafter.craft_planks(8)


async def craftsticks(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await agent.crafter.craft_sticks(4)


async def crafttable(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await agent.crafter.craft_crafting_table()


async def findtable(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    radius = agent.crafter.config.table_search_radius
    tables = await agent.world.find_blocks(["crafting_table"], radius, count=1)
    if not tables:
        return Result.fail(f"No crafting table found within {radius:.0f} blocks!")
    table = tables[0]
    distance = agent.world.position.distance_to(table.position)
    return Result.ok(
        f"Found crafting table at {_fmt(table.position)} ({distance:.1f} blocks away)",
        position=table.position.to_dict(),
    )


# ----------------------------------------------------------------------
# Combat
# ----------------------------------------------------------------------
async def combat(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    hostiles = agent.combat.nearby_hostiles()
    defend = "ON" if agent.settings.auto_defend else "OFF"
    return Result.ok(
        f"{agent.combat.get_status()} | Hostiles nearby: {len(hostiles)} | Auto-defend: {defend}",
        hostiles=len(hostiles),
    )


async def attack(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await agent.combat.force_attack()


async def retreat(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await agent.combat.force_retreat()


async def defend(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    enabled = _toggle(args)
    if enabled is None:
        enabled = not agent.settings.auto_defend
    agent.settings.set_auto_defend(enabled)
    if not enabled and agent.combat.in_combat:
        agent.combat.stop_combat()
    return Result.ok("Auto-defend enabled!" if enabled else "Auto-defend disabled.")


# ----------------------------------------------------------------------
# Storage
# ----------------------------------------------------------------------
async def deposit(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    item = args[0] if args else agent.farmer.crop
    return await agent.depositor.execute_deposit(item, threshold=1)


async def depositall(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await agent.depositor.execute_deposit_all()


async def findchest(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await agent.depositor.find_chest()


# ----------------------------------------------------------------------
# Equipment
# ----------------------------------------------------------------------
async def armor(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return armor_status(agent.world)


async def equiparmor(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await equip_best_armor(agent.world, agent.config.armor.material_priority)


async def weapon(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    s = weapon_status(agent.world.held_item())
    if s["type"] == "none":
        return Result.ok("Holding: empty | Type: Empty hand | Damage: 1 (fist)", **s)
    if s["type"] == "tool":
        detail = f"Type: Tool | Efficiency: {s['efficiency']}"
    elif s["type"] == "weapon":
        detail = f"Type: Weapon | Damage: {s['damage']}"
    else:
        detail = "Type: Other item"
    return Result.ok(f"Holding: {s['holding']} | {detail}", **s)


async def equipweapon(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    return await equip_best_weapon(agent.world, agent.config.combat.weapon_priority)


async def equiptool(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    if not args:
        return Result.fail(f"Usage: equiptool <{'|'.join(TOOL_TYPES)}>")
    return await equip_best_tool(agent.world, args[0])


# ----------------------------------------------------------------------
# Introspection
# ----------------------------------------------------------------------
async def help_command(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    if args:
        cmd = COMMANDS.get(args[0].lower())
        if cmd is None:
            return Result.fail(f"Unknown command: {args[0]}")
        return Result.ok(f"{cmd.usage} - {cmd.description}")
    return Result.ok("Commands: " + ", ".join(COMMANDS), commands=list(COMMANDS))


async def status(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    snap = agent.state.snapshot()
    stats = snap["statistics"]
    task = snap["task"]["description"] if snap["task"] else "none"
    message = (
        f"Status: {snap['mood']} | Task: {task} | "
        f"Health: {agent.world.health:.0f}/20 Food: {agent.world.food:.0f}/20 | "
        f"Logs: {stats['logs_chopped']} Plants: {stats['plants_harvested']} "
        f"Axes: {stats['axes_crafted']} Kills: {stats['mobs_killed']} | "
        f"Uptime: {int(snap['uptime'])}s"
    )
    return Result.ok(message, snapshot=snap)


async def pos(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    position = agent.navigator.get_position()
    return Result.ok(f"I am at {_fmt(position)}", position=position.to_dict())


async def inv(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    items = agent.world.inventory()
    if not items:
        return Result.ok("Inventory is empty!")
    totals: Dict[str, int] = {}
    for item in items:
        totals[item.name] = totals.get(item.name, 0) + item.count
    listing = ", ".join(f"{name} x{count}" for name, count in sorted(totals.items()))
    return Result.ok(f"Inventory: {listing}", items=totals)


async def tools(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    found = list_tools(agent.world.inventory())
    if not found:
        return Result.ok("No tools in inventory!")
    listing = ", ".join(f"{t['name']} (eff {t['efficiency']})" for t in found)
    return Result.ok(f"Tools: {listing}", tools=found)


async def weapons(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    found = list_weapons(agent.world.inventory())
    if not found:
        return Result.ok("No weapons in inventory!")
    best = agent.combat.get_best_weapon()
    listing = ", ".join(f"{w['name']} ({w['damage']} dmg)" for w in found)
    return Result.ok(f"Weapons: {listing} | Best: {best}", weapons=found, best=best)


async def eat(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    enabled = _toggle(args)
    if enabled is True:
        agent.auto_eat.enabled = True
        return Result.ok("Auto-eat enabled! I will eat when health or hunger is not full.")
    if enabled is False:
        agent.auto_eat.enabled = False
        return Result.ok("Auto-eat disabled. I will not eat automatically.")
    s = agent.auto_eat.get_status()
    yn = lambda flag: "YES" if flag else "NO"  # noqa: E731
    return Result.ok(
        f"Auto-eat: {yn(s['enabled'])} | Health: {s['health']:.0f}/20 | Hunger: {s['hunger']:.0f}/20 | "
        f"Needs food: {yn(s['needs_food'])} | Has food: {yn(s['has_food'])}",
        **s,
    )


async def debug(agent: Agent, username: Optional[str], args: List[str]) -> Result:
    info = agent.crafter.debug_info()
    logs = count_items(agent.world.inventory(), "#logs")
    return Result.ok(f"{info.message} | Log blocks: {logs}", **info.data)


_COMMAND_LIST = [
    Command("come", come, "come", "Come to you"),
    Command("goto", goto, "goto <x> <y> <z>", "Go to coordinates"),
    Command("follow", follow, "follow [player]", "Follow you or another player"),
    Command("stop", stop, "stop", "Stop current action"),
    Command("explore", explore, "explore [distance]", "Explore randomly"),
    Command("opendoor", opendoor, "opendoor", "Open nearby doors"),
    Command("home", home, "home", "Return to home position"),
    Command("sethome", sethome, "sethome", "Set current position as home"),
    Command("chop", chop, "chop [count|tree]", "Chop the nearest log, several logs, or a whole tree"),
    Command("farm", farm, "farm", "Harvest a batch of sugar cane"),
    Command("autofarm", autofarm, "autofarm [on|off]", "Toggle automatic farming"),
    Command("craftaxe", craftaxe, "craftaxe", "Craft an axe, making planks and sticks first if needed"),
    Command("craftplanks", craftplanks, "craftplanks", "Craft planks from logs"),
    Command("craftsticks", craftsticks, "craftsticks", "Craft sticks from planks"),
    Command("crafttable", crafttable, "crafttable", "Craft a crafting table"),
    Command("findtable", findtable, "findtable", "Find nearby crafting table"),
    Command("combat", combat, "combat", "Show combat status"),
    Command("attack", attack, "attack", "Attack the nearest hostile mob"),
    Command("retreat", retreat, "retreat", "Retreat from combat"),
    Command("defend", defend, "defend [on|off]", "Toggle auto-defend"),
    Command("deposit", deposit, "deposit [item]", "Deposit items into the storage chest"),
    Command("depositall", depositall, "depositall", "Deposit everything except tools, weapons and armor"),
    Command("findchest", findchest, "findchest", "Find the storage chest"),
    Command("armor", armor, "armor", "Show worn armor"),
    Command("equiparmor", equiparmor, "equiparmor", "Equip the best available armor"),
    Command("weapon", weapon, "weapon", "Show the item in hand"),
    Command("equipweapon", equipweapon, "equipweapon", "Equip the best available weapon"),
    Command("equiptool", equiptool, "equiptool <pickaxe|axe|shovel|hoe>", "Equip the best tool of a type"),
    Command("help", help_command, "help [command]", "Show available commands"),
    Command("status", status, "status", "Show bot status and statistics"),
    Command("pos", pos, "pos", "Show current position"),
    Command("inv", inv, "inv", "Show inventory"),
    Command("tools", tools, "tools", "List tools"),
    Command("weapons", weapons, "weapons", "List weapons"),
    Command("eat", eat, "eat [on|off]", "Show auto-eat status or toggle on/off"),
    Command("debug", debug, "debug", "Show crafting debug info"),
]

COMMANDS: Dict[str, Command] = {c.name: c for c in _COMMAND_LIST}


async def execute(agent: Agent, command: str, args: List[str], username: Optional[str] = None) -> Result:
    """Run ``command`` and return its result; never raises for command errors."""

    cmd = COMMANDS.get(command.lower())
    if cmd is None:
        logger.info("Unknown command: %s", command)
        return Result.fail(f"Unknown command: {command}. Type 'help' for available commands.")

    logger.info("Executing %s %s for %s", cmd.name, " ".join(args), username)
    try:
        result = await cmd.handler(agent, username, args)
    except Exception as exc:
        logger.exception("Error executing command %s", cmd.name)
        agent.state.cancel_task()
        agent.state.set_mood(Mood.IDLE)
        return Result.fail(f"Error: {exc}")

    if not result.success and agent.state.current_task is None and agent.state.mood is not Mood.COMBAT:
        agent.state.set_mood(Mood.IDLE)
    return result


__all__ = ["Command", "COMMANDS", "execute"]
