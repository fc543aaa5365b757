"""Tool ranking and equipping."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from ...config import CONFIG
from ...core.errors import CraftbotError
from ...core.result import Result
from ...core.world import Item, World


logger = logging.getLogger(__name__)

TOOL_TYPES = ("pickaxe", "axe", "shovel", "hoe")

_TIER_EFFICIENCY = {
    "netherite": 9,
    "diamond": 8,
    "iron": 6,
    "stone": 4,
    "golden": 12,
    "wooden": 2,
}

TOOL_EFFICIENCY: Dict[str, int] = {
    f"{tier}_{kind}": value for tier, value in _TIER_EFFICIENCY.items() for kind in TOOL_TYPES
}


def tool_efficiency(name: str) -> int:
    return TOOL_EFFICIENCY.get(name, 1)


def tool_type(name: str) -> Optional[str]:
    for kind in TOOL_TYPES:
        if name.endswith(f"_{kind}"):
            return kind
    return None


def has_axe(items: Sequence[Item]) -> bool:
    return any(tool_type(i.name) == "axe" for i in items)


def list_tools(items: Sequence[Item]) -> List[Dict[str, object]]:
    """Tools in ``items``, best first."""

    tools = [i for i in items if tool_type(i.name) is not None]
    tools.sort(key=lambda i: tool_efficiency(i.name), reverse=True)
    return [
        {"name": i.name, "type": tool_type(i.name), "efficiency": tool_efficiency(i.name), "count": i.count}
        for i in tools
    ]


async def equip_best_axe(world: World, priority: Sequence[str] | None = None) -> Result:
    """Equip the first axe from ``priority`` that is in the inventory."""

    priority = priority or CONFIG.crafting.axe_priority
    names = {i.name for i in world.inventory()}
    for axe in priority:
        if axe in names:
            try:
                await world.equip(axe, "hand")
            except CraftbotError as exc:
                logger.warning("Could not equip %s: %s", axe, exc)
                return Result.fail(f"Failed to equip {axe}: {exc}")
            logger.debug("Equipped %s", axe)
            return Result.ok(f"Equipped {axe}", item=axe)
    return Result.fail("No axe available")


async def equip_best_tool(world: World, kind: str) -> Result:
    """Hold the most efficient carried tool of ``kind``."""

    kind = kind.lower()
    if kind not in TOOL_TYPES:
        return Result.fail(f"Invalid tool type! Use: {', '.join(TOOL_TYPES)}")
    tools = [i.name for i in world.inventory() if tool_type(i.name) == kind]
    if not tools:
        return Result.fail(f"No {kind} found in inventory!")
    best = max(tools, key=tool_efficiency)
    try:
        await world.equip(best, "hand")
    except CraftbotError as exc:
        logger.warning("Could not equip %s: %s", best, exc)
        return Result.fail(f"Failed to equip {best}: {exc}")
    return Result.ok(f"Equipped {best} (efficiency: {tool_efficiency(best)})", item=best)


__all__ = [
    "TOOL_TYPES",
    "TOOL_EFFICIENCY",
    "tool_efficiency",
    "tool_type",
    "has_axe",
    "list_tools",
    "equip_best_axe",
    "equip_best_tool",
]
