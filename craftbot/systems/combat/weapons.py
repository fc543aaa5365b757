"""Weapon damage table and selection helpers."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from ...core.errors import CraftbotError
from ...core.result import Result
from ...core.world import Item, World
from ..interaction.tools import tool_efficiency, tool_type


logger = logging.getLogger(__name__)


WEAPON_DAMAGE: Dict[str, int] = {
    "netherite_axe": 10,
    "diamond_axe": 9,
    "iron_axe": 9,
    "stone_axe": 9,
    "golden_axe": 7,
    "wooden_axe": 7,
    "netherite_sword": 8,
    "diamond_sword": 7,
    "iron_sword": 6,
    "stone_sword": 5,
    "golden_sword": 4,
    "wooden_sword": 4,
    "trident": 9,
}

# Fist damage
DEFAULT_DAMAGE = 1


def weapon_damage(name: Optional[str]) -> int:
    if name is None:
        return DEFAULT_DAMAGE
    return WEAPON_DAMAGE.get(name, DEFAULT_DAMAGE)


def is_weapon(name: str) -> bool:
    return name.endswith("_sword") or name.endswith("_axe") or name == "trident"


def list_weapons(items: Sequence[Item]) -> List[Dict[str, object]]:
    """Weapons in ``items`` sorted by damage, best first."""

    weapons = sorted((i for i in items if is_weapon(i.name)), key=lambda i: weapon_damage(i.name), reverse=True)
    return [{"name": i.name, "damage": weapon_damage(i.name), "count": i.count} for i in weapons]


def best_weapon(items: Sequence[Item], priority: Sequence[str] | None = None) -> Optional[str]:
    """Name of the best weapon held in ``items``.

    ``priority`` wins when given; otherwise the damage table decides. Ties
    keep inventory order.
    """

    names = [i.name for i in items]
    if priority:
        for name in priority:
            if name in names:
                return name
    weapons = [n for n in names if is_weapon(n)]
    if not weapons:
        return None
    return max(weapons, key=weapon_damage)


def weapon_status(held: Optional[Item]) -> Dict[str, object]:
    """Describe the item in hand as a weapon, a tool or neither."""

    if held is None:
        return {"holding": "empty", "type": "none", "damage": DEFAULT_DAMAGE, "efficiency": 0, "count": 0}
    if is_weapon(held.name):
        kind = "weapon"
    elif tool_type(held.name) is not None:
        kind = "tool"
    else:
        kind = "other"
    return {
        "holding": held.name,
        "type": kind,
        "damage": weapon_damage(held.name),
        "efficiency": tool_efficiency(held.name),
        "count": held.count,
    }


async def equip_best_weapon(world: World, priority: Sequence[str] | None = None) -> Result:
    """Hold the best weapon unless the current item hits at least as hard."""

    weapon = best_weapon(world.inventory(), priority)
    if weapon is None:
        return Result.fail("No weapons found in inventory!")
    held = world.held_item()
    if held is not None and weapon_damage(held.name) >= weapon_damage(weapon):
        return Result.ok(f"Already holding {held.name}", weapon=held.name, already_equipped=True)
    try:
        await world.equip(weapon, "hand")
    except CraftbotError as exc:
        logger.warning("Could not equip %s: %s", weapon, exc)
        return Result.fail(f"Failed to equip {weapon}: {exc}")
    logger.info("Equipped %s (%d damage)", weapon, weapon_damage(weapon))
    return Result.ok(
        f"Equipped {weapon} ({weapon_damage(weapon)} damage)", weapon=weapon, already_equipped=False
    )


__all__ = [
    "WEAPON_DAMAGE",
    "weapon_damage",
    "is_weapon",
    "list_weapons",
    "best_weapon",
    "weapon_status",
    "equip_best_weapon",
]
