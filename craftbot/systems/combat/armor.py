"""Armor ranking and equipping."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from ...config import CONFIG
from ...core.errors import CraftbotError
from ...core.result import Result
from ...core.world import ARMOR_SLOT_ORDER, Item, World, armor_slot


logger = logging.getLogger(__name__)


def armor_material(name: str) -> str:
    return name.rsplit("_", 1)[0]


def armor_rank(name: str, priority: Sequence[str]) -> int:
    """Position of the piece's material in ``priority``; lower is better."""

    material = armor_material(name)
    if material in priority:
        return list(priority).index(material)
    return len(priority)


def best_armor(items: Sequence[Item], priority: Sequence[str]) -> Dict[str, str]:
    """Best carried piece per slot. Ties keep inventory order."""

    best: Dict[str, str] = {}
    for item in items:
        slot = armor_slot(item.name)
        if slot is None:
            continue
        current = best.get(slot)
        if current is None or armor_rank(item.name, priority) < armor_rank(current, priority):
            best[slot] = item.name
    return best


async def equip_best_armor(world: World, priority: Optional[Sequence[str]] = None) -> Result:
    """Put on the best carried piece for every slot it improves."""

    priority = list(priority or CONFIG.armor.material_priority)
    worn = world.armor()
    candidates = best_armor(world.inventory(), priority)
    equipped = []
    for slot in ARMOR_SLOT_ORDER:
        name = candidates.get(slot)
        if name is None:
            continue
        current = worn.get(slot)
        if current is not None and armor_rank(current, priority) <= armor_rank(name, priority):
            continue
        try:
            await world.equip(name, slot)
        except CraftbotError as exc:
            logger.warning("Could not equip %s: %s", name, exc)
            continue
        logger.info("Equipped %s on %s", name, slot)
        equipped.append(name)

    if equipped:
        return Result.ok(f"Equipped {', '.join(equipped)}!", equipped=equipped)
    if any(worn.values()):
        return Result.ok("Already wearing the best armor available.", equipped=[])
    return Result.fail("No armor in inventory!")


def armor_status(world: World) -> Result:
    worn = world.armor()
    parts = [f"{slot.capitalize()}: {worn.get(slot) or 'empty'}" for slot in ARMOR_SLOT_ORDER]
    return Result.ok(" | ".join(parts), armor={slot: worn.get(slot) for slot in ARMOR_SLOT_ORDER})


__all__ = ["armor_material", "armor_rank", "best_armor", "equip_best_armor", "armor_status"]
