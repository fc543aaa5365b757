"""Walk over dropped items to pick them up."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional

from ...core.errors import CraftbotError
from ...core.vec import Vec3
from ...core.world import Entity, World
from ..movement.goals import GoalBlock


logger = logging.getLogger(__name__)


def find_drops(
    world: World,
    center: Vec3,
    radius: float,
    item_names: Optional[Iterable[str]] = None,
) -> List[Entity]:
    """Dropped items within ``radius`` of ``center``, nearest first."""

    wanted = set(item_names) if item_names is not None else None
    drops = [
        e
        for e in world.entities()
        if e.kind == "object"
        and e.is_valid
        and e.position.distance_to(center) <= radius
        and (wanted is None or e.item_name in wanted)
    ]
    drops.sort(key=lambda e: e.position.distance_to(world.position))
    return drops


async def collect_drops(
    world: World,
    center: Vec3,
    radius: float,
    item_names: Optional[Iterable[str]] = None,
    timeout: float = 8.0,
) -> int:
    """Visit each drop near ``center`` and return how many were picked up.

    A drop that cannot be reached within ``timeout`` seconds is skipped; the
    rest of the batch is still collected.
    """

    drops = find_drops(world, center, radius, item_names)
    if not drops:
        return 0
    logger.info("Collecting %d dropped items", len(drops))

    collected = 0
    for drop in drops:
        current = world.entity(drop.id)
        if current is None or not current.is_valid:
            continue
        try:
            await asyncio.wait_for(world.goto(GoalBlock(current.position)), timeout)
        except asyncio.TimeoutError:
            logger.debug("Timed out walking to item %d", drop.id)
            world.set_goal(None)
        except CraftbotError as exc:
            logger.debug("Could not reach item %d: %s", drop.id, exc)
        after = world.entity(drop.id)
        if after is None or not after.is_valid:
            collected += 1
    logger.info("Collected %d/%d items", collected, len(drops))
    return collected


__all__ = ["find_drops", "collect_drops"]
