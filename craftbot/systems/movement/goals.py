"""Movement goals understood by :meth:`World.goto` and :meth:`World.set_goal`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...core.vec import Vec3


@dataclass(frozen=True)
class GoalNear:
    """Reach any point within ``tolerance`` blocks of ``point``."""

    point: Vec3
    tolerance: float = 2

    def target(self, world: Any) -> Optional[Vec3]:
        return self.point

    @property
    def range(self) -> float:
        return self.tolerance

    def is_satisfied(self, world: Any, position: Vec3) -> bool:
        return position.distance_to(self.point) <= self.tolerance

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "near", "point": self.point.to_dict(), "range": self.tolerance}


@dataclass(frozen=True)
class GoalBlock:
    """Stand on the block at ``position``."""

    position: Vec3

    def target(self, world: Any) -> Optional[Vec3]:
        return self.position

    @property
    def range(self) -> float:
        return 0.5

    def is_satisfied(self, world: Any, position: Vec3) -> bool:
        return position.floored() == self.position.floored()

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "block", "point": self.position.to_dict()}


@dataclass(frozen=True)
class GoalFollow:
    """Stay within ``distance`` of a live entity.

    Only the entity id is stored; the target position is looked up from the
    world every time it is read, so the goal tracks the entity as it moves and
    lapses once the entity disappears.
    """

    entity_id: int
    distance: float = 1

    def target(self, world: Any) -> Optional[Vec3]:
        entity = world.entity(self.entity_id)
        if entity is None or not entity.is_valid:
            return None
        return entity.position

    @property
    def range(self) -> float:
        return self.distance

    def is_satisfied(self, world: Any, position: Vec3) -> bool:
        target = self.target(world)
        return target is not None and position.distance_to(target) <= self.distance

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "follow", "entity_id": self.entity_id, "range": self.distance}


__all__ = ["GoalNear", "GoalBlock", "GoalFollow"]
