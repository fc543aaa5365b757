"""Self-defence: threat detection, melee/ranged engagement and retreat.

The engager is a small state machine (Idle, Engaging, Retreating). It only
ever holds the *id* of its target and looks the entity up again on every use,
so a mob that dies or despawns between ticks simply ends the engagement.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from ...config import CONFIG, BehaviorConfig, CombatConfig
from ...core.cooldowns import CooldownTracker
from ...core.errors import CraftbotError
from ...core.result import Result
from ...core.state import AgentState, Mood
from ...core.vec import Vec3
from ...core.world import Entity, World, find_item
from ...persistence.event_log import COMBAT_KILL, DEATH, EventLog
from ...persistence.settings import SettingsStore
from ..movement.goals import GoalFollow, GoalNear
from .weapons import best_weapon, weapon_damage


logger = logging.getLogger(__name__)


HOSTILE_MOBS = [
    "zombie", "skeleton", "spider", "creeper", "enderman",
    "witch", "slime", "phantom", "drowned", "husk",
    "stray", "cave_spider", "silverfish", "endermite",
    "blaze", "ghast", "magma_cube", "wither_skeleton",
    "piglin", "hoglin", "zoglin", "pillager", "vindicator",
    "evoker", "ravager", "vex", "guardian", "elder_guardian",
    "shulker", "warden", "wither", "ender_dragon",
]


def is_hostile(name: str) -> bool:
    lowered = name.lower()
    return any(mob in lowered for mob in HOSTILE_MOBS)


class CombatPhase(str, Enum):
    IDLE = "idle"
    ENGAGING = "engaging"
    RETREATING = "retreating"


@dataclass
class CombatEngagement:
    target_id: Optional[int] = None
    in_combat: bool = False
    retreating: bool = False
    last_attack_time: float = 0.0

    @property
    def phase(self) -> CombatPhase:
        if self.retreating:
            return CombatPhase.RETREATING
        if self.in_combat:
            return CombatPhase.ENGAGING
        return CombatPhase.IDLE


class CombatSystem:
    """Decide when and how to fight nearby hostile mobs."""

    def __init__(
        self,
        world: World,
        state: AgentState,
        settings: SettingsStore,
        behavior: BehaviorConfig | None = None,
        config: CombatConfig | None = None,
        event_log: EventLog | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.world = world
        self.state = state
        self.settings = settings
        self.behavior = behavior or CONFIG.behavior
        self.config = config or CONFIG.combat
        self.event_log = event_log
        self._clock = clock
        self.cooldowns = CooldownTracker(clock)
        self.engagement = CombatEngagement()
        # Last engaged target, kept after the engagement ends so a late death
        # event still counts as a kill.
        self._recent_target: Optional[int] = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _target(self) -> Optional[Entity]:
        """Re-resolve the current target, ``None`` if it is gone."""

        if self.engagement.target_id is None:
            return None
        entity = self.world.entity(self.engagement.target_id)
        if entity is None or not entity.is_valid:
            return None
        return entity

    def _clear(self) -> None:
        self.engagement.target_id = None
        self.engagement.in_combat = False

    def _finish(self, completed: bool = True) -> None:
        """Drop the combat task (only if it is still ours) and settle the mood."""

        if completed:
            self.state.complete_task("combat")
        else:
            self.state.cancel_task("combat")
        if self.state.mood is Mood.COMBAT and self.state.task_name() != "combat":
            self.state.set_mood(Mood.IDLE)

    def _has_bow(self) -> bool:
        items = self.world.inventory()
        return find_item(items, "bow") is not None and find_item(items, "arrow") is not None

    @staticmethod
    def _aim_point(target: Entity) -> Vec3:
        return target.position.offset(0, target.height * 0.8, 0)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def in_combat(self) -> bool:
        return self.engagement.in_combat

    @property
    def phase(self) -> CombatPhase:
        return self.engagement.phase

    def find_nearest_hostile(self) -> Optional[Entity]:
        """Nearest hostile within ``combat_radius``; ties keep scan order."""

        here = self.world.position
        nearest: Optional[Entity] = None
        best = float("inf")
        for entity in self.world.entities():
            if entity.kind in ("player", "object") or not entity.is_valid:
                continue
            if not is_hostile(entity.name):
                continue
            distance = here.distance_to(entity.position)
            if distance > self.behavior.combat_radius:
                continue
            if distance < best:
                best = distance
                nearest = entity
        return nearest

    def nearby_hostiles(self) -> List[Entity]:
        here = self.world.position
        return [
            e
            for e in self.world.entities()
            if e.kind not in ("player", "object")
            and is_hostile(e.name)
            and here.distance_to(e.position) <= self.behavior.combat_radius
        ]

    def get_best_weapon(self, ranged: bool = False) -> Optional[str]:
        if ranged and self.config.use_bow and self._has_bow():
            return "bow"
        return best_weapon(self.world.inventory(), self.config.weapon_priority)

    def should_retreat(self) -> bool:
        return self.world.health <= self.behavior.retreat_health

    def get_status(self) -> str:
        if not self.engagement.in_combat:
            return "Not in combat"
        target = self._target()
        if target is None:
            return f"Fighting Unknown (N/A away) | Health: {self.world.health:.0f}/20"
        distance = self.world.position.distance_to(target.position)
        return f"Fighting {target.name} ({distance:.1f}m away) | Health: {self.world.health:.0f}/20"

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    async def equip_best_weapon(self, ranged: bool = False) -> bool:
        weapon = self.get_best_weapon(ranged)
        held = self.world.held_item()
        if weapon is not None and (held is None or held.name != weapon):
            try:
                await self.world.equip(weapon, "hand")
            except CraftbotError as exc:
                logger.warning("Failed to equip weapon: %s", exc)
                return False
            logger.info("Equipped %s for combat (%d damage)", weapon, weapon_damage(weapon))
        return weapon is not None

    async def melee_attack(self, target: Entity) -> None:
        """Close in with a follow goal, then swing on cooldown."""

        attack_range = self.behavior.attack_range
        distance = self.world.position.distance_to(target.position)
        try:
            if distance > attack_range:
                self.world.set_goal(GoalFollow(target.id, attack_range - 0.5), dynamic=True)
                return
            self.world.set_goal(None)
            if not self.cooldowns.available("melee", self.config.attack_cooldown):
                return
            await self.world.attack(target)
            self.cooldowns.trigger("melee")
            self.engagement.last_attack_time = self._clock()
            await self.world.look_at(self._aim_point(target))
        except CraftbotError as exc:
            logger.debug("Melee attack error: %s", exc)

    async def bow_attack(self, target: Entity) -> None:
        """Aim and loose one arrow; falls back to melee if the bow can't be readied."""

        if not self._has_bow():
            await self.melee_attack(target)
            return
        try:
            held = self.world.held_item()
            if held is None or held.name != "bow":
                await self.world.equip("bow", "hand")
            await self.world.look_at(self._aim_point(target))
        except CraftbotError as exc:
            logger.warning("Bow attack error: %s", exc)
            await self.equip_best_weapon(False)
            await self.melee_attack(target)
            return

        if not self.cooldowns.available("bow", self.config.bow_cooldown):
            return
        # Charge and release is one uninterruptible step.
        self.world.activate_item()
        try:
            await self.world.wait_ticks(self.config.bow_charge_ticks)
        finally:
            self.world.deactivate_item()
        self.cooldowns.trigger("bow")
        self.engagement.last_attack_time = self._clock()

    async def retreat(self) -> bool:
        """Run directly away from the target. Always ends the engagement."""

        if self.engagement.retreating:
            return False
        target = self._target()
        if target is None:
            self._clear()
            return False

        self.engagement.retreating = True
        logger.info("Health low! Retreating from %s", target.name)
        here = self.world.position
        direction = (here - target.position).normalized()
        if direction.x == 0 and direction.z == 0:
            direction = Vec3(1.0, 0.0, 0.0)
        distance = self.config.retreat_distance
        spot = here.offset(direction.x * distance, 0, direction.z * distance)
        succeeded = False
        try:
            await self.world.goto(GoalNear(spot, 1))
            succeeded = True
        except CraftbotError as exc:
            logger.warning("Retreat failed: %s", exc)
        finally:
            self.engagement.retreating = False
            self._clear()
            self._finish(completed=succeeded)
        return succeeded

    async def engage(self, target: Entity | int | None) -> CombatPhase:
        """Run one engagement tick against ``target`` and return the new phase."""

        target_id = target.id if isinstance(target, Entity) else target
        entity = self.world.entity(target_id) if target_id is not None else None
        if entity is None or not entity.is_valid:
            was_fighting = self.engagement.in_combat
            self._clear()
            if was_fighting:
                self.world.set_goal(None)
                self._finish()
            return self.engagement.phase

        self.engagement.target_id = entity.id
        self.engagement.in_combat = True
        self._recent_target = entity.id

        if self.should_retreat():
            await self.retreat()
            return self.engagement.phase

        distance = self.world.position.distance_to(entity.position)
        ranged = (
            self.config.use_bow
            and distance > self.behavior.attack_range * self.config.ranged_factor
            and distance <= self.behavior.bow_range
            and self._has_bow()
        )
        if ranged:
            await self.bow_attack(entity)
        else:
            await self.equip_best_weapon(False)
            await self.melee_attack(entity)
        return self.engagement.phase

    def stop_combat(self) -> None:
        self._clear()
        self.world.set_goal(None)
        self._finish()
        logger.info("Combat ended")

    async def defend_self(self) -> bool:
        """Combat poll body. Returns ``True`` while fighting."""

        if not self.settings.auto_defend:
            return False
        if self.engagement.retreating:
            return True

        hostile = self.find_nearest_hostile()
        if hostile is not None:
            if not self.engagement.in_combat or self.engagement.target_id != hostile.id:
                logger.info(
                    "Hostile detected: %s at %.1f blocks",
                    hostile.name,
                    self.world.position.distance_to(hostile.position),
                )
                self.state.set_task("combat", f"Fighting {hostile.name}")
            await self.engage(hostile)
            return True
        if self.engagement.in_combat:
            self.stop_combat()
        return False

    async def force_attack(self) -> Result:
        hostile = self.find_nearest_hostile()
        if hostile is None:
            return Result.fail("No hostile mobs nearby to attack!")
        self.state.set_task("combat", f"Fighting {hostile.name}")
        await self.engage(hostile)
        return Result.ok(f"Attacking {hostile.name}!", target=hostile.id)

    async def force_retreat(self) -> Result:
        if self._target() is None:
            return Result.fail("Not currently in combat.")
        retreated = await self.retreat()
        if retreated:
            return Result.ok("Retreated from combat!")
        return Result.fail("Retreat failed!")

    # ------------------------------------------------------------------
    # World events
    # ------------------------------------------------------------------
    def on_entity_dead(self, entity_id: int, name: str = "") -> None:
        if entity_id not in (self.engagement.target_id, self._recent_target):
            return
        self._recent_target = None
        if self.engagement.target_id == entity_id:
            self._clear()
            self.world.set_goal(None)
            self._finish()
        self.state.statistics.increment("mobs_killed")
        logger.info("Killed %s", name or entity_id)
        if self.event_log is not None:
            self.event_log.append(COMBAT_KILL, {"entity": entity_id, "name": name})

    def on_death(self) -> None:
        self.state.statistics.increment("deaths")
        if self.event_log is not None:
            self.event_log.append(DEATH, {"position": self.world.position.to_dict()})
        if self.engagement.in_combat:
            self.stop_combat()


__all__ = [
    "HOSTILE_MOBS",
    "is_hostile",
    "CombatPhase",
    "CombatEngagement",
    "CombatSystem",
]
