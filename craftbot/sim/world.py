"""In-memory block world used by the demo scenario and the test-suite.

``SimWorld`` implements the :class:`craftbot.core.world.World` protocol without
a game server. Movement is scriptable: by default ``goto`` arrives instantly,
but it can be made to stall, to fail with queued errors, or to reject
specific destinations, which is how navigation retries and stuck detection
are exercised.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from ..core.errors import (
    ActionError,
    ContainerFullError,
    NavigationCancelled,
    NoPathError,
)
from ..core.vec import Vec3
from ..core.world import ARMOR_SLOT_ORDER, Block, Entity, Item, Recipe, armor_slot, count_items, matches
from ..systems.interaction.recipes import RecipeTable


logger = logging.getLogger(__name__)

Key = Tuple[int, int, int]

# Items that can be eaten, with the hunger points they restore.
FOOD_VALUES: Dict[str, int] = {
    "golden_apple": 4,
    "cooked_beef": 8,
    "cooked_porkchop": 8,
    "bread": 5,
    "apple": 4,
    "carrot": 3,
}


def _key(position: Vec3) -> Key:
    p = Vec3.of(position).floored()
    return (int(p.x), int(p.y), int(p.z))


class SimChest:
    """A chest with a fixed item capacity."""

    def __init__(self, world: "SimWorld", position: Vec3, capacity: int = 27 * 64) -> None:
        self.world = world
        self.position = position
        self.capacity = capacity
        self.contents: Dict[str, int] = {}
        self.open_count = 0
        self.closed = True

    @property
    def stored(self) -> int:
        return sum(self.contents.values())

    async def deposit(self, item_name: str, count: int) -> int:
        free = max(self.capacity - self.stored, 0)
        have = self.world.count(item_name)
        accepted = min(count, free, have)
        if accepted:
            self.world.take(item_name, accepted)
            self.contents[item_name] = self.contents.get(item_name, 0) + accepted
        if accepted == 0 and count > 0:
            raise ContainerFullError("Destination full", deposited=0)
        return accepted

    async def close(self) -> None:
        self.closed = True


class SimWorld:
    """Scriptable world state for tests and offline runs."""

    def __init__(
        self,
        username: str = "Bot",
        position: Any = (0, 64, 0),
        health: float = 20,
        food: float = 20,
        recipes: RecipeTable | None = None,
        speed: float = 4.3,
        tick_seconds: float = 0.0,
        ground_level: Optional[int] = 63,
    ) -> None:
        self.username = username
        self.recipes = recipes or RecipeTable()
        self._position = Vec3.of(position)
        self._health = float(health)
        self._food = float(food)
        self.speed = speed
        self.tick_seconds = tick_seconds
        # Unlisted positions at or below this height read as solid ground.
        self.ground_level = ground_level

        self.blocks: Dict[Key, Block] = {}
        self.containers: Dict[Key, SimChest] = {}
        self._entities: Dict[int, Entity] = {}
        self._entity_hp: Dict[int, float] = {}
        self._drops: Dict[int, int] = {}
        self._items: List[Item] = []
        self._next_id = 1
        self.held: Optional[str] = None
        self.worn: Dict[str, Optional[str]] = {slot: None for slot in ARMOR_SLOT_ORDER}

        # Pathfinder state
        self.goal: Any = None
        self.goal_dynamic = False
        self.goal_history: List[Any] = []
        self._goal_version = 0
        self.moving = False

        # Scripting knobs
        self.stall = False
        self.goto_errors: List[Exception] = []
        self.unreachable: Set[Key] = set()
        self.can_place = True
        self.drop_items = True
        self.pickup_radius = 1.5
        self.attack_damage = 5.0

        # Records
        self.goto_calls = 0
        self.events: List[Dict[str, Any]] = []
        self.chat_log: List[str] = []
        self.attacks: List[int] = []
        self.dug: List[Vec3] = []
        self.crafted: List[str] = []
        self.consumed: List[str] = []
        self.activated: List[Vec3] = []
        self.looked_at: List[Vec3] = []
        self.bow_shots = 0
        self.using_item = False

    # ------------------------------------------------------------------
    # Scenario building
    # ------------------------------------------------------------------
    def _new_id(self) -> int:
        eid = self._next_id
        self._next_id += 1
        return eid

    def add_block(self, name: str, position: Any, **properties: Any) -> Block:
        block = Block(name=name, position=Vec3.of(position).floored(), properties=dict(properties))
        self.blocks[_key(block.position)] = block
        return block

    def remove_block(self, position: Any) -> None:
        self.blocks.pop(_key(position), None)

    def add_chest(self, position: Any, capacity: int = 27 * 64) -> SimChest:
        block = self.add_block("chest", position)
        chest = SimChest(self, block.position, capacity)
        self.containers[_key(block.position)] = chest
        return chest

    def spawn(
        self,
        name: str,
        position: Any,
        kind: str = "mob",
        username: Optional[str] = None,
        height: float = 1.8,
        item_name: Optional[str] = None,
        hp: float = 20,
    ) -> Entity:
        entity = Entity(
            id=self._new_id(),
            name=name,
            position=Vec3.of(position),
            kind=kind,
            username=username,
            height=height,
            item_name=item_name,
        )
        self._entities[entity.id] = entity
        self._entity_hp[entity.id] = hp
        return entity

    def add_player(self, username: str, position: Any) -> Entity:
        return self.spawn("player", position, kind="player", username=username)

    def drop_item(self, item_name: str, position: Any, count: int = 1) -> Entity:
        entity = self.spawn("item", position, kind="object", height=0.25, item_name=item_name)
        self._drops[entity.id] = count
        return entity

    def move_entity(self, entity_id: int, position: Any) -> None:
        self._entities[entity_id].position = Vec3.of(position)

    def despawn(self, entity_id: int) -> None:
        entity = self._entities.pop(entity_id, None)
        if entity is not None:
            entity.is_valid = False
        self._drops.pop(entity_id, None)

    def kill(self, entity_id: int) -> None:
        entity = self._entities.get(entity_id)
        if entity is None:
            return
        self.despawn(entity_id)
        self.events.append({"type": "entity_dead", "entity_id": entity_id, "name": entity.name})

    def die(self) -> None:
        self._health = 0
        self.events.append({"type": "death"})

    def respawn(self, position: Any = None) -> None:
        self._health = 20.0
        self._food = 20.0
        if position is not None:
            self._position = Vec3.of(position)
        self.events.append({"type": "respawn"})

    def say(self, username: str, message: str) -> None:
        self.events.append({"type": "chat", "username": username, "message": message})

    def teleport(self, position: Any) -> None:
        self._position = Vec3.of(position)

    def give(self, name: str, count: int = 1) -> None:
        for item in self._items:
            if item.name == name:
                item.count += count
                return
        self._items.append(Item(name=name, count=count, slot=len(self._items)))

    def take(self, name: str, count: int = 1) -> int:
        """Remove up to ``count`` items matching ``name`` (or a ``#tag``)."""

        taken = 0
        for item in list(self._items):
            if taken >= count:
                break
            if not matches(name, item.name):
                continue
            n = min(item.count, count - taken)
            item.count -= n
            taken += n
            if item.count <= 0:
                self._items.remove(item)
                if self.held == item.name:
                    self.held = None
        return taken

    def count(self, name: str) -> int:
        return count_items(self._items, name)

    def fail_next(self, *errors: Exception) -> None:
        """Queue ``errors`` to be raised by the next ``goto`` calls."""

        self.goto_errors.extend(errors)

    def step(self, dt: float = 1.0) -> None:
        """Advance a dynamic (follow) goal by ``dt`` seconds of walking."""

        if self.goal is None or not self.goal_dynamic:
            return
        target = self.goal.target(self)
        if target is None:
            return
        offset = target - self._position
        distance = offset.length()
        if distance <= self.goal.range:
            return
        travel = min(self.speed * dt, distance - self.goal.range)
        self._position = self._position + offset.normalized().scaled(travel)
        self._collect_nearby()

    # ------------------------------------------------------------------
    # Synchronous reads
    # ------------------------------------------------------------------
    @property
    def position(self) -> Vec3:
        return self._position

    @property
    def health(self) -> float:
        return self._health

    @health.setter
    def health(self, value: float) -> None:
        self._health = float(value)

    @property
    def food(self) -> float:
        return self._food

    @food.setter
    def food(self, value: float) -> None:
        self._food = float(value)

    def entities(self) -> List[Entity]:
        return [e for e in self._entities.values() if e.is_valid]

    def entity(self, entity_id: int) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def player(self, username: str) -> Optional[Entity]:
        for e in self._entities.values():
            if e.kind == "player" and e.username == username:
                return e
        return None

    def inventory(self) -> List[Item]:
        return [Item(i.name, i.count, i.slot) for i in self._items]

    def held_item(self) -> Optional[Item]:
        if self.held is None:
            return None
        for item in self._items:
            if item.name == self.held:
                return Item(item.name, item.count, item.slot)
        return None

    def armor(self) -> Dict[str, Optional[str]]:
        return dict(self.worn)

    def is_moving(self) -> bool:
        return self.moving

    def set_goal(self, goal: Any, dynamic: bool = False) -> None:
        if goal is None:
            self._goal_version += 1
        else:
            self.goal_history.append(goal)
        self.goal = goal
        self.goal_dynamic = dynamic and goal is not None

    def activate_item(self) -> None:
        self.using_item = True

    def deactivate_item(self) -> None:
        if self.using_item and self.held == "bow" and self.count("arrow") > 0:
            self.take("arrow", 1)
            self.bow_shots += 1
        self.using_item = False

    def drain_events(self) -> List[Dict[str, Any]]:
        events, self.events = self.events, []
        return events

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def _collect_nearby(self) -> None:
        for eid, count in list(self._drops.items()):
            entity = self._entities.get(eid)
            if entity is None:
                continue
            if entity.position.distance_to(self._position) <= self.pickup_radius:
                self.give(entity.item_name or entity.name, count)
                self.despawn(eid)

    async def block_at(self, position: Vec3) -> Optional[Block]:
        block = self.blocks.get(_key(position))
        if block is None and self.ground_level is not None and Vec3.of(position).y <= self.ground_level:
            return Block("grass_block", Vec3.of(position).floored())
        return block

    async def find_blocks(
        self,
        names: Iterable[str],
        max_distance: float,
        count: int = 1,
        point: Optional[Vec3] = None,
    ) -> List[Block]:
        wanted = set(names)
        origin = self._position if point is None else Vec3.of(point)
        found = [
            b
            for b in self.blocks.values()
            if b.name in wanted and b.position.distance_to(origin) <= max_distance
        ]
        found.sort(key=lambda b: b.position.distance_to(origin))
        return found[:count]

    async def goto(self, goal: Any) -> None:
        self.goto_calls += 1
        self.set_goal(goal)
        version = self._goal_version
        if self.goto_errors:
            self.goal = None
            raise self.goto_errors.pop(0)
        target = goal.target(self)
        if target is None:
            self.goal = None
            raise NoPathError("Target no longer exists")
        if _key(target) in self.unreachable:
            self.goal = None
            raise NoPathError("No path to the goal!")
        if self.stall:
            self.moving = True
            try:
                while self._goal_version == version:
                    await asyncio.sleep(0.005)
            finally:
                self.moving = False
            raise NavigationCancelled("Goal was changed before it could be completed!")
        await asyncio.sleep(0)
        if self._goal_version != version:
            raise NavigationCancelled("Goal was changed before it could be completed!")
        if not goal.is_satisfied(self, self._position):
            self._position = target
        self._collect_nearby()
        if self.goal is goal:
            self.goal = None

    async def dig(self, block: Block) -> None:
        current = self.blocks.get(_key(block.position))
        if current is None:
            raise ActionError(f"No block to dig at {block.position}")
        del self.blocks[_key(block.position)]
        self.dug.append(current.position)
        if self.drop_items and not current.name.endswith("_leaves"):
            self.drop_item(current.name, current.position.offset(0.5, 0, 0.5))

    async def activate_block(self, block: Block) -> None:
        current = self.blocks.get(_key(block.position))
        if current is None:
            raise ActionError("Block is gone")
        self.activated.append(current.position)
        if current.is_door:
            current.properties["open"] = not current.is_open

    async def place_block(self, reference: Block, face: Vec3) -> None:
        if not self.can_place or self.held is None:
            raise ActionError("Cannot place block here")
        name = self.held
        target = reference.position + Vec3.of(face)
        if _key(target) in self.blocks:
            raise ActionError("Block already occupied")
        self.take(name, 1)
        self.add_block(name, target)

    async def equip(self, item_name: str, destination: str = "hand") -> None:
        if self.count(item_name) <= 0:
            raise ActionError(f"No {item_name} in inventory")
        if destination == "hand":
            self.held = item_name
            return
        if destination not in self.worn or armor_slot(item_name) != destination:
            raise ActionError(f"{item_name} cannot be worn on {destination}")
        self.take(item_name, 1)
        previous = self.worn[destination]
        if previous is not None:
            self.give(previous, 1)
        self.worn[destination] = item_name

    async def attack(self, entity: Entity) -> None:
        current = self._entities.get(entity.id)
        if current is None or not current.is_valid:
            raise ActionError("Target is gone")
        self.attacks.append(entity.id)
        self._entity_hp[entity.id] = self._entity_hp.get(entity.id, 20) - self.attack_damage
        if self._entity_hp[entity.id] <= 0:
            self.kill(entity.id)

    async def look_at(self, point: Vec3) -> None:
        self.looked_at.append(Vec3.of(point))

    async def wait_ticks(self, ticks: int) -> None:
        await asyncio.sleep(ticks * self.tick_seconds)

    async def consume(self) -> None:
        if self.held is None or self.held not in FOOD_VALUES:
            raise ActionError("Not holding food")
        name = self.held
        self.take(name, 1)
        self.consumed.append(name)
        self._food = min(20.0, self._food + FOOD_VALUES[name])
        if name == "golden_apple":
            self._health = min(20.0, self._health + 4)

    async def open_container(self, block: Block) -> SimChest:
        chest = self.containers.get(_key(block.position))
        if chest is None:
            raise ActionError(f"No container at {block.position}")
        chest.open_count += 1
        chest.closed = False
        return chest

    async def craft(self, recipe: Recipe, times: int, table: Optional[Block]) -> None:
        if recipe.requires_table and (table is None or _key(table.position) not in self.blocks):
            raise ActionError("Recipe requires a crafting table")
        for _ in range(times):
            if not RecipeTable.affordable(recipe, self._items):
                raise ActionError(f"Missing ingredients for {recipe.result}")
            for name, need in recipe.ingredients.items():
                self.take(name, need)
            self.give(recipe.result, recipe.count)
            self.crafted.append(recipe.result)

    async def chat(self, message: str) -> None:
        self.chat_log.append(message)


__all__ = ["FOOD_VALUES", "SimChest", "SimWorld"]
