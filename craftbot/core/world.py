"""World interface shared by the simulated world and the bridge client.

Everything the bot knows about the game passes through a :class:`World`.
Reads (position, health, entities, inventory) are synchronous snapshots;
actions are coroutines that may be slow and may fail with the errors defined
in :mod:`craftbot.core.errors`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .vec import Vec3


# ----------------------------------------------------------------------
# Value types
# ----------------------------------------------------------------------
@dataclass
class Entity:
    """A mob, player or dropped item visible to the bot."""

    id: int
    name: str
    position: Vec3
    kind: str = "mob"
    username: Optional[str] = None
    height: float = 1.8
    item_name: Optional[str] = None
    is_valid: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position.to_dict(),
            "kind": self.kind,
            "username": self.username,
            "height": self.height,
            "item_name": self.item_name,
            "is_valid": self.is_valid,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entity":
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", "")),
            position=Vec3.of(data["position"]),
            kind=str(data.get("kind", "mob")),
            username=data.get("username"),
            height=float(data.get("height", 1.8)),
            item_name=data.get("item_name"),
            is_valid=bool(data.get("is_valid", True)),
        )


@dataclass
class Item:
    name: str
    count: int
    slot: Optional[int] = None


@dataclass
class Block:
    name: str
    position: Vec3
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_door(self) -> bool:
        return (self.name.endswith("_door") or self.name.endswith("_fence_gate")) and "trapdoor" not in self.name

    @property
    def is_open(self) -> bool:
        return bool(self.properties.get("open", False))


@dataclass
class Recipe:
    """A crafting recipe. Ingredient keys starting with ``#`` are tags."""

    result: str
    count: int
    ingredients: Dict[str, int]
    requires_table: bool = False


# Tag ingredients match every item whose name ends with one of the suffixes.
TAGS: Dict[str, tuple[str, ...]] = {
    "#planks": ("_planks",),
    "#logs": ("_log", "_wood", "_stem", "_hyphae"),
}


def matches(ingredient: str, item_name: str) -> bool:
    """Return ``True`` if ``item_name`` satisfies ``ingredient``."""

    if ingredient.startswith("#"):
        suffixes = TAGS.get(ingredient, (ingredient[1:],))
        return any(item_name.endswith(s) for s in suffixes)
    return item_name == ingredient


def count_items(items: Iterable[Item], ingredient: str) -> int:
    """Total count of ``items`` matching ``ingredient`` (a name or tag)."""

    return sum(i.count for i in items if matches(ingredient, i.name))


def find_item(items: Iterable[Item], name: str) -> Optional[Item]:
    for item in items:
        if item.name == name:
            return item
    return None


# Armor piece suffix -> equipment slot.
ARMOR_SLOTS: Dict[str, str] = {
    "helmet": "head",
    "chestplate": "torso",
    "leggings": "legs",
    "boots": "feet",
}

ARMOR_SLOT_ORDER = ("head", "torso", "legs", "feet")


def armor_slot(item_name: str) -> Optional[str]:
    """Slot an armor piece is worn in, ``None`` for anything else."""

    return ARMOR_SLOTS.get(item_name.rsplit("_", 1)[-1])


# ----------------------------------------------------------------------
# Collaborator protocols
# ----------------------------------------------------------------------
class Container(Protocol):
    """An opened storage block."""

    async def deposit(self, item_name: str, count: int) -> int:
        """Move up to ``count`` items in; return how many were accepted."""

    async def close(self) -> None: ...


class RecipeBook(Protocol):
    def recipes_for(
        self, item_name: str, inventory: List[Item], table: bool = False
    ) -> List[Recipe]:
        """Recipes for ``item_name`` affordable from ``inventory``."""

    def all_recipes(self, item_name: str) -> List[Recipe]: ...


class World(Protocol):
    username: str
    recipes: RecipeBook

    # -- synchronous reads -------------------------------------------------
    @property
    def position(self) -> Vec3: ...

    @property
    def health(self) -> float: ...

    @property
    def food(self) -> float: ...

    def entities(self) -> List[Entity]: ...

    def entity(self, entity_id: int) -> Optional[Entity]: ...

    def player(self, username: str) -> Optional[Entity]: ...

    def inventory(self) -> List[Item]: ...

    def held_item(self) -> Optional[Item]: ...

    def armor(self) -> Dict[str, Optional[str]]:
        """Worn armor by slot (``head``, ``torso``, ``legs``, ``feet``)."""

    def is_moving(self) -> bool: ...

    def set_goal(self, goal: Any, dynamic: bool = False) -> None:
        """Install ``goal`` for the pathfinder, or clear it with ``None``."""

    def activate_item(self) -> None: ...

    def deactivate_item(self) -> None: ...

    def drain_events(self) -> List[Dict[str, Any]]:
        """Return and forget world events since the previous call."""

    # -- actions -------------------------------------------------------------
    async def block_at(self, position: Vec3) -> Optional[Block]: ...

    async def find_blocks(
        self,
        names: Iterable[str],
        max_distance: float,
        count: int = 1,
        point: Optional[Vec3] = None,
    ) -> List[Block]:
        """Blocks named in ``names`` near ``point`` (default: the bot), nearest first."""

    async def goto(self, goal: Any) -> None:
        """Walk until ``goal`` is satisfied; raise a navigation error otherwise."""

    async def dig(self, block: Block) -> None: ...

    async def activate_block(self, block: Block) -> None: ...

    async def place_block(self, reference: Block, face: Vec3) -> None: ...

    async def equip(self, item_name: str, destination: str = "hand") -> None: ...

    async def attack(self, entity: Entity) -> None: ...

    async def look_at(self, point: Vec3) -> None: ...

    async def wait_ticks(self, ticks: int) -> None: ...

    async def consume(self) -> None: ...

    async def open_container(self, block: Block) -> Container: ...

    async def craft(self, recipe: Recipe, times: int, table: Optional[Block]) -> None: ...

    async def chat(self, message: str) -> None: ...


__all__ = [
    "Entity",
    "Item",
    "Block",
    "Recipe",
    "TAGS",
    "matches",
    "count_items",
    "find_item",
    "ARMOR_SLOTS",
    "ARMOR_SLOT_ORDER",
    "armor_slot",
    "Container",
    "RecipeBook",
    "World",
]
