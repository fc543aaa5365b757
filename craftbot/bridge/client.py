"""HTTP client for a remote game bridge.

The bridge process holds the real game connection and exposes it as JSON:

* ``GET /state`` returns a snapshot (position, vitals, entities, inventory,
  held item, worn armor, movement flag) plus the events queued since the
  last call.
* ``GET /block`` and ``GET /blocks`` answer block queries.
* ``POST /action/<name>`` performs an action and replies
  ``{"ok": true, "result": ...}`` or ``{"ok": false, "error": "..."}``.

Synchronous reads are served from the most recent snapshot, refreshed by a
background sync loop every ``sync_interval`` seconds.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set, Type

import httpx

from ..config import CONFIG, BridgeConfig
from ..core.errors import (
    ActionError,
    BridgeError,
    ContainerFullError,
    CraftbotError,
    NavigationCancelled,
    NavigationTimeout,
    NoPathError,
    StuckError,
)
from ..core.vec import Vec3
from ..core.world import ARMOR_SLOT_ORDER, Block, Entity, Item, Recipe
from ..systems.interaction.recipes import RecipeTable


logger = logging.getLogger(__name__)

# Bridge error kinds and message fragments mapped onto the local hierarchy.
ERROR_KINDS: Dict[str, Type[CraftbotError]] = {
    "no_path": NoPathError,
    "timeout": NavigationTimeout,
    "stuck": StuckError,
    "cancelled": NavigationCancelled,
    "goal_changed": NavigationCancelled,
    "container_full": ContainerFullError,
}

ERROR_FRAGMENTS = [
    ("no path", NoPathError),
    ("took to long", NavigationTimeout),
    ("took too long", NavigationTimeout),
    ("goalchanged", NavigationCancelled),
    ("goal was changed", NavigationCancelled),
    ("path was stopped", NavigationCancelled),
    ("full", ContainerFullError),
]


def map_error(message: str, kind: Optional[str] = None) -> CraftbotError:
    """Build the typed error for a bridge failure."""

    if kind and kind in ERROR_KINDS:
        return ERROR_KINDS[kind](message)
    lowered = message.lower()
    for fragment, cls in ERROR_FRAGMENTS:
        if fragment in lowered:
            return cls(message)
    return ActionError(message)


def _block_from(data: Optional[Dict[str, Any]]) -> Optional[Block]:
    if not data:
        return None
    return Block(
        name=str(data["name"]),
        position=Vec3.of(data["position"]),
        properties=dict(data.get("properties") or {}),
    )


def _item_from(data: Dict[str, Any]) -> Item:
    return Item(name=str(data["name"]), count=int(data.get("count", 1)), slot=data.get("slot"))


class BridgeContainer:
    """An open container window on the bridge."""

    def __init__(self, world: "BridgeWorld", window_id: Any) -> None:
        self.world = world
        self.window_id = window_id

    async def deposit(self, item_name: str, count: int) -> int:
        result = await self.world._call(
            "deposit", window=self.window_id, item=item_name, count=count
        )
        return int((result or {}).get("deposited", 0))

    async def close(self) -> None:
        await self.world._call("close_window", window=self.window_id)


class BridgeWorld:
    """:class:`~craftbot.core.world.World` backed by the HTTP bridge."""

    def __init__(
        self,
        config: BridgeConfig | None = None,
        username: Optional[str] = None,
        client: httpx.AsyncClient | None = None,
        recipes: RecipeTable | None = None,
    ) -> None:
        self.config = config or CONFIG.bridge
        self.username = username or CONFIG.bot.username
        self.recipes = recipes or RecipeTable()
        self._client = client or httpx.AsyncClient(
            base_url=self.config.base_url, timeout=self.config.timeout
        )
        self._position = Vec3(0.0, 0.0, 0.0)
        self._health = 20.0
        self._food = 20.0
        self._entities: Dict[int, Entity] = {}
        self._items: List[Item] = []
        self._held: Optional[Item] = None
        self._armor: Dict[str, Optional[str]] = {slot: None for slot in ARMOR_SLOT_ORDER}
        self._moving = False
        self._events: List[Dict[str, Any]] = []
        self._sync_task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            raise BridgeError(
                f"Bridge returned {exc.response.status_code} for {path}: {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise BridgeError(f"Bridge request to {path} failed: {exc}") from exc
        except ValueError as exc:
            raise BridgeError(f"Bridge sent invalid JSON for {path}") from exc

    async def _call(self, action: str, timeout: Any = None, **payload: Any) -> Any:
        """POST an action and unwrap its result, raising the mapped error."""

        kwargs: Dict[str, Any] = {"json": payload}
        if timeout is not None:
            kwargs["timeout"] = timeout
        data = await self._request("POST", f"/action/{action}", **kwargs)
        if not isinstance(data, dict):
            raise BridgeError(f"Malformed reply to {action}")
        if not data.get("ok", False):
            raise map_error(str(data.get("error", f"{action} failed")), data.get("kind"))
        return data.get("result")

    def _fire(self, action: str, **payload: Any) -> None:
        """Send an action from synchronous code without waiting for it."""

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running loop, dropping %s", action)
            return
        task = loop.create_task(self._call(action, **payload))
        self._pending.add(task)
        task.add_done_callback(self._fire_done)

    def _fire_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Background bridge action failed: %s", exc)

    # ------------------------------------------------------------------
    # Snapshot sync
    # ------------------------------------------------------------------
    def apply_snapshot(self, data: Dict[str, Any]) -> None:
        if "position" in data:
            self._position = Vec3.of(data["position"])
        self._health = float(data.get("health", self._health))
        self._food = float(data.get("food", self._food))
        if "entities" in data:
            entities = [Entity.from_dict(e) for e in data["entities"]]
            self._entities = {e.id: e for e in entities}
        if "inventory" in data:
            self._items = [_item_from(i) for i in data["inventory"]]
        if "held_item" in data:
            self._held = _item_from(data["held_item"]) if data["held_item"] else None
        if "armor" in data:
            worn = data["armor"] or {}
            self._armor = {slot: worn.get(slot) for slot in ARMOR_SLOT_ORDER}
        self._moving = bool(data.get("moving", self._moving))
        self._events.extend(data.get("events") or [])

    async def sync(self) -> None:
        data = await self._request("GET", "/state")
        self.apply_snapshot(data)

    async def _sync_loop(self) -> None:
        while True:
            try:
                await self.sync()
            except BridgeError as exc:
                logger.warning("State sync failed: %s", exc)
            await asyncio.sleep(self.config.sync_interval)

    async def connect(self) -> None:
        """Fetch the first snapshot and start the background sync loop."""

        await self.sync()
        if self._sync_task is None or self._sync_task.done():
            self._sync_task = asyncio.create_task(self._sync_loop(), name="bridge:sync")
        logger.info("Connected to bridge at %s as %s", self.config.base_url, self.username)

    async def close(self) -> None:
        tasks = list(self._pending)
        if self._sync_task is not None:
            tasks.append(self._sync_task)
            self._sync_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Synchronous reads
    # ------------------------------------------------------------------
    @property
    def position(self) -> Vec3:
        return self._position

    @property
    def health(self) -> float:
        return self._health

    @property
    def food(self) -> float:
        return self._food

    def entities(self) -> List[Entity]:
        return list(self._entities.values())

    def entity(self, entity_id: int) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def player(self, username: str) -> Optional[Entity]:
        for entity in self._entities.values():
            if entity.kind == "player" and entity.username == username:
                return entity
        return None

    def inventory(self) -> List[Item]:
        return list(self._items)

    def held_item(self) -> Optional[Item]:
        return self._held

    def armor(self) -> Dict[str, Optional[str]]:
        return dict(self._armor)

    def is_moving(self) -> bool:
        return self._moving

    def set_goal(self, goal: Any, dynamic: bool = False) -> None:
        self._fire("set_goal", goal=goal.to_dict() if goal is not None else None, dynamic=dynamic)

    def activate_item(self) -> None:
        self._fire("activate_item")

    def deactivate_item(self) -> None:
        self._fire("deactivate_item")

    def drain_events(self) -> List[Dict[str, Any]]:
        events, self._events = self._events, []
        return events

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    async def block_at(self, position: Vec3) -> Optional[Block]:
        p = Vec3.of(position)
        data = await self._request("GET", "/block", params={"x": p.x, "y": p.y, "z": p.z})
        return _block_from(data.get("block") if isinstance(data, dict) else None)

    async def find_blocks(
        self,
        names: Any,
        max_distance: float,
        count: int = 1,
        point: Optional[Vec3] = None,
    ) -> List[Block]:
        params: Dict[str, Any] = {
            "names": ",".join(names),
            "max_distance": max_distance,
            "count": count,
        }
        if point is not None:
            p = Vec3.of(point)
            params.update({"x": p.x, "y": p.y, "z": p.z})
        data = await self._request("GET", "/blocks", params=params)
        blocks = data.get("blocks", []) if isinstance(data, dict) else []
        return [b for b in (_block_from(d) for d in blocks) if b is not None]

    async def goto(self, goal: Any) -> None:
        # Pathing can outlast the request timeout; callers bound it themselves.
        self._moving = True
        try:
            await self._call("goto", timeout=httpx.Timeout(None), goal=goal.to_dict())
        finally:
            self._moving = False

    async def dig(self, block: Block) -> None:
        await self._call("dig", position=block.position.to_dict())

    async def activate_block(self, block: Block) -> None:
        await self._call("activate_block", position=block.position.to_dict())

    async def place_block(self, reference: Block, face: Vec3) -> None:
        await self._call("place_block", reference=reference.position.to_dict(), face=Vec3.of(face).to_dict())

    async def equip(self, item_name: str, destination: str = "hand") -> None:
        await self._call("equip", item=item_name, destination=destination)
        if destination in self._armor:
            self._armor[destination] = item_name
            return
        for item in self._items:
            if item.name == item_name:
                self._held = item
                break

    async def attack(self, entity: Entity) -> None:
        await self._call("attack", entity_id=entity.id)

    async def look_at(self, point: Vec3) -> None:
        await self._call("look_at", point=Vec3.of(point).to_dict())

    async def wait_ticks(self, ticks: int) -> None:
        await self._call("wait_ticks", timeout=httpx.Timeout(None), ticks=ticks)

    async def consume(self) -> None:
        await self._call("consume")

    async def open_container(self, block: Block) -> BridgeContainer:
        result = await self._call("open_container", position=block.position.to_dict())
        return BridgeContainer(self, (result or {}).get("window"))

    async def craft(self, recipe: Recipe, times: int, table: Optional[Block]) -> None:
        await self._call(
            "craft",
            item=recipe.result,
            ingredients=recipe.ingredients,
            times=times,
            table=table.position.to_dict() if table is not None else None,
        )

    async def chat(self, message: str) -> None:
        await self._call("chat", message=message)


__all__ = ["ERROR_KINDS", "map_error", "BridgeContainer", "BridgeWorld"]
