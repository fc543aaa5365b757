"""Depositing items into chests near a configured anchor location."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from ...config import CONFIG, BehaviorConfig, StorageConfig
from ...core.errors import ContainerFullError, CraftbotError, NavigationError, PreconditionError
from ...core.result import Result
from ...core.state import AgentState
from ...core.vec import Vec3
from ...core.world import Block, World, armor_slot, count_items
from ...persistence.event_log import DEPOSIT, EventLog
from ..combat.weapons import is_weapon
from ..movement.goals import GoalNear
from ..movement.navigation import MOVEMENT_TASKS, Navigator, combat_guard
from .tools import tool_type


logger = logging.getLogger(__name__)

CHEST_BLOCKS = ["chest", "trapped_chest", "barrel"]

# Kept back by ``execute_deposit_all`` along with tools, weapons and armor.
KEEP_ITEMS = ("bow", "arrow", "shield")

# How far from the anchor the block search reaches before the radius filter.
_SEARCH_DISTANCE = 128


@dataclass
class DepositLedger:
    """Bookkeeping for one deposit run."""

    excluded: Set[Vec3] = field(default_factory=set)
    tried: List[Vec3] = field(default_factory=list)
    deposited: int = 0


class Depositor:
    """Find chests around ``behavior.chest_location`` and fill them."""

    def __init__(
        self,
        world: World,
        state: AgentState,
        navigator: Navigator,
        behavior: BehaviorConfig | None = None,
        config: StorageConfig | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        self.world = world
        self.state = state
        self.navigator = navigator
        self.behavior = behavior or CONFIG.behavior
        self.config = config or CONFIG.storage
        self.event_log = event_log

    @property
    def anchor(self) -> Vec3:
        return Vec3.of(self.behavior.chest_location)

    def count_item(self, item_name: str) -> int:
        return count_items(self.world.inventory(), item_name)

    @staticmethod
    def is_kept(item_name: str) -> bool:
        return (
            item_name in KEEP_ITEMS
            or tool_type(item_name) is not None
            or is_weapon(item_name)
            or armor_slot(item_name) is not None
        )

    async def find_nearest_chest(
        self,
        location: Vec3 | None = None,
        radius: float | None = None,
        exclude: Iterable[Vec3] = (),
    ) -> Optional[Block]:
        """Closest chest within ``radius`` of ``location`` not in ``exclude``."""

        location = self.anchor if location is None else Vec3.of(location)
        radius = self.behavior.chest_search_radius if radius is None else radius
        excluded = {Vec3.of(p).floored() for p in exclude}
        chests = await self.world.find_blocks(
            CHEST_BLOCKS, _SEARCH_DISTANCE, count=100, point=location
        )
        candidates = [
            c
            for c in chests
            if c.position.distance_to(location) <= radius and c.position.floored() not in excluded
        ]
        if not candidates:
            logger.info("No chest within %.0f blocks of %s", radius, location)
            return None
        chest = min(candidates, key=lambda c: c.position.distance_to(location))
        logger.info(
            "Found chest at %s (%.1f blocks from target)", chest.position, chest.position.distance_to(location)
        )
        return chest

    async def deposit_items(self, chest: Block, item_name: str) -> int:
        """Move every ``item_name`` into ``chest`` and return how many went in.

        Raises :class:`ContainerFullError` when the chest takes fewer items
        than offered; ``deposited`` on the error holds what it did take.
        """

        if chest is None:
            raise PreconditionError("No chest provided")

        nav = await self.navigator.smart_navigate(GoalNear(chest.position, 2))
        if not nav.success:
            raise NavigationError(f"Could not reach chest: {nav.message}")

        wanted = self.count_item(item_name)
        container = await self.world.open_container(chest)
        try:
            accepted = await container.deposit(item_name, wanted)
        finally:
            await container.close()

        logger.info("Deposited %d/%d %s at %s", accepted, wanted, item_name, chest.position)
        if accepted < wanted:
            raise ContainerFullError("Destination full", deposited=accepted)
        return accepted

    async def execute_deposit(self, item_name: str, threshold: int | None = None) -> Result:
        """Deposit all ``item_name`` once at least ``threshold`` are carried.

        Full or unreachable chests are excluded and the next nearest one is
        tried, up to ``max_container_attempts`` chests.
        """

        busy = combat_guard(self.state)
        if busy is not None:
            return busy
        threshold = self.behavior.deposit_threshold if threshold is None else threshold
        count = self.count_item(item_name)
        logger.info("Current %s count: %d/%d", item_name, count, threshold)
        if count < threshold or count == 0:
            return Result.fail(f"Not enough {item_name} to deposit ({count}/{threshold})")

        ledger = DepositLedger()
        owned = self.state.claim_task("deposit", f"Depositing {item_name}", replace=MOVEMENT_TASKS)
        while len(ledger.tried) < self.config.max_container_attempts and self.count_item(item_name) > 0:
            chest = await self.find_nearest_chest(exclude=ledger.excluded)
            if chest is None:
                break
            ledger.tried.append(chest.position)
            try:
                ledger.deposited += await self.deposit_items(chest, item_name)
            except ContainerFullError as exc:
                ledger.deposited += exc.deposited
                ledger.excluded.add(chest.position.floored())
                logger.info("Chest at %s is full, looking for another", chest.position)
            except CraftbotError as exc:
                ledger.excluded.add(chest.position.floored())
                logger.warning("Could not use chest at %s: %s", chest.position, exc)

        if ledger.deposited:
            self.state.statistics.increment("items_deposited", ledger.deposited)
            if self.event_log is not None:
                self.event_log.append(
                    DEPOSIT,
                    {"item": item_name, "count": ledger.deposited, "containers": len(ledger.tried)},
                )

        data = {
            "deposited": ledger.deposited,
            "containers_tried": len(ledger.tried),
            "excluded": sorted(p.as_tuple() for p in ledger.excluded),
        }
        remaining = self.count_item(item_name)
        if remaining == 0:
            if owned:
                self.state.complete_task("deposit")
            return Result.ok(f"Deposited {ledger.deposited} {item_name} into chest!", **data)

        if owned:
            self.state.cancel_task("deposit")
        if not ledger.tried:
            return Result.fail("No chest found near target location!", **data)
        return Result.fail(
            f"No room after trying {len(ledger.tried)} containers! "
            f"Deposited {ledger.deposited} {item_name}, {remaining} left.",
            **data,
        )

    async def execute_deposit_all(self) -> Result:
        """Deposit every carried item except tools, weapons and armor."""

        busy = combat_guard(self.state)
        if busy is not None:
            return busy
        names: List[str] = []
        for item in self.world.inventory():
            if item.name not in names and not self.is_kept(item.name):
                names.append(item.name)
        if not names:
            return Result.fail("Nothing to deposit!")

        total = 0
        failed: List[str] = []
        for name in names:
            result = await self.execute_deposit(name, threshold=1)
            total += int(result.data.get("deposited", 0))
            if result.success:
                continue
            failed.append(name)
            if not result.data.get("containers_tried"):
                return Result.fail(result.message, deposited=total, items=names, failed=failed)

        data = {"deposited": total, "items": names, "failed": failed}
        if failed:
            return Result.fail(f"Deposited {total} items, no room for {', '.join(failed)}!", **data)
        return Result.ok(f"Deposited {total} items into chest!", **data)

    async def find_chest(self) -> Result:
        chest = await self.find_nearest_chest()
        if chest is None:
            return Result.fail("No chest found near target location!")
        distance = self.world.position.distance_to(chest.position)
        return Result.ok(
            f"Found chest at {chest.position} ({distance:.1f} blocks away)",
            position=chest.position.to_dict(),
        )


__all__ = ["CHEST_BLOCKS", "KEEP_ITEMS", "DepositLedger", "Depositor"]
