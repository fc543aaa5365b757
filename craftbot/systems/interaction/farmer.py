"""Finding and harvesting sugar cane."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional

from ...config import BehaviorConfig, HarvestConfig
from ...core.errors import CraftbotError, NavigationError, PreconditionError
from ...core.result import Result
from ...core.state import AgentState
from ...core.vec import Vec3
from ...core.world import Block, World
from ...persistence.event_log import EventLog
from ..movement.navigation import MOVEMENT_TASKS, Navigator, combat_guard
from .pipeline import ResourcePipeline, ResourceTask, Step
from .storage import Depositor


logger = logging.getLogger(__name__)

# Upper bound on blocks considered per scan before the maturity filter.
_SCAN_LIMIT = 200


class Farmer(ResourcePipeline):
    """Crop harvesting chain.

    Only the blocks above the base are broken so the plant regrows. Harvested
    bases are remembered for ``recently_harvested_seconds`` and skipped until
    then.
    """

    def __init__(
        self,
        world: World,
        state: AgentState,
        navigator: Navigator,
        depositor: Depositor | None = None,
        harvest: HarvestConfig | None = None,
        behavior: BehaviorConfig | None = None,
        event_log: EventLog | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(world, state, navigator, depositor, harvest, behavior, event_log)
        self._clock = clock
        self.recently_harvested: Dict[Vec3, float] = {}
        self.is_farming = False

    @property
    def crop(self) -> str:
        return self.harvest.crop

    @property
    def crop_label(self) -> str:
        return self.crop.replace("_", " ")

    # ------------------------------------------------------------------
    # Cooldown
    # ------------------------------------------------------------------
    def is_recently_harvested(self, position: Vec3) -> bool:
        key = Vec3.of(position).floored()
        harvested_at = self.recently_harvested.get(key)
        if harvested_at is None:
            return False
        if self._clock() - harvested_at > self.harvest.recently_harvested_seconds:
            del self.recently_harvested[key]
            return False
        return True

    def mark_as_harvested(self, position: Vec3) -> None:
        self.recently_harvested[Vec3.of(position).floored()] = self._clock()

    # ------------------------------------------------------------------
    # Locate
    # ------------------------------------------------------------------
    async def _is_crop(self, position: Vec3) -> bool:
        block = await self.world.block_at(position)
        return block is not None and block.name == self.crop

    async def find_many(self, max_count: int | None = None) -> List[Block]:
        """Mature plants not harvested recently, nearest first.

        A plant is mature when it is at least two blocks tall; only its base
        block is returned.
        """

        max_count = self.harvest.batch_size if max_count is None else max_count
        logger.info(
            "Searching for up to %d %s within %d blocks", max_count, self.crop_label, self.behavior.farm_radius
        )
        blocks = await self.world.find_blocks([self.crop], self.behavior.farm_radius, count=_SCAN_LIMIT)
        mature: List[Block] = []
        for block in blocks:
            if self.is_recently_harvested(block.position):
                continue
            if await self._is_crop(block.position.offset(0, -1, 0)):
                continue
            if await self._is_crop(block.position.offset(0, 1, 0)):
                mature.append(block)

        if not mature:
            logger.info("No mature %s found within search radius", self.crop_label)
            return []
        here = self.world.position
        mature.sort(key=lambda b: b.position.distance_to(here))
        selected = mature[:max_count]
        logger.info("Found %d mature %s to harvest", len(selected), self.crop_label)
        return selected

    async def find_nearest(self) -> Optional[Block]:
        found = await self.find_many(1)
        return found[0] if found else None

    # ------------------------------------------------------------------
    # Act
    # ------------------------------------------------------------------
    async def harvest_crop(self, base: Block, chain: ResourceTask | None = None) -> int:
        """Break the blocks above ``base`` and collect the drops.

        Returns the number of blocks broken. Navigation failures are reported
        as :class:`~craftbot.core.errors.NavigationError`.
        """

        if base is None:
            raise PreconditionError(f"No {self.crop_label} block provided")
        chain = chain or ResourceTask(self.crop)

        nav = await self.navigate_to_target(chain, base.position)
        if not nav.success:
            raise NavigationError(f"Could not reach {self.crop_label}: {nav.message}")

        broken = 0
        failure = ""
        try:
            for dy in range(1, self.harvest.max_crop_height + 1):
                block = await self.world.block_at(base.position.offset(0, dy, 0))
                if block is None or block.name != self.crop:
                    break
                try:
                    await self.world.dig(block)
                except CraftbotError as exc:
                    logger.warning("Failed to dig %s at %s: %s", self.crop_label, block.position, exc)
                    failure = str(exc)
                    break
                broken += 1
                await asyncio.sleep(self.harvest.settle_delay)
        finally:
            # Blocks already broken are counted even if the plant was left half done.
            chain.record(Step.ACT, broken > 0 and not failure, failure)
            self.mark_as_harvested(base.position)
            if broken:
                chain.harvested += broken
                self.state.statistics.increment("plants_harvested")
                self._record_harvest(self.crop, base.position, broken)

        logger.info("Harvested %d %s block(s), waiting for drops", broken, self.crop_label)
        await asyncio.sleep(self.harvest.drop_settle)
        await self.collect(chain, base.position, self.harvest.crop_collect_radius, [self.crop])
        return broken

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    async def check_and_deposit(self, chain: ResourceTask | None = None, item_name: str | None = None) -> Optional[Result]:
        return await super().check_and_deposit(chain or ResourceTask(self.crop), item_name or self.crop)

    async def execute_harvest(self) -> Result:
        """Harvest one batch of mature plants, then deposit if over threshold."""

        if self.is_farming:
            return Result.fail("Already farming!")
        busy = combat_guard(self.state)
        if busy is not None:
            return busy
        self.is_farming = True
        owned = self.state.claim_task("farm", f"Looking for {self.crop_label}", replace=MOVEMENT_TASKS)
        chain = ResourceTask(self.crop)
        result: Optional[Result] = None
        try:
            targets = await self.find_many()
            chain.record(Step.LOCATE, bool(targets))
            if not targets:
                result = Result.fail(f"No mature {self.crop_label} found nearby!", chain=chain)
                return result

            plants = 0
            for number, base in enumerate(targets, 1):
                if owned and self.state.task_name() != "farm":
                    logger.info("Harvest interrupted by %s", self.state.task_name())
                    break
                self.state.update_task(f"Harvesting {self.crop_label} {number}/{len(targets)}", "farm")
                try:
                    if await self.harvest_crop(base, chain):
                        plants += 1
                except CraftbotError as exc:
                    logger.warning("Failed to harvest %s at %s: %s", self.crop_label, base.position, exc)

            logger.info("Batch complete, harvested %d/%d %s", plants, len(targets), self.crop_label)
            await self.check_and_deposit(chain)
            result = Result.ok(
                f"Harvested {plants} {self.crop_label}!",
                plants=plants,
                harvested=chain.harvested,
                deposited=chain.deposited,
                chain=chain,
            )
            return result
        finally:
            self.is_farming = False
            if owned:
                if result is not None and result.success:
                    self.state.complete_task("farm")
                else:
                    self.state.cancel_task("farm")


__all__ = ["Farmer"]
