"""Finding and chopping logs."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import deque
from typing import List, Optional

from ...config import BehaviorConfig, HarvestConfig
from ...core.errors import CraftbotError, PreconditionError
from ...core.result import Result
from ...core.state import AgentState
from ...core.world import Block, World
from ...persistence.event_log import EventLog
from ...persistence.settings import SettingsStore
from ..movement.navigation import MOVEMENT_TASKS, Navigator, combat_guard
from .crafting import Crafter
from .pipeline import ResourcePipeline, ResourceTask, Step
from .storage import Depositor
from .tools import equip_best_axe, has_axe


logger = logging.getLogger(__name__)

_NEIGHBOURS = [d for d in itertools.product((-1, 0, 1), repeat=3) if d != (0, 0, 0)]


class Lumberjack(ResourcePipeline):
    """Log harvesting chain: axe, nearest log, dig, pick up, deposit."""

    def __init__(
        self,
        world: World,
        state: AgentState,
        navigator: Navigator,
        crafter: Crafter,
        depositor: Depositor | None = None,
        settings: SettingsStore | None = None,
        harvest: HarvestConfig | None = None,
        behavior: BehaviorConfig | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        super().__init__(world, state, navigator, depositor, harvest, behavior, event_log)
        self.crafter = crafter
        self.settings = settings

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    async def ensure_prerequisite(self, chain: ResourceTask) -> Result:
        if has_axe(self.world.inventory()):
            chain.record(Step.ENSURE_PREREQUISITE, True)
            return Result.ok("Axe already available")
        logger.info("No axe detected, attempting to craft one first")
        result = await self.crafter.craft_tool_chain()
        chain.record(Step.ENSURE_PREREQUISITE, result.success, "" if result.success else result.message)
        return result

    async def find_nearest_log(self) -> Optional[Block]:
        logs = await self.find_logs(1)
        return logs[0] if logs else None

    async def find_logs(self, max_count: int | None = None) -> List[Block]:
        """Up to ``max_count`` logs within the chop radius, nearest first."""

        max_count = self.harvest.batch_size if max_count is None else max_count
        logger.info("Searching for logs within %d blocks", self.behavior.chop_radius)
        logs = await self.world.find_blocks(
            self.harvest.log_types, self.behavior.chop_radius, count=max_count
        )
        if logs:
            logger.info(
                "Found %s at distance %.1f blocks",
                logs[0].name,
                self.world.position.distance_to(logs[0].position),
            )
        else:
            logger.info("No logs found within search radius")
        return logs

    async def find_tree(self, base: Block) -> List[Block]:
        """Flood-fill the logs connected to ``base`` inside the tree window."""

        origin = base.position
        radius = self.harvest.tree_radius
        height = self.harvest.tree_height
        seen = {origin.floored()}
        found = [base]
        queue = deque([base])
        while queue:
            block = queue.popleft()
            for dx, dy, dz in _NEIGHBOURS:
                position = block.position.offset(dx, dy, dz)
                rel = position - origin
                if abs(rel.x) > radius or abs(rel.z) > radius or not 0 <= rel.y <= height:
                    continue
                key = position.floored()
                if key in seen:
                    continue
                seen.add(key)
                neighbour = await self.world.block_at(position)
                if neighbour is not None and neighbour.name in self.harvest.log_types:
                    found.append(neighbour)
                    queue.append(neighbour)
        logger.info("Tree at %s has %d logs", origin, len(found))
        return found

    async def chop_log(self, block: Block, chain: ResourceTask | None = None) -> bool:
        """Walk to ``block``, dig it and pick up what drops."""

        if block is None:
            raise PreconditionError("No log block provided")
        chain = chain or ResourceTask(block.name)

        await equip_best_axe(self.world, self.crafter.config.axe_priority)
        logger.info("Navigating to %s at %s", block.name, block.position)
        nav = await self.navigate_to_target(chain, block.position)
        if not nav.success:
            return False

        current = await self.world.block_at(block.position)
        if current is None or current.name not in self.harvest.log_types:
            chain.record(Step.ACT, False, "log is gone")
            return False
        try:
            await self.world.dig(current)
        except CraftbotError as exc:
            logger.warning("Failed to dig %s: %s", current.name, exc)
            chain.record(Step.ACT, False, str(exc))
            return False

        chain.harvested += 1
        chain.record(Step.ACT, True)
        self.state.statistics.increment("logs_chopped")
        self.state.remember("lastLogPosition", current.position)
        self._record_harvest(current.name, current.position)
        logger.info("Log broken, waiting for items to drop")
        await asyncio.sleep(self.harvest.drop_wait)
        await self.collect(chain, current.position, self.harvest.log_collect_radius)
        return True

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    async def _chop_once(self, chain: ResourceTask) -> Result:
        self.state.update_task("Looking for logs", "chop")
        log = await self.find_nearest_log()
        chain.record(Step.LOCATE, log is not None)
        if log is None:
            return Result.fail("No logs found nearby!", reason="no_target")

        self.state.update_task(f"Chopping {log.name}", "chop")
        if not await self.chop_log(log, chain):
            reason = chain.steps[-1].reason if chain.steps else ""
            return Result.fail(f"Could not chop {log.name}: {reason}", reason="unreachable")

        await self.crafter.check_and_craft_axe()
        await self.check_and_deposit(chain, log.name)
        return Result.ok("Log chopped successfully!", log_type=log.name)

    async def return_home(self) -> Result:
        home = self.settings.home if self.settings is not None else None
        if home is None:
            return Result.fail("No home set! Use 'sethome' first.")
        return await self.navigator.return_home(home)

    async def _maybe_return_home(self) -> None:
        if not self.behavior.return_after_chop or self.settings is None or self.settings.home is None:
            return
        result = await self.return_home()
        if not result.success:
            logger.warning("Could not return home: %s", result.message)

    async def execute_chop(self, return_home: bool = True) -> Result:
        """Chop the nearest log, crafting an axe first if none is carried."""

        busy = combat_guard(self.state)
        if busy is not None:
            return busy
        chain = ResourceTask("logs")
        owned = self.state.claim_task("chop", "Preparing to chop", replace=MOVEMENT_TASKS)
        prereq = await self.ensure_prerequisite(chain)
        if not prereq.success:
            if owned:
                self.state.cancel_task("chop")
            return Result.fail(f"Cannot chop: {prereq.message}", chain=chain, **prereq.data)

        result = await self._chop_once(chain)
        if result.success and return_home:
            await self._maybe_return_home()
        if owned:
            if result.success:
                self.state.complete_task("chop")
            else:
                self.state.cancel_task("chop")
        result.data["chain"] = chain
        return result

    async def chop_area(self, count: int = 10) -> Result:
        """Chop up to ``count`` logs, returning home once at the end."""

        busy = combat_guard(self.state)
        if busy is not None:
            return busy
        chain = ResourceTask("logs")
        owned = self.state.claim_task("chop", f"Chopping {count} logs", replace=MOVEMENT_TASKS)
        prereq = await self.ensure_prerequisite(chain)
        if not prereq.success:
            if owned:
                self.state.cancel_task("chop")
            return Result.fail(f"Cannot chop: {prereq.message}", chain=chain, **prereq.data)

        chopped = 0
        for number in range(count):
            if owned and self.state.task_name() != "chop":
                logger.info("Chopping interrupted by %s", self.state.task_name())
                break
            result = await self._chop_once(chain)
            if not result.success:
                break
            chopped += 1
            if number + 1 < count:
                await asyncio.sleep(self.harvest.drop_wait)

        if chopped:
            logger.info("Finished chopping %d logs", chopped)
            await self._maybe_return_home()
        if owned:
            self.state.complete_task("chop")
        return Result.ok(f"Chopped {chopped} logs", count=chopped, chain=chain)

    async def chop_tree(self, base: Block | None = None) -> Result:
        """Fell the whole tree around ``base`` (or around the nearest log)."""

        busy = combat_guard(self.state)
        if busy is not None:
            return busy
        chain = ResourceTask("logs")
        owned = self.state.claim_task("chop", "Chopping a tree", replace=MOVEMENT_TASKS)
        prereq = await self.ensure_prerequisite(chain)
        if not prereq.success:
            if owned:
                self.state.cancel_task("chop")
            return Result.fail(f"Cannot chop: {prereq.message}", chain=chain, **prereq.data)

        if base is None:
            base = await self.find_nearest_log()
            chain.record(Step.LOCATE, base is not None)
            if base is None:
                if owned:
                    self.state.cancel_task("chop")
                return Result.fail("No logs found nearby!", chain=chain)

        logs = await self.find_tree(base)
        chopped = 0
        for log in logs:
            self.state.update_task(f"Chopping tree ({chopped + 1}/{len(logs)})", "chop")
            if not await self.chop_log(log, chain):
                break
            chopped += 1

        await self.crafter.check_and_craft_axe()
        if chopped:
            await self.check_and_deposit(chain, base.name)
        if owned:
            self.state.complete_task("chop")
        return Result.ok(f"Chopped tree with {chopped} logs", count=chopped, chain=chain)


__all__ = ["Lumberjack"]
