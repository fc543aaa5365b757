"""Crafting: planks, sticks, crafting tables and axes.

``Crafter.craft_tool_chain`` is the prerequisite resolver used before
harvesting logs: it turns whatever raw material is at hand into an axe,
taking one detour through intermediate materials when the first attempt
fails for lack of them.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

from ...config import CONFIG, CraftingConfig
from ...core.errors import CraftbotError
from ...core.result import Result
from ...core.state import AgentState
from ...core.vec import Vec3
from ...core.world import Block, Item, World, count_items
from ...persistence.event_log import CRAFT, EventLog
from ..movement.goals import GoalNear
from ..movement.navigation import MOVEMENT_TASKS, Navigator
from .tools import equip_best_axe, has_axe


logger = logging.getLogger(__name__)

# Intermediate materials made before the second axe attempt: enough planks
# for a table, an axe and a pair of sticks.
DETOUR_PLANKS = 12
DETOUR_STICKS = 4

TABLE_LANDMARK = "lastCraftingTable"


def _logs(items: list[Item]) -> int:
    return sum(i.count for i in items if i.name.endswith("_log"))


class Crafter:
    """Craft intermediate materials and tools for the resource pipeline."""

    def __init__(
        self,
        world: World,
        state: AgentState,
        navigator: Navigator,
        config: CraftingConfig | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        self.world = world
        self.state = state
        self.navigator = navigator
        self.config = config or CONFIG.crafting
        self.event_log = event_log

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _record(self, item: str, count: int) -> None:
        if self.event_log is not None:
            self.event_log.append(CRAFT, {"item": item, "count": count})

    async def _nearby_table(self, radius: float) -> Optional[Block]:
        tables = await self.world.find_blocks(["crafting_table"], radius, count=1)
        return tables[0] if tables else None

    # ------------------------------------------------------------------
    # Intermediate materials
    # ------------------------------------------------------------------
    async def craft_planks(self, count: int = 64) -> Result:
        """Turn logs into about ``count`` planks (4 per log)."""

        items = self.world.inventory()
        logs = next((i for i in items if i.name.endswith("_log")), None)
        if logs is None:
            return Result.fail("No logs in inventory!")

        owned = self.state.claim_task("craft", "Crafting planks from logs", replace=MOVEMENT_TASKS)
        plank_name = logs.name.replace("_log", "_planks")
        recipes = self.world.recipes.recipes_for(plank_name, items)
        if not recipes:
            if owned:
                self.state.cancel_task("craft")
            return Result.fail("No plank recipe available!")

        recipe = recipes[0]
        logs_to_use = min(math.ceil(count / recipe.count), logs.count)
        crafted = logs_to_use * recipe.count
        try:
            await self.world.craft(recipe, logs_to_use, None)
        except CraftbotError as exc:
            if owned:
                self.state.cancel_task("craft")
            logger.warning("Error crafting planks: %s", exc)
            return Result.fail(str(exc))

        if owned:
            self.state.complete_task("craft")
        self._record(plank_name, crafted)
        logger.info("Crafted %d planks from %d logs", crafted, logs_to_use)
        return Result.ok(f"Crafted {crafted} planks!", count=crafted)

    async def craft_sticks(self, count: int = 64) -> Result:
        """Turn planks into about ``count`` sticks (4 per 2 planks)."""

        items = self.world.inventory()
        planks = count_items(items, "#planks")
        if planks == 0:
            return Result.fail("No planks in inventory!")

        planks_to_use = min(math.ceil(count / 4) * 2, planks)
        times = planks_to_use // 2
        if times == 0:
            return Result.fail("Need at least 2 planks to craft sticks!")

        owned = self.state.claim_task("craft", "Crafting sticks from planks", replace=MOVEMENT_TASKS)
        recipes = self.world.recipes.recipes_for("stick", items)
        if not recipes:
            if owned:
                self.state.cancel_task("craft")
            return Result.fail("No stick recipe available!")

        recipe = recipes[0]
        try:
            await self.world.craft(recipe, times, None)
        except CraftbotError as exc:
            if owned:
                self.state.cancel_task("craft")
            logger.warning("Error crafting sticks: %s", exc)
            return Result.fail(str(exc))

        crafted = times * recipe.count
        if owned:
            self.state.complete_task("craft")
        self._record("stick", crafted)
        logger.info("Crafted %d sticks from %d planks", crafted, times * 2)
        return Result.ok(f"Crafted {crafted} sticks!", count=crafted)

    async def craft_crafting_table(self) -> Result:
        items = self.world.inventory()
        if count_items(items, "#planks") < 4:
            return Result.fail("Need 4 planks to craft a crafting table!")
        recipes = self.world.recipes.recipes_for("crafting_table", items)
        if not recipes:
            return Result.fail("No crafting table recipe available!")
        try:
            await self.world.craft(recipes[0], 1, None)
        except CraftbotError as exc:
            logger.warning("Error crafting crafting table: %s", exc)
            return Result.fail(str(exc))
        self._record("crafting_table", 1)
        return Result.ok("Crafted crafting table!")

    # ------------------------------------------------------------------
    # Crafting table
    # ------------------------------------------------------------------
    async def find_or_place_crafting_table(self) -> Optional[Block]:
        """Nearby table, else the remembered one, else craft and place one."""

        table = await self._nearby_table(self.config.table_search_radius)
        if table is not None:
            logger.info(
                "Using crafting table %.1f blocks away",
                self.world.position.distance_to(table.position),
            )
            self.state.remember(TABLE_LANDMARK, table.position)
            return table
        logger.info("No crafting table within %.0f blocks", self.config.table_search_radius)

        remembered = self.state.recall(TABLE_LANDMARK)
        if remembered is not None:
            block = await self.world.block_at(remembered)
            if block is not None and block.name == "crafting_table":
                return block
            self.state.forget(TABLE_LANDMARK)

        if count_items(self.world.inventory(), "crafting_table") == 0:
            result = await self.craft_crafting_table()
            if not result.success:
                logger.info("Could not craft a crafting table: %s", result.message)
        if count_items(self.world.inventory(), "crafting_table") == 0:
            return None

        try:
            reference = await self.world.block_at(self.world.position.offset(0, -1, 0))
            if reference is None:
                return None
            await self.world.equip("crafting_table", "hand")
            await self.world.place_block(reference, Vec3(0, 1, 0))
        except CraftbotError as exc:
            logger.warning("Error placing crafting table: %s", exc)
            return None

        table = await self._nearby_table(self.config.table_reach)
        if table is not None:
            logger.info("Placed crafting table at %s", table.position)
            self.state.remember(TABLE_LANDMARK, table.position)
        return table

    # ------------------------------------------------------------------
    # Axes
    # ------------------------------------------------------------------
    async def craft_axe(self) -> Result:
        """Craft the simplest axe the inventory allows."""

        owned = self.state.claim_task("craft", "Attempting to craft an axe", replace=MOVEMENT_TASKS)
        items = self.world.inventory()
        planks = count_items(items, "#planks")
        sticks = count_items(items, "stick")
        logger.info("Crafting axe with %d planks, %d sticks", planks, sticks)

        table = await self.find_or_place_crafting_table()
        if table is None:
            if owned:
                self.state.cancel_task("craft")
            return Result.fail("Cannot craft axe: No crafting table available!", reason="no_table")

        for axe in reversed(self.config.axe_priority):
            recipes = self.world.recipes.recipes_for(axe, self.world.inventory(), table=True)
            if not recipes:
                continue
            distance = self.world.position.distance_to(table.position)
            if distance > self.config.table_reach:
                logger.info("Navigating to crafting table (%.1f blocks away)", distance)
                nav = await self.navigator.smart_navigate(GoalNear(table.position, 2))
                if not nav.success:
                    logger.warning("Cannot reach crafting table: %s", nav.message)
                    continue
            try:
                await self.world.craft(recipes[0], 1, table)
            except CraftbotError as exc:
                logger.warning("Failed to craft %s: %s", axe, exc)
                continue

            self.state.statistics.increment("axes_crafted")
            if owned:
                self.state.complete_task("craft")
            self._record(axe, 1)
            await equip_best_axe(self.world, self.config.axe_priority)
            logger.info("Crafted %s", axe)
            return Result.ok(f"Crafted {axe}!", item=axe)

        if owned:
            self.state.cancel_task("craft")
        return Result.fail(
            f"Cannot craft any axe! Have: {planks} planks, {sticks} sticks. "
            "Need: 3 planks + 2 sticks + crafting table",
            reason="materials",
        )

    async def check_and_craft_axe(self) -> Result:
        if has_axe(self.world.inventory()) or not self.config.auto_craft_axe:
            return Result.ok("Axe already available")
        logger.info("No axe in inventory, attempting to craft one")
        return await self.craft_axe()

    async def craft_tool_chain(self) -> Result:
        """Make sure an axe exists, crafting it from raw material if needed."""

        items = self.world.inventory()
        if has_axe(items):
            return Result.ok("Axe already available")
        logs = _logs(items)
        planks = count_items(items, "#planks")
        sticks = count_items(items, "stick")
        if logs == 0 and planks == 0 and sticks == 0:
            return Result.fail(
                "Cannot craft an axe: no materials (need logs or planks)!", reason="no_materials"
            )

        result = await self.craft_axe()
        if result.success or _logs(self.world.inventory()) == 0:
            return result

        logger.info("Axe attempt failed (%s); crafting intermediate materials", result.message)
        await self.craft_planks(DETOUR_PLANKS)
        await self.craft_sticks(DETOUR_STICKS)
        return await self.craft_axe()

    def debug_info(self) -> Result:
        items = self.world.inventory()
        info: Dict[str, Any] = {
            "logs": _logs(items),
            "planks": count_items(items, "#planks"),
            "sticks": count_items(items, "stick"),
            "tables": count_items(items, "crafting_table"),
            "axes": [i.name for i in items if i.name.endswith("_axe")],
            "remembered_table": self.state.recall(TABLE_LANDMARK),
        }
        craftable = [
            axe for axe in self.config.axe_priority if self.world.recipes.recipes_for(axe, items, table=True)
        ]
        info["craftable_axes"] = craftable
        message = (
            f"Logs: {info['logs']}, Planks: {info['planks']}, Sticks: {info['sticks']}, "
            f"Tables: {info['tables']}, Axes: {', '.join(info['axes']) or 'none'}, "
            f"Craftable: {', '.join(craftable) or 'none'}"
        )
        return Result.ok(message, **info)


__all__ = ["DETOUR_PLANKS", "DETOUR_STICKS", "TABLE_LANDMARK", "Crafter"]
