"""Shared steps of the resource gathering chain.

A gathering run walks through the same steps for every resource:

    ensure prerequisite -> locate -> navigate -> act -> collect -> deposit

:class:`ResourceTask` records the outcome of each step together with running
counts; the counts are kept even when a later step fails so partial progress
is always reported. :class:`ResourcePipeline` implements the steps that do
not depend on the resource (navigation, drop collection and the deposit
check) and is subclassed by the lumberjack and the farmer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from ...config import CONFIG, BehaviorConfig, HarvestConfig
from ...core.result import Result
from ...core.state import AgentState
from ...core.vec import Vec3
from ...core.world import World, count_items
from ...persistence.event_log import HARVEST, EventLog
from ..movement.goals import GoalNear
from ..movement.navigation import Navigator
from .pickup import collect_drops
from .storage import Depositor


logger = logging.getLogger(__name__)


class Step(str, Enum):
    ENSURE_PREREQUISITE = "ensure_prerequisite"
    LOCATE = "locate"
    NAVIGATE = "navigate"
    ACT = "act"
    COLLECT = "collect"
    DEPOSIT = "deposit"


@dataclass
class StepResult:
    step: Step
    success: bool
    reason: str = ""


@dataclass
class ResourceTask:
    """Progress of one gathering run."""

    resource: str
    harvested: int = 0
    collected: int = 0
    deposited: int = 0
    steps: List[StepResult] = field(default_factory=list)

    def record(self, step: Step, success: bool, reason: str = "") -> StepResult:
        result = StepResult(step, success, reason)
        self.steps.append(result)
        return result

    def reached(self, step: Step) -> bool:
        return any(s.step is step for s in self.steps)

    @property
    def failed_step(self) -> Optional[Step]:
        for s in self.steps:
            if not s.success:
                return s.step
        return None


class ResourcePipeline:
    """Base class for resource gatherers."""

    def __init__(
        self,
        world: World,
        state: AgentState,
        navigator: Navigator,
        depositor: Depositor | None = None,
        harvest: HarvestConfig | None = None,
        behavior: BehaviorConfig | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        self.world = world
        self.state = state
        self.navigator = navigator
        self.depositor = depositor
        self.harvest = harvest or CONFIG.harvest
        self.behavior = behavior or CONFIG.behavior
        self.event_log = event_log

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    async def ensure_prerequisite(self, chain: ResourceTask) -> Result:
        chain.record(Step.ENSURE_PREREQUISITE, True)
        return Result.ok("No prerequisite")

    async def navigate_to_target(self, chain: ResourceTask, position: Vec3) -> Result:
        result = await self.navigator.smart_navigate(GoalNear(Vec3.of(position), 2))
        chain.record(Step.NAVIGATE, result.success, "" if result.success else result.message)
        if not result.success:
            logger.warning("Could not reach %s: %s", position, result.message)
        return result

    async def collect(
        self,
        chain: ResourceTask,
        site: Vec3,
        radius: float,
        item_names: Optional[Iterable[str]] = None,
    ) -> int:
        collected = await collect_drops(
            self.world, site, radius, item_names, timeout=self.harvest.item_timeout
        )
        chain.collected += collected
        chain.record(Step.COLLECT, True)
        return collected

    async def check_and_deposit(self, chain: ResourceTask, item_name: str) -> Optional[Result]:
        """Deposit ``item_name`` once the inventory holds the threshold amount."""

        if self.depositor is None:
            return None
        threshold = self.behavior.deposit_threshold
        count = count_items(self.world.inventory(), item_name)
        logger.info("%s in inventory: %d/%d", item_name, count, threshold)
        if count < threshold:
            return None
        logger.info("%s threshold reached, depositing", item_name)
        result = await self.depositor.execute_deposit(item_name, threshold)
        chain.deposited += int(result.data.get("deposited", 0))
        chain.record(Step.DEPOSIT, result.success, "" if result.success else result.message)
        logger.info("Deposit result: %s", result.message)
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _record_harvest(self, item: str, position: Vec3, count: int = 1) -> None:
        if self.event_log is not None:
            self.event_log.append(
                HARVEST, {"item": item, "count": count, "position": Vec3.of(position).to_dict()}
            )


__all__ = ["Step", "StepResult", "ResourceTask", "ResourcePipeline"]
