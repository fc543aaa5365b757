"""Shared agent state: mood, current task, statistics and short-term memory.

A single :class:`AgentState` is created by :class:`craftbot.core.agent.Agent`
and handed to every component, so the navigator, the combat engager and the
resource pipelines all observe the same task and mood.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from .vec import Vec3
from .world import Item


logger = logging.getLogger(__name__)


class Mood(str, Enum):
    IDLE = "idle"
    WORKING = "working"
    EXPLORING = "exploring"
    FOLLOWING = "following"
    CRAFTING = "crafting"
    GATHERING = "gathering"
    COMBAT = "combat"


# Mood implied by each task category. Unlisted tasks count as work.
TASK_MOODS: Dict[str, Mood] = {
    "navigate": Mood.EXPLORING,
    "explore": Mood.EXPLORING,
    "follow": Mood.FOLLOWING,
    "chop": Mood.WORKING,
    "deposit": Mood.WORKING,
    "farm": Mood.GATHERING,
    "collect": Mood.GATHERING,
    "craft": Mood.CRAFTING,
    "combat": Mood.COMBAT,
}


@dataclass
class Task:
    name: str
    description: str
    start_time: float


@dataclass
class Statistics:
    """Monotonic counters for the current session."""

    logs_chopped: int = 0
    plants_harvested: int = 0
    axes_crafted: int = 0
    items_deposited: int = 0
    mobs_killed: int = 0
    deaths: int = 0
    tasks_completed: int = 0
    start_time: float = field(default_factory=time.time)

    def increment(self, counter: str, amount: int = 1) -> int:
        """Add ``amount`` to ``counter`` and return the new value."""

        if counter == "start_time" or not hasattr(self, counter):
            raise KeyError(counter)
        if amount < 0:
            raise ValueError("statistics never decrease")
        value = getattr(self, counter) + amount
        setattr(self, counter, value)
        return value


@dataclass
class InventorySummary:
    logs: int = 0
    planks: int = 0
    sticks: int = 0
    axes: List[Dict[str, Any]] = field(default_factory=list)
    tools: List[Dict[str, Any]] = field(default_factory=list)


class AgentState:
    """Mood, task, statistics and memory shared by all behaviours."""

    def __init__(self, owner: Optional[str] = None, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self.mood: Mood = Mood.IDLE
        self.current_task: Optional[Task] = None
        self.owner = owner
        self.statistics = Statistics(start_time=clock())
        self.inventory = InventorySummary()
        self.memory: Dict[str, Vec3] = {}
        self.known_players: Dict[str, Dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # Task management
    # ------------------------------------------------------------------
    def set_task(self, name: str, description: str = "") -> Task:
        """Start ``name`` and switch to the mood of its category."""

        self.current_task = Task(name=name, description=description, start_time=self._clock())
        self.mood = TASK_MOODS.get(name, Mood.WORKING)
        logger.debug("Task set: %s (%s) mood=%s", name, description, self.mood.value)
        return self.current_task

    def claim_task(self, name: str, description: str = "", replace: Iterable[str] = ()) -> bool:
        """Start ``name`` unless another task is in flight.

        A running task named ``name`` or listed in ``replace`` is taken over.
        Returns whether the caller now owns the current task, i.e. whether it
        should complete or cancel it later.
        """

        current = self.task_name()
        if current is not None and current != name and current not in replace:
            return False
        self.set_task(name, description)
        return True

    def update_task(self, description: str, name: Optional[str] = None) -> None:
        """Change the running task's description (only if it is ``name`` when given)."""

        if self.current_task is not None and (name is None or self.current_task.name == name):
            self.current_task.description = description

    def _clear_task(self, name: Optional[str]) -> Optional[Task]:
        task = self.current_task
        if task is None:
            return None
        if name is not None and task.name != name:
            # Preempted by another task; leave the newer one alone.
            return None
        self.current_task = None
        if not (self.mood is Mood.COMBAT and task.name != "combat"):
            self.mood = Mood.IDLE
        return task

    def complete_task(self, name: Optional[str] = None) -> bool:
        """Finish the current task (only if it is ``name`` when given)."""

        task = self._clear_task(name)
        if task is None:
            return False
        self.statistics.increment("tasks_completed")
        logger.debug("Task completed: %s", task.name)
        return True

    def cancel_task(self, name: Optional[str] = None) -> bool:
        """Abandon the current task (only if it is ``name`` when given)."""

        task = self._clear_task(name)
        if task is None:
            return False
        logger.debug("Task cancelled: %s", task.name)
        return True

    def is_idle(self) -> bool:
        return self.current_task is None and self.mood is Mood.IDLE

    def task_name(self) -> Optional[str]:
        return self.current_task.name if self.current_task else None

    # ------------------------------------------------------------------
    # Mood
    # ------------------------------------------------------------------
    def set_mood(self, mood: Mood | str) -> bool:
        """Set ``mood``; unknown values are ignored."""

        try:
            self.mood = Mood(mood)
        except ValueError:
            logger.warning("Ignoring unknown mood %r", mood)
            return False
        return True

    # ------------------------------------------------------------------
    # Memory
    # ------------------------------------------------------------------
    def remember(self, landmark: str, position: Vec3) -> None:
        self.memory[landmark] = Vec3.of(position)

    def recall(self, landmark: str) -> Optional[Vec3]:
        return self.memory.get(landmark)

    def forget(self, landmark: str) -> None:
        self.memory.pop(landmark, None)

    def remember_player(self, username: str, position: Vec3) -> None:
        self.known_players[username] = {"last_seen": self._clock(), "position": Vec3.of(position)}

    # ------------------------------------------------------------------
    # Inventory summary
    # ------------------------------------------------------------------
    def update_inventory(self, items: Iterable[Item]) -> InventorySummary:
        items = list(items)
        summary = InventorySummary()
        summary.logs = sum(i.count for i in items if "_log" in i.name)
        summary.planks = sum(i.count for i in items if "_planks" in i.name)
        summary.sticks = sum(i.count for i in items if i.name == "stick")
        summary.axes = [
            {"name": i.name, "count": i.count, "slot": i.slot} for i in items if i.name.endswith("_axe")
        ]
        summary.tools = [
            {"name": i.name, "count": i.count, "slot": i.slot}
            for i in items
            if any(k in i.name for k in ("_pickaxe", "_shovel", "_hoe", "_sword"))
        ]
        self.inventory = summary
        return summary

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def uptime(self) -> float:
        return self._clock() - self.statistics.start_time

    def snapshot(self) -> Dict[str, Any]:
        task = None
        if self.current_task is not None:
            task = asdict(self.current_task)
        return {
            "task": task,
            "mood": self.mood.value,
            "owner": self.owner,
            "inventory": asdict(self.inventory),
            "statistics": asdict(self.statistics),
            "memory": {k: v.to_dict() for k, v in self.memory.items()},
            "uptime": self.uptime(),
        }


__all__ = ["Mood", "TASK_MOODS", "Task", "Statistics", "InventorySummary", "AgentState"]
