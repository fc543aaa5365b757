"""Goal-directed movement with stuck detection, timeouts and retries."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, List, Optional

from ...config import CONFIG, BehaviorConfig, NavigationConfig
from ...core.errors import (
    CraftbotError,
    NavigationCancelled,
    NavigationTimeout,
    NoPathError,
    StuckError,
)
from ...core.result import Result
from ...core.state import AgentState, Mood
from ...core.vec import Vec3
from ...core.world import World
from .goals import GoalFollow, GoalNear


logger = logging.getLogger(__name__)


DOOR_BLOCKS = [
    "oak_door",
    "spruce_door",
    "birch_door",
    "jungle_door",
    "acacia_door",
    "dark_oak_door",
    "mangrove_door",
    "cherry_door",
    "bamboo_door",
    "crimson_door",
    "warped_door",
]

# Tasks the navigator may overwrite; anything else belongs to a caller.
MOVEMENT_TASKS = ("navigate", "follow", "explore")

BUSY_IN_COMBAT = "Busy: in combat"


def combat_guard(state: AgentState) -> Optional[Result]:
    """Failure result when combat owns the task, ``None`` otherwise."""

    if state.task_name() == "combat":
        return Result.fail(BUSY_IN_COMBAT, reason="busy")
    return None


_FAILURE_MESSAGES = {
    "timeout": "Navigation took too long after multiple attempts! Stopped.",
    "no_path": "Cannot find a path to destination after multiple attempts!",
    "stuck": "Got stuck after multiple attempts! Stopped.",
}


@dataclass
class NavigationAttempt:
    goal: GoalNear
    attempt_number: int
    tolerance: float
    start_position: Vec3
    last_observed_position: Vec3
    stuck_ticks: int = 0
    outcome: str = "pending"


class Navigator:
    """Move the bot toward points, players and blocks."""

    def __init__(
        self,
        world: World,
        state: AgentState,
        config: NavigationConfig | None = None,
        behavior: BehaviorConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.world = world
        self.state = state
        self.config = config or CONFIG.navigation
        self.follow_distance = (behavior or CONFIG.behavior).follow_distance
        self.rng = rng or random.Random()
        self.is_following = False
        self.follow_target: Optional[str] = None
        self.follow_entity_id: Optional[int] = None
        self.attempts: List[NavigationAttempt] = []
        # Bumped by every new movement request; older loops notice and bail.
        self._generation = 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _preempt(self) -> int:
        self._generation += 1
        return self._generation

    def _stop_following(self) -> None:
        self.is_following = False
        self.follow_target = None
        self.follow_entity_id = None

    async def _check_stuck(self, attempt: NavigationAttempt) -> None:
        current = self.world.position
        moved = current.distance_to(attempt.last_observed_position)
        attempt.last_observed_position = current
        if moved >= self.config.stuck_distance:
            attempt.stuck_ticks = 0
            return

        attempt.stuck_ticks += 1
        logger.warning(
            "Bot appears stuck (%.0fs without progress)",
            attempt.stuck_ticks * self.config.stuck_check_interval,
        )
        await self.open_nearby_doors()
        if attempt.stuck_ticks >= self.config.stuck_limit:
            logger.warning("Bot stuck, cancelling navigation attempt %d", attempt.attempt_number)
            self.world.set_goal(None)
            raise StuckError(
                f"No progress for {attempt.stuck_ticks * self.config.stuck_check_interval:.0f}s"
            )

    async def _run_attempt(self, attempt: NavigationAttempt, generation: int) -> None:
        """Drive one ``goto`` while polling for timeout, preemption and stuck."""

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.attempt_timeout
        move = asyncio.ensure_future(self.world.goto(attempt.goal))
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise NavigationTimeout("Navigation timeout")
                done, _ = await asyncio.wait(
                    {move}, timeout=min(self.config.stuck_check_interval, remaining)
                )
                if move in done:
                    move.result()
                    return
                if generation != self._generation:
                    raise NavigationCancelled("Navigation preempted")
                if loop.time() >= deadline:
                    raise NavigationTimeout("Navigation timeout")
                await self._check_stuck(attempt)
        finally:
            if not move.done():
                move.cancel()
            await asyncio.gather(move, return_exceptions=True)

    @staticmethod
    def _failure(error: Optional[CraftbotError], attempts: int) -> Result:
        reason = getattr(error, "reason", "error")
        message = _FAILURE_MESSAGES.get(
            reason, f"Navigation failed after {attempts} attempts: {error}"
        )
        return Result.fail(message, reason=reason, attempts=attempts)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def navigate_to(self, goal: Any) -> Result:
        """Dispatch ``goal`` to the matching movement routine."""

        if isinstance(goal, GoalFollow):
            return self.follow_entity(goal.entity_id, goal.distance)
        if isinstance(goal, GoalNear):
            return await self.go_to_position(goal.point, goal.tolerance)
        return await self.smart_navigate(goal)

    async def go_to_position(self, position: Any, tolerance: float | None = None) -> Result:
        """Walk to ``position`` with retries, widening the tolerance each time."""

        busy = combat_guard(self.state)
        if busy is not None:
            return busy
        target = Vec3.of(position)
        base = self.config.default_tolerance if tolerance is None else tolerance
        self._stop_following()
        generation = self._preempt()
        owns_task = self.state.claim_task("navigate", f"Going to {target}", replace=MOVEMENT_TASKS)

        self.attempts = []
        max_retries = self.config.max_retries
        last_error: Optional[CraftbotError] = None

        for number in range(1, max_retries + 1):
            if generation != self._generation:
                break
            tol = base + self.config.tolerance_step * (number - 1)
            here = self.world.position
            attempt = NavigationAttempt(
                goal=GoalNear(target, tol),
                attempt_number=number,
                tolerance=tol,
                start_position=here,
                last_observed_position=here,
            )
            self.attempts.append(attempt)
            logger.info(
                "Navigating to %s (attempt %d/%d, tolerance %.0f)", target, number, max_retries, tol
            )
            try:
                await self._run_attempt(attempt, generation)
            except NavigationCancelled:
                attempt.outcome = "cancelled"
                break
            except CraftbotError as exc:
                attempt.outcome = getattr(exc, "reason", "error")
                last_error = exc
                logger.warning("Navigation attempt %d failed: %s", number, exc)
                self.world.set_goal(None)
                if number < max_retries:
                    await asyncio.sleep(self.config.retry_backoff)
                continue

            attempt.outcome = "reached"
            distance = self.world.position.distance_to(target)
            if owns_task:
                self.state.complete_task("navigate")
            logger.info("Reached destination (%.1f blocks away)", distance)
            return Result.ok(
                f"Reached destination! ({distance:.1f} blocks away)",
                distance=distance,
                attempts=number,
            )

        if owns_task:
            self.state.cancel_task("navigate")
        if last_error is None or generation != self._generation:
            return Result.fail("Navigation cancelled.", reason="cancelled", attempts=len(self.attempts))
        return self._failure(last_error, len(self.attempts))

    async def smart_navigate(self, goal: Any, max_retries: int | None = None) -> Result:
        """Retry ``goal`` on failure with a short pause; no stuck detection."""

        retries = self.config.max_retries if max_retries is None else max_retries
        self._stop_following()
        for number in range(1, retries + 1):
            try:
                await self.world.goto(goal)
            except NavigationCancelled:
                return Result.fail("Navigation cancelled.", reason="cancelled", attempts=number)
            except CraftbotError as exc:
                logger.info("Navigation attempt %d failed: %s", number, exc)
                if number >= retries:
                    return Result.fail(
                        f"Navigation failed after {retries} attempts: {exc}",
                        reason=getattr(exc, "reason", "error"),
                        attempts=number,
                    )
                await asyncio.sleep(self.config.smart_retry_backoff)
                continue
            return Result.ok("Navigation successful!", attempts=number)
        return Result.fail("Navigation failed", reason="error", attempts=retries)

    def follow_entity(self, entity_id: int, distance: float | None = None, label: str | None = None) -> Result:
        """Track ``entity_id`` until :meth:`stop` or another movement request."""

        busy = combat_guard(self.state)
        if busy is not None:
            return busy
        entity = self.world.entity(entity_id)
        if entity is None or not entity.is_valid:
            return Result.fail(f"Cannot find {label or 'target'}!")
        self._preempt()
        name = label or entity.username or entity.name
        goal = GoalFollow(entity_id, self.follow_distance if distance is None else distance)
        self.is_following = True
        self.follow_target = name
        self.follow_entity_id = entity_id
        self.state.set_task("follow", f"Following {name}")
        self.world.set_goal(goal, dynamic=True)
        logger.info("Following %s", name)
        return Result.ok(f"Now following {name}! Use 'stop' to stop following.", entity_id=entity_id)

    def follow_player(self, username: str) -> Result:
        busy = combat_guard(self.state)
        if busy is not None:
            return busy
        self._stop_following()
        player = self.world.player(username)
        if player is None:
            return Result.fail(f"Cannot find player {username}!")
        result = self.follow_entity(player.id, label=username)
        if result.success:
            self.state.owner = username
        return result

    def stop(self) -> Result:
        """Stop following and any movement. Safe to call repeatedly."""

        was_following = self.is_following
        self._stop_following()
        self._preempt()
        self.world.set_goal(None)
        self.state.cancel_task()
        self.state.set_mood(Mood.IDLE)
        if was_following:
            self.state.owner = None
        logger.info("Stopped all navigation")
        return Result.ok("Stopped following!" if was_following else "Stopped moving!")

    async def go_to_player(self, username: str) -> Result:
        busy = combat_guard(self.state)
        if busy is not None:
            return busy
        player = self.world.player(username)
        if player is None:
            return Result.fail(f"Cannot find player {username}!")
        self._stop_following()
        self._preempt()
        self.state.set_task("navigate", f"Going to {username}")
        try:
            await self.world.goto(GoalNear(player.position, 2))
        except NoPathError:
            self.state.cancel_task("navigate")
            return Result.fail("Cannot find a path to target!", reason="no_path")
        except CraftbotError as exc:
            self.state.cancel_task("navigate")
            return Result.fail(f"Navigation failed: {exc}", reason=getattr(exc, "reason", "error"))
        self.state.complete_task("navigate")
        return Result.ok(f"Reached {username}!")

    async def explore(self, distance: float | None = None) -> Result:
        """Walk to a random point within ``distance`` blocks."""

        busy = combat_guard(self.state)
        if busy is not None:
            return busy
        distance = self.config.explore_distance if distance is None else distance
        self._stop_following()
        self._preempt()
        self.state.set_task("explore", "Exploring area")
        here = self.world.position
        target = Vec3(
            here.x + (self.rng.random() - 0.5) * distance * 2,
            here.y,
            here.z + (self.rng.random() - 0.5) * distance * 2,
        )
        logger.info("Exploring to %s", target)
        try:
            await self.world.goto(GoalNear(target, 3))
        except CraftbotError as exc:
            self.state.cancel_task("explore")
            return Result.fail(f"Exploration failed: {exc}", target=target.to_dict())
        self.state.complete_task("explore")
        return Result.ok("Exploration complete!", target=target.to_dict())

    async def go_to_block_type(self, block_name: str, max_distance: float | None = None) -> Result:
        max_distance = self.config.block_search_distance if max_distance is None else max_distance
        blocks = await self.world.find_blocks([block_name], max_distance, count=1)
        if not blocks:
            return Result.fail(f"No {block_name} found within {max_distance:.0f} blocks!")
        block = blocks[0]
        logger.info("Navigating to %s at %s", block_name, block.position)
        try:
            await self.world.goto(GoalNear(block.position, 2))
        except CraftbotError as exc:
            return Result.fail(f"Could not reach {block_name}: {exc}")
        return Result.ok(f"Reached {block_name}!", block=block)

    async def open_nearby_doors(self, radius: float | None = None, count: int = 4) -> int:
        """Open closed doors within ``radius`` and return how many were opened."""

        radius = self.config.door_radius if radius is None else radius
        doors = await self.world.find_blocks(DOOR_BLOCKS, radius, count=count)
        opened = 0
        for door in doors:
            block = await self.world.block_at(door.position)
            if block is None or not block.is_door or block.is_open:
                continue
            logger.info("Opening closed door at %s", block.position)
            try:
                await self.world.activate_block(block)
            except CraftbotError as exc:
                logger.warning("Could not open door: %s", exc)
                continue
            opened += 1
            await asyncio.sleep(self.config.door_wait)
        return opened

    async def return_home(self, home: Any) -> Result:
        if home is None:
            return Result.fail("No home set! Use 'sethome' first.")
        home = Vec3.of(home)
        if self.world.position.distance_to(home) <= self.config.home_skip_distance:
            return Result.ok("Already home!")
        logger.info("Returning home to %s", home)
        return await self.go_to_position(home, 3)

    def get_position(self) -> Vec3:
        return self.world.position.floored()

    def is_navigating(self) -> bool:
        return self.world.is_moving() or self.is_following

    def distance_to_player(self, username: str) -> Optional[float]:
        player = self.world.player(username)
        if player is None:
            return None
        return self.world.position.distance_to(player.position)


__all__ = [
    "DOOR_BLOCKS",
    "MOVEMENT_TASKS",
    "BUSY_IN_COMBAT",
    "combat_guard",
    "NavigationAttempt",
    "Navigator",
]
