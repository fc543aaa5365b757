"""Wire every behaviour around one world connection.

The :class:`Agent` owns the shared :class:`AgentState`, builds the
components in dependency order and registers the background polls with the
:class:`Scheduler`. Operator chat lines arrive as ``chat`` world events and
are dispatched as separate asyncio tasks so a long command never blocks the
events poll.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Callable, Dict, Optional, Set

from ..config import CONFIG, Config
from ..persistence.event_log import EventLog
from ..persistence.settings import SettingsStore
from ..systems.combat.armor import equip_best_armor
from ..systems.combat.combat_system import CombatSystem
from ..systems.combat.weapons import equip_best_weapon
from ..systems.interaction.crafting import Crafter
from ..systems.interaction.farmer import Farmer
from ..systems.interaction.lumberjack import Lumberjack
from ..systems.interaction.storage import Depositor
from ..systems.movement.navigation import Navigator
from ..systems.survival.autoeat import AutoEat
from ..utils import observer
from ..utils.chat import ChatRelay
from ..utils.cli.command_parser import parse_command
from ..utils.cli.commands import execute
from .result import Result
from .scheduler import Scheduler
from .state import AgentState, Mood
from .world import World


logger = logging.getLogger(__name__)


class Agent:
    """A bot: components, polls and the operator command loop."""

    def __init__(
        self,
        world: World,
        config: Config | None = None,
        settings: SettingsStore | None = None,
        event_log: EventLog | None = None,
        username: Optional[str] = None,
        rng: random.Random | None = None,
    ) -> None:
        self.world = world
        self.config = config or CONFIG
        cfg = self.config
        self.username = username or cfg.bot.username

        self.state = AgentState(owner=cfg.bot.owner)
        self.settings = settings if settings is not None else SettingsStore(cfg.settings_path)
        if event_log is None:
            paths = cfg.paths or {}
            event_log = EventLog(paths.get("event_log"))
        self.event_log = event_log

        self.navigator = Navigator(world, self.state, cfg.navigation, cfg.behavior, rng)
        self.combat = CombatSystem(
            world, self.state, self.settings, cfg.behavior, cfg.combat, self.event_log
        )
        self.auto_eat = AutoEat(world, cfg.auto_eat)
        self.crafter = Crafter(world, self.state, self.navigator, cfg.crafting, self.event_log)
        self.depositor = Depositor(
            world, self.state, self.navigator, cfg.behavior, cfg.storage, self.event_log
        )
        self.lumberjack = Lumberjack(
            world,
            self.state,
            self.navigator,
            self.crafter,
            self.depositor,
            self.settings,
            cfg.harvest,
            cfg.behavior,
            self.event_log,
        )
        self.farmer = Farmer(
            world, self.state, self.navigator, self.depositor, cfg.harvest, cfg.behavior, self.event_log
        )
        self.chat = ChatRelay(world, cfg.chat)

        self.scheduler = Scheduler(verbose=cfg.logging.verbose_polls)
        self._command_tasks: Set[asyncio.Task] = set()
        self._register_polls()

    # ------------------------------------------------------------------
    # Polls
    # ------------------------------------------------------------------
    def _observed(self, name: str, callback: Callable[[], Any]) -> Callable[[], Any]:
        async def wrapper() -> Any:
            start = time.perf_counter()
            try:
                return await callback()
            finally:
                observer.record_poll(name, time.perf_counter() - start)

        return wrapper

    def _register_polls(self) -> None:
        sched = self.config.scheduler
        polls = [
            ("events", sched.events_interval, self.poll_events),
            ("combat", sched.combat_interval, self.poll_combat),
            ("eat", sched.eat_interval, self.poll_eat),
            ("farm", sched.farm_interval, self.poll_farm),
            ("inventory", sched.inventory_interval, self.poll_inventory),
            ("snapshot", sched.snapshot_interval, self.poll_snapshot),
            ("chat", self.config.chat.message_delay, self.chat.flush_one),
        ]
        for name, interval, callback in polls:
            self.scheduler.register(name, interval, self._observed(name, callback))

    async def poll_combat(self) -> None:
        await self.combat.defend_self()

    async def poll_eat(self) -> None:
        await self.auto_eat.check_and_eat()

    async def poll_farm(self) -> Optional[Result]:
        if not self.settings.auto_farm:
            return None
        if self.state.task_name() == "combat" or self.state.mood is Mood.COMBAT:
            return None
        if self.farmer.is_farming:
            return None
        return await self.farmer.execute_harvest()

    async def poll_inventory(self) -> None:
        self.state.update_inventory(self.world.inventory())

    async def poll_snapshot(self) -> Dict[str, Any]:
        return observer.log_snapshot(self.world, self.state)

    async def poll_events(self) -> None:
        for event in self.world.drain_events():
            kind = event.get("type")
            if kind == "entity_dead":
                self.combat.on_entity_dead(event.get("entity_id"), event.get("name", ""))
            elif kind == "death":
                logger.warning("Bot died")
                self.combat.on_death()
            elif kind == "respawn":
                logger.info("Bot respawned")
                await self.equip_loadout()
            elif kind == "chat":
                self.handle_chat(event.get("username"), event.get("message", ""))
            else:
                logger.debug("Ignoring world event %s", kind)

    async def equip_loadout(self) -> None:
        """Wear the best armor and hold the best weapon, as configured."""

        if self.config.armor.auto_equip:
            result = await equip_best_armor(self.world, self.config.armor.material_priority)
            logger.info("Auto-equip armor: %s", result.message)
        if self.config.combat.auto_equip_weapon:
            result = await equip_best_weapon(self.world, self.config.combat.weapon_priority)
            logger.info("Auto-equip weapon: %s", result.message)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def handle_chat(self, username: Optional[str], message: str) -> Optional[asyncio.Task]:
        """Start a command task for ``message``; the bot's own lines are ignored."""

        if username == self.username:
            return None
        command = parse_command(message, self.config.chat.prefix, username)
        if command is None:
            return None
        if username is not None:
            player = self.world.player(username)
            if player is not None:
                self.state.remember_player(username, player.position)
        task = asyncio.create_task(
            self.run_command(command.name, command.args, username), name=f"command:{command.name}"
        )
        self._command_tasks.add(task)
        task.add_done_callback(self._command_tasks.discard)
        return task

    async def run_command(self, name: str, args: list[str] | None = None, username: Optional[str] = None) -> Result:
        """Execute one command and queue its reply."""

        result = await execute(self, name, list(args or []), username)
        self.chat.say(result.message)
        return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def run(self, until: Any = None) -> None:
        logger.info("Agent %s starting", self.username)
        try:
            await self.equip_loadout()
            await self.scheduler.run(until)
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop polls, cancel in-flight commands and flush pending chat."""

        await self.scheduler.stop()
        tasks = list(self._command_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._command_tasks.clear()
        self.world.set_goal(None)
        logger.info("Agent %s stopped", self.username)


__all__ = ["Agent"]
