"""Eat whenever health or hunger is below full."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from ...config import CONFIG, AutoEatConfig
from ...core.cooldowns import CooldownTracker
from ...core.errors import CraftbotError
from ...core.result import Result
from ...core.world import World


logger = logging.getLogger(__name__)


# Best to worst.
FOOD_PRIORITY = [
    "golden_apple",
    "enchanted_golden_apple",
    "golden_carrot",
    "cooked_beef",
    "cooked_porkchop",
    "cooked_mutton",
    "cooked_chicken",
    "cooked_rabbit",
    "cooked_salmon",
    "cooked_cod",
    "bread",
    "baked_potato",
    "pumpkin_pie",
    "cake",
    "beef",
    "porkchop",
    "mutton",
    "chicken",
    "rabbit",
    "salmon",
    "cod",
    "carrot",
    "potato",
    "beetroot",
    "apple",
    "melon_slice",
    "sweet_berries",
    "glow_berries",
    "cookie",
    "mushroom_stew",
    "rabbit_stew",
    "beetroot_soup",
    "suspicious_stew",
    "honey_bottle",
    "rotten_flesh",
    "spider_eye",
    "poisonous_potato",
]


class AutoEat:
    """Survival poll: keep health and hunger topped up."""

    def __init__(
        self,
        world: World,
        config: AutoEatConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.world = world
        self.config = config or CONFIG.auto_eat
        self.enabled = self.config.enabled
        self.is_eating = False
        self.cooldowns = CooldownTracker(clock)

    def needs_food(self) -> bool:
        if self.is_eating:
            return False
        return self.world.health < 20 or self.world.food < 20

    def find_best_food(self) -> Optional[str]:
        names = {i.name for i in self.world.inventory()}
        for food in FOOD_PRIORITY:
            if food in names:
                return food
        return None

    async def eat(self) -> Result:
        """Equip and consume the best food, at most once per ``min_spacing``."""

        if not self.cooldowns.try_trigger("eat", self.config.min_spacing):
            return Result.fail("Ate too recently")
        if not self.needs_food():
            return Result.fail("Not hungry")
        food = self.find_best_food()
        if food is None:
            logger.info("No food in inventory!")
            return Result.fail("No food in inventory!")

        self.is_eating = True
        try:
            logger.info(
                "Eating %s (health %.0f/20, hunger %.0f/20)", food, self.world.health, self.world.food
            )
            await self.world.equip(food, "hand")
            await self.world.consume()
        except CraftbotError as exc:
            logger.debug("Error eating: %s", exc)
            return Result.fail(f"Error eating: {exc}")
        finally:
            self.is_eating = False
        return Result.ok(f"Ate {food}!", food=food)

    async def check_and_eat(self) -> Optional[Result]:
        if not self.enabled or not self.needs_food():
            return None
        return await self.eat()

    def get_status(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "health": self.world.health,
            "hunger": self.world.food,
            "needs_food": self.needs_food(),
            "is_eating": self.is_eating,
            "has_food": self.find_best_food() is not None,
        }


__all__ = ["FOOD_PRIORITY", "AutoEat"]
