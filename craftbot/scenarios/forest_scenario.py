from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..sim.world import SimWorld


logger = logging.getLogger(__name__)


class ForestScenario:
    """A clearing with a few oak trees, a sugar cane patch and a storage chest.

    ``main --sim`` drops the bot here; tests reuse it for end-to-end runs.
    """

    TREES = [(6, 64, 4), (-5, 64, 7), (9, 64, -6), (-8, 64, -4)]
    TREE_HEIGHT = 5
    CANE_ROW = [(3, 64, 12), (4, 64, 12), (5, 64, 12), (6, 64, 12)]
    CHEST = (10, 64, -55)
    OPERATOR = "Steve"

    def get_name(self) -> str:
        return "Forest Clearing"

    def setup(self, world: SimWorld) -> None:
        """Plant trees and cane, place the chest and spawn the operator."""

        for x, y, z in self.TREES:
            for dy in range(self.TREE_HEIGHT):
                world.add_block("oak_log", (x, y + dy, z))
            for dx in (-1, 0, 1):
                for dz in (-1, 0, 1):
                    if dx or dz:
                        world.add_block("oak_leaves", (x + dx, y + self.TREE_HEIGHT - 1, z + dz))
        logger.info("[Scenario] Planted %d trees", len(self.TREES))

        for x, y, z in self.CANE_ROW:
            world.add_block("sand", (x, y - 1, z))
            world.add_block("sugar_cane", (x, y, z))
            world.add_block("sugar_cane", (x, y + 1, z))
        logger.info("[Scenario] Sugar cane row of %d plants", len(self.CANE_ROW))

        world.add_chest(self.CHEST)
        world.add_player(self.OPERATOR, (0, 64, 2))
        world.give("bread", 4)
        logger.info("[Scenario] Chest at %s, operator %s spawned", self.CHEST, self.OPERATOR)


__all__ = ["ForestScenario"]
