"""Recipe metadata loaded from ``data/recipes.json``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List

from ...core.world import Item, Recipe, count_items


logger = logging.getLogger(__name__)

RECIPE_PATH = Path(__file__).resolve().parents[2] / "data" / "recipes.json"


class RecipeTable:
    """Answer "how is this item made, and can I afford it right now"."""

    def __init__(self, recipe_path: str | Path | None = None) -> None:
        if recipe_path is None:
            recipe_path = RECIPE_PATH
        self.recipes = self._load_recipes(recipe_path)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _load_recipes(path: str | Path) -> Dict[str, List[Recipe]]:
        """Return recipe table loaded from ``path``."""

        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError):
            logger.warning("Could not load recipes from %s", path)
            return {}

        recipes: Dict[str, List[Recipe]] = {}
        for result, variants in data.items():
            recipes[str(result)] = [
                Recipe(
                    result=str(result),
                    count=int(v.get("count", 1)),
                    ingredients={str(k): int(n) for k, n in v.get("ingredients", {}).items()},
                    requires_table=bool(v.get("requires_table", False)),
                )
                for v in variants
            ]
        return recipes

    @staticmethod
    def affordable(recipe: Recipe, inventory: Iterable[Item], times: int = 1) -> bool:
        items = list(inventory)
        return all(count_items(items, name) >= need * times for name, need in recipe.ingredients.items())

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def all_recipes(self, item_name: str) -> List[Recipe]:
        return list(self.recipes.get(item_name, []))

    def recipes_for(self, item_name: str, inventory: List[Item], table: bool = False) -> List[Recipe]:
        """Recipes for ``item_name`` craftable once from ``inventory``.

        Recipes that need a crafting table are only returned when ``table``
        is true.
        """

        return [
            r
            for r in self.recipes.get(item_name, [])
            if (table or not r.requires_table) and self.affordable(r, inventory)
        ]


__all__ = ["RECIPE_PATH", "RecipeTable"]
