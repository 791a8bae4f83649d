"""
Crafting service - recipe book and crafting through the inventory.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional

from features.crafting.models import KnownRecipe, Recipe
from features.inventory.service import InventoryService
from features.service import FeatureService

if TYPE_CHECKING:
    from savekit.core.events import EventBus
    from savekit.store.repository import CachingRepository

logger = logging.getLogger(__name__)

RECIPES = "recipes"
KNOWN = "known"


class CraftingEvent(Enum):
    """Crafting service events."""
    RECIPE_ADDED = auto()
    RECIPE_LEARNED = auto()
    CRAFTED = auto()


class CraftingService(FeatureService):
    """
    Crafts items from known recipes.

    Ingredients and results go through InventoryService.exchange(),
    which saves the inventory in one write. The recipe book is saved
    afterwards; the two stores are not written atomically together.
    """

    def __init__(
        self,
        repository: CachingRepository,
        inventory: InventoryService,
        event_bus: Optional[EventBus] = None,
    ):
        super().__init__(repository, event_bus)
        self.inventory = inventory

    # Recipes

    def add_recipe(self, recipe: Recipe) -> None:
        """Add or replace a recipe definition."""
        if self.repository.contains(recipe.id, RECIPES):
            logger.debug(f"Replacing recipe {recipe.id}")
        self.repository.add(recipe.id, recipe, RECIPES)
        self._commit(CraftingEvent.RECIPE_ADDED, recipe_id=recipe.id)

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        return self.repository.fetch_by_id(recipe_id, RECIPES)

    def get_recipes(self) -> list[Recipe]:
        return self.repository.fetch_all(RECIPES)

    # Recipe book

    def learn_recipe(self, recipe_id: str) -> bool:
        """
        Add a recipe to the player's book.

        Returns:
            False if the recipe doesn't exist or is already known
        """
        if not self.repository.contains(recipe_id, RECIPES):
            return False
        if self.knows_recipe(recipe_id):
            return False

        self.repository.add(recipe_id, KnownRecipe(recipe_id=recipe_id), KNOWN)
        self._commit(CraftingEvent.RECIPE_LEARNED, recipe_id=recipe_id)
        return True

    def knows_recipe(self, recipe_id: str) -> bool:
        return self.repository.contains(recipe_id, KNOWN)

    def get_known_recipes(self) -> list[Recipe]:
        recipes = (self.get_recipe(k) for k in self.repository.keys(KNOWN))
        return [r for r in recipes if r is not None]

    def times_crafted(self, recipe_id: str) -> int:
        entry = self.repository.fetch_by_id(recipe_id, KNOWN)
        return entry.times_crafted if entry else 0

    # Crafting

    def can_craft(self, recipe_id: str, times: int = 1) -> bool:
        """Known recipe, enough ingredients and gold."""
        recipe = self.get_recipe(recipe_id)
        if recipe is None or not self.knows_recipe(recipe_id):
            return False
        if self.inventory.gold < recipe.gold_cost * times:
            return False
        return all(
            self.inventory.has_item(item_id, quantity * times)
            for item_id, quantity in recipe.ingredients.items()
        )

    def craft(self, recipe_id: str, times: int = 1) -> bool:
        """
        Craft a recipe one or more times.

        Returns:
            True if the items were crafted
        """
        if times <= 0:
            raise ValueError(f"times must be positive, got {times}")

        recipe = self.get_recipe(recipe_id)
        entry = self.repository.fetch_by_id(recipe_id, KNOWN)
        if recipe is None or entry is None:
            return False

        crafted = self.inventory.exchange(
            consume={item_id: q * times for item_id, q in recipe.ingredients.items()},
            produce={recipe.result_item: recipe.result_quantity * times},
            gold_cost=recipe.gold_cost * times,
        )
        if not crafted:
            return False

        entry.times_crafted += times
        self.repository.add(recipe_id, entry, KNOWN)
        self._commit(
            CraftingEvent.CRAFTED,
            recipe_id=recipe_id,
            item_id=recipe.result_item,
            quantity=recipe.result_quantity * times,
        )
        logger.info(f"Crafted {recipe.result_item} x{recipe.result_quantity * times}")
        return True
