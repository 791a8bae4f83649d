"""
Crafting feature - recipes, recipe book, crafting.
"""

from features.crafting.models import Recipe, KnownRecipe
from features.crafting.schema import CRAFTING, CRAFTING_MIGRATIONS
from features.crafting.service import CraftingService, CraftingEvent

__all__ = [
    "Recipe",
    "KnownRecipe",
    "CRAFTING",
    "CRAFTING_MIGRATIONS",
    "CraftingService",
    "CraftingEvent",
]
