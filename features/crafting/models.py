"""
Crafting entities - recipes and the player's recipe book.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from savekit.core.entity import EntityModel


class Recipe(EntityModel):
    """
    Turns ingredients (and optionally gold) into a result item.

    Attributes:
        ingredients: item_id -> quantity consumed per craft
        result_item: Item produced
        result_quantity: Amount produced per craft
    """
    id: str
    name: str
    ingredients: dict[str, int] = Field(default_factory=dict)
    result_item: str
    result_quantity: int = Field(default=1, ge=1)
    gold_cost: int = Field(default=0, ge=0)

    @field_validator('ingredients')
    @classmethod
    def _positive_quantities(cls, value: dict[str, int]) -> dict[str, int]:
        for item_id, quantity in value.items():
            if quantity <= 0:
                raise ValueError(f"ingredient '{item_id}' needs a positive quantity")
        return value


class KnownRecipe(EntityModel):
    """Entry in the player's recipe book."""
    recipe_id: str
    times_crafted: int = Field(default=0, ge=0)
