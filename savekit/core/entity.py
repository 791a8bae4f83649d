"""
Entity model base for persisted domain records.

Entities are plain data (a quest, an item stack, a recipe). The core
treats them as opaque values keyed by id; features that want typed
access declare a pydantic model and map it to a collection in their
FeatureDescriptor. The repository then hydrates cached values into
model instances and dumps them back to JSON on persist.

Usage:
    class Recipe(EntityModel):
        id: str
        name: str
        ingredients: dict[str, int] = Field(default_factory=dict)

    RECIPES = FeatureDescriptor("crafting", ("recipes",), entity_models={"recipes": Recipe})
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class EntityModel(BaseModel):
    """
    Base class for typed entities.

    Pydantic gives us:
    - Validation of loaded payloads
    - JSON round trips (model_dump / model_validate)
    - Default values for fields added by later schema versions
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra='forbid',
    )

    def clone(self) -> EntityModel:
        """Create a deep copy of this entity."""
        return self.model_copy(deep=True)
