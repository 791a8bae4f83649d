"""
Crafting store layout.
"""

from __future__ import annotations

from savekit.store.descriptor import FeatureDescriptor
from savekit.store.migration import MigrationRegistry

from features.crafting.models import KnownRecipe, Recipe

CRAFTING = FeatureDescriptor(
    name="crafting",
    collections=("recipes", "known"),
    schema_version=1,
    entity_models={"recipes": Recipe, "known": KnownRecipe},
)

CRAFTING_MIGRATIONS = MigrationRegistry("crafting")
