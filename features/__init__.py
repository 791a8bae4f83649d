"""
Feature modules built on savekit.

Each feature pairs a store layout (FeatureDescriptor + migrations)
with a service that owns the feature's CachingRepository:
- Quests (catalog, tracking, completion)
- Inventory (items, equipment, gold)
- Crafting (recipes, recipe book)
- Registry (boots features, hands out services)
"""
