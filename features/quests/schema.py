"""
Quest store layout and schema history.

v1: initial layout
v2: quests carry 'is_main_quest'
"""

from __future__ import annotations

from savekit.store.descriptor import FeatureDescriptor
from savekit.store.migration import MigrationRegistry, add_default_field

from features.quests.models import Quest

QUEST_SCHEMA_VERSION = 2

QUEST_ENTITY_SCHEMA = {
    "type": "object",
    "required": ["id", "name", "status"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string"},
        "status": {"type": "string"},
        "objectives": {"type": "array"},
        "is_main_quest": {"type": "boolean"},
    },
}

QUESTS = FeatureDescriptor(
    name="quests",
    collections=("active", "completed"),
    schema_version=QUEST_SCHEMA_VERSION,
    entity_models={"active": Quest, "completed": Quest},
    entity_schemas={"active": QUEST_ENTITY_SCHEMA, "completed": QUEST_ENTITY_SCHEMA},
)

QUEST_MIGRATIONS = MigrationRegistry("quests")
QUEST_MIGRATIONS.register(
    1,
    add_default_field("is_main_quest", False),
    "Quests gain the is_main_quest flag",
)
