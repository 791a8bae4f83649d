"""
Quests feature - quest catalog, tracked quest state, persistence.
"""

from features.quests.models import (
    Quest,
    QuestObjective,
    QuestReward,
    QuestStatus,
    ObjectiveType,
)
from features.quests.catalog import QuestCatalog, parse_quest
from features.quests.schema import QUESTS, QUEST_MIGRATIONS, QUEST_SCHEMA_VERSION
from features.quests.service import QuestService, QuestEvent

__all__ = [
    "Quest",
    "QuestObjective",
    "QuestReward",
    "QuestStatus",
    "ObjectiveType",
    "QuestCatalog",
    "parse_quest",
    "QUESTS",
    "QUEST_MIGRATIONS",
    "QUEST_SCHEMA_VERSION",
    "QuestService",
    "QuestEvent",
]
