"""
Quest catalog - static quest definitions loaded from JSON.

File format:
    {
      "quests": [
        {
          "id": "quest_main_01",
          "name": "Find the sword",
          "objectives": [{"id": "o1", "type": "collect", "target": "sword"}],
          "rewards": {"gold": 50, "items": [{"id": "potion", "count": 2}]}
        }
      ]
    }

Entries that fail validation are logged and skipped.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

import jsonschema

from features.quests.models import (
    ObjectiveType,
    Quest,
    QuestObjective,
    QuestReward,
)

logger = logging.getLogger(__name__)

QUEST_TEMPLATE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["id", "name"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string"},
        "description": {"type": "string"},
        "required_level": {"type": "integer", "minimum": 1},
        "required_quests": {"type": "array", "items": {"type": "string"}},
        "quest_giver": {"type": "string"},
        "is_main_quest": {"type": "boolean"},
        "is_repeatable": {"type": "boolean"},
        "objectives": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id"],
                "properties": {
                    "id": {"type": "string"},
                    "type": {"enum": [t.value for t in ObjectiveType]},
                    "description": {"type": "string"},
                    "target": {"type": "string"},
                    "count": {"type": "integer", "minimum": 0},
                    "optional": {"type": "boolean"},
                    "hidden": {"type": "boolean"},
                },
            },
        },
        "rewards": {
            "type": "object",
            "properties": {
                "exp": {"type": "integer"},
                "gold": {"type": "integer"},
                "items": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["id"],
                        "properties": {
                            "id": {"type": "string"},
                            "count": {"type": "integer", "minimum": 1},
                        },
                    },
                },
                "unlocks": {"type": "array", "items": {"type": "string"}},
            },
        },
    },
}


class QuestCatalog:
    """Read-only set of quest templates keyed by id."""

    def __init__(self, quests: Iterable[Quest] = ()):
        self._templates: dict[str, Quest] = {}
        for quest in quests:
            self.add(quest)

    @classmethod
    def from_file(cls, path: str | Path) -> QuestCatalog:
        """Load templates from a JSON file. A missing file gives an empty catalog."""
        catalog = cls()
        catalog.load(path)
        return catalog

    def load(self, path: str | Path) -> int:
        """
        Load templates from a JSON file.

        Returns:
            Number of templates loaded
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Quest file not found: {path}")
            return 0

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        loaded = 0
        for entry in data.get('quests', []):
            try:
                jsonschema.validate(instance=entry, schema=QUEST_TEMPLATE_SCHEMA)
            except jsonschema.ValidationError as e:
                logger.error(f"Invalid quest in {path}: {e.message}")
                continue
            self.add(parse_quest(entry))
            loaded += 1

        logger.info(f"Loaded {loaded} quests from {path}")
        return loaded

    def add(self, quest: Quest) -> None:
        self._templates[quest.id] = quest

    def get(self, quest_id: str) -> Optional[Quest]:
        """Fresh copy of a template, or None."""
        template = self._templates.get(quest_id)
        return template.clone() if template else None

    @property
    def ids(self) -> list[str]:
        return list(self._templates)

    def __contains__(self, quest_id: str) -> bool:
        return quest_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[Quest]:
        return (q.clone() for q in self._templates.values())


def parse_quest(data: dict[str, Any]) -> Quest:
    """Build a Quest from a catalog entry."""
    objectives = [
        QuestObjective(
            id=o['id'],
            objective_type=ObjectiveType(o.get('type', 'custom')),
            description=o.get('description', ''),
            target_id=o.get('target', ''),
            target_count=o.get('count', 1),
            is_optional=o.get('optional', False),
            is_hidden=o.get('hidden', False),
        )
        for o in data.get('objectives', [])
    ]

    rewards_data = data.get('rewards', {})
    rewards = QuestReward(
        exp=rewards_data.get('exp', 0),
        gold=rewards_data.get('gold', 0),
        items={i['id']: i.get('count', 1) for i in rewards_data.get('items', [])},
        unlocks_quests=rewards_data.get('unlocks', []),
    )

    return Quest(
        id=data['id'],
        name=data['name'],
        description=data.get('description', ''),
        objectives=objectives,
        required_level=data.get('required_level', 1),
        required_quests=data.get('required_quests', []),
        rewards=rewards,
        quest_giver=data.get('quest_giver', ''),
        is_main_quest=data.get('is_main_quest', False),
        is_repeatable=data.get('is_repeatable', False),
    )
