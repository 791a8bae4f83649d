"""
Quest service - tracking, objectives, completion.

Active quests and completed quests live in two collections of the
'quests' store. Completing a quest moves it between them and saves
once, so storage never sees it in both or in neither.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional

from features.quests.catalog import QuestCatalog
from features.quests.models import ObjectiveType, Quest, QuestReward, QuestStatus
from features.service import FeatureService

if TYPE_CHECKING:
    from savekit.core.events import EventBus
    from savekit.store.repository import CachingRepository

logger = logging.getLogger(__name__)

ACTIVE = "active"
COMPLETED = "completed"


class QuestEvent(Enum):
    """Quest service events."""
    STARTED = auto()
    OBJECTIVE_UPDATED = auto()
    COMPLETED = auto()
    ABANDONED = auto()


class QuestService(FeatureService):
    """
    Manages quest progression on top of the quests repository.

    Usage:
        quests = QuestService(repo, QuestCatalog.from_file("data/quests.json"))
        quests.start_quest("quest_main_01")
        quests.update_objective(ObjectiveType.COLLECT, "sword")
        rewards = quests.complete_quest("quest_main_01")
    """

    def __init__(
        self,
        repository: CachingRepository[str, Quest],
        catalog: Optional[QuestCatalog] = None,
        event_bus: Optional[EventBus] = None,
    ):
        super().__init__(repository, event_bus)
        self.catalog = catalog or QuestCatalog()

    def can_start_quest(self, quest_id: str, player_level: int = 1) -> bool:
        """Check level, prerequisites and repeatability."""
        template = self.catalog.get(quest_id)
        if template is None or self.is_quest_active(quest_id):
            return False

        if self.is_quest_complete(quest_id) and not template.is_repeatable:
            return False

        if player_level < template.required_level:
            return False

        return all(self.is_quest_complete(req) for req in template.required_quests)

    def start_quest(self, quest_id: str, player_level: int = 1) -> bool:
        """
        Start a quest from the catalog.

        Returns:
            True if the quest was started
        """
        if not self.can_start_quest(quest_id, player_level):
            return False

        quest = self.catalog.get(quest_id)
        quest.status = QuestStatus.ACTIVE
        self.repository.add(quest_id, quest, ACTIVE)
        self._commit(QuestEvent.STARTED, quest_id=quest_id)

        logger.info(f"Quest started: {quest_id}")
        return True

    def update_objective(
        self,
        objective_type: ObjectiveType,
        target_id: str,
        amount: int = 1,
    ) -> list[str]:
        """
        Advance matching objectives across all active quests.

        Returns:
            IDs of quests that had an objective completed
        """
        completed_in: list[str] = []
        changed: list[str] = []

        for quest in self.repository.fetch_all(ACTIVE):
            touched = False
            for obj in quest.objectives:
                if obj.objective_type != objective_type or obj.target_id != target_id:
                    continue
                before = obj.current_count
                if obj.update_progress(amount):
                    completed_in.append(quest.id)
                touched = touched or obj.current_count != before

            if not touched:
                continue

            if quest.is_complete:
                quest.status = QuestStatus.COMPLETED
            self.repository.add(quest.id, quest, ACTIVE)
            changed.append(quest.id)

        if changed:
            self.repository.persist()
            for quest_id in changed:
                self._notify(
                    QuestEvent.OBJECTIVE_UPDATED,
                    quest_id=quest_id,
                    objective_completed=quest_id in completed_in,
                )

        return completed_in

    def complete_quest(self, quest_id: str) -> Optional[QuestReward]:
        """
        Turn in a quest whose required objectives are done.

        Returns:
            The rewards, or None if the quest is not ready
        """
        quest = self.repository.fetch_by_id(quest_id, ACTIVE)
        if quest is None or not quest.is_complete:
            return None

        quest.status = QuestStatus.TURNED_IN
        self.repository.remove(quest_id, ACTIVE)
        self.repository.add(quest_id, quest, COMPLETED)
        self._commit(
            QuestEvent.COMPLETED,
            quest_id=quest_id,
            rewards=quest.rewards,
            unlocks=list(quest.rewards.unlocks_quests),
        )

        logger.info(f"Quest completed: {quest_id}")
        return quest.rewards

    def abandon_quest(self, quest_id: str) -> bool:
        """Drop an active quest and its progress."""
        if not self.repository.contains(quest_id, ACTIVE):
            return False

        self.repository.remove(quest_id, ACTIVE)
        self._commit(QuestEvent.ABANDONED, quest_id=quest_id)
        return True

    # Queries

    def get_quest(self, quest_id: str) -> Optional[Quest]:
        """Active quest, else completed quest, else None."""
        quest = self.repository.fetch_by_id(quest_id, ACTIVE)
        if quest is None:
            quest = self.repository.fetch_by_id(quest_id, COMPLETED)
        return quest

    def get_active_quests(self) -> list[Quest]:
        return self.repository.fetch_all(ACTIVE)

    def get_completed_quests(self) -> set[str]:
        return set(self.repository.keys(COMPLETED))

    def is_quest_active(self, quest_id: str) -> bool:
        return self.repository.contains(quest_id, ACTIVE)

    def is_quest_complete(self, quest_id: str) -> bool:
        return self.repository.contains(quest_id, COMPLETED)
