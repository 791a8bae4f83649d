"""
Quest entities - quests, objectives, rewards.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import Field

from savekit.core.entity import EntityModel


class QuestStatus(str, Enum):
    """Quest progress status."""
    AVAILABLE = "available"   # Can be started
    ACTIVE = "active"         # Currently in progress
    COMPLETED = "completed"   # All required objectives done
    TURNED_IN = "turned_in"   # Rewards claimed
    FAILED = "failed"


class ObjectiveType(str, Enum):
    """Types of quest objectives."""
    TALK = "talk"
    COLLECT = "collect"
    KILL = "kill"
    DELIVER = "deliver"
    REACH = "reach"
    INTERACT = "interact"
    CUSTOM = "custom"


class QuestObjective(EntityModel):
    """A single quest objective."""
    id: str
    objective_type: ObjectiveType = ObjectiveType.CUSTOM
    description: str = ""

    target_id: str = ""
    target_count: int = Field(default=1, ge=0)
    current_count: int = Field(default=0, ge=0)

    is_complete: bool = False
    is_optional: bool = False
    is_hidden: bool = False

    @property
    def progress(self) -> float:
        """Progress in the range 0..1."""
        if self.target_count <= 0:
            return 1.0 if self.is_complete else 0.0
        return min(1.0, self.current_count / self.target_count)

    def update_progress(self, amount: int = 1) -> bool:
        """
        Advance the objective.

        Returns:
            True if the objective became complete
        """
        if self.is_complete:
            return False

        self.current_count = min(self.current_count + amount, self.target_count)
        if self.current_count >= self.target_count:
            self.is_complete = True
            return True
        return False


class QuestReward(EntityModel):
    """Rewards for turning in a quest."""
    exp: int = 0
    gold: int = 0
    items: dict[str, int] = Field(default_factory=dict)    # item_id -> count
    unlocks_quests: list[str] = Field(default_factory=list)


class Quest(EntityModel):
    """A quest, either as catalog template or as tracked player state."""
    id: str
    name: str
    description: str = ""
    status: QuestStatus = QuestStatus.AVAILABLE

    objectives: list[QuestObjective] = Field(default_factory=list)

    required_level: int = 1
    required_quests: list[str] = Field(default_factory=list)

    rewards: QuestReward = Field(default_factory=QuestReward)

    quest_giver: str = ""
    is_main_quest: bool = False
    is_repeatable: bool = False

    @property
    def is_complete(self) -> bool:
        """All required objectives are complete."""
        return all(o.is_complete for o in self.objectives if not o.is_optional)

    def get_current_objective(self) -> Optional[QuestObjective]:
        """First visible objective that is not complete."""
        for obj in self.objectives:
            if not obj.is_complete and not obj.is_hidden:
                return obj
        return None
