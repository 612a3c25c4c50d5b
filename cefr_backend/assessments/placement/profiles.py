"""
Profile and Curriculum Updaters

Downstream collaborators notified after an attempt is scored. Both are
best-effort from the point of view of the submission flow: the service
logs their failures and still returns the scored result.
"""

import datetime
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from cefr_backend.common.utils import round_half_up
from cefr_backend.assessments.placement.models import CEFRLevel, PlacementTest, Skill


@dataclass
class UserProfile:
    """A learner's current level and running per-skill progress."""

    user_id: str
    cefr_level: Optional[CEFRLevel] = None
    overall_progress: Dict[Skill, int] = field(default_factory=lambda: {skill: 0 for skill in Skill})
    updated_at: datetime.datetime = field(default_factory=datetime.datetime.utcnow)


@dataclass
class Curriculum:
    """A learner's personalised curriculum: current level and per-skill goal progress."""

    user_id: str
    current_level: CEFRLevel
    learning_goals: Dict[Skill, int] = field(default_factory=dict)


def blend_progress(current: Mapping[Skill, int], new_scores: Mapping[Skill, int]) -> Dict[Skill, int]:
    """
    Running average of stored progress and new skill scores.

    Each skill present in ``new_scores`` becomes ``round((old + new) / 2)``
    with halves rounded up; other skills are left as they were.
    """
    blended = dict(current)
    for skill, score in new_scores.items():
        blended[skill] = round_half_up((blended.get(skill, 0) + score) / 2)
    return blended


class ProfileUpdater(ABC):
    @abstractmethod
    async def update_profile(
        self,
        user_id: str,
        level: CEFRLevel,
        skill_scores: Mapping[Skill, int]
    ) -> None:
        """Set the learner's level and blend ``skill_scores`` into their progress."""
        pass


class CurriculumUpdater(ABC):
    @abstractmethod
    async def update_curriculum(
        self,
        user_id: str,
        test: PlacementTest,
        score: int,
        skill_scores: Mapping[Skill, int],
        level: Optional[CEFRLevel] = None
    ) -> None:
        """Advance the learner's curriculum after a scored attempt, if they have one."""
        pass


class MemoryProfileUpdater(ProfileUpdater):
    def __init__(self):
        self.profiles: Dict[str, UserProfile] = {}

    async def update_profile(
        self,
        user_id: str,
        level: CEFRLevel,
        skill_scores: Mapping[Skill, int]
    ) -> None:
        profile = self.profiles.setdefault(user_id, UserProfile(user_id=user_id))
        profile.cefr_level = level
        profile.overall_progress = blend_progress(profile.overall_progress, skill_scores)
        profile.updated_at = datetime.datetime.utcnow()


class MemoryCurriculumUpdater(CurriculumUpdater):
    """
    Curricula keyed by user. Learners without a curriculum are skipped.
    """

    def __init__(self, curricula: Optional[Dict[str, Curriculum]] = None):
        self.curricula: Dict[str, Curriculum] = dict(curricula or {})

    async def update_curriculum(
        self,
        user_id: str,
        test: PlacementTest,
        score: int,
        skill_scores: Mapping[Skill, int],
        level: Optional[CEFRLevel] = None
    ) -> None:
        curriculum = self.curricula.get(user_id)
        if curriculum is None:
            return

        if test.is_placement and score >= test.passing_score:
            curriculum.current_level = level or test.cefr_level

        for skill in list(curriculum.learning_goals):
            if skill in skill_scores:
                curriculum.learning_goals[skill] = skill_scores[skill]
