"""
Skill Score Aggregation

Rolls evaluated answers up into a 0-100 score per skill, using the skill
tag of the section that owns each answered question.
"""

from typing import Dict, Iterable, List, Tuple

from cefr_backend.common.utils import percentage
from cefr_backend.assessments.placement.models import EvaluatedAnswer, PlacementTest, Skill


def latest_answers(evaluated: Iterable[EvaluatedAnswer]) -> List[EvaluatedAnswer]:
    """
    Collapse duplicate submissions for the same question.

    Answers are keyed by ``(section_index, question_index)``; when a question
    was answered more than once the last submission wins. The result keeps
    the position of each question's first appearance.
    """
    by_key: Dict[Tuple[int, int], EvaluatedAnswer] = {}
    for answer in evaluated:
        by_key[answer.key] = answer
    return list(by_key.values())


class SkillScoreAggregator:
    """Computes per-skill percentages for one attempt."""

    def __init__(self, default_score: int = 0, include_empty: bool = True):
        """
        Args:
            default_score: Score reported for a skill with no answered questions
            include_empty: Whether skills without answers appear in the output
        """
        self.default_score = default_score
        self.include_empty = include_empty

    def aggregate(self, test: PlacementTest, evaluated: Iterable[EvaluatedAnswer]) -> Dict[Skill, int]:
        awarded: Dict[Skill, int] = {}
        possible: Dict[Skill, int] = {}

        for answer in latest_answers(evaluated):
            skill = test.sections[answer.section_index].skill
            awarded[skill] = awarded.get(skill, 0) + answer.points_awarded
            possible[skill] = possible.get(skill, 0) + answer.points_possible

        scores: Dict[Skill, int] = {}
        for skill in Skill:
            if possible.get(skill):
                scores[skill] = percentage(awarded[skill], possible[skill])
            elif self.include_empty:
                scores[skill] = self.default_score
        return scores
