"""
Wrong-Answer Streak Analysis

A long run of consecutive misses anywhere in the exam suggests guessing
or disengagement. This module flattens an attempt into one correctness
flag per question and measures the longest run of misses.
"""

from typing import Dict, Iterable, List, Tuple

from cefr_backend.assessments.placement.models import EvaluatedAnswer, PlacementTest
from cefr_backend.assessments.placement.skill_scores import latest_answers


class StreakAnalyzer:
    """Finds the longest contiguous run of wrong or blank answers."""

    @staticmethod
    def correctness_flags(test: PlacementTest, evaluated: Iterable[EvaluatedAnswer]) -> List[bool]:
        """
        One flag per question in test order; unanswered questions count as wrong.
        """
        outcome: Dict[Tuple[int, int], bool] = {
            answer.key: answer.is_correct for answer in latest_answers(evaluated)
        }
        return [
            outcome.get((section_index, question_index), False)
            for section_index, question_index, _, _ in test.iter_questions()
        ]

    @staticmethod
    def longest_wrong_streak(flags: Iterable[bool]) -> int:
        longest = 0
        current = 0
        for is_correct in flags:
            if is_correct:
                current = 0
            else:
                current += 1
                longest = max(longest, current)
        return longest

    def analyze(self, test: PlacementTest, evaluated: Iterable[EvaluatedAnswer]) -> int:
        return self.longest_wrong_streak(self.correctness_flags(test, evaluated))
