"""
Tests for wrong-answer streak analysis.
"""

import pytest

from cefr_backend.assessments.placement.models import EvaluatedAnswer
from cefr_backend.assessments.placement.streaks import StreakAnalyzer
from cefr_backend.tests.factories import build_test


@pytest.mark.parametrize("flags, expected", [
    ([], 0),
    ([True, True, True], 0),
    ([False], 1),
    ([True, False, False, True, False], 2),
    ([False] * 6 + [True] + [False] * 8, 8),
    ([False] * 50, 50),
])
def test_longest_wrong_streak(flags, expected):
    assert StreakAnalyzer.longest_wrong_streak(flags) == expected


def test_unanswered_questions_count_as_wrong():
    test = build_test(layout=(("Grammar", "grammar", 3), ("Reading", "reading", 3)))
    evaluated = [
        EvaluatedAnswer(0, 0, "a", True, 1, 1),
        EvaluatedAnswer(1, 2, "a", True, 1, 1),
    ]

    flags = StreakAnalyzer.correctness_flags(test, evaluated)

    assert flags == [True, False, False, False, False, True]
    assert StreakAnalyzer().analyze(test, evaluated) == 4


def test_streak_runs_across_section_boundaries():
    test = build_test(layout=(("Grammar", "grammar", 4), ("Reading", "reading", 4)))
    evaluated = [
        EvaluatedAnswer(0, 0, "a", True, 1, 1),
        EvaluatedAnswer(0, 1, "a", True, 1, 1),
        EvaluatedAnswer(1, 3, "a", True, 1, 1),
    ]

    assert StreakAnalyzer().analyze(test, evaluated) == 5


def test_correctness_flags_use_latest_duplicate():
    test = build_test(layout=(("Grammar", "grammar", 2),))
    evaluated = [
        EvaluatedAnswer(0, 0, "a", True, 1, 1),
        EvaluatedAnswer(0, 0, "b", False, 0, 1),
    ]

    assert StreakAnalyzer.correctness_flags(test, evaluated) == [False, False]
