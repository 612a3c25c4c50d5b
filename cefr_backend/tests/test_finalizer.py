"""
Tests for attempt finalization.

This module scores complete submissions end to end and checks:
1. Percentage score and pass flag
2. Level decision for placement tests only
3. Duplicate answers and rounding
4. Rejection of completed attempts and invalid answers
"""

import copy

import pytest

from cefr_backend.common.exceptions import AttemptAlreadyCompletedError, InvalidAnswerError
from cefr_backend.assessments.placement.finalizer import AttemptFinalizer, finalize
from cefr_backend.assessments.placement.models import (
    AttemptStatus,
    CEFRLevel,
    Skill,
    Submission,
    SubmittedAnswer,
)
from cefr_backend.assessments.placement.placement_decision import (
    ADVANCED,
    GRAMMAR_USE,
    READING,
    VOCABULARY,
    PlacementDecisionEngine,
)
from cefr_backend.tests.factories import (
    build_attempt,
    build_test,
    front_loaded_flags,
    spread_flags,
    submission_from_flags,
)


def test_boundary_thirty_with_two_signals_promotes(placement_test, attempt):
    flags = spread_flags(grammar=15, vocabulary=7, reading=4, advanced=4)

    result = finalize(placement_test, attempt, submission_from_flags(placement_test, flags))

    assert result.total_correct == 30
    assert result.score == 60
    assert result.max_score == 50
    assert result.points_awarded == 30
    assert result.is_passed is True
    assert result.range_counts == {GRAMMAR_USE: 15, VOCABULARY: 7, READING: 4, ADVANCED: 4}
    assert result.tie_break_applied is True
    assert result.has_long_wrong_streak is False
    assert result.recommended_level == CEFRLevel.B2


def test_non_boundary_score_keeps_bucket(placement_test, attempt):
    flags = spread_flags(grammar=10, vocabulary=5, reading=5, advanced=5)

    result = finalize(placement_test, attempt, submission_from_flags(placement_test, flags))

    assert result.total_correct == 25
    assert result.score == 50
    assert result.is_passed is False
    assert result.tie_break_applied is False
    assert result.recommended_level == CEFRLevel.B1


def test_long_wrong_streak_demotes(placement_test, attempt):
    flags = front_loaded_flags(grammar=20, vocabulary=5)

    result = finalize(placement_test, attempt, submission_from_flags(placement_test, flags))

    assert result.total_correct == 25
    assert result.longest_wrong_streak == 25
    assert result.has_long_wrong_streak is True
    assert result.recommended_level == CEFRLevel.A2


def test_perfect_score(placement_test, attempt):
    result = finalize(placement_test, attempt, submission_from_flags(placement_test, [True] * 50))

    assert result.score == 100
    assert result.recommended_level == CEFRLevel.C2
    assert result.longest_wrong_streak == 0
    assert result.skill_scores[Skill.GRAMMAR] == 100
    assert result.skill_scores[Skill.WRITING] == 100
    assert result.skill_scores[Skill.LISTENING] == 0
    assert result.feedback.strengths == ["Excellent performance across all skills"]


def test_empty_submission_scores_zero_at_a1(placement_test, attempt):
    result = finalize(placement_test, attempt, Submission(answers=[]))

    assert result.score == 0
    assert result.total_correct == 0
    assert result.is_passed is False
    assert result.longest_wrong_streak == 50
    assert result.recommended_level == CEFRLevel.A1
    assert result.skill_scores == {skill: 0 for skill in Skill}
    assert result.answers == []


def test_non_placement_test_has_no_recommended_level():
    test = build_test(test_type="progress")
    attempt = build_attempt(test)
    flags = spread_flags(grammar=15, vocabulary=7, reading=4, advanced=4)

    result = finalize(test, attempt, submission_from_flags(test, flags))

    assert result.score == 60
    assert result.recommended_level is None
    assert result.tie_break_applied is False


def test_score_uses_points_not_question_count():
    test = build_test(layout=(("Grammar", "grammar", 4),), points=5, test_type="progress")
    attempt = build_attempt(test)
    submission = Submission(answers=[SubmittedAnswer(0, 0, "a"), SubmittedAnswer(0, 1, "b")])

    result = finalize(test, attempt, submission)

    assert result.max_score == 20
    assert result.points_awarded == 5
    assert result.score == 25


def test_score_rounds_half_up():
    # 5 of 8 points is 62.5%
    test = build_test(layout=(("Grammar", "grammar", 8),), test_type="progress", passing_score=63)
    attempt = build_attempt(test)
    submission = submission_from_flags(test, [True] * 5 + [False] * 3)

    result = finalize(test, attempt, submission)

    assert result.score == 63
    assert result.is_passed is True


def test_duplicate_answers_last_one_counts(placement_test, attempt):
    submission = Submission(answers=[
        SubmittedAnswer(0, 0, "b"),
        SubmittedAnswer(0, 0, "a"),
        SubmittedAnswer(0, 1, "a"),
        SubmittedAnswer(0, 1, "c"),
    ])

    result = finalize(placement_test, attempt, submission)

    assert result.total_correct == 1
    assert result.points_awarded == 1
    assert result.score == 2
    assert len(result.answers) == 4


def test_repeated_correct_answers_cannot_exceed_full_score():
    test = build_test(layout=(("Grammar", "grammar", 2),), test_type="progress")
    attempt = build_attempt(test)
    submission = Submission(answers=[SubmittedAnswer(0, 0, "a")] * 5)

    result = finalize(test, attempt, submission)

    assert result.score == 50


def test_completed_attempt_is_rejected(placement_test, attempt):
    submission = submission_from_flags(placement_test, [True] * 50)
    result = finalize(placement_test, attempt, submission)
    completed = attempt.complete(result, time_spent=300)

    with pytest.raises(AttemptAlreadyCompletedError):
        finalize(placement_test, completed, submission)


def test_invalid_answer_index_is_rejected(placement_test, attempt):
    submission = Submission(answers=[SubmittedAnswer(0, 0, "a"), SubmittedAnswer(7, 0, "a")])

    with pytest.raises(InvalidAnswerError):
        finalize(placement_test, attempt, submission)


def test_finalize_does_not_modify_attempt(placement_test, attempt):
    before = copy.deepcopy(attempt)

    finalize(placement_test, attempt, submission_from_flags(placement_test, [True] * 50))

    assert attempt == before
    assert attempt.status == AttemptStatus.IN_PROGRESS


def test_custom_streak_threshold_is_used(placement_test, attempt):
    finalizer = AttemptFinalizer(decision_engine=PlacementDecisionEngine(long_streak_threshold=30))
    flags = front_loaded_flags(grammar=20, vocabulary=5)

    result = finalizer.finalize(placement_test, attempt, submission_from_flags(placement_test, flags))

    assert result.has_long_wrong_streak is False
    assert result.recommended_level == CEFRLevel.B1


def test_complete_copies_result_onto_attempt(placement_test, attempt):
    result = finalize(placement_test, attempt, submission_from_flags(placement_test, [True] * 50))

    completed = attempt.complete(result, time_spent=1200)

    assert completed.is_completed
    assert completed.completed_at is not None
    assert completed.score == 100
    assert completed.time_spent == 1200
    assert completed.recommended_level == CEFRLevel.C2
    assert completed.skills == result.skill_scores
    assert not attempt.is_completed
