"""
Tests for placement models, profile blending and the in-memory repositories.
"""

import asyncio

import pytest

from cefr_backend.common.exceptions import AttemptAlreadyCompletedError, NotFoundError
from cefr_backend.common.utils import percentage, round_half_up
from cefr_backend.assessments.placement.finalizer import finalize
from cefr_backend.assessments.placement.models import (
    Attempt,
    CEFRLevel,
    EvaluatedAnswer,
    PlacementTest,
    ScoreRange,
    Skill,
)
from cefr_backend.assessments.placement.profiles import blend_progress
from cefr_backend.assessments.placement.repositories import MemoryAttemptRepository, MemoryTestRepository
from cefr_backend.tests.factories import build_attempt, build_test, submission_from_flags


def test_cefr_level_order_and_steps():
    assert CEFRLevel.A1 < CEFRLevel.B2 <= CEFRLevel.B2
    assert CEFRLevel.B1.next_level() == CEFRLevel.B2
    assert CEFRLevel.C2.next_level() == CEFRLevel.C2
    assert CEFRLevel.A2.previous_level() == CEFRLevel.A1
    assert CEFRLevel.A1.previous_level() == CEFRLevel.A1


@pytest.mark.parametrize("part, whole, expected", [
    (5, 8, 63),
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),
    (0, 0, 0),
    (50, 50, 100),
])
def test_percentage_rounds_half_up(part, whole, expected):
    assert percentage(part, whole) == expected


def test_round_half_up():
    assert round_half_up(62.5) == 63
    assert round_half_up(37.5) == 38
    assert round_half_up(12.4) == 12


def test_placement_test_from_dict():
    test = PlacementTest.from_dict({
        "id": "t-1",
        "title": "Mini",
        "cefr_level": "A2",
        "test_type": "placement",
        "passing_score": 70,
        "sections": [{
            "name": "Reading",
            "skill": "reading",
            "questions": [
                {"question_type": "true-false", "text": "Is it?", "points": 2, "correct_answer": "true"},
                {"question_type": "multiple-choice", "text": "Pick", "points": 3, "correct_answer": ["a", "b"]},
            ],
        }],
        "scoring_rubric": [{"min": 0, "max": 2, "level": "A1"}, {"min": 3, "max": 5, "level": "A2"}],
        "score_ranges": [{"name": "all", "start": 1, "end": 2}],
    })

    assert test.cefr_level == CEFRLevel.A2
    assert test.is_placement
    assert test.max_score == 5
    assert test.total_questions == 2
    assert test.sections[0].skill == Skill.READING
    assert test.sections[0].questions[1].is_multi_select
    assert test.scoring_rubric[1].contains(4)
    assert test.score_ranges == [ScoreRange("all", 1, 2)]


@pytest.mark.parametrize("passing_score", [-1, 101])
def test_passing_score_must_be_a_percentage(passing_score):
    with pytest.raises(ValueError):
        build_test(passing_score=passing_score)


def test_invalid_score_range():
    with pytest.raises(ValueError):
        ScoreRange("bad", 10, 5)


def test_evaluated_answer_has_no_partial_credit():
    with pytest.raises(ValueError):
        EvaluatedAnswer(0, 0, "a", True, 1, 3)


def test_blend_progress_updates_only_new_skills():
    current = {Skill.READING: 50, Skill.GRAMMAR: 80}

    blended = blend_progress(current, {Skill.READING: 75})

    assert blended == {Skill.READING: 63, Skill.GRAMMAR: 80}
    assert current[Skill.READING] == 50


def test_attempt_round_trips_through_dict(placement_test, attempt):
    result = finalize(placement_test, attempt, submission_from_flags(placement_test, [True] * 50))
    completed = attempt.complete(result, time_spent=60)

    restored = Attempt.from_dict(completed.to_dict())

    assert restored == completed


@pytest.mark.asyncio
async def test_memory_test_repository_returns_copies():
    repository = MemoryTestRepository([build_test()])

    loaded = await repository.get_by_id("placement-50")
    loaded.title = "changed"

    assert (await repository.get_by_id("placement-50")).title == "English Placement Test"
    assert await repository.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_concurrent_completion_stores_one_result(placement_test, attempt):
    repository = MemoryAttemptRepository([attempt])
    result = finalize(placement_test, attempt, submission_from_flags(placement_test, [True] * 50))
    completed = attempt.complete(result, time_spent=60)

    outcomes = await asyncio.gather(
        repository.complete(completed),
        repository.complete(completed),
        return_exceptions=True
    )

    assert sum(1 for o in outcomes if isinstance(o, AttemptAlreadyCompletedError)) == 1
    assert (await repository.get_by_id(attempt.id)).is_completed


@pytest.mark.asyncio
async def test_memory_complete_unknown_attempt(placement_test):
    repository = MemoryAttemptRepository()
    attempt = build_attempt(placement_test, attempt_id="ghost")
    result = finalize(placement_test, attempt, submission_from_flags(placement_test, [True] * 50))

    with pytest.raises(NotFoundError):
        await repository.complete(attempt.complete(result, time_spent=1))
