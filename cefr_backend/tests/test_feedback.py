"""
Tests for feedback generation.
"""

import pytest

from cefr_backend.assessments.placement.feedback import FeedbackGenerator
from cefr_backend.tests.factories import build_test


@pytest.fixture
def generator():
    return FeedbackGenerator()


def test_excellent_band(generator):
    feedback = generator.generate(build_test(cefr_level="B1"), 95)

    assert feedback.overall == "You scored 95% on the B1 placement test. Congratulations! You passed!"
    assert feedback.strengths == ["Excellent performance across all skills"]
    assert feedback.areas_for_improvement == []
    assert feedback.recommendations == ["Consider taking B2 level tests"]


def test_excellent_band_at_c2_stays_at_c2(generator):
    feedback = generator.generate(build_test(cefr_level="C2"), 90)

    assert feedback.recommendations == ["Consider taking C2 level tests"]


def test_good_band(generator):
    feedback = generator.generate(build_test(), 70)

    assert feedback.strengths == ["Good overall performance"]
    assert feedback.recommendations == [
        "Focus on areas with lower scores",
        "Practice with targeted exercises",
    ]


def test_low_band_below_passing_score(generator):
    feedback = generator.generate(build_test(test_type="progress", passing_score=60), 45)

    assert feedback.overall == "You scored 45% on the B1 progress test. Keep practicing to improve your skills."
    assert feedback.strengths == []
    assert feedback.areas_for_improvement == ["Need more practice with current level"]
    assert feedback.recommendations == ["Review fundamental concepts", "Take more practice tests"]


def test_pass_message_depends_on_passing_score(generator):
    feedback = generator.generate(build_test(passing_score=50), 69)

    assert feedback.overall.endswith("Congratulations! You passed!")
    assert feedback.areas_for_improvement == ["Need more practice with current level"]
