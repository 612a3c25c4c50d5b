"""
Builders for placement tests and answer sets used across the test suite.

The standard exam has 50 one-point multiple-choice questions in four
sections (grammar/use 20, vocabulary 10, reading 10, advanced 10). Answer
``"a"`` is always correct.
"""

from typing import List, Optional, Sequence, Tuple

from cefr_backend.assessments.placement.models import (
    Attempt,
    PlacementTest,
    Question,
    RubricBand,
    Section,
    Submission,
    SubmittedAnswer,
)

SECTION_LAYOUT: Tuple[Tuple[str, str, int], ...] = (
    ("Grammar and Use", "grammar", 20),
    ("Vocabulary", "vocabulary", 10),
    ("Reading", "reading", 10),
    ("Advanced", "writing", 10),
)

SECTION_SIZES = (20, 10, 10, 10)


def build_test(
    test_id: str = "placement-50",
    test_type: str = "placement",
    passing_score: int = 60,
    cefr_level: str = "B1",
    layout: Sequence[Tuple[str, str, int]] = SECTION_LAYOUT,
    points: int = 1,
    scoring_rubric: Optional[List[RubricBand]] = None
) -> PlacementTest:
    sections = [
        Section(
            name=name,
            skill=skill,
            questions=[
                Question(
                    question_type="multiple-choice",
                    text=f"{name} question {i + 1}",
                    points=points,
                    correct_answer="a",
                    options=["a", "b", "c", "d"]
                )
                for i in range(count)
            ]
        )
        for name, skill, count in layout
    ]
    return PlacementTest(
        id=test_id,
        title="English Placement Test",
        cefr_level=cefr_level,
        test_type=test_type,
        passing_score=passing_score,
        sections=sections,
        scoring_rubric=scoring_rubric
    )


def build_attempt(test: PlacementTest, attempt_id: str = "attempt-1", user_id: str = "user-1") -> Attempt:
    return Attempt(
        id=attempt_id,
        user_id=user_id,
        test_id=test.id,
        max_score=test.max_score,
        cefr_level=test.cefr_level
    )


def answers_from_flags(test: PlacementTest, flags: Sequence[Optional[bool]]) -> List[SubmittedAnswer]:
    """One answer per flag in test order: True answers correctly, False wrongly, None skips."""
    answers = []
    for flag, (si, qi, _, _) in zip(flags, test.iter_questions()):
        if flag is None:
            continue
        answers.append(SubmittedAnswer(si, qi, "a" if flag else "b"))
    return answers


def submission_from_flags(test: PlacementTest, flags: Sequence[Optional[bool]],
                          time_spent: int = 600) -> Submission:
    return Submission(answers=answers_from_flags(test, flags), time_spent=time_spent)


def front_loaded_flags(grammar: int = 0, vocabulary: int = 0, reading: int = 0,
                       advanced: int = 0) -> List[bool]:
    """Correct answers packed at the start of each section."""
    flags: List[bool] = []
    for correct, size in zip((grammar, vocabulary, reading, advanced), SECTION_SIZES):
        flags.extend([True] * correct + [False] * (size - correct))
    return flags


def spread_flags(grammar: int = 0, vocabulary: int = 0, reading: int = 0,
                 advanced: int = 0) -> List[bool]:
    """Correct answers evenly spaced within each section, keeping wrong runs short."""
    flags: List[bool] = []
    for correct, size in zip((grammar, vocabulary, reading, advanced), SECTION_SIZES):
        section = [False] * size
        for i in range(correct):
            section[(2 * i + 1) * size // (2 * correct)] = True
        flags.extend(section)
    return flags
