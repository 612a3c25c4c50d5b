"""
CEFR Placement Test Module

Scores submitted placement and progress tests, decides the learner's CEFR
level, and propagates the result to the learner's profile and curriculum.
"""

from cefr_backend.assessments.placement.models import (
    Attempt,
    AttemptStatus,
    CEFRLevel,
    EvaluatedAnswer,
    Feedback,
    PlacementDecision,
    PlacementResult,
    PlacementTest,
    Question,
    QuestionType,
    RubricBand,
    ScoreRange,
    Section,
    Skill,
    Submission,
    SubmittedAnswer,
    TestType,
)
from cefr_backend.assessments.placement.finalizer import AttemptFinalizer, finalize
from cefr_backend.assessments.placement.placement_decision import PlacementDecisionEngine
from cefr_backend.assessments.placement.service import PlacementTestService

__all__ = [
    'Attempt', 'AttemptStatus', 'CEFRLevel', 'EvaluatedAnswer', 'Feedback',
    'PlacementDecision', 'PlacementResult', 'PlacementTest', 'Question',
    'QuestionType', 'RubricBand', 'ScoreRange', 'Section', 'Skill',
    'Submission', 'SubmittedAnswer', 'TestType',
    'AttemptFinalizer', 'finalize', 'PlacementDecisionEngine', 'PlacementTestService',
]
