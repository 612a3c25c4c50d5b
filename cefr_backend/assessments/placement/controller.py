"""
Placement Test Controller

FastAPI endpoints for CEFR placement tests: start an attempt, submit it
for scoring, get a placement recommendation, and read test statistics.
Service exceptions are mapped to HTTP status codes here.
"""

import time
import uuid
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Path, status
from pydantic import BaseModel, ConfigDict, Field

from cefr_backend.common.auth.dependencies import get_current_user_id
from cefr_backend.common.exceptions import (
    AttemptAlreadyCompletedError,
    AuthorizationError,
    BaseError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from cefr_backend.common.logger import get_logger
from cefr_backend.assessments.placement.models import (
    Attempt,
    PlacementResult,
    PlacementTest,
    Submission,
    SubmittedAnswer,
)
from cefr_backend.assessments.placement.placement_decision import (
    ADVANCED,
    GRAMMAR_USE,
    READING,
    VOCABULARY,
)
from cefr_backend.assessments.placement.service import PlacementTestService

logger = get_logger(__name__)

router = APIRouter()

_service: Optional[PlacementTestService] = None


def set_placement_service(service: Optional[PlacementTestService]) -> None:
    """Install the service instance used by the endpoints."""
    global _service
    _service = service


def get_placement_service() -> PlacementTestService:
    """FastAPI dependency returning the configured placement service."""
    if _service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Placement service not initialized"
        )
    return _service


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Request Models
class AnswerPayload(CamelModel):
    section_index: int = Field(..., alias="sectionIndex", ge=0)
    question_index: int = Field(..., alias="questionIndex", ge=0)
    student_answer: Union[str, List[str], None] = Field(None, alias="studentAnswer")
    time_spent: Optional[int] = Field(None, alias="timeSpent", ge=0)


class SubmitAttemptRequest(CamelModel):
    answers: List[AnswerPayload]
    time_spent: int = Field(0, alias="timeSpent", ge=0)

    def to_submission(self) -> Submission:
        return Submission(
            answers=[
                SubmittedAnswer(
                    section_index=a.section_index,
                    question_index=a.question_index,
                    student_answer=a.student_answer,
                    time_spent=a.time_spent or 0
                )
                for a in self.answers
            ],
            time_spent=self.time_spent
        )


# Response Models
class SectionScores(CamelModel):
    grammar_use: int = Field(0, alias="grammarUse")
    vocabulary: int = 0
    reading: int = 0
    advanced: int = 0


class FeedbackResponse(CamelModel):
    overall: str
    strengths: List[str]
    areas_for_improvement: List[str] = Field(..., alias="areasForImprovement")
    recommendations: List[str]


class SubmitAttemptResponse(CamelModel):
    score: int
    max_score: int = Field(..., alias="maxScore")
    total_correct: int = Field(..., alias="totalCorrect")
    is_passed: bool = Field(..., alias="isPassed")
    recommended_level: Optional[str] = Field(None, alias="recommendedLevel")
    section_scores: SectionScores = Field(..., alias="sectionScores")
    tie_break_applied: bool = Field(..., alias="tieBreakApplied")
    has_long_wrong_streak: bool = Field(..., alias="hasLongWrongStreak")
    feedback: FeedbackResponse
    skill_scores: Dict[str, int] = Field(..., alias="skillScores")

    @classmethod
    def from_result(cls, result: PlacementResult) -> 'SubmitAttemptResponse':
        counts = result.range_counts
        return cls(
            score=result.score,
            max_score=result.max_score,
            total_correct=result.total_correct,
            is_passed=result.is_passed,
            recommended_level=result.recommended_level.value if result.recommended_level else None,
            section_scores=SectionScores(
                grammar_use=counts.get(GRAMMAR_USE, 0),
                vocabulary=counts.get(VOCABULARY, 0),
                reading=counts.get(READING, 0),
                advanced=counts.get(ADVANCED, 0)
            ),
            tie_break_applied=result.tie_break_applied,
            has_long_wrong_streak=result.has_long_wrong_streak,
            feedback=FeedbackResponse(
                overall=result.feedback.overall,
                strengths=result.feedback.strengths,
                areas_for_improvement=result.feedback.areas_for_improvement,
                recommendations=result.feedback.recommendations
            ),
            skill_scores={skill.value: score for skill, score in result.skill_scores.items()}
        )


class StartAttemptResponse(CamelModel):
    attempt_id: str = Field(..., alias="attemptId")
    max_score: int = Field(..., alias="maxScore")
    test: Dict[str, Any]


class RecentAttempt(CamelModel):
    cefr_level: Optional[str] = Field(None, alias="cefrLevel")
    score: Optional[int] = None
    completed_at: Optional[str] = Field(None, alias="completedAt")


class RecommendationResponse(CamelModel):
    recommended_level: str = Field(..., alias="recommendedLevel")
    reason: str
    recent_attempts: List[RecentAttempt] = Field(default_factory=list, alias="recentAttempts")


class TestStatsResponse(CamelModel):
    total_attempts: int = Field(..., alias="totalAttempts")
    average_score: float = Field(..., alias="averageScore")
    average_time: float = Field(..., alias="averageTime")
    pass_rate: float = Field(..., alias="passRate")


def describe_test(test: PlacementTest) -> Dict[str, Any]:
    """Learner-facing view of a test: structure and points, no answer keys."""
    return {
        "id": test.id,
        "title": test.title,
        "description": test.description,
        "cefrLevel": test.cefr_level.value,
        "testType": test.test_type.value,
        "totalQuestions": test.total_questions,
        "sections": [
            {
                "name": section.name,
                "description": section.description,
                "skill": section.skill.value,
                "timeLimit": section.time_limit,
                "questions": [
                    {
                        "index": index,
                        "type": question.question_type.value,
                        "question": question.text,
                        "options": question.options,
                        "points": question.points,
                        "difficulty": question.difficulty,
                    }
                    for index, question in enumerate(section.questions)
                ],
            }
            for section in test.sections
        ],
    }


def _attempt_level(attempt: Attempt) -> Optional[str]:
    level = attempt.recommended_level or attempt.cefr_level
    return level.value if level else None


def to_http_exception(error: Exception) -> HTTPException:
    """Map a service error onto the matching HTTP status."""
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, AuthorizationError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")
    if isinstance(error, AttemptAlreadyCompletedError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.message)
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    if isinstance(error, (DatabaseError, BaseError)):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal server error: {error.message}"
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Internal server error: {str(error)}"
    )


@router.post(
    "/tests/{test_id}/start",
    response_model=StartAttemptResponse,
    summary="Start a test attempt"
)
async def start_attempt(
    test_id: str = Path(..., description="Test identifier"),
    user_id: str = Depends(get_current_user_id),
    service: PlacementTestService = Depends(get_placement_service)
) -> StartAttemptResponse:
    try:
        attempt = await service.start_attempt(test_id, user_id)
        test = await service.tests.get_by_id(test_id)
    except Exception as e:
        logger.error(f"Error starting test {test_id} for user {user_id}: {e}")
        raise to_http_exception(e)

    return StartAttemptResponse(
        attempt_id=attempt.id,
        max_score=attempt.max_score,
        test=describe_test(test)
    )


@router.post(
    "/tests/attempt/{attempt_id}/submit",
    response_model=SubmitAttemptResponse,
    summary="Submit a test attempt for scoring"
)
async def submit_attempt(
    request: SubmitAttemptRequest,
    attempt_id: str = Path(..., description="Attempt identifier"),
    user_id: str = Depends(get_current_user_id),
    service: PlacementTestService = Depends(get_placement_service)
) -> SubmitAttemptResponse:
    """
    Score a submitted attempt.

    Returns the percentage score, pass flag, recommended level (placement
    tests), section and skill scores, and feedback.
    """
    start_time = time.time()
    request_id = str(uuid.uuid4())

    try:
        result = await service.submit_attempt(attempt_id, user_id, request.to_submission())
    except Exception as e:
        logger.error(f"Error submitting attempt {attempt_id}: {str(e)} [request_id: {request_id}]")
        raise to_http_exception(e)

    execution_time = (time.time() - start_time) * 1000
    logger.info(
        f"Attempt {attempt_id} scored for user {user_id} "
        f"[request_id: {request_id}, execution_time: {execution_time:.2f}ms]"
    )
    return SubmitAttemptResponse.from_result(result)


@router.get(
    "/placement/recommendation",
    response_model=RecommendationResponse,
    summary="Recommend a placement level from recent attempts"
)
async def get_placement_recommendation(
    user_id: str = Depends(get_current_user_id),
    service: PlacementTestService = Depends(get_placement_service)
) -> RecommendationResponse:
    try:
        recommendation = await service.get_placement_recommendation(user_id)
    except Exception as e:
        logger.error(f"Error getting placement recommendation for {user_id}: {e}")
        raise to_http_exception(e)

    return RecommendationResponse(
        recommended_level=recommendation.recommended_level.value,
        reason=recommendation.reason,
        recent_attempts=[
            RecentAttempt(
                cefr_level=_attempt_level(attempt),
                score=attempt.score,
                completed_at=attempt.completed_at.isoformat() if attempt.completed_at else None
            )
            for attempt in recommendation.recent_attempts
        ]
    )


@router.get(
    "/tests/{test_id}/stats",
    response_model=TestStatsResponse,
    summary="Statistics over completed attempts of a test"
)
async def get_test_stats(
    test_id: str = Path(..., description="Test identifier"),
    service: PlacementTestService = Depends(get_placement_service)
) -> TestStatsResponse:
    try:
        stats = await service.get_test_statistics(test_id)
    except Exception as e:
        logger.error(f"Error fetching stats for test {test_id}: {e}")
        raise to_http_exception(e)

    return TestStatsResponse(
        total_attempts=stats.total_attempts,
        average_score=stats.average_score,
        average_time=stats.average_time,
        pass_rate=stats.pass_rate
    )
