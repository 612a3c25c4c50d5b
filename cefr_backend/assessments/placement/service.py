"""
Placement Test Service

Business logic around the scoring engine: starting attempts, submitting
them (score, write back once, propagate), recommending the next placement
level from recent history, and per-test statistics.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from cefr_backend.config import settings
from cefr_backend.common.exceptions import AuthorizationError, NotFoundError
from cefr_backend.common.logger import LoggerAdapter, get_logger
from cefr_backend.common.utils import round_half_up, safe_divide
from cefr_backend.assessments.placement.finalizer import AttemptFinalizer
from cefr_backend.assessments.placement.models import (
    Attempt,
    CEFRLevel,
    PlacementResult,
    PlacementTest,
    Submission,
)
from cefr_backend.assessments.placement.placement_decision import PlacementDecisionEngine
from cefr_backend.assessments.placement.profiles import CurriculumUpdater, ProfileUpdater
from cefr_backend.assessments.placement.repositories import AttemptRepository, TestRepository

logger = get_logger(__name__)


@dataclass
class PlacementRecommendation:
    """Suggested next placement level and the history it was based on."""

    recommended_level: CEFRLevel
    reason: str
    recent_attempts: List[Attempt] = field(default_factory=list)


@dataclass
class TestStatistics:
    """Aggregate figures over the completed attempts of one test."""

    __test__ = False

    total_attempts: int = 0
    average_score: float = 0.0
    average_time: float = 0.0
    pass_rate: float = 0.0


class PlacementTestService:
    """
    Coordinates repositories, the scoring engine and downstream updaters.
    """

    def __init__(
        self,
        tests: TestRepository,
        attempts: AttemptRepository,
        profile_updater: Optional[ProfileUpdater] = None,
        curriculum_updater: Optional[CurriculumUpdater] = None,
        finalizer: Optional[AttemptFinalizer] = None
    ):
        self.tests = tests
        self.attempts = attempts
        self.profile_updater = profile_updater
        self.curriculum_updater = curriculum_updater
        self.finalizer = finalizer or AttemptFinalizer(
            decision_engine=PlacementDecisionEngine(long_streak_threshold=settings.LONG_WRONG_STREAK)
        )

    async def _get_test(self, test_id: str) -> PlacementTest:
        test = await self.tests.get_by_id(test_id)
        if test is None:
            raise NotFoundError("Test", test_id)
        return test

    async def start_attempt(self, test_id: str, user_id: str) -> Attempt:
        """
        Create an in-progress attempt for ``user_id`` on ``test_id``.

        Raises:
            NotFoundError: If the test does not exist
        """
        test = await self._get_test(test_id)
        attempt = Attempt(
            id="",
            user_id=user_id,
            test_id=test.id,
            max_score=test.max_score,
            cefr_level=test.cefr_level
        )
        await self.attempts.create(attempt)
        logger.info(f"User {user_id} started attempt {attempt.id} on test {test.id}")
        return attempt

    async def submit_attempt(self, attempt_id: str, user_id: str, submission: Submission) -> PlacementResult:
        """
        Score and store a submission.

        The attempt is written back once the result is fully computed.
        Profile and curriculum updates happen afterwards and cannot fail the
        submission.

        Raises:
            NotFoundError: If the attempt or its test does not exist
            AuthorizationError: If the attempt belongs to another user
            AttemptAlreadyCompletedError: If the attempt was already submitted
            InvalidAnswerError: If an answer references a missing question
        """
        log = LoggerAdapter(logger, {"attempt_id": attempt_id, "user_id": user_id})

        attempt = await self.attempts.get_by_id(attempt_id)
        if attempt is None:
            raise NotFoundError("Attempt", attempt_id)
        if attempt.user_id != user_id:
            log.warning("Submission rejected: attempt belongs to another user")
            raise AuthorizationError("attempt belongs to another user", resource="attempt", action="submit")

        test = await self._get_test(attempt.test_id)

        result = self.finalizer.finalize(test, attempt, submission)
        await self.attempts.complete(attempt.complete(result, submission.time_spent))
        log.info(f"Attempt stored with score {result.score}")

        await self._propagate(log, user_id, test, result)
        return result

    async def _propagate(self, log: LoggerAdapter, user_id: str, test: PlacementTest,
                         result: PlacementResult) -> None:
        if self.profile_updater and result.recommended_level is not None:
            try:
                await self.profile_updater.update_profile(user_id, result.recommended_level, result.skill_scores)
            except Exception as e:
                log.error(f"Profile update failed: {e}", exc_info=True)

        if self.curriculum_updater:
            try:
                await self.curriculum_updater.update_curriculum(
                    user_id, test, result.score, result.skill_scores, level=result.recommended_level
                )
            except Exception as e:
                log.error(f"Curriculum update failed: {e}", exc_info=True)

    async def get_placement_recommendation(self, user_id: str) -> PlacementRecommendation:
        """
        Recommend a placement level from the user's recent completed attempts.

        No history recommends A1. Otherwise the average score of the most
        recent attempts moves the level of the latest attempt one step up
        (high average), one step down (low average), or keeps it.
        """
        recent = await self.attempts.find_completed_by_user(user_id, limit=settings.RECOMMENDATION_WINDOW)
        if not recent:
            return PlacementRecommendation(
                recommended_level=CEFRLevel.A1,
                reason="No previous test history found"
            )

        average = sum(a.score or 0 for a in recent) / len(recent)
        latest = recent[0]
        current = latest.recommended_level or latest.cefr_level or CEFRLevel.A1

        if average >= settings.RECOMMENDATION_PROMOTE_AVERAGE:
            level = current.next_level()
        elif average < settings.RECOMMENDATION_DEMOTE_AVERAGE:
            level = current.previous_level()
        else:
            level = current

        return PlacementRecommendation(
            recommended_level=level,
            reason=f"Based on average score of {round_half_up(average)}% from recent tests",
            recent_attempts=recent
        )

    async def get_test_statistics(self, test_id: str) -> TestStatistics:
        """Totals and averages over the completed attempts of ``test_id``."""
        completed = await self.attempts.find_completed_by_test(test_id)
        if not completed:
            return TestStatistics()

        count = len(completed)
        return TestStatistics(
            total_attempts=count,
            average_score=safe_divide(sum(a.score or 0 for a in completed), count),
            average_time=safe_divide(sum(a.time_spent or 0 for a in completed), count),
            pass_rate=safe_divide(sum(1 for a in completed if a.is_passed), count)
        )

