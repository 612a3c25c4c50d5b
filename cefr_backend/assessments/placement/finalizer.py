"""
Attempt Finalization

Scores one submitted attempt end to end. ``finalize`` is a pure function of
the test, the in-progress attempt and the submission: it evaluates every
answer, aggregates skill scores, computes the percentage score and pass
flag, measures the longest wrong streak, decides the recommended level for
placement tests, and generates feedback. Persisting the outcome is left to
the caller.
"""

from typing import Optional

from cefr_backend.common.exceptions import AttemptAlreadyCompletedError
from cefr_backend.common.logger import get_logger, log_execution_time
from cefr_backend.common.utils import percentage
from cefr_backend.assessments.placement.answer_evaluation import AnswerEvaluator
from cefr_backend.assessments.placement.feedback import FeedbackGenerator
from cefr_backend.assessments.placement.models import (
    Attempt,
    PlacementTest,
    PlacementResult,
    Submission,
)
from cefr_backend.assessments.placement.placement_decision import (
    FIFTY_QUESTION_LAYOUT,
    PlacementDecisionEngine,
    count_correct_by_range,
)
from cefr_backend.assessments.placement.skill_scores import SkillScoreAggregator, latest_answers
from cefr_backend.assessments.placement.streaks import StreakAnalyzer

logger = get_logger(__name__)


class AttemptFinalizer:
    """
    Sequences the scoring components over one attempt.

    Components are injectable so tests and alternative layouts can swap
    any stage; defaults reproduce the standard placement rules.
    """

    def __init__(
        self,
        evaluator: Optional[AnswerEvaluator] = None,
        aggregator: Optional[SkillScoreAggregator] = None,
        streak_analyzer: Optional[StreakAnalyzer] = None,
        decision_engine: Optional[PlacementDecisionEngine] = None,
        feedback_generator: Optional[FeedbackGenerator] = None
    ):
        self.evaluator = evaluator or AnswerEvaluator()
        self.aggregator = aggregator or SkillScoreAggregator()
        self.streak_analyzer = streak_analyzer or StreakAnalyzer()
        self.decision_engine = decision_engine or PlacementDecisionEngine()
        self.feedback_generator = feedback_generator or FeedbackGenerator()

    @log_execution_time()
    def finalize(self, test: PlacementTest, attempt: Attempt, submission: Submission) -> PlacementResult:
        """
        Score ``submission`` for ``attempt`` against ``test``.

        Args:
            test: The test the attempt belongs to
            attempt: The in-progress attempt; it is not modified
            submission: The learner's answers

        Returns:
            PlacementResult with scores, level decision and feedback

        Raises:
            AttemptAlreadyCompletedError: If the attempt is already completed
            InvalidAnswerError: If an answer references a missing question
        """
        if attempt.is_completed:
            raise AttemptAlreadyCompletedError(attempt.id)

        evaluated = [
            self.evaluator.evaluate_submission(test, answer)
            for answer in submission.answers
        ]
        scored = latest_answers(evaluated)

        points_awarded = sum(answer.points_awarded for answer in scored)
        total_correct = sum(1 for answer in scored if answer.is_correct)
        max_score = attempt.max_score
        score = percentage(points_awarded, max_score)
        is_passed = score >= test.passing_score

        skill_scores = self.aggregator.aggregate(test, scored)

        flags = self.streak_analyzer.correctness_flags(test, scored)
        longest_wrong_streak = self.streak_analyzer.longest_wrong_streak(flags)
        range_counts = count_correct_by_range(flags, test.score_ranges or FIFTY_QUESTION_LAYOUT)

        recommended_level = None
        tie_break_applied = False
        has_long_wrong_streak = longest_wrong_streak >= self.decision_engine.long_streak_threshold
        if test.is_placement:
            decision = self.decision_engine.decide(
                total_correct=total_correct,
                range_counts=range_counts,
                longest_wrong_streak=longest_wrong_streak,
                scoring_rubric=test.scoring_rubric
            )
            recommended_level = decision.recommended_level
            tie_break_applied = decision.tie_break_applied
            has_long_wrong_streak = decision.has_long_wrong_streak

        feedback = self.feedback_generator.generate(test, score)

        logger.info(
            f"Finalized attempt {attempt.id} on test {test.id}: score={score} "
            f"correct={total_correct}/{test.total_questions} "
            f"level={recommended_level.value if recommended_level else None} "
            f"streak={longest_wrong_streak}"
        )

        return PlacementResult(
            score=score,
            max_score=max_score,
            points_awarded=points_awarded,
            total_correct=total_correct,
            is_passed=is_passed,
            range_counts=range_counts,
            recommended_level=recommended_level,
            tie_break_applied=tie_break_applied,
            has_long_wrong_streak=has_long_wrong_streak,
            longest_wrong_streak=longest_wrong_streak,
            skill_scores=skill_scores,
            feedback=feedback,
            answers=evaluated
        )


_default_finalizer = AttemptFinalizer()


def finalize(test: PlacementTest, attempt: Attempt, submission: Submission) -> PlacementResult:
    """Score a submission with the default scoring components."""
    return _default_finalizer.finalize(test, attempt, submission)
