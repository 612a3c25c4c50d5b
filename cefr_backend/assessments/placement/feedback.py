"""
Feedback Generation

Builds the short feedback block shown with a finished attempt. Wording is
banded on the percentage score: 90 and above, 70 to 89, below 70.
"""

from cefr_backend.assessments.placement.models import Feedback, PlacementTest

EXCELLENT_SCORE = 90
GOOD_SCORE = 70


class FeedbackGenerator:
    """Produces banded feedback text for a finished attempt."""

    def generate(self, test: PlacementTest, score: int) -> Feedback:
        feedback = Feedback(overall=self._overall(test, score))

        if score >= EXCELLENT_SCORE:
            feedback.strengths.append("Excellent performance across all skills")
            feedback.recommendations.append(
                f"Consider taking {test.cefr_level.next_level().value} level tests"
            )
        elif score >= GOOD_SCORE:
            feedback.strengths.append("Good overall performance")
            feedback.recommendations.append("Focus on areas with lower scores")
            feedback.recommendations.append("Practice with targeted exercises")
        else:
            feedback.areas_for_improvement.append("Need more practice with current level")
            feedback.recommendations.append("Review fundamental concepts")
            feedback.recommendations.append("Take more practice tests")

        return feedback

    @staticmethod
    def _overall(test: PlacementTest, score: int) -> str:
        if score >= test.passing_score:
            outcome = "Congratulations! You passed!"
        else:
            outcome = "Keep practicing to improve your skills."
        return (
            f"You scored {score}% on the {test.cefr_level.value} "
            f"{test.test_type.value} test. {outcome}"
        )
