"""
Answer Evaluation

Compares submitted answers against a question's answer key. Evaluation is
all-or-nothing: a correct answer earns the question's full point value,
anything else earns zero.
"""

from typing import Any, Collection

from cefr_backend.common.exceptions import InvalidAnswerError
from cefr_backend.assessments.placement.models import (
    AnswerValue,
    EvaluatedAnswer,
    PlacementTest,
    Question,
    SubmittedAnswer,
)

_MULTI_VALUE_TYPES = (list, tuple, set, frozenset)


def locate_question(test: PlacementTest, section_index: int, question_index: int) -> Question:
    """
    Look up a question by its ``(section_index, question_index)`` pair.

    Raises:
        InvalidAnswerError: If either index is not an integer or is out of range
    """
    for value in (section_index, question_index):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidAnswerError(
                f"Answer indices must be integers, got ({section_index!r}, {question_index!r})",
                section_index=section_index,
                question_index=question_index
            )

    if not 0 <= section_index < len(test.sections):
        raise InvalidAnswerError(
            f"Section {section_index} does not exist in test {test.id}",
            section_index=section_index,
            question_index=question_index
        )

    questions = test.sections[section_index].questions
    if not 0 <= question_index < len(questions):
        raise InvalidAnswerError(
            f"Question {question_index} does not exist in section {section_index} of test {test.id}",
            section_index=section_index,
            question_index=question_index
        )

    return questions[question_index]


class AnswerEvaluator:
    """Stateless evaluator for scalar and multi-select answers."""

    @staticmethod
    def is_correct(student_answer: AnswerValue, correct_answer: Any) -> bool:
        """
        Decide whether ``student_answer`` matches ``correct_answer``.

        - list key, list answer: same length and every submitted value is in
          the key (order does not matter)
        - list key, scalar answer: the key contains the value
        - scalar key: plain equality
        """
        if isinstance(correct_answer, _MULTI_VALUE_TYPES):
            acceptable: Collection[Any] = correct_answer
            if isinstance(student_answer, _MULTI_VALUE_TYPES):
                return (
                    len(student_answer) == len(acceptable)
                    and all(value in acceptable for value in student_answer)
                )
            return student_answer in acceptable

        return student_answer == correct_answer

    def evaluate(self, question: Question, answer: SubmittedAnswer) -> EvaluatedAnswer:
        """Score one submitted answer against the question it references."""
        correct = self.is_correct(answer.student_answer, question.correct_answer)
        return EvaluatedAnswer(
            section_index=answer.section_index,
            question_index=answer.question_index,
            student_answer=answer.student_answer,
            is_correct=correct,
            points_awarded=question.points if correct else 0,
            points_possible=question.points,
            time_spent=answer.time_spent or 0
        )

    def evaluate_submission(self, test: PlacementTest, answer: SubmittedAnswer) -> EvaluatedAnswer:
        """Locate the referenced question (failing fast on bad indices) and evaluate."""
        question = locate_question(test, answer.section_index, answer.question_index)
        return self.evaluate(question, answer)
