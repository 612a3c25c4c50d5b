"""
Placement Test Models

This module defines the data models for CEFR placement tests: the test
structure (sections, questions, rubric bands, score ranges), learner
attempts and submissions, and the derived results produced by the
scoring engine.
"""

import copy
import uuid
import enum
import datetime
from typing import Dict, List, Any, Optional, Iterator, Tuple, Union
from dataclasses import dataclass, field

from cefr_backend.common.exceptions import AttemptAlreadyCompletedError
from cefr_backend.common.serialization import SerializableMixin, parse_datetime

AnswerValue = Union[str, List[str], None]


class CEFRLevel(enum.Enum):
    """Common European Framework levels, lowest to highest."""
    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"

    @property
    def rank(self) -> int:
        """Zero-based position of the level in the A1..C2 order."""
        return _LEVEL_ORDER.index(self)

    def next_level(self) -> 'CEFRLevel':
        """One step up, saturating at C2."""
        return _LEVEL_ORDER[min(self.rank + 1, len(_LEVEL_ORDER) - 1)]

    def previous_level(self) -> 'CEFRLevel':
        """One step down, saturating at A1."""
        return _LEVEL_ORDER[max(self.rank - 1, 0)]

    def __lt__(self, other: 'CEFRLevel') -> bool:
        if not isinstance(other, CEFRLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: 'CEFRLevel') -> bool:
        if not isinstance(other, CEFRLevel):
            return NotImplemented
        return self.rank <= other.rank


_LEVEL_ORDER: List[CEFRLevel] = list(CEFRLevel)


class Skill(enum.Enum):
    """Skill tag carried by every test section."""
    READING = "reading"
    WRITING = "writing"
    LISTENING = "listening"
    SPEAKING = "speaking"
    GRAMMAR = "grammar"
    VOCABULARY = "vocabulary"


class TestType(enum.Enum):
    """Kinds of CEFR test. Only placement tests produce a recommended level."""
    PLACEMENT = "placement"
    PROGRESS = "progress"
    CERTIFICATION = "certification"


class QuestionType(enum.Enum):
    """Question formats supported by the test schema."""
    MULTIPLE_CHOICE = "multiple-choice"
    FILL_BLANK = "fill-blank"
    MATCHING = "matching"
    TRUE_FALSE = "true-false"
    ESSAY = "essay"
    SPEAKING = "speaking"
    LISTENING = "listening"


class AttemptStatus(enum.Enum):
    """Lifecycle of an attempt: created in progress, completed exactly once."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class Question(SerializableMixin):
    """
    A single scored question.

    ``correct_answer`` is either one value or a list of acceptable values
    (multi-select questions).
    """

    __serializable_fields__ = [
        "question_type", "text", "points", "correct_answer",
        "options", "explanation", "difficulty"
    ]

    question_type: QuestionType
    text: str
    points: int
    correct_answer: Union[str, List[str]]
    options: Optional[List[str]] = None
    explanation: Optional[str] = None
    difficulty: str = "medium"

    def __post_init__(self):
        """Validate and normalize after creation."""
        if isinstance(self.question_type, str):
            try:
                self.question_type = QuestionType(self.question_type)
            except ValueError:
                raise ValueError(f"Invalid question type: {self.question_type}")

        if isinstance(self.points, bool) or not isinstance(self.points, int) or self.points < 1:
            raise ValueError(f"Question points must be a positive integer, got {self.points!r}")

        if isinstance(self.correct_answer, tuple):
            self.correct_answer = list(self.correct_answer)

    @property
    def is_multi_select(self) -> bool:
        return isinstance(self.correct_answer, list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Question':
        return cls(
            question_type=data["question_type"],
            text=data.get("text", ""),
            points=data["points"],
            correct_answer=data["correct_answer"],
            options=data.get("options"),
            explanation=data.get("explanation"),
            difficulty=data.get("difficulty", "medium")
        )


@dataclass
class Section(SerializableMixin):
    """An ordered group of questions sharing one skill tag."""

    __serializable_fields__ = ["name", "skill", "questions", "description", "time_limit"]

    name: str
    skill: Skill
    questions: List[Question]
    description: str = ""
    time_limit: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.skill, str):
            try:
                self.skill = Skill(self.skill)
            except ValueError:
                raise ValueError(f"Invalid skill: {self.skill}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Section':
        return cls(
            name=data["name"],
            skill=data["skill"],
            questions=[Question.from_dict(q) for q in data.get("questions", [])],
            description=data.get("description", ""),
            time_limit=data.get("time_limit")
        )


@dataclass(frozen=True)
class RubricBand(SerializableMixin):
    """Inclusive ``[min_correct, max_correct]`` band of correct answers mapped to a level."""

    __serializable_fields__ = ["min_correct", "max_correct", "level"]

    min_correct: int
    max_correct: int
    level: CEFRLevel

    def contains(self, total_correct: int) -> bool:
        return self.min_correct <= total_correct <= self.max_correct

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RubricBand':
        return cls(
            min_correct=data.get("min_correct", data.get("min")),
            max_correct=data.get("max_correct", data.get("max")),
            level=CEFRLevel(data["level"])
        )


@dataclass(frozen=True)
class ScoreRange(SerializableMixin):
    """
    Named range of global question positions.

    Positions are 1-based and inclusive, counted across all sections in
    test order (the first question of the second section follows the last
    question of the first).
    """

    __serializable_fields__ = ["name", "start", "end"]

    name: str
    start: int
    end: int

    def __post_init__(self):
        if self.start < 1 or self.end < self.start:
            raise ValueError(f"Invalid score range {self.name}: {self.start}-{self.end}")

    def contains(self, position: int) -> bool:
        return self.start <= position <= self.end

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScoreRange':
        return cls(name=data["name"], start=data["start"], end=data["end"])


@dataclass
class PlacementTest(SerializableMixin):
    """
    A seeded CEFR test.

    Section order and question order within each section are fixed once the
    test is seeded; answers address questions by ``(section_index,
    question_index)``.
    """

    __serializable_fields__ = [
        "id", "title", "cefr_level", "test_type", "passing_score", "sections",
        "scoring_rubric", "score_ranges", "description", "is_active"
    ]

    id: str
    title: str
    cefr_level: CEFRLevel
    test_type: TestType
    passing_score: int
    sections: List[Section]
    scoring_rubric: Optional[List[RubricBand]] = None
    score_ranges: Optional[List[ScoreRange]] = None
    description: str = ""
    is_active: bool = True

    def __post_init__(self):
        if not self.id:
            self.id = str(uuid.uuid4())

        if isinstance(self.cefr_level, str):
            self.cefr_level = CEFRLevel(self.cefr_level)

        if isinstance(self.test_type, str):
            try:
                self.test_type = TestType(self.test_type)
            except ValueError:
                raise ValueError(f"Invalid test type: {self.test_type}")

        if not 0 <= self.passing_score <= 100:
            raise ValueError(f"Passing score must be between 0 and 100, got {self.passing_score}")

    @property
    def is_placement(self) -> bool:
        return self.test_type == TestType.PLACEMENT

    @property
    def max_score(self) -> int:
        """Sum of the point values of every question."""
        return sum(question.points for _, _, _, question in self.iter_questions())

    @property
    def total_questions(self) -> int:
        return sum(len(section.questions) for section in self.sections)

    def iter_questions(self) -> Iterator[Tuple[int, int, Section, Question]]:
        """Yield ``(section_index, question_index, section, question)`` in test order."""
        for section_index, section in enumerate(self.sections):
            for question_index, question in enumerate(section.questions):
                yield section_index, question_index, section, question

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlacementTest':
        rubric = data.get("scoring_rubric")
        ranges = data.get("score_ranges")
        return cls(
            id=data["id"],
            title=data["title"],
            cefr_level=data["cefr_level"],
            test_type=data["test_type"],
            passing_score=data["passing_score"],
            sections=[Section.from_dict(s) for s in data.get("sections", [])],
            scoring_rubric=[RubricBand.from_dict(b) for b in rubric] if rubric else None,
            score_ranges=[ScoreRange.from_dict(r) for r in ranges] if ranges else None,
            description=data.get("description", ""),
            is_active=data.get("is_active", True)
        )


@dataclass
class SubmittedAnswer:
    """One raw answer as submitted by the learner."""

    section_index: int
    question_index: int
    student_answer: AnswerValue
    time_spent: int = 0


@dataclass
class Submission:
    """A learner's full submission for an attempt."""

    answers: List[SubmittedAnswer]
    time_spent: int = 0


@dataclass
class EvaluatedAnswer(SerializableMixin):
    """
    An answer after comparison with the answer key.

    Partial credit does not exist: ``points_awarded`` is either 0 or
    ``points_possible``.
    """

    __serializable_fields__ = [
        "section_index", "question_index", "student_answer", "is_correct",
        "points_awarded", "points_possible", "time_spent"
    ]

    section_index: int
    question_index: int
    student_answer: AnswerValue
    is_correct: bool
    points_awarded: int
    points_possible: int
    time_spent: int = 0

    def __post_init__(self):
        if self.points_awarded not in (0, self.points_possible):
            raise ValueError(
                f"points_awarded must be 0 or {self.points_possible}, got {self.points_awarded}"
            )

    @property
    def key(self) -> Tuple[int, int]:
        return self.section_index, self.question_index

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvaluatedAnswer':
        return cls(**{name: data[name] for name in cls.__serializable_fields__ if name in data})


@dataclass
class Feedback(SerializableMixin):
    """Generated feedback text for a finished attempt."""

    __serializable_fields__ = ["overall", "strengths", "areas_for_improvement", "recommendations"]

    overall: str
    strengths: List[str] = field(default_factory=list)
    areas_for_improvement: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Feedback':
        return cls(
            overall=data.get("overall", ""),
            strengths=list(data.get("strengths", [])),
            areas_for_improvement=list(data.get("areas_for_improvement", [])),
            recommendations=list(data.get("recommendations", []))
        )


@dataclass(frozen=True)
class PlacementDecision:
    """Outcome of the layered level decision."""

    recommended_level: CEFRLevel
    base_level: CEFRLevel
    tie_break_applied: bool
    promoted: bool
    has_long_wrong_streak: bool
    rubric_applied: bool = False


@dataclass
class PlacementResult(SerializableMixin):
    """Consolidated result of scoring one submitted attempt."""

    __serializable_fields__ = [
        "score", "max_score", "points_awarded", "total_correct", "is_passed",
        "range_counts", "recommended_level", "tie_break_applied",
        "has_long_wrong_streak", "longest_wrong_streak", "skill_scores", "feedback"
    ]

    score: int
    max_score: int
    points_awarded: int
    total_correct: int
    is_passed: bool
    range_counts: Dict[str, int]
    recommended_level: Optional[CEFRLevel]
    tie_break_applied: bool
    has_long_wrong_streak: bool
    longest_wrong_streak: int
    skill_scores: Dict[Skill, int]
    feedback: Feedback
    answers: List[EvaluatedAnswer] = field(default_factory=list)


@dataclass
class Attempt(SerializableMixin):
    """
    One learner's attempt at one test.

    The scoring engine reads the attempt; the service applies the result
    through ``complete()`` once, after which the attempt is immutable.
    """

    __serializable_fields__ = [
        "id", "user_id", "test_id", "max_score", "status", "started_at",
        "completed_at", "answers", "score", "time_spent", "is_passed", "skills",
        "feedback", "recommended_level", "cefr_level"
    ]

    id: str
    user_id: str
    test_id: str
    max_score: int
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    started_at: datetime.datetime = field(default_factory=datetime.datetime.utcnow)
    completed_at: Optional[datetime.datetime] = None
    answers: List[EvaluatedAnswer] = field(default_factory=list)
    score: Optional[int] = None
    time_spent: int = 0
    is_passed: Optional[bool] = None
    skills: Dict[Skill, int] = field(default_factory=dict)
    feedback: Optional[Feedback] = None
    recommended_level: Optional[CEFRLevel] = None
    cefr_level: Optional[CEFRLevel] = None

    def __post_init__(self):
        if not self.id:
            self.id = str(uuid.uuid4())

        if not self.user_id:
            raise ValueError("User ID is required")

        if isinstance(self.status, str):
            try:
                self.status = AttemptStatus(self.status)
            except ValueError:
                raise ValueError(f"Invalid attempt status: {self.status}")

        for name in ("recommended_level", "cefr_level"):
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, CEFRLevel(value))

    @property
    def is_completed(self) -> bool:
        return self.status == AttemptStatus.COMPLETED

    def complete(self, result: PlacementResult, time_spent: int) -> 'Attempt':
        """
        Return a completed copy of this attempt carrying ``result``.

        Raises:
            AttemptAlreadyCompletedError: If the attempt was already completed
        """
        if self.is_completed:
            raise AttemptAlreadyCompletedError(self.id)

        completed = copy.deepcopy(self)
        completed.status = AttemptStatus.COMPLETED
        completed.completed_at = datetime.datetime.utcnow()
        completed.answers = list(result.answers)
        completed.score = result.score
        completed.time_spent = time_spent
        completed.is_passed = result.is_passed
        completed.skills = dict(result.skill_scores)
        completed.feedback = result.feedback
        completed.recommended_level = result.recommended_level
        return completed

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Attempt':
        feedback = data.get("feedback")
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            test_id=data["test_id"],
            max_score=data["max_score"],
            status=data.get("status", AttemptStatus.IN_PROGRESS.value),
            started_at=parse_datetime(data.get("started_at")) or datetime.datetime.utcnow(),
            completed_at=parse_datetime(data.get("completed_at")),
            answers=[EvaluatedAnswer.from_dict(a) for a in data.get("answers") or []],
            score=data.get("score"),
            time_spent=data.get("time_spent") or 0,
            is_passed=data.get("is_passed"),
            skills={Skill(k): v for k, v in (data.get("skills") or {}).items()},
            feedback=Feedback.from_dict(feedback) if feedback else None,
            recommended_level=data.get("recommended_level"),
            cefr_level=data.get("cefr_level")
        )
