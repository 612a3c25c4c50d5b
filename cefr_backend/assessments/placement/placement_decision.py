"""
Placement Decision Engine

Turns the raw outcome of a placement exam into a recommended CEFR level.
The decision is layered and always applied in the same order:

1. Base bucket: map the number of correct answers onto the fixed bands of
   the 50-question exam (0-10 A1, 11-20 A2, 21-30 B1, 31-40 B2, 41-46 C1,
   47-50 C2).
2. Boundary tie-break: when the count sits exactly on 10, 20, 30 or 40,
   check four range signals (reading, grammar/use, vocabulary, advanced)
   and promote one level if at least two hold.
3. Anti-guessing demotion: a run of ``long_streak_threshold`` or more
   consecutive wrong/blank answers demotes one level, never below A1.
4. Rubric override: a test that carries its own scoring rubric gets the
   level of the rubric band containing the count, replacing steps 1-3.

Range counts come from a list of ``ScoreRange`` definitions, so a different
section layout only needs a different range list; the tie-break thresholds
below are specific to the 50-question layout.
"""

import operator
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from cefr_backend.common.exceptions import InvalidAnswerError
from cefr_backend.common.logger import get_logger
from cefr_backend.assessments.placement.models import (
    CEFRLevel,
    PlacementDecision,
    RubricBand,
    ScoreRange,
)

logger = get_logger(__name__)

GRAMMAR_USE = "grammar_use"
VOCABULARY = "vocabulary"
READING = "reading"
ADVANCED = "advanced"

FIFTY_QUESTION_LAYOUT: Tuple[ScoreRange, ...] = (
    ScoreRange(GRAMMAR_USE, 1, 20),
    ScoreRange(VOCABULARY, 21, 30),
    ScoreRange(READING, 31, 40),
    ScoreRange(ADVANCED, 41, 50),
)

# The C2 band is open-ended so counts above 50 on a rubric-less test still map.
BASE_BUCKETS: Tuple[RubricBand, ...] = (
    RubricBand(0, 10, CEFRLevel.A1),
    RubricBand(11, 20, CEFRLevel.A2),
    RubricBand(21, 30, CEFRLevel.B1),
    RubricBand(31, 40, CEFRLevel.B2),
    RubricBand(41, 46, CEFRLevel.C1),
    RubricBand(47, 10 ** 9, CEFRLevel.C2),
)

DEFAULT_LONG_STREAK = 6
MIN_SIGNALS_FOR_PROMOTION = 2


@dataclass(frozen=True)
class RangeSignal:
    """A threshold check on the correct-answer count of one named range."""

    range_name: str
    compare: Callable[[int, int], bool]
    threshold: int

    def is_met(self, range_counts: Mapping[str, int]) -> bool:
        return self.compare(range_counts.get(self.range_name, 0), self.threshold)


# Checked in priority order: reading, grammar/use, vocabulary, advanced.
# The 10-boundary is written with strict comparisons and the others with
# inclusive ones; both forms are kept as authored.
BOUNDARY_SIGNALS: Dict[int, Tuple[RangeSignal, ...]] = {
    10: (
        RangeSignal(READING, operator.gt, 4),
        RangeSignal(GRAMMAR_USE, operator.gt, 10),
        RangeSignal(VOCABULARY, operator.gt, 4),
        RangeSignal(ADVANCED, operator.gt, 3),
    ),
    20: (
        RangeSignal(READING, operator.ge, 6),
        RangeSignal(GRAMMAR_USE, operator.ge, 11),
        RangeSignal(VOCABULARY, operator.ge, 6),
        RangeSignal(ADVANCED, operator.ge, 4),
    ),
    30: (
        RangeSignal(READING, operator.ge, 7),
        RangeSignal(GRAMMAR_USE, operator.ge, 15),
        RangeSignal(VOCABULARY, operator.ge, 7),
        RangeSignal(ADVANCED, operator.ge, 5),
    ),
    40: (
        RangeSignal(READING, operator.ge, 9),
        RangeSignal(GRAMMAR_USE, operator.ge, 18),
        RangeSignal(VOCABULARY, operator.ge, 9),
        RangeSignal(ADVANCED, operator.ge, 7),
    ),
}


def count_correct_by_range(
    flags: Sequence[bool],
    ranges: Iterable[ScoreRange] = FIFTY_QUESTION_LAYOUT
) -> Dict[str, int]:
    """
    Count correct answers inside each named range.

    Args:
        flags: One correctness flag per question, in test order
        ranges: Ranges over 1-based global question positions

    Returns:
        Mapping of range name to number of correct answers; positions past
        the end of ``flags`` count as not correct
    """
    counts: Dict[str, int] = {}
    for score_range in ranges:
        window = flags[score_range.start - 1:score_range.end]
        counts[score_range.name] = sum(1 for flag in window if flag)
    return counts


def find_band(bands: Iterable[RubricBand], total_correct: int) -> Optional[RubricBand]:
    """Return the first band containing ``total_correct``, if any."""
    for band in bands:
        if band.contains(total_correct):
            return band
    return None


class PlacementDecisionEngine:
    """
    Applies base bucket, tie-break, demotion and rubric override in order.
    """

    def __init__(
        self,
        long_streak_threshold: int = DEFAULT_LONG_STREAK,
        boundary_signals: Optional[Mapping[int, Sequence[RangeSignal]]] = None,
        base_buckets: Sequence[RubricBand] = BASE_BUCKETS
    ):
        self.long_streak_threshold = long_streak_threshold
        self.boundary_signals = dict(boundary_signals if boundary_signals is not None else BOUNDARY_SIGNALS)
        self.base_buckets = tuple(base_buckets)

    def base_level(self, total_correct: int) -> CEFRLevel:
        band = find_band(self.base_buckets, total_correct)
        return band.level if band else CEFRLevel.A1

    def is_boundary(self, total_correct: int) -> bool:
        return total_correct in self.boundary_signals

    def signals_met(self, total_correct: int, range_counts: Mapping[str, int]) -> List[bool]:
        """Evaluate the boundary signals for ``total_correct`` (empty off-boundary)."""
        return [
            signal.is_met(range_counts)
            for signal in self.boundary_signals.get(total_correct, ())
        ]

    def decide(
        self,
        total_correct: int,
        range_counts: Mapping[str, int],
        longest_wrong_streak: int,
        scoring_rubric: Optional[Sequence[RubricBand]] = None
    ) -> PlacementDecision:
        """
        Produce the recommended level for one attempt.

        Args:
            total_correct: Number of correctly answered questions
            range_counts: Correct answers per named range
            longest_wrong_streak: Longest run of consecutive wrong/blank answers
            scoring_rubric: Optional test-specific bands that replace the
                bucket/tie-break/demotion result

        Returns:
            PlacementDecision with the final level and the flags that shaped it

        Raises:
            InvalidAnswerError: If any count is negative
        """
        if total_correct < 0 or longest_wrong_streak < 0:
            raise InvalidAnswerError(
                f"Counts must be non-negative (total_correct={total_correct}, "
                f"longest_wrong_streak={longest_wrong_streak})"
            )

        base = self.base_level(total_correct)
        level = base

        tie_break_applied = self.is_boundary(total_correct)
        promoted = False
        if tie_break_applied:
            met = self.signals_met(total_correct, range_counts)
            if sum(met) >= MIN_SIGNALS_FOR_PROMOTION:
                level = level.next_level()
                promoted = True
            logger.debug(
                f"Boundary {total_correct}: {sum(met)}/{len(met)} signals met, "
                f"promoted={promoted}"
            )

        has_long_wrong_streak = longest_wrong_streak >= self.long_streak_threshold
        if has_long_wrong_streak:
            level = level.previous_level()

        rubric_applied = False
        if scoring_rubric:
            band = find_band(scoring_rubric, total_correct)
            if band is not None:
                level = band.level
                rubric_applied = True
            else:
                logger.warning(
                    f"No rubric band contains {total_correct} correct answers; "
                    f"keeping computed level {level.value}"
                )

        return PlacementDecision(
            recommended_level=level,
            base_level=base,
            tie_break_applied=tie_break_applied,
            promoted=promoted,
            has_long_wrong_streak=has_long_wrong_streak,
            rubric_applied=rubric_applied
        )
