"""
Exam scoring and performance banding.

Scores are computed over the questions actually presented (the answers list),
so an abandoned or expired session is scored on what the student saw.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum as PyEnum
from typing import Iterable, Protocol
from uuid import UUID

from studyhub.learning_engine.utils import round_half_up


class PerformanceBand(str, PyEnum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    PASSING = "PASSING"
    NEEDS_IMPROVEMENT = "NEEDS_IMPROVEMENT"

    @property
    def range(self) -> str:
        return BAND_RANGES[self]

    @property
    def message(self) -> str:
        return BAND_MESSAGES[self]


# (band, inclusive lower bound) from highest to lowest
BAND_THRESHOLDS: tuple[tuple[PerformanceBand, int], ...] = (
    (PerformanceBand.EXCELLENT, 80),
    (PerformanceBand.GOOD, 70),
    (PerformanceBand.PASSING, 60),
)

BAND_RANGES = {
    PerformanceBand.EXCELLENT: "80%+",
    PerformanceBand.GOOD: "70-79%",
    PerformanceBand.PASSING: "60-69%",
    PerformanceBand.NEEDS_IMPROVEMENT: "Below 60%",
}

BAND_MESSAGES = {
    PerformanceBand.EXCELLENT: "Outstanding: well prepared for the PANCE",
    PerformanceBand.GOOD: "Good: keep reviewing weak areas",
    PerformanceBand.PASSING: "Borderline: focused review recommended",
    PerformanceBand.NEEDS_IMPROVEMENT: "Intensive review needed before the exam",
}


def band_for(score_percent: float) -> PerformanceBand:
    """Band for a percentage. Total over all numbers: anything below 60 needs improvement."""
    for band, threshold in BAND_THRESHOLDS:
        if score_percent >= threshold:
            return band
    return PerformanceBand.NEEDS_IMPROVEMENT


class ScorableAnswer(Protocol):
    question_id: UUID
    is_correct: bool
    category: object
    time_spent_seconds: int | None


@dataclass(frozen=True)
class ScoreResult:
    raw_score: int
    total_questions: int
    score_percent: int
    category_breakdown: dict[str, int]
    band: PerformanceBand
    avg_time_per_question: float
    incorrect_question_ids: list[UUID] = field(default_factory=list)

    @property
    def incorrect_count(self) -> int:
        return self.total_questions - self.raw_score


def percent(correct: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(correct / total * 100)


def _category_key(category: object) -> str:
    return getattr(category, "value", None) or str(category)


def score(answers: Iterable[ScorableAnswer]) -> ScoreResult:
    """
    Score a list of recorded answers.

    Invariants:
    - score_percent is always in [0, 100], and 0 when nothing was presented
    - category_breakdown only lists categories with at least one answer
    """
    answers = list(answers)
    total = len(answers)
    raw = sum(1 for a in answers if a.is_correct)

    presented: dict[str, int] = defaultdict(int)
    correct: dict[str, int] = defaultdict(int)
    for answer in answers:
        key = _category_key(answer.category)
        presented[key] += 1
        if answer.is_correct:
            correct[key] += 1

    times = [a.time_spent_seconds for a in answers if a.time_spent_seconds is not None]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    score_percent = percent(raw, total)
    return ScoreResult(
        raw_score=raw,
        total_questions=total,
        score_percent=score_percent,
        category_breakdown={c: percent(correct[c], n) for c, n in presented.items()},
        band=band_for(score_percent),
        avg_time_per_question=avg_time,
        incorrect_question_ids=[a.question_id for a in answers if not a.is_correct],
    )
