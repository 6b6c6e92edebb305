"""Pydantic schemas for practice exams."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from studyhub.core.config import settings
from studyhub.learning_engine.exam.state_machine import ExamStatus
from studyhub.models.question import DifficultyLevel, QuestionCategory
from studyhub.schemas.common import CamelModel

# ============================================================================
# Session Schemas
# ============================================================================


class ExamStartRequest(CamelModel):
    """Request to start a practice exam."""

    question_count: int = Field(
        ..., ge=1, le=settings.EXAM_MAX_QUESTIONS, description="Number of questions"
    )
    time_limit_minutes: int = Field(
        0,
        ge=0,
        le=settings.EXAM_MAX_TIME_LIMIT_MINUTES,
        description="Time limit in minutes (0 = untimed)",
    )
    category_filter: QuestionCategory | None = None
    difficulty_filter: DifficultyLevel | None = None


class ExamStartOut(CamelModel):
    id: UUID
    question_count: int
    time_limit_minutes: int
    status: ExamStatus
    started_at: datetime


class ExamStateOut(CamelModel):
    """Session state without question content."""

    id: UUID
    status: ExamStatus
    question_count: int
    current_index: int
    answered_count: int
    time_limit_minutes: int
    time_remaining_seconds: int | None
    started_at: datetime | None
    completed_at: datetime | None


class ExamSummaryOut(CamelModel):
    """One row of the exam history."""

    session_id: UUID
    status: ExamStatus
    question_count: int
    raw_score: int | None
    score_percent: int | None
    performance_band: str | None
    started_at: datetime | None
    completed_at: datetime | None


# ============================================================================
# Question / Answer Schemas
# ============================================================================


class OptionOut(CamelModel):
    """Answer option as shown before answering (no correctness)."""

    id: UUID
    text: str


class QuestionOut(CamelModel):
    id: UUID
    stem: str
    category: QuestionCategory
    difficulty: DifficultyLevel
    options: list[OptionOut]


class NextQuestionOut(CamelModel):
    question: QuestionOut
    question_number: int  # 1-based
    total_questions: int
    time_remaining_seconds: int | None


class AnswerSubmit(CamelModel):
    question_id: UUID
    selected_option_id: UUID | None = Field(None, description="null records a skipped question")
    time_spent_seconds: int = Field(0, ge=0)
    client_event_id: UUID | None = Field(None, description="Idempotency key for retries")


class RunningScore(CamelModel):
    correct: int
    total: int


class AnswerOut(CamelModel):
    accepted: bool
    status: ExamStatus
    is_correct: bool | None = None
    correct_option_id: UUID | None = None
    explanation: str | None = None
    running_score: RunningScore


# ============================================================================
# Result Schemas
# ============================================================================


class ExamResultOut(CamelModel):
    session_id: UUID
    status: ExamStatus
    raw_score: int
    total_questions: int
    score_percent: int
    performance_band: str
    performance_range: str
    performance_message: str
    category_breakdown: dict[str, int]
    avg_time_per_question_seconds: float
    incorrect_count: int
    incorrect_question_ids: list[UUID]
    duration_seconds: int | None
    completed_at: datetime | None
