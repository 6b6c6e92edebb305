"""Practice exam endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from studyhub.core.dependencies import get_current_user_id, get_now
from studyhub.db.session import get_db
from studyhub.learning_engine.exam.scoring import PerformanceBand
from studyhub.learning_engine.utils import ensure_utc
from studyhub.models.exam import ExamSession
from studyhub.schemas.exam import (
    AnswerOut,
    AnswerSubmit,
    ExamResultOut,
    ExamStartOut,
    ExamStartRequest,
    ExamStateOut,
    ExamSummaryOut,
    NextQuestionOut,
    OptionOut,
    QuestionOut,
    RunningScore,
)
from studyhub.services.exam_engine import (
    AnswerSubmission,
    ExamCriteria,
    ExamSessionEngine,
    remaining_seconds,
)
from studyhub.services.question_bank import SqlQuestionBank
from studyhub.services.session_store import SqlSessionStore

router = APIRouter()


# ============================================================================
# Helper Functions
# ============================================================================


def get_exam_engine(db: Session = Depends(get_db)) -> ExamSessionEngine:
    return ExamSessionEngine(SqlSessionStore(db), SqlQuestionBank(db))


def to_state_out(session: ExamSession, now: datetime) -> ExamStateOut:
    return ExamStateOut(
        id=session.id,
        status=session.status,
        question_count=len(session.questions),
        current_index=session.current_index,
        answered_count=len(session.answers),
        time_limit_minutes=session.time_limit_seconds // 60,
        time_remaining_seconds=remaining_seconds(session, now),
        started_at=ensure_utc(session.started_at),
        completed_at=ensure_utc(session.completed_at),
    )


# ============================================================================
# Session lifecycle
# ============================================================================


@router.post("", response_model=ExamStartOut, status_code=status.HTTP_201_CREATED)
def start_exam(
    body: ExamStartRequest,
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    engine: ExamSessionEngine = Depends(get_exam_engine),
) -> ExamStartOut:
    """Start a practice exam with a frozen, shuffled question sequence."""
    session = engine.start(
        owner_id,
        ExamCriteria(
            question_count=body.question_count,
            time_limit_minutes=body.time_limit_minutes,
            category=body.category_filter,
            difficulty=body.difficulty_filter,
        ),
        now,
    )
    return ExamStartOut(
        id=session.id,
        question_count=len(session.questions),
        time_limit_minutes=session.time_limit_seconds // 60,
        status=session.status,
        started_at=ensure_utc(session.started_at),
    )


@router.get("/history", response_model=list[ExamSummaryOut])
def exam_history(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    engine: ExamSessionEngine = Depends(get_exam_engine),
) -> list[ExamSummaryOut]:
    """The caller's exams, newest first."""
    return [
        ExamSummaryOut(
            session_id=session.id,
            status=session.status,
            question_count=len(session.questions),
            raw_score=session.raw_score,
            score_percent=session.score_percent,
            performance_band=session.performance_band,
            started_at=ensure_utc(session.started_at),
            completed_at=ensure_utc(session.completed_at),
        )
        for session in engine.history(owner_id, now, page=page, size=size)
    ]


@router.get("/{session_id}", response_model=ExamStateOut)
def get_exam(
    session_id: UUID,
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    engine: ExamSessionEngine = Depends(get_exam_engine),
) -> ExamStateOut:
    return to_state_out(engine.get(session_id, owner_id, now), now)


@router.get("/{session_id}/next", response_model=NextQuestionOut)
def next_question(
    session_id: UUID,
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    engine: ExamSessionEngine = Depends(get_exam_engine),
) -> NextQuestionOut:
    """Current question without answer correctness."""
    nxt = engine.next_question(session_id, owner_id, now)
    q = nxt.question
    return NextQuestionOut(
        question=QuestionOut(
            id=q.id,
            stem=q.stem,
            category=q.category,
            difficulty=q.difficulty,
            options=[OptionOut(id=o.id, text=o.text) for o in q.options],
        ),
        question_number=nxt.question_number,
        total_questions=nxt.total_questions,
        time_remaining_seconds=nxt.time_remaining_seconds,
    )


@router.post("/{session_id}/answers", response_model=AnswerOut)
def submit_answer(
    session_id: UUID,
    body: AnswerSubmit,
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    engine: ExamSessionEngine = Depends(get_exam_engine),
) -> AnswerOut:
    outcome = engine.submit_answer(
        session_id,
        owner_id,
        AnswerSubmission(
            question_id=body.question_id,
            selected_option_id=body.selected_option_id,
            time_spent_seconds=body.time_spent_seconds,
            client_event_id=body.client_event_id,
        ),
        now,
    )
    return AnswerOut(
        accepted=outcome.accepted,
        status=outcome.status,
        is_correct=outcome.is_correct,
        correct_option_id=outcome.correct_option_id,
        explanation=outcome.explanation,
        running_score=RunningScore(correct=outcome.running_correct, total=outcome.running_total),
    )


@router.post("/{session_id}/complete", status_code=status.HTTP_204_NO_CONTENT)
def complete_exam(
    session_id: UUID,
    force: bool = Query(False, description="Submit with unanswered questions"),
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    engine: ExamSessionEngine = Depends(get_exam_engine),
) -> Response:
    """Finish and score the exam. Completing an ended exam is a no-op."""
    engine.complete(session_id, owner_id, now, forced=force)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{session_id}/expire", response_model=ExamStateOut)
def expire_exam(
    session_id: UUID,
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    engine: ExamSessionEngine = Depends(get_exam_engine),
) -> ExamStateOut:
    """Client "time's up" signal; the server clock decides whether the exam expires."""
    return to_state_out(engine.expire_if_timed_out(session_id, owner_id, now), now)


@router.post("/{session_id}/abandon", status_code=status.HTTP_204_NO_CONTENT)
def abandon_exam(
    session_id: UUID,
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    engine: ExamSessionEngine = Depends(get_exam_engine),
) -> Response:
    engine.abandon(session_id, owner_id, now)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{session_id}/result", response_model=ExamResultOut)
def exam_result(
    session_id: UUID,
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    engine: ExamSessionEngine = Depends(get_exam_engine),
) -> ExamResultOut:
    result = engine.result(session_id, owner_id, now)
    scored = result.score
    band: PerformanceBand = scored.band
    return ExamResultOut(
        session_id=result.session_id,
        status=result.status,
        raw_score=scored.raw_score,
        total_questions=scored.total_questions,
        score_percent=scored.score_percent,
        performance_band=band.value,
        performance_range=band.range,
        performance_message=band.message,
        category_breakdown=scored.category_breakdown,
        avg_time_per_question_seconds=scored.avg_time_per_question,
        incorrect_count=scored.incorrect_count,
        incorrect_question_ids=scored.incorrect_question_ids,
        duration_seconds=result.duration_seconds,
        completed_at=ensure_utc(result.completed_at),
    )
