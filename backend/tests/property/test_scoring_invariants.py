"""Property-based tests for scoring and exam session invariants."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from hypothesis import given, settings, strategies as st
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from studyhub.db.base import Base
from studyhub.db.session import make_session_factory
from studyhub.learning_engine.errors import QuestionMismatchError, SessionTerminalError
from studyhub.learning_engine.exam.scoring import PerformanceBand, band_for, score
from studyhub.learning_engine.exam.state_machine import ExamStatus
from studyhub.models.question import QuestionCategory
from studyhub.services.exam_engine import AnswerSubmission, ExamCriteria, ExamSessionEngine
from studyhub.services.question_bank import SqlQuestionBank
from studyhub.services.session_store import SqlSessionStore
from tests.helpers.seed import correct_option_id, seed_questions, wrong_option_id

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


@dataclass
class Answer:
    question_id: UUID
    is_correct: bool
    category: QuestionCategory
    time_spent_seconds: int | None


answers_strategy = st.lists(
    st.builds(
        Answer,
        question_id=st.uuids(),
        is_correct=st.booleans(),
        category=st.sampled_from(list(QuestionCategory)),
        time_spent_seconds=st.none() | st.integers(min_value=0, max_value=600),
    ),
    max_size=60,
)


@settings(max_examples=200, deadline=None)
@given(answers=answers_strategy)
def test_score_bounds(answers: list[Answer]) -> None:
    """
    Property: percentages stay in [0, 100] and raw score never exceeds the total.
    """
    result = score(answers)

    assert 0 <= result.raw_score <= result.total_questions == len(answers)
    assert 0 <= result.score_percent <= 100
    assert all(0 <= pct <= 100 for pct in result.category_breakdown.values())
    assert set(result.category_breakdown) == {a.category.value for a in answers}
    assert result.incorrect_count == result.total_questions - result.raw_score
    assert result.band == band_for(result.score_percent)


@settings(max_examples=200, deadline=None)
@given(pct=st.integers(min_value=-10, max_value=110))
def test_band_is_total_and_monotonic(pct: int) -> None:
    band = band_for(pct)
    order = list(PerformanceBand)
    assert band in order
    # A higher percentage never lands in a worse band
    assert order.index(band_for(pct + 1)) <= order.index(band)


@settings(max_examples=25, deadline=None)
@given(
    steps=st.lists(
        st.tuples(st.sampled_from(["right", "wrong", "skip", "stray", "tick"]), st.integers(0, 90)),
        max_size=12,
    )
)
def test_current_index_never_decreases(steps: list[tuple[str, int]]) -> None:
    """
    Property: whatever the clients send, the session only moves forward.

    Invariants:
    - currentIndex never decreases and never exceeds the question count
    - answers are recorded one per position, in order
    - once terminal, the status never changes
    """
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    db = make_session_factory(engine)()
    try:
        by_id = {q.id: q for q in seed_questions(db, 6)}
        exams = ExamSessionEngine(SqlSessionStore(db), SqlQuestionBank(db))
        owner_id = uuid4()
        session = exams.start(owner_id, ExamCriteria(question_count=4, time_limit_minutes=5), T0)

        now = T0
        last_index = 0
        terminal_status = None
        for action, seconds in steps:
            now = now + timedelta(seconds=seconds)
            state = exams.get(session.id, owner_id, now)
            index = state.current_index
            current = state.questions[index].question_id if index < len(state.questions) else None

            if action == "tick":
                pass
            elif action == "stray":
                try:
                    exams.submit_answer(session.id, owner_id, AnswerSubmission(uuid4(), None), now)
                except (QuestionMismatchError, SessionTerminalError):
                    pass
            elif current is not None:
                question = by_id[current]
                option = {
                    "right": correct_option_id(question),
                    "wrong": wrong_option_id(question),
                    "skip": None,
                }[action]
                try:
                    exams.submit_answer(session.id, owner_id, AnswerSubmission(current, option), now)
                except SessionTerminalError:
                    pass

            state = exams.get(session.id, owner_id, now)
            assert last_index <= state.current_index <= len(state.questions)
            assert [a.position for a in state.answers] == list(range(1, state.current_index + 1))
            if terminal_status is not None:
                assert state.status == terminal_status
            elif state.status != ExamStatus.IN_PROGRESS:
                terminal_status = state.status
            last_index = state.current_index
    finally:
        db.close()
        engine.dispose()
