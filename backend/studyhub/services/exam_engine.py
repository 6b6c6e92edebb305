"""
Exam session engine.

Orchestrates one practice exam: selects and freezes the question sequence at
start, accepts answers strictly in order, enforces the time limit lazily on
every interaction, and scores the session on its terminal transition.

Every mutating operation runs under the per-session lock and commits through
the store's atomic write, so a session is never seen half-updated.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4

from studyhub.core.config import settings
from studyhub.core.logging import get_logger
from studyhub.learning_engine.errors import (
    AccessDeniedError,
    InvalidOptionError,
    IncompleteSessionError,
    QuestionMismatchError,
    ResultsNotReadyError,
    SessionCompleteError,
    SessionNotFoundError,
    SessionTerminalError,
)
from studyhub.learning_engine.exam.randomizer import new_seed, select_questions
from studyhub.learning_engine.exam.scoring import ScoreResult, score
from studyhub.learning_engine.exam.state_machine import (
    ExamEvent,
    ExamStatus,
    elapsed_seconds,
    is_terminal,
    is_timed_out,
    time_remaining,
    transition,
)
from studyhub.models.exam import ExamAnswer, ExamSession, ExamSessionQuestion
from studyhub.models.progress import ProgressEventType
from studyhub.models.question import DifficultyLevel, QuestionCategory
from studyhub.services.progress_events import emit_event
from studyhub.services.question_bank import QuestionBank, QuestionSnapshot
from studyhub.services.session_store import SessionStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExamCriteria:
    question_count: int
    time_limit_minutes: int = 0
    category: QuestionCategory | None = None
    difficulty: DifficultyLevel | None = None


@dataclass(frozen=True)
class AnswerSubmission:
    question_id: UUID
    selected_option_id: UUID | None
    time_spent_seconds: int = 0
    client_event_id: UUID | None = None


@dataclass(frozen=True)
class NextQuestion:
    question: QuestionSnapshot
    question_number: int  # 1-based
    total_questions: int
    time_remaining_seconds: int | None


@dataclass(frozen=True)
class AnswerOutcome:
    accepted: bool
    status: ExamStatus
    is_correct: bool | None = None
    correct_option_id: UUID | None = None
    explanation: str | None = None
    running_correct: int = 0
    running_total: int = 0


@dataclass(frozen=True)
class ExamResult:
    session_id: UUID
    status: ExamStatus
    score: ScoreResult
    duration_seconds: int | None
    completed_at: datetime | None


def remaining_seconds(session: ExamSession, now: datetime) -> int | None:
    if is_terminal(session.status):
        return 0 if session.time_limit_seconds else None
    return time_remaining(session.started_at, session.time_limit_seconds, now)


def _timed_out(session: ExamSession, now: datetime) -> bool:
    return session.status == ExamStatus.IN_PROGRESS and is_timed_out(
        session.started_at, session.time_limit_seconds, now
    )


class ExamSessionEngine:
    """Exam lifecycle over a SessionStore and a QuestionBank."""

    def __init__(
        self,
        store: SessionStore,
        bank: QuestionBank,
        allow_truncation: bool | None = None,
    ):
        self.store = store
        self.bank = bank
        self.allow_truncation = (
            settings.EXAM_ALLOW_TRUNCATION if allow_truncation is None else allow_truncation
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_owned(self, session_id: UUID, owner_id: UUID) -> ExamSession:
        session = self.store.load(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.owner_id != owner_id:
            raise AccessDeniedError("exam session")
        return session

    @contextmanager
    def _locked(self, session_id: UUID, owner_id: UUID):
        with self.store.lock(session_id):
            yield self._get_owned(session_id, owner_id)

    def _finish(self, session: ExamSession, event: ExamEvent, now: datetime) -> ScoreResult:
        """Terminal transition: stamp completion, cache the score, emit the progress event."""
        # Validate and apply the terminal transition
        session.status = transition(session.status, event, session.id)
        session.completed_at = now

        # Score answered questions only and cache it on the session
        result = score(session.answers)
        session.raw_score = result.raw_score
        session.score_percent = result.score_percent
        session.performance_band = result.band.value

        # Staged in the caller's write; committed together with the status
        emit_event(
            self.store.db,
            owner_id=session.owner_id,
            event_type=ProgressEventType.EXAM_FINISHED,
            occurred_at=now,
            category=session.category_filter,
            payload={
                "session_id": str(session.id),
                "status": session.status.value,
                "raw_score": result.raw_score,
                "total_questions": result.total_questions,
                "score_percent": result.score_percent,
                "performance_band": result.band.value,
            },
        )

        logger.info(
            "Exam session finished",
            extra={
                "session_id": str(session.id),
                "status": session.status.value,
                "score_percent": result.score_percent,
            },
        )
        return result

    def _expire_locked(self, session: ExamSession, now: datetime) -> bool:
        """Expire a timed-out session; caller holds the session lock."""
        if not _timed_out(session, now):
            return False
        with self.store.write("expire_session", session.id):
            self._finish(session, ExamEvent.EXPIRE, now)
        return True

    def _expire_if_due(self, session: ExamSession, now: datetime) -> ExamSession:
        """Lazy expiry for read paths: lock only when there is something to do."""
        if not _timed_out(session, now):
            return session
        with self.store.lock(session.id):
            # Reload: another request may have finished it while we waited
            session = self.store.load(session.id)
            self._expire_locked(session, now)
        return session

    def _outcome_for(self, session: ExamSession, answer: ExamAnswer) -> AnswerOutcome:
        entry = session.questions[answer.position - 1]
        snapshot = QuestionSnapshot.from_json(entry.snapshot_json)
        so_far = [a for a in session.answers if a.position <= answer.position]
        return AnswerOutcome(
            accepted=True,
            status=session.status,
            is_correct=answer.is_correct,
            correct_option_id=snapshot.correct_option_id,
            explanation=snapshot.explanation,
            running_correct=sum(1 for a in so_far if a.is_correct),
            running_total=len(so_far),
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start(self, owner_id: UUID, criteria: ExamCriteria, now: datetime) -> ExamSession:
        """
        Create a session with a frozen, shuffled question sequence and start it.

        Raises:
            InsufficientQuestionsError: fewer matching active questions than requested
        """
        pool = self.bank.find_pool(criteria.category, criteria.difficulty)
        seed = new_seed()
        chosen = select_questions(pool, criteria.question_count, seed, self.allow_truncation)

        session = ExamSession(
            id=uuid4(),
            owner_id=owner_id,
            status=ExamStatus.CREATED,
            question_count=criteria.question_count,
            category_filter=criteria.category,
            difficulty_filter=criteria.difficulty,
            shuffle_seed=seed,
            current_index=0,
            time_limit_seconds=criteria.time_limit_minutes * 60,
        )
        for position, question in enumerate(chosen, start=1):
            session.questions.append(
                ExamSessionQuestion(
                    position=position,
                    question_id=question.id,
                    snapshot_json=question.to_json(),
                )
            )

        session.status = transition(session.status, ExamEvent.START, session.id)
        session.started_at = now
        self.store.add(session)

        logger.info(
            "Exam session started",
            extra={
                "session_id": str(session.id),
                "question_count": len(chosen),
                "requested_count": criteria.question_count,
                "time_limit_seconds": session.time_limit_seconds,
            },
        )
        return session

    def get(self, session_id: UUID, owner_id: UUID, now: datetime) -> ExamSession:
        """Current session state, after lazy expiry."""
        return self._expire_if_due(self._get_owned(session_id, owner_id), now)

    def next_question(self, session_id: UUID, owner_id: UUID, now: datetime) -> NextQuestion:
        """
        The question at the current position, without correctness.

        Raises:
            SessionCompleteError: the session ended or every question was answered
        """
        session = self.get(session_id, owner_id, now)

        total = len(session.questions)
        if is_terminal(session.status) or session.current_index >= total:
            raise SessionCompleteError(session.id, session.status.value)

        entry = session.questions[session.current_index]
        return NextQuestion(
            question=QuestionSnapshot.from_json(entry.snapshot_json),
            question_number=session.current_index + 1,
            total_questions=total,
            time_remaining_seconds=remaining_seconds(session, now),
        )

    def submit_answer(
        self,
        session_id: UUID,
        owner_id: UUID,
        submission: AnswerSubmission,
        now: datetime,
    ) -> AnswerOutcome:
        """
        Record the answer for the current question and advance.

        A session that times out during this call is expired and the answer is
        not accepted; that is reported in the outcome, not raised.

        Raises:
            SessionTerminalError: the session had already ended
            QuestionMismatchError: the answer is not for the current question
            InvalidOptionError: the option does not belong to the question
        """
        # One writer per session; the lock is held until the answer is committed
        with self._locked(session_id, owner_id) as session:
            # Check timer before anything else
            expired_now = self._expire_locked(session, now)

            # Replay of an already recorded submission returns the original outcome
            if submission.client_event_id is not None:
                for previous in session.answers:
                    if previous.client_event_id == submission.client_event_id:
                        logger.info(
                            "Replayed answer submission",
                            extra={"session_id": str(session.id), "position": previous.position},
                        )
                        return self._outcome_for(session, previous)

            # Time ran out before this answer arrived
            if expired_now:
                return AnswerOutcome(
                    accepted=False,
                    status=session.status,
                    running_correct=session.raw_score or 0,
                    running_total=len(session.answers),
                )

            if is_terminal(session.status):
                raise SessionTerminalError(session.id, session.status.value)

            # Answer must target the current question
            index = session.current_index
            expected = session.questions[index] if index < len(session.questions) else None
            if expected is None or expected.question_id != submission.question_id:
                raise QuestionMismatchError(
                    expected.question_id if expected else None,
                    submission.question_id,
                    index,
                )

            # Grade against the frozen snapshot; None means skipped
            snapshot = QuestionSnapshot.from_json(expected.snapshot_json)
            selected = submission.selected_option_id
            if selected is not None and not snapshot.has_option(selected):
                raise InvalidOptionError(snapshot.id, selected)

            is_correct = selected is not None and selected == snapshot.correct_option_id

            # A unique (session, position) violation means another writer got there first
            def _duplicate(exc):
                return QuestionMismatchError(None, submission.question_id, index)

            # Record answer and advance in one commit
            with self.store.write("submit_answer", session.id, conflict=_duplicate):
                session.status = transition(session.status, ExamEvent.ANSWER, session.id)
                session.answers.append(
                    ExamAnswer(
                        position=index + 1,
                        question_id=snapshot.id,
                        selected_option_id=selected,
                        is_correct=is_correct,
                        time_spent_seconds=submission.time_spent_seconds,
                        category=snapshot.category,
                        client_event_id=submission.client_event_id,
                        answered_at=now,
                    )
                )
                session.current_index = index + 1

            correct_so_far = sum(1 for a in session.answers if a.is_correct)
            logger.info(
                "Answer recorded",
                extra={
                    "session_id": str(session.id),
                    "position": index + 1,
                    "is_correct": is_correct,
                },
            )
            return AnswerOutcome(
                accepted=True,
                status=session.status,
                is_correct=is_correct,
                correct_option_id=snapshot.correct_option_id,
                explanation=snapshot.explanation,
                running_correct=correct_so_far,
                running_total=len(session.answers),
            )

    def complete(
        self,
        session_id: UUID,
        owner_id: UUID,
        now: datetime,
        forced: bool = False,
    ) -> ExamSession:
        """
        Finish the session and score it. Idempotent on an ended session.

        Raises:
            IncompleteSessionError: questions remain and ``forced`` is false
        """
        with self._locked(session_id, owner_id) as session:
            # Already ended or just expired: nothing to do
            if self._expire_locked(session, now) or is_terminal(session.status):
                return session

            # Early submission needs an explicit force
            unanswered = len(session.questions) - session.current_index
            if unanswered > 0 and not forced:
                raise IncompleteSessionError(session.id, unanswered)

            with self.store.write("complete_session", session.id):
                self._finish(session, ExamEvent.COMPLETE, now)
            return session

    def expire_if_timed_out(self, session_id: UUID, owner_id: UUID, now: datetime) -> ExamSession:
        """Server-side timer check; leaves the session unchanged unless its time is up."""
        with self._locked(session_id, owner_id) as session:
            self._expire_locked(session, now)
            return session

    def abandon(self, session_id: UUID, owner_id: UUID, now: datetime) -> ExamSession:
        """Give up the session; the answered subset is still scored. Idempotent."""
        with self._locked(session_id, owner_id) as session:
            if self._expire_locked(session, now) or is_terminal(session.status):
                return session

            with self.store.write("abandon_session", session.id):
                self._finish(session, ExamEvent.ABANDON, now)
            return session

    def result(self, session_id: UUID, owner_id: UUID, now: datetime) -> ExamResult:
        """
        Score of an ended session.

        Raises:
            ResultsNotReadyError: the session is still in progress
        """
        session = self.get(session_id, owner_id, now)
        if not is_terminal(session.status):
            raise ResultsNotReadyError(session.id)

        duration = None
        if session.started_at is not None and session.completed_at is not None:
            duration = int(elapsed_seconds(session.started_at, session.completed_at))

        return ExamResult(
            session_id=session.id,
            status=session.status,
            score=score(session.answers),
            duration_seconds=duration,
            completed_at=session.completed_at,
        )

    def history(self, owner_id: UUID, now: datetime, page: int = 1, size: int = 20) -> list[ExamSession]:
        """The owner's sessions, newest first, with lazy expiry applied."""
        sessions = self.store.list_for_owner(owner_id, page, size)
        return [self._expire_if_due(session, now) for session in sessions]
