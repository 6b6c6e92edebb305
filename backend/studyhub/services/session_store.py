"""
Persistence of exam sessions.

Reads retry a bounded number of times on transient database errors. Writes
never retry: a failed commit is rolled back in full and surfaced as
StoreUnavailableError, so no partial session state is ever visible.
"""

from contextlib import contextmanager
from typing import Callable, Generator, Protocol, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from studyhub.core.config import settings
from studyhub.core.logging import get_logger
from studyhub.core.redis_lock import keyed_lock
from studyhub.learning_engine.errors import ConcurrentModificationError, StoreUnavailableError
from studyhub.models.exam import ExamSession

logger = get_logger(__name__)

T = TypeVar("T")


def read_with_retry(
    db: Session,
    operation: str,
    fn: Callable[[], T],
    retries: int | None = None,
    delay: float | None = None,
) -> T:
    """
    Run a read, retrying on OperationalError with exponential backoff.

    Raises:
        StoreUnavailableError: every attempt failed
    """
    attempts = retries if retries is not None else settings.STORE_READ_RETRIES
    backoff = delay if delay is not None else settings.STORE_READ_RETRY_DELAY

    def _before_retry(retry_state: RetryCallState) -> None:
        # Drop the failed transaction before the next attempt
        db.rollback()
        logger.warning(
            f"Store read failed, retrying ({retry_state.attempt_number}/{attempts})",
            extra={"operation": operation, "error": str(retry_state.outcome.exception())},
        )

    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=backoff),
        retry=retry_if_exception_type(OperationalError),
        before_sleep=_before_retry,
        reraise=True,
    )
    try:
        return retrying(fn)
    except OperationalError as e:
        db.rollback()
        logger.error(
            f"Store read failed after {attempts} attempts",
            extra={"operation": operation},
            exc_info=True,
        )
        raise StoreUnavailableError(operation, retryable=True) from e


@contextmanager
def atomic_write(
    db: Session,
    operation: str,
    resource: str,
    conflict: Callable[[IntegrityError], Exception] | None = None,
) -> Generator[None, None, None]:
    """
    Commit everything staged inside the block, or nothing.

    Errors:
        - stale version (concurrent writer) -> ConcurrentModificationError
        - integrity error -> ``conflict(exc)`` if given, else ConcurrentModificationError
        - operational error -> StoreUnavailableError (not retried)
    """
    try:
        yield
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning("Stale write rejected", extra={"operation": operation, "resource": resource})
        raise ConcurrentModificationError(resource) from e
    except IntegrityError as e:
        db.rollback()
        logger.warning(
            "Write violated a uniqueness constraint",
            extra={"operation": operation, "resource": resource},
        )
        if conflict is not None:
            raise conflict(e) from e
        raise ConcurrentModificationError(resource) from e
    except OperationalError as e:
        db.rollback()
        logger.error("Store write failed", extra={"operation": operation}, exc_info=True)
        raise StoreUnavailableError(operation, retryable=False) from e
    except BaseException:
        db.rollback()
        raise


class SessionStore(Protocol):
    """Keyed storage of exam sessions with exclusive per-session mutation."""

    db: Session

    def load(self, session_id: UUID) -> ExamSession | None: ...

    def add(self, session: ExamSession) -> None: ...

    def list_for_owner(self, owner_id: UUID, page: int, size: int) -> list[ExamSession]: ...

    def lock(self, session_id: UUID): ...

    def write(self, operation: str, session_id: UUID, conflict=None): ...


class SqlSessionStore:
    """SessionStore over a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def load(self, session_id: UUID) -> ExamSession | None:
        def _load() -> ExamSession | None:
            # Fresh read: another request may have committed since this session last looked
            self.db.expire_all()
            return self.db.get(ExamSession, session_id)

        return read_with_retry(self.db, "load_session", _load)

    def add(self, session: ExamSession) -> None:
        with atomic_write(self.db, "create_session", f"exam_session:{session.id}"):
            self.db.add(session)

    def list_for_owner(self, owner_id: UUID, page: int, size: int) -> list[ExamSession]:
        stmt = (
            select(ExamSession)
            .where(ExamSession.owner_id == owner_id)
            .order_by(ExamSession.started_at.desc(), ExamSession.created_at.desc())
            .offset((page - 1) * size)
            .limit(size)
        )
        return read_with_retry(self.db, "session_history", lambda: list(self.db.scalars(stmt)))

    @contextmanager
    def lock(self, session_id: UUID) -> Generator[None, None, None]:
        with keyed_lock(f"exam_session:{session_id}"):
            yield

    def write(self, operation: str, session_id: UUID, conflict=None):
        return atomic_write(self.db, operation, f"exam_session:{session_id}", conflict)
