"""Pytest configuration and shared fixtures."""

import os

# Settings and the global engine are built at import time; point them at
# throwaway backends before anything from studyhub is imported.
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_ENABLED"] = "false"

import uuid
from collections.abc import Generator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import studyhub.models  # noqa: F401
from studyhub.core.dependencies import get_now
from studyhub.db.base import Base
from studyhub.db.session import get_db, make_session_factory
from studyhub.main import app
from studyhub.services.exam_engine import ExamSessionEngine
from studyhub.services.question_bank import SqlQuestionBank
from studyhub.services.session_store import SqlSessionStore

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=UTC)


class FrozenClock:
    """Controllable stand-in for the request clock."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database per test."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(bind=eng)
        eng.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return make_session_factory(engine)


@pytest.fixture
def file_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    """Database file with a real connection per session, for cross-session races."""
    eng = create_engine(
        f"sqlite:///{tmp_path / 'store.db'}",
        connect_args={"check_same_thread": False, "timeout": 10},
    )
    Base.metadata.create_all(bind=eng)
    try:
        yield make_session_factory(eng)
    finally:
        eng.dispose()


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def exam_engine(db: Session) -> ExamSessionEngine:
    return ExamSessionEngine(SqlSessionStore(db), SqlQuestionBank(db))


@pytest.fixture
def client(db: Session, clock: FrozenClock) -> Generator[TestClient, None, None]:
    """API client bound to the test database and the frozen clock."""

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_now] = clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(owner_id: uuid.UUID) -> dict[str, str]:
    return {"X-User-Id": str(owner_id)}
