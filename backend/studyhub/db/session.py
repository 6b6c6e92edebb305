"""Database session factory and the request-scoped session dependency."""

from typing import Generator

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from studyhub.db.engine import engine


def make_session_factory(bind: Engine) -> sessionmaker:
    """
    Session factory used by the API, scripts and tests.

    Objects stay loaded after commit: engines read session state right after
    their atomic write, and stores call expire_all() when they need a fresh read.
    """
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


SessionLocal = make_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """One session per request; anything left uncommitted is rolled back."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
