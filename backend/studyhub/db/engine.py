"""Database engine configuration."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from studyhub.core.config import settings


def create_db_engine(url: str | None = None) -> Engine:
    """Create SQLAlchemy engine."""
    database_url = url or settings.DATABASE_URL

    if database_url.startswith("sqlite"):
        # Local runs and tests; SQLite has no server-side pool to size
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=False,
        )

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=10,
        echo=False,  # Set to True for SQL query logging
    )


# Global engine instance
engine = create_db_engine()
