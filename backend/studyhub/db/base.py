"""Declarative base for all models.

Models register themselves by being imported; ``studyhub.models`` imports
every model module so ``Base.metadata`` is complete once it is loaded.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass
