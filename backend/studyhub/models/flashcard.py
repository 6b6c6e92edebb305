"""Flashcard decks, cards and their SM-2 review schedules."""

from datetime import UTC, date, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studyhub.db.base import Base
from studyhub.models.question import QuestionCategory, question_category_type


class Deck(Base):
    """A user's collection of flashcards."""

    __tablename__ = "decks"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    owner_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[QuestionCategory | None] = mapped_column(
        question_category_type, nullable=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    cards = relationship("Card", back_populates="deck", cascade="all, delete-orphan")

    __table_args__ = (Index("ix_decks_owner_id", "owner_id"),)


class Card(Base):
    """A single flashcard. Deleting the card deletes its schedule."""

    __tablename__ = "cards"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    deck_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("decks.id", ondelete="CASCADE"), nullable=False
    )
    front: Mapped[str] = mapped_column(Text, nullable=False)
    back: Mapped[str] = mapped_column(Text, nullable=False)
    hint: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    deck = relationship("Deck", back_populates="cards")
    schedule = relationship(
        "ReviewSchedule", back_populates="card", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_cards_deck_id", "deck_id"),)


class ReviewSchedule(Base):
    """
    SM-2 scheduling state, one row per card.

    Created together with the card in its default state (due on the creation
    date) and changed only by a review submission.
    """

    __tablename__ = "review_schedules"

    card_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("cards.id", ondelete="CASCADE"), primary_key=True
    )
    ease_factor: Mapped[float] = mapped_column(Float, nullable=False, default=2.5)
    interval: Mapped[int] = mapped_column("interval_days", Integer, nullable=False, default=0)
    repetitions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_review_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Kept for analytics; the algorithm only reads the fields above
    last_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_quality: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    card = relationship("Card", back_populates="schedule")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (Index("ix_review_schedules_next_review_date", "next_review_date"),)
