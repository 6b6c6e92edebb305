"""Question bank models (read-only to the exam engine)."""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from studyhub.db.base import Base


class QuestionCategory(str, PyEnum):
    """PANCE blueprint content areas."""

    CARDIOLOGY = "CARDIOLOGY"
    PULMONOLOGY = "PULMONOLOGY"
    GASTROENTEROLOGY = "GASTROENTEROLOGY"
    MUSCULOSKELETAL = "MUSCULOSKELETAL"
    NEUROLOGY = "NEUROLOGY"
    PSYCHIATRY = "PSYCHIATRY"
    DERMATOLOGY = "DERMATOLOGY"
    EENT = "EENT"
    ENDOCRINOLOGY = "ENDOCRINOLOGY"
    HEMATOLOGY = "HEMATOLOGY"
    INFECTIOUS_DISEASE = "INFECTIOUS_DISEASE"
    NEPHROLOGY = "NEPHROLOGY"
    REPRODUCTIVE = "REPRODUCTIVE"
    PEDIATRICS = "PEDIATRICS"
    EMERGENCY_MEDICINE = "EMERGENCY_MEDICINE"
    PHARMACOLOGY = "PHARMACOLOGY"
    ANATOMY = "ANATOMY"


class DifficultyLevel(str, PyEnum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


# Shared so each named enum type is declared once across tables
question_category_type = Enum(QuestionCategory, name="question_category")
difficulty_level_type = Enum(DifficultyLevel, name="difficulty_level")


class Question(Base):
    """Multiple-choice question."""

    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    stem = Column(Text, nullable=False)
    category = Column(question_category_type, nullable=False)
    difficulty = Column(difficulty_level_type, nullable=False, default=DifficultyLevel.MEDIUM)
    explanation = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    options = relationship(
        "AnswerOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="AnswerOption.position",
    )

    __table_args__ = (
        Index("ix_questions_category_difficulty", "category", "difficulty"),
        Index("ix_questions_is_active", "is_active"),
    )


class AnswerOption(Base):
    """One choice of a question; exactly one per question is correct."""

    __tablename__ = "answer_options"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id = Column(
        Uuid,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
    )
    text = Column(String(1000), nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False)  # 0-based display order

    question = relationship("Question", back_populates="options")

    __table_args__ = (
        UniqueConstraint("question_id", "position", name="uq_answer_option_position"),
        Index("ix_answer_options_question_id", "question_id"),
    )
