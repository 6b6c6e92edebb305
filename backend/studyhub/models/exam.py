"""Exam session models for the practice exam engine."""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from studyhub.db.base import Base
from studyhub.learning_engine.exam.state_machine import ExamStatus
from studyhub.models.question import difficulty_level_type, question_category_type


class ExamSession(Base):
    """A single timed (or untimed) practice exam attempt."""

    __tablename__ = "exam_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, nullable=False)

    status = Column(
        Enum(ExamStatus, name="exam_status"),
        nullable=False,
        default=ExamStatus.CREATED,
    )

    # Selection criteria
    question_count = Column(Integer, nullable=False)  # requested
    category_filter = Column(question_category_type, nullable=True)
    difficulty_filter = Column(difficulty_level_type, nullable=True)
    shuffle_seed = Column(Integer, nullable=False)

    # Progress
    current_index = Column(Integer, nullable=False, default=0)  # 0-based, only moves forward

    # Timer
    time_limit_seconds = Column(Integer, nullable=False, default=0)  # 0 = untimed
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Scoring (cached on the terminal transition)
    raw_score = Column(Integer, nullable=True)
    score_percent = Column(Integer, nullable=True)
    performance_band = Column(String(32), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    version = Column(Integer, nullable=False)

    questions = relationship(
        "ExamSessionQuestion",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ExamSessionQuestion.position",
    )
    answers = relationship(
        "ExamAnswer",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ExamAnswer.position",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_exam_sessions_owner_created", "owner_id", "created_at"),
        Index("ix_exam_sessions_status", "status"),
    )


class ExamSessionQuestion(Base):
    """Questions included in an exam session (frozen content)."""

    __tablename__ = "exam_session_questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(
        Uuid,
        ForeignKey("exam_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    position = Column(Integer, nullable=False)  # 1-based position in session
    question_id = Column(Uuid, nullable=False)
    snapshot_json = Column(JSON, nullable=False)  # {stem, category, difficulty, explanation, options}

    session = relationship("ExamSession", back_populates="questions")

    __table_args__ = (
        UniqueConstraint("session_id", "position", name="uq_exam_question_position"),
        UniqueConstraint("session_id", "question_id", name="uq_exam_question_id"),
        Index("ix_exam_session_questions_session_id", "session_id"),
    )


class ExamAnswer(Base):
    """Recorded answers. Append-only: one row per question position, never updated."""

    __tablename__ = "exam_answers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(
        Uuid,
        ForeignKey("exam_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    position = Column(Integer, nullable=False)  # 1-based, matches ExamSessionQuestion.position
    question_id = Column(Uuid, nullable=False)
    selected_option_id = Column(Uuid, nullable=True)  # null = skipped
    is_correct = Column(Boolean, nullable=False)
    time_spent_seconds = Column(Integer, nullable=False, default=0)
    category = Column(question_category_type, nullable=False)
    client_event_id = Column(Uuid, nullable=True)
    answered_at = Column(DateTime(timezone=True), nullable=False)

    session = relationship("ExamSession", back_populates="answers")

    __table_args__ = (
        UniqueConstraint("session_id", "position", name="uq_exam_answer_position"),
        UniqueConstraint("session_id", "client_event_id", name="uq_exam_answer_client_event"),
        Index("ix_exam_answers_session_id", "session_id"),
    )
