"""Progress events consumed by the progress reporter."""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import JSON, Column, DateTime, Enum, Index, Uuid

from studyhub.db.base import Base
from studyhub.models.question import question_category_type


class ProgressEventType(str, PyEnum):
    FLASHCARD_REVIEW = "FLASHCARD_REVIEW"
    EXAM_FINISHED = "EXAM_FINISHED"


class ProgressEvent(Base):
    """Outbox of learning activity.

    IMPORTANT: This is an append-only table. Do NOT update or delete events.
    Streaks and goals are derived downstream from these rows.
    """

    __tablename__ = "progress_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, nullable=False)
    event_type = Column(Enum(ProgressEventType, name="progress_event_type"), nullable=False)
    category = Column(question_category_type, nullable=True)
    payload_json = Column(JSON, nullable=False, default=dict)
    occurred_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_progress_events_owner_occurred", "owner_id", "occurred_at"),
        Index("ix_progress_events_type", "event_type"),
    )
