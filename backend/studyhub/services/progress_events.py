"""Progress events for the progress reporter.

IMPORTANT: Emitting is best-effort. A failure to build the event must NOT fail
the review or the exam transition it describes.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from studyhub.core.logging import get_logger
from studyhub.models.progress import ProgressEvent, ProgressEventType

logger = get_logger(__name__)


def emit_event(
    db: Session,
    owner_id: UUID,
    event_type: ProgressEventType,
    occurred_at: datetime,
    category: str | None = None,
    payload: dict[str, Any] | None = None,
) -> ProgressEvent | None:
    """
    Stage a progress event in the caller's transaction.

    The caller commits, so the event is persisted exactly when the state change
    it describes is.

    Returns:
        The staged event, or None if it could not be built
    """
    try:
        event = ProgressEvent(
            owner_id=owner_id,
            event_type=event_type,
            category=category,
            payload_json=payload or {},
            occurred_at=occurred_at,
        )
        db.add(event)
        return event
    except (ValueError, TypeError) as e:
        logger.error(f"Failed to emit progress event {event_type}: {e}", exc_info=True)
        return None
