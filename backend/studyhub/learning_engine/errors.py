"""Domain errors raised by the scheduling and exam engines.

These carry a stable ``code`` and an HTTP ``status_code`` so the API layer can
render them through the standard error envelope, but they import nothing from
the web framework: the pure engines raise them directly.
"""

from typing import Any
from uuid import UUID


class StudyHubError(Exception):
    """Base class for every domain error."""

    status_code: int = 400
    code: str = "STUDYHUB_ERROR"
    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


# ---------------------------------------------------------------------------
# Validation (caller-fixable, never retried automatically)
# ---------------------------------------------------------------------------


class ValidationFailure(StudyHubError):
    status_code = 422
    code = "VALIDATION_ERROR"


class InvalidQualityError(ValidationFailure):
    code = "INVALID_QUALITY"

    def __init__(self, quality: Any, allowed: str = "0-5"):
        super().__init__(
            f"Quality must be an integer in {allowed}, got: {quality!r}",
            {"quality": quality if isinstance(quality, int) else repr(quality), "allowed": allowed},
        )


class InsufficientQuestionsError(ValidationFailure):
    code = "INSUFFICIENT_QUESTIONS"

    def __init__(self, requested: int, available: int):
        super().__init__(
            f"Not enough questions: requested {requested} but only {available} "
            "available with the given filters",
            {"requested_count": requested, "available_count": available},
        )
        self.requested = requested
        self.available = available


class InvalidOptionError(ValidationFailure):
    code = "INVALID_OPTION"

    def __init__(self, question_id: UUID, option_id: UUID):
        super().__init__(
            "Selected option does not belong to this question",
            {"question_id": str(question_id), "selected_option_id": str(option_id)},
        )


# ---------------------------------------------------------------------------
# State conflicts (stale client view: re-fetch, do not blindly retry)
# ---------------------------------------------------------------------------


class StateConflictError(StudyHubError):
    status_code = 409
    code = "STATE_CONFLICT"


class QuestionMismatchError(StateConflictError):
    code = "QUESTION_MISMATCH"

    def __init__(self, expected: UUID | None, received: UUID, current_index: int):
        super().__init__(
            "Answer is not for the current question; re-fetch the session state",
            {
                "expected_question_id": str(expected) if expected else None,
                "received_question_id": str(received),
                "current_index": current_index,
            },
        )


class SessionTerminalError(StateConflictError):
    code = "SESSION_TERMINAL"

    def __init__(self, session_id: UUID | None, status: str):
        super().__init__(
            f"Exam session is already {status}",
            {"session_id": str(session_id) if session_id else None, "status": status},
        )
        self.status = status


class SessionCompleteError(StateConflictError):
    """No further questions: the caller should go to the results view."""

    code = "SESSION_COMPLETE"

    def __init__(self, session_id: UUID, status: str):
        super().__init__(
            "No more questions in this exam session",
            {"session_id": str(session_id), "status": status},
        )


class IncompleteSessionError(StateConflictError):
    code = "SESSION_INCOMPLETE"

    def __init__(self, session_id: UUID, unanswered: int):
        super().__init__(
            f"{unanswered} question(s) are still unanswered; complete with force=true to submit early",
            {"session_id": str(session_id), "unanswered_count": unanswered},
        )


class ResultsNotReadyError(StateConflictError):
    code = "RESULTS_NOT_READY"

    def __init__(self, session_id: UUID):
        super().__init__(
            "Results are available once the exam session has ended",
            {"session_id": str(session_id)},
        )


class InvalidTransitionError(StateConflictError):
    code = "INVALID_TRANSITION"

    def __init__(self, status: str, event: str):
        super().__init__(
            f"Cannot apply {event} to a session in status {status}",
            {"status": status, "event": event},
        )


class ConcurrentModificationError(StateConflictError):
    code = "CONCURRENT_MODIFICATION"

    def __init__(self, resource: str):
        super().__init__(
            "The resource was modified concurrently; re-fetch and try again",
            {"resource": resource},
        )


# ---------------------------------------------------------------------------
# Access / not found
# ---------------------------------------------------------------------------


class AccessDeniedError(StudyHubError):
    status_code = 403
    code = "ACCESS_DENIED"

    def __init__(self, resource: str):
        super().__init__(f"Not authorized to access this {resource}", {"resource": resource})


class NotFoundError(StudyHubError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: UUID):
        super().__init__(
            f"{resource.capitalize()} not found",
            {"resource": resource, "id": str(resource_id)},
        )


class SessionNotFoundError(NotFoundError):
    code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: UUID):
        super().__init__("exam session", session_id)


class CardNotFoundError(NotFoundError):
    code = "CARD_NOT_FOUND"

    def __init__(self, card_id: UUID):
        super().__init__("card", card_id)


class DeckNotFoundError(NotFoundError):
    code = "DECK_NOT_FOUND"

    def __init__(self, deck_id: UUID):
        super().__init__("deck", deck_id)


# ---------------------------------------------------------------------------
# Infrastructure (generic message to the client, detail only in logs)
# ---------------------------------------------------------------------------


class InfrastructureError(StudyHubError):
    status_code = 503
    code = "SERVICE_UNAVAILABLE"
    public_message = "The service is temporarily unavailable, please try again"


class StoreUnavailableError(InfrastructureError):
    def __init__(self, operation: str, retryable: bool):
        super().__init__(f"Store unavailable during {operation}", {"operation": operation})
        self.retryable = retryable


class QuestionBankUnavailableError(InfrastructureError):
    retryable = True

    def __init__(self):
        super().__init__("Question bank unreachable")
