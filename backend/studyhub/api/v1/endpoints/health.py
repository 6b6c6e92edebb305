"""Health and readiness endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studyhub.core.config import settings
from studyhub.core.errors import get_request_id
from studyhub.core.redis_client import is_redis_available
from studyhub.db.session import get_db
from studyhub.models.question import Question

router = APIRouter(tags=["Health"])

CheckStatus = Literal["ok", "degraded", "down"]
_SEVERITY: dict[str, int] = {"ok": 0, "degraded": 1, "down": 2}


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class ReadinessCheck(BaseModel):
    status: CheckStatus
    message: str | None = None


class ReadinessResponse(BaseModel):
    status: CheckStatus
    checks: dict[str, ReadinessCheck]
    request_id: str


def _check_question_bank(db: Session) -> ReadinessCheck:
    """The store answers and the bank has something to draw exams from."""
    try:
        active = db.scalar(select(func.count()).select_from(Question).where(Question.is_active.is_(True)))
    except SQLAlchemyError as e:
        return ReadinessCheck(status="down", message=type(e).__name__)
    if not active:
        return ReadinessCheck(status="degraded", message="No active questions; exams cannot start")
    return ReadinessCheck(status="ok", message=f"{active} active questions")


def _check_lock_backend() -> ReadinessCheck:
    # Without Redis, locks are per-process; fine for one worker
    if not settings.REDIS_ENABLED:
        return ReadinessCheck(status="ok", message="Not enabled")
    if is_redis_available():
        return ReadinessCheck(status="ok")
    return ReadinessCheck(
        status="down" if settings.REDIS_REQUIRED else "degraded",
        message="Redis unavailable",
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
)
def health_check() -> HealthResponse:
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Checks the session store, the question bank and the lock backend.",
)
def readiness_check(request: Request, db: Session = Depends(get_db)) -> ReadinessResponse:
    checks = {
        "db": _check_question_bank(db),
        "redis": _check_lock_backend(),
    }
    overall = max((c.status for c in checks.values()), key=_SEVERITY.__getitem__)
    return ReadinessResponse(status=overall, checks=checks, request_id=get_request_id(request))
