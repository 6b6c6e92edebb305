"""FastAPI dependencies for caller identity and the request clock."""

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

from fastapi import Header

from studyhub.core.app_exceptions import raise_auth_required


def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> UUID:
    """Identity forwarded by the gateway in ``X-User-Id``.

    Authentication happens upstream; this service only needs a stable owner id.
    """
    if not x_user_id:
        raise_auth_required("X-User-Id header missing")

    try:
        return UUID(x_user_id)
    except ValueError:
        raise_auth_required("X-User-Id header must be a UUID")


def get_now() -> datetime:
    """Current time as an aware UTC datetime. Engines never read the clock themselves."""
    return datetime.now(UTC)
