"""HTTP-level exceptions for consistent error handling outside the engines."""

from typing import Any

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Application error with standardized error code."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | list[Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(
            status_code=status_code,
            detail={
                "code": code,
                "message": message,
                "details": details,
            },
            headers=headers,
        )
        self.code = code
        self.message = message
        self.details = details


def raise_auth_required(message: str) -> None:
    """Raise the 401 used when the forwarded identity header is unusable."""
    raise AppError(
        status_code=status.HTTP_401_UNAUTHORIZED,
        code="AUTH_REQUIRED",
        message=message,
    )
