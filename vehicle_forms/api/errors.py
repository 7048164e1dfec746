"""API error codes and the HTTP exception that carries them."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from fastapi import HTTPException


class ApiErrorCode(StrEnum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TEMPLATE_INVALID = "TEMPLATE_INVALID"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    REQUEST_TOO_LARGE = "REQUEST_TOO_LARGE"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ApiError(HTTPException):
    """``HTTPException`` whose detail is the ``{error_code, message}`` envelope."""

    def __init__(
        self, *, status_code: int, error_code: ApiErrorCode, message: str
    ) -> None:
        super().__init__(
            status_code=status_code,
            detail={"error_code": str(error_code), "message": message},
        )

    @classmethod
    def bad_request(cls, message: str) -> "ApiError":
        return cls(status_code=400, error_code=ApiErrorCode.VALIDATION_ERROR, message=message)

    @classmethod
    def file_not_found(cls, filename: str) -> "ApiError":
        return cls(
            status_code=404,
            error_code=ApiErrorCode.FILE_NOT_FOUND,
            message=f"File not found: {filename}",
        )


def to_error_payload(detail: Any, status_code: int) -> dict[str, str]:
    """Coerce any ``HTTPException.detail`` into the error envelope."""
    if not isinstance(detail, dict):
        return {
            "error_code": f"HTTP_{status_code}",
            "message": str(detail or "HTTP error"),
        }
    return {
        "error_code": str(detail.get("error_code") or f"HTTP_{status_code}"),
        "message": str(detail.get("message") or detail.get("detail") or "HTTP error"),
    }
