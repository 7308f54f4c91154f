from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


class KaiError(Exception):
    """Base class for failures raised inside a chat turn."""


class GatewayError(KaiError):
    """Raised when the upstream generation call fails."""


class StoreError(KaiError):
    """Raised when a Redis read or write fails."""


class MessageRequiredError(KaiError):
    """Raised when a chat request carries no message; answered with 400."""

    def __init__(self, message: str = "Message required") -> None:
        super().__init__(message)
        self.message = message


class ErrorResponse(BaseModel):
    """
    Standard error payload for JSON endpoints:
    {
        "error": "not_found",
        "message": "Resource not found",
        "code": 404,
        "details": {...}
    }
    """

    error: str = Field(..., description="Machine-readable error type")
    message: str = Field(..., description="Human-readable error message")
    code: int = Field(..., description="HTTP status code for this error")
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Optional structured error details"
    )


def http_error(
    status_code: int,
    *,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    """
    Helper to create an HTTPException with a standardised error body.
    """
    payload = ErrorResponse(
        error=error,
        message=message,
        code=status_code,
        details=details,
    )
    return HTTPException(status_code=status_code, detail=payload.model_dump())


def service_unavailable(
    message: str, *, details: Optional[Dict[str, Any]] = None
) -> HTTPException:
    return http_error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        error="service_unavailable",
        message=message,
        details=details,
    )


async def handle_message_required(request: Request, exc: MessageRequiredError) -> JSONResponse:
    # Flat body shape expected by the chat client.
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": exc.message})


__all__ = [
    "KaiError",
    "GatewayError",
    "StoreError",
    "MessageRequiredError",
    "ErrorResponse",
    "http_error",
    "service_unavailable",
    "handle_message_required",
]
