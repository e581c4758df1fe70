"""
Standardized error response system.

Provides consistent error responses across all API endpoints.
"""
import uuid
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ErrorCode:
    """Standard error codes."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Authentication
    AUTH_FAILED = "AUTH_FAILED"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse:
    """Standard error response format."""

    @staticmethod
    def create(
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ) -> JSONResponse:
        """
        Create a standardized error response.

        Args:
            code: Machine-readable error code
            message: Human-readable error message
            status_code: HTTP status code
            details: Additional error details (optional)
            request_id: Request correlation ID (optional)

        Returns:
            JSONResponse with standard error format
        """
        error_data: Dict[str, Any] = {
            "error": {
                "code": code,
                "message": message,
            }
        }

        if details:
            error_data["error"]["details"] = details

        if request_id:
            error_data["error"]["request_id"] = request_id

        return JSONResponse(status_code=status_code, content=error_data)


class HTTPError(HTTPException):
    """
    Enhanced HTTPException with standard error response format.

    Usage:
        raise HTTPError(
            status_code=400,
            code=ErrorCode.AUTH_FAILED,
            message="Failed to authenticate.",
        )
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(status_code=status_code, detail=message)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


async def http_error_handler(request: Request, exc: HTTPError) -> JSONResponse:
    """Handle HTTPError exceptions and return standardized error response."""
    return ErrorResponse.create(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        request_id=_request_id(request),
    )


def field_errors(errors: list[dict[str, Any]]) -> Dict[str, list[str]]:
    """
    Group pydantic error entries by field name.

    Model-level errors that name their fields in ctx["fields"] are reported
    on each of those fields; other entries without a location go under "_form".
    """
    grouped: Dict[str, list[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        ctx = err.get("ctx") or {}
        if loc:
            fields = [loc[-1]]
        elif isinstance(ctx.get("fields"), list):
            fields = [str(f) for f in ctx["fields"]]
        else:
            fields = ["_form"]

        message = err.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        for field in fields:
            grouped.setdefault(field, []).append(message)
    return grouped


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render body/query validation failures in the standard envelope."""
    return ErrorResponse.create(
        code=ErrorCode.VALIDATION_ERROR,
        message="Invalid form data",
        status_code=status.HTTP_400_BAD_REQUEST,
        details={"fields": field_errors(list(exc.errors()))},
        request_id=_request_id(request),
    )


# Convenience functions for common errors

def internal_error(message: str = "Internal server error", details: Optional[Dict[str, Any]] = None) -> HTTPError:
    """Create a 500 INTERNAL_ERROR error."""
    return HTTPError(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=ErrorCode.INTERNAL_ERROR,
        message=message,
        details=details,
    )
