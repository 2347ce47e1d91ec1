"""
Standardized Error Responses

Provides consistent error response formats for the chat endpoints.
"""

from fastapi.responses import JSONResponse
from typing import Optional, Dict, Any

from utils.errors import ChatError


# Map error codes to HTTP status codes
ERROR_STATUS_CODES = {
    # Auth Errors (4xx)
    "UNAUTHORIZED": 401,

    # Not Found Errors (404)
    "GAME_NOT_FOUND": 404,

    # Validation Errors (400)
    "MISSING_REQUIRED_FIELD": 400,

    # Server Errors (500)
    "INTERNAL_ERROR": 500,
    "DATABASE_ERROR": 500,
    "CONFIGURATION_ERROR": 500,
}


def error_response(
    code: str,
    message: str,
    status_code: Optional[int] = None,
    field: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    """
    Create a standardized error response.

    Args:
        code: Error code (e.g., "MISSING_REQUIRED_FIELD", "GAME_NOT_FOUND")
        message: Human-readable error message
        status_code: HTTP status code (auto-detected from code if not provided)
        field: Optional field name for validation errors
        details: Optional additional error details

    Returns:
        JSONResponse with standardized error format
    """
    if status_code is None:
        status_code = ERROR_STATUS_CODES.get(code, 400)

    content = {
        "success": False,
        "code": code,
        "message": message,
        # Older clients read `error`
        "error": message,
    }

    if field:
        content["field"] = field

    if details:
        content["details"] = details

    return JSONResponse(status_code=status_code, content=content)


def chat_error_response(error: ChatError) -> JSONResponse:
    """Render a request-level ChatError."""
    field = "question" if error.code == "MISSING_REQUIRED_FIELD" else None
    return error_response(error.code, error.message, status_code=error.status_code, field=field)


__all__ = [
    "error_response",
    "chat_error_response",
    "ERROR_STATUS_CODES",
]
