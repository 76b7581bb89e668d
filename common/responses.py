"""
Standardized API response formats for consistent error handling and success responses.
"""

from typing import Any, Dict, Optional
from datetime import date, datetime, timezone
from uuid import UUID
from pydantic import BaseModel
from fastapi import status
from fastapi.responses import JSONResponse

from common.exceptions import BaseRegistrationException, ServerErrorException
from common.logging import request_id_var


class ErrorDetail(BaseModel):
    """Detailed error information."""
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None


class APIResponse(BaseModel):
    """Standard API response format."""
    success: bool
    message: str
    data: Optional[Any] = None
    error: Optional[ErrorDetail] = None
    request_id: Optional[str] = None
    timestamp: str


def _ensure_jsonable(value: Any) -> Any:
    """Recursively convert common non-JSON-serializable types to JSON-safe values.

    Pydantic models are dumped by alias so entities keep their camelCase wire names.
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    if isinstance(value, BaseModel):
        return _ensure_jsonable(value.model_dump(by_alias=True, mode="json"))

    if isinstance(value, (datetime, date)):
        return value.isoformat()

    if isinstance(value, UUID):
        return str(value)

    if isinstance(value, dict):
        return {k: _ensure_jsonable(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set)):
        return [_ensure_jsonable(v) for v in value]

    return str(value)


def create_success_response(
    data: Any,
    message: str = "OK",
    status_code: int = status.HTTP_200_OK
) -> JSONResponse:
    """Create a successful API response."""
    response_data = APIResponse(
        success=True,
        message=message,
        data=_ensure_jsonable(data),
        request_id=request_id_var.get(),
        timestamp=datetime.now(timezone.utc).isoformat()
    )

    content = _ensure_jsonable(response_data.model_dump(exclude_none=True))
    return JSONResponse(content=content, status_code=status_code)


def create_error_response(
    error_code: str,
    message: str,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    context: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    """Create an error API response."""
    error_detail = ErrorDetail(
        code=error_code,
        message=message,
        context=_ensure_jsonable(context) if context else None
    )

    response_data = APIResponse(
        success=False,
        message=message,
        error=error_detail,
        request_id=request_id_var.get(),
        timestamp=datetime.now(timezone.utc).isoformat()
    )

    content = _ensure_jsonable(response_data.model_dump(exclude_none=True))
    return JSONResponse(content=content, status_code=status_code, headers=headers)


def exception_response(error: BaseException) -> JSONResponse:
    """Render any exception as an error envelope; anything unexpected becomes a 500 Server error."""
    if not isinstance(error, BaseRegistrationException):
        error = ServerErrorException(error=error)
    return create_error_response(
        error_code=error.error_code,
        message=error.detail,
        status_code=error.status_code,
        context=error.context,
        headers=error.headers
    )


# Common response templates
COMMON_RESPONSES = {
    "invalid_request": {
        400: {
            "description": "Malformed, missing or invalid form data",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "message": "Invalid data received",
                        "error": {
                            "code": "INVALID_REQUEST",
                            "message": "Invalid data received"
                        },
                        "request_id": "550e8400-e29b-41d4-a716-446655440000",
                        "timestamp": "2024-01-01T10:00:00Z"
                    }
                }
            }
        }
    },
    "conflict": {
        409: {
            "description": "Email already registered",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "message": "Email already exists!",
                        "error": {
                            "code": "EMAIL_CONFLICT",
                            "message": "Email already exists!",
                            "context": {"field": "email"}
                        },
                        "request_id": "550e8400-e29b-41d4-a716-446655440000",
                        "timestamp": "2024-01-01T10:00:00Z"
                    }
                }
            }
        }
    },
    "server_error": {
        500: {
            "description": "Storage, database or unexpected server failure",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "message": "Server error",
                        "error": {
                            "code": "SERVER_ERROR",
                            "message": "Server error",
                            "context": {"detail": "..."}
                        },
                        "request_id": "550e8400-e29b-41d4-a716-446655440000",
                        "timestamp": "2024-01-01T10:00:00Z"
                    }
                }
            }
        }
    }
}
