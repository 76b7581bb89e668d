"""
Centralized exception classes for the registration service.
Provides a hierarchy of custom exceptions with proper error codes and messages.
"""

from typing import Optional, Dict, Any, List
from fastapi import HTTPException, status


class BaseRegistrationException(HTTPException):
    """Base exception class for all registration service errors."""

    def __init__(
        self,
        detail: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        headers: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}


# Request Exceptions
class InvalidRequestException(BaseRegistrationException):
    """Malformed or missing form fields."""

    def __init__(
        self,
        detail: str = "Invalid data received",
        error_code: str = "INVALID_REQUEST",
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
            context=context
        )


class ValidationException(InvalidRequestException):
    """Field-level validation errors."""

    def __init__(
        self,
        detail: str = "Validation failed",
        errors: Optional[List[Dict[str, Any]]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            error_code="VALIDATION_ERROR",
            context=context or {"errors": errors or []}
        )
        self.errors = errors or []


class InvalidFileException(InvalidRequestException):
    """Invalid file upload errors."""

    def __init__(
        self,
        detail: str,
        filename: Optional[str] = None,
        file_type: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            error_code="INVALID_FILE",
            context=context or {"filename": filename, "file_type": file_type}
        )


# Resource Exceptions
class ConflictException(BaseRegistrationException):
    """Resource conflict errors, e.g. an already registered email."""

    def __init__(
        self,
        detail: str = "Email already exists!",
        field: Optional[str] = "email",
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_409_CONFLICT,
            error_code="EMAIL_CONFLICT",
            context=context or {"field": field}
        )


# External Service Exceptions
class ExternalServiceException(BaseRegistrationException):
    """External service errors."""

    def __init__(
        self,
        detail: str,
        service_name: str,
        error_code: str = "EXTERNAL_SERVICE_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            status_code=status_code,
            error_code=error_code,
            context=context or {"service_name": service_name}
        )


class DatabaseException(ExternalServiceException):
    """Database unavailable or write errors."""

    def __init__(
        self,
        detail: str,
        operation: Optional[str] = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            service_name="database",
            error_code="DATABASE_ERROR",
            status_code=status_code,
            context=context or {"operation": operation}
        )


class StorageException(ExternalServiceException):
    """Disk or remote object store errors."""

    def __init__(
        self,
        detail: str,
        filename: Optional[str] = None,
        backend: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            service_name="storage",
            error_code="STORAGE_ERROR",
            context=context or {"filename": filename, "backend": backend}
        )


class ServerErrorException(BaseRegistrationException):
    """Catch-all for anything not covered above."""

    def __init__(
        self,
        detail: str = "Server error",
        error: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="SERVER_ERROR",
            context=context or ({"detail": str(error)} if error is not None else None)
        )
