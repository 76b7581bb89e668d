"""
Middleware for error handling, logging, and request tracking.
"""
import time

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from common.exceptions import BaseRegistrationException
from common.logging import (
    RequestContextLogger,
    log_api_request,
    log_security_event,
    get_logger
)
from common.responses import exception_response


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Middleware for tracking requests with correlation IDs and logging."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = get_logger("middleware")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Bind a request id for the duration of the request and echo it back."""
        incoming = request.headers.get("X-Request-ID")
        with RequestContextLogger(request_id=incoming) as ctx:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            response.headers["X-Request-ID"] = ctx.request_id
            log_api_request(
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                ip_address=request.client.host if request.client else None,
            )
            return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Last-resort boundary: nothing escaping a route may crash the process."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = get_logger("error_handler")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except BaseRegistrationException as e:
            return self._handle_registration_exception(e, request)
        except Exception as e:
            return self._handle_unexpected_error(e, request)

    def _handle_registration_exception(self, error: BaseRegistrationException, request: Request) -> JSONResponse:
        self.logger.error(
            f"Registration exception: {error.error_code}",
            extra={
                "error_code": error.error_code,
                "status_code": error.status_code,
                "context": error.context,
                "path": str(request.url.path),
                "method": request.method
            }
        )
        return exception_response(error)

    def _handle_unexpected_error(self, error: Exception, request: Request) -> JSONResponse:
        self.logger.error(
            f"Unexpected error: {type(error).__name__}",
            extra={
                "error_type": type(error).__name__,
                "error_message": str(error),
                "path": str(request.url.path),
                "method": request.method
            },
            exc_info=True
        )
        return exception_response(error)


class SecurityMiddleware(BaseHTTPMiddleware):
    """Middleware for security headers and basic security checks."""

    MAX_REQUEST_BYTES = 100 * 1024 * 1024

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = get_logger("security")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        self._check_request_security(request)

        response = await call_next(request)

        path = str(request.url.path)
        if path.startswith("/docs") or path.startswith("/redoc") or path.startswith("/openapi"):
            self._add_basic_security_headers(response)
        else:
            self._add_security_headers(response)

        return response

    def _check_request_security(self, request: Request) -> None:
        """Log suspicious paths and oversized bodies; never blocks the request."""
        path = str(request.url.path)
        for pattern in ("../", "..\\", "<script", "javascript:"):
            if pattern in path.lower():
                log_security_event(
                    event_type="SUSPICIOUS_PATH",
                    ip_address=request.client.host if request.client else None,
                    details={"path": path, "pattern": pattern}
                )
                break

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.MAX_REQUEST_BYTES:
            log_security_event(
                event_type="LARGE_REQUEST",
                ip_address=request.client.host if request.client else None,
                details={"content_length": content_length}
            )

    def _add_security_headers(self, response: Response) -> None:
        security_headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Referrer-Policy": "strict-origin-when-cross-origin",
        }
        for header, value in security_headers.items():
            response.headers[header] = value

    def _add_basic_security_headers(self, response: Response) -> None:
        basic_headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "SAMEORIGIN",  # Less restrictive for docs
        }
        for header, value in basic_headers.items():
            response.headers[header] = value


def setup_middleware(app) -> None:
    """Setup all middleware for the application."""
    # Last added is executed first
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(SecurityMiddleware)
    app.add_middleware(RequestTrackingMiddleware)
