import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from config.config import settings, tags_metadata
from config.cors import configure_cors
from dependencies import get_supabase_connection

from common.logging import setup_logging, get_logger
from common.middleware import setup_middleware
from common.exceptions import BaseRegistrationException
from common.responses import create_error_response, exception_response

setup_logging(
    level=settings.log_level,
    format_type=settings.log_format
)

logger = get_logger("main")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    connection = get_supabase_connection()
    connection.connect()
    try:
        yield
    finally:
        connection.close()


app = FastAPI(
    title="User Registration API",
    version="1.0.0",
    description="User registration with document uploads, backed by Supabase",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

setup_middleware(app)
configure_cors(app)


@app.get("/",
    summary="Root endpoint",
    description="Simple health check and API info"
)
async def root():
    """Root endpoint for basic health check."""
    return {
        "message": "User Registration API",
        "version": "1.0.0",
        "status": "healthy",
        "docs": "/docs",
    }


@app.exception_handler(BaseRegistrationException)
async def registration_exception_handler(request: Request, exc: BaseRegistrationException):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"Registration exception: {exc.error_code}", extra={
        "error_code": exc.error_code,
        "context": exc.context,
        "path": str(request.url.path),
        "method": request.method
    })
    return exception_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(x) for x in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    logger.warning("Request validation failed", extra={
        "path": str(request.url.path),
        "method": request.method,
        "error_count": len(errors)
    })
    return create_error_response(
        error_code="INVALID_REQUEST",
        message="Invalid data received",
        status_code=400,
        context={"errors": errors}
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded: {exc.detail}", extra={
        "path": str(request.url.path),
        "client_ip": request.client.host if request.client else None
    })
    return create_error_response(
        error_code="RATE_LIMIT_EXCEEDED",
        message=f"Rate limit exceeded: {exc.detail}",
        status_code=429
    )


# Import routers
from api.register import router as register_router, limiter as register_limiter
from api.health import router as health_router

app.state.limiter = register_limiter

app.include_router(register_router, prefix="/api")
app.include_router(health_router, prefix="/api")

# Locally stored uploads are served as /<upload_folder>/<name>
if settings.serve_public_files:
    uploads_dir = Path(settings.public_root) / settings.upload_folder
    uploads_dir.mkdir(parents=True, exist_ok=True)
    app.mount(f"/{settings.upload_folder}", StaticFiles(directory=uploads_dir), name="uploads")

if __name__ == "__main__":
    import uvicorn
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
