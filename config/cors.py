from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.config import settings


def configure_cors(app: FastAPI) -> None:
    """Allow the registration form origin(s) to post multipart data."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
