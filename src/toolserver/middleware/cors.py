"""CORS middleware configuration."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toolserver.middleware.logging import REQUEST_ID_HEADER


def configure_cors(app: FastAPI, allowed_origins: list[str]) -> None:
    """Add CORS middleware with specified allowed origins.

    Credentials are only allowed when origins are listed explicitly.

    Args:
        app: FastAPI application instance.
        allowed_origins: List of allowed origin URLs, or ["*"].
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
