"""Middleware registration."""

from fastapi import FastAPI

from focustrack.config import Settings
from focustrack.middleware.error_handler import setup_error_handlers
from focustrack.middleware.logging import setup_logging
from focustrack.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure logging, error handlers and request-id propagation."""
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
