"""
FastAPI application entrypoint for the banking assistant export service.
"""

from __future__ import annotations

from fastapi import FastAPI

from bankassist.api.routes import router as api_router
from bankassist.core.config import get_settings
from bankassist.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Banking Assistant Report Export",
        version="0.1.0",
        description="Loan and financial statement analysis with paginated PDF export.",
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
