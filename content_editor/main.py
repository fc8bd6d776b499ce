"""FastAPI entrypoint for the page content editor service."""

from fastapi import FastAPI

from content_editor.api.routes_content import router as content_router
from content_editor.api.routes_health import router as health_router
from content_editor.config import configure_logging, get_settings


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title="Page Content Editor",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    application.include_router(health_router)
    application.include_router(content_router)

    application.state.settings = settings
    return application


app = create_app()
