"""Application lifespan management for startup and shutdown events."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from glossa.system.structlog_configurator import configure_structlog
from glossa.web.core.container import Container

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Context manager for application startup and shutdown events.

    Configures logging, creates the schema and file directories, mounts the
    screenshot directory and connects the activity listeners.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: Control back to the application for normal operation.
    """
    container: Container = app.container  # type: ignore[attr-defined]

    config = container.config()
    configure_structlog(config)

    path_resolver = container.path_resolver()
    file_manager = container.file_manager()
    file_manager.create_directory(path_resolver.get_screenshots_dir())
    file_manager.create_directory(path_resolver.get_uploads_dir())
    app.mount(
        "/screenshots",
        StaticFiles(directory=path_resolver.get_screenshots_dir()),
        name="screenshots",
    )

    database_service = container.database_service()
    await database_service.initialize()

    activity_recorder = container.activity_recorder()
    activity_recorder.register_listeners()

    logger.info("Glossa started")
    try:
        yield
    finally:
        logger.info("Shutting down Glossa...")
        activity_recorder.unregister_listeners()
        await database_service.dispose()
