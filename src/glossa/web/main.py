"""Glossa web application entry point for uvicorn."""

import logging

import click
import uvicorn

from glossa.config import ConfigManager
from glossa.system.structlog_configurator import configure_structlog
from glossa.web.core.factory import create_app

# Configure logging before anything else imports and creates loggers
config_manager = ConfigManager()
config = config_manager.load()
configure_structlog(config)

# Disable uvicorn access logger since we have our own structured logging middleware
uvicorn_access_logger = logging.getLogger("uvicorn.access")
uvicorn_access_logger.disabled = True

uvicorn_error_logger = logging.getLogger("uvicorn.error")
uvicorn_error_logger.setLevel(logging.INFO)

app = create_app()


@click.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind")
@click.option("--port", default=8000, show_default=True, type=int, help="Port to listen on")
def serve(host: str, port: int) -> None:
    """Run the Glossa API server."""
    uvicorn.run(app, host=host, port=port, access_log=False)
