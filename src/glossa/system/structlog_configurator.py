"""Structlog-based logging configuration for Glossa.

This module provides structured logging configuration using structlog,
with static service context and git version tracking on every entry.

Supports different deployment targets:
- Docker: Uses stdout with JSON output
- Development: Configurable JSON or human-readable output
"""

import logging
import os
import subprocess
import sys
from collections.abc import Callable
from typing import Any

import structlog

from glossa.config.models import GlossaConfig


def is_docker_environment() -> bool:
    """Check if running in a Docker container."""
    return os.path.exists("/.dockerenv") or os.environ.get("DOCKER_CONTAINER") == "true"


def is_development_environment() -> bool:
    """Check whether GLOSSA_ENV selects development mode."""
    return os.environ.get("GLOSSA_ENV", "production") == "development"


def get_git_version() -> str:
    """Get the current git branch and commit hash for version logging.

    Returns version in format: branch@SHA[:8]
    """
    try:
        branch_result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        branch = branch_result.stdout.strip() if branch_result.returncode == 0 else "unknown"

        commit_result = subprocess.run(
            ["git", "rev-parse", "--short=8", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        commit = commit_result.stdout.strip() if commit_result.returncode == 0 else "unknown"

        return f"{branch}@{commit}"
    except (subprocess.TimeoutExpired, subprocess.SubprocessError, FileNotFoundError):
        return "unknown"


def get_deployment_environment() -> str:
    """Get deployment environment with 'unknown' fallback."""
    if is_docker_environment():
        return "docker"
    elif is_development_environment():
        return "development"
    else:
        return "unknown"


def _add_static_context(extra_fields: dict[str, str]) -> Callable:
    """Processor to add static context fields to all log entries."""

    def processor(
        logger: structlog.BoundLogger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict.update(extra_fields)
        return event_dict

    return processor


def _configure_processors(config: GlossaConfig, is_docker: bool, is_development: bool) -> list:
    """Configure structlog processors based on environment."""
    extra_fields = {
        "service": "glossa",
        "version": get_git_version(),
        "deployment": get_deployment_environment(),
        **config.logging.extra_fields,  # Allow config to override/add fields
    }
    if config.site_name:
        extra_fields["site_name"] = config.site_name

    processors = [
        structlog.contextvars.merge_contextvars,
        _add_static_context(extra_fields),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]

    if config.logging.include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder())

    # None means auto-detect: JSON in Docker, human-readable elsewhere
    use_json = config.logging.json_logs
    if use_json is None:
        use_json = is_docker and not is_development

    if is_development:
        dev_json_logs = os.environ.get("GLOSSA_JSON_LOGS", "false").lower() == "true"
        if dev_json_logs:
            use_json = True

    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    return processors


def _configure_handlers(config: GlossaConfig) -> None:
    """Route the root logger to stdout at the configured level."""
    root_logger = logging.getLogger()
    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)


def configure_structlog(config: GlossaConfig) -> None:
    """Configure structlog-based logging system.

    Args:
        config: The GlossaConfig instance containing logging settings.
    """
    is_docker = is_docker_environment()
    is_development = is_development_environment()

    processors = _configure_processors(config, is_docker, is_development)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, config.logging.level.upper(), logging.INFO)
        ),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configure_handlers(config)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Structured logging configured",
        git_version=get_git_version(),
        log_level=config.logging.level,
        environment=get_deployment_environment(),
        json_output=config.logging.json_logs,
    )
