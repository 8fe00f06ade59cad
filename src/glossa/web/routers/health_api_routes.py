"""Health check endpoints for monitoring service status."""

import logging
from datetime import UTC, datetime
from importlib.metadata import PackageNotFoundError, version
from typing import Annotated

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from glossa.database.core import DatabaseService
from glossa.system.path_resolver import PathResolver
from glossa.web.core.container import Container
from glossa.web.models.health import Liveness, Readiness, ReadinessChecks, ServiceHealth

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health")


def get_version() -> str:
    """Get the installed application version."""
    try:
        return version("glossa")
    except PackageNotFoundError:
        logger.warning("Could not determine installed glossa version")
        return "unknown"


def _timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@router.get("/", response_model=ServiceHealth)
async def health_check() -> ServiceHealth:
    """Check basic health status of the service."""
    return ServiceHealth(version=get_version(), timestamp=_timestamp())


@router.get("/live", response_model=Liveness)
async def liveness_check() -> Liveness:
    return Liveness()


@router.get("/ready", status_code=200, response_model=Readiness)
@inject
async def readiness_check(
    db_service: Annotated[DatabaseService, Depends(Provide[Container.database_service])],
    path_resolver: Annotated[PathResolver, Depends(Provide[Container.path_resolver])],
    response: Response,
) -> Readiness:
    """Check that the key database answers and screenshot storage is in place."""
    checks = ReadinessChecks(
        version=get_version(),
        screenshot_storage=path_resolver.get_screenshots_dir().is_dir(),
    )

    try:
        async with db_service.get_async_db() as session:
            await session.execute(text("SELECT 1"))
        checks.database = True
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", e)

    readiness = Readiness.from_checks(checks, _timestamp())
    if readiness.status == "not_ready":
        response.status_code = 503
    return readiness
