"""Request dependencies resolving the caller and enforcing route-level access."""

from collections.abc import Awaitable, Callable, Iterable
from typing import Annotated

from dependency_injector.wiring import Provide, inject
from fastapi import Depends, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from glossa.config import GlossaConfig
from glossa.exceptions import ValidationError
from glossa.projects.models import ApiScope, ProjectPermissionType
from glossa.security.auth import AuthService
from glossa.security.context import CallerContext, Principal
from glossa.security.service import SecurityService
from glossa.web.core.container import Container

basic_auth = HTTPBasic(auto_error=False)


@inject
async def get_principal(
    request: Request,
    credentials: Annotated[HTTPBasicCredentials | None, Depends(basic_auth)],
    auth_service: Annotated[AuthService, Depends(Provide[Container.auth_service])],
    config: Annotated[GlossaConfig, Depends(Provide[Container.config])],
) -> Principal:
    """Authenticate the request by API key header or HTTP Basic credentials."""
    return await auth_service.authenticate(
        api_key_token=request.headers.get(config.api_key_header),
        username=credentials.username if credentials else None,
        password=credentials.password if credentials else None,
    )


@inject
async def get_caller_context(
    request: Request,
    principal: Annotated[Principal, Depends(get_principal)],
    auth_service: Annotated[AuthService, Depends(Provide[Container.auth_service])],
) -> CallerContext:
    """Resolve the project from the path, or from the API key when the path has none."""
    raw_project_id = request.path_params.get("project_id")
    project_id = None
    if raw_project_id is not None:
        try:
            project_id = int(raw_project_id)
        except ValueError as e:
            raise ValidationError(
                "Project id must be an integer", code="invalid_project_id"
            ) from e
    return await auth_service.build_context(principal, project_id)


@inject
async def get_security_service(
    security_service: Annotated[SecurityService, Depends(Provide[Container.security_service])],
) -> SecurityService:
    return security_service


def require_access(
    tier: ProjectPermissionType, scopes: Iterable[ApiScope] = ()
) -> Callable[..., Awaitable[CallerContext]]:
    """Build a dependency that checks the caller's tier and API key scopes."""
    required_scopes = tuple(scopes)

    async def dependency(
        ctx: Annotated[CallerContext, Depends(get_caller_context)],
        security_service: Annotated[SecurityService, Depends(get_security_service)],
    ) -> CallerContext:
        security_service.check_access(ctx, tier, required_scopes)
        return ctx

    return dependency
