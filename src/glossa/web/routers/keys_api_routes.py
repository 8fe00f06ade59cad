"""Key management endpoints.

The router is included twice by the app factory: under
``/v2/projects/{project_id}`` and under ``/v2/projects`` where the project is
the one the API key belongs to.
"""

import logging
from typing import Annotated

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query, Response, status

from glossa.config import GlossaConfig
from glossa.exceptions import ValidationError
from glossa.keys.complex_edit import KeyComplexEditHelper
from glossa.keys.paging import PageRequest, SortOrder
from glossa.keys.service import KeyService
from glossa.projects.models import ApiScope, ProjectPermissionType
from glossa.security.context import CallerContext
from glossa.web.core.container import Container
from glossa.web.dependencies import require_access
from glossa.web.models.keys import (
    ComplexEditKeyDto,
    CreateKeyDto,
    DeleteKeysDto,
    EditKeyDto,
    ImportKeysDto,
    ImportKeysResultModel,
    KeyModel,
    KeyPageModel,
    KeyWithDataModel,
    to_key_model,
    to_key_page_model,
    to_key_with_data_model,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/keys")

ViewAccess = Annotated[
    CallerContext,
    Depends(require_access(ProjectPermissionType.VIEW, [ApiScope.TRANSLATIONS_VIEW])),
]
TranslateAccess = Annotated[
    CallerContext,
    Depends(require_access(ProjectPermissionType.TRANSLATE, [ApiScope.TRANSLATIONS_EDIT])),
]
EditAccess = Annotated[
    CallerContext,
    Depends(require_access(ProjectPermissionType.EDIT, [ApiScope.KEYS_EDIT])),
]


def parse_key_ids(raw: str) -> list[int]:
    """Parse a comma-separated list of key ids such as ``1,2,3``."""
    try:
        ids = [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as e:
        raise ValidationError(
            "Key ids must be integers", code="invalid_key_ids", params=[raw]
        ) from e
    if not ids:
        raise ValidationError("No key ids given", code="invalid_key_ids", params=[raw])
    return ids


@router.post("", status_code=status.HTTP_201_CREATED, response_model=KeyWithDataModel)
@router.post("/create", status_code=status.HTTP_201_CREATED, response_model=KeyWithDataModel)
@inject
async def create_key(
    dto: CreateKeyDto,
    ctx: EditAccess,
    key_service: Annotated[KeyService, Depends(Provide[Container.key_service])],
) -> KeyWithDataModel:
    """Create a key with optional translations, tags and screenshots."""
    key = await key_service.create(ctx, dto)
    return to_key_with_data_model(key)


@router.get("", response_model=KeyPageModel)
@inject
async def get_all_keys(
    ctx: ViewAccess,
    key_service: Annotated[KeyService, Depends(Provide[Container.key_service])],
    config: Annotated[GlossaConfig, Depends(Provide[Container.config])],
    page: int = Query(0, ge=0, description="Zero-based page number"),
    size: int | None = Query(None, ge=1, description="Items per page"),
    sort: Annotated[list[str] | None, Query(description="Sort as field,direction")] = None,
) -> KeyPageModel:
    """List the project's keys one page at a time."""
    page_request = PageRequest(
        page=page,
        size=size or config.pagination.default_page_size,
        sort=tuple(SortOrder.parse(value) for value in sort) if sort else (SortOrder("id"),),
    )
    result = await key_service.get_paged(ctx.project_id, page_request)
    return to_key_page_model(result)


@router.post("/import", response_model=ImportKeysResultModel)
@inject
async def import_keys(
    dto: ImportKeysDto,
    ctx: EditAccess,
    key_service: Annotated[KeyService, Depends(Provide[Container.key_service])],
) -> ImportKeysResultModel:
    """Create keys that do not exist yet, leaving existing keys unchanged."""
    result = await key_service.import_keys(ctx, dto.keys)
    return ImportKeysResultModel(created=result.created, skipped=result.skipped)


@router.put("/{key_id}/complex-update", response_model=KeyWithDataModel)
@inject
async def complex_edit_key(
    key_id: int,
    dto: ComplexEditKeyDto,
    ctx: TranslateAccess,
    complex_edit_helper: Annotated[
        KeyComplexEditHelper, Depends(Provide[Container.complex_edit_helper])
    ],
) -> KeyWithDataModel:
    """Rename, translate, retag and change screenshots of a key in one transaction."""
    key = await complex_edit_helper.do_complex_edit(ctx, key_id, dto)
    return to_key_with_data_model(key)


@router.put("/{key_id}", response_model=KeyModel)
@inject
async def edit_key(
    key_id: int,
    dto: EditKeyDto,
    ctx: EditAccess,
    key_service: Annotated[KeyService, Depends(Provide[Container.key_service])],
) -> KeyModel:
    """Rename a key."""
    key = await key_service.edit(ctx, key_id, dto)
    return to_key_model(key)


@router.delete("/{ids}", status_code=status.HTTP_204_NO_CONTENT)
@inject
async def delete_keys_by_path(
    ids: str,
    ctx: EditAccess,
    key_service: Annotated[KeyService, Depends(Provide[Container.key_service])],
) -> Response:
    """Delete the keys listed in the path, e.g. ``/keys/1,2,3``."""
    await key_service.delete_multiple(ctx, parse_key_ids(ids))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
@inject
async def delete_keys(
    dto: DeleteKeysDto,
    ctx: EditAccess,
    key_service: Annotated[KeyService, Depends(Provide[Container.key_service])],
) -> Response:
    """Delete the keys listed in the request body."""
    await key_service.delete_multiple(ctx, dto.ids)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
