"""Upload of images that can later be attached to keys as screenshots."""

import logging
from typing import Annotated

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, status

from glossa.keys.screenshots import ScreenshotService
from glossa.projects.models import ApiScope
from glossa.security.context import Principal
from glossa.security.service import SecurityService
from glossa.web.core.container import Container
from glossa.web.dependencies import get_principal
from glossa.web.models.images import (
    ImageUploadRequest,
    UploadedImageModel,
    to_uploaded_image_model,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/image-upload")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=UploadedImageModel)
@inject
async def upload_image(
    request: ImageUploadRequest,
    principal: Annotated[Principal, Depends(get_principal)],
    security_service: Annotated[SecurityService, Depends(Provide[Container.security_service])],
    screenshot_service: Annotated[
        ScreenshotService, Depends(Provide[Container.screenshot_service])
    ],
) -> UploadedImageModel:
    """Store a base64-encoded image for the authenticated user."""
    security_service.check_principal_scopes(principal, [ApiScope.SCREENSHOTS_UPLOAD])
    image = await screenshot_service.upload_image(principal, request.filename, request.data)
    return to_uploaded_image_model(image)
