"""Image upload API contract models."""

from datetime import datetime
from typing import cast

from pydantic import BaseModel, Field

from glossa.keys.models import UploadedImage


class ImageUploadRequest(BaseModel):
    """An image to stage for later attachment as a key screenshot."""

    filename: str = Field(..., min_length=1, max_length=255)
    data: str = Field(..., description="Base64-encoded image bytes")


class UploadedImageModel(BaseModel):
    id: int
    filename: str
    created_at: datetime


def to_uploaded_image_model(image: UploadedImage) -> UploadedImageModel:
    return UploadedImageModel(
        id=cast(int, image.id),
        filename=image.filename,
        created_at=image.created_at,
    )
