"""Web API contract models using Pydantic for validation."""

from glossa.web.models.images import ImageUploadRequest
from glossa.web.models.keys import (
    ComplexEditKeyDto,
    CreateKeyDto,
    DeleteKeysDto,
    EditKeyDto,
    ImportKeysDto,
    ImportKeysItemDto,
)

__all__ = [
    "ComplexEditKeyDto",
    "CreateKeyDto",
    "DeleteKeysDto",
    "EditKeyDto",
    "ImageUploadRequest",
    "ImportKeysDto",
    "ImportKeysItemDto",
]
