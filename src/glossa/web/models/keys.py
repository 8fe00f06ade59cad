"""Key-related API contract models and their entity mappings."""

from datetime import datetime
from typing import cast

from pydantic import BaseModel, Field

from glossa.keys.models import Key, Screenshot
from glossa.keys.paging import Page

# ==================== Request Models ====================


class CreateKeyDto(BaseModel):
    """Request to create a key, optionally with translations, tags and screenshots."""

    name: str = Field(..., max_length=2000, description="Full path of the key")
    translations: dict[str, str | None] | None = Field(
        None, description="Map of language tag to text"
    )
    tags: list[str] | None = None
    screenshot_uploaded_image_ids: list[int] | None = Field(
        None, description="Ids of uploaded images to attach as screenshots"
    )


class EditKeyDto(BaseModel):
    """Request to rename a key."""

    name: str = Field(..., max_length=2000)


class ComplexEditKeyDto(BaseModel):
    """Multi-part edit of one key applied in a single transaction."""

    name: str = Field(..., max_length=2000)
    translations: dict[str, str | None] | None = Field(
        None, description="Language tag to text; null removes the translation"
    )
    tags: list[str] | None = Field(None, description="Replaces the key's tags when present")
    screenshot_ids_to_delete: list[int] | None = None
    screenshot_uploaded_image_ids: list[int] | None = None


class DeleteKeysDto(BaseModel):
    """Ids of keys to delete."""

    ids: list[int] = Field(..., min_length=1)


class ImportKeysItemDto(BaseModel):
    """One key of an import payload."""

    name: str = Field(..., max_length=2000)
    translations: dict[str, str | None] = Field(default_factory=dict)
    tags: list[str] | None = None


class ImportKeysDto(BaseModel):
    """Keys to import; existing keys are left untouched."""

    keys: list[ImportKeysItemDto]


# ==================== Response Models ====================


class KeyModel(BaseModel):
    """A key without nested data."""

    id: int
    name: str


class TranslationViewModel(BaseModel):
    """A key's text in one language."""

    id: int
    text: str | None = None


class TagModel(BaseModel):
    id: int
    name: str


class ScreenshotModel(BaseModel):
    id: int
    filename: str
    file_url: str
    created_at: datetime


class KeyWithDataModel(BaseModel):
    """A key with its translations, tags and screenshots."""

    id: int
    name: str
    translations: dict[str, TranslationViewModel] = Field(
        default_factory=dict, description="Translations keyed by language tag"
    )
    tags: list[TagModel] = Field(default_factory=list)
    screenshots: list[ScreenshotModel] = Field(default_factory=list)


class PageMetadata(BaseModel):
    """Pagination metadata for list responses."""

    size: int = Field(..., description="Items per page")
    total_elements: int = Field(..., description="Total number of items")
    total_pages: int = Field(..., description="Total number of pages")
    number: int = Field(..., description="Current zero-based page number")


class KeyPageModel(BaseModel):
    """One page of keys."""

    keys: list[KeyModel]
    page: PageMetadata


class ImportKeysResultModel(BaseModel):
    """Names created and skipped by an import."""

    created: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


# ==================== Mappings ====================


def screenshot_url(filename: str) -> str:
    return f"/screenshots/{filename}"


def to_key_model(key: Key) -> KeyModel:
    return KeyModel(id=cast(int, key.id), name=key.name)


def to_screenshot_model(screenshot: Screenshot) -> ScreenshotModel:
    return ScreenshotModel(
        id=cast(int, screenshot.id),
        filename=screenshot.filename,
        file_url=screenshot_url(screenshot.filename),
        created_at=screenshot.created_at,
    )


def to_key_with_data_model(key: Key) -> KeyWithDataModel:
    """Map a key with loaded translations, tags and screenshots."""
    translations = {
        translation.language.tag: TranslationViewModel(id=translation.id, text=translation.text)
        for translation in key.translations
        if translation.id is not None
    }
    return KeyWithDataModel(
        id=cast(int, key.id),
        name=key.name,
        translations=translations,
        tags=[TagModel(id=tag.id, name=tag.name) for tag in sorted(key.tags, key=lambda t: t.name)],
        screenshots=[to_screenshot_model(s) for s in sorted(key.screenshots, key=lambda s: s.id)],
    )


def to_key_page_model(page: Page[Key]) -> KeyPageModel:
    return KeyPageModel(
        keys=[to_key_model(key) for key in page.items],
        page=PageMetadata(
            size=page.size,
            total_elements=page.total_elements,
            total_pages=page.total_pages,
            number=page.number,
        ),
    )
