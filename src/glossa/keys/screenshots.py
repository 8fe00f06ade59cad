"""Uploaded images and their promotion into key screenshots.

Database rows change inside the caller's transaction; files on disk are only
moved or removed after that transaction commits, through the returned
``FileChanges``.
"""

import base64
import binascii
import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePath

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from glossa.config.models import GlossaConfig
from glossa.database.core import DatabaseService
from glossa.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from glossa.keys.models import Key, Screenshot, UploadedImage
from glossa.security.context import Principal
from glossa.system.file_manager import FileManager

logger = logging.getLogger(__name__)


@dataclass
class FileChanges:
    """File operations to perform once the surrounding transaction has committed."""

    promote: list[str] = field(default_factory=list)
    delete: list[str] = field(default_factory=list)

    def merge(self, other: "FileChanges") -> None:
        self.promote.extend(other.promote)
        self.delete.extend(other.delete)


class ScreenshotService:
    """Stages uploaded images and turns them into screenshots of keys."""

    def __init__(
        self,
        database_service: DatabaseService,
        file_manager: FileManager,
        config: GlossaConfig,
    ) -> None:
        self.database_service = database_service
        self.file_manager = file_manager
        self.config = config

    async def upload_image(self, principal: Principal, filename: str, data: str) -> UploadedImage:
        """Decode and store an uploaded image for the principal.

        Args:
            principal: Owner of the upload
            filename: Original client filename, used only for its extension
            data: Base64-encoded image bytes

        Raises:
            ValidationError: Bad encoding, unsupported extension or oversized image
        """
        extension = PurePath(filename).suffix.lower().lstrip(".")
        if extension not in self.config.uploads.allowed_extensions:
            raise ValidationError(
                f"Unsupported image type '{extension}'",
                code="file_not_image",
                params=[filename],
            )
        try:
            image_bytes = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(
                "Image data is not valid base64", code="invalid_image_data"
            ) from e
        if not image_bytes:
            raise ValidationError("Image is empty", code="invalid_image_data")
        if len(image_bytes) > self.config.uploads.max_image_bytes:
            raise ValidationError(
                "Image exceeds the maximum upload size",
                code="file_too_big",
                params=[self.config.uploads.max_image_bytes],
            )

        stored_name = f"{uuid.uuid4().hex}.{extension}"
        self.file_manager.save_uploaded_image(stored_name, image_bytes)

        async with self.database_service.get_async_db() as session:
            try:
                image = UploadedImage(user_id=principal.user_id, filename=stored_name)
                session.add(image)
                await session.commit()
                await session.refresh(image)
            except SQLAlchemyError:
                await session.rollback()
                self.file_manager.delete_uploaded_image(stored_name)
                logger.exception("Error storing uploaded image")
                raise

        logger.info("Stored uploaded image %s for user %s", image.id, principal.username)
        return image

    async def attach_uploaded_images(
        self,
        session: AsyncSession,
        key: Key,
        image_ids: Iterable[int],
        principal: Principal,
    ) -> FileChanges:
        """Create screenshots on ``key`` from the principal's uploaded images.

        Raises:
            NotFoundError: An image id does not exist
            PermissionDeniedError: An image was uploaded by a different user
        """
        ids = list(dict.fromkeys(image_ids))
        changes = FileChanges()
        if not ids:
            return changes

        result = await session.execute(select(UploadedImage).where(UploadedImage.id.in_(ids)))
        images = {image.id: image for image in result.scalars()}

        missing = [image_id for image_id in ids if image_id not in images]
        if missing:
            raise NotFoundError(
                "Uploaded image not found", code="uploaded_image_not_found", params=missing
            )
        foreign = [image_id for image_id in ids if images[image_id].user_id != principal.user_id]
        if foreign:
            raise PermissionDeniedError(
                "Uploaded image belongs to another user",
                code="uploaded_image_not_owned",
                params=foreign,
            )

        for image_id in ids:
            image = images[image_id]
            key.screenshots.append(Screenshot(filename=image.filename))
            await session.delete(image)
            changes.promote.append(image.filename)
        return changes

    def check_screenshots_of_key(self, key: Key, screenshot_ids: Iterable[int]) -> None:
        """Raise ValidationError unless every id is a screenshot of ``key``."""
        known = {screenshot.id for screenshot in key.screenshots}
        unknown = sorted(set(screenshot_ids) - known)
        if unknown:
            raise ValidationError(
                "Screenshot does not belong to the key",
                code="screenshot_not_of_key",
                params=unknown,
            )

    def remove_screenshots(self, key: Key, screenshot_ids: Iterable[int]) -> FileChanges:
        """Detach screenshots from ``key``; orphan removal deletes their rows."""
        ids = set(screenshot_ids)
        self.check_screenshots_of_key(key, ids)
        changes = FileChanges()
        for screenshot in [s for s in key.screenshots if s.id in ids]:
            key.screenshots.remove(screenshot)
            changes.delete.append(screenshot.filename)
        return changes

    def apply_file_changes(self, changes: FileChanges) -> None:
        """Move promoted uploads and remove deleted screenshot files after commit."""
        for filename in changes.promote:
            try:
                self.file_manager.promote_uploaded_image(filename)
            except FileNotFoundError:
                logger.warning("Uploaded image file %s missing on disk", filename)
        for filename in changes.delete:
            self.file_manager.delete_screenshot(filename)
