"""Multi-part key edit: rename, translations, tags and screenshots at once."""

import logging
from datetime import UTC, datetime
from typing import cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from glossa.activity.signals import key_complex_edited
from glossa.database.core import DatabaseService
from glossa.exceptions import ValidationError
from glossa.keys.models import Key, Translation
from glossa.keys.screenshots import FileChanges, ScreenshotService
from glossa.keys.service import KeyService
from glossa.projects.models import Language
from glossa.security.context import CallerContext
from glossa.security.service import SecurityService
from glossa.web.models.keys import ComplexEditKeyDto

logger = logging.getLogger(__name__)


class KeyComplexEditHelper:
    """Applies a ``ComplexEditKeyDto`` to one key in a single transaction.

    The edit runs in three phases. First every part of the request is validated,
    then the permission for each aspect that actually changes is checked, and
    only then are the changes applied. Aspects that stay the same need no
    permission, so a translator may resubmit a key's current name.
    """

    def __init__(
        self,
        database_service: DatabaseService,
        security_service: SecurityService,
        screenshot_service: ScreenshotService,
        key_service: KeyService,
    ) -> None:
        self.database_service = database_service
        self.security_service = security_service
        self.screenshot_service = screenshot_service
        self.key_service = key_service

    async def do_complex_edit(
        self, ctx: CallerContext, key_id: int, dto: ComplexEditKeyDto
    ) -> Key:
        """Edit the key and return it with its data reloaded.

        Raises:
            NotFoundError: The key or a referenced uploaded image does not exist
            ScopeError: The key belongs to another project
            ValidationError: Invalid name, language, tag or screenshot reference
            PermissionDeniedError: The caller lacks the right for a changed aspect
        """
        file_changes = FileChanges()
        async with self.database_service.get_async_db() as session:
            try:
                key = await self.key_service.load_key_with_data(session, key_id)
                self.key_service.check_in_project(key, ctx.project_id)

                # Validate
                name = self.key_service.validate_key_name(dto.name)
                is_renamed = name != key.name
                if is_renamed:
                    await self.key_service.ensure_name_available(
                        session, ctx.project_id, name, exclude_key_id=key_id
                    )

                requested = dto.translations or {}
                languages = await self.key_service.load_languages(
                    session, ctx.project_id, requested.keys()
                )
                modified_translations = {
                    tag: text
                    for tag, text in requested.items()
                    if _current_text(key, languages[tag]) != text
                }

                tag_names = None
                if dto.tags is not None:
                    tag_names = self.key_service.validate_tag_names(dto.tags)
                    if set(tag_names) == {tag.name for tag in key.tags}:
                        tag_names = None

                delete_ids = list(dict.fromkeys(dto.screenshot_ids_to_delete or []))
                if delete_ids:
                    self.screenshot_service.check_screenshots_of_key(key, delete_ids)
                upload_ids = dto.screenshot_uploaded_image_ids or []

                # Authorize
                if modified_translations:
                    self.security_service.check_language_translate_permission(
                        ctx, [languages[tag].id for tag in modified_translations]
                    )
                if tag_names is not None:
                    self.security_service.check_tags_edit_permission(ctx)
                if upload_ids:
                    self.security_service.check_screenshots_upload_permission(ctx)
                if delete_ids:
                    self.security_service.check_screenshots_delete_permission(ctx)
                if is_renamed:
                    self.security_service.check_keys_edit_permission(ctx)

                # Apply
                if is_renamed:
                    key.name = name
                for tag, text in modified_translations.items():
                    _set_translation(key, languages[tag], text)
                removed_tag_ids: set[int | None] = set()
                if tag_names is not None:
                    new_tags = await self.key_service.resolve_tags(
                        session, ctx.project_id, tag_names
                    )
                    removed_tag_ids = {tag.id for tag in key.tags if tag not in new_tags}
                    key.tags = new_tags
                if delete_ids:
                    file_changes.merge(self.screenshot_service.remove_screenshots(key, delete_ids))
                if upload_ids:
                    file_changes.merge(
                        await self.screenshot_service.attach_uploaded_images(
                            session, key, upload_ids, ctx.principal
                        )
                    )

                changed = (
                    is_renamed
                    or modified_translations
                    or tag_names is not None
                    or delete_ids
                    or upload_ids
                )
                if changed:
                    key.updated_at = datetime.now(UTC)
                    await session.flush()
                    await self.key_service.delete_orphan_tags(session, removed_tag_ids)
                    key_complex_edited.send(self, session=session, ctx=ctx, key_ids=[key_id])
                    await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ValidationError(
                    f"Key '{dto.name}' already exists", code="key_exists", params=[dto.name]
                ) from e
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Error in complex edit of key")
                raise

        self.screenshot_service.apply_file_changes(file_changes)
        logger.info("Complex edit of key %s in project %s", key_id, ctx.project_id)
        return await self.key_service.get_with_data(key_id)


def _current_text(key: Key, language: Language) -> str | None:
    translation = key.translation_for(cast(int, language.id))
    return translation.text if translation is not None else None


def _set_translation(key: Key, language: Language, text: str | None) -> None:
    """Set, replace or, for ``None``, remove the key's text in one language."""
    translation = key.translation_for(cast(int, language.id))
    if text is None:
        if translation is not None:
            key.translations.remove(translation)
    elif translation is not None:
        translation.text = text
    else:
        key.translations.append(Translation(language_id=language.id, language=language, text=text))
