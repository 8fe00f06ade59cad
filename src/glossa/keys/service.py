"""Lifecycle of localization keys: create, edit, delete, page and import.

Every mutating operation receives the caller's context explicitly and runs in a
single transaction. All validation and permission checks complete before the
commit, so a failure never leaves a partial change behind.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import cast

from sqlalchemy import delete, exists, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from glossa.activity.signals import key_created, key_edited, keys_deleted, keys_imported
from glossa.config.models import GlossaConfig
from glossa.database.core import DatabaseService
from glossa.exceptions import NotFoundError, ScopeError, ValidationError
from glossa.keys.models import Key, KeyTagLink, Tag, Translation
from glossa.keys.paging import SORT_DIRECTIONS, Page, PageRequest
from glossa.keys.screenshots import FileChanges, ScreenshotService
from glossa.projects.models import Language
from glossa.security.context import CallerContext
from glossa.security.service import SecurityService
from glossa.web.models.keys import CreateKeyDto, EditKeyDto, ImportKeysItemDto

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 100

SORTABLE_COLUMNS = {
    "id": Key.id,
    "name": Key.name,
}


def key_data_options() -> tuple:
    """Loader options for a key with translations, tags and screenshots."""
    return (
        selectinload(Key.translations).selectinload(Translation.language),  # type: ignore[arg-type]
        selectinload(Key.tags),  # type: ignore[arg-type]
        selectinload(Key.screenshots),  # type: ignore[arg-type]
    )


def _key_not_found(key_id: int) -> NotFoundError:
    return NotFoundError(f"Key {key_id} not found", code="key_not_found", params=[key_id])


def _key_exists(name: str) -> ValidationError:
    return ValidationError(f"Key '{name}' already exists", code="key_exists", params=[name])


@dataclass
class ImportResult:
    """Names created and skipped by an import."""

    created: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class KeyService:
    """Validates and executes key operations within the caller's project."""

    def __init__(
        self,
        database_service: DatabaseService,
        security_service: SecurityService,
        screenshot_service: ScreenshotService,
        config: GlossaConfig,
    ) -> None:
        self.database_service = database_service
        self.security_service = security_service
        self.screenshot_service = screenshot_service
        self.config = config

    # ==================== Invariants and validation ====================

    @staticmethod
    def check_in_project(key: Key, project_id: int) -> None:
        """Raise ScopeError unless the key belongs to the given project."""
        if key.project_id != project_id:
            raise ScopeError(
                f"Key {key.id} does not belong to project {project_id}",
                params=[key.id],
            )

    @staticmethod
    def validate_key_name(name: str | None) -> str:
        if name is None or not name.strip():
            raise ValidationError("Key name must not be blank", code="key_name_blank")
        return name

    @staticmethod
    def validate_tag_names(names: Iterable[str]) -> list[str]:
        """Strip, de-duplicate and validate tag names, keeping their order."""
        cleaned: list[str] = []
        for raw in names:
            name = raw.strip()
            if not name:
                raise ValidationError("Tag name must not be blank", code="tag_name_blank")
            if len(name) > MAX_TAG_LENGTH:
                raise ValidationError(
                    f"Tag name longer than {MAX_TAG_LENGTH} characters",
                    code="tag_name_too_long",
                    params=[name],
                )
            if name not in cleaned:
                cleaned.append(name)
        return cleaned

    # ==================== Session-level helpers ====================

    async def load_key_with_data(self, session: AsyncSession, key_id: int) -> Key:
        stmt = (
            select(Key)
            .where(Key.id == key_id)
            .options(*key_data_options())
            .execution_options(populate_existing=True)
        )
        key = (await session.execute(stmt)).scalar_one_or_none()
        if key is None:
            raise _key_not_found(key_id)
        return key

    async def ensure_name_available(
        self,
        session: AsyncSession,
        project_id: int,
        name: str,
        exclude_key_id: int | None = None,
    ) -> None:
        stmt = select(Key.id).where(Key.project_id == project_id, Key.name == name)
        if exclude_key_id is not None:
            stmt = stmt.where(Key.id != exclude_key_id)
        if (await session.execute(stmt)).first() is not None:
            raise _key_exists(name)

    async def existing_key_names(
        self, session: AsyncSession, project_id: int, names: Iterable[str]
    ) -> set[str]:
        result = await session.execute(
            select(Key.name).where(
                Key.project_id == project_id,
                Key.name.in_(set(names)),  # type: ignore[attr-defined]
            )
        )
        return set(result.scalars())

    async def load_languages(
        self, session: AsyncSession, project_id: int, tags: Iterable[str]
    ) -> dict[str, Language]:
        """Map language tags to project languages.

        Raises:
            ValidationError: A tag is not a language of the project
        """
        wanted = set(tags)
        if not wanted:
            return {}
        result = await session.execute(
            select(Language).where(Language.project_id == project_id, Language.tag.in_(wanted))
        )
        languages = {language.tag: language for language in result.scalars()}
        unknown = sorted(wanted - languages.keys())
        if unknown:
            raise ValidationError(
                "Language not found in project",
                code="language_not_found",
                params=unknown,
            )
        return languages

    async def resolve_tags(
        self, session: AsyncSession, project_id: int, names: Sequence[str]
    ) -> list[Tag]:
        """Return project tags with the given names, creating missing ones."""
        if not names:
            return []
        result = await session.execute(
            select(Tag).where(Tag.project_id == project_id, Tag.name.in_(names))
        )
        existing = {tag.name: tag for tag in result.scalars()}
        tags = []
        for name in names:
            tag = existing.get(name)
            if tag is None:
                tag = Tag(project_id=project_id, name=name)
                session.add(tag)
                existing[name] = tag
            tags.append(tag)
        return tags

    async def delete_orphan_tags(
        self, session: AsyncSession, tag_ids: Iterable[int | None]
    ) -> None:
        """Remove tags among ``tag_ids`` that no longer label any key."""
        ids = [tag_id for tag_id in set(tag_ids) if tag_id is not None]
        if not ids:
            return
        orphan_ids = (
            await session.execute(
                select(Tag.id).where(
                    Tag.id.in_(ids),  # type: ignore[union-attr]
                    ~exists().where(KeyTagLink.tag_id == Tag.id),
                )
            )
        ).scalars().all()
        if orphan_ids:
            stmt = delete(Tag).where(Tag.id.in_(orphan_ids))  # type: ignore[union-attr]
            await session.execute(stmt)
            logger.debug("Removed orphaned tags %s", list(orphan_ids))

    def _add_translations(
        self,
        key: Key,
        translations: dict[str, str | None],
        languages: dict[str, Language],
    ) -> None:
        for tag, text in translations.items():
            if text is None:
                continue
            language = languages[tag]
            key.translations.append(
                Translation(language_id=language.id, language=language, text=text)
            )

    # ==================== Queries ====================

    async def get(self, key_id: int) -> Key:
        """Get a key by id without nested data."""
        async with self.database_service.get_async_db() as session:
            try:
                key = await session.get(Key, key_id)
            except SQLAlchemyError:
                logger.exception("Error retrieving key by ID")
                raise
        if key is None:
            raise _key_not_found(key_id)
        return key

    async def get_with_data(self, key_id: int) -> Key:
        """Get a key with translations, tags and screenshots loaded."""
        async with self.database_service.get_async_db() as session:
            try:
                return await self.load_key_with_data(session, key_id)
            except SQLAlchemyError:
                logger.exception("Error retrieving key with data")
                raise

    async def get_paged(self, project_id: int, page_request: PageRequest) -> Page[Key]:
        """Return one page of a project's keys in a deterministic order.

        The key id is always the last ordering criterion, so pages of an unchanged
        project never repeat or skip keys.
        """
        if page_request.page < 0:
            raise ValidationError(
                "Page must not be negative", code="invalid_page", params=[page_request.page]
            )
        max_size = self.config.pagination.max_page_size
        if not 1 <= page_request.size <= max_size:
            raise ValidationError(
                f"Page size must be between 1 and {max_size}",
                code="invalid_page_size",
                params=[page_request.size],
            )

        order_by = []
        sorted_fields = set()
        for order in page_request.sort:
            column = SORTABLE_COLUMNS.get(order.field)
            if column is None:
                raise ValidationError(
                    f"Cannot sort by '{order.field}'",
                    code="invalid_sort_property",
                    params=[order.field],
                )
            if order.direction not in SORT_DIRECTIONS:
                raise ValidationError(
                    f"Unknown sort direction '{order.direction}'",
                    code="invalid_sort_direction",
                    params=[order.direction],
                )
            if order.field in sorted_fields:
                continue
            sorted_fields.add(order.field)
            order_by.append(column.desc() if order.direction == "desc" else column.asc())
        if "id" not in sorted_fields:
            order_by.append(Key.id.asc())  # type: ignore[union-attr]

        async with self.database_service.get_async_db() as session:
            try:
                total = (
                    await session.execute(
                        select(func.count()).select_from(Key).where(Key.project_id == project_id)
                    )
                ).scalar_one()
                result = await session.execute(
                    select(Key)
                    .where(Key.project_id == project_id)
                    .order_by(*order_by)
                    .offset(page_request.offset)
                    .limit(page_request.size)
                )
                items = list(result.scalars())
            except SQLAlchemyError:
                logger.exception("Error retrieving key page")
                raise
        return Page(
            items=items, number=page_request.page, size=page_request.size, total_elements=total
        )

    # ==================== Mutations ====================

    async def create(self, ctx: CallerContext, dto: CreateKeyDto) -> Key:
        """Create a key in the caller's project.

        Raises:
            ValidationError: Blank or duplicate name, unknown language, bad tag
            PermissionDeniedError: Screenshots referenced without the upload permission
            NotFoundError: A referenced uploaded image does not exist
        """
        name = self.validate_key_name(dto.name)
        if dto.screenshot_uploaded_image_ids is not None:
            self.security_service.check_screenshots_upload_permission(ctx)
        tag_names = self.validate_tag_names(dto.tags or [])
        translations = dto.translations or {}

        async with self.database_service.get_async_db() as session:
            try:
                await self.ensure_name_available(session, ctx.project_id, name)
                languages = await self.load_languages(session, ctx.project_id, translations.keys())

                key = Key(project_id=ctx.project_id, name=name)
                session.add(key)
                self._add_translations(key, translations, languages)
                key.tags = await self.resolve_tags(session, ctx.project_id, tag_names)
                file_changes = await self.screenshot_service.attach_uploaded_images(
                    session, key, dto.screenshot_uploaded_image_ids or [], ctx.principal
                )
                await session.flush()

                key_created.send(self, session=session, ctx=ctx, key_ids=[cast(int, key.id)])
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise _key_exists(name) from e
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Error creating key")
                raise

        self.screenshot_service.apply_file_changes(file_changes)
        logger.info("Created key %s in project %s", key.id, ctx.project_id)
        return await self.get_with_data(key.id)

    async def edit(self, ctx: CallerContext, key_id: int, dto: EditKeyDto) -> Key:
        """Rename a key of the caller's project.

        Raises:
            NotFoundError: The key does not exist
            ScopeError: The key belongs to another project
            ValidationError: Blank name or name used by another key
        """
        async with self.database_service.get_async_db() as session:
            try:
                key = await session.get(Key, key_id)
                if key is None:
                    raise _key_not_found(key_id)
                self.check_in_project(key, ctx.project_id)
                name = self.validate_key_name(dto.name)

                if name != key.name:
                    await self.ensure_name_available(
                        session, ctx.project_id, name, exclude_key_id=key_id
                    )
                    key.name = name
                    key.updated_at = datetime.now(UTC)
                    key_edited.send(self, session=session, ctx=ctx, key_ids=[key_id])
                    await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise _key_exists(dto.name) from e
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Error editing key")
                raise
        return key

    async def delete_multiple(self, ctx: CallerContext, key_ids: Iterable[int]) -> None:
        """Delete keys of the caller's project, all or none.

        Every id is resolved and checked against the project before anything is
        deleted.

        Raises:
            NotFoundError: Some ids do not exist
            ScopeError: A key belongs to another project (names the first such id)
        """
        ids = list(dict.fromkeys(key_ids))
        if not ids:
            return

        async with self.database_service.get_async_db() as session:
            try:
                result = await session.execute(
                    select(Key)
                    .where(Key.id.in_(ids))  # type: ignore[union-attr]
                    .options(*key_data_options())
                )
                keys = {key.id: key for key in result.scalars()}

                missing = [key_id for key_id in ids if key_id not in keys]
                if missing:
                    raise NotFoundError("Keys not found", code="key_not_found", params=missing)
                for key_id in ids:
                    self.check_in_project(keys[key_id], ctx.project_id)

                tag_ids = {tag.id for key in keys.values() for tag in key.tags}
                file_changes = FileChanges(
                    delete=[s.filename for key in keys.values() for s in key.screenshots]
                )
                for key in keys.values():
                    await session.delete(key)
                await session.flush()
                await self.delete_orphan_tags(session, tag_ids)

                keys_deleted.send(self, session=session, ctx=ctx, key_ids=ids)
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Error deleting keys")
                raise

        self.screenshot_service.apply_file_changes(file_changes)
        logger.info("Deleted keys %s from project %s", ids, ctx.project_id)

    async def import_keys(
        self, ctx: CallerContext, items: Sequence[ImportKeysItemDto]
    ) -> ImportResult:
        """Create keys that do not exist yet; existing keys are left untouched.

        Items naming an existing key are skipped without validation. When a name
        repeats inside the payload, its first occurrence wins.

        Raises:
            ValidationError: A new key has a blank name, bad tag or unknown language
        """
        outcome = ImportResult()
        if not items:
            return outcome

        async with self.database_service.get_async_db() as session:
            try:
                existing = await self.existing_key_names(
                    session, ctx.project_id, {item.name for item in items}
                )

                new_items: dict[str, ImportKeysItemDto] = {}
                for item in items:
                    if item.name in existing or item.name in new_items:
                        outcome.skipped.append(item.name)
                        continue
                    self.validate_key_name(item.name)
                    new_items[item.name] = item

                tag_names = {
                    name: self.validate_tag_names(item.tags or [])
                    for name, item in new_items.items()
                }
                languages = await self.load_languages(
                    session,
                    ctx.project_id,
                    {tag for item in new_items.values() for tag in item.translations},
                )

                all_tag_names = list(
                    dict.fromkeys(name for names in tag_names.values() for name in names)
                )
                tags = {
                    tag.name: tag
                    for tag in await self.resolve_tags(session, ctx.project_id, all_tag_names)
                }

                created_keys = []
                for name, item in new_items.items():
                    key = Key(project_id=ctx.project_id, name=name)
                    session.add(key)
                    self._add_translations(key, item.translations, languages)
                    key.tags = [tags[tag_name] for tag_name in tag_names[name]]
                    created_keys.append(key)
                    outcome.created.append(name)
                await session.flush()

                if created_keys:
                    keys_imported.send(
                        self,
                        session=session,
                        ctx=ctx,
                        key_ids=[key.id for key in created_keys],
                    )
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ValidationError(
                    "Imported keys were created concurrently",
                    code="key_exists",
                    params=outcome.created,
                ) from e
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Error importing keys")
                raise

        logger.info(
            "Imported keys into project %s: %d created, %d skipped",
            ctx.project_id,
            len(outcome.created),
            len(outcome.skipped),
        )
        return outcome
