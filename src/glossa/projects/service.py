"""Administration of users, projects, languages, permissions and API keys."""

import logging
import secrets
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from glossa.database.core import DatabaseService
from glossa.exceptions import NotFoundError, ValidationError
from glossa.projects.models import (
    ApiKey,
    ApiScope,
    Language,
    Project,
    ProjectPermission,
    ProjectPermissionType,
    User,
)
from glossa.security.auth import AuthService

logger = logging.getLogger(__name__)


class ProjectService:
    """Creates the entities that key operations run against."""

    def __init__(self, database_service: DatabaseService, auth_service: AuthService) -> None:
        self.database_service = database_service
        self.auth_service = auth_service

    async def create_user(self, username: str, password: str, name: str = "") -> User:
        user = User(
            username=username,
            name=name or username,
            password_hash=self.auth_service.hash_password(password),
        )
        return await self._add(user, f"User '{username}' already exists", "user_exists")

    async def create_project(self, name: str) -> Project:
        if not name.strip():
            raise ValidationError("Project name must not be blank", code="project_name_blank")
        return await self._add(Project(name=name), "Project already exists", "project_exists")

    async def add_language(self, project_id: int, tag: str, name: str = "") -> Language:
        await self._require(Project, project_id, "project_not_found")
        language = Language(project_id=project_id, tag=tag, name=name or tag)
        return await self._add(language, f"Language '{tag}' already exists", "language_exists")

    async def grant_permission(
        self,
        user_id: int,
        project_id: int,
        permission_type: ProjectPermissionType,
        translate_language_ids: Iterable[int] = (),
        screenshots_upload: bool = False,
    ) -> ProjectPermission:
        """Grant or replace a user's permission on a project."""
        await self._require(User, user_id, "user_not_found")
        await self._require(Project, project_id, "project_not_found")

        async with self.database_service.get_async_db() as session:
            try:
                result = await session.execute(
                    select(ProjectPermission).where(
                        ProjectPermission.user_id == user_id,
                        ProjectPermission.project_id == project_id,
                    )
                )
                permission = result.scalar_one_or_none()
                if permission is None:
                    permission = ProjectPermission(user_id=user_id, project_id=project_id)
                    session.add(permission)
                permission.type = permission_type
                permission.translate_languages = sorted(set(translate_language_ids))
                permission.screenshots_upload = screenshots_upload
                await session.commit()
                await session.refresh(permission)
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Error granting permission")
                raise

        logger.info(
            "Granted %s on project %s to user %s", permission_type, project_id, user_id
        )
        return permission

    async def create_api_key(
        self,
        user_id: int,
        project_id: int,
        scopes: Iterable[ApiScope],
        description: str = "",
    ) -> tuple[ApiKey, str]:
        """Create an API key and return it with its plain token.

        Only the token's hash is stored, so the token cannot be recovered later.
        """
        await self._require(User, user_id, "user_not_found")
        await self._require(Project, project_id, "project_not_found")

        token = secrets.token_urlsafe(32)
        api_key = ApiKey(
            user_id=user_id,
            project_id=project_id,
            key_hash=ApiKey.hash_token(token),
            scopes=sorted(str(scope) for scope in set(scopes)),
            description=description,
        )
        return await self._add(api_key, "API key collision", "api_key_exists"), token

    async def _require(self, model: type, entity_id: int, code: str) -> None:
        async with self.database_service.get_async_db() as session:
            if await session.get(model, entity_id) is None:
                raise NotFoundError(
                    f"{model.__name__} {entity_id} not found", code=code, params=[entity_id]
                )

    async def _add(self, entity, exists_message: str, exists_code: str):  # noqa: ANN001, ANN202
        async with self.database_service.get_async_db() as session:
            try:
                session.add(entity)
                await session.commit()
                await session.refresh(entity)
            except IntegrityError as e:
                await session.rollback()
                raise ValidationError(exists_message, code=exists_code) from e
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Error creating %s", type(entity).__name__)
                raise
        logger.info("Created %s %s", type(entity).__name__, entity.id)
        return entity
