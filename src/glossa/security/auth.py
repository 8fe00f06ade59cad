"""Authentication of API callers.

Two credential types are accepted: project API keys sent in a header, and
HTTP Basic credentials of a user. Both resolve to a ``Principal``; the
principal plus the addressed project resolve to a ``CallerContext``.
"""

import logging
from typing import cast

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from glossa.database.core import DatabaseService
from glossa.exceptions import (
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from glossa.projects.models import ApiKey, Project, ProjectPermission, User
from glossa.security.context import CallerContext, Principal

logger = logging.getLogger(__name__)

# Password hashing context using Argon2
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


class AuthService:
    """Resolves credentials into principals and caller contexts."""

    def __init__(self, database_service: DatabaseService) -> None:
        self.database_service = database_service

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify password against its Argon2 hash."""
        return pwd_context.verify(password, password_hash)

    async def authenticate(
        self,
        api_key_token: str | None = None,
        username: str | None = None,
        password: str | None = None,
    ) -> Principal:
        """Authenticate by API key token, falling back to username and password.

        Raises:
            AuthenticationError: No credentials were supplied or they are invalid
        """
        if api_key_token:
            return await self._authenticate_api_key(api_key_token)
        if username is not None and password is not None:
            return await self._authenticate_user(username, password)
        raise AuthenticationError("Authentication required")

    async def _authenticate_api_key(self, token: str) -> Principal:
        async with self.database_service.get_async_db() as session:
            try:
                stmt = select(ApiKey, User).join(User).where(
                    ApiKey.key_hash == ApiKey.hash_token(token)
                )
                row = (await session.execute(stmt)).first()
            except SQLAlchemyError:
                logger.exception("Error looking up API key")
                raise
        if row is None:
            raise AuthenticationError("Invalid API key", code="invalid_api_key")
        api_key, user = row
        return Principal(user_id=cast(int, user.id), username=user.username, api_key=api_key)

    async def _authenticate_user(self, username: str, password: str) -> Principal:
        async with self.database_service.get_async_db() as session:
            try:
                result = await session.execute(select(User).where(User.username == username))
                user = result.scalar_one_or_none()
            except SQLAlchemyError:
                logger.exception("Error looking up user")
                raise
        if user is None or not self.verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid username or password", code="bad_credentials")
        return Principal(user_id=cast(int, user.id), username=user.username)

    async def build_context(self, principal: Principal, project_id: int | None) -> CallerContext:
        """Resolve the project a request addresses and the principal's permission on it.

        API keys are bound to one project, so the project id may be omitted for them;
        an explicit id that differs from the key's project is rejected.
        """
        if principal.api_key is not None:
            if project_id is None:
                project_id = principal.api_key.project_id
            elif project_id != principal.api_key.project_id:
                raise PermissionDeniedError(
                    "API key does not belong to this project",
                    code="api_key_project_mismatch",
                    params=[project_id],
                )
        elif project_id is None:
            raise ValidationError("Project not specified", code="project_not_selected")

        async with self.database_service.get_async_db() as session:
            try:
                project = await session.get(Project, project_id)
                if project is None:
                    raise NotFoundError(
                        "Project not found", code="project_not_found", params=[project_id]
                    )
                result = await session.execute(
                    select(ProjectPermission).where(
                        ProjectPermission.user_id == principal.user_id,
                        ProjectPermission.project_id == project_id,
                    )
                )
                permission = result.scalar_one_or_none()
            except SQLAlchemyError:
                logger.exception("Error resolving caller context")
                raise
        return CallerContext(principal=principal, project=project, permission=permission)
