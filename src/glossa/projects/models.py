"""Database models for projects and the principals allowed to work on them."""

import hashlib
from datetime import UTC, datetime
from enum import StrEnum

from sqlalchemy import JSON, Column, String, UniqueConstraint
from sqlmodel import Field, SQLModel


class ProjectPermissionType(StrEnum):
    """Permission tiers on a project, ordered VIEW < TRANSLATE < EDIT."""

    VIEW = "VIEW"
    TRANSLATE = "TRANSLATE"
    EDIT = "EDIT"

    @property
    def rank(self) -> int:
        """Position of the tier in the VIEW < TRANSLATE < EDIT ordering."""
        return _PERMISSION_RANKS[self]

    def satisfies(self, required: "ProjectPermissionType") -> bool:
        """Whether this tier is at least as strong as ``required``."""
        return self.rank >= required.rank


_PERMISSION_RANKS = {
    ProjectPermissionType.VIEW: 0,
    ProjectPermissionType.TRANSLATE: 1,
    ProjectPermissionType.EDIT: 2,
}


class ApiScope(StrEnum):
    """Capabilities an API key may be restricted to."""

    TRANSLATIONS_VIEW = "translations.view"
    TRANSLATIONS_EDIT = "translations.edit"
    KEYS_EDIT = "keys.edit"
    SCREENSHOTS_UPLOAD = "screenshots.upload"
    SCREENSHOTS_DELETE = "screenshots.delete"


class User(SQLModel, table=True):
    """A person who can be granted permissions on projects."""

    __tablename__: str = "users"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(sa_column=Column(String(100), unique=True, index=True, nullable=False))
    name: str = ""
    password_hash: str


class Project(SQLModel, table=True):
    """Namespace owning keys, languages, tags and permissions."""

    __tablename__: str = "projects"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(200), nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Language(SQLModel, table=True):
    """A language enabled in a project, addressed by its tag (e.g. ``en``, ``de-AT``)."""

    __tablename__: str = "languages"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    tag: str = Field(sa_column=Column(String(20), nullable=False))
    name: str = ""

    __table_args__ = (UniqueConstraint("project_id", "tag", name="uq_languages_project_tag"),)


class ProjectPermission(SQLModel, table=True):
    """A user's permission tier on one project."""

    __tablename__: str = "project_permissions"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    type: ProjectPermissionType = ProjectPermissionType.VIEW

    # Language ids a TRANSLATE user may edit; empty means every language
    translate_languages: list[int] = Field(default_factory=list, sa_column=Column(JSON))

    # Grants screenshot upload/delete below the EDIT tier
    screenshots_upload: bool = False

    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_permissions_user_project"),
    )

    @property
    def translate_language_ids(self) -> frozenset[int]:
        return frozenset(self.translate_languages or [])


class ApiKey(SQLModel, table=True):
    """A programmatic credential acting as its user, limited to one project and its scopes."""

    __tablename__: str = "api_keys"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    key_hash: str = Field(sa_column=Column(String(64), unique=True, index=True, nullable=False))
    scopes: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    description: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def scope_set(self) -> frozenset[ApiScope]:
        return frozenset(ApiScope(scope) for scope in self.scopes or [])

    @staticmethod
    def hash_token(token: str) -> str:
        """Digest stored in place of the raw token."""
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
