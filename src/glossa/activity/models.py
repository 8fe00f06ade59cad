"""Database models for recorded project activity."""

from datetime import UTC, datetime
from enum import StrEnum

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class ActivityType(StrEnum):
    """Kinds of key activity recorded per request."""

    CREATE_KEY = "CREATE_KEY"
    KEY_NAME_EDIT = "KEY_NAME_EDIT"
    COMPLEX_EDIT = "COMPLEX_EDIT"
    KEY_DELETE = "KEY_DELETE"
    IMPORT = "IMPORT"


class ActivityRevision(SQLModel, table=True):
    """One recorded change to the keys of a project."""

    __tablename__: str = "activity_revisions"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    user_id: int | None = Field(default=None, foreign_key="users.id")
    api_key_id: int | None = Field(default=None, foreign_key="api_keys.id")
    type: ActivityType
    key_ids: list[int] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
