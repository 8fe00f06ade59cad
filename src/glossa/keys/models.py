"""Database models for the keys domain."""

from datetime import UTC, datetime

from sqlalchemy import Column, String, Text, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from glossa.projects.models import Language


class KeyTagLink(SQLModel, table=True):
    """Association between keys and tags."""

    __tablename__: str = "key_tags"  # type: ignore[assignment]

    key_id: int | None = Field(default=None, foreign_key="keys.id", primary_key=True)
    tag_id: int | None = Field(default=None, foreign_key="tags.id", primary_key=True)


class Tag(SQLModel, table=True):
    """A project-wide label that can be attached to keys."""

    __tablename__: str = "tags"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    name: str = Field(sa_column=Column(String(100), nullable=False))

    keys: list["Key"] = Relationship(back_populates="tags", link_model=KeyTagLink)

    __table_args__ = (UniqueConstraint("project_id", "name", name="uq_tags_project_name"),)


class Key(SQLModel, table=True):
    """A localization key identified by its full path within one project."""

    __tablename__: str = "keys"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    name: str = Field(sa_column=Column(String(2000), nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    translations: list["Translation"] = Relationship(
        back_populates="key",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    tags: list[Tag] = Relationship(back_populates="keys", link_model=KeyTagLink)
    screenshots: list["Screenshot"] = Relationship(
        back_populates="key",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    __table_args__ = (UniqueConstraint("project_id", "name", name="uq_keys_project_name"),)

    def translation_for(self, language_id: int) -> "Translation | None":
        """Return the loaded translation for a language, if any."""
        for translation in self.translations:
            if translation.language_id == language_id:
                return translation
        return None


class Translation(SQLModel, table=True):
    """The text of a key in one project language."""

    __tablename__: str = "translations"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    key_id: int | None = Field(default=None, foreign_key="keys.id", index=True)
    language_id: int = Field(foreign_key="languages.id", index=True)
    text: str | None = Field(default=None, sa_column=Column(Text))

    key: Key | None = Relationship(back_populates="translations")
    language: Language = Relationship()

    __table_args__ = (
        UniqueConstraint("key_id", "language_id", name="uq_translations_key_language"),
    )


class Screenshot(SQLModel, table=True):
    """An image showing where a key is used."""

    __tablename__: str = "screenshots"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    key_id: int | None = Field(default=None, foreign_key="keys.id", index=True)
    filename: str = Field(sa_column=Column(String(255), nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    key: Key | None = Relationship(back_populates="screenshots")


class UploadedImage(SQLModel, table=True):
    """An image uploaded by a user and not yet attached to a key."""

    __tablename__: str = "uploaded_images"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    filename: str = Field(sa_column=Column(String(255), unique=True, nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
