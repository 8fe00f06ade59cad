"""Configuration models for Glossa.

This module contains all configuration-related Pydantic models used throughout the application.
"""

import re

from pydantic import BaseModel, Field, field_validator


class LoggingConfig(BaseModel):
    """Structlog-based logging configuration."""

    level: str = "INFO"
    json_logs: bool | None = None  # None = auto-detect based on environment
    include_caller: bool = False  # Include file:line info (useful for debugging)
    extra_fields: dict[str, str] = Field(default_factory=lambda: {"service": "glossa"})


class PaginationConfig(BaseModel):
    """Paging limits for list endpoints."""

    default_page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=1000, ge=1)


class UploadsConfig(BaseModel):
    """Limits for uploaded screenshot images."""

    max_image_bytes: int = Field(default=5 * 1024 * 1024, ge=1)
    allowed_extensions: list[str] = Field(
        default_factory=lambda: ["png", "jpg", "jpeg", "gif", "webp"]
    )

    @field_validator("allowed_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Store extensions lower-case and without a leading dot."""
        return [ext.lower().lstrip(".") for ext in v]


class GlossaConfig(BaseModel):
    """Configuration settings for the Glossa application."""

    site_name: str = "Glossa"

    # HTTP surface
    api_key_header: str = "X-API-Key"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    uploads: UploadsConfig = Field(default_factory=UploadsConfig)

    @field_validator("api_key_header")
    @classmethod
    def validate_api_key_header(cls, v: str) -> str:
        """Validate the header name is a legal HTTP token."""
        if not re.match(r"^[A-Za-z0-9-]+$", v):
            raise ValueError(
                f"Invalid API key header '{v}'. Must contain only letters, numbers and hyphens."
            )
        return v
