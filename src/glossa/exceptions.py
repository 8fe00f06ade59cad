"""Error taxonomy for key management operations.

Every error carries a machine readable ``code`` and optional ``params`` so the
web layer can render a stable error body without inspecting messages.
"""

from typing import Any


class GlossaError(Exception):
    """Base class for all domain errors raised by Glossa services."""

    default_code = "error"

    def __init__(
        self, message: str = "", code: str | None = None, params: list[Any] | None = None
    ):
        self.code = code or self.default_code
        self.params = list(params or [])
        self.message = message or self.code
        super().__init__(self.message)


class ValidationError(GlossaError):
    """Malformed or missing input (HTTP 400)."""

    default_code = "validation_error"


class AuthenticationError(GlossaError):
    """Missing or invalid credentials (HTTP 401)."""

    default_code = "unauthenticated"


class PermissionDeniedError(GlossaError):
    """Caller lacks a permission tier, API scope or capability (HTTP 403)."""

    default_code = "operation_not_permitted"


class ScopeError(PermissionDeniedError):
    """Entity does not belong to the caller's active project (HTTP 403)."""

    default_code = "entity_not_from_project"


class NotFoundError(GlossaError):
    """Referenced entity does not exist (HTTP 404)."""

    default_code = "not_found"
