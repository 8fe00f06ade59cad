"""Permission tier and API scope checks.

Tier checks look at the caller's ``ProjectPermission`` on the active project.
Scope checks only apply to API key callers and are evaluated independently, so
both must pass for an operation to proceed.
"""

import logging
from collections.abc import Iterable
from typing import cast

from glossa.exceptions import PermissionDeniedError
from glossa.projects.models import ApiScope, ProjectPermission, ProjectPermissionType
from glossa.security.context import CallerContext, Principal

logger = logging.getLogger(__name__)


class SecurityService:
    """Evaluates whether a caller may perform an operation on its project."""

    def check_project_permission(
        self, ctx: CallerContext, required: ProjectPermissionType
    ) -> None:
        """Require at least the given tier on the caller's project."""
        permission = ctx.permission
        if permission is None or not permission.type.satisfies(required):
            logger.info(
                "Permission tier %s denied for user %s on project %s",
                required,
                ctx.user_id,
                ctx.project_id,
            )
            raise PermissionDeniedError(
                f"Operation requires {required} permission on the project",
                code="operation_not_permitted",
                params=[str(required)],
            )

    def check_api_key_scopes(self, ctx: CallerContext, scopes: Iterable[ApiScope]) -> None:
        """Require every scope when the caller is an API key."""
        self.check_principal_scopes(ctx.principal, scopes)

    def check_principal_scopes(self, principal: Principal, scopes: Iterable[ApiScope]) -> None:
        granted = principal.api_scopes
        if granted is None:
            return
        missing = sorted(str(scope) for scope in scopes if scope not in granted)
        if missing:
            logger.info("API key %s is missing scopes %s", principal.api_key_id, missing)
            raise PermissionDeniedError(
                f"API key is missing scopes: {', '.join(missing)}",
                code="api_key_scope_missing",
                params=missing,
            )

    def check_access(
        self,
        ctx: CallerContext,
        required: ProjectPermissionType,
        scopes: Iterable[ApiScope] = (),
    ) -> None:
        """Tier and scope check combined, as declared on each route."""
        self.check_project_permission(ctx, required)
        self.check_api_key_scopes(ctx, scopes)

    def check_keys_edit_permission(self, ctx: CallerContext) -> None:
        self.check_access(ctx, ProjectPermissionType.EDIT, [ApiScope.KEYS_EDIT])

    def check_tags_edit_permission(self, ctx: CallerContext) -> None:
        self.check_access(ctx, ProjectPermissionType.TRANSLATE, [ApiScope.TRANSLATIONS_EDIT])

    def check_language_translate_permission(
        self, ctx: CallerContext, language_ids: Iterable[int]
    ) -> None:
        """Require TRANSLATE and, for restricted translators, access to each language."""
        self.check_access(ctx, ProjectPermissionType.TRANSLATE, [ApiScope.TRANSLATIONS_EDIT])
        permission = cast(ProjectPermission, ctx.permission)
        if permission.type.satisfies(ProjectPermissionType.EDIT):
            return
        allowed = permission.translate_language_ids
        if not allowed:
            return
        denied = sorted(set(language_ids) - allowed)
        if denied:
            raise PermissionDeniedError(
                "Not permitted to translate into some of the requested languages",
                code="language_not_permitted",
                params=denied,
            )

    def _check_screenshots_right(self, ctx: CallerContext, code: str) -> None:
        permission = ctx.permission
        if permission is None or not (
            permission.type.satisfies(ProjectPermissionType.EDIT) or permission.screenshots_upload
        ):
            raise PermissionDeniedError(
                "Screenshot changes require the screenshot upload permission",
                code=code,
            )

    def check_screenshots_upload_permission(self, ctx: CallerContext) -> None:
        """Require the screenshot-upload right: EDIT tier or the explicit upload flag."""
        self._check_screenshots_right(ctx, "screenshots_upload_not_permitted")
        self.check_api_key_scopes(ctx, [ApiScope.SCREENSHOTS_UPLOAD])

    def check_screenshots_delete_permission(self, ctx: CallerContext) -> None:
        self._check_screenshots_right(ctx, "screenshots_delete_not_permitted")
        self.check_api_key_scopes(ctx, [ApiScope.SCREENSHOTS_DELETE])
