"""Caller identity passed explicitly into every service call."""

from dataclasses import dataclass
from typing import cast

from glossa.projects.models import ApiKey, ApiScope, Project, ProjectPermission


@dataclass(frozen=True)
class Principal:
    """An authenticated caller: a user, optionally acting through an API key."""

    user_id: int
    username: str
    api_key: ApiKey | None = None

    @property
    def is_api_key(self) -> bool:
        return self.api_key is not None

    @property
    def api_key_id(self) -> int | None:
        return self.api_key.id if self.api_key is not None else None

    @property
    def api_scopes(self) -> frozenset[ApiScope] | None:
        """Scopes of the API key, or None for interactive users (unrestricted)."""
        if self.api_key is None:
            return None
        return self.api_key.scope_set


@dataclass(frozen=True)
class CallerContext:
    """The principal, the project it is addressing and its permission there."""

    principal: Principal
    project: Project
    permission: ProjectPermission | None = None

    @property
    def project_id(self) -> int:
        return cast(int, self.project.id)

    @property
    def user_id(self) -> int:
        return self.principal.user_id

    @property
    def api_key_id(self) -> int | None:
        return self.principal.api_key_id
