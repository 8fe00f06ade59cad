"""Security domain: caller identity, project context and permission checks."""

from glossa.security.context import CallerContext, Principal
from glossa.security.service import SecurityService

__all__ = [
    "CallerContext",
    "Principal",
    "SecurityService",
]
