"""Health endpoint payloads."""

from typing import Literal

from pydantic import BaseModel, Field


class ServiceHealth(BaseModel):
    status: Literal["healthy"] = "healthy"
    service: Literal["glossa"] = "glossa"
    version: str
    timestamp: str = Field(..., description="UTC time of the check, ending in Z")


class Liveness(BaseModel):
    status: Literal["alive"] = "alive"


class ReadinessChecks(BaseModel):
    """Dependencies a key request needs before it can be served."""

    database: bool = Field(False, description="Key database answers a trivial query")
    screenshot_storage: bool = Field(False, description="Screenshot directory exists")
    version: str


class Readiness(BaseModel):
    status: Literal["ready", "not_ready"]
    checks: ReadinessChecks
    timestamp: str

    @classmethod
    def from_checks(cls, checks: ReadinessChecks, timestamp: str) -> "Readiness":
        ready = checks.database and checks.screenshot_storage
        return cls(status="ready" if ready else "not_ready", checks=checks, timestamp=timestamp)
