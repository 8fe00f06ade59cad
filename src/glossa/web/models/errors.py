"""Error response contract."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every handled error."""

    code: str = Field(..., description="Machine readable error code")
    message: str = Field(..., description="Human readable description")
    params: list[Any] = Field(default_factory=list, description="Values the error refers to")
