"""Rendering of domain errors as HTTP responses."""

import logging
from typing import cast

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from glossa.exceptions import (
    AuthenticationError,
    GlossaError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from glossa.web.models.errors import ErrorResponse

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: list[tuple[type[GlossaError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
]


def status_for(error: GlossaError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, code: str, message: str, params: list) -> JSONResponse:
    body = ErrorResponse(code=code, message=message, params=params)
    headers = {"WWW-Authenticate": "Basic"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


async def handle_glossa_error(request: Request, exc: Exception) -> JSONResponse:
    exc = cast(GlossaError, exc)
    status_code = status_for(exc)
    logger.info(
        "%s %s rejected with %s",
        request.method,
        request.url.path,
        exc.code,
        extra={"status_code": status_code, "error_code": exc.code},
    )
    return error_response(status_code, exc.code, exc.message, exc.params)


async def handle_request_validation_error(request: Request, exc: Exception) -> JSONResponse:
    exc = cast(RequestValidationError, exc)
    params = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    return error_response(
        status.HTTP_400_BAD_REQUEST, "validation_error", "Request validation failed", params
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GlossaError, handle_glossa_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
