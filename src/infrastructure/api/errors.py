"""Map domain errors to HTTP responses.

Request handlers raise; these handlers shape the JSON bodies. Anything not
listed here becomes a 500 ``{success: false, message}`` envelope, built by
``UnhandledErrorMiddleware`` so it still carries CORS and security headers;
the ``Exception`` handler only covers failures raised outside that middleware.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.domain.errors import (
    DuplicateKeyError,
    InvalidUserIdError,
    MissingUserIdError,
    UserNotFoundError,
    UserValidationError,
)

logger = logging.getLogger(__name__)


class BadRequestBody(Exception):
    """The request body could not be read as a form or a JSON object."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def _validation_error(request: Request, exc: UserValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": exc.message,
            "errors": [{"field": v.field, "message": v.message} for v in exc.violations],
        },
    )


async def _bad_request(request: Request, exc: Exception) -> JSONResponse:
    return _message(status.HTTP_400_BAD_REQUEST, getattr(exc, "message", str(exc)))


async def _not_found(request: Request, exc: UserNotFoundError) -> JSONResponse:
    return _message(status.HTTP_404_NOT_FOUND, exc.message)


async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": errors[0]["message"] if errors else "Invalid request", "errors": errors},
    )


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return _message(exc.status_code, "Route not found")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


def server_error_response(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": str(exc) or "Internal Server Error"},
    )


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    return server_error_response(request, exc)


def add_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UserValidationError, _validation_error)
    app.add_exception_handler(DuplicateKeyError, _bad_request)
    app.add_exception_handler(InvalidUserIdError, _bad_request)
    app.add_exception_handler(MissingUserIdError, _bad_request)
    app.add_exception_handler(BadRequestBody, _bad_request)
    app.add_exception_handler(UserNotFoundError, _not_found)
    app.add_exception_handler(RequestValidationError, _request_validation)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unhandled)
