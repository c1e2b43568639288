"""
Application error taxonomy and the handlers that render it.

Every failure reaching a client uses the same envelope:

    {"statusCode": <int>, "message": <str>}

`AppError.message` is what the client sees. `AppError.detail` stays in logs.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(RuntimeError):
    status_code: int = 500
    message: str = "Something went wrong, try again later."

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        if message:
            self.message = message
        self.detail = detail
        super().__init__(detail or self.message)


class InvalidToken(AppError):
    status_code = 401
    message = "Token is invalid."


class TokenDecodeFailure(AppError):
    status_code = 401
    message = "Unable to decode token, try again later"


class ConfigurationMissing(AppError):
    status_code = 500
    message = "Server is misconfigured, please contact the administrators."


class UniquenessViolation(AppError):
    status_code = 406
    message = "Value is already taken."

    def __init__(self, field: str, value: str, message: str | None = None) -> None:
        self.field = field
        self.value = value
        super().__init__(message or f'{field.capitalize()} "{value}" is already taken!')


class StoreUnavailable(AppError):
    status_code = 500
    message = "Database is unavailable, try again later."


def envelope(status_code: int, message: str) -> dict:
    return {"statusCode": status_code, "message": message}


def error_response(exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=envelope(exc.status_code, exc.message))


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request_failed method=%s path=%s error=%s detail=%s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.detail or exc.message,
        )
    return error_response(exc)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed."
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(exc.status_code, message),
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    # Body/param validation follows the platform convention of 406 Not Acceptable.
    errors = exc.errors()
    message = "Request body is invalid."
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        reason = str(first.get("msg") or "is invalid")
        message = f'"{location}" {reason}' if location else reason
    return JSONResponse(status_code=406, content=envelope(406, message))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
