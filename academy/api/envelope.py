"""
JSON envelopes and error mapping shared by every route.

Success: ``{success: true, status_code, message, data}``.
Failure: ``{success: false, message, errors?}``.
"""

import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from academy.components.errors import ComponentError
from academy.domain.pagination import Page, pagination_meta

logger = logging.getLogger(__name__)

_STATUS_BY_CODE = {
    "invalid_credentials": status.HTTP_401_UNAUTHORIZED,
    "invalid_refresh_token": status.HTTP_401_UNAUTHORIZED,
    "account_disabled": status.HTTP_403_FORBIDDEN,
    "email_not_verified": status.HTTP_403_FORBIDDEN,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "not_enrolled": status.HTTP_403_FORBIDDEN,
}


class ApiError(Exception):
    def __init__(
        self,
        status_code: int,
        message: str,
        errors: list[dict[str, Any]] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors
        self.headers = headers


def status_for(code: str) -> int:
    if code in _STATUS_BY_CODE:
        return _STATUS_BY_CODE[code]
    if code.endswith("_not_found"):
        return status.HTTP_404_NOT_FOUND
    if code.endswith("_taken"):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def raise_for_errors(errors: Sequence[ComponentError]) -> None:
    """Raise ApiError for a non-empty component error list; the first error decides the status."""
    if not errors:
        return
    first = errors[0]
    raise ApiError(
        status_for(first.code),
        first.message,
        [e.as_dict() for e in errors] if len(errors) > 1 or first.field else None,
    )


def not_found(message: str) -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, message)


def ok(
    data: Any = None,
    message: str = "Success",
    status_code: int = status.HTTP_200_OK,
    **extra: Any,
) -> JSONResponse:
    body: dict[str, Any] = {
        "success": True,
        "status_code": status_code,
        "message": message,
        "data": data,
    }
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def paged(items: list[Any], total: int, page: Page, message: str = "Success") -> JSONResponse:
    return ok(items, message, pagination=pagination_meta(total, page))


def _error_body(message: str, errors: list[Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.errors),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = f"Route {request.url.path} not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("Validation failed", errors),
        )

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Internal server error"),
        )


__all__ = [
    "ApiError",
    "install_exception_handlers",
    "not_found",
    "ok",
    "paged",
    "raise_for_errors",
    "status_for",
]
