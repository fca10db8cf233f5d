from __future__ import annotations

import logging
import secrets
import time
from typing import Literal

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("crm.errors")

ErrorCode = Literal[
    "VALIDATION_ERROR",
    "NOT_FOUND",
    "FORBIDDEN",
    "UNAUTHORIZED",
    "CONFLICT",
    "INTERNAL_ERROR",
]


class AppError(Exception):
    """Operational error whose message is safe to show to the caller."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = "INTERNAL_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        *,
        extra: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.extra = extra or {}


def new_error_id() -> str:
    return f"err_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    error_id = new_error_id()
    logger.warning(
        "app error code=%s status=%s path=%s error_id=%s msg=%s",
        exc.code,
        exc.status_code,
        request.url.path,
        error_id,
        exc.message,
    )
    body = {"detail": exc.message, "code": exc.code, "error_id": error_id}
    body.update(exc.extra)
    return JSONResponse(status_code=exc.status_code, content=body)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error_id = new_error_id()
    logger.exception("unhandled error path=%s error_id=%s", request.url.path, error_id, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An unexpected error occurred. Please try again.",
            "code": "INTERNAL_ERROR",
            "error_id": error_id,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
