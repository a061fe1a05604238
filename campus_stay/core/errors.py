from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

from .toasts import flash

logger = logging.getLogger(__name__)


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


def _wants_html(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    path = request.url.path
    return "text/html" in accept and not path.startswith("/api") and not path.startswith("/login")


def login_redirect(request: Request) -> RedirectResponse:
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return RedirectResponse(url=f"/login?redirect={quote(target, safe='')}", status_code=302)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if _wants_html(request):
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            return login_redirect(request)
        if exc.status_code == status.HTTP_403_FORBIDDEN:
            detail = exc.detail if isinstance(exc.detail, dict) else {}
            flash(request, detail.get("message") or "You do not have access to that page", "error")
            return RedirectResponse(url=detail.get("redirect_to") or "/", status_code=302)
    detail = exc.detail
    message = detail if isinstance(detail, str) else None
    if isinstance(detail, dict):
        message = detail.get("message")
    if not message:
        message = "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(status_code=exc.status_code, code="http_error", message=message, details=details)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("request.validation_failed", extra={"extra_data": {"path": request.url.path}})
    return ErrorEnvelope(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="validation_error",
        message="Validation failed",
        details={"errors": exc.errors()},
    )
