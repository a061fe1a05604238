"""Shared request helper for the remote marketplace API.

Every page and service talks to the backend through :class:`ApiClient`. It
attaches the bearer token held in the browser's cookies, transparently
exchanges the refresh token after a 401 and replays the request once, and
folds every outcome (including transport failures) into an
:class:`ApiResponse` so callers decide how to surface errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from ..core.config import settings
from ..core.security import user_from_token
from ..core.tokens import SessionTokens

logger = logging.getLogger(__name__)

REFRESH_ENDPOINT = "/token/refresh/"
CONFIG_ERROR = "API configuration error: Base URL is undefined"


class ApiError(Exception):
    """Raised by :meth:`ApiResponse.raise_for_error` for failed calls."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass
class ApiResponse:
    data: Any = None
    status: int = 0
    success: bool = False
    error: str | None = None

    def raise_for_error(self, default: str | None = None) -> "ApiResponse":
        if not self.success:
            raise ApiError(self.status, default or self.error or "Request failed")
        return self


def clean_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop ``None`` and empty-string values; lists go out as repeated keys."""

    if not params:
        return {}
    cleaned: dict[str, Any] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, (list, tuple)):
            items = [item for item in value if item is not None and item != ""]
            if items:
                cleaned[key] = items
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
            continue
        cleaned[key] = value
    return cleaned


def extract_error(body: Any, fallback: str) -> str:
    """Pull a human readable message out of a DRF-style error body."""

    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
        for field, value in body.items():
            if isinstance(value, list) and value and isinstance(value[0], str):
                return value[0] if field == "non_field_errors" else f"{field}: {value[0]}"
            if isinstance(value, str) and value:
                return f"{field}: {value}"
    if isinstance(body, list) and body and isinstance(body[0], str):
        return body[0]
    return fallback


def _read_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        tokens: SessionTokens | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (settings.api_base_url if base_url is None else base_url).strip().rstrip("/")
        self.tokens = tokens if tokens is not None else SessionTokens()
        self.timeout = timeout if timeout is not None else settings.API_TIMEOUT_SECONDS
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    @property
    def principal(self) -> str:
        """Cache partition key for the signed-in user."""

        user = user_from_token(self.tokens.access)
        return user.id if user else "anonymous"

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
        files: Any = None,
        headers: Mapping[str, str] | None = None,
        auth: bool = True,
        _retried: bool = False,
    ) -> ApiResponse:
        method = method.upper()
        if not self.base_url:
            logger.error("api.not_configured", extra={"extra_data": {"method": method, "endpoint": endpoint}})
            return ApiResponse(data={}, status=500, success=False, error=CONFIG_ERROR)

        url = endpoint if endpoint.startswith("http") else f"{self.base_url}{endpoint}"
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        if auth and self.tokens.access:
            request_headers["Authorization"] = f"Bearer {self.tokens.access}"

        try:
            response = await self._http().request(
                method,
                url,
                params=clean_params(params) or None,
                json=json,
                data=data,
                files=files,
                headers=request_headers,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "api.request_failed",
                extra={"extra_data": {"method": method, "endpoint": endpoint, "error": str(exc)}},
            )
            return ApiResponse(data={}, status=500, success=False, error=str(exc) or "Network error")

        if (
            response.status_code == 401
            and auth
            and not _retried
            and self.tokens.refresh
            and endpoint != REFRESH_ENDPOINT
        ):
            if await self.refresh_access():
                return await self.request(
                    method,
                    endpoint,
                    params=params,
                    json=json,
                    data=data,
                    files=files,
                    headers=headers,
                    auth=auth,
                    _retried=True,
                )

        body = _read_body(response)
        if response.is_success:
            return ApiResponse(data=body, status=response.status_code, success=True)

        message = extract_error(body, response.reason_phrase or f"HTTP {response.status_code}")
        logger.warning(
            "api.error_response",
            extra={
                "extra_data": {
                    "method": method,
                    "endpoint": endpoint,
                    "status": response.status_code,
                    "error": message,
                }
            },
        )
        return ApiResponse(data=body if body is not None else {}, status=response.status_code, success=False, error=message)

    async def refresh_access(self) -> bool:
        """Swap the refresh token for a new access token; clear tokens on failure."""

        refresh = self.tokens.refresh
        if not refresh:
            return False
        result = await self.request("POST", REFRESH_ENDPOINT, json={"refresh": refresh}, auth=False)
        payload = result.data if isinstance(result.data, dict) else {}
        access = payload.get("access") if result.success else None
        if not access:
            logger.info("auth.refresh_failed", extra={"extra_data": {"status": result.status}})
            self.tokens.clear()
            return False
        self.tokens.set(access, payload.get("refresh"))
        logger.info("auth.refreshed")
        return True

    async def get(self, endpoint: str, params: Mapping[str, Any] | None = None, **kwargs: Any) -> ApiResponse:
        return await self.request("GET", endpoint, params=params, **kwargs)

    async def post(self, endpoint: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.request("POST", endpoint, json=json, **kwargs)

    async def put(self, endpoint: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.request("PUT", endpoint, json=json, **kwargs)

    async def patch(self, endpoint: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.request("PATCH", endpoint, json=json, **kwargs)

    async def delete(self, endpoint: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.request("DELETE", endpoint, json=json, **kwargs)
