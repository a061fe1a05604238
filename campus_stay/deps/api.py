from __future__ import annotations

from typing import AsyncIterator

from fastapi import Request

from ..core.tokens import SessionTokens
from ..services.api_client import ApiClient


def request_tokens(request: Request) -> SessionTokens:
    tokens = getattr(request.state, "tokens", None)
    if tokens is None:
        tokens = SessionTokens.from_cookies(request.cookies)
        request.state.tokens = tokens
    return tokens


async def get_api_client(request: Request) -> AsyncIterator[ApiClient]:
    """One ``ApiClient`` per request, sharing the browser's token pair."""

    async with ApiClient(tokens=request_tokens(request)) as client:
        yield client
