from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..core.tokens import SessionTokens


class TokenCookieMiddleware(BaseHTTPMiddleware):
    """Load the token cookies onto ``request.state`` and persist any change."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        tokens = SessionTokens.from_cookies(request.cookies)
        request.state.tokens = tokens
        response = await call_next(request)
        tokens.apply(response)
        return response
