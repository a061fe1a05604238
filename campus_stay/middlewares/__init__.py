from __future__ import annotations

from .request_id import RequestIdMiddleware, principal_ctx_var, request_id_ctx_var
from .security_headers import SecurityHeadersMiddleware
from .token_cookies import TokenCookieMiddleware

__all__ = [
    "RequestIdMiddleware",
    "SecurityHeadersMiddleware",
    "TokenCookieMiddleware",
    "request_id_ctx_var",
    "principal_ctx_var",
]
