"""Per-request holder for the access/refresh token pair kept in cookies."""

from __future__ import annotations

from typing import Mapping

from starlette.responses import Response

from .config import AppSettings, settings


class SessionTokens:
    """Access and refresh token for one browser request.

    The API client mutates this object when it refreshes or when a refresh
    fails; ``TokenCookieMiddleware`` writes any change back to the browser.
    """

    def __init__(self, access: str | None = None, refresh: str | None = None) -> None:
        self.access = access or None
        self.refresh = refresh or None
        self.changed = False

    @classmethod
    def from_cookies(cls, cookies: Mapping[str, str], config: AppSettings = settings) -> "SessionTokens":
        return cls(
            access=cookies.get(config.ACCESS_COOKIE_NAME),
            refresh=cookies.get(config.REFRESH_COOKIE_NAME),
        )

    @property
    def authenticated(self) -> bool:
        return bool(self.access)

    def set(self, access: str, refresh: str | None = None) -> None:
        self.access = access
        if refresh:
            self.refresh = refresh
        self.changed = True

    def clear(self) -> None:
        self.access = None
        self.refresh = None
        self.changed = True

    def apply(self, response: Response, config: AppSettings = settings) -> None:
        if not self.changed:
            return
        cookie_opts = {"httponly": True, "samesite": "lax", "secure": config.COOKIE_SECURE, "path": "/"}
        if self.access:
            response.set_cookie(
                config.ACCESS_COOKIE_NAME, self.access, max_age=config.ACCESS_COOKIE_MAX_AGE, **cookie_opts
            )
        else:
            response.delete_cookie(config.ACCESS_COOKIE_NAME, path="/")
        if self.refresh:
            response.set_cookie(
                config.REFRESH_COOKIE_NAME, self.refresh, max_age=config.REFRESH_COOKIE_MAX_AGE, **cookie_opts
            )
        else:
            response.delete_cookie(config.REFRESH_COOKIE_NAME, path="/")
