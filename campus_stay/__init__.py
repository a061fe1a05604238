"""Application factory and top-level wiring for the Campus Stay web client.

This module is the glue that brings together configuration, middleware,
templates, routers and error handling. It gives a new developer a
bird's-eye view of *what* pieces exist, *when* they are initialised and
*how* they interact.

WHAT: ``create_app`` builds the FastAPI application that renders the pages
students, brokers and admins use. It holds no data of its own; every page
is backed by calls to the remote REST API.
WHEN: Imported once at process start (``campus_stay.main`` adds logging,
health and metrics on top).
HOW: Middleware order matters. ``add_middleware`` wraps the stack, so the
last one added runs first: CORS, request ids, security headers, the signed
session (toasts, Google onboarding state) and finally the token cookies
closest to the routes.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .core.config import AppSettings, settings
from .core.errors import http_exception_handler, validation_exception_handler
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware, TokenCookieMiddleware
from .routers import account, admin, api_map, auth_ui, browse, dashboard, marketing


def create_app(config: AppSettings = settings) -> FastAPI:
    app = FastAPI(title=config.APP_NAME)

    # ``mount`` glues the /static URL path to the bundled CSS and scripts.
    app.mount("/static", StaticFiles(directory=str(config.static_dir)), name="static")

    app.add_middleware(TokenCookieMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.APP_SECRET,
        session_cookie=config.SESSION_COOKIE_NAME,
        max_age=config.SESSION_MAX_AGE,
        same_site="lax",
        https_only=config.COOKIE_SECURE,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)
    if config.ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Public pages first, then the role areas (guarded via router dependencies).
    app.include_router(marketing.router)
    app.include_router(auth_ui.router)
    app.include_router(browse.router)
    app.include_router(dashboard.router)
    app.include_router(admin.router)
    app.include_router(account.router)
    app.include_router(api_map.router)

    # HTML navigations get login redirects and toasts; API paths get JSON envelopes.
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    return app


app = create_app()

__all__ = ["app", "create_app"]
