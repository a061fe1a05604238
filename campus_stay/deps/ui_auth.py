from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from ..core.security import CurrentUser, Role, user_from_token
from ..middlewares import principal_ctx_var
from ..services.api_client import ApiClient
from ..services.navigation import authorize_navigation
from .api import get_api_client, request_tokens


def get_current_user(request: Request) -> CurrentUser | None:
    """The signed-in user according to a still-valid access token."""

    return user_from_token(request_tokens(request).access)


async def _resolve_user(client: ApiClient) -> CurrentUser | None:
    user = user_from_token(client.tokens.access)
    if user is None and client.tokens.refresh:
        if await client.refresh_access():
            user = user_from_token(client.tokens.access)
    return user


async def require_navigation_access(
    request: Request, client: ApiClient = Depends(get_api_client)
) -> CurrentUser:
    """
    Gate for the role areas (``/admin``, ``/dashboard``, ``/account``).
    An expired access token is refreshed once before deciding. Anonymous
    visitors get a 401 (turned into a login redirect for browsers); users
    without the role get a 403 that points at their own home page.
    """
    user = await _resolve_user(client)
    decision = authorize_navigation(request.url.path, user, request.url.query)
    if not decision.allow:
        if decision.reason == "login" or user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "You do not have access to that page", "redirect_to": decision.redirect_to},
        )
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    principal_ctx_var.set(user.id)
    request.state.user = user
    return user


async def require_user(request: Request, client: ApiClient = Depends(get_api_client)) -> CurrentUser:
    user = await _resolve_user(client)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    principal_ctx_var.set(user.id)
    request.state.user = user
    return user


def require_role(*roles: Role):
    async def _dependency(user: CurrentUser = Depends(require_user)) -> CurrentUser:
        if not user.has_role(*roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"message": "You do not have access to that action", "redirect_to": user.home},
            )
        return user

    return _dependency
