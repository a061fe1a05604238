"""Credential, registration and Google sign-in flows against the remote API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from pydantic import ValidationError

from ..core.security import CurrentUser, user_from_token
from ..schemas.auth import GoogleLoginResponse, OnboardingForm, SignupForm
from .api_client import ApiClient

logger = logging.getLogger(__name__)

LOGIN_ENDPOINT = "/users/login/"
REGISTER_ENDPOINT = "/users/"
GOOGLE_LOGIN_ENDPOINT = "/users/google_login/"
GOOGLE_ONBOARDING_ENDPOINT = "/users/complete_google_onboarding/"


@dataclass
class AuthResult:
    success: bool
    user: CurrentUser | None = None
    error: str | None = None
    google: GoogleLoginResponse | None = None


def _store_tokens(client: ApiClient, payload: Any) -> CurrentUser | None:
    if not isinstance(payload, dict) or not payload.get("access"):
        return None
    client.tokens.set(payload["access"], payload.get("refresh"))
    return user_from_token(payload["access"])


async def login(client: ApiClient, username: str, password: str) -> AuthResult:
    result = await client.post(
        LOGIN_ENDPOINT, json={"username": username, "password": password}, auth=False
    )
    if not result.success:
        return AuthResult(success=False, error=result.error or "Login failed")
    user = _store_tokens(client, result.data)
    if user is None:
        return AuthResult(success=False, error="Login failed")
    logger.info("auth.login", extra={"extra_data": {"user_id": user.id, "role": user.role}})
    return AuthResult(success=True, user=user)


async def register(client: ApiClient, form: SignupForm) -> AuthResult:
    result = await client.post(REGISTER_ENDPOINT, json=form.to_payload(), auth=False)
    if not result.success:
        return AuthResult(success=False, error=result.error or "Registration failed")
    user = _store_tokens(client, result.data)
    logger.info("auth.registered", extra={"extra_data": {"username": form.username, "role": form.roles}})
    return AuthResult(success=True, user=user)


async def google_login(client: ApiClient, id_token: str) -> AuthResult:
    """Exchange a Google Identity Services credential with the API.

    ``status == "success"`` stores the returned tokens. The onboarding
    statuses carry a ``temp_token`` that the onboarding form posts back.
    """

    result = await client.post(GOOGLE_LOGIN_ENDPOINT, json={"id_token": id_token}, auth=False)
    if not result.success:
        return AuthResult(success=False, error=result.error or "Google login failed")
    try:
        response = GoogleLoginResponse.model_validate(result.data)
    except ValidationError:
        logger.warning("auth.google_unexpected_response")
        return AuthResult(success=False, error="Google login failed")
    user = None
    if response.status == "success":
        user = _store_tokens(client, result.data)
        if user is None:
            return AuthResult(success=False, error="Google login failed")
    return AuthResult(success=True, user=user, google=response)


async def complete_google_onboarding(client: ApiClient, form: OnboardingForm) -> AuthResult:
    payload: dict[str, Any] = {"temp_token": form.temp_token, "roles": form.roles}
    if form.first_name:
        payload["first_name"] = form.first_name
    if form.last_name:
        payload["last_name"] = form.last_name
    if form.roles == "student":
        payload["student_profile"] = {
            "university": int(form.university) if (form.university or "").isdigit() else 1,
            "course": form.course or "Undeclared",
        }
    result = await client.post(GOOGLE_ONBOARDING_ENDPOINT, json=payload, auth=False)
    if not result.success:
        return AuthResult(success=False, error=result.error or "Failed to complete onboarding")
    user = _store_tokens(client, result.data)
    if user is None:
        return AuthResult(success=False, error="Failed to complete onboarding")
    return AuthResult(success=True, user=user)


def logout(client: ApiClient) -> None:
    client.tokens.clear()


def is_local_path(target: str | None) -> bool:
    if not target or not target.startswith("/") or target.startswith("//"):
        return False
    parsed = urlparse(target)
    return not parsed.scheme and not parsed.netloc and "\\" not in target


def post_login_redirect(user: CurrentUser | None, requested: str | None = None) -> str:
    """Honour a local ``redirect`` target, otherwise land on the role's home."""

    if is_local_path(requested) and not requested.startswith("/login"):
        return requested
    return user.home if user else "/"
