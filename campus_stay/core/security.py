from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from jose import JWTError, jwt
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import settings


class Role(str, Enum):
    STUDENT = "student"
    BROKER = "broker"
    ADMIN = "admin"


# Where each role lands after login or when turned away from a page.
ROLE_HOME: dict[Role, str] = {
    Role.ADMIN: "/admin",
    Role.BROKER: "/dashboard",
    Role.STUDENT: "/search",
}


class TokenClaims(BaseModel):
    """Claims the remote API puts in its access tokens."""

    model_config = ConfigDict(extra="allow")

    user_id: str = Field(validation_alias=AliasChoices("user_id", "sub", "id"))
    username: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    roles: str | None = Field(default=None, validation_alias=AliasChoices("roles", "role", "user_type"))
    exp: int
    student_profile: Any = None
    broker_profile: Any = None

    @field_validator("user_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def role(self) -> Role | None:
        try:
            return Role((self.roles or "").lower())
        except ValueError:
            return None


class CurrentUser(BaseModel):
    id: str
    username: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    role: Role | None = None
    student_profile: Any = None
    broker_profile: Any = None

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username

    @property
    def home(self) -> str:
        return ROLE_HOME.get(self.role, "/") if self.role else "/"

    def has_role(self, *roles: Role) -> bool:
        return self.role is not None and self.role in roles


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def decode_claims(token: str) -> TokenClaims:
    """Read the claims of an access token without verifying its signature.

    The signing key belongs to the remote API; the client only needs the
    expiry and the role to decide where a browser may navigate.
    """

    try:
        decoded = jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    try:
        return TokenClaims.model_validate(decoded)
    except ValidationError as exc:
        raise ValueError("Invalid token payload") from exc


def is_expired(claims: TokenClaims, leeway: int | None = None) -> bool:
    margin = settings.TOKEN_LEEWAY_SECONDS if leeway is None else leeway
    return claims.exp <= int(_now().timestamp()) + margin


def user_from_claims(claims: TokenClaims) -> CurrentUser:
    return CurrentUser(
        id=claims.user_id,
        username=claims.username,
        email=claims.email,
        first_name=claims.first_name,
        last_name=claims.last_name,
        role=claims.role,
        student_profile=claims.student_profile,
        broker_profile=claims.broker_profile,
    )


def user_from_token(token: str | None) -> CurrentUser | None:
    """Return the user behind a still-valid access token, else ``None``."""

    if not token:
        return None
    try:
        claims = decode_claims(token)
    except ValueError:
        return None
    if is_expired(claims):
        return None
    return user_from_claims(claims)
