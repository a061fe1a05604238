from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from ..core.security import CurrentUser, Role

PROTECTED_PREFIXES: tuple[tuple[str, frozenset[Role]], ...] = (
    ("/dashboard", frozenset({Role.BROKER, Role.ADMIN})),
    ("/account", frozenset({Role.STUDENT})),
    ("/admin", frozenset({Role.ADMIN})),
)


@dataclass(frozen=True)
class NavigationDecision:
    allow: bool
    redirect_to: str | None = None
    reason: str | None = None


def _matches(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def required_roles(path: str) -> frozenset[Role] | None:
    for prefix, roles in sorted(PROTECTED_PREFIXES, key=lambda item: len(item[0]), reverse=True):
        if _matches(path, prefix):
            return roles
    return None


def authorize_navigation(path: str, user: CurrentUser | None, query: str = "") -> NavigationDecision:
    roles = required_roles(path)
    if roles is None:
        return NavigationDecision(allow=True)
    if user is None:
        target = f"{path}?{query}" if query else path
        return NavigationDecision(
            allow=False, redirect_to=f"/login?redirect={quote(target, safe='')}", reason="login"
        )
    if user.role not in roles:
        return NavigationDecision(allow=False, redirect_to=user.home, reason="forbidden")
    return NavigationDecision(allow=True)
