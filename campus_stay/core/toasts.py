"""Toast notifications carried across a redirect in the signed session cookie."""

from __future__ import annotations

from typing import Any

from fastapi import Request

TOAST_KEY = "_toasts"
CATEGORIES = {"success", "error", "info"}


def flash(request: Request, message: str, category: str = "info") -> None:
    if category not in CATEGORIES:
        category = "info"
    try:
        queue = list(request.session.get(TOAST_KEY) or [])
    except AssertionError:
        # No SessionMiddleware installed (bare test apps); drop the toast.
        return
    queue.append({"message": message, "category": category})
    request.session[TOAST_KEY] = queue


def pop_toasts(request: Request) -> list[dict[str, Any]]:
    try:
        return list(request.session.pop(TOAST_KEY, None) or [])
    except AssertionError:
        return []
