"""Helper utilities for teaching Jinja2 how to format marketplace data.

Templates are the presentation layer. This module builds the shared
``Jinja2Templates`` instance, registers the formatting filters used across
listings and dashboards, and injects the values every page needs (the
signed-in user, pending toasts, sidebar menus and map configuration).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from fastapi import Request
from fastapi.templating import Jinja2Templates

from .config import settings
from .menus import FOOTER_MENU_ITEMS, menus_for
from .security import user_from_token
from .toasts import pop_toasts

_LOCAL_TZ = ZoneInfo(settings.TZ) if settings.TZ else None


def _to_dt(value: Any) -> datetime | None:
    """Convert strings/dates into timezone-aware datetimes for safe formatting."""

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None and _LOCAL_TZ:
        dt = dt.replace(tzinfo=_LOCAL_TZ)
    if _LOCAL_TZ:
        dt = dt.astimezone(_LOCAL_TZ)
    return dt


def _fmt_dt(value: Any, fmt: str = "%Y-%m-%d %H:%M") -> str:
    dt = _to_dt(value)
    return dt.strftime(fmt) if dt else ""


def _fmt_date(value: Any, fmt: str = "%d %b %Y") -> str:
    """Return only the date portion, used by tables and listing cards."""

    dt = _to_dt(value)
    return dt.strftime(fmt) if dt else ""


def format_price(value: Any, currency: str | None = None) -> str:
    """Render a rent amount as ``TZS 300,000`` (no decimals for whole amounts)."""

    try:
        number = float(value)
    except (TypeError, ValueError):
        return ""
    code = currency or settings.CURRENCY
    if number.is_integer():
        return f"{code} {number:,.0f}"
    return f"{code} {number:,.2f}"


def _fmt_monthly(value: Any) -> str:
    price = format_price(value)
    return f"{price}/mo" if price else ""


def _initials(value: Any) -> str:
    parts = [part for part in str(value or "").split() if part]
    return "".join(part[0] for part in parts[:2]).upper()


def _ui_context(request: Request) -> dict[str, Any]:
    tokens = getattr(request.state, "tokens", None)
    user = user_from_token(tokens.access if tokens else None)
    return {
        "current_user": user,
        "toasts": pop_toasts(request),
        "sidebar": menus_for(user.role if user else None),
        "footer_menu": FOOTER_MENU_ITEMS if user else [],
        "app_name": settings.APP_NAME,
        "mapbox_token": settings.MAPBOX_ACCESS_TOKEN,
        "mapbox_style": settings.MAPBOX_STYLE,
        "google_client_id": settings.GOOGLE_CLIENT_ID,
    }


def get_templates() -> Jinja2Templates:
    """Create a ``Jinja2Templates`` instance with our standard filters registered."""

    templates = Jinja2Templates(directory=str(settings.TEMPLATES_DIR), context_processors=[_ui_context])
    env = templates.env
    env.filters["fmt_dt"] = _fmt_dt
    env.filters["fmt_date"] = _fmt_date
    env.filters["fmt_price"] = format_price
    env.filters["fmt_monthly"] = _fmt_monthly
    env.filters["initials"] = _initials
    return templates
