"""Broker dashboard figures computed from already fetched collections."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..schemas.enquiry import Enquiry
from ..schemas.property import PropertyFeature
from ..schemas.user import User

RECENT_LIMIT = 5


@dataclass
class DashboardStats:
    total_properties: int = 0
    new_properties: int = 0
    available_properties: int = 0
    available_percentage: float = 0.0
    new_enquiries: int = 0
    enquiry_increase_percentage: float = 0.0
    total_students: int = 0
    active_student_percentage: float = 0.0
    recent_properties: list[PropertyFeature] = field(default_factory=list)
    recent_enquiries: list[Enquiry] = field(default_factory=list)


def _parse(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _in_month(value: Optional[str], now: datetime) -> bool:
    parsed = _parse(value)
    return parsed is not None and (parsed.year, parsed.month) == (now.year, now.month)


def _percentage(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def _newest_first(items: list, created_at) -> list:
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(items, key=lambda item: _parse(created_at(item)) or epoch, reverse=True)


def compute_stats(
    properties: Iterable[PropertyFeature],
    enquiries: Iterable[Enquiry],
    users: Iterable[User],
    now: datetime | None = None,
) -> DashboardStats:
    now = now or datetime.now(timezone.utc)
    properties = list(properties)
    enquiries = list(enquiries)
    students = [user for user in users if (user.roles or "student") == "student"]

    available = sum(1 for item in properties if item.properties.is_available)
    new_enquiries = sum(1 for item in enquiries if _in_month(item.created_at, now))
    return DashboardStats(
        total_properties=len(properties),
        new_properties=sum(1 for item in properties if _in_month(item.properties.created_at, now)),
        available_properties=available,
        available_percentage=_percentage(available, len(properties)),
        new_enquiries=new_enquiries,
        enquiry_increase_percentage=_percentage(new_enquiries, len(enquiries)),
        total_students=len(students),
        active_student_percentage=_percentage(sum(1 for user in students if user.is_active), len(students)),
        recent_properties=_newest_first(properties, lambda item: item.properties.created_at)[:RECENT_LIMIT],
        recent_enquiries=_newest_first(enquiries, lambda item: item.created_at)[:RECENT_LIMIT],
    )
