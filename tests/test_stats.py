"""Tests for the dashboard summary figures."""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("API_BASE_URL", "http://api.test/api")

from campus_stay.schemas.enquiry import Enquiry
from campus_stay.schemas.property import PropertyFeature
from campus_stay.schemas.user import User
from campus_stay.services.stats import compute_stats

NOW = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)


def feature(pk, created_at, available=True):
    return PropertyFeature.model_validate(
        {"id": pk, "properties": {"title": f"Listing {pk}", "created_at": created_at, "is_available": available}}
    )


def enquiry(pk, created_at):
    return Enquiry.model_validate({"id": pk, "created_at": created_at})


def test_compute_stats_counts_this_month_and_percentages():
    properties = [
        feature(1, "2026-10-02T10:00:00Z"),
        feature(2, "2026-09-20T10:00:00Z", available=False),
        feature(3, "2026-10-10T08:30:00+00:00"),
    ]
    enquiries = [
        enquiry(1, "2026-10-01T09:00:00Z"),
        enquiry(2, "2026-10-14T09:00:00Z"),
        enquiry(3, "2026-08-01T09:00:00Z"),
        enquiry(4, "2025-10-03T09:00:00Z"),
    ]
    users = [
        User(id=1, roles="student", is_active=True),
        User(id=2, roles="student", is_active=False),
        User(id=3, roles="broker"),
    ]

    stats = compute_stats(properties, enquiries, users, now=NOW)

    assert stats.total_properties == 3
    assert stats.new_properties == 2
    assert stats.available_properties == 2
    assert stats.available_percentage == 66.67
    assert stats.new_enquiries == 2
    assert stats.enquiry_increase_percentage == 50.0
    assert stats.total_students == 2
    assert stats.active_student_percentage == 50.0


def test_recent_items_are_newest_first():
    properties = [feature(pk, f"2026-10-0{pk}T00:00:00Z") for pk in range(1, 8)]
    enquiries = [enquiry(1, None), enquiry(2, "2026-10-05T00:00:00Z")]

    stats = compute_stats(properties, enquiries, [], now=NOW)

    assert [item.id for item in stats.recent_properties] == [7, 6, 5, 4, 3]
    assert [item.id for item in stats.recent_enquiries] == [2, 1]


def test_empty_collections_give_zero_percentages():
    stats = compute_stats([], [], [], now=NOW)

    assert stats.total_properties == 0
    assert stats.available_percentage == 0.0
    assert stats.active_student_percentage == 0.0
    assert stats.recent_properties == []
