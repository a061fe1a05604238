"""Tests for the user administration service."""

import asyncio
import json
import os
import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("API_BASE_URL", "http://api.test/api")

from campus_stay.schemas.user import StudentProfileUpdate, User, UserUpdate
from campus_stay.services import cache
from campus_stay.services.api_client import ApiClient, ApiError
from campus_stay.services.users import UserService

BASE = "http://api.test/api"

USERS = [
    {"id": 1, "username": "amina", "first_name": "Amina", "last_name": "Mushi", "roles": "student", "is_active": True},
    {"id": 2, "username": "broker_joe", "roles": "broker", "is_active": True},
]


@pytest.fixture(autouse=True)
def clear_caches():
    cache.clear_all()
    yield
    cache.clear_all()


def service_for(handler):
    return UserService(ApiClient(base_url=BASE, transport=httpx.MockTransport(handler)))


def test_display_name_and_initials():
    amina = User.model_validate(USERS[0])
    joe = User.model_validate(USERS[1])

    assert amina.display_name == "Amina Mushi"
    assert amina.initials == "AM"
    assert joe.display_name == "broker_joe"
    assert joe.initials == "BR"


def test_list_users_caches_and_sends_filters():
    calls = []

    def handler(request):
        calls.append(dict(request.url.params))
        return httpx.Response(200, json={"count": 2, "results": USERS})

    service = service_for(handler)

    async def scenario():
        await service.list_users({"roles": "student", "is_active": True, "search": ""})
        await service.list_users({"roles": "student", "is_active": True})

    asyncio.run(scenario())
    assert calls == [{"roles": "student", "is_active": "true"}]
    assert len(service.users) == 2


def test_list_users_failure_message():
    with pytest.raises(ApiError) as excinfo:
        asyncio.run(service_for(lambda request: httpx.Response(500)).list_users())

    assert excinfo.value.message == "Failed to load users"


def test_suspend_user_patches_is_active():
    sent = {}

    def handler(request):
        if request.method == "PATCH":
            sent["body"] = json.loads(request.content)
            return httpx.Response(200, json={**USERS[0], "is_active": False})
        return httpx.Response(200, json=USERS)

    service = service_for(handler)

    async def scenario():
        await service.list_users()
        return await service.suspend_user(1)

    assert asyncio.run(scenario()) is True
    assert sent["body"] == {"is_active": False}
    assert service.users[0].is_active is False


def test_suspend_user_reverts_on_failure():
    def handler(request):
        if request.method == "PATCH":
            return httpx.Response(403, json={"detail": "You do not have permission to perform this action."})
        return httpx.Response(200, json=USERS)

    service = service_for(handler)

    async def scenario():
        await service.list_users()
        await service.suspend_user(1)

    with pytest.raises(ApiError):
        asyncio.run(scenario())
    assert service.users[0].is_active is True


def test_update_user_uses_put_and_drops_unset_fields():
    sent = {}

    def handler(request):
        sent["method"] = request.method
        sent["body"] = json.loads(request.content)
        return httpx.Response(200, json={**USERS[0], "first_name": "Ami"})

    updated = asyncio.run(service_for(handler).update_user(1, UserUpdate(first_name="Ami")))

    assert sent == {"method": "PUT", "body": {"first_name": "Ami"}}
    assert updated.first_name == "Ami"


def test_student_profile_update_sends_form_fields():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = request.content
        return httpx.Response(200, json=USERS[0])

    asyncio.run(service_for(handler).update_student_profile(1, StudentProfileUpdate(course="Law", year_of_study=2)))

    assert seen["method"] == "PATCH"
    assert seen["path"] == "/api/users/1/student-profile/"
    assert seen["body"] == b"course=Law&year_of_study=2"


def test_get_user_missing_returns_none():
    assert asyncio.run(service_for(lambda request: httpx.Response(404)).get_user(5)) is None
