"""Tests for enquiry listing, caching and conversation updates."""

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

from campus_stay.schemas.enquiry import Enquiry, EnquiryCreate, EnquiryStatus, MessageCreate
from campus_stay.services import cache
from campus_stay.services.api_client import ApiClient
from campus_stay.services.enquiries import EnquiryService, status_color, unread_count

BASE = "http://api.test/api"

ENQUIRY = {
    "id": 8,
    "student": 3,
    "property": {"id": 12, "title": "Mwenge studio"},
    "subject": "Viewing",
    "message": "Is it available in March?",
    "status": "pending",
    "is_active": True,
    "created_at": "2024-03-01T10:00:00Z",
    "messages": [{"id": 1, "content": "hello", "is_read": False}],
}


@pytest.fixture(autouse=True)
def clear_caches():
    cache.clear_all()
    yield
    cache.clear_all()


def service_for(handler):
    return EnquiryService(ApiClient(base_url=BASE, transport=httpx.MockTransport(handler)))


def test_list_enquiries_is_cached_per_filters():
    calls = []

    def handler(request):
        calls.append(dict(request.url.params))
        return httpx.Response(200, json={"count": 1, "results": [ENQUIRY]})

    service = service_for(handler)

    async def scenario():
        await service.list_enquiries({"status": EnquiryStatus.PENDING})
        await service.list_enquiries({"status": "pending", "search": ""})
        await service.list_enquiries({"status": "resolved"})

    asyncio.run(scenario())

    assert calls == [{"status": "pending"}, {"status": "resolved"}]
    assert service.enquiries[0].student.id == 3


def test_create_enquiry_clears_cache():
    def handler(request):
        if request.method == "POST":
            assert json.loads(request.content) == {"property": 12, "message": "Hi"}
            return httpx.Response(201, json=ENQUIRY)
        return httpx.Response(200, json={"count": 1, "results": [ENQUIRY]})

    service = service_for(handler)

    async def scenario():
        await service.list_enquiries()
        assert cache.enquiry_cache
        await service.create_enquiry(EnquiryCreate(property=12, message="Hi"))

    asyncio.run(scenario())
    assert not cache.enquiry_cache


def test_update_status_replaces_local_item():
    def handler(request):
        if request.method == "PATCH":
            assert json.loads(request.content) == {"status": "resolved"}
            return httpx.Response(200, json={**ENQUIRY, "status": "resolved"})
        return httpx.Response(200, json=[ENQUIRY])

    service = service_for(handler)

    async def scenario():
        await service.list_enquiries()
        await service.update_status(8, EnquiryStatus.RESOLVED)

    asyncio.run(scenario())
    assert service.enquiries[0].status is EnquiryStatus.RESOLVED


def test_cancel_marks_local_item_inactive():
    def handler(request):
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, json=[ENQUIRY])

    service = service_for(handler)

    async def scenario():
        await service.list_enquiries()
        return await service.cancel_enquiry(8)

    assert asyncio.run(scenario()) is True
    assert service.enquiries[0].status is EnquiryStatus.CANCELLED
    assert service.enquiries[0].is_active is False


def test_mark_as_read_clears_unread():
    paths = []

    def handler(request):
        paths.append((request.method, request.url.path))
        if request.method == "POST":
            return httpx.Response(200, json={"status": "ok"})
        return httpx.Response(200, json=[ENQUIRY])

    service = service_for(handler)

    async def scenario():
        await service.list_enquiries()
        assert service.total_unread == 1
        await service.mark_as_read(8)

    asyncio.run(scenario())
    assert ("POST", "/api/messages/enquiries/8/mark-as-read/") in paths
    assert service.total_unread == 0


def test_send_message_moves_pending_to_in_progress():
    def handler(request):
        assert request.url.path == "/api/messages/enquiries/8/messages/"
        return httpx.Response(201, json={"id": 2, "content": "Yes it is", "is_read": False})

    service = service_for(handler)
    enquiry = Enquiry.model_validate(ENQUIRY)
    message, updated = asyncio.run(service.send_message(8, MessageCreate(content="Yes it is"), enquiry))

    assert message.content == "Yes it is"
    assert updated.status is EnquiryStatus.IN_PROGRESS
    assert len(updated.messages) == 2
    assert service.messages["8"] == [message]


def test_fetch_messages_uses_cache():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(200, json=[{"id": 1, "content": "hi"}])

    service = service_for(handler)

    async def scenario():
        await service.fetch_messages(8)
        await service.fetch_messages(8)

    asyncio.run(scenario())
    assert calls == ["/api/messages/enquiries/8/messages/"]


def test_page_navigation_filters():
    def handler(request):
        return httpx.Response(200, json={"count": 30, "next": "http://api/?page=3", "previous": "http://api/?page=1", "results": []})

    service = service_for(handler)
    asyncio.run(service.list_enquiries({"page": 2}))

    assert service.next_page_filters({"page": 2}) == {"page": 3}
    assert service.previous_page_filters({"page": 2}) == {"page": 1}


def test_status_helpers():
    assert status_color("pending") == "orange"
    assert status_color("archived") == "gray"
    assert EnquiryStatus.IN_PROGRESS.label == "In Progress"
    assert unread_count(Enquiry.model_validate(ENQUIRY)) == 1
