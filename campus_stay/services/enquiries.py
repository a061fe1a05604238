"""Enquiry threads between students and brokers."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from ..schemas.common import Page
from ..schemas.enquiry import Enquiry, EnquiryCreate, EnquiryMessage, EnquiryStatus, EnquiryUpdate, MessageCreate
from .api_client import ApiClient
from .cache import cache_key, enquiry_cache, message_cache
from .search import clean_filters

logger = logging.getLogger(__name__)

ENQUIRIES_ENDPOINT = "/messages/enquiries/"

SORT_OPTIONS = [
    ("-updated_at", "Most Recent"),
    ("updated_at", "Oldest First"),
    ("-created_at", "Newest First"),
    ("created_at", "Earliest First"),
    ("status", "Status"),
    ("subject", "Subject A-Z"),
    ("-subject", "Subject Z-A"),
]

STATUS_COLORS = {
    EnquiryStatus.PENDING: "orange",
    EnquiryStatus.IN_PROGRESS: "blue",
    EnquiryStatus.RESOLVED: "green",
    EnquiryStatus.CANCELLED: "red",
}


def status_color(status: EnquiryStatus | str) -> str:
    try:
        return STATUS_COLORS[EnquiryStatus(status)]
    except ValueError:
        return "gray"


def unread_count(enquiry: Enquiry) -> int:
    return sum(1 for message in enquiry.messages if not message.is_read)


def last_message(enquiry: Enquiry) -> EnquiryMessage | None:
    return enquiry.messages[-1] if enquiry.messages else None


def _serialise_filters(filters: Mapping[str, Any] | None) -> dict[str, Any]:
    cleaned = clean_filters(filters)
    return {key: value.value if isinstance(value, EnquiryStatus) else value for key, value in cleaned.items()}


class EnquiryService:
    """Per-request view over ``/messages/enquiries/``.

    ``enquiries`` and ``messages`` mirror the last fetched collections so
    writes can be reflected locally without another round trip.
    """

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.enquiries: list[Enquiry] = []
        self.messages: dict[str, list[EnquiryMessage]] = {}
        self.page: Page[Enquiry] | None = None

    def _item_url(self, enquiry_id: int | str, suffix: str = "") -> str:
        return f"{ENQUIRIES_ENDPOINT}{enquiry_id}/{suffix}"

    def _replace_local(self, updated: Enquiry) -> None:
        self.enquiries = [updated if str(item.id) == str(updated.id) else item for item in self.enquiries]

    async def list_enquiries(self, filters: Mapping[str, Any] | None = None, use_cache: bool = True) -> Page[Enquiry]:
        params = _serialise_filters(filters)
        key = cache_key(self.client.principal, "enquiries", params)
        if use_cache and key in enquiry_cache:
            page = enquiry_cache[key]
        else:
            result = await self.client.get(ENQUIRIES_ENDPOINT, params=params)
            result.raise_for_error("Failed to fetch enquiries")
            page = Page[Enquiry].from_payload(result.data)
            if use_cache:
                enquiry_cache[key] = page
        self.page = page
        self.enquiries = list(page.results)
        return page

    async def search_enquiries(self, query: str, filters: Mapping[str, Any] | None = None) -> Page[Enquiry]:
        return await self.list_enquiries({**(filters or {}), "search": query}, use_cache=False)

    async def get_enquiry(self, enquiry_id: int | str) -> Enquiry | None:
        result = await self.client.get(self._item_url(enquiry_id))
        if result.status == 404:
            return None
        result.raise_for_error(f"Failed to fetch enquiry {enquiry_id}")
        return Enquiry.model_validate(result.data)

    async def create_enquiry(self, payload: EnquiryCreate) -> Enquiry:
        result = await self.client.post(ENQUIRIES_ENDPOINT, json=payload.model_dump(exclude_defaults=True))
        result.raise_for_error("Failed to create enquiry")
        enquiry_cache.clear()
        logger.info("enquiry.created", extra={"extra_data": {"property": payload.property}})
        return Enquiry.model_validate(result.data)

    async def update_enquiry(self, enquiry_id: int | str, payload: EnquiryUpdate) -> Enquiry:
        result = await self.client.patch(self._item_url(enquiry_id), json=payload.model_dump(mode="json", exclude_none=True))
        result.raise_for_error(f"Failed to update enquiry {enquiry_id}")
        updated = Enquiry.model_validate(result.data)
        self._replace_local(updated)
        enquiry_cache.clear()
        return updated

    async def update_status(self, enquiry_id: int | str, status: EnquiryStatus) -> Enquiry:
        return await self.update_enquiry(enquiry_id, EnquiryUpdate(status=status))

    async def cancel_enquiry(self, enquiry_id: int | str) -> bool:
        result = await self.client.delete(self._item_url(enquiry_id))
        result.raise_for_error(f"Failed to cancel enquiry {enquiry_id}")
        self.enquiries = [
            item.model_copy(update={"status": EnquiryStatus.CANCELLED, "is_active": False})
            if str(item.id) == str(enquiry_id)
            else item
            for item in self.enquiries
        ]
        enquiry_cache.clear()
        return True

    async def mark_as_read(self, enquiry_id: int | str) -> bool:
        result = await self.client.post(self._item_url(enquiry_id, "mark-as-read/"))
        result.raise_for_error(f"Failed to mark enquiry {enquiry_id} as read")
        self.enquiries = [
            item.model_copy(
                update={
                    "unread_count": 0,
                    "messages": [message.model_copy(update={"is_read": True}) for message in item.messages],
                }
            )
            if str(item.id) == str(enquiry_id)
            else item
            for item in self.enquiries
        ]
        return True

    async def fetch_messages(self, enquiry_id: int | str, use_cache: bool = True) -> list[EnquiryMessage]:
        key = cache_key(self.client.principal, f"messages:{enquiry_id}")
        if use_cache and key in message_cache:
            messages = message_cache[key]
        else:
            result = await self.client.get(self._item_url(enquiry_id, "messages/"))
            result.raise_for_error(f"Failed to fetch messages for enquiry {enquiry_id}")
            messages = Page[EnquiryMessage].from_payload(result.data).results
            if use_cache:
                message_cache[key] = messages
        self.messages[str(enquiry_id)] = list(messages)
        return list(messages)

    async def send_message(
        self, enquiry_id: int | str, payload: MessageCreate, enquiry: Enquiry | None = None
    ) -> tuple[EnquiryMessage, Enquiry | None]:
        """Post a reply; a pending enquiry moves to ``in_progress`` locally."""

        result = await self.client.post(self._item_url(enquiry_id, "messages/"), json=payload.model_dump())
        result.raise_for_error("Failed to send message")
        message = EnquiryMessage.model_validate(result.data)
        self.messages.setdefault(str(enquiry_id), []).append(message)
        message_cache.pop(cache_key(self.client.principal, f"messages:{enquiry_id}"), None)

        if enquiry is None:
            enquiry = next((item for item in self.enquiries if str(item.id) == str(enquiry_id)), None)
        if enquiry is not None:
            status = EnquiryStatus.IN_PROGRESS if enquiry.status is EnquiryStatus.PENDING else enquiry.status
            enquiry = enquiry.model_copy(
                update={
                    "status": status,
                    "messages": [*enquiry.messages, message],
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                }
            )
            self._replace_local(enquiry)
        return message, enquiry

    def next_page_filters(self, filters: Mapping[str, Any]) -> dict[str, Any] | None:
        if not self.page or not self.page.has_next:
            return None
        return {**filters, "page": int(filters.get("page") or 1) + 1}

    def previous_page_filters(self, filters: Mapping[str, Any]) -> dict[str, Any] | None:
        if not self.page or not self.page.has_previous:
            return None
        return {**filters, "page": max(1, int(filters.get("page") or 1) - 1)}

    @property
    def total_unread(self) -> int:
        return sum(unread_count(item) for item in self.enquiries)
