from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from .common import UserSummary


class EnquiryStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class EnquiryStudent(BaseModel):
    id: int | str
    user: Optional[UserSummary] = None


class EnquiryProperty(BaseModel):
    id: int | str
    title: str = ""
    address: str = ""
    price: Optional[float] = None
    user: Optional[UserSummary] = None


class EnquiryMessage(BaseModel):
    id: int | str
    enquiry: Optional[int] = None
    sender: Optional[UserSummary] = None
    content: str = ""
    is_read: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Enquiry(BaseModel):
    id: int | str
    student: Optional[EnquiryStudent] = None
    property: Optional[EnquiryProperty] = None
    subject: str = ""
    message: str = ""
    status: EnquiryStatus = EnquiryStatus.PENDING
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    messages: list[EnquiryMessage] = Field(default_factory=list)
    unread_count: int = 0

    @field_validator("student", "property", mode="before")
    @classmethod
    def _expand_id(cls, value: Any) -> Any:
        if isinstance(value, (int, str)) and not isinstance(value, bool):
            return {"id": value}
        return value


class EnquiryCreate(BaseModel):
    property: int
    message: str = Field(min_length=1)
    subject: str = ""


class EnquiryUpdate(BaseModel):
    status: Optional[EnquiryStatus] = None
    is_active: Optional[bool] = None


class MessageCreate(BaseModel):
    content: str = Field(min_length=1)


class EnquiryFilters(BaseModel):
    status: Optional[EnquiryStatus] = None
    is_active: Optional[bool] = None
    property: Optional[int] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
    ordering: Optional[str] = None
    search: Optional[str] = None
