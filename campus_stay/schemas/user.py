from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int | str
    username: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    roles: Optional[str] = None
    is_active: bool = True
    date_joined: Optional[str] = None
    mobile: Optional[str] = None
    student_profile: Optional[dict[str, Any]] = None
    broker_profile: Optional[dict[str, Any]] = None

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username

    @property
    def initials(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name[0]}{self.last_name[0]}".upper()
        return self.username[:2].upper()

    @property
    def university_name(self) -> str | None:
        return (self.student_profile or {}).get("university_name")

    @property
    def course(self) -> str | None:
        return (self.student_profile or {}).get("course")


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None


class StudentProfileUpdate(BaseModel):
    university: Optional[int] = None
    course: Optional[str] = None
    year_of_study: Optional[int] = None
    graduation_year: Optional[int] = None
    student_id: Optional[str] = None
    bio: Optional[str] = None
    phone_number: Optional[str] = None
    emergency_contact: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[Literal["M", "F", "O"]] = None
    nationality: Optional[str] = None
    special_needs: Optional[str] = None


class UserFilters(BaseModel):
    search: Optional[str] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
    ordering: Optional[str] = None
    roles: Optional[str] = None
    is_active: Optional[bool] = None
    university_id: Optional[str] = None
    course: Optional[str] = None
    date_joined_after: Optional[str] = None
    date_joined_before: Optional[str] = None
