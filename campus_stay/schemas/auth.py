from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator

_MIN_LENGTHS = {
    "first_name": (2, "First name is required"),
    "last_name": (2, "Last name is required"),
    "username": (3, "Username must be at least 3 characters"),
}


class LoginForm(BaseModel):
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Username is required")
        return value

    @field_validator("password")
    @classmethod
    def _require_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value


class SignupForm(BaseModel):
    first_name: str
    last_name: str
    username: str
    mobile: str
    email: EmailStr
    password: str
    confirm_password: str
    roles: Literal["student", "broker"] = "student"
    university: Optional[str] = None
    course: Optional[str] = None
    company_name: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "first_name": "Amina",
                "last_name": "Mushi",
                "username": "amina",
                "mobile": "0712345678",
                "email": "amina@example.com",
                "password": "s3cure-pass",
                "confirm_password": "s3cure-pass",
                "roles": "student",
            }
        }
    }

    @field_validator("first_name", "last_name", "username")
    @classmethod
    def _check_names(cls, value: str, info: ValidationInfo) -> str:
        minimum, message = _MIN_LENGTHS[info.field_name]
        value = value.strip()
        if len(value) < minimum:
            raise ValueError(message)
        return value

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("Password must be at least 8 characters")
        return value

    @field_validator("mobile")
    @classmethod
    def _mobile_digits(cls, value: str) -> str:
        digits = "".join(ch for ch in value if ch.isdigit())
        if len(digits) < 10:
            raise ValueError("Mobile number must be at least 10 digits")
        return value.strip()

    @field_validator("confirm_password")
    @classmethod
    def _passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if value != info.data.get("password"):
            raise ValueError("Passwords do not match")
        return value

    def to_payload(self) -> dict:
        """Registration body for ``POST /users/``."""

        payload: dict = {
            "username": self.username,
            "email": str(self.email),
            "password": self.password,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "mobile": self.mobile,
            "roles": self.roles,
        }
        if self.roles == "student":
            try:
                university = int(self.university or 0) or 1
            except ValueError:
                university = 1
            payload["student_profile"] = {
                "university": university,
                "course": self.course or "Undeclared",
            }
        elif self.company_name:
            payload["broker_profile"] = {"company_name": self.company_name}
        return payload


class GoogleLoginResponse(BaseModel):
    status: Literal["success", "onboarding_required", "profile_required"]
    access: Optional[str] = None
    refresh: Optional[str] = None
    temp_token: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    google_id: Optional[str] = None


class OnboardingForm(BaseModel):
    temp_token: str = Field(min_length=1)
    roles: Literal["student", "broker"] = "student"
    first_name: str = ""
    last_name: str = ""
    university: Optional[str] = None
    course: Optional[str] = None
