from __future__ import annotations

from typing import Mapping

from pydantic import ValidationError

FIELD_MESSAGES = {
    "email": "Please enter a valid email address",
    "roles": "Choose whether you are a student or a broker",
}


def form_errors(exc: ValidationError, messages: Mapping[str, str] | None = None) -> dict[str, str]:
    """First validation message per field, ready to print under the input."""

    overrides = {**FIELD_MESSAGES, **(messages or {})}
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error.get("loc") else "form"
        if field in errors:
            continue
        if error.get("type") == "value_error" and error["msg"].startswith("Value error, "):
            errors[field] = error["msg"][len("Value error, "):]
        else:
            errors[field] = overrides.get(field, error["msg"])
    return errors
