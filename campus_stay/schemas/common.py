from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """DRF-style paginated listing (``count``/``next``/``previous``/``results``)."""

    count: int = 0
    next: str | None = None
    previous: str | None = None
    results: list[T] = Field(default_factory=list)

    @property
    def has_next(self) -> bool:
        return bool(self.next)

    @property
    def has_previous(self) -> bool:
        return bool(self.previous)

    @classmethod
    def from_payload(cls, payload: Any) -> "Page[T]":
        """Normalise the shapes the API returns into a page.

        ``results`` may be a plain list or a GeoJSON ``FeatureCollection``;
        some endpoints skip pagination and return a bare list.
        """

        if isinstance(payload, list):
            return cls.model_validate({"count": len(payload), "results": payload})
        if not isinstance(payload, dict):
            return cls()
        results = payload.get("results")
        if isinstance(results, dict):
            results = results.get("features") or []
        elif not isinstance(results, list):
            results = payload.get("features") if isinstance(payload.get("features"), list) else []
        return cls.model_validate(
            {
                "count": payload.get("count", len(results)) or 0,
                "next": payload.get("next"),
                "previous": payload.get("previous"),
                "results": results,
            }
        )


class UserSummary(BaseModel):
    id: int | str
    username: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username
