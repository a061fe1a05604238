from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class Reviewer(BaseModel):
    id: int | str
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    profile_picture: Optional[str] = None

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username


class Review(BaseModel):
    id: int | str
    reviewer: Optional[Reviewer] = None
    property: int | str
    rating: int = Field(ge=1, le=5)
    title: str = ""
    comment: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ReviewForm(BaseModel):
    property: int
    rating: int = Field(ge=1, le=5)
    title: str = Field(default="", max_length=200)
    comment: str = ""


class ReviewFilters(BaseModel):
    property: Optional[int] = None
    rating: Optional[int] = None
    rating__gte: Optional[int] = None
    rating__lte: Optional[int] = None
    ordering: Optional[str] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
    search: Optional[str] = None


class ReviewStats(BaseModel):
    total_reviews: int = 0
    average_rating: float = 0.0
    rating_distribution: dict[int, int] = Field(default_factory=lambda: {star: 0 for star in range(1, 6)})


class Favourite(BaseModel):
    id: int | str
    user: int | str
    property: int | str
    added_at: Optional[str] = None
