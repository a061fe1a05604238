from __future__ import annotations

from typing import Any, Iterable, Mapping

from ..core.security import CurrentUser
from ..schemas.common import Page
from ..schemas.review import Review, ReviewForm, ReviewStats
from .api_client import ApiClient
from .cache import cache_key, review_cache
from .search import clean_filters

REVIEWS_ENDPOINT = "/property-reviews/"

SORT_OPTIONS = [
    ("-created_at", "Newest First"),
    ("created_at", "Oldest First"),
    ("-rating", "Highest Rating"),
    ("rating", "Lowest Rating"),
    ("reviewer__username", "Reviewer A-Z"),
    ("-reviewer__username", "Reviewer Z-A"),
]


def review_stats(reviews: Iterable[Review]) -> ReviewStats:
    items = list(reviews)
    distribution = {star: 0 for star in range(1, 6)}
    if not items:
        return ReviewStats(rating_distribution=distribution)
    for review in items:
        if review.rating in distribution:
            distribution[review.rating] += 1
    average = sum(review.rating for review in items) / len(items)
    return ReviewStats(
        total_reviews=len(items),
        average_rating=round(average, 1),
        rating_distribution=distribution,
    )


def user_review_for(reviews: Iterable[Review], property_id: int | str, user: CurrentUser | None) -> Review | None:
    if user is None:
        return None
    for review in reviews:
        if str(review.property) == str(property_id) and review.reviewer and str(review.reviewer.id) == user.id:
            return review
    return None


class ReviewService:
    def __init__(self, client: ApiClient) -> None:
        self.client = client

    async def list_reviews(self, filters: Mapping[str, Any] | None = None, use_cache: bool = True) -> Page[Review]:
        params = clean_filters(filters)
        key = cache_key(self.client.principal, "reviews", params)
        if use_cache and key in review_cache:
            return review_cache[key]
        result = await self.client.get(REVIEWS_ENDPOINT, params=params)
        result.raise_for_error("Failed to fetch reviews")
        page = Page[Review].from_payload(result.data)
        if use_cache:
            review_cache[key] = page
        return page

    async def property_reviews(self, property_id: int | str, **filters: Any) -> list[Review]:
        page = await self.list_reviews({"property": property_id, **filters})
        return page.results

    async def user_reviews(self, user_id: int | str) -> list[Review]:
        key = cache_key(self.client.principal, f"user-reviews:{user_id}")
        if key in review_cache:
            return review_cache[key]
        result = await self.client.get(f"{REVIEWS_ENDPOINT}user-reviews/{user_id}/")
        result.raise_for_error("Failed to fetch user reviews")
        reviews = Page[Review].from_payload(result.data).results
        review_cache[key] = reviews
        return reviews

    async def get_review(self, review_id: int | str) -> Review | None:
        result = await self.client.get(f"{REVIEWS_ENDPOINT}{review_id}/")
        if result.status == 404:
            return None
        result.raise_for_error(f"Failed to fetch review {review_id}")
        return Review.model_validate(result.data)

    async def create_review(self, form: ReviewForm) -> Review:
        result = await self.client.post(REVIEWS_ENDPOINT, json=form.model_dump())
        result.raise_for_error("Failed to create review")
        review_cache.clear()
        return Review.model_validate(result.data)

    async def update_review(self, review_id: int | str, form: ReviewForm) -> Review:
        result = await self.client.put(f"{REVIEWS_ENDPOINT}{review_id}/", json=form.model_dump())
        result.raise_for_error(f"Failed to update review {review_id}")
        review_cache.clear()
        return Review.model_validate(result.data)

    async def delete_review(self, review_id: int | str) -> bool:
        result = await self.client.delete(f"{REVIEWS_ENDPOINT}{review_id}/")
        result.raise_for_error(f"Failed to delete review {review_id}")
        review_cache.clear()
        return True
