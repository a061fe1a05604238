from __future__ import annotations

import logging

from ..core.security import CurrentUser
from ..schemas.common import Page
from ..schemas.property import PropertyFeature
from ..schemas.review import Favourite
from .api_client import ApiClient, ApiError

logger = logging.getLogger(__name__)

FAVOURITES_ENDPOINT = "/favourites/"


class FavouriteService:
    def __init__(self, client: ApiClient, user: CurrentUser | None) -> None:
        self.client = client
        self.user = user
        self.favourites: list[Favourite] = []

    def _require_user(self, action: str) -> CurrentUser:
        if self.user is None:
            raise ApiError(401, f"Please log in to {action} favorites")
        return self.user

    def is_favourite(self, property_id: int | str) -> bool:
        return any(str(item.property) == str(property_id) for item in self.favourites)

    async def list_favourites(self) -> Page[Favourite]:
        if self.user is None:
            self.favourites = []
            return Page[Favourite]()
        result = await self.client.get(FAVOURITES_ENDPOINT, params={"user_id": self.user.id})
        result.raise_for_error("Failed to fetch favorites")
        page = Page[Favourite].from_payload(result.data)
        self.favourites = list(page.results)
        return page

    async def top_properties(self) -> list[PropertyFeature]:
        result = await self.client.get(f"{FAVOURITES_ENDPOINT}top-properties/")
        result.raise_for_error("Failed to fetch top properties")
        return Page[PropertyFeature].from_payload(result.data).results

    async def add(self, property_id: int | str) -> bool:
        user = self._require_user("add")
        if self.is_favourite(property_id):
            return True
        result = await self.client.post(
            f"{FAVOURITES_ENDPOINT}add-favourite/", json={"user_id": user.id, "property_id": property_id}
        )
        result.raise_for_error("Failed to add to favorites")
        if isinstance(result.data, dict) and "id" in result.data:
            self.favourites.append(Favourite.model_validate(result.data))
        logger.info("favourite.added", extra={"extra_data": {"property_id": str(property_id)}})
        return True

    async def remove(self, property_id: int | str) -> bool:
        user = self._require_user("remove")
        previous = list(self.favourites)
        self.favourites = [item for item in self.favourites if str(item.property) != str(property_id)]
        result = await self.client.delete(
            f"{FAVOURITES_ENDPOINT}remove-favourite/",
            data={"user_id": str(user.id), "property_id": str(property_id)},
        )
        if not result.success:
            self.favourites = previous
            result.raise_for_error("Failed to remove from favorites")
        return True

    async def toggle(self, property_id: int | str) -> bool:
        """Flip the favourite state; returns whether the property is now a favourite."""

        if self.is_favourite(property_id):
            await self.remove(property_id)
            return False
        await self.add(property_id)
        return True
