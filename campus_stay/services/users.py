from __future__ import annotations

import logging
from typing import Any, Mapping

from ..schemas.common import Page
from ..schemas.user import StudentProfileUpdate, User, UserUpdate
from .api_client import ApiClient
from .cache import cache_key, user_cache
from .search import clean_filters

logger = logging.getLogger(__name__)

USERS_ENDPOINT = "/users/"


class UserService:
    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.users: list[User] = []

    def _apply_local(self, updated: User) -> None:
        self.users = [updated if str(item.id) == str(updated.id) else item for item in self.users]

    async def list_users(self, filters: Mapping[str, Any] | None = None, use_cache: bool = True) -> Page[User]:
        params = clean_filters(filters)
        key = cache_key(self.client.principal, "users", params)
        if use_cache and key in user_cache:
            page = user_cache[key]
        else:
            result = await self.client.get(USERS_ENDPOINT, params=params)
            result.raise_for_error("Failed to load users")
            page = Page[User].from_payload(result.data)
            if use_cache:
                user_cache[key] = page
        self.users = list(page.results)
        return page

    async def students_by_university(self, university_id: int | str) -> list[User]:
        page = await self.list_users({"university_id": university_id, "roles": "student"}, use_cache=False)
        return page.results

    async def get_user(self, user_id: int | str) -> User | None:
        result = await self.client.get(f"{USERS_ENDPOINT}{user_id}/")
        if result.status == 404:
            return None
        result.raise_for_error(f"Failed to fetch user {user_id}")
        return User.model_validate(result.data)

    async def me(self) -> User:
        result = await self.client.get(f"{USERS_ENDPOINT}me/")
        result.raise_for_error("Failed to load your profile")
        return User.model_validate(result.data)

    async def update_me(self, changes: UserUpdate) -> User:
        result = await self.client.patch(f"{USERS_ENDPOINT}me/", json=changes.model_dump(exclude_none=True))
        result.raise_for_error("Failed to update your profile")
        user_cache.clear()
        return User.model_validate(result.data)

    async def update_user(self, user_id: int | str, changes: UserUpdate) -> User:
        result = await self.client.put(f"{USERS_ENDPOINT}{user_id}/", json=changes.model_dump(exclude_none=True))
        result.raise_for_error(f"Failed to update user {user_id}")
        updated = User.model_validate(result.data)
        self._apply_local(updated)
        user_cache.clear()
        return updated

    async def patch_user(self, user_id: int | str, changes: Mapping[str, Any]) -> User:
        result = await self.client.patch(f"{USERS_ENDPOINT}{user_id}/", json=dict(changes))
        result.raise_for_error(f"Failed to update user {user_id}")
        updated = User.model_validate(result.data)
        self._apply_local(updated)
        user_cache.clear()
        return updated

    async def update_student_profile(self, user_id: int | str, profile: StudentProfileUpdate) -> User:
        # Profile endpoint reads form fields, not JSON.
        data = {key: str(value) for key, value in profile.model_dump(exclude_none=True).items()}
        result = await self.client.patch(f"{USERS_ENDPOINT}{user_id}/student-profile/", data=data)
        result.raise_for_error("Failed to update student profile")
        user_cache.clear()
        return User.model_validate(result.data)

    async def delete_user(self, user_id: int | str) -> bool:
        result = await self.client.delete(f"{USERS_ENDPOINT}{user_id}/")
        result.raise_for_error(f"Failed to delete user {user_id}")
        self.users = [item for item in self.users if str(item.id) != str(user_id)]
        user_cache.clear()
        return True

    async def suspend_user(self, user_id: int | str) -> bool:
        """Deactivate an account; the local list reflects it before the call returns."""

        previous = list(self.users)
        self.users = [
            item.model_copy(update={"is_active": False}) if str(item.id) == str(user_id) else item
            for item in self.users
        ]
        result = await self.client.patch(f"{USERS_ENDPOINT}{user_id}/", json={"is_active": False})
        if not result.success:
            self.users = previous
            result.raise_for_error("Failed to suspend user")
        logger.info("user.suspended", extra={"extra_data": {"user_id": str(user_id)}})
        user_cache.clear()
        return True
