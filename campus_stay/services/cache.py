"""Short-lived response caches shared by the service layer.

Entries are partitioned by the signed-in principal so one user's listing is
never served to another.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from cachetools import TTLCache

ENQUIRY_TTL_SECONDS = 2 * 60
USER_TTL_SECONDS = 5 * 60
REVIEW_TTL_SECONDS = 3 * 60

enquiry_cache: TTLCache = TTLCache(maxsize=512, ttl=ENQUIRY_TTL_SECONDS)
message_cache: TTLCache = TTLCache(maxsize=512, ttl=ENQUIRY_TTL_SECONDS)
user_cache: TTLCache = TTLCache(maxsize=256, ttl=USER_TTL_SECONDS)
review_cache: TTLCache = TTLCache(maxsize=512, ttl=REVIEW_TTL_SECONDS)


def cache_key(principal: str, scope: str, params: Mapping[str, Any] | None = None) -> tuple[str, str, str]:
    return principal, scope, json.dumps(dict(params or {}), sort_keys=True, default=str)


def clear_all() -> None:
    for cache in (enquiry_cache, message_cache, user_cache, review_cache):
        cache.clear()
