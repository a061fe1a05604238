from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..deps.api import get_api_client
from ..services.api_client import ApiClient, ApiError
from ..services.geo import map_payload
from ..services.properties import PropertyService
from ..services.search import SearchFilters

router = APIRouter(prefix="/api/v1", tags=["map"])


@router.get("/map/properties")
async def map_properties(request: Request, active: str | None = None, client: ApiClient = Depends(get_api_client)):
    """Markers and bounds for the browse map, using the same filters as ``/search``.

    ``static/js/map.js`` calls this when the search filter form changes.
    """

    filters = SearchFilters.from_query(request.query_params)
    try:
        page = await PropertyService(client).list_properties(filters.to_api_params())
    except ApiError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc
    payload = map_payload(page.results, active_id=active)
    payload["count"] = page.count
    return payload
