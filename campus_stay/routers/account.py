from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from ..core.jinja import get_templates
from ..core.security import CurrentUser
from ..core.toasts import flash
from ..deps.api import get_api_client
from ..deps.ui_auth import require_navigation_access
from ..schemas.common import Page
from ..schemas.enquiry import Enquiry, MessageCreate
from ..schemas.property import PropertyFeature
from ..services.api_client import ApiClient, ApiError
from ..services.enquiries import EnquiryService, last_message, status_color
from ..services.favourites import FavouriteService
from ..services.properties import PropertyService
from ..services.search import SORT_OPTIONS, SearchFilters, filter_properties, sort_properties
from .dashboard import load_conversation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/account", dependencies=[Depends(require_navigation_access)])
templates = get_templates()


@router.get("", include_in_schema=False)
def account_home():
    return RedirectResponse(url="/account/enquiries", status_code=302)


@router.get("/favourites", response_class=HTMLResponse)
async def favourite_list(
    request: Request,
    user: CurrentUser = Depends(require_navigation_access),
    client: ApiClient = Depends(get_api_client),
):
    filters = SearchFilters.from_query(request.query_params)
    favourites = FavouriteService(client, user)
    properties: list[PropertyFeature] = []
    try:
        await favourites.list_favourites()
        listings = PropertyService(client)
        for favourite in favourites.favourites:
            feature = await listings.get_property(favourite.property)
            if feature is not None:
                properties.append(feature)
    except ApiError as exc:
        flash(request, exc.message, "error")
    # Saved listings are filtered here; the favourites endpoint takes no filters.
    properties = sort_properties(filter_properties(properties, filters), filters.ordering)
    return templates.TemplateResponse(
        request,
        "account/favourites.html",
        {"properties": properties, "filters": filters, "sort_options": SORT_OPTIONS},
    )


@router.post("/favourites/{property_id}/remove")
async def favourite_remove(
    request: Request,
    property_id: int,
    user: CurrentUser = Depends(require_navigation_access),
    client: ApiClient = Depends(get_api_client),
):
    try:
        await FavouriteService(client, user).remove(property_id)
    except ApiError as exc:
        flash(request, exc.message, "error")
    else:
        flash(request, "Removed from favourites", "success")
    return RedirectResponse(url="/account/favourites", status_code=303)


@router.get("/enquiries", response_class=HTMLResponse)
async def enquiry_list(request: Request, client: ApiClient = Depends(get_api_client)):
    service = EnquiryService(client)
    listing: Page[Enquiry] = Page[Enquiry]()
    try:
        listing = await service.list_enquiries({"ordering": "-created_at"})
    except ApiError as exc:
        flash(request, exc.message, "error")
    return templates.TemplateResponse(
        request,
        "account/enquiries.html",
        {
            "page": listing,
            "status_color": status_color,
            "last_message": last_message,
            "total_unread": service.total_unread,
        },
    )


@router.get("/enquiries/{enquiry_id}", response_class=HTMLResponse)
async def enquiry_detail(request: Request, enquiry_id: int, client: ApiClient = Depends(get_api_client)):
    try:
        return await load_conversation(request, client, enquiry_id, "account/enquiry_detail.html")
    except ApiError as exc:
        flash(request, exc.message, "error")
        return RedirectResponse(url="/account/enquiries", status_code=303)


@router.post("/enquiries/{enquiry_id}/reply")
async def enquiry_reply(
    request: Request,
    enquiry_id: int,
    content: str = Form(""),
    client: ApiClient = Depends(get_api_client),
):
    try:
        payload = MessageCreate(content=content.strip())
    except ValidationError:
        flash(request, "Message cannot be empty", "error")
        return RedirectResponse(url=f"/account/enquiries/{enquiry_id}", status_code=303)
    try:
        await EnquiryService(client).send_message(enquiry_id, payload)
    except ApiError as exc:
        flash(request, exc.message, "error")
    return RedirectResponse(url=f"/account/enquiries/{enquiry_id}", status_code=303)


@router.post("/enquiries/{enquiry_id}/cancel")
async def enquiry_cancel(request: Request, enquiry_id: int, client: ApiClient = Depends(get_api_client)):
    try:
        await EnquiryService(client).cancel_enquiry(enquiry_id)
    except ApiError as exc:
        flash(request, exc.message, "error")
    else:
        flash(request, "Enquiry cancelled", "success")
    return RedirectResponse(url="/account/enquiries", status_code=303)
