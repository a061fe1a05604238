from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ..core.jinja import get_templates
from ..core.security import Role
from ..core.toasts import flash
from ..deps.api import get_api_client
from ..deps.ui_auth import require_navigation_access
from ..schemas.common import Page
from ..schemas.property import Amenity, University
from ..schemas.user import User
from ..services.api_client import ApiClient, ApiError
from ..services.enquiries import EnquiryService, status_color
from ..services.properties import PropertyService
from ..services.search import clean_filters, paginate
from ..services.stats import compute_stats
from ..services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", dependencies=[Depends(require_navigation_access)])
templates = get_templates()

ROLE_FILTERS = [("", "All roles"), *[(role.value, role.value.title()) for role in Role]]


@router.get("", response_class=HTMLResponse)
async def admin_home(request: Request, client: ApiClient = Depends(get_api_client)):
    properties, enquiries, users = [], [], []
    try:
        properties = (await PropertyService(client).list_properties()).results
        enquiries = (await EnquiryService(client).list_enquiries()).results
        users = (await UserService(client).list_users()).results
    except ApiError as exc:
        flash(request, exc.message, "error")
    return templates.TemplateResponse(
        request,
        "admin/index.html",
        {
            "stats": compute_stats(properties, enquiries, users),
            "user_count": len(users),
            "status_color": status_color,
        },
    )


@router.get("/users", response_class=HTMLResponse)
async def user_list(
    request: Request,
    search: str = "",
    roles: str = "",
    is_active: str = "",
    page: int = 1,
    client: ApiClient = Depends(get_api_client),
):
    filters = clean_filters(
        {
            "search": search.strip(),
            "roles": roles,
            "is_active": {"true": True, "false": False}.get(is_active),
            "page": page if page > 1 else None,
        }
    )
    listing: Page[User] = Page[User]()
    try:
        listing = await UserService(client).list_users(filters)
    except ApiError as exc:
        flash(request, exc.message, "error")
    return templates.TemplateResponse(
        request,
        "admin/users.html",
        {
            "page": listing,
            "filters": {"search": search, "roles": roles, "is_active": is_active},
            "role_filters": ROLE_FILTERS,
            "pagination": paginate(listing.count, page, next_url=listing.next, previous_url=listing.previous),
        },
    )


@router.post("/users/{user_id}/suspend")
async def suspend_user(request: Request, user_id: int, client: ApiClient = Depends(get_api_client)):
    try:
        await UserService(client).suspend_user(user_id)
    except ApiError as exc:
        flash(request, exc.message, "error")
    else:
        flash(request, "User suspended", "success")
    return RedirectResponse(url="/admin/users", status_code=303)


@router.post("/users/{user_id}/delete")
async def delete_user(request: Request, user_id: int, client: ApiClient = Depends(get_api_client)):
    try:
        await UserService(client).delete_user(user_id)
    except ApiError as exc:
        flash(request, exc.message, "error")
    else:
        flash(request, "User deleted", "success")
    return RedirectResponse(url="/admin/users", status_code=303)


@router.get("/amenities", response_class=HTMLResponse)
async def amenity_list(request: Request, client: ApiClient = Depends(get_api_client)):
    amenities: list[Amenity] = []
    try:
        amenities = await PropertyService(client).amenities()
    except ApiError as exc:
        flash(request, exc.message, "error")
    return templates.TemplateResponse(request, "admin/amenities.html", {"amenities": amenities})


@router.post("/amenities")
async def amenity_create(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    client: ApiClient = Depends(get_api_client),
):
    try:
        amenity = await PropertyService(client).add_amenity(name, description.strip())
    except ApiError as exc:
        flash(request, exc.message, "error")
    else:
        flash(request, f"Amenity '{amenity.name}' added", "success")
    return RedirectResponse(url="/admin/amenities", status_code=303)


@router.get("/universities", response_class=HTMLResponse)
async def university_list(request: Request, client: ApiClient = Depends(get_api_client)):
    universities: list[University] = []
    try:
        universities = await PropertyService(client).universities()
    except ApiError as exc:
        flash(request, exc.message, "error")
    return templates.TemplateResponse(request, "admin/universities.html", {"universities": universities})


@router.post("/universities")
async def university_create(
    request: Request,
    name: str = Form(""),
    location: str = Form(""),
    client: ApiClient = Depends(get_api_client),
):
    try:
        university = await PropertyService(client).add_university(name, location)
    except ApiError as exc:
        flash(request, exc.message, "error")
    else:
        flash(request, f"University '{university.name}' added", "success")
    return RedirectResponse(url="/admin/universities", status_code=303)
