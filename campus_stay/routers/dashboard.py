"""Broker dashboard: overview figures, listings, enquiries and students.

WHAT: Server-rendered pages under ``/dashboard`` for brokers (admins may
look in too).
WHEN: A broker lands here after signing in.
HOW: Every route shares the ``require_navigation_access`` guard; data comes
from the per-request services and failures surface as toasts.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from starlette.datastructures import FormData, UploadFile

from ..core.forms import form_errors
from ..core.jinja import get_templates
from ..core.security import CurrentUser, Role
from ..core.toasts import flash
from ..deps.api import get_api_client
from ..deps.ui_auth import require_navigation_access
from ..schemas.common import Page
from ..schemas.enquiry import Enquiry, EnquiryStatus, MessageCreate
from ..schemas.property import PropertyFeature, PropertyForm
from ..schemas.user import User
from ..services.api_client import ApiClient, ApiError
from ..services.enquiries import SORT_OPTIONS as ENQUIRY_SORT_OPTIONS
from ..services.enquiries import EnquiryService, last_message, status_color
from ..services.properties import (
    MAX_IMAGES,
    PropertyService,
    Upload,
    UploadRejected,
    feature_to_form,
)
from ..services.search import PROPERTY_TYPES, clean_filters, paginate
from ..services.stats import compute_stats
from ..services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", dependencies=[Depends(require_navigation_access)])
templates = get_templates()

CHECKBOX_FIELDS = ("is_furnished", "is_available", "is_fenced", "water_supply")

PROPERTY_MESSAGES = {
    "title": "Title is required",
    "property_type": "Property type is required",
    "price": "Price must be greater than 0",
    "latitude": "Latitude must be between -90 and 90",
    "longitude": "Longitude must be between -180 and 180",
}


def _form_values(form: FormData) -> dict[str, Any]:
    values: dict[str, Any] = {
        key: value.strip()
        for key, value in form.items()
        if isinstance(value, str) and key not in CHECKBOX_FIELDS and key != "amenity_ids"
    }
    for key in CHECKBOX_FIELDS:
        values[key] = key in form
    values["amenity_ids"] = [item for item in form.getlist("amenity_ids") if isinstance(item, str) and item]
    return {key: value for key, value in values.items() if value != ""}


async def _uploads(form: FormData) -> tuple[list[Upload], Upload | None]:
    images: list[Upload] = []
    for item in form.getlist("images"):
        if isinstance(item, UploadFile) and item.filename:
            images.append(Upload(item.filename, await item.read(), item.content_type or "image/jpeg"))
    video = None
    raw_video = form.get("video")
    if isinstance(raw_video, UploadFile) and raw_video.filename:
        video = Upload(raw_video.filename, await raw_video.read(), raw_video.content_type or "video/mp4")
    return images, video


async def _amenities(service: PropertyService) -> list:
    try:
        return await service.amenities()
    except ApiError:
        logger.info("dashboard.amenities_unavailable")
        return []


def _render_property_form(
    request: Request,
    *,
    values: Any,
    amenities: list,
    errors: dict[str, str],
    feature: PropertyFeature | None = None,
    status_code: int = 200,
):
    return templates.TemplateResponse(
        request,
        "dashboard/property_form.html",
        {
            "form": values,
            "feature": feature,
            "amenities": amenities,
            "property_types": PROPERTY_TYPES,
            "errors": errors,
            "max_images": MAX_IMAGES,
        },
        status_code=status_code,
    )


async def _listings(service: PropertyService, user: CurrentUser) -> Page[PropertyFeature]:
    if user.has_role(Role.ADMIN):
        return await service.list_properties()
    return await service.my_properties()


@router.get("", response_class=HTMLResponse)
async def dashboard_home(
    request: Request,
    user: CurrentUser = Depends(require_navigation_access),
    client: ApiClient = Depends(get_api_client),
):
    properties: list[PropertyFeature] = []
    enquiries: list[Enquiry] = []
    students: list[User] = []
    try:
        properties = (await _listings(PropertyService(client), user)).results
    except ApiError as exc:
        flash(request, exc.message, "error")
    try:
        enquiries = (await EnquiryService(client).list_enquiries()).results
    except ApiError as exc:
        flash(request, exc.message, "error")
    try:
        students = (await UserService(client).list_users({"roles": Role.STUDENT.value})).results
    except ApiError:
        logger.info("dashboard.students_unavailable")

    return templates.TemplateResponse(
        request,
        "dashboard/index.html",
        {"stats": compute_stats(properties, enquiries, students), "status_color": status_color},
    )


@router.get("/properties", response_class=HTMLResponse)
async def property_list(
    request: Request,
    user: CurrentUser = Depends(require_navigation_access),
    client: ApiClient = Depends(get_api_client),
):
    page: Page[PropertyFeature] = Page[PropertyFeature]()
    try:
        page = await _listings(PropertyService(client), user)
    except ApiError as exc:
        flash(request, exc.message, "error")
    return templates.TemplateResponse(request, "dashboard/properties.html", {"page": page})


@router.get("/properties/new", response_class=HTMLResponse)
async def property_new(request: Request, client: ApiClient = Depends(get_api_client)):
    amenities = await _amenities(PropertyService(client))
    return _render_property_form(
        request, values={"is_available": True, "lease_duration": 12}, amenities=amenities, errors={}
    )


@router.post("/properties/new", response_class=HTMLResponse)
async def property_create(
    request: Request,
    user: CurrentUser = Depends(require_navigation_access),
    client: ApiClient = Depends(get_api_client),
):
    service = PropertyService(client)
    submitted = await request.form()
    values = _form_values(submitted)
    try:
        form = PropertyForm.model_validate(values)
    except ValidationError as exc:
        return _render_property_form(
            request,
            values=values,
            amenities=await _amenities(service),
            errors=form_errors(exc, PROPERTY_MESSAGES),
            status_code=400,
        )

    images, video = await _uploads(submitted)
    try:
        await service.create_property(form, user.id, images=images, video=video)
    except UploadRejected as exc:
        return _render_property_form(
            request, values=values, amenities=await _amenities(service), errors={"images": str(exc)}, status_code=400
        )
    except ApiError as exc:
        flash(request, exc.message, "error")
        return _render_property_form(
            request, values=values, amenities=await _amenities(service), errors={}, status_code=400
        )
    flash(request, "Property created", "success")
    return RedirectResponse(url="/dashboard/properties", status_code=303)


@router.get("/properties/{property_id}/edit", response_class=HTMLResponse)
async def property_edit(request: Request, property_id: int, client: ApiClient = Depends(get_api_client)):
    service = PropertyService(client)
    try:
        feature = await service.get_property(property_id)
    except ApiError as exc:
        flash(request, exc.message, "error")
        return RedirectResponse(url="/dashboard/properties", status_code=303)
    if feature is None:
        raise HTTPException(status_code=404, detail="Property not found")
    return _render_property_form(
        request,
        values=feature_to_form(feature).model_dump(),
        amenities=await _amenities(service),
        errors={},
        feature=feature,
    )


@router.post("/properties/{property_id}/edit", response_class=HTMLResponse)
async def property_update(request: Request, property_id: int, client: ApiClient = Depends(get_api_client)):
    service = PropertyService(client)
    values = _form_values(await request.form())
    try:
        form = PropertyForm.model_validate(values)
    except ValidationError as exc:
        return _render_property_form(
            request,
            values=values,
            amenities=await _amenities(service),
            errors=form_errors(exc, PROPERTY_MESSAGES),
            status_code=400,
        )
    try:
        await service.update_property(property_id, form)
    except ApiError as exc:
        flash(request, exc.message, "error")
        return _render_property_form(
            request, values=values, amenities=await _amenities(service), errors={}, status_code=400
        )
    flash(request, "Property updated", "success")
    return RedirectResponse(url="/dashboard/properties", status_code=303)


@router.post("/properties/{property_id}/availability")
async def property_availability(
    request: Request,
    property_id: int,
    is_available: bool = Form(False),
    client: ApiClient = Depends(get_api_client),
):
    try:
        await PropertyService(client).patch_property(property_id, {"is_available": is_available})
    except ApiError as exc:
        flash(request, exc.message, "error")
    else:
        flash(request, "Listing marked available" if is_available else "Listing marked unavailable", "success")
    return RedirectResponse(url="/dashboard/properties", status_code=303)


@router.post("/properties/{property_id}/delete")
async def property_delete(request: Request, property_id: int, client: ApiClient = Depends(get_api_client)):
    try:
        await PropertyService(client).delete_property(property_id)
    except ApiError as exc:
        flash(request, exc.message, "error")
    else:
        flash(request, "Property deleted", "success")
    return RedirectResponse(url="/dashboard/properties", status_code=303)


@router.get("/enquiries", response_class=HTMLResponse)
async def enquiry_list(
    request: Request,
    status: str = "",
    search: str = "",
    ordering: str = "-created_at",
    page: int = 1,
    client: ApiClient = Depends(get_api_client),
):
    service = EnquiryService(client)
    filters = clean_filters({"status": status, "ordering": ordering, "page": page if page > 1 else None})
    listing: Page[Enquiry] = Page[Enquiry]()
    try:
        if search.strip():
            listing = await service.search_enquiries(search.strip(), filters)
        else:
            listing = await service.list_enquiries(filters)
    except ApiError as exc:
        flash(request, exc.message, "error")
    return templates.TemplateResponse(
        request,
        "dashboard/enquiries.html",
        {
            "page": listing,
            "filters": {"status": status, "search": search, "ordering": ordering},
            "pagination": paginate(listing.count, page, next_url=listing.next, previous_url=listing.previous),
            "next_filters": service.next_page_filters({**filters, "search": search}),
            "previous_filters": service.previous_page_filters({**filters, "search": search}),
            "statuses": list(EnquiryStatus),
            "sort_options": ENQUIRY_SORT_OPTIONS,
            "status_color": status_color,
            "last_message": last_message,
            "total_unread": service.total_unread,
        },
    )


async def load_conversation(request: Request, client: ApiClient, enquiry_id: int, template: str):
    """Enquiry detail shared by the broker and student pages; marks it read on open."""

    service = EnquiryService(client)
    enquiry = await service.get_enquiry(enquiry_id)
    if enquiry is None:
        raise HTTPException(status_code=404, detail="Enquiry not found")
    messages = await service.fetch_messages(enquiry_id, use_cache=False)
    if enquiry.unread_count or any(not message.is_read for message in messages):
        try:
            await service.mark_as_read(enquiry_id)
        except ApiError:
            logger.info("enquiry.mark_read_failed", extra={"extra_data": {"enquiry_id": enquiry_id}})
    return templates.TemplateResponse(
        request,
        template,
        {
            "enquiry": enquiry,
            "messages": messages,
            "statuses": list(EnquiryStatus),
            "status_color": status_color,
        },
    )


@router.get("/enquiries/{enquiry_id}", response_class=HTMLResponse)
async def enquiry_detail(request: Request, enquiry_id: int, client: ApiClient = Depends(get_api_client)):
    try:
        return await load_conversation(request, client, enquiry_id, "dashboard/enquiry_detail.html")
    except ApiError as exc:
        flash(request, exc.message, "error")
        return RedirectResponse(url="/dashboard/enquiries", status_code=303)


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
        return RedirectResponse(url=f"/dashboard/enquiries/{enquiry_id}", status_code=303)
    service = EnquiryService(client)
    try:
        enquiry = await service.get_enquiry(enquiry_id)
        _, updated = await service.send_message(enquiry_id, payload, enquiry)
        if enquiry is not None and updated is not None and updated.status is not enquiry.status:
            await service.update_status(enquiry_id, updated.status)
    except ApiError as exc:
        flash(request, exc.message, "error")
    return RedirectResponse(url=f"/dashboard/enquiries/{enquiry_id}", status_code=303)


@router.post("/enquiries/{enquiry_id}/status")
async def enquiry_status(
    request: Request,
    enquiry_id: int,
    status: str = Form(...),
    client: ApiClient = Depends(get_api_client),
):
    try:
        new_status = EnquiryStatus(status)
    except ValueError:
        flash(request, f"Unknown status '{status}'", "error")
        return RedirectResponse(url=f"/dashboard/enquiries/{enquiry_id}", status_code=303)
    try:
        await EnquiryService(client).update_status(enquiry_id, new_status)
    except ApiError as exc:
        flash(request, exc.message, "error")
    else:
        flash(request, f"Enquiry marked {new_status.label.lower()}", "success")
    return RedirectResponse(url=f"/dashboard/enquiries/{enquiry_id}", status_code=303)


@router.get("/users", response_class=HTMLResponse)
async def student_list(
    request: Request,
    search: str = "",
    university_id: str = "",
    page: int = 1,
    client: ApiClient = Depends(get_api_client),
):
    filters = clean_filters(
        {
            "roles": Role.STUDENT.value,
            "search": search.strip(),
            "university_id": university_id,
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
        "dashboard/users.html",
        {
            "page": listing,
            "filters": {"search": search, "university_id": university_id},
            "pagination": paginate(listing.count, page, next_url=listing.next, previous_url=listing.previous),
        },
    )
