from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from ..core.forms import form_errors
from ..core.jinja import get_templates
from ..core.security import CurrentUser, Role
from ..core.toasts import flash
from ..deps.api import get_api_client
from ..deps.ui_auth import get_current_user, require_role, require_user
from ..schemas.common import Page
from ..schemas.enquiry import EnquiryCreate
from ..schemas.property import PropertyFeature
from ..schemas.review import ReviewForm
from ..services.api_client import ApiClient, ApiError
from ..services.enquiries import EnquiryService
from ..services.favourites import FavouriteService
from ..services.geo import map_payload
from ..services.properties import PropertyService
from ..services.reviews import ReviewService, review_stats, user_review_for
from ..services.search import PROPERTY_TYPES, SORT_OPTIONS, SearchFilters, paginate, sort_properties

logger = logging.getLogger(__name__)

router = APIRouter()
templates = get_templates()


@router.get("/search", response_class=HTMLResponse)
async def search_page(request: Request, client: ApiClient = Depends(get_api_client)):
    filters = SearchFilters.from_query(request.query_params)
    page: Page[PropertyFeature] = Page[PropertyFeature]()
    try:
        page = await PropertyService(client).list_properties(filters.to_api_params())
    except ApiError as exc:
        flash(request, exc.message or "Failed to fetch properties", "error")
    # Keep the page in the chosen order even when the API ignores ``ordering``.
    results = sort_properties(page.results, filters.ordering)

    return templates.TemplateResponse(
        request,
        "browse/search.html",
        {
            "filters": filters,
            "page": page,
            "results": results,
            "pagination": paginate(page.count, filters.page, next_url=page.next, previous_url=page.previous),
            "sort_options": SORT_OPTIONS,
            "property_types": PROPERTY_TYPES,
            "map_data": map_payload(results),
        },
    )


@router.get("/properties/{property_id}", response_class=HTMLResponse)
async def property_detail(request: Request, property_id: int, client: ApiClient = Depends(get_api_client)):
    try:
        feature = await PropertyService(client).get_property(property_id)
    except ApiError as exc:
        flash(request, exc.message or "Failed to load property", "error")
        return RedirectResponse(url="/search", status_code=302)
    if feature is None:
        raise HTTPException(status_code=404, detail="Property not found")

    user = get_current_user(request)
    reviews = []
    try:
        reviews = await ReviewService(client).property_reviews(property_id)
    except ApiError:
        logger.info("property.reviews_unavailable", extra={"extra_data": {"property_id": property_id}})

    is_favourite = False
    if user is not None and user.has_role(Role.STUDENT):
        favourites = FavouriteService(client, user)
        try:
            await favourites.list_favourites()
            is_favourite = favourites.is_favourite(property_id)
        except ApiError:
            logger.info("property.favourites_unavailable")

    return templates.TemplateResponse(
        request,
        "browse/property_detail.html",
        {
            "feature": feature,
            "reviews": reviews,
            "review_stats": review_stats(reviews),
            "own_review": user_review_for(reviews, property_id, user),
            "is_favourite": is_favourite,
            "map_data": map_payload([feature], active_id=feature.id),
            "errors": {},
        },
    )


@router.post("/properties/{property_id}/enquire")
async def enquire(
    request: Request,
    property_id: int,
    message: str = Form(""),
    subject: str = Form(""),
    user: CurrentUser = Depends(require_role(Role.STUDENT)),
    client: ApiClient = Depends(get_api_client),
):
    try:
        payload = EnquiryCreate(property=property_id, message=message.strip(), subject=subject.strip())
    except ValidationError:
        flash(request, "Please write a message for the broker", "error")
        return RedirectResponse(url=f"/properties/{property_id}", status_code=303)
    try:
        await EnquiryService(client).create_enquiry(payload)
    except ApiError as exc:
        flash(request, exc.message or "Failed to create enquiry", "error")
        return RedirectResponse(url=f"/properties/{property_id}", status_code=303)
    flash(request, "Your enquiry has been sent to the broker", "success")
    return RedirectResponse(url="/account/enquiries", status_code=303)


@router.post("/properties/{property_id}/favourite")
async def toggle_favourite(
    request: Request,
    property_id: int,
    user: CurrentUser = Depends(require_user),
    client: ApiClient = Depends(get_api_client),
):
    favourites = FavouriteService(client, user)
    try:
        await favourites.list_favourites()
        added = await favourites.toggle(property_id)
    except ApiError as exc:
        flash(request, exc.message, "error")
    else:
        flash(request, "Added to favourites" if added else "Removed from favourites", "success")
    return RedirectResponse(url=f"/properties/{property_id}", status_code=303)


@router.post("/properties/{property_id}/reviews")
async def submit_review(
    request: Request,
    property_id: int,
    rating: int = Form(0),
    title: str = Form(""),
    comment: str = Form(""),
    user: CurrentUser = Depends(require_user),
    client: ApiClient = Depends(get_api_client),
):
    try:
        form = ReviewForm(property=property_id, rating=rating, title=title.strip(), comment=comment.strip())
    except ValidationError as exc:
        errors = form_errors(exc, {"rating": "Rating must be between 1 and 5"})
        flash(request, next(iter(errors.values())), "error")
        return RedirectResponse(url=f"/properties/{property_id}", status_code=303)
    try:
        await ReviewService(client).create_review(form)
    except ApiError as exc:
        flash(request, exc.message or "Failed to create review", "error")
    else:
        flash(request, "Thanks for your review", "success")
    return RedirectResponse(url=f"/properties/{property_id}#reviews", status_code=303)
