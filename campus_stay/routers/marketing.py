from __future__ import annotations

import logging
from typing import NamedTuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from ..core.jinja import get_templates
from ..deps.api import get_api_client
from ..schemas.property import MarketingCategories
from ..services.api_client import ApiClient, ApiError
from ..services.properties import PropertyService

logger = logging.getLogger(__name__)

router = APIRouter()
templates = get_templates()

FEATURED_LIMIT = 8


class Highlight(NamedTuple):
    title: str
    description: str
    icon: str = ""


HERO_STATS = [("10+ years", "Experience"), ("20+", "Cities"), ("1000+", "Properties"), ("400+", "Brokers")]

BOOKING_STEPS = [
    Highlight(
        "Explore detailed listings around your university",
        "Discover accommodation options in your city with no plan fee for students.",
        "map-pin",
    ),
    Highlight(
        "Submit an application and contact broker",
        "Apply for properties with guided support every step of the way.",
        "search",
    ),
    Highlight(
        "Plan your visit and pay physically after you've seen the property",
        "Pay for your accommodation after you have seen the property.",
        "check",
    ),
]

BROKER_BENEFITS = [
    Highlight("Wide Audience", "Access a large pool of students searching for accommodations near universities."),
    Highlight(
        "Hassle-Free Earnings",
        "List properties effortlessly and earn competitive commissions with secure payments.",
    ),
    Highlight("Grow Your Business", "Leverage our platform's tools to manage listings and track performance."),
]

TESTIMONIALS = [
    {
        "quote": "The process was very fast and simple.",
        "body": "I found a room near campus in a few hours and the broker was responsive and always friendly.",
        "author": "John M.",
        "date": "June 15",
    },
]

SECTIONS = [
    ("popular", "Popular listings"),
    ("near_university", "Near your university"),
    ("top_rated", "Top rated"),
    ("cheap", "Budget friendly"),
    ("special_needs", "Accessible homes"),
]


@router.get("/", response_class=HTMLResponse)
async def landing_page(request: Request, client: ApiClient = Depends(get_api_client)):
    categories = MarketingCategories()
    load_error = None
    try:
        categories = await PropertyService(client).marketing_categories(limit=FEATURED_LIMIT)
    except ApiError as exc:
        logger.warning("marketing.load_failed", extra={"extra_data": {"status": exc.status}})
        load_error = "Error loading properties"

    universities = []
    try:
        universities = await PropertyService(client).universities()
    except ApiError:
        logger.info("marketing.universities_unavailable")

    sections = [(key, label, getattr(categories, key)) for key, label in SECTIONS]
    return templates.TemplateResponse(
        request,
        "marketing/index.html",
        {
            "sections": sections,
            "load_error": load_error,
            "universities": universities[:6],
            "hero_stats": HERO_STATS,
            "booking_steps": BOOKING_STEPS,
            "broker_benefits": BROKER_BENEFITS,
            "testimonials": TESTIMONIALS,
        },
    )
