"""Sign-in, registration and Google onboarding pages.

WHAT: Renders the auth forms and forwards submissions to the remote API.
WHEN: Reached from the header links and from any guarded page redirect.
HOW: Forms are validated with the pydantic models in ``schemas.auth``; on
success the token pair lands in cookies and the browser is redirected to
the requested page or the role's home.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from ..core.forms import form_errors
from ..core.jinja import get_templates
from ..core.toasts import flash
from ..deps.api import get_api_client
from ..deps.ui_auth import get_current_user
from ..schemas.auth import LoginForm, OnboardingForm, SignupForm
from ..services import auth as auth_service
from ..services.api_client import ApiClient

logger = logging.getLogger(__name__)

router = APIRouter()
templates = get_templates()

GOOGLE_CSRF_COOKIE = "g_csrf_token"


def _google_csrf_ok(request: Request, submitted: str) -> bool:
    cookie = request.cookies.get(GOOGLE_CSRF_COOKIE)
    return bool(cookie and submitted) and hmac.compare_digest(cookie.encode(), submitted.encode())


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, redirect: str = ""):
    user = get_current_user(request)
    if user is not None:
        return RedirectResponse(url=auth_service.post_login_redirect(user, redirect), status_code=302)
    return templates.TemplateResponse(
        request, "auth/login.html", {"redirect": redirect, "errors": {}, "values": {}}
    )


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    redirect: str = Form(""),
    client: ApiClient = Depends(get_api_client),
):
    try:
        form = LoginForm(username=username, password=password)
    except ValidationError as exc:
        return templates.TemplateResponse(
            request,
            "auth/login.html",
            {"redirect": redirect, "errors": form_errors(exc), "values": {"username": username}},
            status_code=400,
        )

    result = await auth_service.login(client, form.username, form.password)
    if not result.success:
        logger.info("auth.login_failed", extra={"extra_data": {"username": form.username}})
        flash(request, result.error or "Login failed", "error")
        return templates.TemplateResponse(
            request,
            "auth/login.html",
            {"redirect": redirect, "errors": {}, "values": {"username": form.username}},
            status_code=401,
        )
    flash(request, f"Welcome back, {result.user.display_name}", "success")
    return RedirectResponse(url=auth_service.post_login_redirect(result.user, redirect), status_code=303)


@router.get("/signup", response_class=HTMLResponse)
def signup_page(request: Request, role: str = "student"):
    values = {"roles": role if role in {"student", "broker"} else "student"}
    return templates.TemplateResponse(request, "auth/signup.html", {"errors": {}, "values": values})


@router.post("/signup", response_class=HTMLResponse)
async def signup_submit(request: Request, client: ApiClient = Depends(get_api_client)):
    submitted = dict(await request.form())
    values = {key: value for key, value in submitted.items() if isinstance(value, str)}
    try:
        form = SignupForm.model_validate(values)
    except ValidationError as exc:
        safe_values = {k: v for k, v in values.items() if "password" not in k}
        return templates.TemplateResponse(
            request,
            "auth/signup.html",
            {"errors": form_errors(exc), "values": safe_values},
            status_code=400,
        )

    result = await auth_service.register(client, form)
    if not result.success:
        flash(request, result.error or "Registration failed", "error")
        safe_values = {k: v for k, v in values.items() if "password" not in k}
        return templates.TemplateResponse(
            request, "auth/signup.html", {"errors": {}, "values": safe_values}, status_code=400
        )
    flash(request, "Your account has been created", "success")
    if result.user is None:
        return RedirectResponse(url="/login", status_code=303)
    return RedirectResponse(url=result.user.home, status_code=303)


@router.post("/auth/google", response_class=HTMLResponse)
async def google_callback(
    request: Request,
    credential: str = Form(""),
    redirect: str = Form(""),
    g_csrf_token: str = Form(""),
    client: ApiClient = Depends(get_api_client),
):
    """Receives the Google Identity Services credential posted by the sign-in button.

    Google sets a ``g_csrf_token`` cookie and posts the same value in the form;
    the two must match before the credential is trusted.
    """

    if not _google_csrf_ok(request, g_csrf_token):
        logger.warning("auth.google_csrf_mismatch")
        flash(request, "Google login failed", "error")
        return RedirectResponse(url="/login", status_code=303)
    if not credential:
        flash(request, "Google login failed", "error")
        return RedirectResponse(url="/login", status_code=303)
    result = await auth_service.google_login(client, credential)
    if not result.success:
        flash(request, result.error or "Google login failed", "error")
        return RedirectResponse(url="/login", status_code=303)
    if result.google and result.google.status != "success":
        request.session["google_onboarding"] = {
            "temp_token": result.google.temp_token,
            "email": result.google.email,
            "first_name": result.google.first_name,
            "last_name": result.google.last_name,
        }
        return RedirectResponse(url="/onboarding", status_code=303)
    return RedirectResponse(url=auth_service.post_login_redirect(result.user, redirect), status_code=303)


@router.get("/onboarding", response_class=HTMLResponse)
def onboarding_page(request: Request):
    pending = request.session.get("google_onboarding")
    if not pending:
        return RedirectResponse(url="/login", status_code=302)
    return templates.TemplateResponse(request, "auth/onboarding.html", {"pending": pending, "errors": {}})


@router.post("/onboarding", response_class=HTMLResponse)
async def onboarding_submit(
    request: Request,
    roles: str = Form("student"),
    first_name: str = Form(""),
    last_name: str = Form(""),
    university: str = Form(""),
    course: str = Form(""),
    client: ApiClient = Depends(get_api_client),
):
    pending = request.session.get("google_onboarding") or {}
    try:
        form = OnboardingForm(
            temp_token=pending.get("temp_token") or "",
            roles=roles,
            first_name=first_name or pending.get("first_name") or "",
            last_name=last_name or pending.get("last_name") or "",
            university=university or None,
            course=course or None,
        )
    except ValidationError as exc:
        errors = form_errors(exc)
        if "temp_token" in errors:
            flash(request, "Your Google sign-in expired, please try again", "error")
            return RedirectResponse(url="/login", status_code=303)
        return templates.TemplateResponse(
            request, "auth/onboarding.html", {"pending": pending, "errors": errors}, status_code=400
        )

    result = await auth_service.complete_google_onboarding(client, form)
    if not result.success:
        flash(request, result.error or "Failed to complete onboarding", "error")
        return templates.TemplateResponse(
            request, "auth/onboarding.html", {"pending": pending, "errors": {}}, status_code=400
        )
    request.session.pop("google_onboarding", None)
    flash(request, "Welcome to Campus Stay", "success")
    return RedirectResponse(url=result.user.home, status_code=303)


@router.api_route("/logout", methods=["GET", "POST"])
def logout(request: Request, client: ApiClient = Depends(get_api_client)):
    auth_service.logout(client)
    request.session.pop("google_onboarding", None)
    flash(request, "You have been logged out", "info")
    return RedirectResponse(url="/login", status_code=303)
