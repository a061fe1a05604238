"""End-to-end checks of routing, role gates and rendered pages."""

import os
import sys
import time
from pathlib import Path

import httpx
import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from jose import jwt

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("API_BASE_URL", "http://api.test/api")

from campus_stay.deps.api import get_api_client, request_tokens
from campus_stay.main import app
from campus_stay.services import cache
from campus_stay.services.api_client import ApiClient

BASE = "http://api.test/api"
HTML = {"Accept": "text/html"}

LISTING = {
    "count": 1,
    "next": None,
    "previous": None,
    "results": [
        {
            "id": 12,
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [39.25, -6.77]},
            "properties": {"title": "Mwenge studio", "price": 250000, "bedrooms": 1},
        }
    ],
}


SAVED = {
    "/api/properties/12/": {"id": 12, "properties": {"title": "Mwenge studio", "address": "Mwenge", "price": 250000}},
    "/api/properties/13/": {"id": 13, "properties": {"title": "Sinza room", "address": "Sinza", "price": 120000}},
}

API_CALLS = []
REFRESH = {"status": 200}


def token_for(role, expires_in=3600):
    payload = {"user_id": 7, "username": f"{role}_user", "roles": role, "exp": int(time.time()) + expires_in}
    return jwt.encode(payload, "test-key", algorithm="HS256")


def api_handler(request):
    path = request.url.path
    API_CALLS.append(path)
    if path == "/api/token/refresh/":
        if REFRESH["status"] != 200:
            return httpx.Response(REFRESH["status"], json={"detail": "Token is invalid or expired"})
        return httpx.Response(200, json={"access": token_for("admin")})
    if path == "/api/users/google_login/":
        payload = {"status": "success", "access": token_for("student"), "refresh": "google-refresh"}
        return httpx.Response(200, json=payload)
    if path == "/api/users/":
        return httpx.Response(200, json={"count": 0, "results": []})
    if path == "/api/users/login/":
        return httpx.Response(200, json={"access": token_for("broker"), "refresh": "refresh-token"})
    if path == "/api/favourites/":
        return httpx.Response(200, json=[{"id": 1, "user": 7, "property": 12}, {"id": 2, "user": 7, "property": 13}])
    if path in SAVED:
        return httpx.Response(200, json=SAVED[path])
    if path == "/api/properties/":
        return httpx.Response(200, json=LISTING)
    return httpx.Response(404, json={"detail": "Not found."})


@pytest.fixture()
def client():
    async def mock_client(request: Request):
        async with ApiClient(
            base_url=BASE, tokens=request_tokens(request), transport=httpx.MockTransport(api_handler)
        ) as api:
            yield api

    app.dependency_overrides[get_api_client] = mock_client
    cache.clear_all()
    API_CALLS.clear()
    REFRESH["status"] = 200
    yield TestClient(app)
    app.dependency_overrides.clear()
    cache.clear_all()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_anonymous_dashboard_redirects_to_login(client):
    response = client.get("/dashboard", headers=HTML, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/login?redirect=%2Fdashboard"


def test_anonymous_api_call_gets_json_envelope(client):
    response = client.get("/dashboard")

    assert response.status_code == 401
    assert response.json()["message"] == "Login required"


def test_student_is_sent_home_from_dashboard(client):
    client.cookies.set("access_token", token_for("student"))

    response = client.get("/dashboard", headers=HTML, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/search"


def test_admin_user_list_renders_empty_state(client):
    client.cookies.set("access_token", token_for("admin"))

    response = client.get("/admin/users", headers=HTML)

    assert response.status_code == 200
    assert "No users found" in response.text


def test_map_properties_returns_markers(client):
    response = client.get("/api/v1/map/properties", params={"active": "12"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["count"] == 1
    marker = payload["markers"]["features"][0]
    assert marker["geometry"]["coordinates"] == [39.25, -6.77]
    assert marker["properties"]["active"] is True


def test_security_headers_and_request_id(client):
    response = client.get("/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers.get("X-Request-ID")


def test_login_sets_token_cookies_and_redirects_home(client):
    response = client.post(
        "/login", data={"username": "broker_user", "password": "secret123"}, follow_redirects=False
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"
    cookies = response.headers.get_list("set-cookie")
    assert any(cookie.startswith("access_token=") and "HttpOnly" in cookie for cookie in cookies)
    assert any(cookie.startswith("refresh_token=refresh-token") for cookie in cookies)


def set_cookies(response):
    return response.headers.get_list("set-cookie")


def test_expired_access_token_is_refreshed_by_the_guard(client):
    client.cookies.set("access_token", token_for("admin", expires_in=-600))
    client.cookies.set("refresh_token", "refresh-token")

    response = client.get("/admin/users", headers=HTML, follow_redirects=False)

    assert response.status_code == 200
    assert "/api/token/refresh/" in API_CALLS
    assert any(cookie.startswith("access_token=ey") for cookie in set_cookies(response))


def test_failed_refresh_redirects_to_login_and_clears_cookies(client):
    REFRESH["status"] = 401
    client.cookies.set("access_token", token_for("admin", expires_in=-600))
    client.cookies.set("refresh_token", "stale-refresh")

    response = client.get("/admin/users", headers=HTML, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/login?redirect=%2Fadmin%2Fusers"
    cookies = set_cookies(response)
    assert any(cookie.startswith("access_token=") and "Max-Age=0" in cookie for cookie in cookies)
    assert any(cookie.startswith("refresh_token=") and "Max-Age=0" in cookie for cookie in cookies)


def test_google_callback_requires_matching_csrf_cookie(client):
    response = client.post("/auth/google", data={"credential": "google-id-token"}, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert "/api/users/google_login/" not in API_CALLS
    assert not any(cookie.startswith("access_token=") for cookie in set_cookies(response))


def test_google_callback_rejects_mismatched_csrf_value(client):
    client.cookies.set("g_csrf_token", "cookie-value")

    response = client.post(
        "/auth/google",
        data={"credential": "google-id-token", "g_csrf_token": "other-value"},
        follow_redirects=False,
    )

    assert response.headers["location"] == "/login"
    assert "/api/users/google_login/" not in API_CALLS


def test_google_callback_signs_in_with_matching_csrf(client):
    client.cookies.set("g_csrf_token", "double-submit")

    response = client.post(
        "/auth/google",
        data={"credential": "google-id-token", "g_csrf_token": "double-submit"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/search"
    assert "/api/users/google_login/" in API_CALLS
    assert any(cookie.startswith("refresh_token=google-refresh") for cookie in set_cookies(response))


def test_student_favourites_are_searched_and_sorted_locally(client):
    client.cookies.set("access_token", token_for("student"))

    response = client.get("/account/favourites", params={"ordering": "price"}, headers=HTML)

    assert response.status_code == 200
    assert response.text.index("Sinza room") < response.text.index("Mwenge studio")

    response = client.get("/account/favourites", params={"search": "sinza"}, headers=HTML)

    assert "Sinza room" in response.text
    assert "Mwenge studio" not in response.text
