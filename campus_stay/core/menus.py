from __future__ import annotations

from typing import NamedTuple

from .security import Role


class MenuItem(NamedTuple):
    label: str
    href: str
    icon: str


BROKER_SIDEBAR_ITEMS = [
    MenuItem("Dashboard", "/dashboard", "layout-dashboard"),
    MenuItem("Property Management", "/dashboard/properties", "building"),
    MenuItem("Enquiry Management", "/dashboard/enquiries", "message-square"),
    MenuItem("User Management", "/dashboard/users", "user-circle"),
]

ADMIN_SIDEBAR_ITEMS = [
    MenuItem("Overview", "/admin", "layout-dashboard"),
    MenuItem("Users", "/admin/users", "users"),
    MenuItem("Amenities", "/admin/amenities", "sparkles"),
    MenuItem("Universities", "/admin/universities", "school"),
    MenuItem("Broker Dashboard", "/dashboard", "building"),
]

STUDENT_MENU_ITEMS = [
    MenuItem("Browse", "/search", "search"),
    MenuItem("Favourites", "/account/favourites", "heart"),
    MenuItem("My Enquiries", "/account/enquiries", "message-square"),
]

FOOTER_MENU_ITEMS = [
    MenuItem("Logout", "/logout", "log-out"),
]


def menus_for(role: Role | None) -> list[MenuItem]:
    if role is Role.ADMIN:
        return ADMIN_SIDEBAR_ITEMS
    if role is Role.BROKER:
        return BROKER_SIDEBAR_ITEMS
    if role is Role.STUDENT:
        return STUDENT_MENU_ITEMS
    return []
