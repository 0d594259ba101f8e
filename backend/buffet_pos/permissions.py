"""
Role gating definitions.

DESIGN PRINCIPLES:
- Three fixed roles: admin, manager, cashier (Profile.role)
- Every protected operation names the roles allowed to run it
- The check itself is the pure function is_allowed(); nothing here touches
  the request or the database
"""
from __future__ import annotations

from typing import Iterable

from .models.auth import ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER


ALL_ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER)
MANAGEMENT_ROLES = (ROLE_ADMIN, ROLE_MANAGER)
ADMIN_ONLY = (ROLE_ADMIN,)


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission: code -> (description, allowed roles)
PERMISSION_DEFINITIONS = {
    "CREATE_SALE": ("Ring up and check out a cart", ALL_ROLES),
    "VIEW_SALES": ("View sales history and sale details", ALL_ROLES),
    "REFUND_SALE": ("Refund a completed sale", ALL_ROLES),
    "VIEW_PRODUCTS": ("Browse and search the product catalog", ALL_ROLES),
    "MANAGE_PRODUCTS": ("Create, edit and delete products", MANAGEMENT_ROLES),
    "VIEW_INVENTORY": ("View stock levels and low-stock alerts", MANAGEMENT_ROLES),
    "MANAGE_INVENTORY": ("Set stock quantities and thresholds", MANAGEMENT_ROLES),
    "VIEW_CUSTOMERS": ("Look up customers at checkout", ALL_ROLES),
    "MANAGE_CUSTOMERS": ("Create, edit and delete customers", MANAGEMENT_ROLES),
    "VIEW_REPORTS": ("View revenue, expense and profit reports", MANAGEMENT_ROLES),
    "MANAGE_EXPENSES": ("Record and edit expenses", MANAGEMENT_ROLES),
    "VIEW_EMPLOYEES": ("List employee profiles", MANAGEMENT_ROLES),
    "MANAGE_EMPLOYEES": ("Change employee roles and profiles", ADMIN_ONLY),
    "MANAGE_SETTINGS": ("Edit store settings", ADMIN_ONLY),
}


# Navigation table of the POS shell: path -> roles allowed to open it
ROUTE_ROLES = {
    "/": ALL_ROLES,
    "/sales": ALL_ROLES,
    "/products": MANAGEMENT_ROLES,
    "/inventory": MANAGEMENT_ROLES,
    "/customers": MANAGEMENT_ROLES,
    "/reports": MANAGEMENT_ROLES,
    "/employees": MANAGEMENT_ROLES,
    "/expenses": MANAGEMENT_ROLES,
    "/settings": ADMIN_ONLY,
    "/admin": ADMIN_ONLY,
}

PUBLIC_ROUTES = ("/login", "/unauthorized")


def is_allowed(role: str | None, required_roles: Iterable[str] | None) -> bool:
    """
    True when `role` may access something gated by `required_roles`.

    No requirement (None) means any signed-in role is allowed; an unknown or
    missing role is never allowed.
    """
    if role not in ALL_ROLES:
        return False
    if required_roles is None:
        return True
    return role in tuple(required_roles)


def roles_for_permission(permission_code: str) -> tuple[str, ...]:
    try:
        return PERMISSION_DEFINITIONS[permission_code][1]
    except KeyError:
        raise KeyError(f"Unknown permission: {permission_code}")


def has_permission(role: str | None, permission_code: str) -> bool:
    return is_allowed(role, roles_for_permission(permission_code))


def permissions_for_role(role: str | None) -> list[str]:
    return sorted(code for code in PERMISSION_DEFINITIONS if has_permission(role, code))


def can_open_route(role: str | None, path: str) -> bool:
    """Route-guard check for the UI shell; unknown paths require sign-in only."""
    if path in PUBLIC_ROUTES:
        return True
    return is_allowed(role, ROUTE_ROLES.get(path))
