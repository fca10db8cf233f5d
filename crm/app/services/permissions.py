from __future__ import annotations

from collections.abc import Mapping

from crm.app.models import Role

PERMISSION_KEYS = (
    "canExportData",
    "canDeleteLeads",
    "canDeleteDeals",
    "canViewAnalytics",
    "canManageQuizzes",
    "canBulkActions",
)

DEFAULT_PERMISSIONS: dict[str, bool] = {key: False for key in PERMISSION_KEYS}
ALL_PERMISSIONS_GRANTED: dict[str, bool] = {key: True for key in PERMISSION_KEYS}

ROLE_HIERARCHY: dict[Role, int] = {
    Role.EMPLOYEE: 1,
    Role.MANAGER: 2,
    Role.OWNER: 3,
    Role.SUPER_ADMIN: 4,
}

# roles at or above this level hold every permission regardless of overrides
_FULL_ACCESS_LEVEL = ROLE_HIERARCHY[Role.MANAGER]


def has_minimum_role(role: Role, minimum: Role) -> bool:
    return ROLE_HIERARCHY[role] >= ROLE_HIERARCHY[minimum]


def get_effective_permissions(role: Role, overrides: Mapping[str, object] | None) -> dict[str, bool]:
    if ROLE_HIERARCHY[role] >= _FULL_ACCESS_LEVEL:
        return dict(ALL_PERMISSIONS_GRANTED)
    effective = dict(DEFAULT_PERMISSIONS)
    for key, value in (overrides or {}).items():
        if key in effective and isinstance(value, bool):
            effective[key] = value
    return effective


def has_permission(role: Role, permissions: Mapping[str, bool] | None, key: str) -> bool:
    if ROLE_HIERARCHY[role] >= _FULL_ACCESS_LEVEL:
        return True
    if not permissions:
        return DEFAULT_PERMISSIONS.get(key, False)
    return bool(permissions.get(key, DEFAULT_PERMISSIONS.get(key, False)))
