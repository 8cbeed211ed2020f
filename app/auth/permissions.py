"""Role based capability checks.

Each role maps to a set of ``(module, action)`` grants. System roles carry
built-in grants; custom roles store theirs on ``Role.permissions``. A
``Permissions`` value is built once per request from the roles table and
answers ``has(user, module, action)``.

The admin dashboard has its own module: ``dashboard:view`` for the
platform-wide reports and leaderboards, ``dashboard:view_feeds`` for the
active-order, activity and ticket feeds. Restaurant owners and drivers get
neither.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from app.auth.models.user import Role, User

AVAILABLE_PERMISSIONS: dict[str, tuple[str, ...]] = {
    "users": ("view", "create", "edit", "delete", "manage_roles"),
    "restaurants": ("view", "create", "edit", "delete", "approve"),
    "categories": ("view", "create", "edit", "delete"),
    "subcategories": ("view", "create", "edit", "delete"),
    "products": ("view", "create", "edit", "delete"),
    "orders": ("view", "create", "edit", "delete", "manage_status"),
    "drivers": ("view", "create", "edit", "delete", "assign"),
    "offers": ("view", "create", "edit", "delete"),
    "coupons": ("view", "create", "edit", "delete"),
    "reviews": ("view", "edit", "delete", "respond"),
    "support": ("view", "respond", "close"),
    "settings": ("view", "edit"),
    "logs": ("view",),
    "reports": ("view", "export"),
    "dashboard": ("view", "view_feeds"),
}

SYSTEM_ROLE_PERMISSIONS: dict[str, Mapping[str, Iterable[str]]] = {
    "ADMIN": AVAILABLE_PERMISSIONS,
    "MANAGER": {
        "restaurants": ("view",),
        "products": ("view",),
        "orders": ("view", "manage_status"),
        "drivers": ("view", "assign"),
        "support": ("view",),
        "logs": ("view",),
        "reports": ("view", "export"),
        "dashboard": ("view", "view_feeds"),
    },
    "SUPPORT": {
        "orders": ("view",),
        "support": ("view", "respond", "close"),
        "logs": ("view",),
        "dashboard": ("view_feeds",),
    },
    "RESTAURANT_OWNER": {
        "restaurants": ("view", "edit"),
        "categories": ("view",),
        "subcategories": ("view",),
        "products": ("view", "create", "edit", "delete"),
        "orders": ("view", "manage_status"),
        "reviews": ("view", "respond"),
        "reports": ("view",),
    },
    "DRIVER": {
        "orders": ("view", "manage_status"),
    },
    "CUSTOMER": {},
}

Grant = tuple[str, str]


def _grants_from_mapping(permissions: Mapping[str, Any] | None) -> frozenset[Grant]:
    """Flatten ``{module: [actions]}`` keeping only known modules and actions."""
    if not permissions:
        return frozenset()
    grants: set[Grant] = set()
    for module, actions in permissions.items():
        allowed = AVAILABLE_PERMISSIONS.get(module, ())
        if isinstance(actions, str):
            actions = [actions]
        for action in actions or ():
            if action in allowed:
                grants.add((module, action))
    return frozenset(grants)


@dataclass(frozen=True)
class Permissions:
    """Role -> grants mapping for the lifetime of one request."""

    grants: Mapping[str, frozenset[Grant]] = field(default_factory=dict)

    @classmethod
    def from_roles(cls, roles: Iterable[Role]) -> "Permissions":
        grants: dict[str, frozenset[Grant]] = {
            name: _grants_from_mapping(mapping) for name, mapping in SYSTEM_ROLE_PERMISSIONS.items()
        }
        for role in roles:
            name = role.name.upper()
            if name in SYSTEM_ROLE_PERMISSIONS:
                continue
            grants[name] = _grants_from_mapping(role.permissions)
        return cls(grants=grants)

    def has(self, subject: User, module: str, action: str) -> bool:
        grant = (module, action)
        return any(grant in self.grants.get(name, frozenset()) for name in subject.role_names)

