"""
Permission Evaluator — boolean checks of canonical roles against permissions.

Each check reads only the permission set of the role in question, so its cost
grows with the number of permissions asked about, never with the size of the
role table.
"""

from __future__ import annotations

from typing import Iterable

from eureka_roles.roles.registry import RoleRegistry, role_registry
from eureka_roles.roles.schema import Permission, Role


def has_permission(
    role: Role | str,
    permission: Permission,
    registry: RoleRegistry = role_registry,
) -> bool:
    """True iff ``permission`` is in the role's permission set."""
    return permission in registry.permissions_of(role)


def has_all(
    role: Role | str,
    permissions: Iterable[Permission],
    registry: RoleRegistry = role_registry,
) -> bool:
    """AND over ``permissions``; vacuously true when empty."""
    held = registry.permissions_of(role)
    return all(permission in held for permission in permissions)


def has_any(
    role: Role | str,
    permissions: Iterable[Permission],
    registry: RoleRegistry = role_registry,
) -> bool:
    """OR over ``permissions``; false when empty."""
    held = registry.permissions_of(role)
    return any(permission in held for permission in permissions)


def missing_permissions(
    role: Role | str,
    permissions: Iterable[Permission],
    registry: RoleRegistry = role_registry,
) -> list[Permission]:
    """Permissions from ``permissions`` the role does not hold, in request order."""
    held = registry.permissions_of(role)
    missing: list[Permission] = []
    for permission in permissions:
        if permission not in held and permission not in missing:
            missing.append(permission)
    return missing
