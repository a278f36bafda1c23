"""
Role Hierarchy — privilege levels and role-change validation.

Hierarchy levels are derived from a role's category, with support roles split
by their configured tier. They are only used to compare roles with each other
(role-change validation, assignable-role listings) and are never persisted.

Role-change validation decides whether an assigner may move a user to a target
role. The engine owns the PROPOSED → VALID | INVALID step; applying a valid
change and recording it belongs to the user store.
"""
from __future__ import annotations

import enum
import logging
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel

from eureka_roles.policy.permissions import has_permission
from eureka_roles.roles.normalizer import resolve_role
from eureka_roles.roles.registry import RoleRegistry, role_registry
from eureka_roles.roles.schema import Permission, Portal, Role, RoleCategory

logger = logging.getLogger(__name__)

CATEGORY_LEVELS: Mapping[RoleCategory, int] = MappingProxyType(
    {
        RoleCategory.SUPER_ADMIN: 100,
        RoleCategory.MANAGEMENT: 80,
        RoleCategory.OPERATIONS: 60,
        RoleCategory.FINANCE: 50,
        RoleCategory.SUPPORT: 20,
        RoleCategory.END_USER: 10,
    }
)

SENIOR_SUPPORT_LEVEL = 30


def level_of(
    role: Role | str,
    registry: RoleRegistry = role_registry,
    category_levels: Mapping[RoleCategory, int] = CATEGORY_LEVELS,
) -> int:
    """
    Numeric privilege level of a canonical role (higher = more privileged).

    Tier-2 support roles rank above tier-1 support roles.
    """
    config = registry.lookup(role)
    if config.category == RoleCategory.SUPPORT and config.tier == 2:
        return SENIOR_SUPPORT_LEVEL
    return category_levels.get(config.category, 0)


# ════════════════════════════════════════════════════════════════
# Role-change validation
# ════════════════════════════════════════════════════════════════

REASON_INSUFFICIENT_PERMISSIONS = "insufficient permissions to assign roles"
REASON_MANAGEMENT_ROLE = "cannot assign management roles"
REASON_SUPER_ADMIN_ROLE = "cannot assign super admin role"


class RoleChangeStatus(str, enum.Enum):
    """Role-change lifecycle. APPLIED is reached outside the engine."""

    PROPOSED = "proposed"
    VALID = "valid"
    INVALID = "invalid"
    APPLIED = "applied"


class RoleChangeRequest(BaseModel):
    """A proposed role change, as submitted by an administrator."""

    model_config = {"frozen": True}

    current_role: str
    target_role: str
    assigner_role: str


class RoleChangeDecision(BaseModel):
    """Validator outcome for a role change."""

    valid: bool
    reason: str | None = None
    status: RoleChangeStatus
    current_role: Role
    target_role: Role
    assigner_role: Role

    @property
    def is_allowed(self) -> bool:
        return self.valid


def validate_change(
    current_role: str | Role,
    target_role: str | Role,
    assigner_role: str | Role,
    registry: RoleRegistry = role_registry,
) -> RoleChangeDecision:
    """
    Decide whether ``assigner_role`` may change a user from ``current_role``
    to ``target_role``.

    All three roles are normalized first. ``current_role`` takes part in no
    rule; it is resolved and echoed back in the decision.

    Returns:
        RoleChangeDecision with ``valid`` and, when invalid, a ``reason``.
    """
    current = resolve_role(current_role)
    target = resolve_role(target_role)
    assigner = resolve_role(assigner_role)

    def decide(reason: str | None = None) -> RoleChangeDecision:
        decision = RoleChangeDecision(
            valid=reason is None,
            reason=reason,
            status=RoleChangeStatus.VALID if reason is None else RoleChangeStatus.INVALID,
            current_role=current,
            target_role=target,
            assigner_role=assigner,
        )
        logger.info(
            "Role change %s -> %s by %s: %s%s",
            current.value,
            target.value,
            assigner.value,
            decision.status.value,
            f" ({reason})" if reason else "",
        )
        return decision

    # Super admin may assign anything, other super admins included
    if assigner == Role.SUPER_ADMIN:
        return decide()

    if not has_permission(assigner, Permission.ASSIGN_ROLES, registry):
        return decide(REASON_INSUFFICIENT_PERMISSIONS)

    assigner_category = registry.category_of(assigner)
    target_category = registry.category_of(target)

    if assigner_category == RoleCategory.SUPPORT and target_category == RoleCategory.MANAGEMENT:
        return decide(REASON_MANAGEMENT_ROLE)

    if target_category == RoleCategory.SUPER_ADMIN:
        return decide(REASON_SUPER_ADMIN_ROLE)

    return decide()


def validate_request(
    request: RoleChangeRequest, registry: RoleRegistry = role_registry
) -> RoleChangeDecision:
    return validate_change(
        request.current_role, request.target_role, request.assigner_role, registry
    )


# ════════════════════════════════════════════════════════════════
# Assignable roles (admin UI)
# ════════════════════════════════════════════════════════════════


class AssignableRole(BaseModel):
    role: Role
    name: str
    description: str
    portal: Portal
    category: RoleCategory


def display_name(role: Role) -> str:
    """``campaign_manager`` → ``Campaign Manager``."""
    return " ".join(part.capitalize() for part in role.value.split("_"))


def assignable_roles(
    assigner_role: str | Role, registry: RoleRegistry = role_registry
) -> list[AssignableRole]:
    """Roles an assigner may offer in the role-assignment UI."""
    assigner = resolve_role(assigner_role)
    assigner_level = level_of(assigner, registry)

    result: list[AssignableRole] = []
    for role, config in registry.items():
        if assigner != Role.SUPER_ADMIN and level_of(role, registry) > assigner_level:
            continue
        result.append(
            AssignableRole(
                role=role,
                name=display_name(role),
                description=config.description,
                portal=config.portal,
                category=config.category,
            )
        )
    return result
