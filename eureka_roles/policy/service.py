"""
Role Service — the policy engine as seen by request handlers and admin UI code.

Every method takes the raw role string an identity carries, normalizes it, and
answers from the active role registry. The service holds no per-identity
state. Its only mutable attribute is the registry reference itself, which
``reload`` replaces in a single assignment so readers observe either the old
table or the new one, never a mixture.
"""

from __future__ import annotations

import logging
from typing import Iterable

from pydantic import BaseModel, Field

from eureka_roles.policy import escalation, hierarchy, permissions
from eureka_roles.policy.guard import AuthorizationDecision, Guard, Identity, Requirement
from eureka_roles.policy.hierarchy import AssignableRole, RoleChangeDecision
from eureka_roles.roles.normalizer import NormalizedRole, normalize
from eureka_roles.roles.registry import RoleRegistry, role_registry
from eureka_roles.roles.schema import (
    LEGACY_ALIASES,
    Permission,
    Portal,
    Role,
    RoleCategory,
    RoleConfig,
)

logger = logging.getLogger(__name__)

PORTAL_PREFERENCE_BONUS = 0.2


# ── Result models ─────────────────────────────────────────────


class UIComponentFlags(BaseModel):
    """Which portal's components the UI should render for a role."""

    show_brand_components: bool
    show_admin_components: bool
    show_publisher_components: bool
    portal: Portal


class RoleStatistics(BaseModel):
    total_roles: int
    roles_by_portal: dict[Portal, int]
    roles_by_category: dict[RoleCategory, int]


class RoleComparison(BaseModel):
    first_only: list[Permission]
    second_only: list[Permission]
    common: list[Permission]
    first_portal: Portal
    second_portal: Portal


class UserRoleAssignment(BaseModel):
    """Role fields of a stored user, as read by the user store."""

    user_id: str | None = None
    email: str | None = None
    eureka_role: str | None = None
    legacy_role: str | None = None
    portal: Portal | None = None
    permissions: list[Permission] = Field(
        default_factory=list, description="Explicit grants; override the role's set when non-empty"
    )
    is_active: bool = True


class RoleValidationResult(BaseModel):
    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[Role] = Field(default_factory=list)


class PermissionCheckResult(BaseModel):
    """Permission check over a stored user, with what was held and missing."""

    has_permission: bool
    required_permissions: list[Permission]
    user_permissions: list[Permission]
    missing_permissions: list[Permission]


class RoleTransitionResult(BaseModel):
    allowed: bool
    reason: str | None = None


class MigrationCandidates(BaseModel):
    """Users sorted by whether their role fields still need work."""

    needs_migration: list[UserRoleAssignment] = Field(default_factory=list)
    has_errors: list[UserRoleAssignment] = Field(default_factory=list)
    valid: list[UserRoleAssignment] = Field(default_factory=list)


class MigrationStatus(BaseModel):
    migrated: int = 0
    pending: int = 0
    errors: int = 0


class UserRoleReport(BaseModel):
    """Role distribution over a set of stored users."""

    total_users: int
    by_portal: dict[Portal, int]
    by_eureka_role: dict[str, int] = Field(default_factory=dict)
    by_legacy_role: dict[str, int] = Field(default_factory=dict)
    migration_status: MigrationStatus = Field(default_factory=MigrationStatus)


def _ordered(permission_set: Iterable[Permission]) -> list[Permission]:
    held = set(permission_set)
    return [p for p in Permission if p in held]


class RoleService:
    """
    Raw-role facade over the registry, guard, hierarchy and escalation router.

    Args:
        registry: Role table to answer from. Defaults to the built-in table.
        deny_fallback: Passed to the guard; deny identities whose role only
            resolved through the low-privilege fallback.
    """

    def __init__(
        self, registry: RoleRegistry = role_registry, deny_fallback: bool = False
    ) -> None:
        self.registry = registry
        self.guard = Guard(registry, deny_fallback=deny_fallback)

    def reload(self, registry: RoleRegistry) -> None:
        """
        Swap in a fully built registry.

        Raises:
            IncompleteRegistry: Some role has no configuration. The active
                registry and guard are left in place.
        """
        registry.ensure_complete()
        guard = Guard(registry, deny_fallback=self.guard.deny_fallback)
        self.registry, self.guard = registry, guard
        logger.info("Role registry reloaded with %d roles", len(registry))

    # ── Resolution ─────────────────────────────────────────────

    def normalize(self, user_role: str) -> NormalizedRole:
        return normalize(user_role)

    def resolve(self, user_role: str) -> Role:
        return normalize(user_role).role

    def migrate_role(self, old_role: str) -> Role:
        """Target role for a stored legacy role during a user-store migration."""
        return self.resolve(old_role)

    # ── Permissions ────────────────────────────────────────────

    def has_permission(self, user_role: str, permission: Permission) -> bool:
        return permissions.has_permission(self.resolve(user_role), permission, self.registry)

    def has_any_permission(self, user_role: str, required: Iterable[Permission]) -> bool:
        return permissions.has_any(self.resolve(user_role), required, self.registry)

    def has_all_permissions(self, user_role: str, required: Iterable[Permission]) -> bool:
        return permissions.has_all(self.resolve(user_role), required, self.registry)

    def permissions_of(self, user_role: str) -> list[Permission]:
        return _ordered(self.registry.permissions_of(self.resolve(user_role)))

    def portal_of(self, user_role: str) -> Portal:
        return self.registry.portal_of(self.resolve(user_role))

    def can_delete(self, user_role: str) -> bool:
        return self.registry.can_delete(self.resolve(user_role))

    def can_suspend(self, user_role: str) -> bool:
        return self.registry.can_suspend(self.resolve(user_role))

    def requires_agreement(self, user_role: str) -> bool:
        return self.registry.requires_agreement(self.resolve(user_role))

    def configuration_of(self, user_role: str) -> RoleConfig:
        return self.registry.lookup(self.resolve(user_role))

    def authorize(
        self, user_role: str, requirement: Requirement | None = None
    ) -> AuthorizationDecision:
        return self.guard.evaluate(Identity(raw_role=user_role), requirement)

    # ── Hierarchy & role changes ───────────────────────────────

    def hierarchy_level(self, user_role: str) -> int:
        return hierarchy.level_of(self.resolve(user_role), self.registry)

    def validate_change(
        self, current_role: str, target_role: str, assigner_role: str
    ) -> RoleChangeDecision:
        return hierarchy.validate_change(current_role, target_role, assigner_role, self.registry)

    def assignable_roles(self, assigner_role: str) -> list[AssignableRole]:
        return hierarchy.assignable_roles(assigner_role, self.registry)

    def escalation_targets(self, user_role: str) -> list[Role]:
        return escalation.escalation_targets(self.resolve(user_role))

    # ── Admin UI helpers ───────────────────────────────────────

    def roles_by_portal(self, portal: Portal) -> list[Role]:
        return self.registry.roles_by_portal(portal)

    def roles_by_category(self, category: RoleCategory) -> list[Role]:
        return self.registry.roles_by_category(category)

    def ui_component_flags(self, user_role: str) -> UIComponentFlags:
        portal = self.portal_of(user_role)
        return UIComponentFlags(
            show_brand_components=portal == Portal.BRAND,
            show_admin_components=portal == Portal.ADMIN,
            show_publisher_components=portal == Portal.PUBLISHER,
            portal=portal,
        )

    def role_statistics(self) -> RoleStatistics:
        by_portal = {portal: 0 for portal in Portal}
        by_category = {category: 0 for category in RoleCategory}
        for _, config in self.registry.items():
            by_portal[config.portal] += 1
            by_category[config.category] += 1
        return RoleStatistics(
            total_roles=len(self.registry),
            roles_by_portal=by_portal,
            roles_by_category=by_category,
        )

    def compare_roles(self, first: str, second: str) -> RoleComparison:
        first_role, second_role = self.resolve(first), self.resolve(second)
        first_set = self.registry.permissions_of(first_role)
        second_set = self.registry.permissions_of(second_role)
        return RoleComparison(
            first_only=_ordered(first_set - second_set),
            second_only=_ordered(second_set - first_set),
            common=_ordered(first_set & second_set),
            first_portal=self.registry.portal_of(first_role),
            second_portal=self.registry.portal_of(second_role),
        )

    def suggest_roles(
        self,
        current_permissions: Iterable[Permission],
        preferred_portal: Portal | None = None,
        limit: int = 3,
    ) -> list[Role]:
        """
        Rank roles by how much of their permission set ``current_permissions``
        covers, with a bonus for the preferred portal. Legacy aliases are not
        suggested.
        """
        current = set(current_permissions)
        scored: list[tuple[float, int, Role]] = []
        for index, (role, config) in enumerate(self.registry.items()):
            if role in LEGACY_ALIASES:
                continue
            score = 0.0
            if config.permissions:
                score = len(current & config.permissions) / len(config.permissions)
            if preferred_portal is not None and config.portal == preferred_portal:
                score += PORTAL_PREFERENCE_BONUS
            scored.append((-score, index, role))
        scored.sort()
        return [role for _, _, role in scored[:limit]]

    def validate_user_role(self, user: UserRoleAssignment) -> RoleValidationResult:
        """Check a stored user's role fields for consistency with the registry."""
        result = RoleValidationResult()

        if not user.eureka_role:
            if user.legacy_role:
                result.warnings.append(
                    f"User has legacy role '{user.legacy_role}' but no Eureka role assigned"
                )
                result.suggestions.append(self.resolve(user.legacy_role))
            else:
                result.errors.append("User has no role assigned")
                result.is_valid = False
            return result

        if user.eureka_role not in self.registry:
            result.errors.append(f"Invalid Eureka role: {user.eureka_role}")
            result.is_valid = False
            return result

        config = self.registry.lookup(user.eureka_role)
        if user.portal is not None and user.portal != config.portal:
            result.errors.append(
                f"Portal mismatch: user has {user.portal.value}, but role "
                f"{user.eureka_role} requires {config.portal.value}"
            )
            result.is_valid = False

        if not user.is_active and config.requires_agreement:
            result.warnings.append(
                f"Role {user.eureka_role} requires active agreement but user is inactive"
            )

        return result

    # ── Stored users ───────────────────────────────────────────

    def user_permissions(self, user: UserRoleAssignment) -> list[Permission]:
        """Explicit grants if the user has any, otherwise the Eureka role's set."""
        if user.permissions:
            return list(user.permissions)
        if user.eureka_role and user.eureka_role in self.registry:
            return _ordered(self.registry.permissions_of(user.eureka_role))
        return []

    def check_permission(
        self, user: UserRoleAssignment, required: Permission | Iterable[Permission]
    ) -> PermissionCheckResult:
        """AND check of ``required`` against the user's effective permissions."""
        required_list = [required] if isinstance(required, Permission) else list(required)
        held = self.user_permissions(user)
        missing = [p for p in required_list if p not in held]
        return PermissionCheckResult(
            has_permission=not missing,
            required_permissions=required_list,
            user_permissions=held,
            missing_permissions=missing,
        )

    def check_any_permission(
        self, user: UserRoleAssignment, required: Iterable[Permission]
    ) -> PermissionCheckResult:
        """OR check; every requested permission is reported missing on failure."""
        required_list = list(required)
        held = self.user_permissions(user)
        allowed = any(p in held for p in required_list)
        return PermissionCheckResult(
            has_permission=allowed,
            required_permissions=required_list,
            user_permissions=held,
            missing_permissions=[] if allowed else required_list,
        )

    def can_transition_to_role(
        self, current_role: str, target_role: str, is_admin_action: bool = False
    ) -> RoleTransitionResult:
        """
        Whether a holder of ``current_role`` may move to ``target_role``.

        Crossing portals and moving to SUPER_ADMIN both need an admin action.
        Without one, the current role itself must hold ASSIGN_ROLES.
        """
        current, target = self.resolve(current_role), self.resolve(target_role)

        if is_admin_action and current == Role.SUPER_ADMIN:
            return RoleTransitionResult(allowed=True)

        current_portal = self.registry.portal_of(current)
        target_portal = self.registry.portal_of(target)
        if current_portal != target_portal and not is_admin_action:
            return RoleTransitionResult(
                allowed=False,
                reason=(
                    f"Cannot transition between portals ({current_portal.value} -> "
                    f"{target_portal.value}) without admin approval"
                ),
            )

        if target == Role.SUPER_ADMIN and current != Role.SUPER_ADMIN and not is_admin_action:
            return RoleTransitionResult(
                allowed=False, reason="Cannot transition to Super Admin role"
            )

        if not is_admin_action and not permissions.has_permission(
            current, Permission.ASSIGN_ROLES, self.registry
        ):
            return RoleTransitionResult(
                allowed=False,
                reason="Current role does not have permission to assign roles",
            )

        return RoleTransitionResult(allowed=True)

    def identify_users_needing_migration(
        self, users: Iterable[UserRoleAssignment]
    ) -> MigrationCandidates:
        candidates = MigrationCandidates()
        for user in users:
            if not user.eureka_role and user.legacy_role:
                candidates.needs_migration.append(user)
            elif user.eureka_role and self.validate_user_role(user).is_valid:
                candidates.valid.append(user)
            else:
                candidates.has_errors.append(user)
        return candidates

    def user_role_report(self, users: Iterable[UserRoleAssignment]) -> UserRoleReport:
        """Counts by portal, Eureka role and legacy role, plus migration progress."""
        users = list(users)
        report = UserRoleReport(
            total_users=len(users), by_portal={portal: 0 for portal in Portal}
        )
        for user in users:
            if user.portal is not None:
                report.by_portal[user.portal] += 1

            if user.eureka_role:
                report.by_eureka_role[user.eureka_role] = (
                    report.by_eureka_role.get(user.eureka_role, 0) + 1
                )
                report.migration_status.migrated += 1
            elif user.legacy_role:
                report.migration_status.pending += 1
            else:
                report.migration_status.errors += 1

            if user.legacy_role:
                report.by_legacy_role[user.legacy_role] = (
                    report.by_legacy_role.get(user.legacy_role, 0) + 1
                )
        return report


# Global role service instance over the built-in role table
role_service = RoleService()
