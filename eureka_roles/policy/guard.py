"""
Guard — request-time authorization over an authenticated identity.

A protected operation declares what it needs as a plain ``Requirement`` value
(required permissions, any-of permissions, portals, a legacy role allow-list).
``Guard.evaluate`` resolves the identity's raw role and checks the requirement
in a fixed order, stopping at the first failure:

1. normalize the raw role;
   a fallback resolution is denied when asked to   → ``unrecognized-role``
2. required permissions (AND)      → ``missing-permissions``
3. any-of permissions (OR)         → ``missing-any-of``
4. portal                          → ``portal-mismatch``
5. legacy role allow-list          → ``role-mismatch``
6. allow, with the resolved role, portal and permission set attached

Denials are returned as ``AuthorizationDecision`` values, never raised. The
request pipeline decides how to render them.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, TypeVar

from pydantic import BaseModel, Field

from eureka_roles.policy.permissions import has_all, has_any, missing_permissions
from eureka_roles.roles.normalizer import NormalizedRole, normalize
from eureka_roles.roles.registry import RoleRegistry, role_registry
from eureka_roles.roles.schema import Permission, Portal, Role

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class Identity(BaseModel):
    """An already-authenticated caller. Only its role string is read."""

    model_config = {"frozen": True}

    raw_role: str


class Requirement(BaseModel):
    """What a protected operation demands. Empty fields are not checked."""

    model_config = {"frozen": True}

    required_permissions: tuple[Permission, ...] = Field(
        default=(), description="All of these must be held"
    )
    any_permissions: tuple[Permission, ...] = Field(
        default=(), description="At least one of these must be held"
    )
    required_portals: tuple[Portal, ...] = Field(
        default=(), description="The role's portal must be one of these"
    )
    allowed_roles: tuple[str, ...] = Field(
        default=(), description="Legacy allow-list matched against raw or normalized role"
    )
    deny_fallback: bool = Field(
        default=False, description="Deny identities whose role only resolved by fallback"
    )


class DenyReason(str, enum.Enum):
    """Distinct reasons a guard can deny a request."""

    UNRECOGNIZED_ROLE = "unrecognized-role"
    MISSING_PERMISSIONS = "missing-permissions"
    MISSING_ANY_OF = "missing-any-of"
    PORTAL_MISMATCH = "portal-mismatch"
    ROLE_MISMATCH = "role-mismatch"


class AuthorizationDecision(BaseModel):
    """Outcome of a guard evaluation."""

    allowed: bool
    reason: DenyReason | None = None
    message: str = ""
    raw_role: str
    role: Role
    portal: Portal
    fallback_used: bool = False
    missing: list[Permission] = Field(default_factory=list)
    actual_portal: Portal | None = None
    required_portals: list[Portal] = Field(default_factory=list)
    permissions: list[Permission] = Field(
        default_factory=list, description="Resolved permission set, present on allow"
    )

    @classmethod
    def allow(
        cls, resolved: NormalizedRole, portal: Portal, permissions: frozenset[Permission]
    ) -> AuthorizationDecision:
        return cls(
            allowed=True,
            raw_role=resolved.raw,
            role=resolved.role,
            portal=portal,
            fallback_used=resolved.fallback_used,
            permissions=[p for p in Permission if p in permissions],
        )

    @classmethod
    def deny(
        cls,
        resolved: NormalizedRole,
        portal: Portal,
        reason: DenyReason,
        message: str,
        **details: Any,
    ) -> AuthorizationDecision:
        return cls(
            allowed=False,
            reason=reason,
            message=message,
            raw_role=resolved.raw,
            role=resolved.role,
            portal=portal,
            fallback_used=resolved.fallback_used,
            **details,
        )


class Guard:
    """
    Composes normalization, permission and portal checks into one decision.

    Args:
        registry: Role table to evaluate against.
        deny_fallback: Deny every identity whose role resolved by fallback,
            regardless of the individual requirement.
    """

    def __init__(
        self, registry: RoleRegistry = role_registry, deny_fallback: bool = False
    ) -> None:
        self.registry = registry
        self.deny_fallback = deny_fallback

    def evaluate(
        self, identity: Identity | str, requirement: Requirement | None = None
    ) -> AuthorizationDecision:
        raw_role = identity.raw_role if isinstance(identity, Identity) else identity
        requirement = requirement or Requirement()

        resolved = normalize(raw_role)
        role = resolved.role
        config = self.registry.lookup(role)
        portal = config.portal

        if resolved.fallback_used and (self.deny_fallback or requirement.deny_fallback):
            return self._denied(
                resolved,
                portal,
                DenyReason.UNRECOGNIZED_ROLE,
                f"Role not recognized: {raw_role!r}",
            )

        if requirement.required_permissions and not has_all(
            role, requirement.required_permissions, self.registry
        ):
            missing = missing_permissions(role, requirement.required_permissions, self.registry)
            return self._denied(
                resolved,
                portal,
                DenyReason.MISSING_PERMISSIONS,
                "Insufficient permissions. Missing: " + ", ".join(p.value for p in missing),
                missing=missing,
            )

        if requirement.any_permissions and not has_any(
            role, requirement.any_permissions, self.registry
        ):
            return self._denied(
                resolved,
                portal,
                DenyReason.MISSING_ANY_OF,
                "Insufficient permissions. Need at least one of: "
                + ", ".join(p.value for p in requirement.any_permissions),
                missing=list(requirement.any_permissions),
            )

        if requirement.required_portals and portal not in requirement.required_portals:
            return self._denied(
                resolved,
                portal,
                DenyReason.PORTAL_MISMATCH,
                f"Portal access denied. User portal: {portal.value}, Required: "
                + ", ".join(p.value for p in requirement.required_portals),
                actual_portal=portal,
                required_portals=list(requirement.required_portals),
            )

        if requirement.allowed_roles and not (
            raw_role in requirement.allowed_roles or role.value in requirement.allowed_roles
        ):
            return self._denied(
                resolved,
                portal,
                DenyReason.ROLE_MISMATCH,
                f"Role access denied. User role: {raw_role}, Required: "
                + ", ".join(requirement.allowed_roles),
            )

        logger.debug("Authorized role %s (portal %s)", role.value, portal.value)
        return AuthorizationDecision.allow(resolved, portal, config.permissions)

    def _denied(
        self,
        resolved: NormalizedRole,
        portal: Portal,
        reason: DenyReason,
        message: str,
        **details: Any,
    ) -> AuthorizationDecision:
        logger.info("Authorization denied (%s) for role %r: %s", reason.value, resolved.raw, message)
        return AuthorizationDecision.deny(resolved, portal, reason, message, **details)


# Global guard instance over the built-in role table
guard = Guard()


def evaluate(
    identity: Identity | str, requirement: Requirement | None = None
) -> AuthorizationDecision:
    """Evaluate ``requirement`` for ``identity`` with the global guard."""
    return guard.evaluate(identity, requirement)


def requires(
    *permissions: Permission,
    any_of: tuple[Permission, ...] = (),
    portals: tuple[Portal, ...] = (),
    roles: tuple[str, ...] = (),
    deny_fallback: bool = False,
) -> Callable[[F], F]:
    """
    Attach a ``Requirement`` to a handler as data.

    The handler is returned unchanged; whatever dispatches to it reads the
    requirement back with ``requirement_of`` and evaluates it.

    Example:
        @requires(Permission.APPROVE_CAMPAIGN, portals=(Portal.BRAND,))
        def approve(campaign_id: str) -> None: ...
    """
    requirement = Requirement(
        required_permissions=permissions,
        any_permissions=any_of,
        required_portals=portals,
        allowed_roles=roles,
        deny_fallback=deny_fallback,
    )

    def decorator(handler: F) -> F:
        setattr(handler, "__requirement__", requirement)
        return handler

    return decorator


def requirement_of(handler: Callable[..., Any]) -> Requirement | None:
    """Return the requirement attached by ``@requires``, if any."""
    return getattr(handler, "__requirement__", None)
