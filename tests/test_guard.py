"""
Tests for the Guard — request-time authorization decisions.

Validates:
- Evaluation order and distinct deny reasons
- Missing-permission reporting
- Portal and legacy role allow-list checks
- Fallback handling
- Requirement attachment with @requires
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from eureka_roles.policy.guard import (
    AuthorizationDecision,
    DenyReason,
    Guard,
    Identity,
    Requirement,
    evaluate,
    requirement_of,
    requires,
)
from eureka_roles.roles.schema import Permission, Portal, Role


class TestGuardScenarios:
    """Reference scenarios for the guard."""

    def setup_method(self):
        self.guard = Guard()
        self.approve = Requirement(
            required_permissions=(Permission.APPROVE_CAMPAIGN, Permission.READ_CAMPAIGN)
        )

    def test_campaign_manager_missing_approve(self):
        """Campaign Manager lacks approve_campaign and is told so."""
        decision = self.guard.evaluate(Identity(raw_role="campaign_manager"), self.approve)
        assert decision.allowed is False
        assert decision.reason == DenyReason.MISSING_PERMISSIONS
        assert decision.missing == [Permission.APPROVE_CAMPAIGN]

    def test_validator_approver_allowed(self):
        """Validator Approver passes and gets its permission set."""
        decision = self.guard.evaluate(Identity(raw_role="validator_approver"), self.approve)
        assert decision.allowed is True
        assert decision.reason is None
        assert decision.role == Role.VALIDATOR_APPROVER
        assert decision.portal == Portal.BRAND
        assert Permission.APPROVE_CAMPAIGN in decision.permissions

    def test_streamer_denied_admin_portal(self):
        """A publisher role is kept out of the admin portal."""
        decision = self.guard.evaluate(
            Identity(raw_role="streamer_individual"),
            Requirement(required_portals=(Portal.ADMIN,)),
        )
        assert decision.allowed is False
        assert decision.reason == DenyReason.PORTAL_MISMATCH
        assert decision.actual_portal == Portal.PUBLISHER
        assert decision.required_portals == [Portal.ADMIN]


class TestGuardEvaluation:
    """Ordering, short-circuiting and each check in isolation."""

    def setup_method(self):
        self.guard = Guard()

    def test_empty_requirement_allows(self):
        """An empty requirement allows, permissions in declaration order."""
        decision = self.guard.evaluate("support_1_admin")
        assert decision.allowed
        assert decision.permissions == [
            Permission.READ_USER,
            Permission.READ_CAMPAIGN,
            Permission.RESOLVE_TICKETS,
            Permission.ESCALATE_TICKETS,
        ]

    def test_any_of_denies(self):
        """Holding none of the any-of permissions denies with all of them missing."""
        decision = self.guard.evaluate(
            "streamer_individual",
            Requirement(any_permissions=(Permission.EXPORT_REPORTS, Permission.EDIT_CRM)),
        )
        assert decision.reason == DenyReason.MISSING_ANY_OF
        assert decision.missing == [Permission.EXPORT_REPORTS, Permission.EDIT_CRM]

    def test_any_of_allows_with_one(self):
        """Holding one any-of permission is enough."""
        decision = self.guard.evaluate(
            "streamer_individual",
            Requirement(any_permissions=(Permission.EXPORT_REPORTS, Permission.UPLOAD_CONTENT)),
        )
        assert decision.allowed

    def test_required_checked_before_portal(self):
        """Required permissions are checked before the portal."""
        decision = self.guard.evaluate(
            "streamer_individual",
            Requirement(
                required_permissions=(Permission.CONFIGURE_PLATFORM,),
                required_portals=(Portal.ADMIN,),
            ),
        )
        assert decision.reason == DenyReason.MISSING_PERMISSIONS

    def test_any_of_checked_before_portal(self):
        """Any-of permissions are checked before the portal."""
        decision = self.guard.evaluate(
            "streamer_individual",
            Requirement(
                any_permissions=(Permission.CONFIGURE_PLATFORM,),
                required_portals=(Portal.ADMIN,),
            ),
        )
        assert decision.reason == DenyReason.MISSING_ANY_OF

    def test_multiple_portals(self):
        """Any of several required portals matches."""
        decision = self.guard.evaluate(
            "admin_brand", Requirement(required_portals=(Portal.ADMIN, Portal.BRAND))
        )
        assert decision.allowed

    def test_role_allow_list_matches_raw(self):
        """The allow-list matches the raw legacy role."""
        decision = self.guard.evaluate("brand", Requirement(allowed_roles=("brand",)))
        assert decision.allowed
        assert decision.role == Role.CAMPAIGN_MANAGER

    def test_role_allow_list_matches_normalized(self):
        """The allow-list matches the normalized role."""
        decision = self.guard.evaluate("brand", Requirement(allowed_roles=("campaign_manager",)))
        assert decision.allowed

    def test_role_allow_list_denies(self):
        """A role outside the allow-list is denied with a message."""
        decision = self.guard.evaluate(
            "finance_manager", Requirement(allowed_roles=("admin", "super_admin"))
        )
        assert decision.reason == DenyReason.ROLE_MISMATCH
        assert "finance_manager" in decision.message

    def test_portal_checked_before_role_list(self):
        """The portal is checked before the allow-list."""
        decision = self.guard.evaluate(
            "finance_manager",
            Requirement(required_portals=(Portal.ADMIN,), allowed_roles=("super_admin",)),
        )
        assert decision.reason == DenyReason.PORTAL_MISMATCH

    def test_legacy_identity_gets_mapped_permissions(self):
        """Legacy 'admin' gets Admin Exchange's permissions."""
        decision = self.guard.evaluate(
            "admin", Requirement(required_permissions=(Permission.VIEW_SYSTEM_LOGS,))
        )
        assert decision.allowed
        assert decision.role == Role.ADMIN_EXCHANGE
        assert decision.raw_role == "admin"

    def test_super_admin_passes_any_permission_requirement(self):
        """Super admin passes a requirement for every permission."""
        decision = self.guard.evaluate(
            "super_admin", Requirement(required_permissions=tuple(Permission))
        )
        assert decision.allowed

    def test_decision_serializes(self):
        """Decisions serialize to plain JSON values."""
        decision = self.guard.evaluate(
            "campaign_manager",
            Requirement(required_permissions=(Permission.APPROVE_CAMPAIGN,)),
        )
        payload = decision.model_dump(mode="json")
        assert payload["reason"] == "missing-permissions"
        assert payload["missing"] == ["approve_campaign"]

    def test_module_level_evaluate(self):
        """The module-level evaluate uses the global guard."""
        decision = evaluate(Identity(raw_role="marketing_head"))
        assert isinstance(decision, AuthorizationDecision)
        assert decision.allowed


class TestFallbackHandling:
    """Unrecognized roles resolve to the fallback role and are flagged."""

    def test_fallback_allowed_by_default(self):
        """By default a fallback role is served and flagged."""
        decision = Guard().evaluate(
            "typo_role", Requirement(required_permissions=(Permission.BID_ON_CAMPAIGNS,))
        )
        assert decision.allowed
        assert decision.fallback_used
        assert decision.role == Role.STREAMER_INDIVIDUAL

    def test_fallback_never_reaches_admin_portal(self):
        """A fallback role never passes an admin portal requirement."""
        decision = Guard().evaluate("root", Requirement(required_portals=(Portal.ADMIN,)))
        assert decision.allowed is False

    def test_guard_level_deny_fallback(self):
        """A strict guard denies fallback roles."""
        decision = Guard(deny_fallback=True).evaluate("typo_role")
        assert decision.allowed is False
        assert decision.reason == DenyReason.UNRECOGNIZED_ROLE

    def test_requirement_level_deny_fallback(self):
        """A requirement can ask for fallback denial on its own."""
        decision = Guard().evaluate("typo_role", Requirement(deny_fallback=True))
        assert decision.reason == DenyReason.UNRECOGNIZED_ROLE

    def test_deny_fallback_leaves_known_roles_alone(self):
        """Fallback denial leaves legacy roles untouched."""
        decision = Guard(deny_fallback=True).evaluate("streamer")
        assert decision.allowed
        assert decision.fallback_used is False


class TestRequirementAttachment:
    """@requires stores a Requirement on the handler as data."""

    def test_requires_attaches_requirement(self):
        """@requires attaches a requirement and leaves the handler callable."""
        @requires(Permission.APPROVE_CAMPAIGN, portals=(Portal.BRAND,))
        def approve_campaign(campaign_id: str) -> str:
            return campaign_id

        requirement = requirement_of(approve_campaign)
        assert requirement == Requirement(
            required_permissions=(Permission.APPROVE_CAMPAIGN,),
            required_portals=(Portal.BRAND,),
        )
        assert approve_campaign("c-1") == "c-1"

    def test_unprotected_handler(self):
        """A handler without @requires has no requirement."""
        def handler():
            return None

        assert requirement_of(handler) is None

    def test_requirement_is_frozen(self):
        """Requirements cannot be modified."""
        requirement = Requirement(required_permissions=(Permission.READ_CAMPAIGN,))
        with pytest.raises(ValidationError):
            requirement.required_permissions = ()

    def test_requirement_coerces_strings(self):
        """Requirements accept plain string values."""
        requirement = Requirement.model_validate(
            {"required_permissions": ["read_campaign"], "required_portals": ["brand"]}
        )
        assert requirement.required_permissions == (Permission.READ_CAMPAIGN,)
        assert requirement.required_portals == (Portal.BRAND,)
