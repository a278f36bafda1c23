"""
Role Schema — Pydantic models and the static role table of the Eureka role system.

These definitions are the canonical authorization model of the marketplace:
every identity role belongs to exactly one portal (brand, admin, publisher),
one privilege category, and carries a fixed set of permissions. The request
guard, the role-change validator, the escalation router and the admin UI all
read from the table defined here.

The table is built once at import time and exposed through a read-only
mapping of frozen models. It cannot be edited at runtime; a new table has to
be built and swapped in as a whole (see ``RoleService.reload``).
"""

from __future__ import annotations

import enum
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, Field, model_validator


# ════════════════════════════════════════════════════════════════
# Enumerations
# ════════════════════════════════════════════════════════════════


class Portal(str, enum.Enum):
    """Top-level user experiences. Every role belongs to exactly one."""

    BRAND = "brand"
    ADMIN = "admin"
    PUBLISHER = "publisher"


class RoleCategory(str, enum.Enum):
    """Coarse privilege tiers, declared from most to least privileged."""

    SUPER_ADMIN = "super_admin"
    MANAGEMENT = "management"
    OPERATIONS = "operations"
    FINANCE = "finance"
    SUPPORT = "support"
    END_USER = "end_user"


class Permission(str, enum.Enum):
    """Atomic capability tokens checked by the guard."""

    # User management
    CREATE_USER = "create_user"
    READ_USER = "read_user"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"
    ASSIGN_ROLES = "assign_roles"
    SUSPEND_USER = "suspend_user"

    # Campaigns
    CREATE_CAMPAIGN = "create_campaign"
    READ_CAMPAIGN = "read_campaign"
    UPDATE_CAMPAIGN = "update_campaign"
    DELETE_CAMPAIGN = "delete_campaign"
    APPROVE_CAMPAIGN = "approve_campaign"
    REJECT_CAMPAIGN = "reject_campaign"
    PAUSE_CAMPAIGN = "pause_campaign"
    OVERRIDE_CAMPAIGN = "override_campaign"

    # Billing
    VIEW_BILLING = "view_billing"
    MANAGE_BUDGET = "manage_budget"
    UPLOAD_FUNDS = "upload_funds"
    PROCESS_PAYOUTS = "process_payouts"
    VIEW_SPEND_HISTORY = "view_spend_history"
    MANAGE_PAYMENT_METHODS = "manage_payment_methods"

    # Analytics
    VIEW_ANALYTICS = "view_analytics"
    VIEW_DETAILED_ANALYTICS = "view_detailed_analytics"
    EXPORT_REPORTS = "export_reports"
    VIEW_PERFORMANCE_METRICS = "view_performance_metrics"

    # CRM and support
    ACCESS_CRM = "access_crm"
    EDIT_CRM = "edit_crm"
    RESOLVE_TICKETS = "resolve_tickets"
    ESCALATE_TICKETS = "escalate_tickets"
    VIEW_SUPPORT_HISTORY = "view_support_history"

    # Platform
    MODIFY_PRICING_LOGIC = "modify_pricing_logic"
    CONFIGURE_PLATFORM = "configure_platform"
    OVERRIDE_SYSTEM = "override_system"
    VIEW_SYSTEM_LOGS = "view_system_logs"

    # Organizations
    CREATE_ORGANIZATION = "create_organization"
    MANAGE_ORGANIZATION = "manage_organization"
    ASSIGN_BUDGET_LIMITS = "assign_budget_limits"
    FORM_TEAMS = "form_teams"

    # Publishers
    BID_ON_CAMPAIGNS = "bid_on_campaigns"
    CONNECT_PLATFORMS = "connect_platforms"
    UPLOAD_CONTENT = "upload_content"
    MANAGE_PUBLISHERS = "manage_publishers"
    COORDINATE_ONBOARDING = "coordinate_onboarding"


class Role(str, enum.Enum):
    """Canonical identity roles across the three portals."""

    # Brand portal
    MARKETING_HEAD = "marketing_head"
    CAMPAIGN_MANAGER = "campaign_manager"
    ADMIN_BRAND = "admin_brand"
    FINANCE_MANAGER = "finance_manager"
    VALIDATOR_APPROVER = "validator_approver"
    CAMPAIGN_CONSULTANT = "campaign_consultant"
    SALES_REPRESENTATIVE = "sales_representative"
    SUPPORT_2_BRAND = "support_2_brand"
    SUPPORT_1_BRAND = "support_1_brand"

    # Admin portal
    SUPER_ADMIN = "super_admin"
    ADMIN_EXCHANGE = "admin_exchange"
    PLATFORM_SUCCESS_MANAGER = "platform_success_manager"
    CUSTOMER_SUCCESS_MANAGER = "customer_success_manager"
    CAMPAIGN_SUCCESS_MANAGER = "campaign_success_manager"
    SUPPORT_2_ADMIN = "support_2_admin"
    SUPPORT_1_ADMIN = "support_1_admin"

    # Publisher portal
    INDEPENDENT_PUBLISHER = "independent_publisher"
    ARTISTE_MANAGER = "artiste_manager"
    STREAMER_INDIVIDUAL = "streamer_individual"
    LIAISON_MANAGER = "liaison_manager"
    SUPPORT_2_PUBLISHER = "support_2_publisher"
    SUPPORT_1_PUBLISHER = "support_1_publisher"

    # Legacy aliases (pre-Eureka single-role accounts)
    STREAMER_LEGACY = "streamer"
    BRAND_LEGACY = "brand"
    ADMIN_LEGACY = "admin"


#: Legacy alias → the canonical role it stands for.
LEGACY_ALIASES: Mapping[Role, Role] = MappingProxyType(
    {
        Role.STREAMER_LEGACY: Role.STREAMER_INDIVIDUAL,
        Role.BRAND_LEGACY: Role.CAMPAIGN_MANAGER,
        Role.ADMIN_LEGACY: Role.ADMIN_EXCHANGE,
    }
)


# ════════════════════════════════════════════════════════════════
# Role configuration
# ════════════════════════════════════════════════════════════════


class RoleConfig(BaseModel):
    """
    Static configuration of a single role.

    Instances are frozen. ``tier`` is the support tier (1 or 2) and is only
    meaningful for SUPPORT-category roles; it replaces any inference from the
    role identifier.
    """

    model_config = {"frozen": True}

    portal: Portal
    category: RoleCategory
    permissions: frozenset[Permission] = Field(
        default_factory=frozenset, description="Capabilities granted by the role"
    )
    description: str = Field(description="What a holder of the role does")
    can_delete: bool = False
    can_suspend: bool = False
    requires_agreement: bool = Field(
        default=False, description="Role is held under a signed agreement/contract"
    )
    tier: int | None = Field(default=None, description="Support tier (1 or 2)")

    @model_validator(mode="after")
    def _check_tier(self) -> RoleConfig:
        if self.category == RoleCategory.SUPPORT:
            if self.tier not in (1, 2):
                raise ValueError("support roles must declare tier 1 or 2")
        elif self.tier is not None:
            raise ValueError(f"tier is only valid for support roles, not {self.category.value}")
        return self


# ════════════════════════════════════════════════════════════════
# Role table
# ════════════════════════════════════════════════════════════════

_STREAMER_PERMISSIONS = frozenset(
    {
        Permission.BID_ON_CAMPAIGNS,
        Permission.CONNECT_PLATFORMS,
        Permission.UPLOAD_CONTENT,
        Permission.VIEW_ANALYTICS,
        Permission.VIEW_BILLING,
        Permission.READ_CAMPAIGN,
    }
)

_CAMPAIGN_MANAGER_PERMISSIONS = frozenset(
    {
        Permission.CREATE_CAMPAIGN,
        Permission.READ_CAMPAIGN,
        Permission.UPDATE_CAMPAIGN,
        Permission.VIEW_ANALYTICS,
        Permission.VIEW_PERFORMANCE_METRICS,
    }
)

_ADMIN_EXCHANGE_PERMISSIONS = frozenset(
    {
        Permission.READ_USER,
        Permission.UPDATE_USER,
        Permission.ASSIGN_ROLES,
        Permission.READ_CAMPAIGN,
        Permission.UPDATE_CAMPAIGN,
        Permission.RESOLVE_TICKETS,
        Permission.ESCALATE_TICKETS,
        Permission.VIEW_ANALYTICS,
        Permission.VIEW_SYSTEM_LOGS,
    }
)

_TIER_1_SUPPORT_PERMISSIONS = frozenset(
    {
        Permission.RESOLVE_TICKETS,
        Permission.ESCALATE_TICKETS,
        Permission.READ_CAMPAIGN,
        Permission.READ_USER,
    }
)


def _build_role_configurations() -> Mapping[Role, RoleConfig]:
    configurations: dict[Role, RoleConfig] = {
        # ── Brand portal ───────────────────────────────────────
        Role.MARKETING_HEAD: RoleConfig(
            portal=Portal.BRAND,
            category=RoleCategory.MANAGEMENT,
            description=(
                "Creates advertiser organization, assigns user roles and budget "
                "limits, forms campaign teams"
            ),
            permissions=frozenset(
                {
                    Permission.CREATE_ORGANIZATION,
                    Permission.MANAGE_ORGANIZATION,
                    Permission.ASSIGN_ROLES,
                    Permission.ASSIGN_BUDGET_LIMITS,
                    Permission.FORM_TEAMS,
                    Permission.VIEW_ANALYTICS,
                    Permission.VIEW_DETAILED_ANALYTICS,
                    Permission.MANAGE_BUDGET,
                    Permission.CREATE_CAMPAIGN,
                    Permission.READ_CAMPAIGN,
                    Permission.UPDATE_CAMPAIGN,
                    Permission.DELETE_CAMPAIGN,
                }
            ),
            can_delete=True,
            can_suspend=True,
        ),
        Role.CAMPAIGN_MANAGER: RoleConfig(
            portal=Portal.BRAND,
            category=RoleCategory.OPERATIONS,
            description=(
                "Creates and manages campaigns, selects targeting, creatives, "
                "and bidding strategy"
            ),
            permissions=_CAMPAIGN_MANAGER_PERMISSIONS,
        ),
        Role.ADMIN_BRAND: RoleConfig(
            portal=Portal.BRAND,
            category=RoleCategory.MANAGEMENT,
            description=(
                "Manages advertiser accounts, assigns sales representatives, "
                "supports campaign troubleshooting"
            ),
            permissions=frozenset(
                {
                    Permission.READ_USER,
                    Permission.UPDATE_USER,
                    Permission.ASSIGN_ROLES,
                    Permission.ACCESS_CRM,
                    Permission.EDIT_CRM,
                    Permission.READ_CAMPAIGN,
                    Permission.PAUSE_CAMPAIGN,
                    Permission.RESOLVE_TICKETS,
                    Permission.ESCALATE_TICKETS,
                }
            ),
            can_suspend=True,
        ),
        Role.FINANCE_MANAGER: RoleConfig(
            portal=Portal.BRAND,
            category=RoleCategory.FINANCE,
            description=(
                "Uploads funds, budget management, manages payment methods, "
                "views spend history and billing"
            ),
            permissions=frozenset(
                {
                    Permission.UPLOAD_FUNDS,
                    Permission.MANAGE_BUDGET,
                    Permission.MANAGE_PAYMENT_METHODS,
                    Permission.VIEW_SPEND_HISTORY,
                    Permission.VIEW_BILLING,
                    Permission.PROCESS_PAYOUTS,
                }
            ),
        ),
        Role.VALIDATOR_APPROVER: RoleConfig(
            portal=Portal.BRAND,
            category=RoleCategory.OPERATIONS,
            description=(
                "Reviews campaigns before approval, verifies budget, creatives, "
                "and targeting"
            ),
            permissions=frozenset(
                {
                    Permission.READ_CAMPAIGN,
                    Permission.APPROVE_CAMPAIGN,
                    Permission.REJECT_CAMPAIGN,
                    Permission.VIEW_ANALYTICS,
                }
            ),
        ),
        Role.CAMPAIGN_CONSULTANT: RoleConfig(
            portal=Portal.BRAND,
            category=RoleCategory.OPERATIONS,
            description=(
                "Manages advertiser logistics of campaign setup, execution and "
                "analytics on behalf of the advertiser"
            ),
            permissions=_CAMPAIGN_MANAGER_PERMISSIONS,
            requires_agreement=True,
        ),
        Role.SALES_REPRESENTATIVE: RoleConfig(
            portal=Portal.BRAND,
            category=RoleCategory.SUPPORT,
            tier=1,
            description=(
                "Assists advertiser onboarding, explains product and campaign "
                "setup, guides advertisers"
            ),
            permissions=frozenset(
                {
                    Permission.ACCESS_CRM,
                    Permission.EDIT_CRM,
                    Permission.READ_CAMPAIGN,
                    Permission.READ_USER,
                    Permission.RESOLVE_TICKETS,
                }
            ),
        ),
        Role.SUPPORT_2_BRAND: RoleConfig(
            portal=Portal.BRAND,
            category=RoleCategory.SUPPORT,
            tier=2,
            description=(
                "Investigates complex advertiser-side issues, coordinates with "
                "teams for resolution"
            ),
            permissions=frozenset(
                {
                    Permission.RESOLVE_TICKETS,
                    Permission.ESCALATE_TICKETS,
                    Permission.VIEW_SUPPORT_HISTORY,
                    Permission.READ_CAMPAIGN,
                    Permission.READ_USER,
                    Permission.VIEW_ANALYTICS,
                }
            ),
        ),
        Role.SUPPORT_1_BRAND: RoleConfig(
            portal=Portal.BRAND,
            category=RoleCategory.SUPPORT,
            tier=1,
            description=(
                "Resolves basic advertiser queries related to campaign creation, "
                "login issues, navigation help"
            ),
            permissions=_TIER_1_SUPPORT_PERMISSIONS,
        ),
        # ── Admin portal ───────────────────────────────────────
        Role.SUPER_ADMIN: RoleConfig(
            portal=Portal.ADMIN,
            category=RoleCategory.SUPER_ADMIN,
            description=(
                "Full system control including unrestricted read/write/delete "
                "permissions on all entities"
            ),
            permissions=frozenset(Permission),
            can_delete=True,
            can_suspend=True,
        ),
        Role.ADMIN_EXCHANGE: RoleConfig(
            portal=Portal.ADMIN,
            category=RoleCategory.MANAGEMENT,
            description=(
                "Manages internal workflows of operators and success managers, "
                "handles escalations"
            ),
            permissions=_ADMIN_EXCHANGE_PERMISSIONS,
            can_suspend=True,
        ),
        Role.PLATFORM_SUCCESS_MANAGER: RoleConfig(
            portal=Portal.ADMIN,
            category=RoleCategory.OPERATIONS,
            description=(
                "Ensures system uptime and operational continuity, can modify SSP "
                "pricing logic, payout distribution"
            ),
            permissions=frozenset(
                {
                    Permission.MODIFY_PRICING_LOGIC,
                    Permission.CONFIGURE_PLATFORM,
                    Permission.VIEW_SYSTEM_LOGS,
                    Permission.RESOLVE_TICKETS,
                    Permission.ESCALATE_TICKETS,
                    Permission.VIEW_ANALYTICS,
                    Permission.VIEW_DETAILED_ANALYTICS,
                    Permission.PROCESS_PAYOUTS,
                }
            ),
        ),
        Role.CUSTOMER_SUCCESS_MANAGER: RoleConfig(
            portal=Portal.ADMIN,
            category=RoleCategory.OPERATIONS,
            description=(
                "Ensures advertiser satisfaction through ticket resolution and "
                "optimization feedback"
            ),
            permissions=frozenset(
                {
                    Permission.RESOLVE_TICKETS,
                    Permission.ESCALATE_TICKETS,
                    Permission.VIEW_SUPPORT_HISTORY,
                    Permission.VIEW_ANALYTICS,
                    Permission.VIEW_DETAILED_ANALYTICS,
                    Permission.ACCESS_CRM,
                    Permission.EDIT_CRM,
                }
            ),
        ),
        Role.CAMPAIGN_SUCCESS_MANAGER: RoleConfig(
            portal=Portal.ADMIN,
            category=RoleCategory.OPERATIONS,
            description=(
                "Oversees campaign flow from DSP to SSP, tracks live campaign "
                "status and ensures inventory matching"
            ),
            permissions=frozenset(
                {
                    Permission.READ_CAMPAIGN,
                    Permission.UPDATE_CAMPAIGN,
                    Permission.OVERRIDE_CAMPAIGN,
                    Permission.VIEW_ANALYTICS,
                    Permission.VIEW_DETAILED_ANALYTICS,
                    Permission.EXPORT_REPORTS,
                }
            ),
        ),
        Role.SUPPORT_2_ADMIN: RoleConfig(
            portal=Portal.ADMIN,
            category=RoleCategory.SUPPORT,
            tier=2,
            description=(
                "Handle tech failures (uploads, APIs), collaborate with devs for "
                "bug reports"
            ),
            permissions=frozenset(
                {
                    Permission.RESOLVE_TICKETS,
                    Permission.ESCALATE_TICKETS,
                    Permission.VIEW_SYSTEM_LOGS,
                    Permission.READ_CAMPAIGN,
                    Permission.READ_USER,
                }
            ),
        ),
        Role.SUPPORT_1_ADMIN: RoleConfig(
            portal=Portal.ADMIN,
            category=RoleCategory.SUPPORT,
            tier=1,
            description="Resolve common internal queries, help with navigation issues, FAQs",
            permissions=_TIER_1_SUPPORT_PERMISSIONS,
        ),
        # ── Publisher portal ───────────────────────────────────
        Role.INDEPENDENT_PUBLISHER: RoleConfig(
            portal=Portal.PUBLISHER,
            category=RoleCategory.END_USER,
            description=(
                "Independent publisher not under any org/agency, manages their "
                "own campaigns and payouts directly"
            ),
            permissions=_STREAMER_PERMISSIONS,
        ),
        Role.ARTISTE_MANAGER: RoleConfig(
            portal=Portal.PUBLISHER,
            category=RoleCategory.MANAGEMENT,
            description=(
                "Recruits and manages publishers (streamers, content creators), "
                "monitors campaign performance"
            ),
            permissions=frozenset(
                {
                    Permission.MANAGE_PUBLISHERS,
                    Permission.COORDINATE_ONBOARDING,
                    Permission.READ_CAMPAIGN,
                    Permission.VIEW_ANALYTICS,
                    Permission.VIEW_PERFORMANCE_METRICS,
                    Permission.ASSIGN_ROLES,
                }
            ),
        ),
        Role.STREAMER_INDIVIDUAL: RoleConfig(
            portal=Portal.PUBLISHER,
            category=RoleCategory.END_USER,
            description=(
                "Bids and runs campaigns, connects platform accounts, uploads "
                "content and submits analytics"
            ),
            permissions=_STREAMER_PERMISSIONS,
        ),
        Role.LIAISON_MANAGER: RoleConfig(
            portal=Portal.PUBLISHER,
            category=RoleCategory.OPERATIONS,
            description=(
                "Supports artiste managers in publisher onboarding, assists with "
                "dispute resolution"
            ),
            permissions=frozenset(
                {
                    Permission.COORDINATE_ONBOARDING,
                    Permission.RESOLVE_TICKETS,
                    Permission.VIEW_PERFORMANCE_METRICS,
                    Permission.READ_CAMPAIGN,
                    Permission.READ_USER,
                }
            ),
        ),
        Role.SUPPORT_2_PUBLISHER: RoleConfig(
            portal=Portal.PUBLISHER,
            category=RoleCategory.SUPPORT,
            tier=2,
            description=(
                "Investigates complex issues by coordinating with finance and "
                "technical teams"
            ),
            permissions=frozenset(
                {
                    Permission.RESOLVE_TICKETS,
                    Permission.ESCALATE_TICKETS,
                    Permission.VIEW_SUPPORT_HISTORY,
                    Permission.READ_CAMPAIGN,
                    Permission.READ_USER,
                    Permission.VIEW_BILLING,
                }
            ),
        ),
        Role.SUPPORT_1_PUBLISHER: RoleConfig(
            portal=Portal.PUBLISHER,
            category=RoleCategory.SUPPORT,
            tier=1,
            description=(
                "Resolves tickets raised by publishers for basic queries related "
                "to campaign participation"
            ),
            permissions=_TIER_1_SUPPORT_PERMISSIONS,
        ),
        # ── Legacy aliases ─────────────────────────────────────
        Role.STREAMER_LEGACY: RoleConfig(
            portal=Portal.PUBLISHER,
            category=RoleCategory.END_USER,
            description="Legacy streamer role - maps to Streamer Individual",
            permissions=_STREAMER_PERMISSIONS,
        ),
        Role.BRAND_LEGACY: RoleConfig(
            portal=Portal.BRAND,
            category=RoleCategory.OPERATIONS,
            description="Legacy brand role - maps to Campaign Manager",
            permissions=_CAMPAIGN_MANAGER_PERMISSIONS,
        ),
        Role.ADMIN_LEGACY: RoleConfig(
            portal=Portal.ADMIN,
            category=RoleCategory.MANAGEMENT,
            description="Legacy admin role - maps to Admin Exchange",
            permissions=_ADMIN_EXCHANGE_PERMISSIONS,
            can_suspend=True,
        ),
    }

    missing = [role.value for role in Role if role not in configurations]
    if missing:
        raise RuntimeError(f"Roles without configuration: {', '.join(missing)}")

    return MappingProxyType(configurations)


ROLE_CONFIGURATIONS: Mapping[Role, RoleConfig] = _build_role_configurations()
