"""
Tests for the role registry audit tool.

Validates:
- The shipped registry passes every check
- Each consistency check reports its own problem
- CLI exit codes
"""

from __future__ import annotations

import sys
from types import MappingProxyType

import pytest

from eureka_roles.policy.hierarchy import CATEGORY_LEVELS
from eureka_roles.roles import audit
from eureka_roles.roles.audit import find_problems, main, run_audit
from eureka_roles.roles.registry import RoleRegistry
from eureka_roles.roles.schema import (
    ROLE_CONFIGURATIONS,
    Permission,
    Role,
    RoleCategory,
)


def _registry_with(role: Role, **update) -> RoleRegistry:
    configurations = dict(ROLE_CONFIGURATIONS)
    configurations[role] = ROLE_CONFIGURATIONS[role].model_copy(update=update)
    return RoleRegistry(configurations)


def _registry_without(role: Role) -> RoleRegistry:
    configurations = dict(ROLE_CONFIGURATIONS)
    del configurations[role]
    return RoleRegistry(configurations)


class TestFindProblems:
    """Each audit check in isolation."""

    def test_builtin_registry_is_consistent(self):
        """The shipped role table should produce no problems."""
        assert find_problems() == []

    def test_missing_configuration(self):
        """A role without configuration is reported and stops further checks."""
        problems = find_problems(_registry_without(Role.LIAISON_MANAGER))
        assert problems == ["liaison_manager: no configuration"]

    def test_legacy_alias_drift(self):
        """A legacy alias whose permissions drift from its target is reported."""
        alias = ROLE_CONFIGURATIONS[Role.BRAND_LEGACY]
        registry = _registry_with(
            Role.BRAND_LEGACY, permissions=alias.permissions | {Permission.DELETE_USER}
        )
        assert find_problems(registry) == [
            "brand: legacy alias differs from campaign_manager on permissions"
        ]

    def test_super_admin_missing_permission(self):
        """Super admin must hold every permission."""
        admin = ROLE_CONFIGURATIONS[Role.SUPER_ADMIN]
        registry = _registry_with(
            Role.SUPER_ADMIN, permissions=admin.permissions - {Permission.OVERRIDE_SYSTEM}
        )
        assert find_problems(registry) == ["super_admin: missing override_system"]

    def test_escalation_downwards(self):
        """Escalating to a lower-ranked role is reported."""
        registry = _registry_with(Role.ADMIN_BRAND, category=RoleCategory.END_USER)
        assert find_problems(registry) == [
            "escalation: support_1_brand -> admin_brand escalates downwards"
        ]

    def test_escalation_unknown_source(self):
        """An escalation entry for a role outside the registry is reported."""
        table = MappingProxyType({"support_3_brand": (Role.SUPER_ADMIN,)})
        assert find_problems(escalation_table=table) == [
            "escalation: unknown source role support_3_brand"
        ]

    def test_escalation_unknown_target(self):
        """An escalation target outside the registry is reported."""
        table = MappingProxyType({Role.SUPPORT_1_BRAND: (Role.SUPPORT_2_BRAND, "helpdesk")})
        assert find_problems(escalation_table=table) == [
            "escalation: support_1_brand -> unknown role helpdesk"
        ]

    def test_category_levels_out_of_order(self):
        """Operations ranked below finance breaks the category order."""
        levels = dict(CATEGORY_LEVELS)
        levels[RoleCategory.OPERATIONS], levels[RoleCategory.FINANCE] = 50, 60
        problems = find_problems(category_levels=MappingProxyType(levels))
        assert problems == ["hierarchy: operations roles do not all outrank finance roles"]


class TestRunAudit:
    """Report output and CLI exit codes."""

    def test_run_audit_reports_consistent(self):
        """A clean registry audits as consistent, with the verbose table."""
        assert run_audit(verbose=True) is True

    def test_run_audit_reports_problems(self, capsys):
        """An inconsistent registry audits as failed and lists the problem."""
        assert run_audit(_registry_without(Role.ARTISTE_MANAGER)) is False
        assert "artiste_manager: no configuration" in capsys.readouterr().out

    def test_main_exits_zero(self, monkeypatch):
        """The CLI exits 0 for the shipped registry."""
        monkeypatch.setattr(sys, "argv", ["eureka-roles-audit"])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 0

    def test_main_exits_one_on_problems(self, monkeypatch):
        """The CLI exits 1 when the registry is inconsistent."""
        monkeypatch.setattr(sys, "argv", ["eureka-roles-audit", "--verbose"])
        monkeypatch.setattr(audit, "role_registry", _registry_without(Role.SUPER_ADMIN))
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 1
