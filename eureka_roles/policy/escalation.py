"""Escalation Router — who receives work items escalated from a given role."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from eureka_roles.roles.registry import UnknownRole
from eureka_roles.roles.schema import Role

ESCALATION_TABLE: Mapping[Role, tuple[Role, ...]] = MappingProxyType(
    {
        Role.SUPPORT_1_BRAND: (Role.SUPPORT_2_BRAND, Role.ADMIN_BRAND),
        Role.SUPPORT_2_BRAND: (Role.CUSTOMER_SUCCESS_MANAGER, Role.PLATFORM_SUCCESS_MANAGER),
        Role.SUPPORT_1_ADMIN: (Role.SUPPORT_2_ADMIN, Role.ADMIN_EXCHANGE),
        Role.SUPPORT_2_ADMIN: (Role.PLATFORM_SUCCESS_MANAGER,),
        Role.SUPPORT_1_PUBLISHER: (Role.SUPPORT_2_PUBLISHER, Role.LIAISON_MANAGER),
        Role.SUPPORT_2_PUBLISHER: (Role.PLATFORM_SUCCESS_MANAGER,),
    }
)

DEFAULT_ESCALATION: tuple[Role, ...] = (Role.SUPER_ADMIN,)


def escalation_targets(role: Role | str) -> list[Role]:
    """Ordered escalation targets; roles without an entry go to SUPER_ADMIN."""
    if not isinstance(role, Role):
        try:
            role = Role(role)
        except ValueError:
            raise UnknownRole(role) from None
    return list(ESCALATION_TABLE.get(role, DEFAULT_ESCALATION))
