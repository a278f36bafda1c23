"""
Role Registry — read-only lookups over the static role table.

Every function here works on canonical ``Role`` values. Raw role strings coming
from an identity must be normalized first (see ``eureka_roles.roles.normalizer``);
an exact enum value string is accepted, anything else raises ``UnknownRole``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping

from eureka_roles.roles.schema import (
    ROLE_CONFIGURATIONS,
    Permission,
    Portal,
    Role,
    RoleCategory,
    RoleConfig,
)


class UnknownRole(LookupError):
    """A canonical-role lookup was attempted on a value outside the registry."""

    def __init__(self, role: object) -> None:
        self.role = role
        super().__init__(f"Unknown role: {role!r}")


class IncompleteRegistry(ValueError):
    """A registry offered for activation does not configure every role."""

    def __init__(self, missing: list[Role]) -> None:
        self.missing = missing
        super().__init__(
            "Registry is missing roles: " + ", ".join(role.value for role in missing)
        )


class RoleRegistry:
    """
    Immutable view over a role → configuration table.

    The registry copies the table it is given into a read-only mapping, so the
    caller keeps no handle through which it could be edited. Concurrent readers
    need no locking.
    """

    def __init__(self, configurations: Mapping[Role, RoleConfig] | None = None) -> None:
        source = ROLE_CONFIGURATIONS if configurations is None else configurations
        self._configurations: Mapping[Role, RoleConfig] = MappingProxyType(dict(source))

    def _canonical(self, role: object) -> Role:
        if isinstance(role, Role):
            canonical = role
        else:
            try:
                canonical = Role(role)
            except ValueError:
                raise UnknownRole(role) from None
        if canonical not in self._configurations:
            raise UnknownRole(role)
        return canonical

    def lookup(self, role: Role | str) -> RoleConfig:
        """Return the configuration of a canonical role."""
        return self._configurations[self._canonical(role)]

    def __contains__(self, role: object) -> bool:
        try:
            self._canonical(role)
        except UnknownRole:
            return False
        return True

    def __len__(self) -> int:
        return len(self._configurations)

    def __iter__(self) -> Iterator[Role]:
        return iter(self._configurations)

    def missing_roles(self) -> list[Role]:
        """Roles with no configuration in this registry, in declaration order."""
        return [role for role in Role if role not in self._configurations]

    def ensure_complete(self) -> None:
        """Raise ``IncompleteRegistry`` unless every role is configured."""
        missing = self.missing_roles()
        if missing:
            raise IncompleteRegistry(missing)

    def roles(self) -> list[Role]:
        return list(self._configurations)

    def items(self) -> list[tuple[Role, RoleConfig]]:
        return list(self._configurations.items())

    def permissions_of(self, role: Role | str) -> frozenset[Permission]:
        return self.lookup(role).permissions

    def portal_of(self, role: Role | str) -> Portal:
        return self.lookup(role).portal

    def category_of(self, role: Role | str) -> RoleCategory:
        return self.lookup(role).category

    def tier_of(self, role: Role | str) -> int | None:
        return self.lookup(role).tier

    def can_delete(self, role: Role | str) -> bool:
        return self.lookup(role).can_delete

    def can_suspend(self, role: Role | str) -> bool:
        return self.lookup(role).can_suspend

    def requires_agreement(self, role: Role | str) -> bool:
        return self.lookup(role).requires_agreement

    def roles_by_portal(self, portal: Portal) -> list[Role]:
        """All roles belonging to ``portal``, in declaration order."""
        return [role for role, config in self._configurations.items() if config.portal == portal]

    def roles_by_category(self, category: RoleCategory) -> list[Role]:
        """All roles in ``category``, in declaration order."""
        return [
            role for role, config in self._configurations.items() if config.category == category
        ]


# Process-wide registry over the built-in role table
role_registry = RoleRegistry()
