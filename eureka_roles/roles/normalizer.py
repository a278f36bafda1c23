"""
Legacy Role Normalizer — resolves raw role strings onto canonical roles.

Identities created before the Eureka role system carry a single coarse role
(``streamer``, ``brand``, ``admin``). Those and any canonical role value are
resolved here. Anything else falls back to the lowest-privilege publisher
role, STREAMER_INDIVIDUAL, so an unrecognized role never grants elevated
access. The result is tagged so callers can tell a fallback apart from a
deliberate STREAMER_INDIVIDUAL assignment and log, alert or deny on it.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from eureka_roles.roles.schema import LEGACY_ALIASES, Role

logger = logging.getLogger(__name__)

FALLBACK_ROLE = Role.STREAMER_INDIVIDUAL

# Lower-cased legacy strings → canonical role
_LEGACY_TABLE: Mapping[str, Role] = MappingProxyType(
    {alias.value: target for alias, target in LEGACY_ALIASES.items()}
)


class NormalizationSource(str, enum.Enum):
    """How a raw role string was resolved."""

    CANONICAL = "canonical"
    LEGACY = "legacy"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class NormalizedRole:
    """A canonical role together with the raw input it was resolved from."""

    role: Role
    raw: str
    source: NormalizationSource

    @property
    def fallback_used(self) -> bool:
        return self.source == NormalizationSource.FALLBACK

    @property
    def recognized(self) -> bool:
        return not self.fallback_used


def normalize(raw: str | Role) -> NormalizedRole:
    """
    Resolve a raw role string to a canonical role.

    Args:
        raw: Role string as carried by the authenticated identity.

    Returns:
        NormalizedRole tagged ``canonical``, ``legacy`` or ``fallback``.
    """
    if isinstance(raw, Role):
        raw = raw.value
    raw = str(raw)

    try:
        role = Role(raw)
    except ValueError:
        role = None

    if role is not None and role not in LEGACY_ALIASES:
        return NormalizedRole(role=role, raw=raw, source=NormalizationSource.CANONICAL)

    legacy = _LEGACY_TABLE.get(raw.strip().lower())
    if legacy is not None:
        return NormalizedRole(role=legacy, raw=raw, source=NormalizationSource.LEGACY)

    logger.warning(
        "Unrecognized role %r resolved to fallback role %s", raw, FALLBACK_ROLE.value
    )
    return NormalizedRole(role=FALLBACK_ROLE, raw=raw, source=NormalizationSource.FALLBACK)


def resolve_role(raw: str | Role) -> Role:
    """Shortcut for ``normalize(raw).role``."""
    return normalize(raw).role
