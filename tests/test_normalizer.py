"""
Tests for the Legacy Role Normalizer.

Validates:
- Canonical roles pass through
- Legacy role strings map to their Eureka roles
- Unknown input falls back to the lowest-privilege publisher role, tagged
- Idempotence
"""

from __future__ import annotations

import logging

import pytest

from eureka_roles.roles.normalizer import (
    FALLBACK_ROLE,
    NormalizationSource,
    normalize,
    resolve_role,
)
from eureka_roles.roles.schema import LEGACY_ALIASES, Role


class TestNormalize:
    """Raw role string → canonical role."""

    def test_canonical_role_unchanged(self):
        """Canonical roles pass through unchanged."""
        result = normalize("validator_approver")
        assert result.role == Role.VALIDATOR_APPROVER
        assert result.source == NormalizationSource.CANONICAL
        assert result.recognized
        assert not result.fallback_used

    def test_enum_member_accepted(self):
        """Role members are accepted as input."""
        assert normalize(Role.ARTISTE_MANAGER).role == Role.ARTISTE_MANAGER

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("streamer", Role.STREAMER_INDIVIDUAL),
            ("brand", Role.CAMPAIGN_MANAGER),
            ("admin", Role.ADMIN_EXCHANGE),
            ("ADMIN", Role.ADMIN_EXCHANGE),
            (" Brand ", Role.CAMPAIGN_MANAGER),
        ],
    )
    def test_legacy_roles(self, raw, expected):
        """Legacy strings map to their Eureka roles regardless of case and spacing."""
        result = normalize(raw)
        assert result.role == expected
        assert result.source == NormalizationSource.LEGACY
        assert result.raw == raw

    def test_legacy_alias_members_resolve_to_target(self):
        """Legacy alias members resolve to their targets."""
        for alias, target in LEGACY_ALIASES.items():
            assert normalize(alias).role == target

    def test_unknown_role_falls_back(self):
        """Unknown roles fall back to Streamer Individual, tagged."""
        result = normalize("totally-unknown-role")
        assert result.role == Role.STREAMER_INDIVIDUAL
        assert result.source == NormalizationSource.FALLBACK
        assert result.fallback_used
        assert result.raw == "totally-unknown-role"

    def test_empty_string_falls_back(self):
        """An empty role string falls back."""
        assert normalize("").fallback_used

    def test_fallback_distinguishable_from_real_assignment(self):
        """A fallback is distinguishable from a real assignment."""
        real = normalize("streamer_individual")
        fallback = normalize("streamer_individul")
        assert real.role == fallback.role == FALLBACK_ROLE
        assert real.fallback_used is False
        assert fallback.fallback_used is True

    def test_fallback_is_logged(self, caplog):
        """A fallback resolution is logged as a warning."""
        with caplog.at_level(logging.WARNING, logger="eureka_roles.roles.normalizer"):
            normalize("superadmin")
        assert "superadmin" in caplog.text

    def test_fallback_never_elevates(self):
        """Admin-looking strings never resolve to an admin role."""
        for raw in ("root", "super-admin", "SUPER_ADMIN", "administrator"):
            assert normalize(raw).role == Role.STREAMER_INDIVIDUAL

    def test_idempotent(self):
        """Normalizing a normalized role changes nothing."""
        inputs = [r.value for r in Role] + ["streamer", "Brand", "nonsense", ""]
        for raw in inputs:
            once = normalize(raw).role
            assert normalize(once).role == once
            assert normalize(normalize(once).role).source == NormalizationSource.CANONICAL

    def test_resolve_role(self):
        """resolve_role returns only the role."""
        assert resolve_role("brand") == Role.CAMPAIGN_MANAGER
