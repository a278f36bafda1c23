"""
Eureka Roles — Standalone policy service.

FastAPI application exposing the role policy engine over HTTP:
- Role catalogue (roles, permissions, escalation targets, statistics)
- Role-change validation for the admin role-management UI
- Authorization decisions for services that do not embed the engine

Denials are ordinary responses carrying the decision; only lookups of roles
outside the registry are errors (404).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from eureka_roles.config import settings
from eureka_roles.policy.guard import AuthorizationDecision, Requirement
from eureka_roles.policy.hierarchy import AssignableRole
from eureka_roles.policy.service import RoleService, RoleStatistics, UIComponentFlags
from eureka_roles.roles.registry import UnknownRole
from eureka_roles.roles.schema import Permission, Portal, Role, RoleCategory

log = structlog.get_logger(__name__)


# ── Pydantic request / response models ────────────────────────


class RoleSummary(BaseModel):
    role: Role
    portal: Portal
    category: RoleCategory
    permissions: list[Permission]
    can_delete: bool
    can_suspend: bool
    requires_agreement: bool


class RoleChangeBody(BaseModel):
    current_role: str
    target_role: str
    assigner_role: str


class RoleChangeResponse(BaseModel):
    valid: bool
    reason: str | None = None


class AuthorizeBody(BaseModel):
    raw_role: str
    requirement: Requirement = Requirement()


class ServiceState:
    """Application state shared by the route handlers."""

    def __init__(self) -> None:
        self.role_service = RoleService(deny_fallback=settings.deny_unrecognized_roles)
        self.startup_time: datetime = datetime.now(timezone.utc)


state = ServiceState()


# ── Application lifecycle ──────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(
        "eureka_roles.service.starting",
        roles=len(state.role_service.registry),
        deny_unrecognized_roles=settings.deny_unrecognized_roles,
    )
    yield
    log.info("eureka_roles.service.stopped")


app = FastAPI(
    title=settings.service_title,
    description="Role, portal and permission policy engine",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(UnknownRole)
async def unknown_role_handler(request: Request, exc: UnknownRole) -> JSONResponse:
    log.warning("eureka_roles.service.unknown_role", role=str(exc.role), path=request.url.path)
    return JSONResponse(status_code=404, content={"detail": f"Unknown role: {exc.role}"})


def _canonical(role: str) -> Role:
    """Path roles must be canonical values; raises UnknownRole otherwise."""
    state.role_service.registry.lookup(role)
    return Role(role)


# ── Routes: Role catalogue ─────────────────────────────────────


@app.get("/roles", response_model=list[RoleSummary])
async def list_roles():
    service = state.role_service
    return [
        RoleSummary(
            role=role,
            portal=config.portal,
            category=config.category,
            permissions=service.permissions_of(role.value),
            can_delete=config.can_delete,
            can_suspend=config.can_suspend,
            requires_agreement=config.requires_agreement,
        )
        for role, config in service.registry.items()
    ]


@app.get("/roles/statistics", response_model=RoleStatistics)
async def role_statistics():
    return state.role_service.role_statistics()


@app.get("/roles/{role}/permissions", response_model=list[Permission])
async def role_permissions(role: str):
    held = state.role_service.registry.permissions_of(_canonical(role))
    return [permission for permission in Permission if permission in held]


@app.get("/roles/{role}/escalation-targets", response_model=list[Role])
async def role_escalation_targets(role: str):
    canonical = _canonical(role)
    return state.role_service.escalation_targets(canonical.value)


@app.get("/roles/{role}/assignable", response_model=list[AssignableRole])
async def role_assignable(role: str):
    canonical = _canonical(role)
    return state.role_service.assignable_roles(canonical.value)


@app.get("/roles/{role}/ui-flags", response_model=UIComponentFlags)
async def role_ui_flags(role: str):
    canonical = _canonical(role)
    return state.role_service.ui_component_flags(canonical.value)


# ── Routes: Decisions ──────────────────────────────────────────


@app.post("/roles/validate-change", response_model=RoleChangeResponse)
async def validate_role_change(body: RoleChangeBody):
    decision = state.role_service.validate_change(
        body.current_role, body.target_role, body.assigner_role
    )
    log.info(
        "eureka_roles.service.role_change_validated",
        target_role=decision.target_role.value,
        assigner_role=decision.assigner_role.value,
        valid=decision.valid,
        reason=decision.reason,
    )
    return RoleChangeResponse(valid=decision.valid, reason=decision.reason)


@app.post("/authorize", response_model=AuthorizationDecision)
async def authorize(body: AuthorizeBody):
    decision = state.role_service.authorize(body.raw_role, body.requirement)
    if decision.fallback_used:
        log.warning("eureka_roles.service.fallback_role", raw_role=body.raw_role)
    return decision


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "roles": len(state.role_service.registry),
        "uptime_seconds": (datetime.now(timezone.utc) - state.startup_time).total_seconds(),
    }
