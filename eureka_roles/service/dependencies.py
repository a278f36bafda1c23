"""
FastAPI dependency enforcing a ``Requirement`` on a route.

Authentication happens upstream: the auth middleware of the consuming app
places the verified identity on ``request.state.identity`` (an ``Identity``
or a plain role string). This dependency only evaluates the requirement.

Usage:
    @router.post("/campaigns/{campaign_id}/approve")
    def approve(
        campaign_id: str,
        decision: AuthorizationDecision = Depends(
            RequirePolicy(Requirement(required_permissions=(Permission.APPROVE_CAMPAIGN,)))
        ),
    ): ...
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from eureka_roles.policy.guard import AuthorizationDecision, Guard, Identity, Requirement, guard

logger = logging.getLogger(__name__)


class RequirePolicy:
    """Callable dependency: 401 without an identity, 403 on denial."""

    def __init__(self, requirement: Requirement, policy_guard: Guard | None = None) -> None:
        self.requirement = requirement
        self.guard = policy_guard or guard

    def __call__(self, request: Request) -> AuthorizationDecision:
        identity = getattr(request.state, "identity", None)
        if identity is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required"
            )
        if not isinstance(identity, Identity):
            identity = Identity(raw_role=str(identity))

        decision = self.guard.evaluate(identity, self.requirement)
        if not decision.allowed:
            logger.info(
                "Request to %s denied: %s", request.url.path, decision.reason.value
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=decision.model_dump(mode="json"),
            )

        request.state.authorization = decision
        return decision
