"""
FastAPI authorization dependencies.

Requires the optional `fastapi` extra. The host supplies a dependency that
resolves the request's AccessContext (typically by awaiting
AccessService.build_context with ids taken from its auth layer); the guard
turns DENY decisions into HTTP errors:

- module_ineligible -> 402 Payment Required, with upsell detail
- any other DENY    -> 403 Forbidden, with a generic detail

Usage:
    from fastapi import Depends
    from module_access.dependencies import AccessGuard

    async def current_context(request: Request) -> AccessContext:
        return await service.build_context(request.state.tenant_id, request.state.user_id)

    guard = AccessGuard(service, current_context)

    @app.get("/api/hrm/employees")
    async def list_employees(ctx: AccessContext = Depends(guard.require("hrm.employees.employee-directory.view"))):
        ...
"""

import logging
from collections.abc import Callable

from fastapi import Depends, HTTPException, status

from module_access.models import AccessContext, Decision, DecisionReason
from module_access.service import AccessService
from module_access.utils.logging import request_context

logger = logging.getLogger(__name__)


def http_status_for(decision: Decision) -> int:
    """
    HTTP status for a decision.

    Returns:
        200 for ALLOW, 402 for module_ineligible, 403 for any other DENY
    """
    if decision.allowed:
        return status.HTTP_200_OK
    if decision.reason is DecisionReason.MODULE_INELIGIBLE:
        return status.HTTP_402_PAYMENT_REQUIRED
    return status.HTTP_403_FORBIDDEN


def _denial_detail(decision: Decision) -> dict:
    if decision.reason is DecisionReason.MODULE_INELIGIBLE:
        return {
            "error": "Upgrade required",
            "code": "MODULE_INELIGIBLE",
            "module": decision.detail.get("module_code"),
            "cause": decision.detail.get("cause"),
            "required_plan": decision.detail.get("required_plan"),
            "reason": decision.message,
        }
    return {
        "error": "Access denied",
        "code": "ACCESS_DENIED",
    }


class AccessGuard:
    """Builds FastAPI dependencies that authorize permission keys."""

    def __init__(self, service: AccessService, context_dependency: Callable):
        """
        Args:
            service: Access service used for decisions
            context_dependency: FastAPI dependency returning the request's AccessContext
        """
        self._service = service
        self._context_dependency = context_dependency

    def require(self, key: str) -> Callable:
        """
        Factory for requiring a permission key.

        The dependency returns the AccessContext when access is allowed.
        """
        async def _require(
            ctx: AccessContext = Depends(self._context_dependency),
        ) -> AccessContext:
            with request_context(tenant_id=ctx.tenant_id, user_id=ctx.user_id):
                decision = self._service.authorize(ctx, key)
            if not decision.allowed:
                raise HTTPException(
                    status_code=http_status_for(decision),
                    detail=_denial_detail(decision),
                )
            return ctx

        return _require

    def require_any(self, keys: list[str]) -> Callable:
        """Factory for requiring at least one of several permission keys."""
        async def _require_any(
            ctx: AccessContext = Depends(self._context_dependency),
        ) -> AccessContext:
            with request_context(tenant_id=ctx.tenant_id, user_id=ctx.user_id):
                decisions = self._service.authorize_many(ctx, keys)
            if any(d.allowed for d in decisions.values()):
                return ctx

            logger.warning(f"[ACCESS:GUARD] User {ctx.user_id} lacks all of: {keys}")
            # Upsell only when every key failed on eligibility
            if decisions and all(d.reason is DecisionReason.MODULE_INELIGIBLE for d in decisions.values()):
                first = decisions[keys[0]]
                raise HTTPException(status_code=http_status_for(first), detail=_denial_detail(first))
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error": "Access denied", "code": "ACCESS_DENIED"},
            )

        return _require_any
