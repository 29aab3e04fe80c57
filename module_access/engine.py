"""
Authorization engine.

Single checkpoint deciding whether a context may perform an action.
Checks run in this order and stop at the first failure:

1. The key's module must be eligible for the tenant   -> module_ineligible
2. The key must exist in the registry                  -> unknown_permission
3. The key must be in the context's granted keys       -> not_granted
4. Otherwise                                           -> ALLOW

Eligibility comes before grants so that grants can never reach beyond what
the tenant's plan and activations allow; stale grants for since-disabled
modules fail closed. Every outcome is a Decision, never an exception.

Usage:
    authorizer = Authorizer(registry)
    decision = authorizer.authorize(ctx, "hrm.employees.employee-directory.view")
    if not decision.allowed:
        ...  # decision.reason tells 402-style upsell apart from 403
"""

import logging
from collections.abc import Iterable

from module_access.models import (
    AccessContext,
    Decision,
    DecisionReason,
    Effect,
    module_code_of,
)
from module_access.registry import Registry
from module_access.resolver import EligibilityResolver

logger = logging.getLogger(__name__)


class Authorizer:
    """Decides ALLOW/DENY for permission keys against one registry."""

    def __init__(
        self,
        registry: Registry,
        resolver: EligibilityResolver | None = None,
        log_denials: bool = True,
    ):
        """
        Args:
            registry: Loaded registry
            resolver: Resolver over the same registry (created if omitted)
            log_denials: Log not_granted / module_ineligible denials at INFO.
                Unknown permissions are always logged as warnings.
        """
        if resolver is not None and resolver.registry is not registry:
            raise ValueError("resolver must be built over the same registry as the authorizer")
        self._registry = registry
        self._resolver = resolver or EligibilityResolver(registry)
        self._log_denials = log_denials

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def resolver(self) -> EligibilityResolver:
        return self._resolver

    def eligible_modules(self, ctx: AccessContext) -> frozenset[str]:
        return self._resolver.eligible_modules(ctx.plan, ctx.active_modules)

    def authorize(self, ctx: AccessContext, key: str) -> Decision:
        """
        Authorize a single permission key.

        Args:
            ctx: Tenant plan, activations and the user's granted keys
            key: Permission key ("module.submodule.component.action")

        Returns:
            Decision with effect, reason and a short message
        """
        return self.evaluate(ctx, key, self.eligible_modules(ctx))

    def is_allowed(self, ctx: AccessContext, key: str) -> bool:
        return self.authorize(ctx, key).allowed

    def authorize_many(self, ctx: AccessContext, keys: Iterable[str]) -> dict[str, Decision]:
        """Authorize several keys, computing eligibility once."""
        eligible = self.eligible_modules(ctx)
        return {key: self.evaluate(ctx, key, eligible) for key in keys}

    def evaluate(
        self,
        ctx: AccessContext,
        key: str,
        eligible: frozenset[str],
        log: bool = True,
    ) -> Decision:
        """
        Authorize a key against an already computed eligible-module set.

        The eligible set must come from eligible_modules(ctx) on this
        authorizer; it is accepted here so traversals (menus, batch checks)
        resolve eligibility once. With log=False no DENY is logged;
        unknown permissions are still reported as warnings.
        """
        module_code = module_code_of(key)

        if module_code not in eligible:
            report = self._resolver.explain(ctx.plan, ctx.active_modules, module_code, eligible=eligible)
            detail = report.to_dict()
            decision = Decision(
                effect=Effect.DENY,
                reason=DecisionReason.MODULE_INELIGIBLE,
                key=key,
                message=_ineligible_message(module_code, detail),
                detail=detail,
            )
            if log:
                self._log_denial(ctx, decision)
            return decision

        if not self._registry.permissions.exists(key):
            logger.warning(
                f"[ACCESS:AUTHZ] Unknown permission '{key}' requested "
                f"(tenant={ctx.tenant_id}, user={ctx.user_id})",
                extra={"permission": key, "tenant_id": ctx.tenant_id, "user_id": ctx.user_id},
            )
            return Decision(
                effect=Effect.DENY,
                reason=DecisionReason.UNKNOWN_PERMISSION,
                key=key,
                message=f"Permission '{key}' does not exist.",
            )

        if key in ctx.granted_keys:
            return Decision(
                effect=Effect.ALLOW,
                reason=DecisionReason.GRANTED,
                key=key,
                message="Access granted.",
            )

        if ctx.bypass_grants:
            logger.debug(f"[ACCESS:AUTHZ] Grant check bypassed for '{key}' (user={ctx.user_id})")
            return Decision(
                effect=Effect.ALLOW,
                reason=DecisionReason.GRANT_BYPASSED,
                key=key,
                message="Tenant super administrator access.",
            )

        decision = Decision(
            effect=Effect.DENY,
            reason=DecisionReason.NOT_GRANTED,
            key=key,
            message="Access denied.",
        )
        if log:
            self._log_denial(ctx, decision)
        return decision

    def _log_denial(self, ctx: AccessContext, decision: Decision) -> None:
        if not self._log_denials:
            return
        logger.info(
            f"[ACCESS:AUTHZ] DENY {decision.key} ({decision.reason.value}) "
            f"tenant={ctx.tenant_id} user={ctx.user_id} plan={ctx.plan.value}",
            extra={
                "permission": decision.key,
                "reason": decision.reason.value,
                "tenant_id": ctx.tenant_id,
                "user_id": ctx.user_id,
            },
        )


def _ineligible_message(module_code: str, detail: dict) -> str:
    cause = detail.get("cause")
    if cause == "unknown_module":
        return f"Module '{module_code}' is not available."
    if cause == "inactive":
        return f"Module '{module_code}' is currently disabled."
    if cause == "plan_too_low":
        return f"Module '{module_code}' requires the {detail.get('required_plan')} plan or higher."
    if cause == "not_activated":
        return f"Module '{module_code}' is not activated for this tenant."
    return (
        f"Module '{module_code}' requires module '{detail.get('blocking_dependency')}', "
        f"which is not available for this tenant."
    )
