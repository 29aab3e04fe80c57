"""
Dependency & plan resolver.

A module is eligible for a tenant iff:
- it is active platform-wide,
- the tenant's plan is at least the module's min_plan,
- it is core or the tenant explicitly activated it, and
- every module it depends on is eligible.

Dependency failure is transitive: a module whose dependency is ineligible
is ineligible whatever its own plan or activation. Dependencies are
resolved along the registry's activation order (computed and checked for
cycles at load time), so evaluation never recurses.

Results are pure functions of (registry, plan, activation set); callers may
memoize them keyed by those inputs, using Registry.fingerprint as the
registry version.
"""

import logging
from collections.abc import Iterable

from module_access.models import EligibilityReport, IneligibilityCause, PlanTier
from module_access.registry import Registry

logger = logging.getLogger(__name__)


class EligibilityResolver:
    """Computes which modules a tenant can run."""

    def __init__(self, registry: Registry):
        self._registry = registry

    @property
    def registry(self) -> Registry:
        return self._registry

    def eligible_modules(
        self,
        plan: PlanTier | str | None,
        explicitly_activated: Iterable[str] = (),
    ) -> frozenset[str]:
        """
        Get the set of module codes the tenant can run.

        Args:
            plan: Tenant's subscription plan
            explicitly_activated: Module codes the tenant switched on;
                unknown codes are ignored

        Returns:
            Codes of eligible modules
        """
        plan = PlanTier.parse(plan)
        activated = frozenset(explicitly_activated)
        registry = self._registry

        eligible: set[str] = set()
        for code in registry.activation_order:
            module = registry.module_by_code[code]
            if (
                module.is_active
                and plan >= module.min_plan
                and (module.is_core or code in activated)
                and module.dependencies <= eligible
            ):
                eligible.add(code)

        return frozenset(eligible)

    def is_eligible(
        self,
        plan: PlanTier | str | None,
        explicitly_activated: Iterable[str],
        code: str,
    ) -> bool:
        return code in self.eligible_modules(plan, explicitly_activated)

    def explain(
        self,
        plan: PlanTier | str | None,
        explicitly_activated: Iterable[str],
        code: str,
        eligible: frozenset[str] | None = None,
    ) -> EligibilityReport:
        """
        Explain why a module is or is not eligible.

        Checks in order: unknown module, inactive, plan too low, not
        activated, dependency ineligible. The first failure is reported;
        for dependency failures the first blocking dependency in
        activation order is named.

        Args:
            plan: Tenant's subscription plan
            explicitly_activated: Module codes the tenant switched on
            code: Module to explain
            eligible: Precomputed eligible set, if the caller has one

        Returns:
            EligibilityReport
        """
        plan = PlanTier.parse(plan)
        activated = frozenset(explicitly_activated)
        registry = self._registry

        module = registry.get_module(code)
        if module is None:
            return EligibilityReport(code, False, IneligibilityCause.UNKNOWN_MODULE)

        required_plan = registry.required_plan(code)

        if not module.is_active:
            cause = IneligibilityCause.INACTIVE
        elif plan < module.min_plan:
            cause = IneligibilityCause.PLAN_TOO_LOW
        elif not (module.is_core or code in activated):
            cause = IneligibilityCause.NOT_ACTIVATED
        else:
            if eligible is None:
                eligible = self.eligible_modules(plan, activated)
            blocking = next(
                (dep for dep in registry.activation_order
                 if dep in module.dependencies and dep not in eligible),
                None,
            )
            if blocking is None:
                return EligibilityReport(code, True, required_plan=required_plan)
            return EligibilityReport(
                code,
                False,
                IneligibilityCause.DEPENDENCY_INELIGIBLE,
                blocking_dependency=blocking,
                required_plan=required_plan,
            )

        return EligibilityReport(code, False, cause, required_plan=required_plan)
