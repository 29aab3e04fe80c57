"""
Tests for plan gating and dependency resolution.

These tests verify:
- Core modules are implicitly activated, others need explicit activation
- Plan gating uses tier order, not string comparison
- Dependency failure propagates transitively
- explain() names the first failing condition
"""

import pytest

from module_access.models import IneligibilityCause, PlanTier
from module_access.registry import load_registry
from module_access.resolver import EligibilityResolver

ALL_MODULES = ["hrm", "crm", "finance", "analytics", "compliance"]


class TestPlanTier:
    """Test suite for plan ordering and parsing."""

    def test_total_order(self):
        assert PlanTier.BASIC < PlanTier.PROFESSIONAL < PlanTier.BUSINESS < PlanTier.ENTERPRISE
        assert PlanTier.ENTERPRISE >= PlanTier.BUSINESS
        assert not PlanTier.BASIC > PlanTier.BASIC
        assert max(PlanTier.PROFESSIONAL, PlanTier.BASIC) is PlanTier.PROFESSIONAL

    def test_order_is_not_alphabetical(self):
        # "business" < "professional" as strings, but not as tiers
        assert PlanTier.PROFESSIONAL < PlanTier.BUSINESS

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, PlanTier.BASIC),
            ("basic", PlanTier.BASIC),
            ("Professional", PlanTier.PROFESSIONAL),
            (" ENTERPRISE ", PlanTier.ENTERPRISE),
            (PlanTier.BUSINESS, PlanTier.BUSINESS),
        ],
    )
    def test_parse(self, value, expected):
        assert PlanTier.parse(value) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown plan tier"):
            PlanTier.parse("platinum")


class TestEligibleModules:
    """Test suite for the eligible-module set."""

    def test_core_and_activated_module(self, resolver):
        """Core is implicit; hrm is eligible once activated on a basic plan."""
        assert resolver.eligible_modules(PlanTier.BASIC, {"hrm"}) == frozenset({"core", "hrm"})

    def test_not_activated_module_excluded(self, resolver):
        """Without activation only core modules are eligible."""
        assert resolver.eligible_modules(PlanTier.BASIC, set()) == frozenset({"core"})

    def test_plan_gates_module(self, resolver):
        assert "crm" not in resolver.eligible_modules("basic", {"crm"})
        assert "crm" in resolver.eligible_modules("professional", {"crm"})

    def test_plan_accepts_strings(self, resolver):
        assert resolver.eligible_modules("PROFESSIONAL", ["hrm", "crm"]) == frozenset({"core", "hrm", "crm"})

    def test_inactive_module_never_eligible(self, resolver):
        assert "compliance" not in resolver.eligible_modules(PlanTier.ENTERPRISE, ALL_MODULES)

    def test_unknown_activations_ignored(self, resolver):
        assert resolver.eligible_modules("basic", {"hrm", "payroll"}) == frozenset({"core", "hrm"})

    def test_dependency_must_clear_its_own_plan(self, resolver):
        """analytics needs professional itself but depends on business-tier finance."""
        eligible = resolver.eligible_modules(PlanTier.PROFESSIONAL, ALL_MODULES)
        assert "finance" not in eligible
        assert "analytics" not in eligible

        eligible = resolver.eligible_modules(PlanTier.BUSINESS, ALL_MODULES)
        assert "analytics" in eligible

    def test_dependency_must_be_activated(self, resolver):
        assert "analytics" not in resolver.eligible_modules(PlanTier.ENTERPRISE, {"analytics", "crm"})

    def test_is_eligible(self, resolver):
        assert resolver.is_eligible("basic", [], "core")
        assert not resolver.is_eligible("basic", [], "hrm")
        assert not resolver.is_eligible("enterprise", ALL_MODULES, "payroll")


class TestTransitivity:
    """Test suite for transitive dependency failure."""

    @pytest.fixture
    def chain(self):
        def node(code, deps=(), **extra):
            return {"code": code, "dependencies": list(deps), **extra}

        return EligibilityResolver(load_registry([
            node("base", min_plan="business"),
            node("middle", ["base"]),
            node("top", ["middle"]),
        ]))

    def test_failure_propagates_up_the_chain(self, chain):
        """top's own requirements pass, but base is gated above the tenant's plan."""
        eligible = chain.eligible_modules("basic", {"base", "middle", "top"})
        assert eligible == frozenset()

    def test_chain_eligible_when_root_clears(self, chain):
        eligible = chain.eligible_modules("business", {"base", "middle", "top"})
        assert eligible == frozenset({"base", "middle", "top"})

    def test_dependency_on_inactive_module(self):
        resolver = EligibilityResolver(load_registry([
            {"code": "core", "is_core": True, "is_active": False},
            {"code": "hrm", "dependencies": ["core"]},
        ]))
        assert resolver.eligible_modules("enterprise", {"hrm"}) == frozenset()


class TestMonotonicity:
    """Raising the plan never removes an eligible module."""

    @pytest.mark.parametrize(
        "activated",
        [set(), {"hrm"}, {"crm", "finance"}, set(ALL_MODULES), {"analytics"}],
    )
    def test_higher_plan_is_superset(self, resolver, activated):
        tiers = list(PlanTier)
        for lower, higher in zip(tiers, tiers[1:]):
            assert resolver.eligible_modules(lower, activated) <= resolver.eligible_modules(higher, activated)

    def test_eligible_dependencies_are_eligible(self, resolver, registry):
        for plan in PlanTier:
            eligible = resolver.eligible_modules(plan, ALL_MODULES)
            for code in eligible:
                assert registry.dependencies_of(code) <= eligible


class TestExplain:
    """Test suite for eligibility explanations."""

    def test_eligible(self, resolver):
        report = resolver.explain("basic", {"hrm"}, "hrm")
        assert report.eligible
        assert report.cause is None
        assert report.required_plan is PlanTier.BASIC

    def test_unknown_module(self, resolver):
        report = resolver.explain("basic", set(), "payroll")
        assert not report.eligible
        assert report.cause is IneligibilityCause.UNKNOWN_MODULE
        assert report.required_plan is None

    def test_inactive(self, resolver):
        report = resolver.explain("enterprise", ALL_MODULES, "compliance")
        assert report.cause is IneligibilityCause.INACTIVE

    def test_plan_too_low_checked_before_activation(self, resolver):
        report = resolver.explain("basic", set(), "crm")
        assert report.cause is IneligibilityCause.PLAN_TOO_LOW
        assert report.required_plan is PlanTier.PROFESSIONAL

    def test_not_activated(self, resolver):
        report = resolver.explain("enterprise", set(), "crm")
        assert report.cause is IneligibilityCause.NOT_ACTIVATED

    def test_dependency_ineligible_names_blocker(self, resolver):
        report = resolver.explain("professional", ALL_MODULES, "analytics")
        assert report.cause is IneligibilityCause.DEPENDENCY_INELIGIBLE
        assert report.blocking_dependency == "finance"
        assert report.required_plan is PlanTier.BUSINESS

    def test_to_dict(self, resolver):
        assert resolver.explain("basic", set(), "crm").to_dict() == {
            "module_code": "crm",
            "eligible": False,
            "cause": "plan_too_low",
            "blocking_dependency": None,
            "required_plan": "professional",
        }

    def test_explain_agrees_with_eligible_modules(self, resolver, registry):
        for plan in PlanTier:
            for activated in (set(), {"hrm", "crm"}, set(ALL_MODULES)):
                eligible = resolver.eligible_modules(plan, activated)
                for module in registry.modules:
                    assert resolver.explain(plan, activated, module.code).eligible == (module.code in eligible)
