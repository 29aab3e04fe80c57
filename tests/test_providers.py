"""
Tests for the in-memory providers and grant helpers.
"""

from module_access.models import AccessScope, PlanTier, RoleGrant, TenantActivation
from module_access.providers import (
    StaticRoleGrantProvider,
    StaticTenantProvider,
    effective_scope,
    union_grants,
)


class TestStaticTenantProvider:
    """Test suite for the static tenant store."""

    async def test_get_tenant(self, tenant_provider):
        tenant = await tenant_provider.get_tenant("acme")

        assert tenant.plan is PlanTier.PROFESSIONAL
        assert tenant.active_module_codes == frozenset({"hrm", "crm"})

    async def test_unknown_tenant(self, tenant_provider):
        assert await tenant_provider.get_tenant("nobody") is None

    async def test_initial_tenants_and_removal(self):
        provider = StaticTenantProvider([TenantActivation("acme", PlanTier.BUSINESS)])
        assert (await provider.get_tenant("acme")).plan is PlanTier.BUSINESS

        assert provider.remove_tenant("acme")
        assert not provider.remove_tenant("acme")
        assert await provider.get_tenant("acme") is None

    def test_name(self, tenant_provider):
        assert tenant_provider.name == "static"


class TestStaticRoleGrantProvider:
    """Test suite for the static role store."""

    async def test_grants_for_user(self, grant_provider):
        grants = await grant_provider.get_role_grants("bob")
        assert [g.role_id for g in grants] == ["hr_manager", "sales_rep"]

    async def test_user_without_roles(self, grant_provider):
        assert await grant_provider.get_role_grants("nobody") == []

    def test_assign_unknown_role(self, grant_provider):
        assert not grant_provider.assign_role("alice", "ghost")

    async def test_assign_twice_is_noop(self, grant_provider):
        assert grant_provider.assign_role("alice", "hr_viewer")
        assert len(await grant_provider.get_role_grants("alice")) == 1

    async def test_revoke_role(self, grant_provider):
        assert grant_provider.revoke_role("bob", "sales_rep")
        assert not grant_provider.revoke_role("bob", "sales_rep")
        assert [g.role_id for g in await grant_provider.get_role_grants("bob")] == ["hr_manager"]

    async def test_redefining_role_updates_users(self):
        provider = StaticRoleGrantProvider()
        provider.define_role("viewer", ["hrm.*.*.view"])
        provider.assign_role("alice", "viewer")
        provider.define_role("viewer", ["crm.*"], scope=AccessScope.TEAM)

        (grant,) = await provider.get_role_grants("alice")
        assert grant.granted_permission_keys == frozenset({"crm.*"})
        assert grant.scope is AccessScope.TEAM


class TestGrantHelpers:
    """Test suite for union_grants and effective_scope."""

    def test_union_grants(self):
        grants = [
            RoleGrant("a", frozenset({"hrm.*", "crm.leads.lead-list.view"})),
            RoleGrant("b", frozenset({"crm.leads.lead-list.view", "finance.*"})),
        ]
        assert union_grants(grants) == frozenset({"hrm.*", "crm.leads.lead-list.view", "finance.*"})
        assert union_grants([]) == frozenset()

    def test_effective_scope_picks_widest(self):
        key = "hrm.employees.employee-directory.view"
        grants = [
            RoleGrant("viewer", frozenset({key}), AccessScope.OWN),
            RoleGrant("manager", frozenset({"hrm.*"}), AccessScope.DEPARTMENT),
            RoleGrant("sales", frozenset({"crm.*"}), AccessScope.ALL),
        ]
        assert effective_scope(grants, key) is AccessScope.DEPARTMENT

    def test_effective_scope_without_match(self):
        grants = [RoleGrant("sales", frozenset({"crm.*"}), AccessScope.ALL)]
        assert effective_scope(grants, "hrm.employees.employee-directory.view") is None

    def test_scope_order(self):
        ranks = [s.rank for s in (AccessScope.OWN, AccessScope.TEAM, AccessScope.DEPARTMENT, AccessScope.ALL)]
        assert ranks == sorted(ranks)
