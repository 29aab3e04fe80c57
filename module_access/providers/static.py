"""
In-memory providers.

Useful for development and testing without a tenant database or identity
service. All data is stored in memory and lost on restart.
"""

import logging
from collections.abc import Iterable

from module_access.models import AccessScope, PlanTier, RoleGrant, TenantActivation
from module_access.providers.base import RoleGrantProvider, TenantContextProvider

logger = logging.getLogger(__name__)


class StaticTenantProvider(TenantContextProvider):
    """
    Tenant provider backed by a dict.

    Usage:
        tenants = StaticTenantProvider()
        tenants.set_tenant("acme", "professional", ["hrm"])
    """

    def __init__(self, tenants: Iterable[TenantActivation] = ()):
        self._tenants: dict[str, TenantActivation] = {t.tenant_id: t for t in tenants}
        logger.info(f"[ACCESS:STATIC] Tenant provider initialized with {len(self._tenants)} tenants")

    @property
    def name(self) -> str:
        return "static"

    def set_tenant(
        self,
        tenant_id: str,
        plan: PlanTier | str | None,
        active_module_codes: Iterable[str] = (),
    ) -> TenantActivation:
        """Create or replace a tenant."""
        tenant = TenantActivation(
            tenant_id=tenant_id,
            plan=PlanTier.parse(plan),
            active_module_codes=frozenset(active_module_codes),
        )
        self._tenants[tenant_id] = tenant
        return tenant

    def remove_tenant(self, tenant_id: str) -> bool:
        return self._tenants.pop(tenant_id, None) is not None

    async def get_tenant(self, tenant_id: str) -> TenantActivation | None:
        return self._tenants.get(tenant_id)


class StaticRoleGrantProvider(RoleGrantProvider):
    """
    Role grant provider backed by dicts.

    Usage:
        grants = StaticRoleGrantProvider()
        grants.define_role("hr_manager", ["hrm.*"], scope="department")
        grants.assign_role("user-123", "hr_manager")
    """

    def __init__(self):
        self._roles: dict[str, RoleGrant] = {}
        self._user_roles: dict[str, list[str]] = {}  # user_id -> [role_ids]
        logger.info("[ACCESS:STATIC] Role grant provider initialized")

    @property
    def name(self) -> str:
        return "static"

    def define_role(
        self,
        role_id: str,
        permission_keys: Iterable[str],
        scope: AccessScope | str = AccessScope.ALL,
    ) -> RoleGrant:
        """Create or replace a role and its granted keys (patterns allowed)."""
        role = RoleGrant(
            role_id=role_id,
            granted_permission_keys=frozenset(permission_keys),
            scope=AccessScope(scope),
        )
        self._roles[role_id] = role
        return role

    def assign_role(self, user_id: str, role_id: str) -> bool:
        """
        Assign a defined role to a user.

        Returns:
            True if assigned, False if the role is unknown
        """
        if role_id not in self._roles:
            logger.warning(f"[ACCESS:STATIC] Role not found: {role_id}")
            return False
        roles = self._user_roles.setdefault(user_id, [])
        if role_id not in roles:
            roles.append(role_id)
        return True

    def revoke_role(self, user_id: str, role_id: str) -> bool:
        roles = self._user_roles.get(user_id, [])
        if role_id not in roles:
            return False
        roles.remove(role_id)
        return True

    async def get_role_grants(self, user_id: str) -> list[RoleGrant]:
        return [
            self._roles[role_id]
            for role_id in self._user_roles.get(user_id, [])
            if role_id in self._roles
        ]
