"""
Tenant and role grant providers.

Usage:
    from module_access.providers import StaticTenantProvider, StaticRoleGrantProvider

    tenants = StaticTenantProvider()
    tenants.set_tenant("acme", "professional", ["hrm"])
"""

from collections.abc import Iterable

from module_access.models import AccessScope, RoleGrant
from module_access.permissions import PermissionIndex
from module_access.providers.base import RoleGrantProvider, TenantContextProvider
from module_access.providers.static import StaticRoleGrantProvider, StaticTenantProvider


def union_grants(role_grants: Iterable[RoleGrant]) -> frozenset[str]:
    """Union of the keys (or patterns) granted by several roles."""
    keys: set[str] = set()
    for grant in role_grants:
        keys.update(grant.granted_permission_keys)
    return frozenset(keys)


def effective_scope(role_grants: Iterable[RoleGrant], key: str) -> AccessScope | None:
    """
    Widest data scope any of the roles carries for a permission key.

    Args:
        role_grants: The user's role grants
        key: Concrete permission key

    Returns:
        AccessScope, or None if no role grants the key
    """
    best: AccessScope | None = None
    for grant in role_grants:
        if any(PermissionIndex.matches(pattern, key) for pattern in grant.granted_permission_keys):
            if best is None or grant.scope.rank > best.rank:
                best = grant.scope
    return best


__all__ = [
    "RoleGrantProvider",
    "StaticRoleGrantProvider",
    "StaticTenantProvider",
    "TenantContextProvider",
    "effective_scope",
    "union_grants",
]
