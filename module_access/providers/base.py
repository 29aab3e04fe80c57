"""
Abstract base classes for the stores an AccessContext is assembled from.

The engine never performs I/O. Hosts implement these providers over their
own storage (SQL, an identity service, a cache) and AccessService awaits
them before any check runs.
"""

from abc import ABC, abstractmethod

from module_access.models import RoleGrant, TenantActivation


class TenantContextProvider(ABC):
    """
    Source of tenant subscription data.

    Implementations return the tenant's plan and the modules it switched on.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging."""
        pass

    @abstractmethod
    async def get_tenant(self, tenant_id: str) -> TenantActivation | None:
        """
        Get a tenant's plan and activations.

        Args:
            tenant_id: Tenant identifier

        Returns:
            TenantActivation, or None if the tenant does not exist
        """
        pass


class RoleGrantProvider(ABC):
    """Source of the permission grants held by a user's roles."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging."""
        pass

    @abstractmethod
    async def get_role_grants(self, user_id: str) -> list[RoleGrant]:
        """
        Get the grants of every role assigned to a user.

        Args:
            user_id: User identifier

        Returns:
            List of RoleGrant (empty if the user has no roles)
        """
        pass
