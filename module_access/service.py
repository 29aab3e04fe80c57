"""
Unified access service.

Single entry point for hosts: wraps the live registry (through a
RegistryHolder), the authorizer, the menu projector and the providers that
supply tenant plans and role grants.

Usage:
    from module_access import AccessService

    service = AccessService.from_config()
    ctx = await service.build_context("acme", "user-123")

    if service.authorize(ctx, "hrm.employees.employee-directory.view"):
        ...

    menu = service.project(ctx)
"""

import asyncio
import logging
import threading
from collections.abc import Iterable

from module_access.config import AccessConfig, get_access_config
from module_access.engine import Authorizer
from module_access.exceptions import ConfigurationError, ContextTimeoutError, TenantNotFoundError
from module_access.menu import MenuProjector, ModuleView
from module_access.models import AccessContext, AccessScope, Decision, EligibilityReport, PlanTier
from module_access.providers import RoleGrantProvider, TenantContextProvider, effective_scope, union_grants
from module_access.registry import Registry, RegistryHolder, load_registry_file

logger = logging.getLogger(__name__)


class _Engines:
    """Authorizer and projector bound to one registry instance."""

    __slots__ = ("registry", "authorizer", "projector")

    def __init__(self, registry: Registry, log_denials: bool):
        self.registry = registry
        self.authorizer = Authorizer(registry, log_denials=log_denials)
        self.projector = MenuProjector(self.authorizer)


class AccessService:
    """
    Facade over registry, authorization, menu projection and context assembly.

    Every operation reads the holder once, so a registry swapped in mid-call
    is only seen by the next call.
    """

    def __init__(
        self,
        registry: RegistryHolder | Registry,
        tenant_provider: TenantContextProvider | None = None,
        grant_provider: RoleGrantProvider | None = None,
        config: AccessConfig | None = None,
    ):
        """
        Args:
            registry: Holder of the live registry, or a fixed Registry
            tenant_provider: Source of tenant plans and activations
            grant_provider: Source of role grants
            config: Settings (defaults to get_access_config())
        """
        if isinstance(registry, Registry):
            registry = RegistryHolder(registry)
        self._holder = registry
        self._tenant_provider = tenant_provider
        self._grant_provider = grant_provider
        self._config = config or get_access_config()
        self._engines: _Engines | None = None
        self._engines_lock = threading.Lock()

        logger.info(
            f"[ACCESS] Service initialized with {len(registry.current)} modules "
            f"(registry {registry.current.fingerprint[:12]})"
        )

    @classmethod
    def from_config(
        cls,
        config: AccessConfig | None = None,
        tenant_provider: TenantContextProvider | None = None,
        grant_provider: RoleGrantProvider | None = None,
    ) -> "AccessService":
        """
        Create a service loading the registry from `registry_path`.

        Raises:
            ConfigurationError: If no registry path is configured
            RegistryError: If the registry fails to load
        """
        config = config or get_access_config()
        if config.registry_path is None:
            raise ConfigurationError(
                "No module registry configured. Set MODULE_ACCESS_REGISTRY_PATH.",
                setting="registry_path",
            )
        holder = RegistryHolder(load_registry_file(config.registry_path))
        return cls(holder, tenant_provider=tenant_provider, grant_provider=grant_provider, config=config)

    @property
    def holder(self) -> RegistryHolder:
        return self._holder

    @property
    def registry(self) -> Registry:
        return self._holder.current

    @property
    def config(self) -> AccessConfig:
        return self._config

    def _current(self) -> _Engines:
        registry = self._holder.current
        engines = self._engines
        if engines is not None and engines.registry is registry:
            return engines
        with self._engines_lock:
            if self._engines is None or self._engines.registry is not registry:
                self._engines = _Engines(registry, self._config.log_denials)
            return self._engines

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def authorize(self, ctx: AccessContext, key: str) -> Decision:
        return self._current().authorizer.authorize(ctx, key)

    def authorize_many(self, ctx: AccessContext, keys: Iterable[str]) -> dict[str, Decision]:
        return self._current().authorizer.authorize_many(ctx, keys)

    def project(self, ctx: AccessContext) -> tuple[ModuleView, ...]:
        return self._current().projector.project(ctx)

    def eligible_modules(
        self,
        plan: PlanTier | str | None,
        explicitly_activated: Iterable[str] = (),
    ) -> frozenset[str]:
        return self._current().authorizer.resolver.eligible_modules(plan, explicitly_activated)

    def explain(
        self,
        plan: PlanTier | str | None,
        explicitly_activated: Iterable[str],
        module_code: str,
    ) -> EligibilityReport:
        return self._current().authorizer.resolver.explain(plan, explicitly_activated, module_code)

    def required_plan(self, module_code: str) -> PlanTier | None:
        """Lowest plan at which a module and all its dependencies can run."""
        return self._holder.current.required_plan(module_code)

    # =========================================================================
    # CONTEXT ASSEMBLY
    # =========================================================================

    async def build_context(
        self,
        tenant_id: str,
        user_id: str,
        *,
        bypass_grants: bool = False,
    ) -> AccessContext:
        """
        Assemble an AccessContext from the providers.

        Tenant and role data are fetched concurrently. Wildcard grants are
        expanded against the current registry; grants for keys that no
        longer exist are dropped.

        Args:
            tenant_id: Tenant identifier
            user_id: User identifier
            bypass_grants: Skip the grant check (tenant super administrators)

        Returns:
            AccessContext

        Raises:
            ConfigurationError: If either provider is missing
            TenantNotFoundError: If the tenant provider has no such tenant
            ContextTimeoutError: If the providers exceed context_timeout_seconds
        """
        if self._tenant_provider is None or self._grant_provider is None:
            raise ConfigurationError("build_context requires a tenant provider and a role grant provider")

        timeout = self._config.context_timeout_seconds
        try:
            tenant, role_grants = await asyncio.wait_for(
                asyncio.gather(
                    self._tenant_provider.get_tenant(tenant_id),
                    self._grant_provider.get_role_grants(user_id),
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"[ACCESS:CONTEXT] Timed out after {timeout}s (tenant={tenant_id}, user={user_id})")
            raise ContextTimeoutError(tenant_id, user_id, timeout) from None

        if tenant is None:
            raise TenantNotFoundError(tenant_id)

        registry = self._holder.current
        granted = registry.permissions.expand(union_grants(role_grants))

        logger.debug(
            f"[ACCESS:CONTEXT] tenant={tenant_id} plan={tenant.plan.value} "
            f"modules={len(tenant.active_module_codes)} user={user_id} "
            f"roles={len(role_grants)} keys={len(granted)}"
        )

        return AccessContext(
            plan=tenant.plan,
            active_modules=tenant.active_module_codes,
            granted_keys=granted,
            tenant_id=tenant_id,
            user_id=user_id,
            bypass_grants=bypass_grants,
        )

    async def access_scope(self, user_id: str, key: str) -> AccessScope | None:
        """
        Widest data scope the user's roles carry for a permission key.

        Scope decides how much data an allowed action may touch (own records,
        team, department, everything); it does not affect authorize().

        Returns:
            AccessScope, or None if none of the user's roles grants the key

        Raises:
            ConfigurationError: If no role grant provider is configured
            ContextTimeoutError: If the provider exceeds context_timeout_seconds
        """
        if self._grant_provider is None:
            raise ConfigurationError("access_scope requires a role grant provider")

        timeout = self._config.context_timeout_seconds
        try:
            role_grants = await asyncio.wait_for(self._grant_provider.get_role_grants(user_id), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"[ACCESS:CONTEXT] Timed out after {timeout}s fetching roles (user={user_id})")
            raise ContextTimeoutError(None, user_id, timeout) from None

        return effective_scope(role_grants, key)
