"""
Module Access

Access control for a modular multi-tenant platform:
- Module registry (Module -> Submodule -> Component -> Action), validated at load
- Plan gating and dependency resolution per tenant
- Permission keys ("hrm.employees.employee-directory.view") with wildcard grants
- Authorization decisions with machine-readable reasons
- Navigation menus pruned to what a user may see
- FastAPI guard dependencies (optional `fastapi` extra)

Install:
    pip install "module-access[fastapi]"

Usage:
    from module_access import (
        AccessService,
        AccessContext,
        load_registry_file,
    )

    service = AccessService(load_registry_file("config/modules.yaml"))
    ctx = AccessContext.create(
        "professional",
        ["hrm"],
        ["hrm.employees.*"],
        index=service.registry.permissions,  # expands the wildcard grant
    )

    decision = service.authorize(ctx, "hrm.employees.employee-directory.view")
    if not decision.allowed:
        print(decision.reason, decision.message)

    menu = service.project(ctx)
"""

# Models
from module_access.models import (
    AccessContext,
    AccessScope,
    ActionDescriptor,
    ComponentNode,
    ComponentType,
    Decision,
    DecisionReason,
    Effect,
    EligibilityReport,
    IneligibilityCause,
    LicenseType,
    ModuleNode,
    PlanTier,
    RoleGrant,
    SubmoduleNode,
    TenantActivation,
    permission_key,
    split_permission_key,
)

# Config
from module_access.config import AccessConfig, get_access_config

# Exceptions
from module_access.exceptions import (
    AccessError,
    ConfigurationError,
    ContextError,
    ContextTimeoutError,
    DependencyCycleError,
    DuplicateCodeError,
    MalformedRegistryError,
    RegistryError,
    TenantNotFoundError,
    UnknownDependencyError,
)

# Registry
from module_access.registry import (
    Registry,
    RegistryHolder,
    load_registry,
    load_registry_file,
)
from module_access.permissions import PermissionIndex

# Engine
from module_access.resolver import EligibilityResolver
from module_access.engine import Authorizer
from module_access.menu import (
    ActionView,
    ComponentView,
    MenuProjector,
    ModuleView,
    SubmoduleView,
)

# Providers
from module_access.providers import (
    RoleGrantProvider,
    StaticRoleGrantProvider,
    StaticTenantProvider,
    TenantContextProvider,
    effective_scope,
    union_grants,
)

# Service
from module_access.service import AccessService

__version__ = "0.1.0"

__all__ = [
    # Models
    "AccessContext",
    "AccessScope",
    "ActionDescriptor",
    "ComponentNode",
    "ComponentType",
    "Decision",
    "DecisionReason",
    "Effect",
    "EligibilityReport",
    "IneligibilityCause",
    "LicenseType",
    "ModuleNode",
    "PlanTier",
    "RoleGrant",
    "SubmoduleNode",
    "TenantActivation",
    "permission_key",
    "split_permission_key",
    # Config
    "AccessConfig",
    "get_access_config",
    # Exceptions
    "AccessError",
    "ConfigurationError",
    "ContextError",
    "ContextTimeoutError",
    "DependencyCycleError",
    "DuplicateCodeError",
    "MalformedRegistryError",
    "RegistryError",
    "TenantNotFoundError",
    "UnknownDependencyError",
    # Registry
    "PermissionIndex",
    "Registry",
    "RegistryHolder",
    "load_registry",
    "load_registry_file",
    # Engine
    "Authorizer",
    "EligibilityResolver",
    "ActionView",
    "ComponentView",
    "MenuProjector",
    "ModuleView",
    "SubmoduleView",
    # Providers
    "RoleGrantProvider",
    "StaticRoleGrantProvider",
    "StaticTenantProvider",
    "TenantContextProvider",
    "effective_scope",
    "union_grants",
    # Service
    "AccessService",
]
