"""
Exception classes for module access control.

Only structural problems raise: a malformed registry is fatal at load time,
and a context that cannot be assembled is the caller's I/O failure.
Authorization denials are never exceptions; see models.Decision.
"""

from typing import Any


class AccessError(Exception):
    """
    Base exception for module access errors.

    All custom exceptions in this package inherit from this class.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or "ACCESS_ERROR"
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "code": self.error_code,
            "details": self.details,
        }


class ConfigurationError(AccessError):
    """Missing or invalid configuration."""

    def __init__(self, message: str, setting: str | None = None):
        details = {"setting": setting} if setting else {}
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details)


# =============================================================================
# REGISTRY (fatal, load time)
# =============================================================================


class RegistryError(AccessError):
    """The module tree violates a structural invariant."""

    def __init__(
        self,
        message: str,
        error_code: str = "REGISTRY_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code=error_code, details=details)


class MalformedRegistryError(RegistryError):
    """Registry data could not be parsed (missing fields, bad enums, bad codes)."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None, source: str | None = None):
        details: dict[str, Any] = {}
        if errors:
            details["errors"] = errors
        if source:
            details["source"] = source
        super().__init__(message, error_code="MALFORMED_REGISTRY", details=details)


class DuplicateCodeError(RegistryError):
    """A code appears twice within the same scope."""

    def __init__(self, code: str, scope: str):
        self.code = code
        self.scope = scope
        super().__init__(
            f"Duplicate code '{code}' in {scope}",
            error_code="DUPLICATE_CODE",
            details={"code": code, "scope": scope},
        )


class UnknownDependencyError(RegistryError):
    """A module depends on a module code that is not registered."""

    def __init__(self, module_code: str, dependency: str):
        self.module_code = module_code
        self.dependency = dependency
        super().__init__(
            f"Module '{module_code}' depends on '{dependency}' which is not registered",
            error_code="UNKNOWN_DEPENDENCY",
            details={"module": module_code, "dependency": dependency},
        )


class DependencyCycleError(RegistryError):
    """The module dependency graph contains a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        super().__init__(
            f"Dependency cycle detected: {' -> '.join(self.cycle)}",
            error_code="DEPENDENCY_CYCLE",
            details={"cycle": self.cycle},
        )


# =============================================================================
# CONTEXT ASSEMBLY (caller I/O)
# =============================================================================


class ContextError(AccessError):
    """An AccessContext could not be assembled from the providers."""


class TenantNotFoundError(ContextError):
    """The tenant provider has no record for the tenant."""

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__(
            f"Tenant '{tenant_id}' not found",
            error_code="TENANT_NOT_FOUND",
            details={"tenant_id": tenant_id},
        )


class ContextTimeoutError(ContextError):
    """Fetching tenant or role data took longer than allowed."""

    def __init__(self, tenant_id: str | None, user_id: str, timeout: float):
        target = f"tenant '{tenant_id}' / user '{user_id}'" if tenant_id else f"user '{user_id}'"
        super().__init__(
            f"Timed out after {timeout:.1f}s fetching access context for {target}",
            error_code="CONTEXT_TIMEOUT",
            details={"tenant_id": tenant_id, "user_id": user_id, "timeout": timeout},
        )
