"""
Data model for module access control.

Hierarchy: Module -> Submodule -> Component -> Action

Every action, together with its ancestry, yields a permission key:
    {module}.{submodule}.{component}.{action}
    e.g., "hrm.employees.employee-directory.view"

Nodes are frozen dataclasses so a loaded registry can be shared between
threads and requests without locking.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from module_access.permissions import PermissionIndex

KEY_SEPARATOR = "."
KEY_SEGMENTS = 4


class PlanTier(str, Enum):
    """Subscription plans, ordered from lowest to highest."""
    BASIC = "basic"
    PROFESSIONAL = "professional"
    BUSINESS = "business"
    ENTERPRISE = "enterprise"

    @property
    def rank(self) -> int:
        return _PLAN_RANKS[self]

    def __lt__(self, other):
        if not isinstance(other, PlanTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, PlanTier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, PlanTier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, PlanTier):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: "PlanTier | str | None") -> "PlanTier":
        """
        Parse a plan from config or provider data.

        None means "no plan requirement" and maps to the lowest tier.

        Raises:
            ValueError: If the value names no known plan
        """
        if value is None:
            return cls.BASIC
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown plan tier '{value}' (expected one of: {valid})") from None


_PLAN_RANKS = {tier: rank for rank, tier in enumerate(PlanTier)}


class LicenseType(str, Enum):
    """How a module is licensed."""
    STANDARD = "standard"
    ADDON = "addon"


class ComponentType(str, Enum):
    """Kinds of UI components within a submodule."""
    PAGE = "page"
    SECTION = "section"
    WIDGET = "widget"


class AccessScope(str, Enum):
    """Data visibility a role carries for its grants, narrowest first."""
    OWN = "own"
    TEAM = "team"
    DEPARTMENT = "department"
    ALL = "all"

    @property
    def rank(self) -> int:
        return _SCOPE_RANKS[self]


_SCOPE_RANKS = {scope: rank for rank, scope in enumerate(AccessScope)}


# =============================================================================
# REGISTRY TREE
# =============================================================================


@dataclass(frozen=True)
class ActionDescriptor:
    """Finest-grained operation on a component (view, create, approve...)."""
    code: str
    name: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class ComponentNode:
    """A page, section or widget within a submodule."""
    code: str
    name: str = ""
    type: ComponentType = ComponentType.PAGE
    route: str | None = None
    priority: int = 0
    description: str | None = None
    is_active: bool = True
    actions: tuple[ActionDescriptor, ...] = ()


@dataclass(frozen=True)
class SubmoduleNode:
    """Second-level grouping within a module."""
    code: str
    name: str = ""
    priority: int = 0
    description: str | None = None
    icon: str | None = None
    route: str | None = None
    is_active: bool = True
    components: tuple[ComponentNode, ...] = ()


@dataclass(frozen=True)
class ModuleNode:
    """
    Top-level functional area (HRM, CRM, Finance...).

    A module can only run for a tenant whose plan is at least `min_plan`,
    that activated it (unless `is_core`), and for whom every module in
    `dependencies` can run as well.
    """
    code: str
    name: str = ""
    priority: int = 0
    is_core: bool = False
    min_plan: PlanTier = PlanTier.BASIC
    license_type: LicenseType = LicenseType.STANDARD
    dependencies: frozenset[str] = frozenset()
    submodules: tuple[SubmoduleNode, ...] = ()
    description: str | None = None
    icon: str | None = None
    route_prefix: str | None = None
    category: str | None = None
    version: str | None = None
    is_active: bool = True


# =============================================================================
# PERMISSION KEYS
# =============================================================================


def permission_key(module: str, submodule: str, component: str, action: str) -> str:
    """Build the dot-joined permission key for an action."""
    return KEY_SEPARATOR.join((module, submodule, component, action))


def split_permission_key(key: str) -> tuple[str, str, str, str] | None:
    """
    Split a permission key into its four codes.

    Returns:
        (module, submodule, component, action), or None if the key is malformed
    """
    if not isinstance(key, str):
        return None
    parts = key.split(KEY_SEPARATOR)
    if len(parts) != KEY_SEGMENTS or not all(parts):
        return None
    return parts[0], parts[1], parts[2], parts[3]


def module_code_of(key: str) -> str:
    """Module code a permission key belongs to (first segment)."""
    if not isinstance(key, str):
        return ""
    return key.split(KEY_SEPARATOR, 1)[0]


# =============================================================================
# EXTERNAL STATE (owned by tenant / role stores)
# =============================================================================


@dataclass(frozen=True)
class TenantActivation:
    """A tenant's subscription plan and the modules it switched on."""
    tenant_id: str
    plan: PlanTier = PlanTier.BASIC
    active_module_codes: frozenset[str] = frozenset()


@dataclass(frozen=True)
class RoleGrant:
    """
    Permission keys granted to a role.

    Keys may be wildcard patterns ("hrm.*", "hrm.*.*.view"); they are
    expanded against the registry when an AccessContext is assembled.
    """
    role_id: str
    granted_permission_keys: frozenset[str] = frozenset()
    scope: AccessScope = AccessScope.ALL


@dataclass(frozen=True)
class AccessContext:
    """
    Everything the engine needs to decide a request.

    Assembled by the caller from tenant and role stores before any check;
    the engine itself never performs I/O.

    bypass_grants skips the grant check only (tenant super administrators).
    Plan gating and key existence still apply.
    """
    plan: PlanTier
    active_modules: frozenset[str] = frozenset()
    granted_keys: frozenset[str] = frozenset()
    tenant_id: str | None = None
    user_id: str | None = None
    bypass_grants: bool = False

    @classmethod
    def create(
        cls,
        plan: PlanTier | str | None,
        active_modules=(),
        granted_keys=(),
        index: "PermissionIndex | None" = None,
        **kwargs: Any,
    ) -> "AccessContext":
        """
        Build a context from loose inputs (strings, lists, sets).

        Args:
            plan: Tenant plan
            active_modules: Module codes the tenant switched on
            granted_keys: Granted keys; wildcard patterns are only
                honoured when an index is given to expand them
            index: Permission index (registry.permissions) used to expand
                wildcard grants and drop unknown keys
        """
        granted = index.expand(granted_keys) if index is not None else frozenset(granted_keys)
        return cls(
            plan=PlanTier.parse(plan),
            active_modules=frozenset(active_modules),
            granted_keys=granted,
            **kwargs,
        )


# =============================================================================
# DECISIONS
# =============================================================================


class Effect(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class DecisionReason(str, Enum):
    """Machine-readable reason attached to every decision."""
    GRANTED = "granted"
    GRANT_BYPASSED = "grant_bypassed"
    MODULE_INELIGIBLE = "module_ineligible"
    UNKNOWN_PERMISSION = "unknown_permission"
    NOT_GRANTED = "not_granted"


class IneligibilityCause(str, Enum):
    """Why a module cannot run for a tenant."""
    UNKNOWN_MODULE = "unknown_module"
    INACTIVE = "inactive"
    PLAN_TOO_LOW = "plan_too_low"
    NOT_ACTIVATED = "not_activated"
    DEPENDENCY_INELIGIBLE = "dependency_ineligible"


@dataclass(frozen=True)
class EligibilityReport:
    """Outcome of checking a single module's eligibility."""
    module_code: str
    eligible: bool
    cause: IneligibilityCause | None = None
    blocking_dependency: str | None = None
    required_plan: PlanTier | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "module_code": self.module_code,
            "eligible": self.eligible,
            "cause": self.cause.value if self.cause else None,
            "blocking_dependency": self.blocking_dependency,
            "required_plan": self.required_plan.value if self.required_plan else None,
        }


@dataclass(frozen=True)
class Decision:
    """
    Result of an authorization check.

    DENY is a normal return value; callers map the reason to their own
    response (e.g. 402 for module_ineligible, 403 otherwise).
    """
    effect: Effect
    reason: DecisionReason
    key: str
    message: str = ""
    detail: dict[str, Any] = field(default_factory=dict)

    @property
    def allowed(self) -> bool:
        return self.effect is Effect.ALLOW

    def __bool__(self) -> bool:
        return self.allowed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for audit logs and API responses."""
        return {
            "effect": self.effect.value,
            "reason": self.reason.value,
            "key": self.key,
            "message": self.message,
            "detail": dict(self.detail),
        }
