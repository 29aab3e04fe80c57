"""
Immutable, indexed module registry.

A Registry is built once by the loader and never mutated afterwards.
To change the tree, load a new Registry and swap it in through a
RegistryHolder; readers holding the old instance keep a consistent view.
"""

from collections.abc import Iterator
from types import MappingProxyType

from module_access.models import ModuleNode, PlanTier
from module_access.permissions import PermissionIndex


class Registry:
    """
    Loaded module tree plus derived indices.

    Attributes:
        modules: Modules in declaration order
        module_by_code: Read-only mapping of module code to node
        activation_order: Module codes ordered so dependencies come first
        permissions: Permission index built from active nodes
        fingerprint: Content hash identifying this registry version
    """

    __slots__ = (
        "modules",
        "module_by_code",
        "activation_order",
        "permissions",
        "fingerprint",
        "_dependencies",
        "_dependents",
        "_required_plans",
    )

    def __init__(
        self,
        modules: tuple[ModuleNode, ...],
        activation_order: tuple[str, ...],
        fingerprint: str,
    ):
        self.modules = modules
        self.module_by_code = MappingProxyType({m.code: m for m in modules})
        self.activation_order = activation_order
        self.permissions = PermissionIndex(modules)
        self.fingerprint = fingerprint

        # Transitive closures, computed along the activation order so every
        # dependency is resolved before its dependents
        dependencies: dict[str, frozenset[str]] = {}
        required_plans: dict[str, PlanTier] = {}
        for code in activation_order:
            module = self.module_by_code[code]
            closure = set(module.dependencies)
            plan = module.min_plan
            for dep in module.dependencies:
                closure |= dependencies[dep]
                plan = max(plan, required_plans[dep])
            dependencies[code] = frozenset(closure)
            required_plans[code] = plan

        dependents: dict[str, set[str]] = {code: set() for code in activation_order}
        for code, closure in dependencies.items():
            for dep in closure:
                dependents[dep].add(code)

        self._dependencies = MappingProxyType(dependencies)
        self._dependents = MappingProxyType({k: frozenset(v) for k, v in dependents.items()})
        self._required_plans = MappingProxyType(required_plans)

    def get_module(self, code: str) -> ModuleNode | None:
        """Get a module by code."""
        return self.module_by_code.get(code)

    def has_module(self, code: str) -> bool:
        return code in self.module_by_code

    def permission_key_exists(self, key: str) -> bool:
        return self.permissions.exists(key)

    def all_permission_keys_under_module(self, code: str) -> frozenset[str]:
        return self.permissions.keys_under(code)

    def required_plan(self, code: str) -> PlanTier | None:
        """
        Lowest plan under which a module can run at all.

        This is the highest min_plan across the module and everything it
        transitively depends on. Returns None for unknown modules.
        """
        return self._required_plans.get(code)

    def modules_in_category(self, category: str) -> tuple[ModuleNode, ...]:
        """Modules tagged with a category, in declaration order."""
        return tuple(m for m in self.modules if m.category == category)

    def categories(self) -> tuple[str, ...]:
        """Distinct module categories, in first-seen order."""
        return tuple(dict.fromkeys(m.category for m in self.modules if m.category))

    def dependencies_of(self, code: str) -> frozenset[str]:
        """Modules a module transitively depends on."""
        return self._dependencies.get(code, frozenset())

    def dependents_of(self, code: str) -> frozenset[str]:
        """Modules that transitively depend on a module."""
        return self._dependents.get(code, frozenset())

    def __contains__(self, code: object) -> bool:
        return code in self.module_by_code

    def __iter__(self) -> Iterator[ModuleNode]:
        return iter(self.modules)

    def __len__(self) -> int:
        return len(self.modules)

    def __repr__(self) -> str:
        return (
            f"Registry(modules={len(self.modules)}, permissions={len(self.permissions)}, "
            f"fingerprint={self.fingerprint[:12]})"
        )
