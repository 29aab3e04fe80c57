"""
Registry loader.

Turns the raw module tree (dicts from JSON/YAML/embedded config) into an
immutable Registry, enforcing:
- unique codes at every level (modules across the tree, children within parent)
- dependency references that resolve to registered modules
- an acyclic dependency graph (topological order computed once, here)

Any violation raises a RegistryError. These are fatal configuration errors:
load at startup and let the process fail.

Usage:
    from module_access.registry import load_registry, load_registry_file

    registry = load_registry({"modules": [...]})
    registry = load_registry_file("config/modules")   # directory of module files
"""

import hashlib
import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from module_access.exceptions import (
    DependencyCycleError,
    DuplicateCodeError,
    MalformedRegistryError,
    UnknownDependencyError,
)
from module_access.models import (
    ActionDescriptor,
    ComponentNode,
    ModuleNode,
    SubmoduleNode,
)
from module_access.registry.registry import Registry
from module_access.registry.schema import ModuleSchema, RegistrySchema

logger = logging.getLogger(__name__)

REGISTRY_FILE_SUFFIXES = (".json", ".yaml", ".yml")


def load_registry(raw: Any, source: str | None = None) -> Registry:
    """
    Load and validate a module tree.

    Args:
        raw: A mapping with a "modules" list, a single module mapping,
            or a list of module mappings
        source: Where the data came from (used in error messages)

    Returns:
        Immutable Registry

    Raises:
        MalformedRegistryError: Shape or type errors in the raw data
        DuplicateCodeError: A code repeats within its scope
        UnknownDependencyError: A dependency names an unregistered module
        DependencyCycleError: The dependency graph has a cycle
    """
    try:
        schema = RegistrySchema.model_validate({"modules": _module_list(raw)})
    except ValidationError as e:
        logger.error(f"[ACCESS:REGISTRY] Malformed registry{_from(source)}: {e.error_count()} error(s)")
        raise MalformedRegistryError(
            f"Malformed registry{_from(source)}: {e}",
            errors=e.errors(include_url=False, include_context=False),
            source=source,
        ) from e

    try:
        modules = tuple(_build_module(m) for m in schema.modules)
        _check_unique_codes(modules)
        _check_dependencies_exist(modules)
        activation_order = _topological_order(modules)
    except (DuplicateCodeError, UnknownDependencyError, DependencyCycleError) as e:
        logger.error(f"[ACCESS:REGISTRY] Invalid registry{_from(source)}: {e.message}")
        raise

    registry = Registry(
        modules=modules,
        activation_order=activation_order,
        fingerprint=_fingerprint(schema),
    )
    logger.info(
        f"[ACCESS:REGISTRY] Loaded {len(registry)} modules with "
        f"{len(registry.permissions)} permissions{_from(source)}"
    )
    return registry


def load_registry_file(path: str | Path) -> Registry:
    """
    Load a registry from a .json/.yaml/.yml file or a directory of them.

    A directory is read in file-name order and the modules of every file
    are concatenated; each file may hold one module, a list of modules,
    or a {"modules": [...]} mapping.
    """
    path = Path(path)
    if path.is_dir():
        files = sorted(p for p in path.iterdir() if p.suffix.lower() in REGISTRY_FILE_SUFFIXES)
        if not files:
            raise MalformedRegistryError(f"No registry files found in {path}", source=str(path))
        modules: list[Any] = []
        for file in files:
            modules.extend(_module_list(_read_file(file)))
        return load_registry(modules, source=str(path))

    return load_registry(_read_file(path), source=str(path))


# =============================================================================
# RAW INPUT
# =============================================================================


def _from(source: str | None) -> str:
    return f" from {source}" if source else ""


def _read_file(path: Path) -> Any:
    suffix = path.suffix.lower()
    if suffix not in REGISTRY_FILE_SUFFIXES:
        raise MalformedRegistryError(
            f"Unsupported registry file type '{suffix}' (expected one of {', '.join(REGISTRY_FILE_SUFFIXES)})",
            source=str(path),
        )
    try:
        with open(path, encoding="utf-8") as f:
            if suffix == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except OSError as e:
        raise MalformedRegistryError(f"Cannot read registry file {path}: {e}", source=str(path)) from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise MalformedRegistryError(f"Cannot parse registry file {path}: {e}", source=str(path)) from e


def _module_list(raw: Any) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        if "modules" in raw:
            modules = raw["modules"]
            if modules is None:
                return []
            return list(modules) if isinstance(modules, (list, tuple)) else [modules]
        return [raw]
    if isinstance(raw, (list, tuple)):
        return list(raw)
    raise MalformedRegistryError(
        f"Registry must be a mapping or a list of modules, got {type(raw).__name__}"
    )


# =============================================================================
# TREE CONSTRUCTION
# =============================================================================


def _build_module(schema: ModuleSchema) -> ModuleNode:
    return ModuleNode(
        code=schema.code,
        name=schema.name,
        priority=schema.priority,
        is_core=schema.is_core,
        min_plan=schema.min_plan,
        license_type=schema.license_type,
        dependencies=frozenset(schema.dependencies),
        submodules=tuple(
            SubmoduleNode(
                code=sub.code,
                name=sub.name,
                priority=sub.priority,
                description=sub.description,
                icon=sub.icon,
                route=sub.route,
                is_active=sub.is_active,
                components=tuple(
                    ComponentNode(
                        code=comp.code,
                        name=comp.name,
                        type=comp.type,
                        route=comp.route,
                        priority=comp.priority,
                        description=comp.description,
                        is_active=comp.is_active,
                        actions=tuple(
                            ActionDescriptor(code=a.code, name=a.name, is_active=a.is_active)
                            for a in comp.actions
                        ),
                    )
                    for comp in sub.components
                ),
            )
            for sub in schema.submodules
        ),
        description=schema.description,
        icon=schema.icon,
        route_prefix=schema.route_prefix,
        category=schema.category,
        version=schema.version,
        is_active=schema.is_active,
    )


# =============================================================================
# INVARIANTS
# =============================================================================


def _first_duplicate(codes: Iterable[str]) -> str | None:
    seen: set[str] = set()
    for code in codes:
        if code in seen:
            return code
        seen.add(code)
    return None


def _check_unique_codes(modules: tuple[ModuleNode, ...]) -> None:
    dup = _first_duplicate(m.code for m in modules)
    if dup:
        raise DuplicateCodeError(dup, "registry modules")

    for module in modules:
        dup = _first_duplicate(s.code for s in module.submodules)
        if dup:
            raise DuplicateCodeError(dup, f"submodules of '{module.code}'")

        for sub in module.submodules:
            dup = _first_duplicate(c.code for c in sub.components)
            if dup:
                raise DuplicateCodeError(dup, f"components of '{module.code}.{sub.code}'")

            for comp in sub.components:
                dup = _first_duplicate(a.code for a in comp.actions)
                if dup:
                    raise DuplicateCodeError(
                        dup, f"actions of '{module.code}.{sub.code}.{comp.code}'"
                    )


def _check_dependencies_exist(modules: tuple[ModuleNode, ...]) -> None:
    known = {m.code for m in modules}
    for module in modules:
        for dep in sorted(module.dependencies):
            if dep not in known:
                raise UnknownDependencyError(module.code, dep)


def _topological_order(modules: tuple[ModuleNode, ...]) -> tuple[str, ...]:
    """
    Order module codes so every dependency precedes its dependents.

    Depth-first in declaration order (dependencies visited sorted by code),
    so the result is deterministic for a given tree.
    """
    by_code = {m.code: m for m in modules}
    done: set[str] = set()
    order: list[str] = []

    for root in by_code:
        if root in done:
            continue

        path: list[str] = [root]
        on_path: set[str] = {root}
        stack = [(root, iter(sorted(by_code[root].dependencies)))]

        while stack:
            code, deps = stack[-1]
            dep = next(deps, None)

            if dep is None:
                stack.pop()
                path.pop()
                on_path.discard(code)
                done.add(code)
                order.append(code)
                continue

            if dep in done:
                continue
            if dep in on_path:
                cycle = path[path.index(dep):] + [dep]
                raise DependencyCycleError(cycle)

            path.append(dep)
            on_path.add(dep)
            stack.append((dep, iter(sorted(by_code[dep].dependencies))))

    return tuple(order)


def _fingerprint(schema: RegistrySchema) -> str:
    canonical = json.dumps(schema.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
