"""
Module registry: loading, validation and the immutable indexed tree.

Usage:
    from module_access.registry import load_registry_file, RegistryHolder

    holder = RegistryHolder(load_registry_file("config/modules.yaml"))
    registry = holder.current
    registry.permission_key_exists("hrm.employees.employee-directory.view")
"""

from module_access.registry.registry import Registry
from module_access.registry.loader import load_registry, load_registry_file
from module_access.registry.holder import RegistryHolder

__all__ = [
    "Registry",
    "RegistryHolder",
    "load_registry",
    "load_registry_file",
]
