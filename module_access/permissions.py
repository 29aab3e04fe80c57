"""
Permission index over the module tree.

Permission format: {module}.{submodule}.{component}.{action}
Examples:
- hrm.employees.employee-directory.view
- hrm.employees.*           (every action under the employees submodule)
- hrm.*.*.view              (every view action in HRM)
- *                         (everything)

The index is built once when the registry loads and is read-only afterwards.
Wildcards are only understood by matches() and expand(); exists() and the
authorization engine work on concrete keys.
"""

import logging
from collections.abc import Iterable
from types import MappingProxyType

from module_access.models import (
    KEY_SEGMENTS,
    KEY_SEPARATOR,
    ModuleNode,
    permission_key,
)

logger = logging.getLogger(__name__)

WILDCARD = "*"


class PermissionIndex:
    """
    Reverse index from permission keys to the module that owns them.

    Only active submodules, components and actions are indexed; a key for
    an inactive node does not exist.
    """

    def __init__(self, modules: Iterable[ModuleNode]):
        by_module: dict[str, frozenset[str]] = {}
        for module in modules:
            by_module[module.code] = frozenset(_iter_module_keys(module))

        self._by_module = MappingProxyType(by_module)
        self._all_keys = frozenset().union(*by_module.values()) if by_module else frozenset()

    def exists(self, key: str) -> bool:
        """Check whether a permission key exists. Unknown keys return False."""
        return key in self._all_keys

    def keys_under(self, module_code: str) -> frozenset[str]:
        """All permission keys under a module (empty for unknown modules)."""
        return self._by_module.get(module_code, frozenset())

    def all_keys(self) -> frozenset[str]:
        return self._all_keys

    def __contains__(self, key: object) -> bool:
        return key in self._all_keys

    def __len__(self) -> int:
        return len(self._all_keys)

    # =========================================================================
    # WILDCARDS
    # =========================================================================

    @staticmethod
    def matches(pattern: str, key: str) -> bool:
        """
        Check if a grant pattern matches a concrete permission key.

        Supports:
        - "*" matches everything
        - a "*" segment matches any single code
        - a trailing "*" covers all remaining segments ("hrm.*")

        Args:
            pattern: Grant pattern (may contain wildcards)
            key: The concrete permission key

        Returns:
            True if pattern matches key
        """
        if pattern == key:
            return True

        pattern_parts = pattern.split(KEY_SEPARATOR)
        key_parts = key.split(KEY_SEPARATOR)

        if len(key_parts) != KEY_SEGMENTS or len(pattern_parts) > KEY_SEGMENTS:
            return False

        if len(pattern_parts) < KEY_SEGMENTS:
            if pattern_parts[-1] != WILDCARD:
                return False
            pattern_parts = pattern_parts + [WILDCARD] * (KEY_SEGMENTS - len(pattern_parts))

        return all(p == WILDCARD or p == k for p, k in zip(pattern_parts, key_parts))

    def expand(self, patterns: Iterable[str]) -> frozenset[str]:
        """
        Turn grant patterns into the concrete keys they cover.

        Exact keys pass through only if they exist; patterns matching
        nothing are dropped (stale grants fail closed).
        """
        expanded: set[str] = set()
        for pattern in patterns:
            if WILDCARD not in pattern:
                if pattern in self._all_keys:
                    expanded.add(pattern)
                else:
                    logger.debug(f"[ACCESS:INDEX] Dropping grant for unknown key '{pattern}'")
                continue

            first = pattern.split(KEY_SEPARATOR, 1)[0]
            candidates = self._all_keys if first == WILDCARD else self.keys_under(first)
            matched = {key for key in candidates if self.matches(pattern, key)}
            if not matched:
                logger.debug(f"[ACCESS:INDEX] Grant pattern '{pattern}' matches no permission")
            expanded.update(matched)

        return frozenset(expanded)


def _iter_module_keys(module: ModuleNode):
    for submodule in module.submodules:
        if not submodule.is_active:
            continue
        for component in submodule.components:
            if not component.is_active:
                continue
            for action in component.actions:
                if action.is_active:
                    yield permission_key(module.code, submodule.code, component.code, action.code)
