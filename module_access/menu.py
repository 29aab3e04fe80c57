"""
Effective-menu projector.

Projects the registry tree onto what one user may see: a component is kept
when at least one of its actions is allowed, and lists only the allowed
actions; submodules and modules left empty are dropped.

Ordering is priority ascending at module, submodule and component level.
Sorting is stable, so equal priorities keep declaration order; actions keep
declaration order. For a fixed registry and context the projection is
always identical, which lets clients cache menus.
"""

from dataclasses import dataclass
from typing import Any

from module_access.engine import Authorizer
from module_access.models import AccessContext, ComponentType, permission_key


@dataclass(frozen=True)
class ActionView:
    code: str
    name: str
    key: str

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "name": self.name, "key": self.key}


@dataclass(frozen=True)
class ComponentView:
    code: str
    name: str
    type: ComponentType
    route: str | None
    priority: int
    actions: tuple[ActionView, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "type": self.type.value,
            "route": self.route,
            "priority": self.priority,
            "actions": [a.to_dict() for a in self.actions],
        }


@dataclass(frozen=True)
class SubmoduleView:
    code: str
    name: str
    icon: str | None
    route: str | None
    priority: int
    components: tuple[ComponentView, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "icon": self.icon,
            "route": self.route,
            "priority": self.priority,
            "components": [c.to_dict() for c in self.components],
        }


@dataclass(frozen=True)
class ModuleView:
    code: str
    name: str
    icon: str | None
    route_prefix: str | None
    priority: int
    submodules: tuple[SubmoduleView, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "icon": self.icon,
            "route_prefix": self.route_prefix,
            "priority": self.priority,
            "submodules": [s.to_dict() for s in self.submodules],
        }


def _by_priority(nodes):
    return sorted(nodes, key=lambda node: node.priority)


class MenuProjector:
    """Builds the pruned navigation tree for a context."""

    def __init__(self, authorizer: Authorizer):
        self._authorizer = authorizer

    def project(self, ctx: AccessContext) -> tuple[ModuleView, ...]:
        """
        Get the navigation tree visible to a context.

        Args:
            ctx: Tenant plan, activations and granted keys

        Returns:
            Modules ordered by priority, each holding only visible children
        """
        authorizer = self._authorizer
        eligible = authorizer.eligible_modules(ctx)

        modules: list[ModuleView] = []
        for module in _by_priority(authorizer.registry.modules):
            if module.code not in eligible:
                continue

            submodules: list[SubmoduleView] = []
            for sub in _by_priority(module.submodules):
                if not sub.is_active:
                    continue

                components: list[ComponentView] = []
                for comp in _by_priority(sub.components):
                    if not comp.is_active:
                        continue

                    actions = []
                    for action in comp.actions:
                        if not action.is_active:
                            continue
                        key = permission_key(module.code, sub.code, comp.code, action.code)
                        if authorizer.evaluate(ctx, key, eligible, log=False).allowed:
                            actions.append(ActionView(action.code, action.name, key))

                    if actions:
                        components.append(ComponentView(
                            code=comp.code,
                            name=comp.name,
                            type=comp.type,
                            route=comp.route,
                            priority=comp.priority,
                            actions=tuple(actions),
                        ))

                if components:
                    submodules.append(SubmoduleView(
                        code=sub.code,
                        name=sub.name,
                        icon=sub.icon,
                        route=sub.route,
                        priority=sub.priority,
                        components=tuple(components),
                    ))

            if submodules:
                modules.append(ModuleView(
                    code=module.code,
                    name=module.name,
                    icon=module.icon,
                    route_prefix=module.route_prefix,
                    priority=module.priority,
                    submodules=tuple(submodules),
                ))

        return tuple(modules)

    def project_dicts(self, ctx: AccessContext) -> list[dict[str, Any]]:
        """Projection as plain dicts, ready for JSON."""
        return [m.to_dict() for m in self.project(ctx)]
