"""
Registry input schemas.

Pydantic models describing the raw module tree as it arrives from
configuration. They only check shape and types; cross-node invariants
(unique codes, dependency references, cycles) are enforced by the loader.

Key variants found in existing module configs are accepted:
- "submodules" or "sub_modules"
- "min_plan" or "minimum_plan" (null means no plan requirement)
- "route" or "route_name" on components
"""

from typing import Annotated, Any

from pydantic import AfterValidator, AliasChoices, BaseModel, ConfigDict, Field, field_validator

from module_access.models import ComponentType, LicenseType, PlanTier


def _check_code(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("code must not be empty")
    if "." in value or "*" in value:
        raise ValueError(f"code '{value}' must not contain '.' or '*'")
    return value


Code = Annotated[str, AfterValidator(_check_code)]


class _NodeSchema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ActionSchema(_NodeSchema):
    """A single action on a component."""
    code: Code
    name: str = ""
    is_active: bool = True


class ComponentSchema(_NodeSchema):
    """A page, section or widget."""
    code: Code
    name: str = ""
    type: ComponentType = ComponentType.PAGE
    route: str | None = Field(default=None, validation_alias=AliasChoices("route", "route_name"))
    priority: int = 0
    description: str | None = None
    is_active: bool = True
    actions: list[ActionSchema] = Field(default_factory=list)


class SubmoduleSchema(_NodeSchema):
    """Second-level grouping within a module."""
    code: Code
    name: str = ""
    priority: int = 0
    description: str | None = None
    icon: str | None = None
    route: str | None = None
    is_active: bool = True
    components: list[ComponentSchema] = Field(default_factory=list)


class ModuleSchema(_NodeSchema):
    """Top-level module with its licensing metadata."""
    code: Code
    name: str = ""
    priority: int = 0
    is_core: bool = False
    min_plan: PlanTier = Field(
        default=PlanTier.BASIC,
        validation_alias=AliasChoices("min_plan", "minimum_plan"),
    )
    license_type: LicenseType = LicenseType.STANDARD
    dependencies: list[Code] = Field(default_factory=list)
    submodules: list[SubmoduleSchema] = Field(
        default_factory=list,
        validation_alias=AliasChoices("submodules", "sub_modules"),
    )
    description: str | None = None
    icon: str | None = None
    route_prefix: str | None = None
    category: str | None = None
    version: str | None = None
    is_active: bool = True

    @field_validator("min_plan", mode="before")
    @classmethod
    def parse_min_plan(cls, value: Any) -> PlanTier:
        return PlanTier.parse(value)

    @field_validator("license_type", mode="before")
    @classmethod
    def normalize_license(cls, value: Any) -> Any:
        if value is None:
            return LicenseType.STANDARD
        if isinstance(value, str):
            return value.strip().lower()
        return value


class RegistrySchema(_NodeSchema):
    """The whole module tree."""
    modules: list[ModuleSchema] = Field(default_factory=list)
