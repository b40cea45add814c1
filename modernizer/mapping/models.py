"""Data models for the declarative component mapping configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from modernizer.components.types import same_type


class PropertyDefinition(BaseModel):
    """A property to carry forward from a source component."""

    model_config = ConfigDict(extra="forbid")

    name: str
    type: str = "string"


class BaseComponentMapping(BaseModel):
    """Properties kept for every component regardless of type."""

    model_config = ConfigDict(extra="forbid")

    properties: list[PropertyDefinition] = Field(default_factory=list)


class ComponentMapping(BaseModel):
    """Per-type keep-list and target component name."""

    model_config = ConfigDict(extra="forbid")

    type: str
    target: str | None = None
    properties: list[PropertyDefinition] = Field(default_factory=list)


class ComponentMappingConfig(BaseModel):
    """Component mapping file loaded from YAML."""

    model_config = ConfigDict(extra="forbid")

    base_component: BaseComponentMapping = Field(default_factory=BaseComponentMapping)
    components: list[ComponentMapping] = Field(default_factory=list)

    def find(self, component_type: str) -> ComponentMapping | None:
        for mapping in self.components:
            if same_type(mapping.type, component_type):
                return mapping
        return None

    def properties_to_keep(self, component_type: str) -> list[str]:
        """Base property names followed by the type specific ones."""

        names = [prop.name for prop in self.base_component.properties]
        mapping = self.find(component_type)
        if mapping is not None:
            names.extend(prop.name for prop in mapping.properties)
        return [name for name in names if name]

    def target_for(self, component_type: str) -> str | None:
        mapping = self.find(component_type)
        if mapping is None:
            return None
        return mapping.target
