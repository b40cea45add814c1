"""Layout mapping models shared by the analyzer and the YAML mapping files."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PlaceholderKind = Literal["field", "zone", "wiki"]
HeaderType = Literal["none", "default", "custom"]


class PlaceholderDefinition(BaseModel):
    """Source placeholder and where its content lands on the target page.

    ``field`` placeholders read an HTML or image field, ``zone`` placeholders
    hold the components of a web part zone and ``wiki`` placeholders cover the
    cells of a wiki page's layout table.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    kind: PlaceholderKind = "field"
    row: int = Field(default=0, ge=0)
    column: int = Field(default=0, ge=0)
    component_type: str | None = None
    properties: dict[str, str] = Field(default_factory=dict)


class HeaderDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: HeaderType = "default"
    image_field: str | None = None
    alignment: Literal["left", "center"] = "left"


class FieldMapping(BaseModel):
    """Copy a source list field to a target field."""

    model_config = ConfigDict(extra="forbid")

    source: str
    target: str


class LayoutMappingModel(BaseModel):
    """How one page layout is re-placed on the target page."""

    model_config = ConfigDict(extra="forbid")

    name: str
    header: HeaderDefinition | None = None
    placeholders: list[PlaceholderDefinition] = Field(default_factory=list)
    metadata: list[FieldMapping] = Field(default_factory=list)


class LayoutMappingFile(BaseModel):
    """Top-level structure of a page layout mapping file."""

    model_config = ConfigDict(extra="forbid")

    version: int = 1
    layouts: list[LayoutMappingModel] = Field(default_factory=list)
