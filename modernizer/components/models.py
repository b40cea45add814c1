"""Data models for scanned and resolved page components."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modernizer.components import types


class ComponentRecord(BaseModel):
    """One component (or synthesized text/media block) found on a source page."""

    model_config = ConfigDict(extra="forbid")

    title: str = ""
    type: str
    id: str = ""
    server_control_id: str = ""
    row: int = 0
    column: int = 0
    order: int = 0
    zone_id: str = ""
    zone_index: int = 0
    is_closed: bool = False
    hidden: bool = False
    source_group: str | None = None
    properties: dict[str, str] = Field(default_factory=dict)

    @field_validator("type")
    @classmethod
    def _type_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("component type must not be empty")
        return value

    @property
    def is_pending(self) -> bool:
        """True while an embedded component still awaits its remote lookup."""

        return bool(self.server_control_id) and self.type == types.UNKNOWN

    @property
    def position(self) -> tuple[int, int, int]:
        return (self.row, self.column, self.order)


class ComponentDefinition(BaseModel):
    """Component as returned by the remote collaborator for an embedded id."""

    model_config = ConfigDict(extra="forbid")

    id: str
    title: str = ""
    zone_index: int = 0
    is_closed: bool = False
    hidden: bool = False
    export_allowed: bool = True
    export_xml: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)


class ScanResult(BaseModel):
    """Records produced for one content block, in source document order."""

    model_config = ConfigDict(extra="forbid")

    records: list[ComponentRecord] = Field(default_factory=list)

    @property
    def pending(self) -> list[ComponentRecord]:
        return [record for record in self.records if record.is_pending]

    @property
    def text_records(self) -> list[ComponentRecord]:
        return [record for record in self.records if record.type == types.WIKI_TEXT]
