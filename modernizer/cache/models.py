"""Models stored in or injected into the shared cache."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CatalogComponent(BaseModel):
    """Modern component available on a target site."""

    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    component_type: int = 1
    manifest: str = ""


class ReplayComponentLocation(BaseModel):
    """Where one source component was placed during a captured run."""

    model_config = ConfigDict(extra="forbid")

    source_type: str
    source_id: str = ""
    source_group: str | None = None
    source_title: str = ""
    target_instance_id: str
    target_type: str
    row: int
    column: int
    order: int
    column_factor: int = 12

    @property
    def match_key(self) -> tuple[str, str, str, str]:
        return replay_match_key(
            self.source_type, self.source_id, self.source_group, self.source_title
        )


class ReplayCaptureData(BaseModel):
    """Placement decisions captured for one page, replayed on later runs."""

    model_config = ConfigDict(extra="forbid")

    page_id: str
    layout_name: str = ""
    page_url: str = ""
    locations: list[ReplayComponentLocation] = Field(default_factory=list)


def replay_match_key(
    source_type: str, source_id: str, source_group: str | None, source_title: str
) -> tuple[str, str, str, str]:
    """Key identifying a source component across runs (case-insensitive)."""

    return (
        source_type.casefold(),
        source_id.casefold(),
        (source_group or "").casefold(),
        source_title.casefold(),
    )
