"""Target page model: sections of columns holding ordered controls."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from modernizer.content.html_cleanup import has_text_content

SectionTemplate = Literal["OneColumn", "TwoColumn", "ThreeColumn"]

TEXT_CONTROL = "Text"
MAX_COLUMNS = 3

_TEMPLATES: dict[int, SectionTemplate] = {1: "OneColumn", 2: "TwoColumn", 3: "ThreeColumn"}
_FACTORS: dict[int, list[int]] = {1: [12], 2: [6, 6], 3: [4, 4, 4]}


class CanvasControl(BaseModel):
    """Control placed on the target page, remembering where it came from."""

    model_config = ConfigDict(extra="forbid")

    instance_id: str
    target_type: str
    source_type: str
    source_id: str = ""
    source_group: str | None = None
    source_title: str = ""
    order: int = 0
    text: str | None = None
    properties: dict[str, str] = Field(default_factory=dict)

    @property
    def is_text(self) -> bool:
        return self.target_type == TEXT_CONTROL


class CanvasColumn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index: int
    factor: int
    controls: list[CanvasControl] = Field(default_factory=list)


class CanvasSection(BaseModel):
    """One row of the source layout."""

    model_config = ConfigDict(extra="forbid")

    row: int
    template: SectionTemplate
    columns: list[CanvasColumn] = Field(default_factory=list)

    def column(self, index: int) -> CanvasColumn:
        """Column at ``index``, clamped to the last column."""

        return self.columns[min(max(index, 0), len(self.columns) - 1)]

    @property
    def is_empty(self) -> bool:
        return all(not column.controls for column in self.columns)


class PageHeader(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["none", "default", "custom"] = "default"
    image_url: str | None = None
    alignment: Literal["left", "center"] = "left"


class TargetPage(BaseModel):
    """Modern page assembled by the transformation and handed to the repository."""

    model_config = ConfigDict(extra="forbid")

    name: str
    folder: str = ""
    title: str = ""
    layout_name: str = ""
    sections: list[CanvasSection] = Field(default_factory=list)
    header: PageHeader = Field(default_factory=PageHeader)
    metadata: dict[str, Any] = Field(default_factory=dict)
    content_type_id: str | None = None
    comments_disabled: bool = False

    def section_for_row(self, row: int) -> CanvasSection | None:
        for section in self.sections:
            if section.row == row:
                return section
        return None

    def controls(self) -> list[CanvasControl]:
        return [
            control
            for section in self.sections
            for column in section.columns
            for control in column.controls
        ]


def build_section(row: int, column_count: int) -> CanvasSection:
    """Empty section with ``column_count`` columns (capped at three)."""

    count = min(max(column_count, 1), MAX_COLUMNS)
    return CanvasSection(
        row=row,
        template=_TEMPLATES[count],
        columns=[
            CanvasColumn(index=index, factor=factor)
            for index, factor in enumerate(_FACTORS[count])
        ],
    )


def build_sections(cells: list[tuple[int, int]]) -> list[CanvasSection]:
    """One section per distinct row; columns = highest column used + 1."""

    highest: dict[int, int] = {}
    for row, column in cells:
        highest[row] = max(highest.get(row, 0), column)
    return [build_section(row, highest[row] + 1) for row in sorted(highest)]


def remove_empty_text_controls(page: TargetPage) -> int:
    """Drop text controls that render nothing. Returns the number removed."""

    removed = 0
    for section in page.sections:
        for column in section.columns:
            kept = [
                control
                for control in column.controls
                if not control.is_text or has_text_content(control.text or "")
            ]
            removed += len(column.controls) - len(kept)
            column.controls = kept
    return removed


def remove_empty_sections_and_columns(page: TargetPage) -> None:
    """Drop empty sections and collapse empty columns.

    Surviving columns are re-indexed from zero and share the grid evenly.
    """

    sections: list[CanvasSection] = []
    for section in page.sections:
        if section.is_empty:
            continue
        filled = [column for column in section.columns if column.controls]
        if len(filled) != len(section.columns):
            count = len(filled)
            section = section.model_copy(
                update={
                    "template": _TEMPLATES[count],
                    "columns": [
                        column.model_copy(update={"index": index, "factor": factor})
                        for index, (column, factor) in enumerate(zip(filled, _FACTORS[count]))
                    ],
                }
            )
        sections.append(section)
    page.sections = sections
