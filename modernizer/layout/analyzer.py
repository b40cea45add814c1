"""Derive layout mappings from source pages."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from modernizer.components import types
from modernizer.content.html_cleanup import parse_fragment
from modernizer.layout.models import HeaderDefinition, LayoutMappingModel, PlaceholderDefinition

if TYPE_CHECKING:
    from modernizer.cache.manager import CacheManager
    from modernizer.remote.client import PageSnapshot

WIKI_LAYOUT_NAME = "WikiPage"
WIKI_FIELD = "WikiField"
PAGE_LAYOUT_FIELD = "PublishingPageLayout"

_HTML_FIELD_TYPES = {"html", "note"}
_IMAGE_FIELD_TYPES = {"image"}


@dataclass(frozen=True)
class WikiCell:
    """One cell of a wiki page layout table."""

    row: int
    column: int
    html: str


class LayoutAnalyzer:
    """Synthesize a layout mapping for pages without a declared one."""

    def analyze(self, page: PageSnapshot) -> LayoutMappingModel:
        if page.kind == "WikiPage":
            return self._analyze_wiki()
        return self._analyze_publishing(page)

    def _analyze_wiki(self) -> LayoutMappingModel:
        return LayoutMappingModel(
            name=WIKI_LAYOUT_NAME,
            header=HeaderDefinition(type="default"),
            placeholders=[
                PlaceholderDefinition(
                    name=WIKI_FIELD,
                    kind="wiki",
                    component_type=types.WIKI_TEXT,
                )
            ],
        )

    def _analyze_publishing(self, page: PageSnapshot) -> LayoutMappingModel:
        header = HeaderDefinition(type="default")
        placeholders: list[PlaceholderDefinition] = []
        row = 0

        for field in page.layout_fields:
            field_type = field.type.lower()
            if field_type in _IMAGE_FIELD_TYPES and header.image_field is None:
                header = HeaderDefinition(type="custom", image_field=field.name)
                continue
            if field_type in _HTML_FIELD_TYPES:
                component_type = types.WIKI_TEXT
            elif field_type in _IMAGE_FIELD_TYPES:
                component_type = types.WIKI_IMAGE
            else:
                continue
            placeholders.append(
                PlaceholderDefinition(
                    name=field.name,
                    kind="field",
                    row=row,
                    component_type=component_type,
                )
            )
            row += 1

        for zone in sorted(page.zones, key=lambda item: item.zone_index):
            placeholders.append(PlaceholderDefinition(name=zone.zone_id, kind="zone", row=row))
            row += 1

        return LayoutMappingModel(
            name=page_layout_name(page),
            header=header,
            placeholders=placeholders,
        )


def page_layout_name(page: PageSnapshot) -> str:
    """Layout identifier: page layout file name without extension."""

    if page.kind == "WikiPage":
        return WIKI_LAYOUT_NAME

    raw = page.fields.get(PAGE_LAYOUT_FIELD)
    if not raw:
        return "PublishingPage"
    # Url fields are stored as "<url>, <description>".
    url = str(raw).split(",", maxsplit=1)[0].strip()
    return PurePosixPath(url).stem or "PublishingPage"


def resolve_layout_mapping(
    page: PageSnapshot,
    mappings: list[LayoutMappingModel],
    cache: CacheManager,
    analyzer: LayoutAnalyzer | None = None,
) -> LayoutMappingModel:
    """Declared mapping for the page's layout, else a cached synthesized one."""

    name = page_layout_name(page)
    for mapping in mappings:
        if mapping.name.lower() == name.lower():
            return mapping

    layout_analyzer = analyzer or LayoutAnalyzer()
    return cache.get_layout_mapping(name, lambda: layout_analyzer.analyze(page))


def merge_layout_mappings(
    base: list[LayoutMappingModel], override: list[LayoutMappingModel]
) -> list[LayoutMappingModel]:
    """Replace base entries by name with override entries; append new ones."""

    overrides = {mapping.name.lower(): mapping for mapping in override}
    merged: list[LayoutMappingModel] = []
    seen: set[str] = set()
    for mapping in base:
        key = mapping.name.lower()
        merged.append(overrides.get(key, mapping))
        seen.add(key)
    for mapping in override:
        key = mapping.name.lower()
        if key not in seen:
            merged.append(mapping)
            seen.add(key)
    return merged


def split_wiki_cells(html: str) -> list[WikiCell]:
    """Split a wiki field into the cells of its layout table.

    Without a layout table the whole field is a single cell at (0, 0).
    """

    soup = parse_fragment(html)
    table = soup.find("table", id="layoutsTable")
    if table is None:
        return [WikiCell(row=0, column=0, html=html)]

    # Tables nested inside a cell are content, not layout.
    rows = [row for row in table.find_all("tr") if row.find_parent("table") is table]

    cells: list[WikiCell] = []
    for row_index, table_row in enumerate(rows):
        for column_index, cell in enumerate(table_row.find_all("td", recursive=False)):
            zone = cell.find("div", class_="ms-rte-layoutszone-inner")
            content = zone.decode_contents() if zone is not None else cell.decode_contents()
            cells.append(WikiCell(row=row_index, column=column_index, html=content))
    return cells
