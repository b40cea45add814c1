"""Content stages: collect records from placeholders and place them on the canvas."""

from __future__ import annotations

import uuid
from collections import defaultdict, deque
from collections.abc import Callable

from modernizer.cache.models import (
    CatalogComponent,
    ReplayCaptureData,
    ReplayComponentLocation,
    replay_match_key,
)
from modernizer.components import types
from modernizer.components.models import ComponentRecord
from modernizer.components.resolver import ComponentResolver
from modernizer.content.html_cleanup import parse_fragment
from modernizer.content.media_splitter import WIKI_IMAGE_TITLE
from modernizer.content.scanner import scan_content_block
from modernizer.layout.analyzer import split_wiki_cells
from modernizer.layout.canvas import (
    MAX_COLUMNS,
    TEXT_CONTROL,
    CanvasColumn,
    CanvasControl,
    CanvasSection,
    PageHeader,
    TargetPage,
    build_section,
)
from modernizer.layout.models import HeaderDefinition, LayoutMappingModel, PlaceholderDefinition
from modernizer.mapping.models import ComponentMappingConfig
from modernizer.observers.events import LogEvent, Severity
from modernizer.remote.client import PageSnapshot

Notify = Callable[[LogEvent], None]


def collect_records(
    page: PageSnapshot,
    layout: LayoutMappingModel,
    resolver: ComponentResolver,
) -> list[ComponentRecord]:
    """Scan every placeholder of ``layout`` and resolve embedded components.

    Records sharing a (row, column) cell keep consecutive orders across
    placeholders.
    """

    records: list[ComponentRecord] = []
    next_order: dict[tuple[int, int], int] = defaultdict(int)
    static: dict[str, dict[str, str]] = {}

    for placeholder in layout.placeholders:
        if placeholder.properties:
            static.setdefault(placeholder.name, placeholder.properties)
        produced = _placeholder_records(page, placeholder, resolver)
        for record in produced:
            cell = (record.row, record.column)
            order = next_order[cell]
            next_order[cell] = order + 1
            records.append(record.model_copy(update={"order": order}))

    # Static placeholder properties also cover resolved embedded components.
    resolved = resolver.resolve(page.page_ref, records)
    return [
        record.model_copy(
            update={"properties": {**static[record.source_group], **record.properties}}
        )
        if record.source_group in static
        else record
        for record in resolved
    ]


def _placeholder_records(
    page: PageSnapshot,
    placeholder: PlaceholderDefinition,
    resolver: ComponentResolver,
) -> list[ComponentRecord]:
    if placeholder.kind == "zone":
        return _zone_records(page, placeholder, resolver)

    value = page.fields.get(placeholder.name)
    if not value:
        return []
    html = str(value)

    if placeholder.kind == "wiki":
        records: list[ComponentRecord] = []
        for cell in split_wiki_cells(html):
            scanned = scan_content_block(
                cell.html,
                placeholder.row + cell.row,
                min(placeholder.column + cell.column, MAX_COLUMNS - 1),
                source_group=placeholder.name,
            )
            records.extend(scanned.records)
        return records

    if placeholder.component_type == types.WIKI_IMAGE:
        image = image_record_from_field(
            html, placeholder.row, placeholder.column, placeholder.name
        )
        return [image] if image is not None else []

    return scan_content_block(
        html, placeholder.row, placeholder.column, source_group=placeholder.name
    ).records


def _zone_records(
    page: PageSnapshot,
    placeholder: PlaceholderDefinition,
    resolver: ComponentResolver,
) -> list[ComponentRecord]:
    zone = next(
        (item for item in page.zones if item.zone_id.lower() == placeholder.name.lower()),
        None,
    )
    if zone is None:
        return []

    components = sorted(zone.components, key=lambda item: item.zone_index)
    return [
        resolver.build_record(
            definition,
            row=placeholder.row,
            column=placeholder.column,
            order=index,
            source_group=placeholder.name,
            zone_id=zone.zone_id,
        )
        for index, definition in enumerate(components)
    ]


def image_record_from_field(
    html: str, row: int, column: int, source_group: str | None = None
) -> ComponentRecord | None:
    """Image record for a publishing image field value; None without a source."""

    image = parse_fragment(html).find("img")
    if image is None or not image.get("src"):
        return None
    return ComponentRecord(
        title=WIKI_IMAGE_TITLE,
        type=types.WIKI_IMAGE,
        row=row,
        column=column,
        source_group=source_group,
        properties={
            "ImageUrl": str(image.get("src", "")),
            "AlternativeText": str(image.get("alt", "")),
        },
    )


class ContentPlacer:
    """Place component records on the target canvas as controls.

    With replay data, previously captured placements and instance ids are
    reused; locations are consumed in capture order per source component.
    """

    def __init__(
        self,
        mapping: ComponentMappingConfig,
        catalog: list[CatalogComponent],
        notify: Notify,
        stage: str | None = None,
    ) -> None:
        self._mapping = mapping
        self._catalog = {component.name.casefold(): component for component in catalog}
        self._notify = notify
        self._stage = stage

    def place(
        self,
        target: TargetPage,
        records: list[ComponentRecord],
        *,
        replay: ReplayCaptureData | None = None,
        capture_page_id: str | None = None,
        page_url: str = "",
    ) -> ReplayCaptureData | None:
        """Add one control per mappable record; return capture data when requested."""

        queues: dict[tuple[str, str, str, str], deque[ReplayComponentLocation]] = defaultdict(
            deque
        )
        if replay is not None:
            for location in replay.locations:
                queues[location.match_key].append(location)

        captured: list[ReplayComponentLocation] = []
        unplaced: list[tuple[ComponentRecord, str]] = []
        for record in sorted(records, key=lambda item: item.position):
            target_type = self._target_type(record)
            if target_type is None:
                continue

            key = replay_match_key(record.type, record.id, record.source_group, record.title)
            location = queues[key].popleft() if queues.get(key) else None
            if location is None:
                if replay is not None:
                    self._event(
                        "info",
                        "replay_location_missing",
                        f"No captured location for {record.title or record.type}",
                    )
                unplaced.append((record, target_type))
                continue

            section = _ensure_section(target, location.row, location.column)
            column = section.column(location.column)
            control = self._control(
                record, location.target_type, location.target_instance_id, location.order
            )
            column.controls.append(control)
            captured.append(_location(record, section, column, control))

        # Controls without a captured location are ordered after every replayed one.
        for record, target_type in unplaced:
            section = _ensure_section(target, record.row, record.column)
            column = section.column(record.column)
            order = max((control.order for control in column.controls), default=-1) + 1
            control = self._control(record, target_type, str(uuid.uuid4()), order)
            column.controls.append(control)
            captured.append(_location(record, section, column, control))

        for section in target.sections:
            for column in section.columns:
                column.controls.sort(key=lambda item: item.order)

        if capture_page_id is None:
            return None
        return ReplayCaptureData(
            page_id=capture_page_id,
            layout_name=target.layout_name,
            page_url=page_url,
            locations=captured,
        )

    def _target_type(self, record: ComponentRecord) -> str | None:
        target_name = self._mapping.target_for(record.type)
        if target_name is None:
            self._event(
                "warning",
                "component_unmapped",
                f"No target component configured for {record.type}",
            )
            return None
        if target_name == TEXT_CONTROL:
            return TEXT_CONTROL

        component = self._catalog.get(target_name.casefold())
        if component is None:
            self._event(
                "warning",
                "component_not_in_catalog",
                f"Target component {target_name} is not available on the target site",
            )
            return None
        return component.name

    def _control(
        self, record: ComponentRecord, target_type: str, instance_id: str, order: int
    ) -> CanvasControl:
        text: str | None = None
        if target_type == TEXT_CONTROL:
            text = record.properties.get("Text", record.properties.get("Content", ""))
        return CanvasControl(
            instance_id=instance_id,
            target_type=target_type,
            source_type=record.type,
            source_id=record.id,
            source_group=record.source_group,
            source_title=record.title,
            order=order,
            text=text,
            properties=dict(record.properties),
        )

    def _event(self, severity: Severity, heading: str, message: str) -> None:
        self._notify(
            LogEvent(
                severity=severity,
                heading=heading,
                message=message,
                stage=self._stage,
            )
        )


def _ensure_section(target: TargetPage, row: int, column: int) -> CanvasSection:
    section = target.section_for_row(row)
    if section is not None:
        return section
    section = build_section(row, column + 1)
    target.sections.append(section)
    target.sections.sort(key=lambda item: item.row)
    return section


def build_header(definition: HeaderDefinition | None, page: PageSnapshot) -> PageHeader:
    """Header for the target page; a custom header needs an image in its field."""

    if definition is None or definition.type == "default":
        return PageHeader(type="default")
    if definition.type == "none":
        return PageHeader(type="none")

    image_html = page.fields.get(definition.image_field or "")
    image = parse_fragment(str(image_html or "")).find("img")
    if image is None or not image.get("src"):
        return PageHeader(type="default")
    return PageHeader(
        type="custom",
        image_url=str(image.get("src")),
        alignment=definition.alignment,
    )


def _location(
    record: ComponentRecord,
    section: CanvasSection,
    column: CanvasColumn,
    control: CanvasControl,
) -> ReplayComponentLocation:
    return ReplayComponentLocation(
        source_type=record.type,
        source_id=record.id,
        source_group=record.source_group,
        source_title=record.title,
        target_instance_id=control.instance_id,
        target_type=control.target_type,
        row=section.row,
        column=column.index,
        order=control.order,
        column_factor=column.factor,
    )
