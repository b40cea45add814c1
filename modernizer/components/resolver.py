"""Turn pending placeholders and zone components into typed component records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from modernizer.components import types
from modernizer.components.classifier import classify_component
from modernizer.components.extractor import extract_properties
from modernizer.components.models import ComponentDefinition, ComponentRecord
from modernizer.mapping.models import ComponentMappingConfig
from modernizer.observers.events import LogEvent, Observer, Severity, dispatch
from modernizer.remote.client import normalize_control_id

if TYPE_CHECKING:
    from modernizer.remote.client import ContentRepository

_FALLBACK_TYPES = {types.UNKNOWN, types.NON_EXPORTABLE_UNIDENTIFIED}


class ComponentResolver:
    """Classify and extract components loaded from the repository."""

    def __init__(
        self,
        client: ContentRepository,
        mapping: ComponentMappingConfig,
        observers: list[Observer] | None = None,
        stage: str | None = None,
    ) -> None:
        self._client = client
        self._mapping = mapping
        self._observers = observers or []
        self._stage = stage

    def resolve(self, page_ref: str, records: list[ComponentRecord]) -> list[ComponentRecord]:
        """Replace pending placeholders with resolved records.

        All pending ids of the page are fetched in one call. Ids the
        repository does not know are dropped with a warning event.
        """

        pending = [record for record in records if record.is_pending]
        if not pending:
            return list(records)

        definitions = self._client.fetch_components(
            page_ref, [record.server_control_id for record in pending]
        )
        by_id = {normalize_control_id(definition.id): definition for definition in definitions}

        resolved: list[ComponentRecord] = []
        for record in records:
            if not record.is_pending:
                resolved.append(record)
                continue

            definition = by_id.get(normalize_control_id(record.server_control_id))
            if definition is None:
                self._notify(
                    "warning",
                    "component_not_found",
                    f"No component found for embedded id {record.server_control_id}",
                    control_id=record.server_control_id,
                )
                continue

            resolved.append(
                self.build_record(
                    definition,
                    row=record.row,
                    column=record.column,
                    order=record.order,
                    source_group=record.source_group,
                    server_control_id=record.server_control_id,
                )
            )
        return resolved

    def build_record(
        self,
        definition: ComponentDefinition,
        *,
        row: int,
        column: int,
        order: int,
        source_group: str | None = None,
        server_control_id: str = "",
        zone_id: str = "",
    ) -> ComponentRecord:
        export_xml = definition.export_xml if definition.export_allowed else None
        try:
            component_type = classify_component(export_xml, definition.properties)
        except ValueError as exc:
            self._notify(
                "warning",
                "export_xml_invalid",
                f"Ignoring unreadable export XML of component {definition.id}",
                cause=str(exc),
                component_id=definition.id,
            )
            export_xml = None
            component_type = classify_component(None, definition.properties)

        if component_type in _FALLBACK_TYPES:
            self._notify(
                "info",
                "classification_fallback",
                f"Component {definition.id} classified as {component_type}",
                component_id=definition.id,
            )

        properties = extract_properties(
            component_type, definition.properties, export_xml, self._mapping
        )
        return ComponentRecord(
            title=definition.title,
            type=component_type,
            id=definition.id,
            server_control_id=server_control_id,
            row=row,
            column=column,
            order=order,
            zone_id=zone_id,
            zone_index=definition.zone_index,
            is_closed=definition.is_closed,
            hidden=definition.hidden,
            source_group=source_group,
            properties=properties,
        )

    def _notify(
        self,
        severity: Severity,
        heading: str,
        message: str,
        cause: str | None = None,
        **details: str,
    ) -> None:
        dispatch(
            self._observers,
            LogEvent(
                severity=severity,
                heading=heading,
                message=message,
                stage=self._stage,
                cause=cause,
                details=dict(details),
            ),
        )
