from __future__ import annotations

from modernizer.components import types
from modernizer.components.models import ComponentDefinition, ComponentRecord
from modernizer.components.resolver import ComponentResolver
from modernizer.mapping.loader import load_component_mapping
from modernizer.observers.events import MemoryObserver
from modernizer.remote.client import normalize_control_id
from modernizer.remote.memory import InMemoryContentRepository, RepositoryFixture

PAGE = "/sites/a/SitePages/home.aspx"


def _repository(components: list[ComponentDefinition]) -> InMemoryContentRepository:
    return InMemoryContentRepository(RepositoryFixture(components={PAGE: components}))


def _pending(control_id: str, order: int) -> ComponentRecord:
    return ComponentRecord(type=types.UNKNOWN, server_control_id=control_id, order=order)


def test_resolve_fetches_all_pending_ids_in_one_call() -> None:
    repository = _repository(
        [
            ComponentDefinition(id="g_aa_1", title="A", properties={"Content": "a"}),
            ComponentDefinition(id="g_bb_2", title="B", properties={"Content": "b"}),
        ]
    )
    text = ComponentRecord(type=types.WIKI_TEXT, order=0, properties={"Text": "x"})
    resolver = ComponentResolver(repository, load_component_mapping())

    records = resolver.resolve(PAGE, [text, _pending("aa-1", 1), _pending("bb-2", 2)])

    assert repository.calls["fetch_components"] == 1
    assert [record.type for record in records] == [
        types.WIKI_TEXT,
        types.SCRIPT_EDITOR,
        types.SCRIPT_EDITOR,
    ]
    assert [record.title for record in records[1:]] == ["A", "B"]
    assert [record.order for record in records] == [0, 1, 2]


def test_resolve_drops_unknown_ids_with_warning() -> None:
    observer = MemoryObserver()
    resolver = ComponentResolver(_repository([]), load_component_mapping(), [observer])

    records = resolver.resolve(PAGE, [_pending("missing", 0)])

    assert records == []
    assert [event.heading for event in observer.with_severity("warning")] == [
        "component_not_found"
    ]


def test_resolve_without_pending_records_skips_remote_call() -> None:
    repository = _repository([])
    resolver = ComponentResolver(repository, load_component_mapping())

    resolver.resolve(PAGE, [ComponentRecord(type=types.WIKI_TEXT)])

    assert repository.calls["fetch_components"] == 0


def test_build_record_falls_back_when_export_is_unreadable() -> None:
    observer = MemoryObserver()
    resolver = ComponentResolver(_repository([]), load_component_mapping(), [observer])
    definition = ComponentDefinition(
        id="wp1",
        export_xml="<WebPart><broken></WebPart>",
        properties={"Content": "<script/>"},
    )

    record = resolver.build_record(definition, row=1, column=0, order=3, zone_id="Main")

    assert record.type == types.SCRIPT_EDITOR
    assert record.properties == {"Content": "<script/>"}
    assert (record.row, record.order, record.zone_id) == (1, 3, "Main")
    assert "export_xml_invalid" in observer.headings()


def test_build_record_ignores_export_when_not_allowed() -> None:
    resolver = ComponentResolver(_repository([]), load_component_mapping())
    definition = ComponentDefinition(
        id="wp1",
        export_allowed=False,
        export_xml="<WebPart><broken></WebPart>",
        properties={},
    )

    record = resolver.build_record(definition, row=0, column=0, order=0)

    assert record.type == types.NON_EXPORTABLE_UNIDENTIFIED


def test_normalize_control_id() -> None:
    assert normalize_control_id("g_1A2B_3C") == "1a2b-3c"
    assert normalize_control_id("1a2b-3c") == "1a2b-3c"
