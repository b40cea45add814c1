from __future__ import annotations

from modernizer.components import types
from modernizer.content.scanner import scan_content_block


def _box(control_id: str) -> str:
    return (
        '<div class="ms-rte-wpbox" contenteditable="false">'
        f'<div class="ms-rtestate-notify ms-rtestate-read" id="div_{control_id}" unselectable="on">'
        "</div>"
        f'<div id="vid_{control_id}" unselectable="on" style="display:none"></div>'
        "</div>"
    )


def test_scan_intro_component_outro_orders() -> None:
    html = f"<p>intro</p>{_box('XYZ')}<p>outro</p>"

    result = scan_content_block(html, row=0, column=0)

    assert [record.order for record in result.records] == [0, 1, 2]
    intro, component, outro = result.records
    assert intro.type == types.WIKI_TEXT
    assert intro.title == "WikiText"
    assert intro.properties == {"Text": "<p>intro</p>"}
    assert component.is_pending
    assert component.server_control_id == "XYZ"
    assert component.type == types.UNKNOWN
    assert outro.properties == {"Text": "<p>outro</p>"}


def test_scan_adjacent_components_produce_only_placeholders() -> None:
    html = "".join(_box(control_id) for control_id in ("a-1", "b-2", "c-3"))

    result = scan_content_block(html, row=1, column=2)

    assert result.text_records == []
    assert [record.server_control_id for record in result.pending] == ["a-1", "b-2", "c-3"]
    assert [record.order for record in result.records] == [0, 1, 2]
    assert all(record.row == 1 and record.column == 2 for record in result.records)


def test_scan_component_inside_wrapper_splits_surrounding_text() -> None:
    html = f"<div><p>before</p>{_box('x')}<p>after</p></div>"

    result = scan_content_block(html, row=0, column=0)

    assert [record.type for record in result.records] == [
        types.WIKI_TEXT,
        types.UNKNOWN,
        types.WIKI_TEXT,
    ]
    assert result.records[0].properties["Text"] == "<p>before</p>"
    assert result.records[2].properties["Text"] == "<p>after</p>"


def test_scan_text_after_component_joins_next_sibling() -> None:
    html = f"<div>{_box('x')}<p>tail</p></div><p>next</p>"

    result = scan_content_block(html, row=0, column=0)

    assert len(result.records) == 2
    assert result.records[1].properties["Text"] == "<p>tail</p>\n<p>next</p>"


def test_scan_keeps_line_breaks_and_media() -> None:
    html = '<p>a</p><br/><img src="x.png"/>'

    result = scan_content_block(html, row=0, column=0)

    assert len(result.records) == 1
    text = result.records[0].properties["Text"]
    assert "<BR>" in text
    assert 'src="x.png"' in text


def test_scan_drops_whitespace_only_nodes() -> None:
    result = scan_content_block("\n   \n", row=0, column=0)

    assert result.records == []


def test_scan_replaces_untransformable_blocks() -> None:
    result = scan_content_block("<section><p>x</p></section>", row=0, column=0)

    assert result.records[0].properties["Text"] == "<div><p>x</p></div>"


def test_scan_container_with_several_ids_yields_one_placeholder_per_id() -> None:
    html = (
        '<div class="ms-rte-wpbox">'
        '<div id="div_one"></div><div id="div_two"></div><div id="div_one"></div>'
        "</div>"
    )

    result = scan_content_block(html, row=0, column=0)

    assert [record.server_control_id for record in result.records] == ["one", "two"]


def test_scan_container_without_id_is_skipped() -> None:
    html = '<p>a</p><div class="ms-rte-wpbox"><div></div></div><p>b</p>'

    result = scan_content_block(html, row=0, column=0)

    assert [record.type for record in result.records] == [types.WIKI_TEXT, types.WIKI_TEXT]
    assert [record.order for record in result.records] == [0, 1]


def test_scan_order_strictly_increases_with_document_order() -> None:
    html = f"<p>1</p>{_box('a')}<p>2</p>{_box('b')}{_box('c')}<p>3</p>"

    result = scan_content_block(html, row=0, column=0, source_group="WikiField")

    orders = [record.order for record in result.records]
    assert orders == sorted(orders)
    assert len(set(orders)) == len(orders)
    assert len(result.pending) == 3
    assert all(record.source_group == "WikiField" for record in result.records)


def test_scan_honors_custom_box_class() -> None:
    html = '<div class="legacy-box"><div id="div_q"></div></div>'

    result = scan_content_block(html, row=0, column=0, box_class="legacy-box")

    assert [record.server_control_id for record in result.records] == ["q"]
