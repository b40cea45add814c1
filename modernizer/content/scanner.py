"""Scanner turning a block of embedded page markup into ordered component records.

The block is walked node by node. Text accumulates in a buffer that is flushed
as a synthesized text record whenever a component container is met; every
component identifier inside the container becomes a pending placeholder. The
``order`` counter follows document order and never depends on the final
row/column layout.
"""

from __future__ import annotations

import re

from bs4 import Comment, NavigableString, Tag
from bs4.element import PreformattedString

from modernizer.components import types
from modernizer.components.models import ComponentRecord, ScanResult
from modernizer.content.html_cleanup import parse_fragment, replace_untransformable_blocks

COMPONENT_BOX_CLASS = "ms-rte-wpbox"
WIKI_TEXT_TITLE = "WikiText"

_MARKER = "[[ComponentMarker]]"
_CONTROL_ID_RE = re.compile(r'id="div_(?P<control_id>[\w\-]+)')
_MEDIA_TAGS = {"img", "iframe"}


def scan_content_block(
    html: str,
    row: int,
    column: int,
    *,
    box_class: str = COMPONENT_BOX_CLASS,
    source_group: str | None = None,
) -> ScanResult:
    """Scan one content block located at (row, column).

    Args:
        html: Embedded markup of the block.
        row: Zero-based target row of the block.
        column: Zero-based target column of the block.
        box_class: CSS class marking a component container div.
        source_group: Name of the field/zone the block came from.

    Returns:
        ScanResult with text records and pending component placeholders in
        document order.
    """

    soup = parse_fragment(html)
    replace_untransformable_blocks(soup)

    result = ScanResult()
    buffer: list[str] = []
    order = 0

    for node in list(soup.children):
        if isinstance(node, Tag) and _contains_component(node, box_class):
            before, after, control_ids = _strip_components(node, box_class)

            if before.strip():
                buffer.append(before)
            if buffer:
                result.records.append(_text_record(buffer, row, column, order, source_group))
                order += 1
                buffer = []

            for control_id in control_ids:
                result.records.append(
                    ComponentRecord(
                        type=types.UNKNOWN,
                        server_control_id=control_id,
                        row=row,
                        column=column,
                        order=order,
                        source_group=source_group,
                    )
                )
                order += 1

            # Text after the component may continue in the next sibling.
            if after.strip():
                buffer.append(after)
            continue

        fragment = _node_fragment(node)
        if fragment is not None:
            buffer.append(fragment)

    if buffer:
        result.records.append(_text_record(buffer, row, column, order, source_group))

    return result


def create_text_record(
    text: str,
    row: int,
    column: int,
    order: int,
    source_group: str | None = None,
) -> ComponentRecord:
    """Build a synthesized text record holding ``text`` as its ``Text`` property."""

    return ComponentRecord(
        title=WIKI_TEXT_TITLE,
        type=types.WIKI_TEXT,
        row=row,
        column=column,
        order=order,
        source_group=source_group,
        properties={"Text": text.strip().replace("\r\n", "")},
    )


def _text_record(
    buffer: list[str], row: int, column: int, order: int, source_group: str | None
) -> ComponentRecord:
    return create_text_record("\n".join(buffer), row, column, order, source_group)


def _contains_component(element: Tag, box_class: str) -> bool:
    if element.name == "div" and box_class in (element.get("class") or []):
        return True
    return element.find("div", class_=box_class) is not None


def _strip_components(element: Tag, box_class: str) -> tuple[str, str, list[str]]:
    """Replace component containers in a copy of ``element`` with a marker.

    Returns the markup before and after the first marker (other markers
    removed) and the component identifiers found in the containers.
    """

    copy = parse_fragment(str(element))
    boxes = [
        box
        for box in copy.find_all("div", class_=box_class)
        if box.find_parent("div", class_=box_class) is None
    ]

    control_ids: list[str] = []
    for box in boxes:
        for match in _CONTROL_ID_RE.finditer(str(box)):
            control_id = match.group("control_id")
            if control_id not in control_ids:
                control_ids.append(control_id)

    for box in boxes:
        box.replace_with(NavigableString(_MARKER))

    first_element = next((child for child in copy.children if isinstance(child, Tag)), None)
    if first_element is not None and first_element.name == "div":
        remainder = first_element.decode_contents()
    else:
        remainder = str(copy)

    marker_index = remainder.find(_MARKER)
    if marker_index < 0:
        return remainder, "", control_ids

    # Adjacent components without text in between leave extra markers.
    before = remainder[:marker_index].replace(_MARKER, "")
    after = remainder[marker_index + len(_MARKER) :].replace(_MARKER, "")
    return before, after, control_ids


def _node_fragment(node: object) -> str | None:
    if isinstance(node, (Comment, PreformattedString)):
        return None

    if isinstance(node, NavigableString):
        text = str(node)
        return text if text.strip() else None

    if not isinstance(node, Tag):
        return None

    if node.contents:
        return str(node)

    if node.name == "br":
        return "<BR>"
    # Media elements have no children but must survive.
    if node.name in _MEDIA_TAGS:
        return str(node)
    return None
