"""Split text records housing inline images or frames into separate records."""

from __future__ import annotations

import re
from collections import defaultdict

from bs4 import NavigableString, Tag

from modernizer.components import types
from modernizer.components.models import ComponentRecord
from modernizer.content.html_cleanup import has_text_content, parse_fragment
from modernizer.content.scanner import create_text_record

WIKI_IMAGE_TITLE = "WikiImage"
WIKI_VIDEO_TITLE = "WikiVideo"

_MEDIA_TOKEN = "[[InlineMedia{index}]]"
_MEDIA_TOKEN_RE = re.compile(r"\[\[InlineMedia(\d+)\]\]")


def split_inline_media(records: list[ComponentRecord]) -> list[ComponentRecord]:
    """Return records with inline media lifted out of text records.

    Each text record becomes an alternating sequence of text, image and video
    records in document order. Text pieces without content are dropped and
    orders are renumbered per (row, column) afterwards.
    """

    split: list[ComponentRecord] = []
    for record in records:
        if record.type != types.WIKI_TEXT:
            split.append(record)
            continue
        split.extend(_split_text_record(record))
    return renumber_orders(split)


def renumber_orders(records: list[ComponentRecord]) -> list[ComponentRecord]:
    """Assign consecutive orders per (row, column), keeping list order."""

    counters: dict[tuple[int, int], int] = defaultdict(int)
    renumbered: list[ComponentRecord] = []
    for record in records:
        cell = (record.row, record.column)
        order = counters[cell]
        counters[cell] = order + 1
        if record.order == order:
            renumbered.append(record)
        else:
            renumbered.append(record.model_copy(update={"order": order}))
    return renumbered


def _split_text_record(record: ComponentRecord) -> list[ComponentRecord]:
    soup = parse_fragment(record.properties.get("Text", ""))
    media = soup.find_all(["img", "iframe"])
    if not media:
        return [record]

    media_records: list[ComponentRecord] = []
    for index, element in enumerate(media):
        media_records.append(_media_record(element, record))
        element.replace_with(NavigableString(_MEDIA_TOKEN.format(index=index)))

    pieces = _MEDIA_TOKEN_RE.split(str(soup))
    # re.split alternates text and captured indexes: text, idx, text, idx, ...
    result: list[ComponentRecord] = []
    for position, piece in enumerate(pieces):
        if position % 2 == 1:
            result.append(media_records[int(piece)])
            continue
        repaired = str(parse_fragment(piece))
        if has_text_content(repaired):
            result.append(
                create_text_record(
                    repaired,
                    record.row,
                    record.column,
                    record.order,
                    record.source_group,
                )
            )
    return result


def _media_record(element: Tag, parent: ComponentRecord) -> ComponentRecord:
    if element.name == "img":
        return ComponentRecord(
            title=WIKI_IMAGE_TITLE,
            type=types.WIKI_IMAGE,
            row=parent.row,
            column=parent.column,
            order=parent.order,
            source_group=parent.source_group,
            properties={
                "ImageUrl": str(element.get("src", "")),
                "AlternativeText": str(element.get("alt", "")),
            },
        )

    return ComponentRecord(
        title=WIKI_VIDEO_TITLE,
        type=types.WIKI_VIDEO,
        row=parent.row,
        column=parent.column,
        order=parent.order,
        source_group=parent.source_group,
        properties={
            "Source": str(element.get("src", "")),
            "IFrameEmbed": str(element),
        },
    )
