"""Rewrite links pointing at the source site or its pages library."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from modernizer.components import types
from modernizer.components.models import ComponentRecord
from modernizer.content.html_cleanup import parse_fragment

TARGET_PAGES_LIBRARY = "SitePages"

_URL_ATTRIBUTES = {"a": "href", "img": "src", "iframe": "src"}


@dataclass(frozen=True)
class UrlMapping:
    """Replace the ``source`` prefix (case-insensitive) with ``target``."""

    source: str
    target: str

    def apply(self, url: str) -> str | None:
        if url.lower().startswith(self.source.lower()):
            return self.target + url[len(self.source) :]
        return None


def build_url_mappings(
    source_web_url: str,
    target_web_url: str,
    source_pages_library: str,
    target_pages_library: str = TARGET_PAGES_LIBRARY,
) -> list[UrlMapping]:
    """Most specific mappings first: pages library, then the web itself.

    Absolute and server relative forms are both covered.
    """

    source_web_url = source_web_url.rstrip("/")
    target_web_url = target_web_url.rstrip("/")

    mappings: list[UrlMapping] = []
    for source, target in (
        (source_web_url, target_web_url),
        (_server_relative(source_web_url), _server_relative(target_web_url)),
    ):
        mappings.append(
            UrlMapping(
                source=f"{source}/{source_pages_library}/",
                target=f"{target}/{target_pages_library}/",
            )
        )
    if source_web_url.lower() != target_web_url.lower():
        mappings.append(UrlMapping(source=f"{source_web_url}/", target=f"{target_web_url}/"))
        source_relative = _server_relative(source_web_url)
        if source_relative:
            mappings.append(
                UrlMapping(
                    source=f"{source_relative}/",
                    target=f"{_server_relative(target_web_url)}/",
                )
            )
    return mappings


def rewrite_url(url: str, mappings: list[UrlMapping]) -> str:
    for mapping in mappings:
        rewritten = mapping.apply(url)
        if rewritten is not None:
            return rewritten
    return url


def rewrite_html(html: str, mappings: list[UrlMapping]) -> str:
    """Rewrite link and media attributes in an HTML fragment."""

    if not mappings:
        return html

    soup = parse_fragment(html)
    changed = False
    for tag_name, attribute in _URL_ATTRIBUTES.items():
        for element in soup.find_all(tag_name):
            value = element.get(attribute)
            if not value:
                continue
            rewritten = rewrite_url(str(value), mappings)
            if rewritten != value:
                element[attribute] = rewritten
                changed = True
    return str(soup) if changed else html


def rewrite_records(
    records: list[ComponentRecord], mappings: list[UrlMapping]
) -> list[ComponentRecord]:
    """Apply URL mappings to text, image and video records."""

    rewritten: list[ComponentRecord] = []
    for record in records:
        properties = dict(record.properties)
        if record.type == types.WIKI_TEXT and "Text" in properties:
            properties["Text"] = rewrite_html(properties["Text"], mappings)
        elif record.type == types.WIKI_IMAGE and "ImageUrl" in properties:
            properties["ImageUrl"] = rewrite_url(properties["ImageUrl"], mappings)
        elif record.type == types.WIKI_VIDEO:
            if "Source" in properties:
                properties["Source"] = rewrite_url(properties["Source"], mappings)
            if "IFrameEmbed" in properties:
                properties["IFrameEmbed"] = rewrite_html(properties["IFrameEmbed"], mappings)

        if properties == record.properties:
            rewritten.append(record)
        else:
            rewritten.append(record.model_copy(update={"properties": properties}))
    return rewritten


def _server_relative(url: str) -> str:
    parts = urlsplit(url)
    if not parts.scheme:
        return url
    return parts.path.rstrip("/")
