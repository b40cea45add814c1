"""Utilities for component export XML.

All XML-level operations on exported component definitions must be implemented
here. Do not spread XML parsing logic across other modules.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

SCHEMA_V3_NS = "http://schemas.microsoft.com/WebPart/v3"
SCHEMA_V2_NS = "http://schemas.microsoft.com/WebPart/v2"


def parse_export_xml(export_xml: str) -> ET.Element:
    """Parse exported component XML, raising ValueError when malformed."""

    try:
        return ET.fromstring(export_xml)
    except ET.ParseError as exc:
        raise ValueError("Invalid component export XML") from exc


def default_namespace(root: ET.Element) -> str:
    """Return the namespace of the first child element (empty when absent)."""

    first_child = next(iter(root), None)
    if first_child is None:
        return ""
    return _namespace_of(first_child.tag)


def is_schema_v3(namespace: str) -> bool:
    return namespace.lower() == SCHEMA_V3_NS.lower()


def is_schema_v2(namespace: str) -> bool:
    return namespace.lower() == SCHEMA_V2_NS.lower()


def find_element_text(root: ET.Element, namespace: str, local_name: str) -> str | None:
    """Return text of the first descendant named ``{namespace}local_name``.

    Returns None when no such element exists. The root itself is included.
    """

    element = root if root.tag == _qualified(namespace, local_name) else None
    if element is None:
        element = root.find(f".//{_qualified(namespace, local_name)}")
    if element is None:
        return None
    return "".join(element.itertext())


def find_element_attribute(
    root: ET.Element, namespace: str, local_name: str, attribute: str
) -> str | None:
    """Return an attribute of the first descendant named ``{namespace}local_name``."""

    element = root.find(f".//{_qualified(namespace, local_name)}")
    if element is None:
        return None
    return element.get(attribute)


def _qualified(namespace: str, local_name: str) -> str:
    if not namespace:
        return local_name
    return f"{{{namespace}}}{local_name}"


def _namespace_of(tag: str) -> str:
    if tag.startswith("{"):
        return tag[1:].split("}", maxsplit=1)[0]
    return ""
