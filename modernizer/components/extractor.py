"""Reduce a component's raw properties to the configured keep-list.

Rules are evaluated in order; the first rule whose predicate matches produces
the result:

1. Client (add-in) parts keep every property of the bag.
2. Without export XML the property bag is read directly.
3. Schema v3 exports: the bag is authoritative.
4. Schema v2 exports: bag first, then the XML element in the default
   namespace, then a type specific namespace for a few known properties.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from modernizer.components import types
from modernizer.mapping.models import ComponentMappingConfig
from modernizer.utils.export_xml import (
    default_namespace,
    find_element_text,
    is_schema_v2,
    is_schema_v3,
    parse_export_xml,
)

# Legacy v2 components storing some properties under their own namespace.
_V2_ALTERNATE_NAMESPACES: dict[str, tuple[str, tuple[str, ...]]] = {
    types.SIMPLE_FORM: (
        "http://schemas.microsoft.com/WebPart/v2/SimpleForm",
        ("Content",),
    ),
    types.CONTENT_EDITOR: (
        "http://schemas.microsoft.com/WebPart/v2/ContentEditor",
        ("ContentLink", "Content", "PartStorage"),
    ),
    types.XML: (
        "http://schemas.microsoft.com/WebPart/v2/Xml",
        ("XMLLink", "XML", "XSLLink", "XSL", "PartStorage"),
    ),
    types.SITE_DOCUMENTS: (
        "urn:schemas-microsoft-com:sharepoint:portal:sitedocumentswebpart",
        ("UserControlledNavigation", "ShowMemberships", "UserTabs"),
    ),
}


@dataclass(frozen=True)
class _ExtractionInput:
    component_type: str
    properties: Mapping[str, Any]
    names: list[str]
    root: ET.Element | None
    namespace: str


_Predicate = Callable[[_ExtractionInput], bool]
_Handler = Callable[[_ExtractionInput], dict[str, str]]


def extract_properties(
    component_type: str,
    properties: Mapping[str, Any] | None,
    export_xml: str | None,
    mapping: ComponentMappingConfig,
) -> dict[str, str]:
    """Return the properties to carry forward for one component.

    Missing properties are omitted and ``None`` values become empty strings;
    this function never raises for absent data.
    """

    root: ET.Element | None = None
    namespace = ""
    if export_xml:
        root = parse_export_xml(export_xml)
        namespace = default_namespace(root)

    data = _ExtractionInput(
        component_type=component_type,
        properties=properties or {},
        names=mapping.properties_to_keep(component_type),
        root=root,
        namespace=namespace,
    )

    for predicate, handler in _RULES:
        if predicate(data):
            return handler(data)
    return {}


def to_property_string(value: Any) -> str:
    """Coerce a property value to the string stored on a component record."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value)


def _is_client_part(data: _ExtractionInput) -> bool:
    return types.same_type(data.component_type, types.CLIENT)


def _has_no_xml(data: _ExtractionInput) -> bool:
    return data.root is None


def _is_v3(data: _ExtractionInput) -> bool:
    return is_schema_v3(data.namespace)


def _is_v2(data: _ExtractionInput) -> bool:
    return is_schema_v2(data.namespace)


def _copy_all(data: _ExtractionInput) -> dict[str, str]:
    return {name: to_property_string(value) for name, value in data.properties.items()}


def _from_bag(data: _ExtractionInput) -> dict[str, str]:
    kept: dict[str, str] = {}
    for name in data.names:
        if name in data.properties:
            kept[name] = to_property_string(data.properties[name])
    return kept


def _from_v2_xml(data: _ExtractionInput) -> dict[str, str]:
    kept: dict[str, str] = {}
    if data.root is None:
        return kept
    alternate = _alternate_namespace(data.component_type)

    for name in data.names:
        if name in data.properties:
            kept[name] = to_property_string(data.properties[name])
            continue

        value = find_element_text(data.root, data.namespace, name)
        if value is None and alternate is not None:
            alt_namespace, alt_names = alternate
            if any(name.casefold() == alt.casefold() for alt in alt_names):
                value = find_element_text(data.root, alt_namespace, name)
        if value is not None:
            kept[name] = value

    return kept


def _alternate_namespace(component_type: str) -> tuple[str, tuple[str, ...]] | None:
    for known_type, alternate in _V2_ALTERNATE_NAMESPACES.items():
        if types.same_type(known_type, component_type):
            return alternate
    return None


_RULES: tuple[tuple[_Predicate, _Handler], ...] = (
    (_is_client_part, _copy_all),
    (_has_no_xml, _from_bag),
    (_is_v3, _from_bag),
    (_is_v2, _from_v2_xml),
)
