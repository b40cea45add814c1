"""Component type classification from export XML or a raw property bag."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from modernizer.components import types
from modernizer.utils.export_xml import (
    default_namespace,
    find_element_attribute,
    find_element_text,
    is_schema_v2,
    is_schema_v3,
    parse_export_xml,
)


@dataclass(frozen=True)
class PropertyRule:
    """All ``required`` property names must be present for ``component_type`` to match."""

    component_type: str
    required: tuple[str, ...]

    def matches(self, properties: Mapping[str, Any]) -> bool:
        return all(name in properties for name in self.required)


# Evaluation order is part of the contract: several legacy components carry a
# superset of another component's properties.
PROPERTY_RULES: tuple[PropertyRule, ...] = (
    PropertyRule(
        types.XSLT_LIST_VIEW,
        ("ListUrl", "ListId", "Xsl", "JSLink", "ShowTimelineIfAvailable"),
    ),
    PropertyRule(
        types.LIST_VIEW,
        ("ListViewXml", "ListName", "ListId", "ViewContentTypeId", "PageType"),
    ),
    PropertyRule(
        types.MEDIA,
        (
            "AutoPlay",
            "MediaSource",
            "Loop",
            "IsPreviewImageSourceOverridenForVideoSet",
            "PreviewImageSource",
        ),
    ),
    PropertyRule(
        types.PICTURE_LIBRARY_SLIDESHOW,
        ("LibraryGuid", "Layout", "Speed", "ShowToolbar", "ViewGuid"),
    ),
    PropertyRule(
        types.CHART,
        ("ConnectionPointEnabled", "ChartXml", "DataBindingsString", "DesignerChartTheme"),
    ),
    PropertyRule(types.MEMBERS, ("NumberLimit", "DisplayType", "MembershipGroupId", "Toolbar")),
    PropertyRule(
        types.SILVERLIGHT,
        ("MinRuntimeVersion", "WindowlessMode", "CustomInitParameters", "Url", "ApplicationXml"),
    ),
    PropertyRule(types.CLIENT, ("FeatureId", "ProductWebId", "ProductId")),
    PropertyRule(types.SCRIPT_EDITOR, ("Content",)),
    PropertyRule(
        types.SP_USER_CODE,
        ("CatalogIconImageUrl", "AllowEdit", "TitleIconImageUrl", "ExportMode"),
    ),
)


def classify_component(export_xml: str | None, properties: Mapping[str, Any] | None) -> str:
    """Return the type tag for a component.

    Export XML wins when available; otherwise the property bag is matched
    against :data:`PROPERTY_RULES`.
    """

    if export_xml:
        return classify_export_xml(export_xml)
    return classify_properties(properties or {})


def classify_export_xml(export_xml: str) -> str:
    """Classify from exported XML using its default namespace."""

    root = parse_export_xml(export_xml)
    namespace = default_namespace(root)

    if is_schema_v3(namespace):
        type_name = find_element_attribute(root, namespace, "type", "name")
        return type_name or types.UNKNOWN

    if is_schema_v2(namespace):
        type_name = find_element_text(root, namespace, "TypeName")
        assembly = find_element_text(root, namespace, "Assembly")
        if type_name is None or assembly is None:
            return types.UNKNOWN
        return f"{type_name.strip()}, {assembly.strip()}"

    return types.UNKNOWN


def classify_properties(properties: Mapping[str, Any]) -> str:
    """Classify a non-exportable component by property presence."""

    for rule in PROPERTY_RULES:
        if rule.matches(properties):
            return rule.component_type
    return types.NON_EXPORTABLE_UNIDENTIFIED
