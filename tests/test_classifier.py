from __future__ import annotations

from itertools import combinations

import pytest

from modernizer.components import types
from modernizer.components.classifier import (
    PROPERTY_RULES,
    classify_component,
    classify_export_xml,
    classify_properties,
)

V3_EXPORT = """<webParts>
  <webPart xmlns="http://schemas.microsoft.com/WebPart/v3">
    <metaData>
      <type name="Contoso.Parts.WeatherPart, Contoso.Parts, Version=1.0.0.0" />
      <importErrorMessage>Cannot import this part.</importErrorMessage>
    </metaData>
    <data><properties><property name="Title" type="string">Weather</property></properties></data>
  </webPart>
</webParts>"""

V2_EXPORT = """<WebPart xmlns="http://schemas.microsoft.com/WebPart/v2">
  <Title>Notes</Title>
  <TypeName>Microsoft.SharePoint.WebPartPages.ContentEditorWebPart</TypeName>
  <Assembly>Microsoft.SharePoint, Version=16.0.0.0, Culture=neutral, PublicKeyToken=71e9bce111e9429c</Assembly>
</WebPart>"""


def test_classify_schema_v3_reads_type_name() -> None:
    assert classify_export_xml(V3_EXPORT) == (
        "Contoso.Parts.WeatherPart, Contoso.Parts, Version=1.0.0.0"
    )


def test_classify_schema_v2_joins_type_and_assembly() -> None:
    assert classify_export_xml(V2_EXPORT) == types.CONTENT_EDITOR


def test_classify_unknown_schema_returns_unknown() -> None:
    export = '<root><part xmlns="urn:other"><TypeName>X</TypeName></part></root>'

    assert classify_export_xml(export) == types.UNKNOWN


def test_classify_schema_v2_without_assembly_returns_unknown() -> None:
    export = (
        '<WebPart xmlns="http://schemas.microsoft.com/WebPart/v2">'
        "<TypeName>Only.Type</TypeName></WebPart>"
    )

    assert classify_export_xml(export) == types.UNKNOWN


def test_classify_malformed_export_raises() -> None:
    with pytest.raises(ValueError, match="Invalid component export XML"):
        classify_export_xml("<WebPart><Title>broken</WebPart>")


def test_classify_component_prefers_export_over_properties() -> None:
    result = classify_component(V2_EXPORT, {"Content": "<p>x</p>"})

    assert result == types.CONTENT_EDITOR


def test_classify_component_without_export_uses_properties() -> None:
    assert classify_component(None, {"Content": "<script></script>"}) == types.SCRIPT_EDITOR
    assert classify_component("", None) == types.NON_EXPORTABLE_UNIDENTIFIED


@pytest.mark.parametrize("rule", PROPERTY_RULES, ids=lambda rule: rule.component_type.split(",")[0])
def test_each_rule_matches_its_own_properties(rule) -> None:
    properties = {name: "value" for name in rule.required}

    assert classify_properties(properties) == rule.component_type


def test_rule_table_order_is_fixed() -> None:
    assert [rule.component_type for rule in PROPERTY_RULES] == [
        types.XSLT_LIST_VIEW,
        types.LIST_VIEW,
        types.MEDIA,
        types.PICTURE_LIBRARY_SLIDESHOW,
        types.CHART,
        types.MEMBERS,
        types.SILVERLIGHT,
        types.CLIENT,
        types.SCRIPT_EDITOR,
        types.SP_USER_CODE,
    ]


def test_members_wins_over_silverlight_when_both_match() -> None:
    properties = {
        "NumberLimit": "5",
        "DisplayType": "0",
        "MembershipGroupId": "3",
        "Toolbar": "",
        "MinRuntimeVersion": "",
        "WindowlessMode": "",
        "CustomInitParameters": "",
        "Url": "",
        "ApplicationXml": "",
    }

    assert classify_properties(properties) == types.MEMBERS


def test_rule_priority_is_pairwise_ordered() -> None:
    for earlier, later in combinations(PROPERTY_RULES, 2):
        properties = {name: "" for name in (*earlier.required, *later.required)}

        assert classify_properties(properties) == earlier.component_type


def test_partial_property_set_does_not_match() -> None:
    properties = {"ListUrl": "/lists/x", "ListId": "1", "Xsl": ""}

    assert classify_properties(properties) == types.NON_EXPORTABLE_UNIDENTIFIED


def test_xslt_list_view_wins_over_script_editor_content() -> None:
    properties = {
        "ListUrl": "Lists/Tasks",
        "ListId": "{guid}",
        "Xsl": "",
        "JSLink": "",
        "ShowTimelineIfAvailable": "True",
        "Content": "",
    }

    assert classify_properties(properties) == types.XSLT_LIST_VIEW
