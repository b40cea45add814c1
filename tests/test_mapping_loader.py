from __future__ import annotations

from pathlib import Path

import pytest

from modernizer.components import types
from modernizer.mapping.loader import load_component_mapping, load_layout_mappings


def test_bundled_component_mapping_loads() -> None:
    mapping = load_component_mapping()

    assert mapping.target_for(types.WIKI_TEXT) == "Text"
    assert mapping.target_for(types.SCRIPT_EDITOR) == "Script editor"
    assert mapping.properties_to_keep(types.CONTENT_EDITOR) == [
        "Title",
        "Description",
        "ContentLink",
        "Content",
    ]


def test_component_mapping_lookup_is_case_insensitive() -> None:
    mapping = load_component_mapping()

    assert mapping.find(types.WIKI_IMAGE.upper()) is not None


def test_bundled_layout_mappings_load() -> None:
    layouts = load_layout_mappings()

    names = [layout.name for layout in layouts]
    assert "ArticleLeft" in names
    article = next(layout for layout in layouts if layout.name == "ArticleLeft")
    assert article.header is not None
    assert article.header.image_field == "PublishingPageImage"


def test_layout_override_replaces_and_appends(tmp_path: Path) -> None:
    override = tmp_path / "override.yaml"
    override.write_text(
        "\n".join(
            [
                "layouts:",
                "  - name: articleleft",
                "    placeholders:",
                "      - name: Body",
                "  - name: Landing",
                "",
            ]
        ),
        encoding="utf-8",
    )

    layouts = load_layout_mappings(override_path=override)

    by_name = {layout.name.lower(): layout for layout in layouts}
    assert [p.name for p in by_name["articleleft"].placeholders] == ["Body"]
    assert "landing" in by_name
    assert "welcomelinks" in by_name


def test_missing_mapping_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="not found"):
        load_component_mapping(tmp_path / "missing.yaml")


def test_invalid_yaml_raises_with_path(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("components: [\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML in component mapping file") as exc_info:
        load_component_mapping(path)
    assert str(path) in str(exc_info.value)


def test_unknown_key_raises_schema_error(tmp_path: Path) -> None:
    path = tmp_path / "mapping.yaml"
    path.write_text("components:\n  - type: X\n    colour: red\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid component mapping schema"):
        load_component_mapping(path)


def test_non_mapping_document_raises(tmp_path: Path) -> None:
    path = tmp_path / "layouts.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must contain a mapping"):
        load_layout_mappings(path)
