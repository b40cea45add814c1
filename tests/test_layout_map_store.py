from __future__ import annotations

from pathlib import Path

import pytest

from modernizer.layout.map_store import LayoutMapStore
from modernizer.layout.models import HeaderDefinition, LayoutMappingModel, PlaceholderDefinition


def _layout(name: str, placeholder: str = "Body") -> LayoutMappingModel:
    return LayoutMappingModel(
        name=name,
        header=HeaderDefinition(type="custom", image_field="PageImage"),
        placeholders=[PlaceholderDefinition(name=placeholder, kind="zone", row=1)],
    )


def test_map_store_save_and_load_sorted(tmp_path: Path) -> None:
    store = LayoutMapStore(tmp_path / "layouts.yaml")

    store.save([_layout("Zeta"), _layout("alpha")])
    loaded = store.load()

    assert [layout.name for layout in loaded] == ["alpha", "Zeta"]
    assert loaded[0] == _layout("alpha")
    assert not (tmp_path / "layouts.yaml.tmp").exists()


def test_map_store_missing_file_loads_empty(tmp_path: Path) -> None:
    assert LayoutMapStore(tmp_path / "absent.yaml").load() == []


def test_map_store_upsert_replaces_same_name(tmp_path: Path) -> None:
    store = LayoutMapStore(tmp_path / "layouts.yaml")
    store.save([_layout("Article", "Old")])

    store.upsert(_layout("ARTICLE", "New"))

    loaded = store.load()
    assert len(loaded) == 1
    assert loaded[0].placeholders[0].name == "New"


def test_map_store_rejects_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "layouts.yaml"
    path.write_text("layouts: [\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid layout map store YAML"):
        LayoutMapStore(path).load()


def test_map_store_rejects_invalid_schema(tmp_path: Path) -> None:
    path = tmp_path / "layouts.yaml"
    path.write_text("version: 1\nlayouts:\n  - title: missing-name\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid layout map store schema"):
        LayoutMapStore(path).load()
