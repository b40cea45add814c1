"""Loading utilities for component and page layout mapping files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from modernizer.layout.analyzer import merge_layout_mappings
from modernizer.layout.models import LayoutMappingFile, LayoutMappingModel
from modernizer.mapping.models import ComponentMappingConfig

DEFAULT_COMPONENT_MAPPING = Path(__file__).with_name("webpartmapping.yaml")
DEFAULT_LAYOUT_MAPPING = Path(__file__).with_name("pagelayoutmapping.yaml")


def load_component_mapping(path: Path | None = None) -> ComponentMappingConfig:
    """Load and validate the component mapping from YAML."""

    mapping_path = path or DEFAULT_COMPONENT_MAPPING
    return _load_model(mapping_path, ComponentMappingConfig, "component mapping")


def load_layout_mappings(
    path: Path | None = None, override_path: Path | None = None
) -> list[LayoutMappingModel]:
    """Load layout mappings, optionally merged with an override file.

    Override entries replace bundled entries of the same name.
    """

    mapping_path = path or DEFAULT_LAYOUT_MAPPING
    layouts = _load_model(mapping_path, LayoutMappingFile, "layout mapping").layouts
    if override_path is None:
        return layouts

    overrides = _load_model(override_path, LayoutMappingFile, "layout mapping").layouts
    return merge_layout_mappings(layouts, overrides)


def _load_model(path: Path, model: type[Any], label: str) -> Any:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"{label.capitalize()} file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {label} file: {path}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"{label.capitalize()} file must contain a mapping: {path}")

    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid {label} schema: {path}") from exc

