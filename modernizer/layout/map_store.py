"""Local YAML store for synthesized layout mappings."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from modernizer.layout.models import LayoutMappingFile, LayoutMappingModel

_STORE_VERSION = 1


class LayoutMapStore:
    """Persist layout mappings so they can be reviewed and reused as overrides."""

    def __init__(self, store_path: Path) -> None:
        self._store_path = store_path

    def load(self) -> list[LayoutMappingModel]:
        return self._read_data().layouts

    def save(self, layouts: list[LayoutMappingModel]) -> None:
        """Write ``layouts`` sorted by name, replacing the file atomically."""

        data = LayoutMappingFile(
            version=_STORE_VERSION,
            layouts=sorted(layouts, key=lambda item: item.name.lower()),
        )
        self._write_data(data)

    def upsert(self, layout: LayoutMappingModel) -> None:
        data = self._read_data()
        kept = [item for item in data.layouts if item.name.lower() != layout.name.lower()]
        kept.append(layout)
        self.save(kept)

    def _read_data(self) -> LayoutMappingFile:
        if not self._store_path.exists():
            return LayoutMappingFile(version=_STORE_VERSION)

        try:
            raw = yaml.safe_load(self._store_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid layout map store YAML: {self._store_path}") from exc

        if raw is None:
            return LayoutMappingFile(version=_STORE_VERSION)
        try:
            return LayoutMappingFile.model_validate(raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid layout map store schema: {self._store_path}") from exc

    def _write_data(self, data: LayoutMappingFile) -> None:
        self._store_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._store_path.with_suffix(f"{self._store_path.suffix}.tmp")

        payload = data.model_dump(mode="json", exclude_defaults=True)
        payload["version"] = data.version
        temp_path.write_text(
            yaml.safe_dump(payload, sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
        temp_path.replace(self._store_path)
