"""CLI I/O helpers for atomic output writing."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from modernizer.observers.events import LogEvent
from modernizer.orchestrator.models import TransformationResult


@dataclass(frozen=True)
class OutputPaths:
    """Fixed output artifact paths for a single page run."""

    page: Path
    report: Path
    replay: Path


def build_output_paths(out_dir: Path) -> OutputPaths:
    """Build fixed output file paths under out_dir."""

    return OutputPaths(
        page=out_dir / "out.page.json",
        report=out_dir / "out.report.json",
        replay=out_dir / "out.replay.yaml",
    )


def existing_output_files(paths: OutputPaths) -> list[Path]:
    """Return existing output files among fixed artifact paths."""

    return [path for path in (paths.page, paths.report, paths.replay) if path.exists()]


def write_transformation_output_atomic(
    paths: OutputPaths, result: TransformationResult, events: list[LogEvent]
) -> None:
    """Write the target page, the run report and optional replay data."""

    paths.page.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(paths.page, result.page.model_dump(mode="json"))
    _atomic_write_json(
        paths.report,
        {
            "page_ref": result.page_ref,
            "target_page_ref": result.target_page_ref,
            "stages": [stage.value for stage in result.stages],
            "warnings": [warning.model_dump(mode="json") for warning in result.warnings],
            "events": [_event_payload(event) for event in events],
            "duration_ms": result.duration_ms,
            "error": None,
        },
    )
    if result.replay_capture is not None:
        write_yaml_atomic(paths.replay, result.replay_capture.model_dump(mode="json"))


def write_error_report_atomic(
    paths: OutputPaths,
    *,
    error_type: str,
    error_message: str,
    code: str | None,
    stage: str | None,
    events: list[LogEvent],
) -> None:
    """Write the run report with an error block when the page was not transformed."""

    paths.report.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(
        paths.report,
        {
            "stages": [],
            "warnings": [],
            "events": [_event_payload(event) for event in events],
            "error": {
                "error_type": error_type,
                "error_message": error_message,
                "code": code,
                "stage": stage,
            },
        },
    )


def write_yaml_atomic(path: Path, payload: dict[str, Any]) -> None:
    """Write YAML atomically."""

    path.parent.mkdir(parents=True, exist_ok=True)

    fd, raw_tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f"{path.name}.",
        suffix=".tmp",
    )
    os.close(fd)
    tmp_path = Path(raw_tmp_path)

    try:
        with tmp_path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(payload, handle, allow_unicode=True, sort_keys=False)
        tmp_path.replace(path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
        raise


def _event_payload(event: LogEvent) -> dict[str, Any]:
    return {
        "severity": event.severity,
        "heading": event.heading,
        "message": event.message,
        "stage": event.stage,
        "cause": event.cause,
    }


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, separators=(",", ":"))

    tmp_path.replace(path)
