from __future__ import annotations

import json
from pathlib import Path

import pytest

from apps.cli import io as cli_io
from apps.cli.io import (
    build_output_paths,
    existing_output_files,
    write_error_report_atomic,
    write_transformation_output_atomic,
    write_yaml_atomic,
)
from modernizer.cache.models import ReplayCaptureData
from modernizer.layout.canvas import TargetPage
from modernizer.observers.events import LogEvent
from modernizer.orchestrator.models import Stage, TransformationResult, TransformationWarning


def _result(*, with_replay: bool = False) -> TransformationResult:
    return TransformationResult(
        page_ref="/sites/a/SitePages/home.aspx",
        target_page_ref="https://contoso/sites/a/SitePages/Migrated_home.aspx",
        stages=[Stage.VALIDATE, Stage.DONE],
        page=TargetPage(name="Migrated_home.aspx"),
        warnings=[
            TransformationWarning(code="PAGE_STAMP_FAILED", stage=Stage.PERSIST, message="x")
        ],
        replay_capture=ReplayCaptureData(page_id="page-1") if with_replay else None,
    )


def test_write_transformation_output_writes_page_and_report(tmp_path: Path) -> None:
    paths = build_output_paths(tmp_path)
    event = LogEvent(severity="info", heading="telemetry", message="done", stage="Telemetry")

    write_transformation_output_atomic(paths, _result(), [event])

    page = json.loads(paths.page.read_text(encoding="utf-8"))
    report = json.loads(paths.report.read_text(encoding="utf-8"))
    assert page["name"] == "Migrated_home.aspx"
    assert report["stages"] == ["Validate", "Done"]
    assert report["warnings"][0]["code"] == "PAGE_STAMP_FAILED"
    assert report["events"][0]["heading"] == "telemetry"
    assert not paths.replay.exists()
    assert list(tmp_path.glob("*.tmp")) == []


def test_write_transformation_output_includes_replay_capture(tmp_path: Path) -> None:
    paths = build_output_paths(tmp_path)

    write_transformation_output_atomic(paths, _result(with_replay=True), [])

    assert paths.replay.exists()
    assert existing_output_files(paths) == [paths.page, paths.report, paths.replay]


def test_write_error_report_has_error_block(tmp_path: Path) -> None:
    paths = build_output_paths(tmp_path / "nested")

    write_error_report_atomic(
        paths,
        error_type="ValidationError",
        error_message="Page is already a modern page",
        code="PAGE_IS_MODERN",
        stage="Validate",
        events=[],
    )

    report = json.loads(paths.report.read_text(encoding="utf-8"))
    assert report["error"]["code"] == "PAGE_IS_MODERN"
    assert report["stages"] == []


def test_write_yaml_atomic_cleans_tmp_on_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = tmp_path / "out.replay.yaml"

    def broken_dump(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("dump failed")

    monkeypatch.setattr(cli_io.yaml, "safe_dump", broken_dump)

    with pytest.raises(RuntimeError, match="dump failed"):
        write_yaml_atomic(target, {"page_id": "p"})

    assert not target.exists()
    assert list(tmp_path.glob("out.replay.yaml.*.tmp")) == []
