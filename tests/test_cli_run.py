from __future__ import annotations

import json
from pathlib import Path

import yaml  # type: ignore[import-untyped]
from typer.testing import CliRunner

from apps.cli.main import app

runner = CliRunner()

WEB = "https://contoso.sharepoint.com/sites/intranet"
WIKI_REF = "/sites/intranet/SitePages/home.aspx"


def _write_fixture(path: Path, *, kind: str = "WikiPage") -> None:
    fixture = {
        "catalogs": {WEB: [{"id": "cat-script", "name": "Script editor"}]},
        "pages": [
            {
                "page_ref": WIKI_REF,
                "page_id": "page-1",
                "kind": kind,
                "web_url": WEB,
                "site_ref": WEB,
                "fields": {
                    "FileRef": WIKI_REF,
                    "FileDirRef": "/sites/intranet/SitePages",
                    "FileLeafRef": "home.aspx",
                    "Title": "Home",
                    "WikiField": (
                        "<p>intro</p>"
                        '<div class="ms-rte-wpbox"><div id="div_1111-aaaa"></div></div>'
                        "<p>outro</p>"
                    ),
                },
            }
        ],
        "components": {
            WIKI_REF: [
                {
                    "id": "g_1111_aaaa",
                    "title": "Script",
                    "export_allowed": False,
                    "properties": {"Content": "<script></script>"},
                }
            ]
        },
    }
    path.write_text(yaml.safe_dump(fixture, sort_keys=False), encoding="utf-8")


def _controls(page_path: Path) -> list[dict[str, object]]:
    page = json.loads(page_path.read_text(encoding="utf-8"))
    return [
        control
        for section in page["sections"]
        for column in section["columns"]
        for control in column["controls"]
    ]


def test_cli_transform_writes_page_and_report(tmp_path: Path) -> None:
    fixture = tmp_path / "fixture.yaml"
    out_dir = tmp_path / "out"
    _write_fixture(fixture)

    result = runner.invoke(
        app,
        ["transform", "--fixture", str(fixture), "--page", WIKI_REF, "--out-dir", str(out_dir)],
    )

    assert result.exit_code == 0
    assert "INFO: transformed" in result.stdout
    assert [c["target_type"] for c in _controls(out_dir / "out.page.json")] == [
        "Text",
        "Script editor",
        "Text",
    ]
    report = json.loads((out_dir / "out.report.json").read_text(encoding="utf-8"))
    assert report["error"] is None
    assert report["stages"][-1] == "Done"
    assert report["target_page_ref"] == f"{WEB}/SitePages/Migrated_home.aspx"
    assert not (out_dir / "out.replay.yaml").exists()


def test_cli_transform_refuses_existing_outputs_without_force(tmp_path: Path) -> None:
    fixture = tmp_path / "fixture.yaml"
    out_dir = tmp_path / "out"
    _write_fixture(fixture)
    out_dir.mkdir()
    (out_dir / "out.page.json").write_text("{}", encoding="utf-8")
    args = ["transform", "--fixture", str(fixture), "--page", WIKI_REF, "--out-dir", str(out_dir)]

    refused = runner.invoke(app, args)
    forced = runner.invoke(app, [*args, "--force"])

    assert refused.exit_code == 1
    assert "use --force" in refused.stdout
    assert forced.exit_code == 0


def test_cli_transform_reports_validation_error(tmp_path: Path) -> None:
    fixture = tmp_path / "fixture.yaml"
    out_dir = tmp_path / "out"
    _write_fixture(fixture, kind="ClientSidePage")

    result = runner.invoke(
        app,
        ["transform", "--fixture", str(fixture), "--page", WIKI_REF, "--out-dir", str(out_dir)],
    )

    assert result.exit_code == 1
    assert "ERROR(PAGE_IS_MODERN)" in result.stdout
    report = json.loads((out_dir / "out.report.json").read_text(encoding="utf-8"))
    assert report["error"]["code"] == "PAGE_IS_MODERN"
    assert report["error"]["stage"] == "Validate"
    assert not (out_dir / "out.page.json").exists()


def test_cli_transform_rejects_invalid_replay_options(tmp_path: Path) -> None:
    fixture = tmp_path / "fixture.yaml"
    _write_fixture(fixture)
    base = ["transform", "--fixture", str(fixture), "--page", WIKI_REF]

    bad_mode = runner.invoke(app, [*base, "--out-dir", str(tmp_path / "a"), "--replay-mode", "x"])
    no_file = runner.invoke(
        app, [*base, "--out-dir", str(tmp_path / "b"), "--replay-mode", "replay"]
    )

    assert bad_mode.exit_code == 1
    assert "--replay-mode must be one of" in bad_mode.stdout
    assert no_file.exit_code == 1
    assert "requires --replay-file" in no_file.stdout


def test_cli_capture_then_replay_keeps_instance_ids(tmp_path: Path) -> None:
    fixture = tmp_path / "fixture.yaml"
    _write_fixture(fixture)
    base = ["transform", "--fixture", str(fixture), "--page", WIKI_REF]

    captured = runner.invoke(
        app, [*base, "--out-dir", str(tmp_path / "capture"), "--replay-mode", "capture"]
    )
    replay_file = tmp_path / "capture" / "out.replay.yaml"
    replayed = runner.invoke(
        app,
        [
            *base,
            "--out-dir",
            str(tmp_path / "replay"),
            "--replay-mode",
            "replay",
            "--replay-file",
            str(replay_file),
        ],
    )

    assert captured.exit_code == 0
    assert replayed.exit_code == 0
    first = [c["instance_id"] for c in _controls(tmp_path / "capture" / "out.page.json")]
    second = [c["instance_id"] for c in _controls(tmp_path / "replay" / "out.page.json")]
    assert first == second


def test_cli_transform_rejects_broken_fixture(tmp_path: Path) -> None:
    fixture = tmp_path / "fixture.yaml"
    fixture.write_text("pages: [\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["transform", "--fixture", str(fixture), "--page", WIKI_REF, "--out-dir", str(tmp_path)],
    )

    assert result.exit_code == 1
    assert "Invalid YAML in repository fixture" in result.stdout


def test_cli_scan_prints_records(tmp_path: Path) -> None:
    html = tmp_path / "block.html"
    html.write_text(
        '<p>a</p><div class="ms-rte-wpbox"><div id="div_x1"></div></div>', encoding="utf-8"
    )

    result = runner.invoke(app, ["scan", "--html", str(html), "--row", "1"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [record["order"] for record in payload["records"]] == [0, 1]
    assert payload["records"][1]["server_control_id"] == "x1"
    assert all(record["row"] == 1 for record in payload["records"])


def test_cli_analyze_layout_writes_mapping_file(tmp_path: Path) -> None:
    fixture = tmp_path / "fixture.yaml"
    out = tmp_path / "layouts.yaml"
    _write_fixture(fixture)

    result = runner.invoke(app, ["analyze-layout", "--fixture", str(fixture), "--out", str(out)])

    assert result.exit_code == 0
    stored = yaml.safe_load(out.read_text(encoding="utf-8"))
    assert [layout["name"] for layout in stored["layouts"]] == ["WikiPage"]


def test_cli_analyze_layout_unknown_page(tmp_path: Path) -> None:
    fixture = tmp_path / "fixture.yaml"
    _write_fixture(fixture)

    result = runner.invoke(
        app,
        [
            "analyze-layout",
            "--fixture",
            str(fixture),
            "--out",
            str(tmp_path / "layouts.yaml"),
            "--page",
            "/sites/intranet/SitePages/missing.aspx",
        ],
    )

    assert result.exit_code == 1
    assert "unknown page(s)" in result.stdout
