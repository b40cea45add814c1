"""Typer CLI entrypoint for page-modernizer."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from apps.cli.io import (
    OutputPaths,
    build_output_paths,
    existing_output_files,
    write_error_report_atomic,
    write_transformation_output_atomic,
)
from modernizer.cache.manager import CacheManager
from modernizer.cache.models import ReplayCaptureData
from modernizer.content.scanner import scan_content_block
from modernizer.layout.analyzer import LayoutAnalyzer
from modernizer.layout.map_store import LayoutMapStore
from modernizer.layout.models import LayoutMappingModel
from modernizer.mapping.loader import load_component_mapping, load_layout_mappings
from modernizer.observers.events import LogEvent, LoggingObserver, MemoryObserver
from modernizer.orchestrator.models import ReplayMode, TransformationInformation
from modernizer.orchestrator.pipeline import PageTransformator
from modernizer.remote.memory import InMemoryContentRepository
from modernizer.utils.errors import TransformationError

app = typer.Typer(help="Legacy page modernization CLI", rich_markup_mode=None)


@app.callback()
def cli_callback(
    verbose: Annotated[bool, typer.Option("--verbose", help="Log debug events.")] = False,
) -> None:
    """Configure logging for every command."""

    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@app.command("transform")
def transform_command(
    fixture: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    page: Annotated[str, typer.Option(..., help="Source page reference.")],
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    component_mapping: Annotated[Path | None, typer.Option()] = None,
    layout_mapping: Annotated[Path | None, typer.Option()] = None,
    layout_override: Annotated[Path | None, typer.Option()] = None,
    target_name: Annotated[str | None, typer.Option()] = None,
    target_web_url: Annotated[str | None, typer.Option()] = None,
    replay_mode: Annotated[str, typer.Option()] = "off",
    replay_file: Annotated[
        Path | None,
        typer.Option(exists=True, dir_okay=False, help="Replay data captured by an earlier run."),
    ] = None,
    export_layouts: Annotated[
        Path | None,
        typer.Option(
            "--export-layouts",
            help="Write synthesized layout mappings as a reusable YAML mapping file.",
        ),
    ] = None,
    overwrite: Annotated[
        bool, typer.Option("--overwrite", help="Replace an existing target page.")
    ] = False,
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite outputs when they already exist.")
    ] = False,
) -> None:
    """Transform one page from a repository fixture and write the results."""

    paths = build_output_paths(out_dir)
    existing = existing_output_files(paths)
    if existing and not force:
        names = ", ".join(path.name for path in existing)
        typer.echo(f"ERROR: outputs already exist ({names}); use --force to overwrite.")
        raise typer.Exit(code=1)

    normalized_mode = replay_mode.lower().strip()
    if normalized_mode not in {mode.value for mode in ReplayMode}:
        typer.echo("ERROR: --replay-mode must be one of: off, capture, replay.")
        raise typer.Exit(code=1)
    if normalized_mode == ReplayMode.REPLAY.value and replay_file is None:
        typer.echo("ERROR: --replay-mode replay requires --replay-file.")
        raise typer.Exit(code=1)

    memory = MemoryObserver()
    cache = CacheManager()
    try:
        mapping = load_component_mapping(component_mapping)
        layouts = load_layout_mappings(layout_mapping, layout_override)
        repository = InMemoryContentRepository.from_yaml(fixture)
        if replay_file is not None:
            cache.set_replay_capture_data(_load_replay_data(replay_file))
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    transformator = PageTransformator(
        repository,
        cache,
        mapping,
        layouts,
        observers=[LoggingObserver(), memory],
    )
    info = TransformationInformation(
        source_page_ref=page,
        target_page_name=target_name,
        target_web_url=target_web_url,
        overwrite=overwrite,
        replay_mode=ReplayMode(normalized_mode),
    )

    try:
        result = transformator.transform(info)
    except TransformationError as exc:
        stage = exc.stage.value if exc.stage is not None else None
        _safe_write_error_report(paths, exc, stage, memory.events)
        typer.echo(f"ERROR({exc.code}): {exc}")
        raise typer.Exit(code=1) from exc

    write_transformation_output_atomic(paths, result, memory.events)
    if export_layouts is not None:
        LayoutMapStore(export_layouts).save(cache.generated_layout_mappings())
        typer.echo(f"INFO: wrote layout mappings to {export_layouts}")

    for warning in result.warnings:
        typer.echo(f"WARNING({warning.code}): {warning.message}")
    typer.echo(f"INFO: transformed {result.page_ref} -> {result.target_page_ref}")
    raise typer.Exit(code=0)


@app.command("scan")
def scan_command(
    html: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    row: Annotated[int, typer.Option()] = 0,
    column: Annotated[int, typer.Option()] = 0,
) -> None:
    """Print the component records found in an HTML block as JSON."""

    result = scan_content_block(html.read_text(encoding="utf-8"), row, column)
    typer.echo(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))


@app.command("analyze-layout")
def analyze_layout_command(
    fixture: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    out: Annotated[Path, typer.Option(...)],
    page: Annotated[
        list[str] | None, typer.Option(help="Page reference; all fixture pages when omitted.")
    ] = None,
) -> None:
    """Synthesize layout mappings for fixture pages and store them as YAML."""

    try:
        repository = InMemoryContentRepository.from_yaml(fixture)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    if page:
        snapshots = [repository.read_page(ref) for ref in page]
        missing = [ref for ref, snapshot in zip(page, snapshots) if snapshot is None]
        if missing:
            typer.echo(f"ERROR: unknown page(s): {', '.join(missing)}")
            raise typer.Exit(code=1)
    else:
        snapshots = repository.pages()

    analyzer = LayoutAnalyzer()
    layouts: dict[str, LayoutMappingModel] = {}
    for snapshot in snapshots:
        if snapshot is None or snapshot.kind not in {"WikiPage", "PublishingPage"}:
            continue
        layout = analyzer.analyze(snapshot)
        layouts.setdefault(layout.name.lower(), layout)

    LayoutMapStore(out).save(list(layouts.values()))
    typer.echo(f"INFO: wrote {len(layouts)} layout mapping(s) to {out}")


def _load_replay_data(path: Path) -> ReplayCaptureData:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in replay file: {path}") from exc
    try:
        return ReplayCaptureData.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid replay file schema: {path}") from exc


def _safe_write_error_report(
    paths: OutputPaths,
    exc: TransformationError,
    stage: str | None,
    events: list[LogEvent],
) -> None:
    try:
        write_error_report_atomic(
            paths,
            error_type=type(exc).__name__,
            error_message=str(exc),
            code=exc.code,
            stage=stage,
            events=events,
        )
    except OSError as write_exc:
        typer.echo(f"ERROR: report write failed: {write_exc}")


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
