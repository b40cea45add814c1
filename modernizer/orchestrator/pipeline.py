"""Orchestration pipeline turning one legacy page into a modern target page."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, TypeVar

from modernizer.cache.manager import CacheManager
from modernizer.cache.models import ReplayCaptureData
from modernizer.components.models import ComponentRecord
from modernizer.components.resolver import ComponentResolver
from modernizer.content.media_splitter import split_inline_media
from modernizer.content.url_rewriter import build_url_mappings, rewrite_records
from modernizer.layout.analyzer import resolve_layout_mapping
from modernizer.layout.canvas import (
    MAX_COLUMNS,
    TargetPage,
    build_sections,
    remove_empty_sections_and_columns,
    remove_empty_text_controls,
)
from modernizer.layout.models import LayoutMappingModel
from modernizer.mapping.models import ComponentMappingConfig
from modernizer.observers.events import LogEvent, LoggingObserver, Observer, Severity, dispatch
from modernizer.orchestrator.content import ContentPlacer, build_header, collect_records
from modernizer.orchestrator.metadata import TARGET_PAGES_LIST, MetadataCopier
from modernizer.orchestrator.models import (
    STAGE_ORDER,
    ReplayMode,
    Stage,
    TransformationInformation,
    TransformationResult,
    TransformationWarning,
)
from modernizer.remote.client import ContentRepository, PageSnapshot
from modernizer.utils.errors import (
    ConflictError,
    CriticalFailure,
    LookupFailure,
    NonCriticalPersistenceWarning,
    TransformationError,
    ValidationError,
)

logger = logging.getLogger("modernizer.transform")

WIKI_PAGES_LIBRARY = "sitepages"
IN_PLACE_TARGET_PREFIX = "Migrated_"

_REJECTED_KINDS = {
    "ClientSidePage": ("PAGE_IS_MODERN", "Page is already a modern page"),
    "AspxPage": ("PAGE_IS_BASIC_ASPX", "Basic aspx pages cannot be transformed"),
}
_SUPPORTED_KINDS = {"WikiPage", "PublishingPage"}

T = TypeVar("T")


@dataclass
class _Run:
    """Mutable state of one transformation run."""

    info: TransformationInformation
    stage: Stage = Stage.VALIDATE
    stages: list[Stage] = field(default_factory=list)
    warnings: list[TransformationWarning] = field(default_factory=list)
    pages_library: str = ""
    folder: str = ""
    target_ref: str = ""
    layout: LayoutMappingModel | None = None
    records: list[ComponentRecord] = field(default_factory=list)
    replay_capture: ReplayCaptureData | None = None


class PageTransformator:
    """Run the forward-only stage sequence for wiki and publishing pages.

    Fatal problems raise a :class:`TransformationError`; failures after the
    page is saved are recorded as warnings on the result. Nothing is rolled
    back.
    """

    def __init__(
        self,
        client: ContentRepository,
        cache: CacheManager,
        component_mapping: ComponentMappingConfig,
        layout_mappings: list[LayoutMappingModel] | None = None,
        observers: list[Observer] | None = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._component_mapping = component_mapping
        self._layout_mappings = list(layout_mappings or [])
        self._observers: list[Observer] = (
            list(observers) if observers is not None else [LoggingObserver()]
        )
        self._metadata = MetadataCopier(client, cache)

    def transform(self, info: TransformationInformation) -> TransformationResult:
        start = time.perf_counter()
        run = _Run(info=info)
        _log_event(logging.INFO, "transform_started", info.source_page_ref)

        try:
            self._advance(run, Stage.VALIDATE)
            page = self._validate(info)

            self._advance(run, Stage.LOCATE_PAGE)
            self._locate(run, page)

            self._advance(run, Stage.CREATE_OR_LOAD_TARGET)
            target = self._create_target(run, page)

            self._advance(run, Stage.ANALYZE_LAYOUT)
            layout = resolve_layout_mapping(page, self._layout_mappings, self._cache)
            run.layout = layout
            target.layout_name = layout.name

            self._advance(run, Stage.SCAN_CONTENT)
            resolver = ComponentResolver(
                self._client,
                self._component_mapping,
                self._observers,
                stage=Stage.SCAN_CONTENT.value,
            )
            run.records = collect_records(page, layout, resolver)

            self._advance(run, Stage.REWRITE_CONTENT)
            self._rewrite(run, page)

            self._advance(run, Stage.APPLY_LAYOUT)
            self._apply_layout(run, target, layout)

            self._advance(run, Stage.APPLY_CONTENT)
            self._apply_content(run, target, page)

            self._advance(run, Stage.APPLY_HEADER)
            target.header = build_header(layout.header, page)

            self._advance(run, Stage.CLEANUP)
            removed = remove_empty_text_controls(target)
            if removed:
                self._notify(run, "debug", "empty_text_removed", f"Removed {removed} text controls")
            if info.remove_empty_sections_and_columns:
                remove_empty_sections_and_columns(target)

            self._advance(run, Stage.PERSIST)
            self._persist(run, target)

            self._advance(run, Stage.COPY_METADATA)
            if info.copy_page_metadata:
                self._guarded(
                    run, "METADATA_COPY_FAILED", lambda: self._copy_metadata(run, target, page)
                )

            self._advance(run, Stage.APPLY_PERMISSIONS)
            if info.keep_page_specific_permissions and page.has_unique_role_assignments:
                self._guarded(
                    run, "PERMISSIONS_COPY_FAILED", lambda: self._apply_permissions(run, page)
                )

            self._advance(run, Stage.TELEMETRY)
            duration_ms = _elapsed_ms(start)
            if not info.skip_telemetry:
                self._notify(
                    run,
                    "info",
                    "telemetry",
                    "Page transformed",
                    page_kind=page.kind,
                    duration_ms=duration_ms,
                    layout=layout.name,
                )

            self._advance(run, Stage.DONE)
        except TransformationError as exc:
            if exc.stage is None:
                exc.stage = run.stage
            self._fail(run, str(exc), code=exc.code)
            raise
        except Exception as exc:
            self._fail(run, str(exc), code="CRITICAL_ERROR", severity="critical")
            raise CriticalFailure(
                f"Page transformation failed in stage {run.stage.value}: {exc}", stage=run.stage
            ) from exc

        _log_event(
            logging.INFO,
            "transform_completed",
            info.source_page_ref,
            target=run.target_ref,
            warnings=len(run.warnings),
            duration_ms=duration_ms,
        )
        return TransformationResult(
            page_ref=page.page_ref,
            target_page_ref=run.target_ref,
            stages=list(run.stages),
            page=target,
            warnings=list(run.warnings),
            replay_capture=run.replay_capture,
            duration_ms=duration_ms,
        )

    def _validate(self, info: TransformationInformation) -> PageSnapshot:
        page = self._client.read_page(info.source_page_ref)
        if page is None:
            raise ValidationError(
                f"Source page not found: {info.source_page_ref}",
                code="PAGE_NOT_VALID",
                stage=Stage.VALIDATE,
            )
        if not page.fields.get("FileRef") or not page.fields.get("FileDirRef"):
            raise ValidationError(
                f"Source page has no file reference: {info.source_page_ref}",
                code="PAGE_NOT_VALID",
                stage=Stage.VALIDATE,
            )
        if page.kind in _REJECTED_KINDS:
            code, message = _REJECTED_KINDS[page.kind]
            raise ValidationError(message, code=code, stage=Stage.VALIDATE)
        if page.kind not in _SUPPORTED_KINDS:
            raise ValidationError(
                f"Unsupported page kind: {page.kind}",
                code="PAGE_KIND_UNSUPPORTED",
                stage=Stage.VALIDATE,
            )
        return page

    def _locate(self, run: _Run, page: PageSnapshot) -> None:
        if page.kind == "WikiPage":
            run.pages_library = WIKI_PAGES_LIBRARY
        else:
            run.pages_library = self._cache.get_pages_library(
                page.locale, self._client.fetch_localized_string
            )
            if not in_library(str(page.fields["FileDirRef"]), run.pages_library):
                raise LookupFailure(
                    f"Pages library '{run.pages_library}' not found for {page.page_ref}",
                    code="PAGES_LIBRARY_MISSING",
                    stage=Stage.LOCATE_PAGE,
                )
        run.folder = page_folder(str(page.fields["FileDirRef"]), run.pages_library)

    def _create_target(self, run: _Run, page: PageSnapshot) -> TargetPage:
        info = run.info
        source_name = str(
            page.fields.get("FileLeafRef") or PurePosixPath(str(page.fields["FileRef"])).name
        )
        name = info.target_page_name or source_name
        in_place = info.target_web_url is None and run.pages_library == WIKI_PAGES_LIBRARY
        if in_place and info.target_page_name is None:
            name = f"{IN_PLACE_TARGET_PREFIX}{source_name}"

        web_url = (info.target_web_url or page.web_url).rstrip("/")
        folder = f"{run.folder}/" if run.folder else ""
        run.target_ref = f"{web_url}/{TARGET_PAGES_LIST}/{folder}{name}"

        lookup = self._client.lookup_page(run.target_ref)
        if lookup.status == "error":
            raise LookupFailure(
                f"Could not check target page {run.target_ref}: {lookup.detail}",
                code="TARGET_LOOKUP_FAILED",
                stage=Stage.CREATE_OR_LOAD_TARGET,
            )
        if lookup.status == "found" and not info.overwrite:
            raise ConflictError(
                f"Target page already exists: {run.target_ref}",
                target_page=run.target_ref,
                stage=Stage.CREATE_OR_LOAD_TARGET,
            )

        title = page.fields.get("Title") or PurePosixPath(source_name).stem
        return TargetPage(name=name, folder=run.folder, title=str(title))

    def _rewrite(self, run: _Run, page: PageSnapshot) -> None:
        if run.info.handle_wiki_images_and_videos:
            run.records = split_inline_media(run.records)
        if run.info.skip_url_rewrite or not page.web_url:
            return
        mappings = build_url_mappings(
            page.web_url,
            run.info.target_web_url or page.web_url,
            run.pages_library,
        )
        run.records = rewrite_records(run.records, mappings)

    def _apply_layout(self, run: _Run, target: TargetPage, layout: LayoutMappingModel) -> None:
        cells = [
            (placeholder.row, placeholder.column)
            for placeholder in layout.placeholders
            if placeholder.kind != "wiki"
        ]
        cells.extend((record.row, record.column) for record in run.records)
        cells = [(row, min(column, MAX_COLUMNS - 1)) for row, column in cells]
        target.sections = build_sections(cells)

    def _apply_content(self, run: _Run, target: TargetPage, page: PageSnapshot) -> None:
        site_ref = run.info.target_web_url or page.site_ref or page.web_url
        catalog = self._cache.get_component_catalog(
            site_ref, lambda: self._client.fetch_component_catalog(site_ref)
        )
        placer = ContentPlacer(
            self._component_mapping,
            catalog,
            notify=lambda event: dispatch(self._observers, event),
            stage=Stage.APPLY_CONTENT.value,
        )

        replay: ReplayCaptureData | None = None
        if run.info.replay_mode is ReplayMode.REPLAY:
            replay = self._cache.get_replay_capture_data(page.page_id or page.page_ref)
            if replay is None:
                self._notify(run, "warning", "replay_data_missing", "No replay data for page")

        capture_id: str | None = None
        if run.info.replay_mode is ReplayMode.CAPTURE:
            capture_id = page.page_id or page.page_ref

        run.replay_capture = placer.place(
            target,
            run.records,
            replay=replay,
            capture_page_id=capture_id,
            page_url=page.page_ref,
        )

    def _persist(self, run: _Run, target: TargetPage) -> None:
        info = run.info
        target.comments_disabled = info.disable_page_comments
        self._client.save_page(run.target_ref, target)

        self._guarded(
            run,
            "PAGE_STAMP_FAILED",
            lambda: self._client.stamp_page(
                run.target_ref, info.version_comment, info.publish_created_page
            ),
        )
        if info.disable_page_comments:
            self._guarded(
                run,
                "COMMENTS_DISABLE_FAILED",
                lambda: self._client.disable_comments(run.target_ref),
            )

    def _copy_metadata(self, run: _Run, target: TargetPage, page: PageSnapshot) -> None:
        values = self._metadata.collect_values(
            page,
            run.layout,
            keep_author_info=run.info.keep_page_creation_modification_information,
        )
        if not values:
            return
        self._client.update_page_metadata(run.target_ref, values)
        target.metadata = values
        target.content_type_id = values.get("ContentTypeId")

    def _apply_permissions(self, run: _Run, page: PageSnapshot) -> None:
        grants = self._metadata.permission_grants(page)
        if grants:
            self._client.apply_permissions(run.target_ref, grants)

    def _guarded(self, run: _Run, code: str, action: Callable[[], T]) -> T | None:
        """Run a post-save step; a failure becomes a warning on the result."""

        try:
            return action()
        except Exception as exc:
            warning = NonCriticalPersistenceWarning(str(exc), code=code, stage=run.stage)
            run.warnings.append(
                TransformationWarning(code=warning.code, stage=run.stage, message=str(warning))
            )
            self._notify(run, "warning", code.lower(), str(exc), cause=type(exc).__name__)
            return None

    def _advance(self, run: _Run, stage: Stage) -> None:
        if run.stages and STAGE_ORDER.index(stage) <= STAGE_ORDER.index(run.stages[-1]):
            raise RuntimeError(f"Stage {stage.value} cannot follow {run.stages[-1].value}")
        run.stage = stage
        run.stages.append(stage)
        self._notify(run, "debug", "stage_entered", stage.value)

    def _fail(self, run: _Run, message: str, *, code: str, severity: Severity = "error") -> None:
        failed_in = run.stage
        run.stages.append(Stage.FAILED)
        self._notify(run, severity, "transform_failed", message, code=code, stage=failed_in.value)
        _log_event(
            logging.ERROR,
            "transform_failed",
            run.info.source_page_ref,
            stage=failed_in.value,
            code=code,
        )

    def _notify(
        self,
        run: _Run,
        severity: Severity,
        heading: str,
        message: str,
        cause: str | None = None,
        **details: Any,
    ) -> None:
        stage = details.pop("stage", run.stage.value)
        dispatch(
            self._observers,
            LogEvent(
                severity=severity,
                heading=heading,
                message=message,
                stage=stage,
                cause=cause,
                details=details,
            ),
        )


def in_library(file_dir_ref: str, pages_library: str) -> bool:
    return pages_library.lower() in (part.lower() for part in file_dir_ref.split("/"))


def page_folder(file_dir_ref: str, pages_library: str) -> str:
    """Folder of the page below the root of its pages library."""

    parts = [part for part in file_dir_ref.split("/") if part]
    lowered = [part.lower() for part in parts]
    if not in_library(file_dir_ref, pages_library):
        return ""
    index = lowered.index(pages_library.lower())
    return "/".join(parts[index + 1 :])


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _log_event(level: int, event: str, page_ref: str, **fields: Any) -> None:
    payload = {
        "event": event,
        "page_ref": page_ref,
        **fields,
    }
    logger.log(level, _dump_json(payload))


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
