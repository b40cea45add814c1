"""Run options, stages and results of a page transformation."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from modernizer.cache.models import ReplayCaptureData
from modernizer.layout.canvas import TargetPage


class Stage(str, Enum):
    """Pipeline stages in execution order. ``FAILED`` is terminal."""

    VALIDATE = "Validate"
    LOCATE_PAGE = "LocatePage"
    CREATE_OR_LOAD_TARGET = "CreateOrLoadTarget"
    ANALYZE_LAYOUT = "AnalyzeLayout"
    SCAN_CONTENT = "ScanContent"
    REWRITE_CONTENT = "RewriteContent"
    APPLY_LAYOUT = "ApplyLayout"
    APPLY_CONTENT = "ApplyContent"
    APPLY_HEADER = "ApplyHeader"
    CLEANUP = "Cleanup"
    PERSIST = "Persist"
    COPY_METADATA = "CopyMetadata"
    APPLY_PERMISSIONS = "ApplyPermissions"
    TELEMETRY = "Telemetry"
    DONE = "Done"
    FAILED = "Failed"


STAGE_ORDER: tuple[Stage, ...] = tuple(stage for stage in Stage if stage is not Stage.FAILED)


class ReplayMode(str, Enum):
    OFF = "off"
    CAPTURE = "capture"
    REPLAY = "replay"


class TransformationInformation(BaseModel):
    """Options of one page transformation run."""

    model_config = ConfigDict(extra="forbid")

    source_page_ref: str
    target_page_name: str | None = None
    target_web_url: str | None = None
    overwrite: bool = False
    replay_mode: ReplayMode = ReplayMode.OFF
    handle_wiki_images_and_videos: bool = True
    skip_url_rewrite: bool = False
    remove_empty_sections_and_columns: bool = True
    publish_created_page: bool = True
    disable_page_comments: bool = False
    keep_page_specific_permissions: bool = True
    keep_page_creation_modification_information: bool = False
    copy_page_metadata: bool = True
    skip_telemetry: bool = False
    version_comment: str = "Page modernized"


class TransformationWarning(BaseModel):
    """Non-fatal problem recorded during a run."""

    model_config = ConfigDict(extra="forbid")

    code: str
    stage: Stage
    message: str


class TransformationResult(BaseModel):
    """Outcome of a completed run."""

    model_config = ConfigDict(extra="forbid")

    page_ref: str
    target_page_ref: str
    stages: list[Stage] = Field(default_factory=list)
    page: TargetPage
    warnings: list[TransformationWarning] = Field(default_factory=list)
    replay_capture: ReplayCaptureData | None = None
    duration_ms: int = 0
