"""Custom exceptions for page transformation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modernizer.orchestrator.models import Stage


class TransformationError(Exception):
    """Base class for errors that end a transformation run."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        stage: Stage | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.stage = stage


class ValidationError(TransformationError):
    """Raised when the source page is not eligible for transformation."""


class ConflictError(TransformationError):
    """Raised when the target page exists and overwrite is not allowed."""

    def __init__(self, message: str, *, target_page: str, stage: Stage | None = None) -> None:
        super().__init__(message, code="TARGET_EXISTS", stage=stage)
        self.target_page = target_page


class LookupFailure(TransformationError):
    """Raised when a collaborator cannot resolve an object the run depends on."""


class CriticalFailure(TransformationError):
    """Raised for any unexpected condition during the pipeline.

    The original exception is kept as ``__cause__``.
    """

    def __init__(self, message: str, *, stage: Stage | None = None) -> None:
        super().__init__(message, code="CRITICAL_ERROR", stage=stage)


class NonCriticalPersistenceWarning(Exception):
    """Recorded when a post-save step fails; never aborts the run."""

    def __init__(self, message: str, *, code: str, stage: Stage | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.stage = stage
