"""Transformation events and the observers receiving them."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Protocol

Severity = Literal["debug", "info", "warning", "error", "critical"]

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


@dataclass(frozen=True)
class LogEvent:
    """Single event raised while a page is transformed."""

    severity: Severity
    heading: str
    message: str
    stage: str | None = None
    cause: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


class Observer(Protocol):
    """Receiver of transformation events."""

    def notify(self, event: LogEvent) -> None:
        """Handle one event. Must not raise."""


class LoggingObserver:
    """Forward events to a standard library logger as JSON payloads."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("modernizer.transform")

    def notify(self, event: LogEvent) -> None:
        payload = {"event": event.heading, **asdict(event)}
        self._logger.log(_LEVELS[event.severity], _dump_json(payload))


class MemoryObserver:
    """Keep every event in memory; used by the CLI report and tests."""

    def __init__(self) -> None:
        self.events: list[LogEvent] = []

    def notify(self, event: LogEvent) -> None:
        self.events.append(event)

    def with_severity(self, severity: Severity) -> list[LogEvent]:
        return [event for event in self.events if event.severity == severity]

    def headings(self) -> list[str]:
        return [event.heading for event in self.events]


def dispatch(observers: list[Observer], event: LogEvent) -> None:
    for observer in observers:
        observer.notify(event)


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"), default=str
    )
