"""Diagnostic sinks.

Per-file and per-section problems never abort an aggregation run; they are
reported here, keyed by subsystem (``detector``, ``parser``, ``normalizer``,
``reconciler``, ``tree``, ``discovery``) and the report or source file they
concern.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

import structlog

logger = structlog.get_logger()

DiagnosticLevel = Literal["warning", "error"]


class DiagnosticSink(Protocol):
    """Receives pipeline diagnostics. Implementations must not raise."""

    def warning(
        self, subsystem: str, message: str, *, source: str | None = None, **context: Any
    ) -> None: ...

    def error(
        self, subsystem: str, message: str, *, source: str | None = None, **context: Any
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A recorded diagnostic."""

    level: DiagnosticLevel
    subsystem: str
    message: str
    source: str | None = None
    context: dict[str, Any] = field(default_factory=dict)


class LoggingDiagnosticSink:
    """Forwards diagnostics to structlog."""

    def warning(
        self, subsystem: str, message: str, *, source: str | None = None, **context: Any
    ) -> None:
        logger.warning(message, subsystem=subsystem, source=source, **context)

    def error(
        self, subsystem: str, message: str, *, source: str | None = None, **context: Any
    ) -> None:
        logger.error(message, subsystem=subsystem, source=source, **context)


class CollectingDiagnosticSink(LoggingDiagnosticSink):
    """Logs diagnostics and keeps them for later inspection (CLI summary, tests)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._diagnostics: list[Diagnostic] = []

    @property
    def diagnostics(self) -> list[Diagnostic]:
        with self._lock:
            return list(self._diagnostics)

    def for_subsystem(self, subsystem: str) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.subsystem == subsystem]

    def _record(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._diagnostics.append(diagnostic)

    def warning(
        self, subsystem: str, message: str, *, source: str | None = None, **context: Any
    ) -> None:
        self._record(Diagnostic("warning", subsystem, message, source, context))
        super().warning(subsystem, message, source=source, **context)

    def error(
        self, subsystem: str, message: str, *, source: str | None = None, **context: Any
    ) -> None:
        self._record(Diagnostic("error", subsystem, message, source, context))
        super().error(subsystem, message, source=source, **context)
