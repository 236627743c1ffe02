# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Structured diagnostics emitted while scanning, plus timing helpers."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TypeAlias


class DiagnosticLevel(str, Enum):
    """Enumerate severities attached to scan diagnostics."""

    DEBUG = "debug"
    WARNING = "warning"
    ERROR = "error"

    @property
    def logging_level(self) -> int:
        """Return the :mod:`logging` level matching this severity."""

        return {
            DiagnosticLevel.DEBUG: logging.DEBUG,
            DiagnosticLevel.WARNING: logging.WARNING,
            DiagnosticLevel.ERROR: logging.ERROR,
        }[self]


@dataclass(frozen=True, slots=True)
class ScanDiagnostic:
    """Describe a recoverable problem encountered during a scan."""

    message: str
    level: DiagnosticLevel = DiagnosticLevel.WARNING
    path: Path | None = None
    artifact: str | None = None
    error: BaseException | None = None


DiagnosticSink: TypeAlias = Callable[[ScanDiagnostic], None]


def log_diagnostic(logger: logging.Logger, diagnostic: ScanDiagnostic) -> None:
    """Record ``diagnostic`` on ``logger`` at its mapped severity.

    Args:
        logger: Logger receiving the record.
        diagnostic: Diagnostic to render.
    """

    logger.log(
        diagnostic.level.logging_level,
        "%s",
        diagnostic.message,
        exc_info=diagnostic.error if diagnostic.level is DiagnosticLevel.ERROR else None,
    )


@dataclass(slots=True)
class DiagnosticCollector:
    """Sink that keeps every diagnostic it receives, in order."""

    diagnostics: list[ScanDiagnostic] = field(default_factory=list)

    def __call__(self, diagnostic: ScanDiagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def messages(self) -> tuple[str, ...]:
        return tuple(diagnostic.message for diagnostic in self.diagnostics)


@contextmanager
def timed_operation(logger: logging.Logger, operation: str) -> Iterator[None]:
    """Log the start and completion of ``operation`` with its duration.

    Args:
        logger: Logger receiving the start and completion records.
        operation: Human-readable operation name.

    Yields:
        None: Control returns to the caller while the operation runs.
    """

    if not logger.isEnabledFor(logging.INFO):
        yield
        return
    logger.info("Starting operation: %s", operation)
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.info("Completed operation: %s in %.1fms", operation, elapsed_ms)


__all__ = [
    "DiagnosticCollector",
    "DiagnosticLevel",
    "DiagnosticSink",
    "ScanDiagnostic",
    "log_diagnostic",
    "timed_operation",
]
