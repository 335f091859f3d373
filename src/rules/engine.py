"""Selector rule pipeline: match -> locate -> classify -> emit.

Every call site is processed independently and no stage keeps state, so
compilation units can be analyzed on worker threads. Cancellation is checked
between call sites only.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from parse.treesitter_csharp import extract_calls_treesitter, parse_source
from rules.classifier import classify_selector
from rules.emitter import emit_diagnostics
from rules.locator import locate_selector
from rules.matcher import match_call
from rules.watched import build_watched_table

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable, Iterable, Sequence
    from pathlib import Path

    from contract.models import DiagnosticRecord
    from parse.syntax import CallExpression, CompilationUnit
    from rules.config import RulesConfig
    from rules.watched import WatchedMethodTable

logger = logging.getLogger(__name__)


class AnalysisCancelled(Exception):
    """Raised when the host cancels analysis between call sites."""


@dataclass(frozen=True)
class AnalysisSettings:
    max_chain_depth: int | None = 1
    match_unresolved_receivers: bool = False

    @classmethod
    def from_config(cls, rules: RulesConfig) -> AnalysisSettings:
        return cls(
            max_chain_depth=rules.max_chain_depth or None,
            match_unresolved_receivers=rules.match_unresolved_receivers,
        )


DEFAULT_SETTINGS = AnalysisSettings()


def analyze_call(
    call: CallExpression,
    table: WatchedMethodTable,
    *,
    path: str,
    settings: AnalysisSettings = DEFAULT_SETTINGS,
) -> tuple[DiagnosticRecord, ...]:
    """Run the four rule stages for a single call expression."""
    descriptor = match_call(
        call, table, match_unresolved_receivers=settings.match_unresolved_receivers
    )
    if descriptor is None:
        return ()

    located = locate_selector(descriptor)
    if located is None:
        logger.debug(
            "%s:%d: %s has no inline selector lambda",
            path,
            call.span.start_line,
            call.method_name,
        )
        return ()

    result = classify_selector(
        located.selector, max_chain_depth=settings.max_chain_depth
    )
    return emit_diagnostics(located, result, path=path)


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelled


def analyze_unit(
    unit: CompilationUnit,
    table: WatchedMethodTable,
    *,
    settings: AnalysisSettings = DEFAULT_SETTINGS,
    cancel_event: threading.Event | None = None,
) -> list[DiagnosticRecord]:
    """Analyze every call of a compilation unit in source order."""
    records: list[DiagnosticRecord] = []
    for call in sorted(unit.calls, key=lambda c: c.span.sort_key()):
        _check_cancelled(cancel_event)
        records.extend(analyze_call(call, table, path=unit.path, settings=settings))
    return records


def _record_sort_key(record: DiagnosticRecord) -> tuple[str, int, int, int, int]:
    span = record.call_span
    return (span.path, span.start_line, span.start_col, span.end_line, span.end_col)


def _run(
    func: Callable[[object], list[DiagnosticRecord]],
    items: Sequence[object],
    workers: int,
) -> list[DiagnosticRecord]:
    if workers <= 1 or len(items) <= 1:
        batches = [func(item) for item in items]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            batches = list(executor.map(func, items))

    records = [record for batch in batches for record in batch]
    # Stable sort keeps the per-call emission order (link before ignore).
    records.sort(key=_record_sort_key)
    return records


def analyze_units(
    units: Iterable[CompilationUnit],
    table: WatchedMethodTable,
    *,
    settings: AnalysisSettings = DEFAULT_SETTINGS,
    workers: int = 1,
    cancel_event: threading.Event | None = None,
) -> list[DiagnosticRecord]:
    """Analyze compilation units, concurrently when ``workers > 1``."""

    def run_one(unit: object) -> list[DiagnosticRecord]:
        return analyze_unit(
            unit,  # type: ignore[arg-type]
            table,
            settings=settings,
            cancel_event=cancel_event,
        )

    return _run(run_one, list(units), workers)


def analyze_files(
    file_paths: Iterable[Path],
    root: Path,
    table: WatchedMethodTable,
    *,
    settings: AnalysisSettings = DEFAULT_SETTINGS,
    workers: int = 1,
    cancel_event: threading.Event | None = None,
) -> tuple[list[DiagnosticRecord], int]:
    """Parse and analyze source files; returns records and the call count."""
    known_types = table.declaring_types
    fluent_methods = table.fluent_methods
    call_counts: list[int] = []

    def run_one(file_path: object) -> list[DiagnosticRecord]:
        _check_cancelled(cancel_event)
        unit = extract_calls_treesitter(
            str(file_path),
            str(root),
            known_static_types=known_types,
            fluent_methods=fluent_methods,
        )
        if unit is None:
            return []
        call_counts.append(len(unit.calls))
        logger.debug("%s: %d call sites", unit.path, len(unit.calls))
        return analyze_unit(
            unit, table, settings=settings, cancel_event=cancel_event
        )

    records = _run(run_one, list(file_paths), workers)
    return records, sum(call_counts)


def analyze_source(
    source: str | bytes,
    *,
    path: str = "<memory>.cs",
    table: WatchedMethodTable | None = None,
    settings: AnalysisSettings = DEFAULT_SETTINGS,
) -> list[DiagnosticRecord]:
    """Parse C# source text and return its diagnostics."""
    if table is None:
        table = build_watched_table()
    unit = parse_source(
        source,
        path=path,
        known_static_types=table.declaring_types,
        fluent_methods=table.fluent_methods,
    )
    return analyze_unit(unit, table, settings=settings)


__all__ = [
    "DEFAULT_SETTINGS",
    "AnalysisCancelled",
    "AnalysisSettings",
    "analyze_call",
    "analyze_files",
    "analyze_source",
    "analyze_unit",
    "analyze_units",
]
