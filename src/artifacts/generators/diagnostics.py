"""Diagnostics report generator."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Any

from artifacts.utils import _get_output_dir_name, _write_json, _write_jsonl
from contract.catalog import DIAGNOSTICS_JSONL, SUMMARY_JSON
from contract.models import DiagnosticsSummary
from rules.engine import DEFAULT_SETTINGS, analyze_files
from scan.files import find_source_files

if TYPE_CHECKING:
    import threading
    from pathlib import Path

    from contract.models import DiagnosticRecord
    from rules.engine import AnalysisSettings
    from rules.watched import WatchedMethodTable

logger = logging.getLogger(__name__)


class DiagnosticsGenerator:
    """Generates diagnostics.jsonl and summary.json from C# source files."""

    def __init__(
        self,
        table: WatchedMethodTable,
        settings: AnalysisSettings = DEFAULT_SETTINGS,
        *,
        workers: int = 1,
    ) -> None:
        self.table = table
        self.settings = settings
        self.workers = workers

    @property
    def name(self) -> str:
        """Generator name for logging and identification."""
        return "diagnostics"

    def collect(
        self,
        root: Path,
        *,
        output_dir: str = "",
        include_patterns: list[str] | None = None,
        exclude_patterns: list[str] | None = None,
        nested_gitignore: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> tuple[list[DiagnosticRecord], DiagnosticsSummary]:
        """Analyze the repository without writing anything."""
        files = list(
            find_source_files(
                root,
                output_dir=output_dir,
                include_patterns=include_patterns,
                exclude_patterns=exclude_patterns,
                nested_gitignore=nested_gitignore,
            )
        )
        logger.info("%s: analyzing %d files under %s", self.name, len(files), root)

        records, call_count = analyze_files(
            files,
            root,
            self.table,
            settings=self.settings,
            workers=self.workers,
            cancel_event=cancel_event,
        )

        by_id = Counter(record.diagnostic_id for record in records)
        summary = DiagnosticsSummary(
            file_count=len(files),
            call_count=call_count,
            diagnostic_count=len(records),
            by_id=dict(sorted(by_id.items())),
        )
        return records, summary

    def generate(
        self,
        root: Path,
        out_dir: Path,
        include_patterns: list[str] | None = None,
        exclude_patterns: list[str] | None = None,
        nested_gitignore: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> tuple[list[dict[str, Any]], dict[str, Any]]:
        """Analyze the repository and write the report files."""
        out_dir.mkdir(parents=True, exist_ok=True)

        records, summary = self.collect(
            root,
            output_dir=_get_output_dir_name(out_dir, root),
            include_patterns=include_patterns,
            exclude_patterns=exclude_patterns,
            nested_gitignore=nested_gitignore,
            cancel_event=cancel_event,
        )

        _write_jsonl(out_dir / DIAGNOSTICS_JSONL, records)
        _write_json(out_dir / SUMMARY_JSON, summary)

        record_dicts = [record.model_dump() for record in records]
        return record_dicts, summary.model_dump()


__all__ = ["DIAGNOSTICS_JSONL", "SUMMARY_JSON", "DiagnosticsGenerator"]
