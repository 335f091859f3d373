from __future__ import annotations

from typing import TYPE_CHECKING

from artifacts.generators import DiagnosticsGenerator
from artifacts.utils import _get_output_dir_name
from contract.catalog import DIAGNOSTICS_JSONL, SUMMARY_JSON
from contract.models import DiagnosticRecord
from rules.config import load_config, resolve_output_dir
from rules.engine import AnalysisSettings
from rules.watched import build_watched_table

if TYPE_CHECKING:
    import threading
    from pathlib import Path

    from contract.models import DiagnosticsSummary
    from rules.config import SelectorLintConfig


def _make_generator(config: SelectorLintConfig) -> DiagnosticsGenerator:
    return DiagnosticsGenerator(
        build_watched_table(config),
        AnalysisSettings.from_config(config.rules),
        workers=config.rules.workers,
    )


def analyze_repository(
    *,
    root: Path,
    config: SelectorLintConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> tuple[list[DiagnosticRecord], DiagnosticsSummary]:
    """Analyze a repository and return its diagnostics without writing files."""
    if config is None:
        config = load_config(root)

    out_dir = resolve_output_dir(root, config.output_dir)
    return _make_generator(config).collect(
        root,
        output_dir=_get_output_dir_name(out_dir, root.resolve()),
        include_patterns=config.include,
        exclude_patterns=config.exclude,
        nested_gitignore=config.nested_gitignore,
        cancel_event=cancel_event,
    )


def generate_report(
    *,
    root: Path,
    out_dir: Path | None = None,
    config: SelectorLintConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> dict[str, object]:
    """Analyze a repository and write its selector-lint report.

    Args:
        root: Root directory of the repository to analyze
        out_dir: Optional output directory for the report files
        config: Optional configuration; loaded from the root when omitted
        cancel_event: Optional event checked between call sites

    Returns:
        Dictionary with counts, the diagnostics and the written file paths.
    """
    if config is None:
        config = load_config(root)

    if out_dir is None:
        out_dir = resolve_output_dir(root, config.output_dir)

    record_dicts, summary = _make_generator(config).generate(
        root=root,
        out_dir=out_dir,
        include_patterns=config.include,
        exclude_patterns=config.exclude,
        nested_gitignore=config.nested_gitignore,
        cancel_event=cancel_event,
    )
    diagnostics = [DiagnosticRecord(**d) for d in record_dicts]

    return {
        "file_count": summary["file_count"],
        "call_count": summary["call_count"],
        "diagnostic_count": len(diagnostics),
        "diagnostics": diagnostics,
        "artifacts": [str(out_dir / name) for name in (DIAGNOSTICS_JSONL, SUMMARY_JSON)],
    }
