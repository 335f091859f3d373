"""Idempotence verification for selector-lint reports."""

from __future__ import annotations

import filecmp
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from artifacts.write import generate_report

if TYPE_CHECKING:
    from rules.config import SelectorLintConfig


@dataclass(frozen=True)
class DeterminismResult:
    ok: bool
    mismatches: tuple[str, ...] = field(default_factory=tuple)
    missing: tuple[str, ...] = field(default_factory=tuple)
    extra: tuple[str, ...] = field(default_factory=tuple)


def _list_relative_files(root: Path) -> set[Path]:
    return {path.relative_to(root) for path in root.rglob("*") if path.is_file()}


def verify_determinism(
    *,
    root: Path,
    report_dir: Path,
    config: SelectorLintConfig | None = None,
) -> DeterminismResult:
    """Verify that re-analyzing the repository reproduces an existing report.

    Regenerates the report into a temporary directory and compares it
    byte-for-byte with ``report_dir``, on relative paths.

    Raises:
        FileNotFoundError: If report_dir does not exist.
        NotADirectoryError: If report_dir is not a directory.
    """
    if not report_dir.exists():
        msg = f"Report directory does not exist: {report_dir}"
        raise FileNotFoundError(msg)
    if not report_dir.is_dir():
        msg = f"Report path is not a directory: {report_dir}"
        raise NotADirectoryError(msg)

    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        generate_report(root=root, out_dir=temp_path, config=config)

        original_files = _list_relative_files(report_dir)
        regenerated_files = _list_relative_files(temp_path)

        missing = sorted(str(path) for path in original_files - regenerated_files)
        extra = sorted(str(path) for path in regenerated_files - original_files)
        mismatches = sorted(
            str(path)
            for path in original_files & regenerated_files
            if not filecmp.cmp(report_dir / path, temp_path / path, shallow=False)
        )

    ok = not missing and not extra and not mismatches
    return DeterminismResult(
        ok=ok,
        mismatches=tuple(mismatches),
        missing=tuple(missing),
        extra=tuple(extra),
    )
