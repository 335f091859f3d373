"""Validation helpers for written selector-lint reports."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import orjson
from pydantic import ValidationError

from contract.catalog import (
    DIAGNOSTIC_CATALOG,
    DIAGNOSTICS_JSONL,
    REPORT_SCHEMA_VERSION,
    SUMMARY_JSON,
)
from contract.models import DiagnosticRecord, DiagnosticsSummary

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True)
class ValidationMessage:
    artifact: str
    path: Path
    message: str
    line: int | None = None

    def location(self) -> str:
        if self.line is None:
            return str(self.path)
        return f"{self.path}:{self.line}"

    def to_dict(self) -> dict[str, object]:
        return {
            "artifact": self.artifact,
            "path": str(self.path),
            "line": self.line,
            "message": self.message,
        }


@dataclass
class ValidationResult:
    errors: list[ValidationMessage] = field(default_factory=list)
    warnings: list[ValidationMessage] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _check_catalog(record: DiagnosticRecord) -> str | None:
    descriptor = DIAGNOSTIC_CATALOG.get(record.diagnostic_id)
    if descriptor is None:
        return f"Unknown diagnostic id '{record.diagnostic_id}'."
    if descriptor.family != record.family:
        return (
            f"Diagnostic '{record.diagnostic_id}' belongs to family "
            f"'{descriptor.family}', got '{record.family}'."
        )
    return None


def _validate_diagnostics(
    path: Path, result: ValidationResult
) -> Counter[str] | None:
    try:
        handle = path.open("rb")
    except OSError as exc:
        result.errors.append(
            ValidationMessage(
                artifact="diagnostics",
                path=path,
                message=f"Failed to read file: {exc}.",
            )
        )
        return None

    counts: Counter[str] = Counter()
    with handle:
        for line_number, raw_line in enumerate(handle, 1):
            line = raw_line.strip()
            if not line:
                continue
            try:
                data = orjson.loads(line)
            except orjson.JSONDecodeError as exc:
                result.errors.append(
                    ValidationMessage(
                        artifact="diagnostics",
                        path=path,
                        line=line_number,
                        message=f"Invalid JSON: {exc}.",
                    )
                )
                continue

            try:
                record = DiagnosticRecord.model_validate(data)
            except ValidationError as exc:
                result.errors.append(
                    ValidationMessage(
                        artifact="diagnostics",
                        path=path,
                        line=line_number,
                        message=f"Schema validation failed: {exc}.",
                    )
                )
                continue

            problem = _check_catalog(record)
            if problem is None and record.schema_version != REPORT_SCHEMA_VERSION:
                problem = (
                    "Schema version mismatch: "
                    f"expected {REPORT_SCHEMA_VERSION}, got {record.schema_version}."
                )
            if problem is not None:
                result.errors.append(
                    ValidationMessage(
                        artifact="diagnostics",
                        path=path,
                        line=line_number,
                        message=problem,
                    )
                )
                continue

            counts[record.diagnostic_id] += 1

    return counts


def _validate_summary(
    path: Path, counts: Counter[str] | None, result: ValidationResult
) -> None:
    try:
        summary = DiagnosticsSummary.model_validate(orjson.loads(path.read_bytes()))
    except (OSError, orjson.JSONDecodeError) as exc:
        result.errors.append(
            ValidationMessage(
                artifact="summary", path=path, message=f"Invalid JSON: {exc}."
            )
        )
        return
    except ValidationError as exc:
        result.errors.append(
            ValidationMessage(
                artifact="summary",
                path=path,
                message=f"Schema validation failed: {exc}.",
            )
        )
        return

    if counts is None:
        return

    if summary.diagnostic_count != sum(counts.values()) or summary.by_id != dict(
        counts
    ):
        result.errors.append(
            ValidationMessage(
                artifact="summary",
                path=path,
                message="Summary counts do not match diagnostics.jsonl.",
            )
        )


def validate_report(report_dir: Path) -> ValidationResult:
    """Validate diagnostics.jsonl and summary.json inside ``report_dir``."""
    result = ValidationResult()

    if not report_dir.exists():
        result.errors.append(
            ValidationMessage(
                artifact="report_dir",
                path=report_dir,
                message="Report directory does not exist.",
            )
        )
        return result

    if not report_dir.is_dir():
        result.errors.append(
            ValidationMessage(
                artifact="report_dir",
                path=report_dir,
                message="Report path is not a directory.",
            )
        )
        return result

    counts: Counter[str] | None = None
    diagnostics_path = report_dir / DIAGNOSTICS_JSONL
    if diagnostics_path.exists():
        counts = _validate_diagnostics(diagnostics_path, result)
    else:
        result.errors.append(
            ValidationMessage(
                artifact="diagnostics",
                path=diagnostics_path,
                message="Required report file is missing.",
            )
        )

    summary_path = report_dir / SUMMARY_JSON
    if summary_path.exists():
        _validate_summary(summary_path, counts, result)
    else:
        result.warnings.append(
            ValidationMessage(
                artifact="summary",
                path=summary_path,
                message="Summary file is missing.",
            )
        )

    return result


__all__ = [
    "ValidationMessage",
    "ValidationResult",
    "validate_report",
]
