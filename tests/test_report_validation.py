from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson
import pytest

from contract.catalog import DIAGNOSTICS_JSONL, REPORT_SCHEMA_VERSION, SUMMARY_JSON
from contract.validation import ValidationMessage, validate_report


def _span(line: int) -> dict[str, Any]:
    return {
        "path": "src/Map.cs",
        "start_line": line,
        "start_col": 5,
        "end_line": line,
        "end_col": 20,
    }


def _record(**overrides: Any) -> dict[str, Any]:
    record = {
        "schema_version": REPORT_SCHEMA_VERSION,
        "diagnostic_id": "TH1002",
        "family": "TH1002",
        "severity": "error",
        "message": "The selector passed to 'Ignore' must be a simple member access",
        "src_span": _span(3),
        "call_span": _span(3),
        "method": "Ignore",
        "convention": "extension",
        "concern": "ignore",
        "reason": "method call",
    }
    record.update(overrides)
    return record


def _write_report(
    d: Path,
    records: list[dict[str, Any]],
    summary: dict[str, Any] | None = None,
) -> None:
    d.mkdir(parents=True, exist_ok=True)
    (d / DIAGNOSTICS_JSONL).write_bytes(
        b"".join(orjson.dumps(r) + b"\n" for r in records)
    )
    if summary is None:
        by_id: dict[str, int] = {}
        for r in records:
            by_id[r["diagnostic_id"]] = by_id.get(r["diagnostic_id"], 0) + 1
        summary = {
            "schema_version": REPORT_SCHEMA_VERSION,
            "file_count": 1,
            "call_count": len(records),
            "diagnostic_count": len(records),
            "by_id": by_id,
        }
    (d / SUMMARY_JSON).write_bytes(orjson.dumps(summary))


def test_valid_report_passes(tmp_path: Path) -> None:
    _write_report(tmp_path, [_record()])

    result = validate_report(tmp_path)

    assert result.ok
    assert result.warnings == []


def test_missing_report_dir(tmp_path: Path) -> None:
    missing = tmp_path / "missing"

    result = validate_report(missing)

    assert result.errors == [
        ValidationMessage(
            artifact="report_dir",
            path=missing,
            message="Report directory does not exist.",
        )
    ]


def test_missing_diagnostics_is_error_and_missing_summary_is_warning(
    tmp_path: Path,
) -> None:
    result = validate_report(tmp_path)

    assert [e.artifact for e in result.errors] == ["diagnostics"]
    assert [w.artifact for w in result.warnings] == ["summary"]


@pytest.mark.parametrize(
    ("overrides", "fragment"),
    [
        ({"diagnostic_id": "TH9999", "family": "TH9999"}, "Unknown diagnostic id"),
        ({"family": "TH1001"}, "belongs to family"),
        ({"schema_version": 99}, "Schema version mismatch"),
        ({"severity": "fatal"}, "Schema validation failed"),
    ],
)
def test_invalid_records_reported_with_line(
    tmp_path: Path, overrides: dict[str, Any], fragment: str
) -> None:
    _write_report(tmp_path, [_record(), _record(**overrides)])

    result = validate_report(tmp_path)

    diagnostics_errors = [e for e in result.errors if e.artifact == "diagnostics"]
    assert len(diagnostics_errors) == 1
    assert diagnostics_errors[0].line == 2
    assert fragment in diagnostics_errors[0].message


def test_invalid_json_line(tmp_path: Path) -> None:
    _write_report(tmp_path, [_record()])
    with (tmp_path / DIAGNOSTICS_JSONL).open("ab") as handle:
        handle.write(b"{not json\n")

    result = validate_report(tmp_path)

    messages = [e.message for e in result.errors if e.artifact == "diagnostics"]
    assert len(messages) == 1
    assert messages[0].startswith("Invalid JSON")


def test_summary_count_mismatch(tmp_path: Path) -> None:
    _write_report(
        tmp_path,
        [_record()],
        summary={
            "schema_version": REPORT_SCHEMA_VERSION,
            "file_count": 1,
            "call_count": 1,
            "diagnostic_count": 2,
            "by_id": {"TH1002": 2},
        },
    )

    result = validate_report(tmp_path)

    assert [e.message for e in result.errors] == [
        "Summary counts do not match diagnostics.jsonl."
    ]
    assert result.errors[0].location() == str(tmp_path / SUMMARY_JSON)
