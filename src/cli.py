"""Command-line interface for selector-lint."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

from artifacts import generate_report
from artifacts.write import analyze_repository
from contract.validation import validate_report
from rules.config import ConfigError, load_config
from verify.verify import verify_determinism


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Repository root (default: .)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="selector-lint")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check", help="Analyze C# sources and print diagnostics"
    )
    _add_common_paths(check_parser)
    check_parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text)",
    )

    generate_parser = subparsers.add_parser("generate", help="Write the report files")
    _add_common_paths(generate_parser)
    generate_parser.add_argument(
        "--out-dir",
        default=None,
        help="Output directory for the report (default: config output dir)",
    )

    validate_parser = subparsers.add_parser("validate", help="Validate report files")
    _add_common_paths(validate_parser)
    validate_parser.add_argument(
        "--report-dir",
        default=None,
        help="Report directory (default: config output dir)",
    )

    verify_parser = subparsers.add_parser(
        "verify", help="Verify that re-analysis reproduces the report"
    )
    _add_common_paths(verify_parser)
    verify_parser.add_argument(
        "--report-dir",
        default=None,
        help="Report directory (default: config output dir)",
    )

    return parser


def _resolve_output_dir(out_dir: str | None) -> Path | None:
    if out_dir is None:
        return None
    return Path(out_dir).expanduser().resolve()


def _resolve_report_dir(root: Path, report_dir: str | None) -> Path:
    if report_dir is None:
        config = load_config(root)
        return (root / config.output_dir).resolve()
    return Path(report_dir).expanduser().resolve()


def _handle_check(root: Path, output_format: str) -> int:
    diagnostics, _ = analyze_repository(root=root)
    for record in diagnostics:
        if output_format == "json":
            sys.stdout.write(
                orjson.dumps(record.model_dump(), option=orjson.OPT_SORT_KEYS).decode()
            )
            sys.stdout.write("\n")
        else:
            sys.stdout.write(
                f"{record.location()}: {record.severity} "
                f"{record.diagnostic_id} {record.message}\n"
            )
    return 1 if diagnostics else 0


def _handle_generate(root: Path, out_dir: str | None) -> int:
    result = generate_report(root=root, out_dir=_resolve_output_dir(out_dir))
    sys.stderr.write(
        f"{result['diagnostic_count']} diagnostics in {result['file_count']} files\n"
    )
    return 0


def _handle_validate(root: Path, report_dir: str | None) -> int:
    resolved_report_dir = _resolve_report_dir(root, report_dir)
    result = validate_report(resolved_report_dir)
    for warning in result.warnings:
        sys.stderr.write(f"{warning.location()}: warning: {warning.message}\n")
    if result.errors:
        for error in result.errors:
            sys.stderr.write(f"{error.location()}: {error.message}\n")
        return 1
    return 0


def _handle_verify(root: Path, report_dir: str | None) -> int:
    resolved_report_dir = _resolve_report_dir(root, report_dir)
    try:
        result = verify_determinism(root=root, report_dir=resolved_report_dir)
    except (FileNotFoundError, NotADirectoryError) as exc:
        sys.stderr.write(f"report-dir: {resolved_report_dir}\n")
        sys.stderr.write(f"error: {exc}\n")
        return 2
    if not result.ok:
        for label, paths in (
            ("missing", result.missing),
            ("extra", result.extra),
            ("mismatches", result.mismatches),
        ):
            for path in paths:
                sys.stderr.write(f"{label}: {path}\n")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    root = Path(args.root).expanduser().resolve()
    if not root.is_dir():
        sys.stderr.write(f"error: not a directory: {root}\n")
        return 2

    try:
        if args.command == "check":
            return _handle_check(root, args.format)

        if args.command == "generate":
            return _handle_generate(root, args.out_dir)

        if args.command == "validate":
            return _handle_validate(root, args.report_dir)

        if args.command == "verify":
            return _handle_verify(root, args.report_dir)
    except ConfigError as exc:
        sys.stderr.write(f"config error: {exc}\n")
        return 2

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
