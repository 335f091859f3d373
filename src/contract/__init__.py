"""Stable diagnostic contract surface for selector-lint.

Treat these exports as the authoritative boundary for hosts that filter,
suppress or rewrite on selector-lint diagnostics.
"""

from contract.catalog import (
    DIAGNOSTIC_CATALOG,
    DIAGNOSTICS_JSONL,
    INCORRECT_IGNORE,
    INCORRECT_LINK_AND_IGNORE,
    REPORT_SCHEMA_VERSION,
    SUMMARY_JSON,
    DiagnosticDescriptor,
)


def __getattr__(name: str) -> object:
    if name in {"DiagnosticRecord", "DiagnosticsSummary", "SourceSpan"}:
        from contract.models import DiagnosticRecord, DiagnosticsSummary, SourceSpan

        return {
            "DiagnosticRecord": DiagnosticRecord,
            "DiagnosticsSummary": DiagnosticsSummary,
            "SourceSpan": SourceSpan,
        }[name]

    if name in {"ValidationMessage", "ValidationResult", "validate_report"}:
        from contract.validation import (
            ValidationMessage,
            ValidationResult,
            validate_report,
        )

        return {
            "ValidationMessage": ValidationMessage,
            "ValidationResult": ValidationResult,
            "validate_report": validate_report,
        }[name]

    msg = f"module 'contract' has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "DIAGNOSTICS_JSONL",
    "DIAGNOSTIC_CATALOG",
    "INCORRECT_IGNORE",
    "INCORRECT_LINK_AND_IGNORE",
    "REPORT_SCHEMA_VERSION",
    "SUMMARY_JSON",
    "DiagnosticDescriptor",
    "DiagnosticRecord",
    "DiagnosticsSummary",
    "SourceSpan",
    "ValidationMessage",
    "ValidationResult",
    "validate_report",
]
