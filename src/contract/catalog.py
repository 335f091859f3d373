"""Stable diagnostic catalog and report file contract.

Identifiers are opaque, versioned codes. Hosts filter and suppress on them,
so they never change meaning once published.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

# Report schema version (report-v1).
REPORT_SCHEMA_VERSION = 1

# Report filename constants (stable contract identifiers).
DIAGNOSTICS_JSONL = "diagnostics.jsonl"
SUMMARY_JSON = "summary.json"

Severity = Literal["error", "warning", "info"]
Concern = Literal["ignore", "link"]


@dataclass(frozen=True)
class DiagnosticDescriptor:
    """Catalog entry for one diagnostic identifier."""

    id: str
    family: str
    concern: Concern
    title: str
    message_format: str
    severity: Severity = "error"

    def format_message(self, *, method: str, expression: str) -> str:
        return self.message_format.format(method=method, expression=expression)


INCORRECT_LINK_AND_IGNORE = "TH1001"
INCORRECT_IGNORE = "TH1002"

INCORRECT_LINK_AND_IGNORE_LINK = DiagnosticDescriptor(
    id=f"{INCORRECT_LINK_AND_IGNORE}A",
    family=INCORRECT_LINK_AND_IGNORE,
    concern="link",
    title="Link selector must be a simple property access",
    message_format=(
        "The selector passed to '{method}' cannot be resolved as a link "
        "target; '{expression}' is not a simple member access on the "
        "lambda parameter"
    ),
)

INCORRECT_LINK_AND_IGNORE_IGNORE = DiagnosticDescriptor(
    id=f"{INCORRECT_LINK_AND_IGNORE}B",
    family=INCORRECT_LINK_AND_IGNORE,
    concern="ignore",
    title="Ignore selector must be a simple property access",
    message_format=(
        "The selector passed to '{method}' cannot be resolved as an ignored "
        "property; '{expression}' is not a simple member access on the "
        "lambda parameter"
    ),
)

INCORRECT_IGNORE_EXPRESSION = DiagnosticDescriptor(
    id=INCORRECT_IGNORE,
    family=INCORRECT_IGNORE,
    concern="ignore",
    title="Ignore selector must be a simple property access",
    message_format=(
        "The selector passed to '{method}' must be a simple member access "
        "on the lambda parameter; found '{expression}'"
    ),
)

DIAGNOSTIC_CATALOG: dict[str, DiagnosticDescriptor] = {
    descriptor.id: descriptor
    for descriptor in (
        INCORRECT_LINK_AND_IGNORE_LINK,
        INCORRECT_LINK_AND_IGNORE_IGNORE,
        INCORRECT_IGNORE_EXPRESSION,
    )
}


def get_descriptor(diagnostic_id: str) -> DiagnosticDescriptor:
    try:
        return DIAGNOSTIC_CATALOG[diagnostic_id]
    except KeyError:
        msg = f"Unknown diagnostic id '{diagnostic_id}'"
        raise KeyError(msg) from None


__all__ = [
    "DIAGNOSTICS_JSONL",
    "DIAGNOSTIC_CATALOG",
    "INCORRECT_IGNORE",
    "INCORRECT_IGNORE_EXPRESSION",
    "INCORRECT_LINK_AND_IGNORE",
    "INCORRECT_LINK_AND_IGNORE_IGNORE",
    "INCORRECT_LINK_AND_IGNORE_LINK",
    "REPORT_SCHEMA_VERSION",
    "SUMMARY_JSON",
    "Concern",
    "DiagnosticDescriptor",
    "Severity",
    "get_descriptor",
]
