"""Report record models exposed to hosts and downstream consumers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from contract.catalog import REPORT_SCHEMA_VERSION, Concern, Severity


class SourceSpan(BaseModel):
    """Source span for a diagnostic location."""

    model_config = ConfigDict(frozen=True)

    path: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int


class DiagnosticRecord(BaseModel):
    """Schema for diagnostics.jsonl records."""

    model_config = ConfigDict(frozen=True)

    schema_version: int = Field(default=REPORT_SCHEMA_VERSION)
    diagnostic_id: str
    family: str
    severity: Severity
    message: str
    src_span: SourceSpan
    call_span: SourceSpan = Field(
        description="Span of the whole offending call, for code fixes"
    )
    method: str
    convention: str
    concern: Concern
    reason: str

    def location(self) -> str:
        span = self.src_span
        return f"{span.path}:{span.start_line}:{span.start_col}"


class DiagnosticsSummary(BaseModel):
    """Schema for summary.json."""

    schema_version: int = Field(default=REPORT_SCHEMA_VERSION)
    file_count: int
    call_count: int
    diagnostic_count: int
    by_id: dict[str, int] = Field(default_factory=dict)


__all__ = ["DiagnosticRecord", "DiagnosticsSummary", "SourceSpan"]
