"""Map invalid selector classifications to diagnostic records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contract.models import DiagnosticRecord, SourceSpan
from rules.classifier import Invalid

if TYPE_CHECKING:
    from parse.syntax import Span
    from rules.classifier import ClassificationResult
    from rules.locator import LocatedSelector


def _source_span(path: str, span: Span) -> SourceSpan:
    return SourceSpan(
        path=path,
        start_line=span.start_line,
        start_col=span.start_col,
        end_line=span.end_line,
        end_col=span.end_col,
    )


def emit_diagnostics(
    located: LocatedSelector,
    result: ClassificationResult,
    *,
    path: str,
) -> tuple[DiagnosticRecord, ...]:
    """Return the diagnostics for one classified selector.

    Valid chains yield nothing. An invalid selector yields one record per
    diagnostic declared by the method, in declaration order; for compound
    methods that is the link concern followed by the ignore concern. All
    records span the offending sub-expression.
    """
    if not isinstance(result, Invalid):
        return ()

    descriptor = located.descriptor
    method = descriptor.method
    offending = result.offending
    expression_text = offending.text or located.selector.text
    src_span = _source_span(path, offending.span)
    call_span = _source_span(path, descriptor.call.span)

    return tuple(
        DiagnosticRecord(
            diagnostic_id=diagnostic.id,
            family=diagnostic.family,
            severity=diagnostic.severity,
            message=diagnostic.format_message(
                method=method.name, expression=expression_text
            ),
            src_span=src_span,
            call_span=call_span,
            method=method.name,
            convention=descriptor.convention.value,
            concern=diagnostic.concern,
            reason=result.reason,
        )
        for diagnostic in method.diagnostics
    )


__all__ = ["emit_diagnostics"]
