"""Report generators for selector-lint."""

from artifacts.generators.diagnostics import DiagnosticsGenerator

__all__ = ["DiagnosticsGenerator"]
