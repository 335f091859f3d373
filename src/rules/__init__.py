"""Selector rule definitions for selector-lint."""

from rules.classifier import (
    CastChain,
    ClassificationResult,
    Invalid,
    SimpleChain,
    classify_selector,
)
from rules.config import (
    ConfigError,
    RulesConfig,
    SelectorLintConfig,
    load_config,
)
from rules.emitter import emit_diagnostics
from rules.engine import (
    AnalysisCancelled,
    AnalysisSettings,
    analyze_call,
    analyze_source,
    analyze_unit,
    analyze_units,
)
from rules.locator import bind_arguments, locate_selector
from rules.matcher import CallDescriptor, match_call
from rules.watched import WatchedMethod, WatchedMethodTable, build_watched_table

__all__ = [
    "AnalysisCancelled",
    "AnalysisSettings",
    "CallDescriptor",
    "CastChain",
    "ClassificationResult",
    "ConfigError",
    "Invalid",
    "RulesConfig",
    "SelectorLintConfig",
    "SimpleChain",
    "WatchedMethod",
    "WatchedMethodTable",
    "analyze_call",
    "analyze_source",
    "analyze_unit",
    "analyze_units",
    "bind_arguments",
    "build_watched_table",
    "classify_selector",
    "emit_diagnostics",
    "load_config",
    "locate_selector",
    "match_call",
]
