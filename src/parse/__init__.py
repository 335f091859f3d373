"""Parsing utilities for selector-lint."""

from parse.name_resolution import (
    TypeScopes,
    resolve_receiver_type,
    resolve_static_qualifier,
)
from parse.syntax import CallExpression, CallingConvention, CompilationUnit
from parse.treesitter_csharp import extract_calls_treesitter, parse_source

__all__ = [
    "CallExpression",
    "CallingConvention",
    "CompilationUnit",
    "TypeScopes",
    "extract_calls_treesitter",
    "parse_source",
    "resolve_receiver_type",
    "resolve_static_qualifier",
]
