"""Language-neutral syntax model consumed by the selector rules.

Nodes are immutable and carry their source span and text. The front end in
``parse.treesitter_csharp`` builds them; tests may build them by hand.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


@dataclass(frozen=True)
class Span:
    """1-based source span; columns count characters."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def sort_key(self) -> tuple[int, int, int, int]:
        """Source order; a call nested in a fluent chain sorts before its
        enclosing call, which starts at the same position."""
        return (self.start_line, self.start_col, self.end_line, self.end_col)


_NO_SPAN = Span(0, 0, 0, 0)


@dataclass(frozen=True)
class Identifier:
    name: str
    span: Span = _NO_SPAN
    text: str = ""


@dataclass(frozen=True)
class MemberAccess:
    receiver: Expression
    member: str
    span: Span = _NO_SPAN
    text: str = ""


@dataclass(frozen=True)
class Invocation:
    callee: Expression
    arguments: tuple[Argument, ...] = ()
    span: Span = _NO_SPAN
    text: str = ""


@dataclass(frozen=True)
class Cast:
    target_type: str
    operand: Expression
    span: Span = _NO_SPAN
    text: str = ""


@dataclass(frozen=True)
class Lambda:
    """A lambda literal; ``body`` is None for statement-bodied lambdas."""

    parameters: tuple[str, ...]
    body: Expression | None
    span: Span = _NO_SPAN
    text: str = ""


@dataclass(frozen=True)
class Literal:
    kind: str
    span: Span = _NO_SPAN
    text: str = ""


@dataclass(frozen=True)
class OtherExpression:
    """Any expression shape the rules do not model explicitly."""

    kind: str
    span: Span = _NO_SPAN
    text: str = ""


Expression = Union[
    Identifier, MemberAccess, Invocation, Cast, Lambda, Literal, OtherExpression
]


@dataclass(frozen=True)
class Argument:
    """A slot in a call: explicit name (if any), position and bound expression."""

    name: str | None
    position: int
    expression: Expression


class CallingConvention(str, Enum):
    ORDINARY = "ordinary"
    EXTENSION = "extension"


@dataclass(frozen=True)
class CallExpression:
    """An invocation of a named method, as resolved by the front end.

    ``receiver_type`` is the static type of the extension receiver and
    ``declaring_type`` the static class qualifying an ordinary call; either
    is None when it could not be resolved.
    """

    method_name: str
    convention: CallingConvention
    arguments: tuple[Argument, ...]
    span: Span = _NO_SPAN
    text: str = ""
    receiver: Expression | None = None
    receiver_type: str | None = None
    declaring_type: str | None = None


@dataclass(frozen=True)
class CompilationUnit:
    path: str
    calls: tuple[CallExpression, ...] = field(default_factory=tuple)


def normalize_type_name(type_name: str | None) -> str | None:
    """Reduce a written type to its bare name.

    Strips generic arguments, namespace qualifiers, ``global::`` and
    nullability: ``Tiger.Hal.ITransformationMap<Linker>?`` becomes
    ``ITransformationMap``.
    """
    if type_name is None:
        return None
    name = "".join(type_name.split())
    if "<" in name:
        name = name[: name.index("<")]
    name = name.rstrip("?")
    if "::" in name:
        name = name.rsplit("::", 1)[1]
    name = name.rsplit(".", 1)[-1]
    return name or None


__all__ = [
    "Argument",
    "CallExpression",
    "CallingConvention",
    "Cast",
    "CompilationUnit",
    "Expression",
    "Identifier",
    "Invocation",
    "Lambda",
    "Literal",
    "MemberAccess",
    "OtherExpression",
    "Span",
    "normalize_type_name",
]
