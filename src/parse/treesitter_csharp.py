"""Tree-sitter based call extraction for C# files."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from tree_sitter import Language, Node, Parser
from tree_sitter_c_sharp import language as get_csharp_language

from parse.name_resolution import (
    CALLABLE_DECLARATIONS,
    TYPE_DECLARATIONS,
    TypeScopes,
    collect_member_types,
    iter_parameters,
    iter_variable_declaration,
    node_text,
    resolve_receiver_type,
    resolve_static_qualifier,
)
from parse.syntax import (
    Argument,
    CallExpression,
    CallingConvention,
    Cast,
    CompilationUnit,
    Expression,
    Identifier,
    Invocation,
    Lambda,
    Literal,
    MemberAccess,
    OtherExpression,
    Span,
    normalize_type_name,
)

logger = logging.getLogger(__name__)

_LANGUAGE: Language | None = None
_LOCAL = threading.local()

_LOCAL_DECLARATION_PARENTS = frozenset(
    {"local_declaration_statement", "using_statement", "for_statement"}
)


def _get_parser() -> Parser:
    """Return this thread's Tree-sitter parser for C#.

    Parsers are not safe to share between threads, so each worker gets its
    own; the compiled language is shared.
    """
    global _LANGUAGE
    parser = getattr(_LOCAL, "parser", None)
    if parser is None:
        if _LANGUAGE is None:
            _LANGUAGE = Language(get_csharp_language())
        parser = Parser(_LANGUAGE)
        _LOCAL.parser = parser
    return parser


def _column(source: bytes, byte_offset: int, byte_column: int) -> int:
    """1-based character column; Tree-sitter points count UTF-8 bytes."""
    line_prefix = source[byte_offset - byte_column : byte_offset]
    return len(line_prefix.decode("utf8", errors="replace")) + 1


def _span(node: Node, source: bytes) -> Span:
    return Span(
        start_line=node.start_point[0] + 1,
        start_col=_column(source, node.start_byte, node.start_point[1]),
        end_line=node.end_point[0] + 1,
        end_col=_column(source, node.end_byte, node.end_point[1]),
    )


def _simple_name(node: Node | None) -> str:
    """Name of an identifier or generic name (``Ignore<T>`` -> ``Ignore``)."""
    if node is None:
        return ""
    if node.type == "generic_name":
        for child in node.named_children:
            if child.type == "identifier":
                return node_text(child)
    return node_text(node)


def _lambda_parameters(node: Node) -> tuple[str, ...]:
    parameters = node.child_by_field_name("parameters")
    if parameters is None:
        for child in node.children:
            if child.type == "=>":
                break
            if child.type in ("identifier", "implicit_parameter", "parameter_list"):
                parameters = child
                break
    if parameters is None:
        return ()
    if parameters.type == "parameter_list":
        return tuple(
            node_text(child.child_by_field_name("name"))
            for child in parameters.named_children
            if child.type == "parameter"
        )
    return (node_text(parameters),)


def _lambda_body(node: Node) -> Node | None:
    body = node.child_by_field_name("body")
    if body is None and node.named_children:
        body = node.named_children[-1]
    return body


def to_expression(node: Node, source: bytes) -> Expression:
    """Convert a Tree-sitter expression node into the syntax model."""
    kind = node.type
    span = _span(node, source)
    text = node_text(node)

    if kind == "parenthesized_expression" and node.named_children:
        return to_expression(node.named_children[0], source)

    if kind == "identifier":
        return Identifier(name=text, span=span, text=text)

    if kind == "member_access_expression":
        receiver = node.child_by_field_name("expression")
        name = node.child_by_field_name("name")
        if receiver is not None and name is not None:
            return MemberAccess(
                receiver=to_expression(receiver, source),
                member=_simple_name(name),
                span=span,
                text=text,
            )

    if kind == "invocation_expression":
        function = node.child_by_field_name("function")
        if function is not None:
            return Invocation(
                callee=to_expression(function, source),
                arguments=to_arguments(
                    node.child_by_field_name("arguments"), source
                ),
                span=span,
                text=text,
            )

    if kind == "cast_expression":
        type_node = node.child_by_field_name("type")
        value = node.child_by_field_name("value")
        if type_node is not None and value is not None:
            return Cast(
                target_type=node_text(type_node),
                operand=to_expression(value, source),
                span=span,
                text=text,
            )

    if kind == "lambda_expression":
        body = _lambda_body(node)
        return Lambda(
            parameters=_lambda_parameters(node),
            body=(
                None
                if body is None or body.type == "block"
                else to_expression(body, source)
            ),
            span=span,
            text=text,
        )

    if kind.endswith("_literal"):
        return Literal(kind=kind[: -len("_literal")], span=span, text=text)

    return OtherExpression(kind=kind, span=span, text=text)


def _argument_expression(node: Node) -> tuple[str | None, Node | None]:
    name_node = node.child_by_field_name("name")
    name: str | None = node_text(name_node) if name_node is not None else None
    expression: Node | None = None
    for child in node.named_children:
        if child.type == "name_colon":
            name = _simple_name(child.named_children[0]) if child.named_children else None
            continue
        if name_node is not None and child == name_node:
            continue
        expression = child
    return name, expression


def to_arguments(node: Node | None, source: bytes) -> tuple[Argument, ...]:
    if node is None:
        return ()
    arguments: list[Argument] = []
    for child in node.named_children:
        if child.type != "argument":
            continue
        name, expression = _argument_expression(child)
        arguments.append(
            Argument(
                name=name,
                position=len(arguments),
                expression=(
                    to_expression(expression, source)
                    if expression is not None
                    else OtherExpression(kind="missing", span=_span(child, source))
                ),
            )
        )
    return tuple(arguments)


class _CallCollector:
    """Walks one syntax tree and collects resolved call expressions."""

    def __init__(
        self,
        source: bytes,
        known_static_types: frozenset[str],
        fluent_methods: frozenset[str] = frozenset(),
    ) -> None:
        self.source = source
        self.known_static_types = known_static_types
        self.fluent_methods = fluent_methods
        self.scopes = TypeScopes()
        self.static_imports: list[str] = []
        self.enclosing_types: list[str] = []
        self.calls: list[CallExpression] = []

    def _bare_call_declaring_type(self) -> str | None:
        for type_name in reversed(self.enclosing_types):
            if type_name in self.known_static_types:
                return type_name
        imported = [
            name
            for name in self.static_imports
            if normalize_type_name(name) in self.known_static_types
        ]
        if len(imported) == 1:
            return imported[0]
        return None

    def _build_call(self, node: Node) -> CallExpression | None:
        source = self.source
        if node.has_error:
            return None
        function = node.child_by_field_name("function")
        if function is None:
            return None

        arguments = to_arguments(node.child_by_field_name("arguments"), source)
        span = _span(node, source)
        text = node_text(node)

        if function.type in ("identifier", "generic_name"):
            return CallExpression(
                method_name=_simple_name(function),
                convention=CallingConvention.ORDINARY,
                arguments=arguments,
                span=span,
                text=text,
                declaring_type=self._bare_call_declaring_type(),
            )

        if function.type != "member_access_expression":
            return None

        receiver = function.child_by_field_name("expression")
        method_name = _simple_name(function.child_by_field_name("name"))
        if receiver is None or not method_name:
            return None

        qualifier = resolve_static_qualifier(
            receiver, self.scopes, self.known_static_types
        )
        if qualifier is not None:
            return CallExpression(
                method_name=method_name,
                convention=CallingConvention.ORDINARY,
                arguments=arguments,
                span=span,
                text=text,
                declaring_type=qualifier,
            )

        return CallExpression(
            method_name=method_name,
            convention=CallingConvention.EXTENSION,
            arguments=arguments,
            span=span,
            text=text,
            receiver=to_expression(receiver, source),
            receiver_type=resolve_receiver_type(
                receiver,
                self.scopes,
                fluent_methods=self.fluent_methods,
                known_static_types=self.known_static_types,
            ),
        )

    def _record_using(self, node: Node) -> None:
        if not any(child.type == "static" for child in node.children):
            return
        for child in node.named_children:
            if child.type in ("identifier", "qualified_name", "alias_qualified_name"):
                self.static_imports.append(node_text(child))

    def visit(self, node: Node) -> None:
        kind = node.type
        pushed = False
        pushed_type = False

        if kind in TYPE_DECLARATIONS:
            self.scopes.push(collect_member_types(node))
            self.enclosing_types.append(_simple_name(node.child_by_field_name("name")))
            pushed = pushed_type = True
        elif kind in CALLABLE_DECLARATIONS:
            self.scopes.push(dict(iter_parameters(node)))
            pushed = True
        elif kind == "block":
            self.scopes.push()
            pushed = True
        elif kind == "using_directive":
            self._record_using(node)
        elif kind == "variable_declaration" and (
            node.parent is not None and node.parent.type in _LOCAL_DECLARATION_PARENTS
        ):
            for name, type_name in iter_variable_declaration(node):
                self.scopes.declare(name, type_name)
        elif kind == "foreach_statement":
            left = node.child_by_field_name("left")
            if left is not None and left.type == "identifier":
                type_name = node_text(node.child_by_field_name("type")) or None
                if type_name in ("var", None):
                    type_name = None
                self.scopes.declare(node_text(left), type_name)

        if kind == "invocation_expression":
            call = self._build_call(node)
            if call is not None:
                self.calls.append(call)

        for child in node.children:
            self.visit(child)

        if pushed:
            self.scopes.pop()
        if pushed_type:
            self.enclosing_types.pop()


def parse_source(
    source: str | bytes,
    *,
    path: str = "<memory>.cs",
    known_static_types: frozenset[str] = frozenset(),
    fluent_methods: frozenset[str] = frozenset(),
) -> CompilationUnit:
    """Parse C# source and return its call expressions in source order.

    Calls to ``fluent_methods`` are taken to return their receiver, so the
    next call in a fluent chain keeps the receiver type.
    """
    source_bytes = source.encode("utf8") if isinstance(source, str) else source
    tree = _get_parser().parse(source_bytes)

    collector = _CallCollector(source_bytes, known_static_types, fluent_methods)
    collector.visit(tree.root_node)
    return CompilationUnit(path=path, calls=tuple(collector.calls))


def extract_calls_treesitter(
    file_path: str,
    repo_root: str,
    *,
    known_static_types: frozenset[str] = frozenset(),
    fluent_methods: frozenset[str] = frozenset(),
) -> CompilationUnit | None:
    """Extract all call expressions from a C# file using Tree-sitter.

    Returns None when the file lies outside ``repo_root`` or cannot be read.
    The unit path is POSIX and relative to the repository root.
    """
    file_obj = Path(file_path)
    root_obj = Path(repo_root)

    try:
        root_resolved = root_obj.resolve()
        file_resolved = file_obj.resolve(strict=False)
        relative_path = file_resolved.relative_to(root_resolved).as_posix()
    except (OSError, ValueError):
        logger.debug("Skipping %s: outside of %s", file_path, repo_root)
        return None

    try:
        source_bytes = file_resolved.read_bytes()
    except OSError as exc:
        logger.warning("Skipping unreadable file %s: %s", relative_path, exc)
        return None

    return parse_source(
        source_bytes,
        path=relative_path,
        known_static_types=known_static_types,
        fluent_methods=fluent_methods,
    )


__all__ = [
    "extract_calls_treesitter",
    "parse_source",
    "to_arguments",
    "to_expression",
]
