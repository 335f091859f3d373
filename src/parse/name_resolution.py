"""Scoped static-type resolution for C# call receivers.

This is a best-effort, declaration-based resolver: it knows the written
types of parameters, locals, fields and properties, plus ``var`` locals
initialized with ``new T(...)``. Anything else resolves to None.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from parse.syntax import normalize_type_name

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tree_sitter import Node

TYPE_DECLARATIONS = frozenset(
    {
        "class_declaration",
        "struct_declaration",
        "record_declaration",
        "record_struct_declaration",
        "interface_declaration",
    }
)

CALLABLE_DECLARATIONS = frozenset(
    {
        "method_declaration",
        "constructor_declaration",
        "local_function_statement",
        "lambda_expression",
        "anonymous_method_expression",
        "operator_declaration",
        "conversion_operator_declaration",
        "accessor_declaration",
    }
)

_IMPLICIT_TYPE_NAMES = frozenset({"var", "dynamic"})

_QUALIFIED_NAME_TYPES = frozenset(
    {"identifier", "qualified_name", "alias_qualified_name", "generic_name"}
)


def node_text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf8", errors="ignore")


class TypeScopes:
    """Stack of name -> declared type maps; a None type shadows outer names."""

    def __init__(self) -> None:
        self._stack: list[dict[str, str | None]] = [{}]

    def push(self, names: dict[str, str | None] | None = None) -> None:
        self._stack.append(dict(names or {}))

    def pop(self) -> None:
        if len(self._stack) > 1:
            self._stack.pop()

    def declare(self, name: str, type_name: str | None) -> None:
        if name:
            self._stack[-1][name] = type_name

    def is_bound(self, name: str) -> bool:
        return any(name in scope for scope in self._stack)

    def lookup(self, name: str) -> str | None:
        for scope in reversed(self._stack):
            if name in scope:
                return scope[name]
        return None


def _initializer(declarator: Node) -> Node | None:
    name_node = declarator.child_by_field_name("name")
    candidates = [
        child
        for child in declarator.named_children
        if child != name_node and child.type != "bracketed_argument_list"
    ]
    if not candidates:
        return None
    value = candidates[-1]
    if value.type == "equals_value_clause" and value.named_children:
        return value.named_children[0]
    return value


def _declarator_name(declarator: Node) -> str:
    name_node = declarator.child_by_field_name("name")
    if name_node is None:
        for child in declarator.named_children:
            if child.type == "identifier":
                name_node = child
                break
    return node_text(name_node)


def iter_variable_declaration(node: Node) -> Iterable[tuple[str, str | None]]:
    """Yield (name, type) pairs declared by a ``variable_declaration`` node."""
    type_node = node.child_by_field_name("type")
    declared = node_text(type_node).strip()
    for declarator in node.named_children:
        if declarator.type != "variable_declarator":
            continue
        name = _declarator_name(declarator)
        type_name: str | None = declared or None
        if declared in _IMPLICIT_TYPE_NAMES:
            type_name = None
            value = _initializer(declarator)
            if value is not None and value.type == "object_creation_expression":
                type_name = node_text(value.child_by_field_name("type")) or None
        yield name, type_name


def iter_parameters(node: Node) -> Iterable[tuple[str, str | None]]:
    """Yield (name, type) for the parameters of a callable declaration."""
    parameters = node.child_by_field_name("parameters")
    if parameters is None:
        return
    if parameters.type in ("identifier", "implicit_parameter"):
        yield node_text(parameters), None
        return
    for parameter in parameters.named_children:
        if parameter.type != "parameter":
            continue
        name = node_text(parameter.child_by_field_name("name"))
        type_name = node_text(parameter.child_by_field_name("type")) or None
        yield name, type_name


def collect_member_types(type_node: Node) -> dict[str, str | None]:
    """Collect field and property types declared directly in a type body."""
    members: dict[str, str | None] = {}
    body = type_node.child_by_field_name("body")
    if body is None:
        body = next(
            (c for c in type_node.named_children if c.type == "declaration_list"),
            None,
        )
    if body is None:
        return members
    for member in body.named_children:
        if member.type in ("field_declaration", "event_field_declaration"):
            for child in member.named_children:
                if child.type == "variable_declaration":
                    members.update(iter_variable_declaration(child))
        elif member.type == "property_declaration":
            name = node_text(member.child_by_field_name("name"))
            members[name] = node_text(member.child_by_field_name("type")) or None
    return members


def dotted_name(node: Node) -> list[str] | None:
    """Return the segments of a pure name (``A.B.C``), or None."""
    if node.type in _QUALIFIED_NAME_TYPES:
        return [segment for segment in node_text(node).split(".") if segment]
    if node.type == "member_access_expression":
        inner = node.child_by_field_name("expression")
        name = node.child_by_field_name("name")
        if inner is None or name is None:
            return None
        head = dotted_name(inner)
        if head is None:
            return None
        return [*head, node_text(name)]
    return None


def resolve_static_qualifier(
    receiver: Node, scopes: TypeScopes, known_static_types: frozenset[str]
) -> str | None:
    """Return the static class a receiver names, if it names a known one."""
    segments = dotted_name(receiver)
    if not segments or scopes.is_bound(segments[0].split("::")[-1]):
        return None
    written = ".".join(segments)
    if normalize_type_name(written) in known_static_types:
        return written
    return None


def _member_name(node: Node | None) -> str:
    if node is not None and node.type == "generic_name":
        for child in node.named_children:
            if child.type == "identifier":
                return node_text(child)
    return node_text(node)


def _fluent_call_receiver(
    call: Node,
    scopes: TypeScopes,
    fluent_methods: frozenset[str],
    known_static_types: frozenset[str],
) -> Node | None:
    """The node whose type a fluent call returns: its receiver, or the first
    argument when the call is qualified by a static class."""
    function = call.child_by_field_name("function")
    if function is None or function.type != "member_access_expression":
        return None
    if _member_name(function.child_by_field_name("name")) not in fluent_methods:
        return None
    inner = function.child_by_field_name("expression")
    if inner is None:
        return None
    if resolve_static_qualifier(inner, scopes, known_static_types) is None:
        return inner
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return None
    for argument in arguments.named_children:
        if argument.type == "argument" and argument.named_children:
            return argument.named_children[-1]
    return None


def resolve_receiver_type(
    receiver: Node,
    scopes: TypeScopes,
    *,
    fluent_methods: frozenset[str] = frozenset(),
    known_static_types: frozenset[str] = frozenset(),
) -> str | None:
    """Resolve the declared static type of an extension receiver.

    A call to one of ``fluent_methods`` has the type of its own receiver,
    so chained calls such as ``map.Ignore(...).Ignore(...)`` resolve.
    """
    kind = receiver.type
    if kind == "identifier":
        return scopes.lookup(node_text(receiver))
    if kind == "parenthesized_expression" and receiver.named_children:
        return resolve_receiver_type(
            receiver.named_children[0],
            scopes,
            fluent_methods=fluent_methods,
            known_static_types=known_static_types,
        )
    if kind == "invocation_expression":
        inner = _fluent_call_receiver(
            receiver, scopes, fluent_methods, known_static_types
        )
        if inner is None:
            return None
        return resolve_receiver_type(
            inner,
            scopes,
            fluent_methods=fluent_methods,
            known_static_types=known_static_types,
        )
    if kind == "object_creation_expression":
        return node_text(receiver.child_by_field_name("type")) or None
    if kind == "cast_expression":
        return node_text(receiver.child_by_field_name("type")) or None
    if kind == "member_access_expression":
        inner = receiver.child_by_field_name("expression")
        if inner is not None and inner.type in ("this_expression", "this"):
            return scopes.lookup(node_text(receiver.child_by_field_name("name")))
    return None


__all__ = [
    "CALLABLE_DECLARATIONS",
    "TYPE_DECLARATIONS",
    "TypeScopes",
    "collect_member_types",
    "dotted_name",
    "iter_parameters",
    "iter_variable_declaration",
    "node_text",
    "resolve_receiver_type",
    "resolve_static_qualifier",
]
