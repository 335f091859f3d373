from __future__ import annotations

from typing import TYPE_CHECKING

from parse.syntax import (
    CallingConvention,
    Identifier,
    Invocation,
    Lambda,
    Literal,
    MemberAccess,
)
from parse.treesitter_csharp import extract_calls_treesitter, parse_source

if TYPE_CHECKING:
    from pathlib import Path

_KNOWN = frozenset({"TransformationMapExtensions"})

_SOURCE = """
using System;
using Tiger.Hal;

public sealed class Registrations
{
    private readonly ITransformationMap<Linker> _field;

    public ITransformationMap<Linker> Property { get; }

    public void Configure(ITransformationMap<Linker> parameter)
    {
        var created = new TransformationMap<Linker>();
        ITransformationMap<Linker> local = parameter;

        parameter.Ignore(l => l.Link);
        created.Ignore(l => l.Link);
        local.Ignore(l => l.Link);
        _field.Ignore(l => l.Link);
        this._field.Ignore(l => l.Link);
        Property.Ignore(l => l.Link);
        unknown.Ignore(l => l.Link);
        TransformationMapExtensions.Ignore(parameter, l => l.Link);
        Tiger.Hal.TransformationMapExtensions.Ignore(parameter, l => l.Link);
    }
}
"""


def _calls(source: str):
    return [
        call
        for call in parse_source(source, known_static_types=_KNOWN).calls
        if call.method_name == "Ignore"
    ]


def test_receiver_types_are_resolved_from_declarations() -> None:
    calls = _calls(_SOURCE)

    extension = [c for c in calls if c.convention is CallingConvention.EXTENSION]
    assert [c.receiver_type for c in extension] == [
        "ITransformationMap<Linker>",
        "TransformationMap<Linker>",
        "ITransformationMap<Linker>",
        "ITransformationMap<Linker>",
        "ITransformationMap<Linker>",
        "ITransformationMap<Linker>",
        None,
    ]


def test_static_qualified_calls_are_ordinary() -> None:
    calls = _calls(_SOURCE)

    ordinary = [c for c in calls if c.convention is CallingConvention.ORDINARY]
    assert [c.declaring_type for c in ordinary] == [
        "TransformationMapExtensions",
        "Tiger.Hal.TransformationMapExtensions",
    ]
    assert all(c.receiver is None for c in ordinary)
    assert [len(c.arguments) for c in ordinary] == [2, 2]


def test_local_variable_shadows_static_class_name() -> None:
    source = """
class C
{
    void M(ITransformationMap<Linker> TransformationMapExtensions)
    {
        TransformationMapExtensions.Ignore(l => l.Link);
    }
}
"""
    (call,) = _calls(source)

    assert call.convention is CallingConvention.EXTENSION
    assert call.receiver_type == "ITransformationMap<Linker>"


def test_using_static_resolves_bare_calls() -> None:
    source = """
using static Tiger.Hal.TransformationMapExtensions;

class C
{
    void M(ITransformationMap<Linker> map)
    {
        Ignore(map, l => l.Link);
    }
}
"""
    (call,) = _calls(source)

    assert call.convention is CallingConvention.ORDINARY
    assert call.declaring_type == "Tiger.Hal.TransformationMapExtensions"


def test_bare_call_without_import_is_unresolved() -> None:
    source = """
class C
{
    void M(ITransformationMap<Linker> map)
    {
        Ignore(map, l => l.Link);
    }
}
"""
    (call,) = _calls(source)

    assert call.convention is CallingConvention.ORDINARY
    assert call.declaring_type is None


def test_arguments_keep_names_positions_and_shapes() -> None:
    source = """
class C
{
    void M(ITransformationMap<Linker> map)
    {
        map.LinkAndIgnore(selector: l => Id(l.Link), relation: "wow");
    }
}
"""
    (call,) = [
        c for c in parse_source(source).calls if c.method_name == "LinkAndIgnore"
    ]

    selector, relation = call.arguments
    assert (selector.name, selector.position) == ("selector", 0)
    assert (relation.name, relation.position) == ("relation", 1)
    assert isinstance(relation.expression, Literal)
    assert relation.expression.kind == "string"

    lam = selector.expression
    assert isinstance(lam, Lambda)
    assert lam.parameters == ("l",)
    wrapped = lam.body
    assert isinstance(wrapped, Invocation)
    assert wrapped.text == "Id(l.Link)"
    (inner,) = wrapped.arguments
    assert isinstance(inner.expression, MemberAccess)
    assert inner.expression.member == "Link"
    assert isinstance(inner.expression.receiver, Identifier)


def test_parenthesized_lambda_and_statement_body() -> None:
    source = """
class C
{
    void M(ITransformationMap<Linker> map)
    {
        map.Ignore((l) => (l.Link));
        map.Ignore(l => { return l.Link; });
    }
}
"""
    first, second = _calls(source)

    first_selector = first.arguments[0].expression
    assert isinstance(first_selector, Lambda)
    assert first_selector.parameters == ("l",)
    assert isinstance(first_selector.body, MemberAccess)

    second_selector = second.arguments[0].expression
    assert isinstance(second_selector, Lambda)
    assert second_selector.body is None


def test_spans_are_one_based() -> None:
    prefix = "class C { void M(ITransformationMap<L> m) { "
    (call,) = _calls(prefix + "m.Ignore(l => l.X); } }")

    assert call.span.start_line == 1
    assert call.span.start_col == len(prefix) + 1


def test_extract_calls_uses_relative_posix_path(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    (repo_root / "src").mkdir(parents=True)
    source_path = repo_root / "src" / "Map.cs"
    source_path.write_text(
        "class C { void M(ITransformationMap<L> m) { m.Ignore(l => l.X); } }\n",
        encoding="utf-8",
    )

    unit = extract_calls_treesitter(str(source_path), str(repo_root))

    assert unit is not None
    assert unit.path == "src/Map.cs"
    assert [c.method_name for c in unit.calls] == ["Ignore"]


def test_extract_calls_skips_files_outside_root(tmp_path: Path) -> None:
    outside = tmp_path / "Outside.cs"
    outside.write_text("class C {}\n", encoding="utf-8")
    repo_root = tmp_path / "repo"
    repo_root.mkdir()

    assert extract_calls_treesitter(str(outside), str(repo_root)) is None


def test_columns_count_characters_not_bytes() -> None:
    prefix = "class C { void M(ITransformationMap<L> m) { /* é */ "
    (call,) = _calls(prefix + "m.Ignore(l => l.X); } }")

    assert call.span.start_col == len(prefix) + 1
    assert call.span.end_col == len(prefix + "m.Ignore(l => l.X)") + 1


_FLUENT_SOURCE = """
class C
{
    void M(ITransformationMap<Linker> map)
    {
        map.Ignore(l => l.Id).Ignore(l => l.Link);
        map.Other(l => l.Id).Ignore(l => l.Link);
        TransformationMapExtensions.Ignore(map, l => l.Id).Ignore(l => l.Link);
    }
}
"""


def test_fluent_calls_keep_receiver_type() -> None:
    unit = parse_source(
        _FLUENT_SOURCE, known_static_types=_KNOWN, fluent_methods=frozenset({"Ignore"})
    )

    chained = [
        c
        for c in unit.calls
        if c.method_name == "Ignore" and isinstance(c.receiver, Invocation)
    ]
    assert [c.receiver_type for c in chained] == [
        "ITransformationMap<Linker>",
        None,
        "ITransformationMap<Linker>",
    ]


def test_fluent_calls_unresolved_without_fluent_methods() -> None:
    unit = parse_source(_FLUENT_SOURCE, known_static_types=_KNOWN)

    chained = [
        c
        for c in unit.calls
        if c.method_name == "Ignore" and isinstance(c.receiver, Invocation)
    ]
    assert [c.receiver_type for c in chained] == [None, None, None]
