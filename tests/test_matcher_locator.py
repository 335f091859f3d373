from __future__ import annotations

import pytest

from parse.syntax import (
    Argument,
    CallExpression,
    CallingConvention,
    Identifier,
    Lambda,
    Literal,
    MemberAccess,
)
from rules.locator import bind_arguments, locate_selector
from rules.matcher import match_call
from rules.watched import IGNORE, LINK_AND_IGNORE, build_watched_table

_SELECTOR = Lambda(
    parameters=("l",),
    body=MemberAccess(receiver=Identifier(name="l"), member="Link"),
)
_RELATION = Literal(kind="string", text='"wow"')
_MAP = Identifier(name="transformationMap")


def _extension(method: str, *arguments: Argument, receiver_type="ITransformationMap<Linker>"):
    return CallExpression(
        method_name=method,
        convention=CallingConvention.EXTENSION,
        arguments=arguments,
        receiver=_MAP,
        receiver_type=receiver_type,
    )


def _ordinary(method: str, *arguments: Argument, declaring_type="TransformationMapExtensions"):
    return CallExpression(
        method_name=method,
        convention=CallingConvention.ORDINARY,
        arguments=arguments,
        declaring_type=declaring_type,
    )


def _positional(*expressions) -> tuple[Argument, ...]:
    return tuple(
        Argument(name=None, position=i, expression=e) for i, e in enumerate(expressions)
    )


def test_extension_form_matches_and_drops_receiver_parameter() -> None:
    call = _extension("LinkAndIgnore", *_positional(_RELATION, _SELECTOR))

    descriptor = match_call(call, build_watched_table())

    assert descriptor is not None
    assert descriptor.method is LINK_AND_IGNORE
    assert descriptor.convention is CallingConvention.EXTENSION
    assert descriptor.parameters == ("relation", "selector")


def test_ordinary_form_matches_with_full_parameter_list() -> None:
    call = _ordinary("Ignore", *_positional(_MAP, _SELECTOR))

    descriptor = match_call(call, build_watched_table())

    assert descriptor is not None
    assert descriptor.method is IGNORE
    assert descriptor.convention is CallingConvention.ORDINARY
    assert descriptor.parameters == ("transformationMap", "selector")


@pytest.mark.parametrize(
    "receiver_type",
    ["Tiger.Hal.ITransformationMap<Linker>", "global::Tiger.Hal.ITransformationMap<Linker>?"],
)
def test_qualified_receiver_types_match(receiver_type: str) -> None:
    call = _extension("Ignore", *_positional(_SELECTOR), receiver_type=receiver_type)

    assert match_call(call, build_watched_table()) is not None


@pytest.mark.parametrize(
    "call",
    [
        _extension("Select", *_positional(_SELECTOR)),
        _extension("Ignore", *_positional(_SELECTOR, _RELATION)),
        _extension("Ignore", *_positional(_SELECTOR), receiver_type="OtherMap"),
        _ordinary("Ignore", *_positional(_SELECTOR)),
        _ordinary("Ignore", *_positional(_MAP, _SELECTOR), declaring_type="Other"),
    ],
)
def test_non_matching_calls(call: CallExpression) -> None:
    assert match_call(call, build_watched_table()) is None


def test_unresolved_receiver_matches_only_when_enabled() -> None:
    call = _extension("Ignore", *_positional(_SELECTOR), receiver_type=None)
    table = build_watched_table()

    assert match_call(call, table) is None
    assert match_call(call, table, match_unresolved_receivers=True) is not None


def test_unresolved_declaring_type_matches_only_when_enabled() -> None:
    call = _ordinary("Ignore", *_positional(_MAP, _SELECTOR), declaring_type=None)
    table = build_watched_table()

    assert match_call(call, table) is None
    assert match_call(call, table, match_unresolved_receivers=True) is not None


def test_bind_arguments_by_position_and_name() -> None:
    arguments = (
        Argument(name="selector", position=0, expression=_SELECTOR),
        Argument(name="relation", position=1, expression=_RELATION),
    )

    bound = bind_arguments(("relation", "selector"), arguments)

    assert bound == {"relation": _RELATION, "selector": _SELECTOR}


@pytest.mark.parametrize(
    "arguments",
    [
        (Argument(name="unknown", position=0, expression=_SELECTOR),),
        _positional(_RELATION, _SELECTOR, _SELECTOR),
        (
            Argument(name=None, position=0, expression=_RELATION),
            Argument(name="relation", position=1, expression=_RELATION),
        ),
    ],
)
def test_bind_arguments_rejects_unbindable_calls(arguments) -> None:
    assert bind_arguments(("relation", "selector"), arguments) is None


def test_locate_selector_with_swapped_named_arguments() -> None:
    call = _extension(
        "LinkAndIgnore",
        Argument(name="selector", position=0, expression=_SELECTOR),
        Argument(name="relation", position=1, expression=_RELATION),
    )
    descriptor = match_call(call, build_watched_table())
    assert descriptor is not None

    located = locate_selector(descriptor)

    assert located is not None
    assert located.selector is _SELECTOR


def test_locate_selector_ignores_non_lambda_selector() -> None:
    call = _extension("Ignore", *_positional(Identifier(name="selector")))
    descriptor = match_call(call, build_watched_table())
    assert descriptor is not None

    assert locate_selector(descriptor) is None
