"""Static table of the configuration methods whose selectors are checked."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from contract.catalog import (
    INCORRECT_IGNORE_EXPRESSION,
    INCORRECT_LINK_AND_IGNORE_IGNORE,
    INCORRECT_LINK_AND_IGNORE_LINK,
    DiagnosticDescriptor,
    get_descriptor,
)
from parse.syntax import normalize_type_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from rules.config import MethodDef, SelectorLintConfig

TRANSFORMATION_MAP_EXTENSIONS = "TransformationMapExtensions"
TRANSFORMATION_MAP = "ITransformationMap"


@dataclass(frozen=True)
class WatchedParameter:
    name: str
    type: str = ""


@dataclass(frozen=True)
class WatchedMethod:
    """A watched configuration method and the diagnostics it emits."""

    name: str
    declaring_type: str
    parameters: tuple[WatchedParameter, ...]
    selector_parameter: str
    diagnostics: tuple[DiagnosticDescriptor, ...]
    allows_ordinary: bool = True
    allows_extension: bool = True
    receiver_types: frozenset[str] = frozenset()
    returns_receiver: bool = True

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(parameter.name for parameter in self.parameters)

    def accepts_receiver_type(self, type_name: str) -> bool:
        return normalize_type_name(type_name) in self.receiver_types


def _receiver_types(
    parameters: tuple[WatchedParameter, ...], extra: Iterable[str]
) -> frozenset[str]:
    names = {normalize_type_name(parameters[0].type)} if parameters else set()
    names.update(normalize_type_name(name) for name in extra)
    return frozenset(name for name in names if name)


def _make_method(
    *,
    name: str,
    declaring_type: str,
    parameters: tuple[WatchedParameter, ...],
    selector_parameter: str,
    diagnostics: tuple[DiagnosticDescriptor, ...],
    allows_ordinary: bool = True,
    allows_extension: bool = True,
    receiver_types: Iterable[str] = (),
    returns_receiver: bool = True,
) -> WatchedMethod:
    return WatchedMethod(
        name=name,
        declaring_type=normalize_type_name(declaring_type) or declaring_type,
        parameters=parameters,
        selector_parameter=selector_parameter,
        diagnostics=diagnostics,
        allows_ordinary=allows_ordinary,
        allows_extension=allows_extension,
        receiver_types=_receiver_types(parameters, receiver_types),
        returns_receiver=returns_receiver,
    )


IGNORE = _make_method(
    name="Ignore",
    declaring_type=TRANSFORMATION_MAP_EXTENSIONS,
    parameters=(
        WatchedParameter("transformationMap", f"{TRANSFORMATION_MAP}<T>"),
        WatchedParameter("selector", "Expression<Func<T, object>>"),
    ),
    selector_parameter="selector",
    diagnostics=(INCORRECT_IGNORE_EXPRESSION,),
)

LINK_AND_IGNORE = _make_method(
    name="LinkAndIgnore",
    declaring_type=TRANSFORMATION_MAP_EXTENSIONS,
    parameters=(
        WatchedParameter("transformationMap", f"{TRANSFORMATION_MAP}<T>"),
        WatchedParameter("relation", "string"),
        WatchedParameter("selector", "Expression<Func<T, Uri>>"),
    ),
    selector_parameter="selector",
    diagnostics=(INCORRECT_LINK_AND_IGNORE_LINK, INCORRECT_LINK_AND_IGNORE_IGNORE),
)

DEFAULT_WATCHED_METHODS: tuple[WatchedMethod, ...] = (IGNORE, LINK_AND_IGNORE)


class WatchedMethodTable:
    """Immutable name -> methods lookup, shared freely across threads."""

    def __init__(self, methods: Iterable[WatchedMethod]) -> None:
        grouped: dict[str, list[WatchedMethod]] = {}
        for method in methods:
            grouped.setdefault(method.name, []).append(method)
        self._by_name: Mapping[str, tuple[WatchedMethod, ...]] = MappingProxyType(
            {name: tuple(group) for name, group in grouped.items()}
        )

    def candidates(self, method_name: str) -> tuple[WatchedMethod, ...]:
        return self._by_name.get(method_name, ())

    @property
    def methods(self) -> tuple[WatchedMethod, ...]:
        return tuple(method for group in self._by_name.values() for method in group)

    @property
    def declaring_types(self) -> frozenset[str]:
        """Static classes whose qualified calls are ordinary-form candidates."""
        return frozenset(method.declaring_type for method in self.methods)

    @property
    def fluent_methods(self) -> frozenset[str]:
        """Methods whose calls return their receiver, for fluent chains."""
        return frozenset(
            method.name for method in self.methods if method.returns_receiver
        )

    def __contains__(self, method_name: object) -> bool:
        return method_name in self._by_name


def method_from_def(method_def: MethodDef) -> WatchedMethod:
    """Build a watched method from a validated config entry."""
    return _make_method(
        name=method_def.name,
        declaring_type=method_def.declaring_type,
        parameters=tuple(
            WatchedParameter(parameter.name, parameter.type)
            for parameter in method_def.parameters
        ),
        selector_parameter=method_def.selector_parameter,
        diagnostics=tuple(get_descriptor(i) for i in method_def.diagnostics),
        allows_ordinary=method_def.allows_ordinary,
        allows_extension=method_def.allows_extension,
        receiver_types=method_def.receiver_types,
        returns_receiver=method_def.returns_receiver,
    )


def build_watched_table(config: SelectorLintConfig | None = None) -> WatchedMethodTable:
    """Build the watched-method table once, from defaults plus config."""
    methods = list(DEFAULT_WATCHED_METHODS)
    if config is not None:
        methods.extend(method_from_def(m) for m in config.rules.methods)
    return WatchedMethodTable(methods)


__all__ = [
    "DEFAULT_WATCHED_METHODS",
    "IGNORE",
    "LINK_AND_IGNORE",
    "WatchedMethod",
    "WatchedMethodTable",
    "WatchedParameter",
    "build_watched_table",
    "method_from_def",
]
