"""Locate the selector argument of a matched call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from parse.syntax import Lambda

if TYPE_CHECKING:
    from collections.abc import Sequence

    from parse.syntax import Argument, Expression
    from rules.matcher import CallDescriptor


@dataclass(frozen=True)
class LocatedSelector:
    descriptor: CallDescriptor
    selector: Lambda


def bind_arguments(
    parameters: Sequence[str], arguments: Sequence[Argument]
) -> dict[str, Expression] | None:
    """Bind call arguments to declared parameter names.

    Named arguments bind by name in any order, positional arguments by
    their position. Returns None when an argument names an unknown
    parameter, lands out of range, or binds a parameter twice.
    """
    bound: dict[str, Expression] = {}
    for argument in arguments:
        if argument.name is not None:
            if argument.name not in parameters:
                return None
            name = argument.name
        else:
            if not 0 <= argument.position < len(parameters):
                return None
            name = parameters[argument.position]

        if name in bound:
            return None
        bound[name] = argument.expression

    return bound


def locate_selector(descriptor: CallDescriptor) -> LocatedSelector | None:
    """Return the selector lambda of a matched call, if one is written inline.

    Selectors passed through a variable or a method group are out of reach
    of the rules and yield None.
    """
    bound = bind_arguments(descriptor.parameters, descriptor.call.arguments)
    if bound is None:
        return None

    selector = bound.get(descriptor.method.selector_parameter)
    if not isinstance(selector, Lambda):
        return None

    return LocatedSelector(descriptor=descriptor, selector=selector)


__all__ = ["LocatedSelector", "bind_arguments", "locate_selector"]
