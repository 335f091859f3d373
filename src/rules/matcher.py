"""Call matching: does a call invoke a watched method, and in which form."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from parse.syntax import CallingConvention, normalize_type_name

if TYPE_CHECKING:
    from parse.syntax import CallExpression
    from rules.watched import WatchedMethod, WatchedMethodTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallDescriptor:
    """A call normalized against the watched method it invokes.

    ``parameters`` are the declared parameter names the call's explicit
    arguments bind to; the extension form omits the receiver parameter.
    """

    call: CallExpression
    method: WatchedMethod
    convention: CallingConvention
    parameters: tuple[str, ...]


def _matches_ordinary(
    call: CallExpression, method: WatchedMethod, *, match_unresolved: bool
) -> bool:
    if not method.allows_ordinary or len(call.arguments) != method.arity:
        return False
    declaring_type = normalize_type_name(call.declaring_type)
    if declaring_type is None:
        return match_unresolved
    return declaring_type == method.declaring_type


def _matches_extension(
    call: CallExpression, method: WatchedMethod, *, match_unresolved: bool
) -> bool:
    if not method.allows_extension or call.receiver is None:
        return False
    if len(call.arguments) != method.arity - 1:
        return False
    if call.receiver_type is None:
        return match_unresolved
    return method.accepts_receiver_type(call.receiver_type)


def match_call(
    call: CallExpression,
    table: WatchedMethodTable,
    *,
    match_unresolved_receivers: bool = False,
) -> CallDescriptor | None:
    """Match a call against the watched methods.

    Returns None for calls to unwatched methods, for same-named methods with
    a different arity or declaring type, and for calls whose symbol data is
    missing (unless ``match_unresolved_receivers`` is set).
    """
    for method in table.candidates(call.method_name):
        if call.convention is CallingConvention.ORDINARY:
            if _matches_ordinary(
                call, method, match_unresolved=match_unresolved_receivers
            ):
                return CallDescriptor(
                    call=call,
                    method=method,
                    convention=CallingConvention.ORDINARY,
                    parameters=method.parameter_names,
                )
        elif _matches_extension(
            call, method, match_unresolved=match_unresolved_receivers
        ):
            return CallDescriptor(
                call=call,
                method=method,
                convention=CallingConvention.EXTENSION,
                parameters=method.parameter_names[1:],
            )

    if call.method_name in table:
        logger.debug(
            "Call to %s at L%d:C%d does not match a watched signature",
            call.method_name,
            call.span.start_line,
            call.span.start_col,
        )
    return None


__all__ = ["CallDescriptor", "match_call"]
