"""Selector body classification.

A selector is accepted only when its body can be rebuilt as a member path
without evaluation: member accesses rooted at the lambda parameter,
optionally wrapped in one outermost cast.

States: START -> IN_CAST on a leading cast; START/IN_CAST -> IN_CHAIN on a
member access; IN_CHAIN -> IN_CHAIN on further member accesses; IN_CHAIN ->
ACCEPTED on reaching the parameter. Any other node rejects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

from parse.syntax import Cast, Identifier, Invocation, Lambda, Literal, MemberAccess

if TYPE_CHECKING:
    from parse.syntax import Expression


class ClassifierState(str, Enum):
    START = "start"
    IN_CAST = "in_cast"
    IN_CHAIN = "in_chain"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class SimpleChain:
    parameter: str
    path: tuple[str, ...]


@dataclass(frozen=True)
class CastChain:
    parameter: str
    cast_type: str
    path: tuple[str, ...]


@dataclass(frozen=True)
class Invalid:
    """A selector the runtime cannot rebuild; ``offending`` broke the pattern."""

    reason: str
    offending: Expression


ClassificationResult = Union[SimpleChain, CastChain, Invalid]


def _describe(node: Expression) -> str:
    if isinstance(node, Invocation):
        return "method call"
    if isinstance(node, Cast):
        return "cast inside the selector"
    if isinstance(node, Literal):
        return f"{node.kind} literal"
    if isinstance(node, Lambda):
        return "nested lambda"
    if isinstance(node, Identifier):
        return f"identifier '{node.name}' is not the lambda parameter"
    return node.kind.replace("_", " ")


def classify_selector(
    selector: Lambda, *, max_chain_depth: int | None = 1
) -> ClassificationResult:
    """Classify a selector lambda as a simple chain, a cast chain or invalid.

    ``max_chain_depth`` bounds the number of member accesses; 0 or None
    lifts the bound.
    """
    if len(selector.parameters) != 1:
        return Invalid(
            reason=f"selector takes {len(selector.parameters)} parameters, expected 1",
            offending=selector,
        )
    if selector.body is None:
        return Invalid(reason="selector has a statement body", offending=selector)

    parameter = selector.parameters[0]
    state = ClassifierState.START
    cast_type: str | None = None
    members: list[str] = []
    chain_top: Expression | None = None
    current: Expression = selector.body
    offending: Expression = current

    while state not in (ClassifierState.ACCEPTED, ClassifierState.REJECTED):
        if isinstance(current, Cast) and state is ClassifierState.START:
            cast_type = current.target_type
            state = ClassifierState.IN_CAST
            current = current.operand
        elif isinstance(current, MemberAccess):
            if chain_top is None:
                chain_top = current
            members.append(current.member)
            state = ClassifierState.IN_CHAIN
            current = current.receiver
        elif (
            isinstance(current, Identifier)
            and current.name == parameter
            and state is ClassifierState.IN_CHAIN
        ):
            state = ClassifierState.ACCEPTED
        else:
            offending = current
            state = ClassifierState.REJECTED

    if state is ClassifierState.REJECTED:
        if isinstance(offending, Identifier) and offending.name == parameter:
            return Invalid(
                reason="selector returns the parameter instead of a member",
                offending=selector.body,
            )
        return Invalid(reason=_describe(offending), offending=offending)

    path = tuple(reversed(members))
    if max_chain_depth and len(path) > max_chain_depth and chain_top is not None:
        return Invalid(
            reason=(
                f"member chain of depth {len(path)} exceeds the maximum "
                f"of {max_chain_depth}"
            ),
            offending=chain_top,
        )

    if cast_type is not None:
        return CastChain(parameter=parameter, cast_type=cast_type, path=path)
    return SimpleChain(parameter=parameter, path=path)


__all__ = [
    "CastChain",
    "ClassificationResult",
    "ClassifierState",
    "Invalid",
    "SimpleChain",
    "classify_selector",
]
