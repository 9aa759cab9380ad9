"""Backend-agnostic predicate tree produced by the filter compiler.

Field names are dotted paths into the canonical record shape of a
resource (``user.fullname``, ``event_time``). Storage backends map those
paths to their own column references.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class Operator(str, Enum):
    """Comparison operators understood by every backend."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


OPERATOR_ALIASES: dict[str, Operator] = {
    "eq": Operator.EQUALS,
    "=": Operator.EQUALS,
    "is": Operator.EQUALS,
    "ne": Operator.NOT_EQUALS,
    "!=": Operator.NOT_EQUALS,
    "is_not": Operator.NOT_EQUALS,
    "like": Operator.CONTAINS,
    "gt": Operator.GREATER_THAN,
    ">": Operator.GREATER_THAN,
    "lt": Operator.LESS_THAN,
    "<": Operator.LESS_THAN,
}

TEXT_OPERATORS = frozenset(
    {
        Operator.EQUALS,
        Operator.NOT_EQUALS,
        Operator.CONTAINS,
        Operator.NOT_CONTAINS,
        Operator.STARTS_WITH,
        Operator.ENDS_WITH,
    }
)
NUMERIC_OPERATORS = frozenset(
    {
        Operator.EQUALS,
        Operator.NOT_EQUALS,
        Operator.GREATER_THAN,
        Operator.LESS_THAN,
    }
)


def parse_operator(raw: Any) -> Operator | None:
    """Map a client-supplied operator name onto an ``Operator``."""
    if not isinstance(raw, str):
        return None
    name = raw.strip().lower()
    try:
        return Operator(name)
    except ValueError:
        return OPERATOR_ALIASES.get(name)


@dataclass(frozen=True)
class Comparison:
    """``field <op> value``."""

    field: str
    op: Operator
    value: Any


@dataclass(frozen=True)
class Between:
    """Closed interval ``lower <= field <= upper``."""

    field: str
    lower: Any
    upper: Any


@dataclass(frozen=True)
class AllOf:
    """Conjunction. An empty conjunction matches every record."""

    children: tuple["Predicate", ...] = ()


@dataclass(frozen=True)
class AnyOf:
    """Disjunction over at least one child."""

    children: tuple["Predicate", ...] = ()


Predicate = Union[Comparison, Between, AllOf, AnyOf]

MATCH_ALL = AllOf()


def is_match_all(predicate: Predicate) -> bool:
    return isinstance(predicate, AllOf) and not predicate.children


def all_of(*children: Predicate) -> Predicate:
    """Build a conjunction, dropping match-all children and flattening singletons."""
    kept = tuple(child for child in children if not is_match_all(child))
    if not kept:
        return MATCH_ALL
    if len(kept) == 1:
        return kept[0]
    return AllOf(kept)


def any_of(*children: Predicate) -> Predicate:
    """Build a disjunction.

    A disjunction with no usable children compiles to ``MATCH_ALL`` so an
    empty expression never filters everything out.
    """
    if not children or any(is_match_all(child) for child in children):
        return MATCH_ALL
    if len(children) == 1:
        return children[0]
    return AnyOf(tuple(children))
