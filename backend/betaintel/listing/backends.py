"""Storage backends for the listing service.

A backend receives the compiled predicate, the resolved sort and the row
window, and returns ``(rows, total)`` where ``total`` counts every row
matching the predicate, not just the returned window.
"""

from typing import Any, Mapping, Protocol, Sequence

from betaintel.listing.predicates import (
    AllOf,
    AnyOf,
    Between,
    Comparison,
    Operator,
    Predicate,
)
from betaintel.listing.resources import ResourceSpec
from betaintel.listing.sorting import ResolvedSort


class ListingBackend(Protocol):
    async def fetch(
        self,
        resource: ResourceSpec,
        predicate: Predicate,
        sort: ResolvedSort,
        offset: int,
        limit: int,
    ) -> tuple[list[dict[str, Any]], int]:
        ...


_MISSING = object()


def resolve_path(record: Mapping[str, Any], path: str) -> Any:
    """Follow a dotted path through nested mappings; missing steps give ``None``."""
    current: Any = record
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return None
    return current


def _compare(value: Any, op: Operator, expected: Any) -> bool:
    if op in (Operator.EQUALS, Operator.NOT_EQUALS):
        equal = value == expected
        return equal if op is Operator.EQUALS else not equal

    if value is None:
        return False

    if op in (Operator.GREATER_THAN, Operator.LESS_THAN):
        try:
            return value > expected if op is Operator.GREATER_THAN else value < expected
        except TypeError:
            return False

    text = str(value).lower()
    needle = str(expected).lower()
    if op is Operator.CONTAINS:
        return needle in text
    if op is Operator.NOT_CONTAINS:
        return needle not in text
    if op is Operator.STARTS_WITH:
        return text.startswith(needle)
    if op is Operator.ENDS_WITH:
        return text.endswith(needle)
    return False


def matches(predicate: Predicate, record: Mapping[str, Any]) -> bool:
    """Evaluate a predicate tree against one record."""
    if isinstance(predicate, AllOf):
        return all(matches(child, record) for child in predicate.children)
    if isinstance(predicate, AnyOf):
        return any(matches(child, record) for child in predicate.children)
    if isinstance(predicate, Between):
        value = resolve_path(record, predicate.field)
        if value is None:
            return False
        try:
            return predicate.lower <= value <= predicate.upper
        except TypeError:
            return False
    if isinstance(predicate, Comparison):
        return _compare(resolve_path(record, predicate.field), predicate.op, predicate.value)
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def sort_records(records: Sequence[Mapping[str, Any]], sort: ResolvedSort) -> list[Mapping[str, Any]]:
    """Order records by the resolved sort, keeping empty values last."""

    def tiebreak(record: Mapping[str, Any]) -> str:
        if sort.tiebreaker is None:
            return ""
        return str(resolve_path(record, sort.tiebreaker))

    present = [r for r in records if resolve_path(r, sort.field) is not None]
    missing = [r for r in records if resolve_path(r, sort.field) is None]
    present.sort(key=lambda r: (resolve_path(r, sort.field), tiebreak(r)), reverse=sort.descending)
    missing.sort(key=tiebreak, reverse=sort.descending)
    return present + missing


class InMemoryListingBackend:
    """Backend over plain dictionaries, keyed by resource name.

    Used for tests and local demos; it follows the same contract as the
    SQL backend, including counting before windowing.
    """

    def __init__(self, records: Mapping[str, Sequence[Mapping[str, Any]]] | None = None):
        self.records: dict[str, list[Mapping[str, Any]]] = {
            name: list(rows) for name, rows in (records or {}).items()
        }
        self.calls: list[dict[str, Any]] = []

    async def fetch(
        self,
        resource: ResourceSpec,
        predicate: Predicate,
        sort: ResolvedSort,
        offset: int,
        limit: int,
    ) -> tuple[list[dict[str, Any]], int]:
        self.calls.append(
            {"resource": resource.name, "predicate": predicate, "sort": sort, "offset": offset, "limit": limit}
        )
        # filter on the canonical shape so resolved UTM fields are matchable
        rows = [resource.normalize_item(r) for r in self.records.get(resource.name, [])]
        matched = [r for r in rows if matches(predicate, r)]
        ordered = sort_records(matched, sort)
        window = ordered[offset : offset + limit]
        return [dict(r) for r in window], len(matched)
