"""Filter clauses and their compilation into a predicate tree."""

from dataclasses import dataclass
from datetime import MAXYEAR, date, datetime, time, timezone
from enum import Enum
from typing import Any, Iterable, Union
from zoneinfo import ZoneInfo

import structlog

from betaintel.listing.dates import END_OF_DAY, localize, local_date, to_utc
from betaintel.listing.predicates import (
    MATCH_ALL,
    Between,
    Comparison,
    Operator,
    Predicate,
    all_of,
    any_of,
    parse_operator,
)
from betaintel.listing.resources import FIELD_OPERATORS, ResourceSpec, coerce_value

logger = structlog.get_logger()


class Condition(str, Enum):
    AND = "and"
    OR = "or"


@dataclass(frozen=True)
class EqualityFilter:
    """Exact match on a resource field, e.g. ``profession_id=3``."""

    param: str
    field: str
    value: Any


@dataclass(frozen=True)
class DateRangeFilter:
    """Date window for one named category.

    ``start``/``end`` hold what the client sent: bare dates, naive
    wall-clock datetimes or offset-aware instants. Boundaries are only
    resolved to instants at compile time.
    """

    category: str
    field: str
    start: date | datetime
    end: date | datetime | None = None
    time_from: time | None = None
    time_to: time | None = None


@dataclass(frozen=True)
class AdvancedFilterTerm:
    field: str
    operator: str
    value: Any


@dataclass(frozen=True)
class AdvancedFilterExpression:
    """Flat list of terms joined by one condition; no nesting."""

    terms: tuple[AdvancedFilterTerm, ...]
    condition: Condition = Condition.AND


FilterClause = Union[EqualityFilter, DateRangeFilter, AdvancedFilterExpression]


def _clamped_utc(value: datetime, clause: DateRangeFilter) -> datetime:
    """UTC instant of ``value``, pinned to the calendar edge when it falls outside it."""
    try:
        return to_utc(value)
    except OverflowError:
        logger.debug("date_bound_clamped", category=clause.category, value=value.isoformat())
        edge = datetime.max if value.year >= MAXYEAR else datetime.min
        return edge.replace(tzinfo=timezone.utc)


def resolve_date_range(clause: DateRangeFilter, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Resolve a date window to a closed UTC interval.

    Bare dates become start-of-day / end-of-day in ``tz`` (or the given
    time-of-day bounds). A missing ``end`` means end-of-day of ``start``.
    The result always satisfies ``lower <= upper``.
    """
    start_time = clause.time_from or time.min
    end_time = END_OF_DAY
    if clause.time_to is not None:
        end_time = clause.time_to.replace(second=59, microsecond=999999)

    lower = localize(clause.start, tz, start_time)
    if clause.end is None:
        try:
            end_day = local_date(clause.start, tz)
        except OverflowError:
            end_day = date.max if clause.start.year >= MAXYEAR else date.min
        upper = datetime.combine(end_day, end_time, tzinfo=tz)
    else:
        upper = localize(clause.end, tz, end_time)

    lower, upper = _clamped_utc(lower, clause), _clamped_utc(upper, clause)
    if lower > upper:
        logger.debug("date_range_swapped", category=clause.category)
        lower, upper = upper, lower
    return lower, upper


def compile_advanced(expression: AdvancedFilterExpression, resource: ResourceSpec) -> Predicate:
    """Compile advanced filter terms, skipping any the resource does not allow."""
    compiled: list[Predicate] = []
    for term in expression.terms:
        field_type = resource.advanced_fields.get(term.field)
        if field_type is None:
            logger.debug("advanced_filter_unknown_field", resource=resource.name, field=term.field)
            continue
        operator = parse_operator(term.operator)
        if operator is None or operator not in FIELD_OPERATORS[field_type]:
            logger.debug(
                "advanced_filter_bad_operator",
                resource=resource.name,
                field=term.field,
                operator=term.operator,
            )
            continue
        value = coerce_value(term.value, field_type)
        if value is None:
            continue
        compiled.append(Comparison(term.field, operator, value))

    if not compiled:
        return MATCH_ALL
    if expression.condition is Condition.OR:
        return any_of(*compiled)
    return all_of(*compiled)


def compile_filters(
    clauses: Iterable[FilterClause],
    resource: ResourceSpec,
    tz: ZoneInfo,
) -> Predicate:
    """Compile request filters into one predicate tree.

    Clauses are AND'ed together; only inside an advanced expression can
    the client choose OR. Zero usable clauses yields ``MATCH_ALL``.
    """
    compiled: list[Predicate] = []
    for clause in clauses:
        if isinstance(clause, EqualityFilter):
            if clause.value is None or clause.value == "":
                continue
            compiled.append(Comparison(clause.field, Operator.EQUALS, clause.value))
        elif isinstance(clause, DateRangeFilter):
            lower, upper = resolve_date_range(clause, tz)
            compiled.append(Between(clause.field, lower, upper))
        elif isinstance(clause, AdvancedFilterExpression):
            compiled.append(compile_advanced(clause, resource))
    return all_of(*compiled)
