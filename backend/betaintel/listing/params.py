"""Query-string parsing for list endpoints.

Nothing in here raises on bad input. Malformed numbers, unknown sort
directions and broken filter JSON are normalised to defaults so a stale
or hand-edited URL still renders a listing.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

import structlog

from betaintel.listing.dates import parse_date_input, parse_time_of_day
from betaintel.listing.filters import (
    AdvancedFilterExpression,
    AdvancedFilterTerm,
    Condition,
    DateRangeFilter,
    EqualityFilter,
    FilterClause,
)
from betaintel.listing.resources import ResourceSpec, coerce_value
from betaintel.listing.sorting import SORT_DIRECTIONS

logger = structlog.get_logger()

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 50000


@dataclass(frozen=True)
class ListRequest:
    """A validated list query."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str | None = None
    sort_direction: str | None = None
    filters: tuple[FilterClause, ...] = field(default_factory=tuple)
    export: bool = False


def parse_positive_int(raw: Any, default: int, maximum: int | None = None) -> int:
    """Parse an integer >= 1, falling back to ``default`` and capped at ``maximum``."""
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    if value < 1:
        return default
    return min(value, maximum) if maximum is not None else value


def parse_sort_direction(raw: Any) -> str | None:
    if not isinstance(raw, str):
        return None
    direction = raw.strip().lower()
    return direction if direction in SORT_DIRECTIONS else None


def _has_value(value: Any) -> bool:
    if value is None or isinstance(value, (dict, list)):
        return False
    return str(value).strip() != ""


def parse_filter_array(raw: str | None, param: str = "advanced_filters") -> list[dict[str, Any]] | None:
    """Decode a JSON filter array.

    Returns ``None`` when the parameter is missing, malformed, not an
    array, or carries no entry with a non-blank value.
    """
    if raw is None or not raw.strip():
        return None
    try:
        decoded = json.loads(raw)
    except ValueError:
        logger.debug("filter_json_malformed", param=param)
        return None
    if not isinstance(decoded, list):
        logger.debug("filter_json_not_array", param=param)
        return None
    entries = [entry for entry in decoded if isinstance(entry, dict)]
    if not any(_has_value(entry.get("value")) for entry in entries):
        return None
    return entries


def _advanced_expression(query: Mapping[str, str]) -> AdvancedFilterExpression | None:
    entries = parse_filter_array(query.get("advanced_filters"), "advanced_filters")
    if entries is None:
        entries = parse_filter_array(query.get("filters"), "filters")
    if entries is None:
        return None

    terms = tuple(
        AdvancedFilterTerm(
            field=str(entry.get("field") or entry.get("column") or ""),
            operator=str(entry.get("operator") or entry.get("op") or "equals"),
            value=entry.get("value"),
        )
        for entry in entries
        if _has_value(entry.get("value"))
    )
    raw_condition = (query.get("filter_condition") or "").strip().lower()
    condition = Condition.OR if raw_condition == Condition.OR.value else Condition.AND
    return AdvancedFilterExpression(terms=terms, condition=condition)


def _date_range(
    query: Mapping[str, str],
    prefix: str,
    category: str,
    field_name: str,
) -> DateRangeFilter | None:
    start = parse_date_input(query.get(f"{prefix}from"))
    end = parse_date_input(query.get(f"{prefix}to"))
    if start is None and end is None:
        return None
    if start is None:
        # only an upper bound: treat it as that single day
        start = end.date() if isinstance(end, datetime) else end
    return DateRangeFilter(
        category=category,
        field=field_name,
        start=start,
        end=end,
        time_from=parse_time_of_day(query.get(f"{prefix}time_from")),
        time_to=parse_time_of_day(query.get(f"{prefix}time_to")),
    )


def parse_filters(query: Mapping[str, str], resource: ResourceSpec) -> tuple[FilterClause, ...]:
    """Collect every filter the resource understands; unknown keys are ignored."""
    clauses: list[FilterClause] = []

    for spec in resource.equality_params:
        raw = query.get(spec.param)
        value = coerce_value(raw, spec.type)
        if value is None:
            if _has_value(raw):
                logger.debug("equality_filter_dropped", param=spec.param)
            continue
        clauses.append(EqualityFilter(param=spec.param, field=spec.field, value=value))

    if resource.date_field:
        default_range = _date_range(query, "", "default", resource.date_field)
        if default_range is not None:
            clauses.append(default_range)

    for category, field_name in resource.date_categories.items():
        category_range = _date_range(query, f"{category}_", category, field_name)
        if category_range is not None:
            clauses.append(category_range)

    expression = _advanced_expression(query)
    if expression is not None:
        clauses.append(expression)

    return tuple(clauses)


def validate_list_request(
    query: Mapping[str, str],
    resource: ResourceSpec,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> ListRequest:
    """Turn raw query parameters into a ``ListRequest``."""
    sort_by = query.get("sortBy")
    sort_by = sort_by.strip() if isinstance(sort_by, str) and sort_by.strip() else None
    export = (query.get("export") or "").strip().lower() in ("true", "1")
    return ListRequest(
        page=parse_positive_int(query.get("page"), DEFAULT_PAGE),
        limit=parse_positive_int(query.get("limit"), default_limit, max_limit),
        sort_by=sort_by,
        sort_direction=parse_sort_direction(query.get("sortDirection")),
        filters=parse_filters(query, resource),
        export=export,
    )
