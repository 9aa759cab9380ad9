"""Filter compilation into predicate trees."""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from betaintel.listing.filters import (
    AdvancedFilterExpression,
    AdvancedFilterTerm,
    Condition,
    DateRangeFilter,
    EqualityFilter,
    compile_advanced,
    compile_filters,
    resolve_date_range,
)
from betaintel.listing.predicates import MATCH_ALL, AllOf, AnyOf, Between, Comparison, Operator
from betaintel.listing.resources import EVENTS

SAO_PAULO = ZoneInfo("America/Sao_Paulo")
UTC = timezone.utc


def test_single_day_covers_the_whole_local_day():
    clause = DateRangeFilter("default", "event_time", date(2024, 3, 1), date(2024, 3, 1))
    lower, upper = resolve_date_range(clause, SAO_PAULO)

    assert lower.tzinfo is UTC and upper.tzinfo is UTC
    assert lower.astimezone(SAO_PAULO) == datetime(2024, 3, 1, 0, 0, tzinfo=SAO_PAULO)
    assert upper.astimezone(SAO_PAULO) == datetime(2024, 3, 1, 23, 59, 59, 999999, tzinfo=SAO_PAULO)
    # Sao Paulo is UTC-3 with no daylight saving in 2024
    assert lower == datetime(2024, 3, 1, 3, 0, tzinfo=UTC)
    assert upper == datetime(2024, 3, 2, 2, 59, 59, 999999, tzinfo=UTC)


def test_missing_end_defaults_to_end_of_start_day():
    clause = DateRangeFilter("default", "event_time", date(2024, 3, 1))
    lower, upper = resolve_date_range(clause, SAO_PAULO)
    assert upper - lower == timedelta(days=1) - timedelta(microseconds=1)


def test_reversed_bounds_are_swapped():
    clause = DateRangeFilter("default", "event_time", date(2024, 3, 10), date(2024, 3, 1))
    lower, upper = resolve_date_range(clause, SAO_PAULO)
    assert lower < upper
    assert lower.astimezone(SAO_PAULO).date() == date(2024, 3, 1)


def test_time_of_day_bounds():
    clause = DateRangeFilter(
        "default",
        "event_time",
        date(2024, 3, 1),
        date(2024, 3, 1),
        time_from=time(8, 0),
        time_to=time(18, 30),
    )
    lower, upper = resolve_date_range(clause, SAO_PAULO)
    assert lower.astimezone(SAO_PAULO).time() == time(8, 0)
    assert upper.astimezone(SAO_PAULO).time() == time(18, 30, 59, 999999)


def test_explicit_offsets_are_respected():
    start = datetime(2024, 3, 1, 10, 0, tzinfo=UTC)
    end = datetime(2024, 3, 1, 11, 0, tzinfo=UTC)
    lower, upper = resolve_date_range(DateRangeFilter("default", "event_time", start, end), SAO_PAULO)
    assert (lower, upper) == (start, end)


def test_naive_datetimes_are_local_wall_clock():
    start = datetime(2024, 3, 1, 10, 0)
    end = datetime(2024, 3, 1, 12, 0)
    lower, _ = resolve_date_range(DateRangeFilter("default", "event_time", start, end), SAO_PAULO)
    assert lower == datetime(2024, 3, 1, 13, 0, tzinfo=UTC)


def test_advanced_terms_compile_per_operator():
    expression = AdvancedFilterExpression(
        terms=(
            AdvancedFilterTerm("event_name", "contains", "lea"),
            AdvancedFilterTerm("profession_id", "gt", "3"),
        )
    )
    predicate = compile_advanced(expression, EVENTS)
    assert predicate == AllOf(
        (
            Comparison("event_name", Operator.CONTAINS, "lea"),
            Comparison("profession_id", Operator.GREATER_THAN, 3),
        )
    )


def test_advanced_or_condition():
    expression = AdvancedFilterExpression(
        terms=(
            AdvancedFilterTerm("event_name", "equals", "Lead"),
            AdvancedFilterTerm("event_type", "equals", "page"),
        ),
        condition=Condition.OR,
    )
    predicate = compile_advanced(expression, EVENTS)
    assert isinstance(predicate, AnyOf)
    assert len(predicate.children) == 2


def test_unknown_fields_and_operators_are_skipped():
    expression = AdvancedFilterExpression(
        terms=(
            AdvancedFilterTerm("password", "equals", "x"),
            AdvancedFilterTerm("profession_id", "contains", "3"),
            AdvancedFilterTerm("profession_id", "equals", "three"),
            AdvancedFilterTerm("event_name", "explode", "Lead"),
        ),
        condition=Condition.OR,
    )
    assert compile_advanced(expression, EVENTS) == MATCH_ALL


def test_zero_clauses_match_everything():
    assert compile_filters((), EVENTS, SAO_PAULO) == MATCH_ALL


def test_categories_and_equality_are_anded():
    clauses = (
        EqualityFilter("profession_id", "profession_id", 1),
        DateRangeFilter("default", "event_time", date(2024, 3, 1)),
        AdvancedFilterExpression(terms=()),
    )
    predicate = compile_filters(clauses, EVENTS, SAO_PAULO)
    assert isinstance(predicate, AllOf)
    assert predicate.children[0] == Comparison("profession_id", Operator.EQUALS, 1)
    assert isinstance(predicate.children[1], Between)


def test_end_of_day_past_the_last_calendar_day_is_clamped():
    clause = DateRangeFilter("default", "created_at", date(9999, 12, 31))
    lower, upper = resolve_date_range(clause, SAO_PAULO)

    assert lower == datetime(9999, 12, 31, 3, 0, tzinfo=UTC)
    assert upper == datetime.max.replace(tzinfo=UTC)


def test_aware_bounds_outside_the_calendar_are_clamped():
    late = datetime(9999, 12, 31, 23, 0, tzinfo=timezone(timedelta(hours=-5)))
    lower, upper = resolve_date_range(DateRangeFilter("default", "created_at", late), SAO_PAULO)
    assert lower == upper == datetime.max.replace(tzinfo=UTC)

    early = datetime(1, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=5)))
    lower, upper = resolve_date_range(DateRangeFilter("default", "created_at", early), SAO_PAULO)
    assert lower == datetime.min.replace(tzinfo=UTC)
    assert upper > lower
