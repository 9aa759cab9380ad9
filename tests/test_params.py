"""Query-string parsing never raises and normalises bad input to defaults."""

import json
from datetime import date

import pytest

from betaintel.listing.filters import AdvancedFilterExpression, Condition, DateRangeFilter, EqualityFilter
from betaintel.listing.params import parse_filter_array, validate_list_request
from betaintel.listing.resources import EVENTS, LEADS, SURVEYS


def _advanced(request):
    return [c for c in request.filters if isinstance(c, AdvancedFilterExpression)]


@pytest.mark.parametrize("raw", [None, "", "abc", "0", "-3", "1.5"])
def test_invalid_page_defaults_to_one(raw):
    query = {} if raw is None else {"page": raw}
    assert validate_list_request(query, EVENTS).page == 1


def test_valid_page_and_limit_are_kept():
    request = validate_list_request({"page": "4", "limit": "25"}, EVENTS)
    assert (request.page, request.limit) == (4, 25)


def test_limit_defaults_to_ten():
    assert validate_list_request({"limit": "many"}, EVENTS).limit == 10


def test_sort_direction_outside_asc_desc_is_dropped():
    request = validate_list_request({"sortBy": "event_name", "sortDirection": "up"}, EVENTS)
    assert request.sort_by == "event_name"
    assert request.sort_direction is None


def test_sort_direction_is_case_insensitive():
    assert validate_list_request({"sortDirection": "ASC"}, EVENTS).sort_direction == "asc"


def test_unknown_keys_are_ignored():
    request = validate_list_request({"foo": "bar", "utm": "x"}, EVENTS)
    assert request.filters == ()


def test_malformed_advanced_filters_fail_open():
    request = validate_list_request({"advanced_filters": "[{not json"}, EVENTS)
    assert _advanced(request) == []


def test_advanced_filters_with_only_blank_values_are_absent():
    raw = json.dumps([{"field": "event_name", "operator": "equals", "value": ""}])
    assert parse_filter_array(raw) is None
    assert _advanced(validate_list_request({"advanced_filters": raw}, EVENTS)) == []


def test_empty_array_is_absent():
    assert parse_filter_array("[]") is None


def test_non_array_json_is_absent():
    assert parse_filter_array('{"field": "event_name"}') is None


def test_advanced_filters_take_precedence_over_legacy_filters():
    query = {
        "advanced_filters": json.dumps([{"field": "event_name", "operator": "equals", "value": "Lead"}]),
        "filters": json.dumps([{"field": "event_type", "operator": "equals", "value": "page"}]),
    }
    (expression,) = _advanced(validate_list_request(query, EVENTS))
    assert [term.field for term in expression.terms] == ["event_name"]


def test_legacy_filters_used_when_advanced_is_malformed():
    query = {
        "advanced_filters": "oops",
        "filters": json.dumps([{"column": "event_type", "op": "eq", "value": "page"}]),
    }
    (expression,) = _advanced(validate_list_request(query, EVENTS))
    assert expression.terms[0].field == "event_type"
    assert expression.terms[0].operator == "eq"


def test_blank_terms_are_dropped_from_expression():
    raw = json.dumps(
        [
            {"field": "event_name", "operator": "equals", "value": "Lead"},
            {"field": "event_type", "operator": "equals", "value": "  "},
        ]
    )
    (expression,) = _advanced(validate_list_request({"advanced_filters": raw}, EVENTS))
    assert len(expression.terms) == 1


def test_filter_condition_or():
    raw = json.dumps([{"field": "event_name", "operator": "equals", "value": "Lead"}])
    query = {"advanced_filters": raw, "filter_condition": "OR"}
    (expression,) = _advanced(validate_list_request(query, EVENTS))
    assert expression.condition is Condition.OR


def test_equality_params_are_coerced():
    request = validate_list_request({"profession_id": "3", "funnel_id": ""}, EVENTS)
    assert request.filters == (EqualityFilter(param="profession_id", field="profession_id", value=3),)


def test_unparseable_equality_value_is_omitted():
    assert validate_list_request({"profession_id": "abc"}, EVENTS).filters == ()


def test_boolean_equality_param():
    (clause,) = validate_list_request({"is_client": "true"}, LEADS).filters
    assert clause.value is True


def test_date_range_with_times():
    request = validate_list_request(
        {"from": "2024-03-01", "to": "2024-03-05", "time_from": "08:00", "time_to": "18:30"},
        EVENTS,
    )
    (clause,) = request.filters
    assert isinstance(clause, DateRangeFilter)
    assert clause.field == "event_time"
    assert clause.start == date(2024, 3, 1)
    assert clause.end == date(2024, 3, 5)
    assert clause.time_from.hour == 8
    assert clause.time_to.minute == 30


def test_to_only_means_that_single_day():
    (clause,) = validate_list_request({"to": "2024-03-05"}, EVENTS).filters
    assert clause.start == date(2024, 3, 5)
    assert clause.end == date(2024, 3, 5)


def test_unparseable_dates_are_ignored():
    assert validate_list_request({"from": "yesterday"}, EVENTS).filters == ()


def test_offset_with_decoded_plus_sign_is_repaired():
    (clause,) = validate_list_request({"from": "2024-03-01T10:00:00 03:00"}, EVENTS).filters
    assert clause.start.utcoffset().total_seconds() == 3 * 3600


def test_survey_date_categories_are_independent():
    request = validate_list_request(
        {
            "captacao_from": "2024-03-01",
            "captacao_to": "2024-03-10",
            "vendas_from": "2024-04-01",
        },
        SURVEYS,
    )
    categories = {c.category: c.field for c in request.filters if isinstance(c, DateRangeFilter)}
    assert categories == {"captacao": "captured_at", "vendas": "purchased_at"}


@pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("false", False), (None, False)])
def test_export_flag(raw, expected):
    query = {} if raw is None else {"export": raw}
    assert validate_list_request(query, EVENTS).export is expected


def test_limit_is_capped():
    assert validate_list_request({"limit": str(10**20)}, EVENTS).limit == 50000
    assert validate_list_request({"limit": "500"}, EVENTS, max_limit=100).limit == 100
    assert validate_list_request({"limit": "100"}, EVENTS, max_limit=100).limit == 100
