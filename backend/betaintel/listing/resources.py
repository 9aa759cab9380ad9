"""Listable resources and their query contracts.

Each ``ResourceSpec`` is the only path by which client input reaches a
backend field reference: sort keys, equality parameters, date categories
and advanced-filter fields are all looked up here, never taken verbatim
from the query string.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

from betaintel.listing.predicates import NUMERIC_OPERATORS, TEXT_OPERATORS, Operator
from betaintel.listing.records import normalize_event


class FieldType(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


FIELD_OPERATORS: dict[FieldType, frozenset[Operator]] = {
    FieldType.TEXT: TEXT_OPERATORS,
    FieldType.INTEGER: NUMERIC_OPERATORS,
    FieldType.NUMBER: NUMERIC_OPERATORS,
    FieldType.BOOLEAN: frozenset({Operator.EQUALS, Operator.NOT_EQUALS}),
}

_TRUE_VALUES = {"true", "1", "yes", "sim"}
_FALSE_VALUES = {"false", "0", "no", "nao", "não"}


def coerce_value(raw: Any, field_type: FieldType) -> Any:
    """Convert a raw filter value to the field's type.

    Returns ``None`` for blank or unconvertible input so callers can drop
    the clause instead of matching ``NULL``/``0``.
    """
    if raw is None or isinstance(raw, (dict, list)):
        return None
    if isinstance(raw, bool) and field_type is FieldType.BOOLEAN:
        return raw
    text = str(raw).strip()
    if not text:
        return None
    if field_type is FieldType.TEXT:
        return text
    if field_type is FieldType.BOOLEAN:
        lowered = text.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        return None
    try:
        if field_type is FieldType.INTEGER:
            return int(text)
        return float(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class EqualityParam:
    """A plain query parameter that compiles to an exact-match predicate."""

    param: str
    field: str
    type: FieldType = FieldType.INTEGER


@dataclass(frozen=True)
class ResourceSpec:
    """Query contract of one listable resource."""

    name: str
    items_key: str
    primary_key: str
    sort_fields: Mapping[str, str]
    default_sort: str
    default_direction: str = "desc"
    equality_params: tuple[EqualityParam, ...] = ()
    date_field: str | None = None
    date_categories: Mapping[str, str] = field(default_factory=dict)
    advanced_fields: Mapping[str, FieldType] = field(default_factory=dict)
    requires_auth: bool = False
    echo_params: tuple[str, ...] = ()
    normalize: Callable[[Mapping[str, Any]], dict[str, Any]] | None = None

    @property
    def valid_sort_fields(self) -> list[str]:
        return sorted(self.sort_fields)

    def normalize_item(self, item: Mapping[str, Any]) -> dict[str, Any]:
        if self.normalize is None:
            return dict(item)
        return self.normalize(item)


_USER_ATTRIBUTION_FIELDS: dict[str, FieldType] = {
    "initial_device_type": FieldType.TEXT,
    "initial_utm_source": FieldType.TEXT,
    "initial_utm_medium": FieldType.TEXT,
    "initial_utm_campaign": FieldType.TEXT,
    "initial_utm_content": FieldType.TEXT,
    "initial_utm_term": FieldType.TEXT,
    "initial_country": FieldType.TEXT,
    "initial_region": FieldType.TEXT,
    "initial_city": FieldType.TEXT,
}


EVENTS = ResourceSpec(
    name="events",
    items_key="events",
    primary_key="event_id",
    sort_fields={
        "event_time": "event_time",
        "created_at": "event_time",
        "event_name": "event_name",
        "event_type": "event_type",
        "event_source": "event_source",
        "user.fullname": "user.fullname",
        "user.email": "user.email",
        "user.phone": "user.phone",
        "profession.profession_name": "profession.profession_name",
        "product.product_name": "product.product_name",
        "funnel.funnel_name": "funnel.funnel_name",
        "utm_source": "utm_source",
        "utm_medium": "utm_medium",
        "utm_campaign": "utm_campaign",
        "session.country": "session.country",
        "session.state": "session.state",
        "session.city": "session.city",
    },
    default_sort="event_time",
    equality_params=(
        EqualityParam("profession_id", "profession_id"),
        EqualityParam("funnel_id", "funnel_id"),
        EqualityParam("product_id", "product_id"),
    ),
    date_field="event_time",
    advanced_fields={
        "event_name": FieldType.TEXT,
        "event_type": FieldType.TEXT,
        "event_source": FieldType.TEXT,
        "profession_id": FieldType.INTEGER,
        "product_id": FieldType.INTEGER,
        "funnel_id": FieldType.INTEGER,
        "user.fullname": FieldType.TEXT,
        "user.email": FieldType.TEXT,
        "user.phone": FieldType.TEXT,
        "profession.profession_name": FieldType.TEXT,
        "product.product_name": FieldType.TEXT,
        "funnel.funnel_name": FieldType.TEXT,
        "utm_source": FieldType.TEXT,
        "utm_medium": FieldType.TEXT,
        "utm_campaign": FieldType.TEXT,
        "utm_content": FieldType.TEXT,
        "utm_term": FieldType.TEXT,
        "session.country": FieldType.TEXT,
        "session.state": FieldType.TEXT,
        "session.city": FieldType.TEXT,
    },
    requires_auth=True,
    echo_params=("profession_id", "funnel_id"),
    normalize=normalize_event,
)

LEADS = ResourceSpec(
    name="leads",
    items_key="users",
    primary_key="user_id",
    sort_fields={
        "created_at": "created_at",
        "fullname": "fullname",
        "email": "email",
        "phone": "phone",
        "is_client": "is_client",
        "initial_device_type": "initial_device_type",
        "initial_utm_source": "initial_utm_source",
        "initial_country": "initial_country",
        "initial_city": "initial_city",
    },
    default_sort="created_at",
    equality_params=(EqualityParam("is_client", "is_client", FieldType.BOOLEAN),),
    date_field="created_at",
    advanced_fields={
        "fullname": FieldType.TEXT,
        "email": FieldType.TEXT,
        "phone": FieldType.TEXT,
        "is_client": FieldType.BOOLEAN,
        **_USER_ATTRIBUTION_FIELDS,
    },
    requires_auth=True,
)

ANONYMOUS = ResourceSpec(
    name="anonymous",
    items_key="data",
    primary_key="user_id",
    sort_fields={
        "created_at": "created_at",
        "user_id": "user_id",
        "initial_device_type": "initial_device_type",
        "initial_utm_source": "initial_utm_source",
        "initial_country": "initial_country",
        "initial_city": "initial_city",
    },
    default_sort="created_at",
    date_field="created_at",
    advanced_fields=dict(_USER_ATTRIBUTION_FIELDS),
)

PROFESSIONS = ResourceSpec(
    name="professions",
    items_key="data",
    primary_key="profession_id",
    sort_fields={
        "profession_id": "profession_id",
        "created_at": "created_at",
        "profession_name": "profession_name",
        "meta_pixel": "meta_pixel",
        "meta_token": "meta_token",
    },
    default_sort="created_at",
    date_field="created_at",
    advanced_fields={
        "profession_name": FieldType.TEXT,
        "meta_pixel": FieldType.TEXT,
    },
)

SURVEYS = ResourceSpec(
    name="surveys",
    items_key="data",
    primary_key="survey_id",
    sort_fields={
        "created_at": "created_at",
        "survey_name": "survey_name",
        "profession_name": "profession_name",
        "funnel_name": "funnel_name",
        "total_leads": "total_leads",
        "response_rate": "response_rate",
        "sales_conversion": "sales_conversion",
    },
    default_sort="created_at",
    equality_params=(
        EqualityParam("profession_id", "profession_id"),
        EqualityParam("funnel_id", "funnel_id"),
    ),
    date_field="created_at",
    date_categories={
        "captacao": "captured_at",
        "pesquisa": "responded_at",
        "vendas": "purchased_at",
    },
    advanced_fields={
        "survey_name": FieldType.TEXT,
        "profession_name": FieldType.TEXT,
        "funnel_name": FieldType.TEXT,
    },
    requires_auth=True,
    echo_params=("profession_id", "funnel_id"),
)

RESOURCES: dict[str, ResourceSpec] = {
    spec.name: spec for spec in (EVENTS, LEADS, ANONYMOUS, PROFESSIONS, SURVEYS)
}


def get_resource(name: str) -> ResourceSpec:
    """Look up a resource by name, raising ``KeyError`` for unknown names."""
    return RESOURCES[name]
