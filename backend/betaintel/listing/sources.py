"""Relational sources for each listable resource."""

from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.engine import RowMapping

from betaintel.listing.sql import SQLSource
from betaintel.models import (
    Event,
    Funnel,
    Product,
    Profession,
    Session,
    Survey,
    SurveyResponse,
    User,
)

_UTM = ("utm_source", "utm_medium", "utm_campaign", "utm_content", "utm_term")
_USER_ATTRIBUTION = (
    "initial_device_type",
    "initial_utm_source",
    "initial_utm_medium",
    "initial_utm_campaign",
    "initial_utm_content",
    "initial_utm_term",
    "initial_country",
    "initial_region",
    "initial_city",
)


# Events -------------------------------------------------------------------

def _events_statement() -> Select:
    return (
        select(
            Event.event_id,
            Event.event_name,
            Event.event_type,
            Event.event_source,
            Event.event_time,
            Event.pageview_id,
            Event.session_id,
            Event.user_id,
            Event.profession_id,
            Event.product_id,
            Event.funnel_id,
            *(getattr(Event, key).label(key) for key in _UTM),
            User.fullname.label("user_fullname"),
            User.email.label("user_email"),
            User.phone.label("user_phone"),
            User.is_client.label("user_is_client"),
            *(getattr(User, key).label(f"user_{key}") for key in _USER_ATTRIBUTION),
            Profession.profession_name,
            Product.product_name,
            Funnel.funnel_name,
            Funnel.funnel_tag,
            *(getattr(Session, key).label(f"session_{key}") for key in _UTM),
            Session.country.label("session_country"),
            Session.state.label("session_state"),
            Session.city.label("session_city"),
        )
        .select_from(Event)
        .outerjoin(User, User.user_id == Event.user_id)
        .outerjoin(Session, Session.session_id == Event.session_id)
        .outerjoin(Profession, Profession.profession_id == Event.profession_id)
        .outerjoin(Product, Product.product_id == Event.product_id)
        .outerjoin(Funnel, Funnel.funnel_id == Event.funnel_id)
    )


def _serialize_event(row: RowMapping) -> dict[str, Any]:
    return {
        "event_id": row["event_id"],
        "event_name": row["event_name"],
        "event_type": row["event_type"],
        "event_source": row["event_source"],
        "event_time": row["event_time"],
        "pageview_id": row["pageview_id"],
        "session_id": row["session_id"],
        "user_id": row["user_id"],
        "profession_id": row["profession_id"],
        "product_id": row["product_id"],
        "funnel_id": row["funnel_id"],
        **{key: row[key] for key in _UTM},
        "user": {
            "fullname": row["user_fullname"],
            "email": row["user_email"],
            "phone": row["user_phone"],
            "is_client": row["user_is_client"],
            **{key: row[f"user_{key}"] for key in _USER_ATTRIBUTION},
        },
        "profession": {"profession_name": row["profession_name"]},
        "product": {"product_name": row["product_name"]},
        "funnel": {"funnel_name": row["funnel_name"], "funnel_tag": row["funnel_tag"]},
        "session": {
            **{key: row[f"session_{key}"] for key in _UTM},
            "country": row["session_country"],
            "state": row["session_state"],
            "city": row["session_city"],
        },
    }


_EVENT_COLUMNS = {
    "event_id": Event.event_id,
    "event_time": Event.event_time,
    "event_name": Event.event_name,
    "event_type": Event.event_type,
    "event_source": Event.event_source,
    "profession_id": Event.profession_id,
    "product_id": Event.product_id,
    "funnel_id": Event.funnel_id,
    "user.fullname": User.fullname,
    "user.email": User.email,
    "user.phone": User.phone,
    "profession.profession_name": Profession.profession_name,
    "product.product_name": Product.product_name,
    "funnel.funnel_name": Funnel.funnel_name,
    # event-level attribution wins over the session's
    **{key: func.coalesce(getattr(Event, key), getattr(Session, key)) for key in _UTM},
    "session.country": Session.country,
    "session.state": Session.state,
    "session.city": Session.city,
}

EVENTS_SOURCE = SQLSource(
    statement=_events_statement,
    filter_columns=_EVENT_COLUMNS,
    sort_columns=_EVENT_COLUMNS,
    serialize=_serialize_event,
)


# Leads and anonymous users ---------------------------------------------------

_USER_COLUMNS = {
    "user_id": User.user_id,
    "fullname": User.fullname,
    "email": User.email,
    "phone": User.phone,
    "is_client": User.is_client,
    "created_at": User.created_at,
    **{key: getattr(User, key) for key in _USER_ATTRIBUTION},
}


def _leads_statement() -> Select:
    return select(
        User.user_id,
        User.fullname,
        User.email,
        User.phone,
        User.is_client,
        *(getattr(User, key) for key in _USER_ATTRIBUTION),
        User.created_at,
    ).where(User.is_identified.is_(True))


def _anonymous_statement() -> Select:
    return select(
        User.user_id,
        *(getattr(User, key) for key in _USER_ATTRIBUTION),
        User.created_at,
    ).where(User.is_identified.is_(False))


LEADS_SOURCE = SQLSource(
    statement=_leads_statement,
    filter_columns=_USER_COLUMNS,
    sort_columns=_USER_COLUMNS,
)

ANONYMOUS_SOURCE = SQLSource(
    statement=_anonymous_statement,
    filter_columns=_USER_COLUMNS,
    sort_columns=_USER_COLUMNS,
)


# Professions ---------------------------------------------------------------

_PROFESSION_COLUMNS = {
    "profession_id": Profession.profession_id,
    "profession_name": Profession.profession_name,
    "meta_pixel": Profession.meta_pixel,
    "meta_token": Profession.meta_token,
    "created_at": Profession.created_at,
}

PROFESSIONS_SOURCE = SQLSource(
    statement=lambda: select(*_PROFESSION_COLUMNS.values()),
    filter_columns=_PROFESSION_COLUMNS,
    sort_columns=_PROFESSION_COLUMNS,
)


# Surveys -------------------------------------------------------------------

_total_leads = func.count(SurveyResponse.response_id).label("total_leads")
_responses = func.count(SurveyResponse.responded_at)
_sales = func.count(SurveyResponse.purchased_at)
_response_rate = func.coalesce(
    _responses * 100.0 / func.nullif(func.count(SurveyResponse.response_id), 0), 0
).label("response_rate")
_sales_conversion = func.coalesce(_sales * 100.0 / func.nullif(_responses, 0), 0).label(
    "sales_conversion"
)


def _surveys_statement() -> Select:
    return (
        select(
            Survey.survey_id,
            Survey.survey_name,
            Survey.profession_id,
            Survey.funnel_id,
            Survey.created_at,
            Profession.profession_name,
            Funnel.funnel_name,
            _total_leads,
            _response_rate,
            _sales_conversion,
        )
        .select_from(Survey)
        .outerjoin(SurveyResponse, SurveyResponse.survey_id == Survey.survey_id)
        .outerjoin(Profession, Profession.profession_id == Survey.profession_id)
        .outerjoin(Funnel, Funnel.funnel_id == Survey.funnel_id)
        .group_by(Survey.survey_id, Profession.profession_name, Funnel.funnel_name)
    )


def _serialize_survey(row: RowMapping) -> dict[str, Any]:
    data = dict(row)
    data["response_rate"] = round(float(row["response_rate"] or 0), 2)
    data["sales_conversion"] = round(float(row["sales_conversion"] or 0), 2)
    return data


SURVEYS_SOURCE = SQLSource(
    statement=_surveys_statement,
    filter_columns={
        "survey_id": Survey.survey_id,
        "survey_name": Survey.survey_name,
        "profession_id": Survey.profession_id,
        "funnel_id": Survey.funnel_id,
        "created_at": Survey.created_at,
        "profession_name": Profession.profession_name,
        "funnel_name": Funnel.funnel_name,
        "captured_at": SurveyResponse.captured_at,
        "responded_at": SurveyResponse.responded_at,
        "purchased_at": SurveyResponse.purchased_at,
    },
    sort_columns={
        "survey_id": Survey.survey_id,
        "survey_name": Survey.survey_name,
        "created_at": Survey.created_at,
        "profession_name": Profession.profession_name,
        "funnel_name": Funnel.funnel_name,
        "total_leads": _total_leads,
        "response_rate": _response_rate,
        "sales_conversion": _sales_conversion,
    },
    serialize=_serialize_survey,
)


SQL_SOURCES: dict[str, SQLSource] = {
    "events": EVENTS_SOURCE,
    "leads": LEADS_SOURCE,
    "anonymous": ANONYMOUS_SOURCE,
    "professions": PROFESSIONS_SOURCE,
    "surveys": SURVEYS_SOURCE,
}
