"""Canonical event record shape.

Event payloads reach the pipeline from several places (ORM joins, cached
rows, older API responses) and historically carried UTM attribution in
up to four spots. ``EventRecord`` collapses them into one shape.

UTM precedence, highest first:

1. flattened top-level field (``utm_source`` or ``utmSource``)
2. ``utm_data``
3. ``session_utms``
4. nested ``session``
"""

from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, Field

UTM_KEYS = ("utm_source", "utm_medium", "utm_campaign", "utm_content", "utm_term")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _present(value: Any) -> bool:
    return value is not None and value != ""


def resolve_utm(payload: Mapping[str, Any], key: str) -> str | None:
    """Return the winning value for one UTM key following the precedence rule."""
    for candidate in (payload.get(key), payload.get(_camel(key))):
        if _present(candidate):
            return candidate
    for container in ("utm_data", "session_utms", "session"):
        nested = payload.get(container)
        if isinstance(nested, Mapping) and _present(nested.get(key)):
            return nested[key]
    return None


class EventUser(BaseModel):
    """User snapshot attached to an event."""

    fullname: str | None = None
    email: str | None = None
    phone: str | None = None
    is_client: bool | None = Field(None, alias="isClient")
    initial_device_type: str | None = Field(None, alias="initialDeviceType")
    initial_utm_source: str | None = Field(None, alias="initialUtmSource")
    initial_utm_medium: str | None = Field(None, alias="initialUtmMedium")
    initial_utm_campaign: str | None = Field(None, alias="initialUtmCampaign")
    initial_utm_content: str | None = Field(None, alias="initialUtmContent")
    initial_utm_term: str | None = Field(None, alias="initialUtmTerm")
    initial_country: str | None = Field(None, alias="initialCountry")
    initial_region: str | None = Field(None, alias="initialRegion")
    initial_city: str | None = Field(None, alias="initialCity")

    class Config:
        populate_by_name = True


class EventProfession(BaseModel):
    profession_name: str | None = None


class EventProduct(BaseModel):
    product_name: str | None = None


class EventFunnel(BaseModel):
    funnel_name: str | None = None
    funnel_tag: str | None = None


class EventSession(BaseModel):
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_content: str | None = None
    utm_term: str | None = None
    country: str | None = None
    state: str | None = None
    city: str | None = None


class EventRecord(BaseModel):
    """One tracked event with its resolved attribution."""

    event_id: str
    event_name: str | None = None
    pageview_id: str | None = None
    session_id: str | None = None
    event_time: datetime | None = None
    user_id: str | None = None
    profession_id: int | None = None
    product_id: int | None = None
    funnel_id: int | None = None
    event_source: str | None = None
    event_type: str | None = None

    user: EventUser = Field(default_factory=EventUser)
    profession: EventProfession = Field(default_factory=EventProfession)
    product: EventProduct = Field(default_factory=EventProduct)
    funnel: EventFunnel = Field(default_factory=EventFunnel)
    session: EventSession = Field(default_factory=EventSession)

    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_content: str | None = None
    utm_term: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "EventRecord":
        """Build a record from any of the historical payload shapes."""
        data = {
            key: value
            for key, value in payload.items()
            if key not in ("utm_data", "session_utms") and key in cls.model_fields
        }
        for nested in ("user", "profession", "product", "funnel", "session"):
            if not isinstance(data.get(nested), Mapping):
                data.pop(nested, None)
        for key in UTM_KEYS:
            data[key] = resolve_utm(payload, key)
        return cls.model_validate(data)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def normalize_event(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Normalise one event payload into the canonical response shape."""
    return EventRecord.from_payload(payload).to_payload()
