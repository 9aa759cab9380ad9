"""SQLAlchemy models package."""

from betaintel.models.catalog import Funnel, Product, Profession
from betaintel.models.event import Event, Session
from betaintel.models.survey import Survey, SurveyResponse
from betaintel.models.user import User

__all__ = [
    "Event",
    "Funnel",
    "Product",
    "Profession",
    "Session",
    "Survey",
    "SurveyResponse",
    "User",
]
