"""Tracking session and event models."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from betaintel.db.base import Base, CreatedAtMixin


class Session(Base, CreatedAtMixin):
    """A browsing session with the attribution it arrived with."""

    __tablename__ = "sessions"

    session_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True
    )
    utm_source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    utm_medium: Mapped[str | None] = mapped_column(String(255), nullable=True)
    utm_campaign: Mapped[str | None] = mapped_column(String(255), nullable=True)
    utm_content: Mapped[str | None] = mapped_column(String(255), nullable=True)
    utm_term: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)


class Event(Base):
    """One tracked interaction (page view, lead capture, purchase, ...).

    The ``utm_*`` columns hold attribution captured on the event itself
    and take precedence over the session's values.
    """

    __tablename__ = "events"

    event_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    event_name: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    event_source: Mapped[str | None] = mapped_column(String(100), nullable=True)
    event_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    pageview_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    session_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("sessions.session_id", ondelete="SET NULL"), nullable=True
    )
    user_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True, index=True
    )
    profession_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("professions.profession_id"), nullable=True, index=True
    )
    product_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("products.product_id"), nullable=True
    )
    funnel_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("funnels.funnel_id"), nullable=True, index=True
    )

    utm_source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    utm_medium: Mapped[str | None] = mapped_column(String(255), nullable=True)
    utm_campaign: Mapped[str | None] = mapped_column(String(255), nullable=True)
    utm_content: Mapped[str | None] = mapped_column(String(255), nullable=True)
    utm_term: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Event {self.event_name} {self.event_id}>"
