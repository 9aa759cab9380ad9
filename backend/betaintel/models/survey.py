"""Survey models."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from betaintel.db.base import Base, CreatedAtMixin


class Survey(Base, CreatedAtMixin):
    __tablename__ = "surveys"

    survey_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    survey_name: Mapped[str] = mapped_column(String(255), nullable=False)
    profession_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("professions.profession_id"), nullable=True, index=True
    )
    funnel_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("funnels.funnel_id"), nullable=True, index=True
    )


class SurveyResponse(Base):
    """A lead's journey through one survey.

    ``captured_at`` is when the lead entered the funnel, ``responded_at``
    when the survey was answered and ``purchased_at`` when a sale
    followed. The last two stay empty until they happen.
    """

    __tablename__ = "survey_responses"

    response_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    survey_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("surveys.survey_id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True
    )
    captured_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    purchased_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
