"""Tracked visitor model (leads and anonymous users)."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from betaintel.db.base import Base, CreatedAtMixin


class User(Base, CreatedAtMixin):
    """A tracked visitor.

    Visitors start anonymous and become leads once they submit contact
    details (``is_identified``). The ``initial_*`` columns record the
    first-touch attribution and never change afterwards.
    """

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    fullname: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_identified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_client: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    initial_device_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    initial_utm_source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    initial_utm_medium: Mapped[str | None] = mapped_column(String(255), nullable=True)
    initial_utm_campaign: Mapped[str | None] = mapped_column(String(255), nullable=True)
    initial_utm_content: Mapped[str | None] = mapped_column(String(255), nullable=True)
    initial_utm_term: Mapped[str | None] = mapped_column(String(255), nullable=True)
    initial_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    initial_region: Mapped[str | None] = mapped_column(String(100), nullable=True)
    initial_city: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.user_id}>"
