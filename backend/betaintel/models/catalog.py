"""Profession, product and funnel catalog models."""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from betaintel.db.base import Base, CreatedAtMixin


class Profession(Base, CreatedAtMixin):
    """A profession the marketing funnels are targeted at."""

    __tablename__ = "professions"

    profession_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    profession_name: Mapped[str] = mapped_column(String(255), nullable=False)
    meta_pixel: Mapped[str | None] = mapped_column(String(255), nullable=True)
    meta_token: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<Profession {self.profession_name}>"


class Product(Base, CreatedAtMixin):
    __tablename__ = "products"

    product_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)


class Funnel(Base, CreatedAtMixin):
    __tablename__ = "funnels"

    funnel_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    funnel_name: Mapped[str] = mapped_column(String(255), nullable=False)
    funnel_tag: Mapped[str | None] = mapped_column(String(100), nullable=True)
    profession_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("professions.profession_id", ondelete="SET NULL"),
        nullable=True,
    )
