"""Initial schema: catalog, visitors, sessions, events and surveys.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _utm_columns(prefix: str = "") -> list[sa.Column]:
    return [
        sa.Column(f"{prefix}utm_{part}", sa.String(255), nullable=True)
        for part in ("source", "medium", "campaign", "content", "term")
    ]


def upgrade() -> None:
    op.create_table(
        "professions",
        sa.Column("profession_id", sa.Integer(), nullable=False),
        sa.Column("profession_name", sa.String(255), nullable=False),
        sa.Column("meta_pixel", sa.String(255), nullable=True),
        sa.Column("meta_token", sa.String(500), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("profession_id"),
    )
    op.create_index("ix_professions_created_at", "professions", ["created_at"])

    op.create_table(
        "products",
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("product_id"),
    )
    op.create_index("ix_products_created_at", "products", ["created_at"])

    op.create_table(
        "funnels",
        sa.Column("funnel_id", sa.Integer(), nullable=False),
        sa.Column("funnel_name", sa.String(255), nullable=False),
        sa.Column("funnel_tag", sa.String(100), nullable=True),
        sa.Column("profession_id", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["profession_id"], ["professions.profession_id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("funnel_id"),
    )
    op.create_index("ix_funnels_created_at", "funnels", ["created_at"])

    op.create_table(
        "users",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("fullname", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("is_identified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_client", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("initial_device_type", sa.String(50), nullable=True),
        *_utm_columns("initial_"),
        sa.Column("initial_country", sa.String(100), nullable=True),
        sa.Column("initial_region", sa.String(100), nullable=True),
        sa.Column("initial_city", sa.String(100), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_is_identified", "users", ["is_identified"])
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "sessions",
        sa.Column("session_id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        *_utm_columns(),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("session_id"),
    )
    op.create_index("ix_sessions_created_at", "sessions", ["created_at"])

    op.create_table(
        "events",
        sa.Column("event_id", sa.String(64), nullable=False),
        sa.Column("event_name", sa.String(255), nullable=False),
        sa.Column("event_type", sa.String(100), nullable=True),
        sa.Column("event_source", sa.String(100), nullable=True),
        sa.Column("event_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("pageview_id", sa.String(64), nullable=True),
        sa.Column("session_id", sa.String(64), nullable=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("profession_id", sa.Integer(), nullable=True),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("funnel_id", sa.Integer(), nullable=True),
        *_utm_columns(),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.session_id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["profession_id"], ["professions.profession_id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.product_id"]),
        sa.ForeignKeyConstraint(["funnel_id"], ["funnels.funnel_id"]),
        sa.PrimaryKeyConstraint("event_id"),
    )
    op.create_index("ix_events_event_time", "events", ["event_time"])
    op.create_index("ix_events_user_id", "events", ["user_id"])
    op.create_index("ix_events_profession_id", "events", ["profession_id"])
    op.create_index("ix_events_funnel_id", "events", ["funnel_id"])
    # default listing order with its tiebreaker
    op.create_index("ix_events_event_time_event_id", "events", ["event_time", "event_id"])

    op.create_table(
        "surveys",
        sa.Column("survey_id", sa.String(64), nullable=False),
        sa.Column("survey_name", sa.String(255), nullable=False),
        sa.Column("profession_id", sa.Integer(), nullable=True),
        sa.Column("funnel_id", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["profession_id"], ["professions.profession_id"]),
        sa.ForeignKeyConstraint(["funnel_id"], ["funnels.funnel_id"]),
        sa.PrimaryKeyConstraint("survey_id"),
    )
    op.create_index("ix_surveys_profession_id", "surveys", ["profession_id"])
    op.create_index("ix_surveys_funnel_id", "surveys", ["funnel_id"])
    op.create_index("ix_surveys_created_at", "surveys", ["created_at"])

    op.create_table(
        "survey_responses",
        sa.Column("response_id", sa.String(64), nullable=False),
        sa.Column("survey_id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("captured_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("purchased_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["survey_id"], ["surveys.survey_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("response_id"),
    )
    op.create_index("ix_survey_responses_survey_id", "survey_responses", ["survey_id"])
    op.create_index("ix_survey_responses_captured_at", "survey_responses", ["captured_at"])


def downgrade() -> None:
    op.drop_table("survey_responses")
    op.drop_table("surveys")
    op.drop_table("events")
    op.drop_table("sessions")
    op.drop_table("users")
    op.drop_table("funnels")
    op.drop_table("products")
    op.drop_table("professions")
