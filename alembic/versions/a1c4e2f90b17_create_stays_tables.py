"""Create reservations, external calendar events and sync state

Revision ID: a1c4e2f90b17
Revises:
Create Date: 2024-05-28 10:12:03.418220

"""

import sqlalchemy as sa

from alembic import op  # type: ignore[attr-defined]
from stay_sync.config import SCHEMA

# revision identifiers, used by Alembic.
revision = "a1c4e2f90b17"
down_revision = None
branch_labels = None
depends_on = None


def _schema() -> str | None:
    # SQLite has no schemas
    return SCHEMA if op.get_bind().dialect.name == "postgresql" else None


def upgrade() -> None:
    """Upgrade schema."""
    schema = _schema()

    op.create_table(
        "reservations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("guest_ref", sa.String(), nullable=False),
        sa.Column("guest_name", sa.String(), nullable=True),
        sa.Column("guest_phone", sa.String(), nullable=True),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("check_in_time", sa.String(length=5), nullable=False, server_default="15:00"),
        sa.Column("check_out_time", sa.String(length=5), nullable=False, server_default="11:00"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="upcoming"),
        sa.Column("source", sa.String(length=16), nullable=False, server_default="direct"),
        sa.Column("number_of_guests", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reservation_code", sa.String(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.CheckConstraint("check_out_date > check_in_date", name="ck_reservations_date_order"),
        sa.CheckConstraint(
            "status IN ('pending', 'upcoming', 'current', 'completed', 'cancelled')",
            name="ck_reservations_status",
        ),
        schema=schema,
    )
    op.create_index(
        "ix_reservations_check_in_date", "reservations", ["check_in_date"], schema=schema
    )
    op.create_index(
        "ix_reservations_check_out_date", "reservations", ["check_out_date"], schema=schema
    )
    op.create_index("ix_reservations_status", "reservations", ["status"], schema=schema)
    op.create_index(
        "ix_reservations_guest_ref_check_in",
        "reservations",
        ["guest_ref", "check_in_date"],
        schema=schema,
    )

    # Backstop for the application lock: active stays never overlap, [) lets them touch
    if schema is not None:
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            f"""
            ALTER TABLE {schema}.reservations
            ADD CONSTRAINT ex_reservations_no_overlap
            EXCLUDE USING gist (daterange(check_in_date, check_out_date, '[)') WITH &&)
            WHERE (status <> 'cancelled')
            """
        )

    op.create_table(
        "external_calendar_events",
        sa.Column("feed_name", sa.String(), primary_key=True),
        sa.Column("uid", sa.String(), primary_key=True),
        sa.Column("start", sa.Date(), nullable=False),
        sa.Column("end", sa.Date(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False, server_default="Reserved"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="blocked"),
        sa.Column("reservation_code", sa.String(), nullable=True),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=False),
        schema=schema,
    )
    op.create_index(
        "ix_external_calendar_events_start", "external_calendar_events", ["start"], schema=schema
    )
    op.create_index(
        "ix_external_calendar_events_end", "external_calendar_events", ["end"], schema=schema
    )

    op.create_table(
        "calendar_sync_state",
        sa.Column("feed_name", sa.String(), primary_key=True),
        sa.Column("feed_url", sa.Text(), nullable=True),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_attempt_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_event_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("skipped_events", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("last_error_at", sa.DateTime(timezone=True), nullable=True),
        schema=schema,
    )


def downgrade() -> None:
    """Downgrade schema."""
    schema = _schema()

    op.drop_table("calendar_sync_state", schema=schema)
    op.drop_index(
        "ix_external_calendar_events_end", table_name="external_calendar_events", schema=schema
    )
    op.drop_index(
        "ix_external_calendar_events_start", table_name="external_calendar_events", schema=schema
    )
    op.drop_table("external_calendar_events", schema=schema)

    if schema is not None:
        op.execute(
            f"ALTER TABLE {schema}.reservations DROP CONSTRAINT IF EXISTS ex_reservations_no_overlap"
        )
    op.drop_index("ix_reservations_guest_ref_check_in", table_name="reservations", schema=schema)
    op.drop_index("ix_reservations_status", table_name="reservations", schema=schema)
    op.drop_index("ix_reservations_check_out_date", table_name="reservations", schema=schema)
    op.drop_index("ix_reservations_check_in_date", table_name="reservations", schema=schema)
    op.drop_table("reservations", schema=schema)
