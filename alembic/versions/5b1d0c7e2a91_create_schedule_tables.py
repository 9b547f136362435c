"""create schedule tables

Revision ID: 5b1d0c7e2a91
Revises:
Create Date: 2025-10-02 14:21:07.118204

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op
from app.models.audit_log import PortableINET

# revision identifiers, used by Alembic.
revision: str = "5b1d0c7e2a91"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps(with_updated: bool = True) -> list[sa.Column]:
    cols = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        )
    ]
    if with_updated:
        cols.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.text("CURRENT_TIMESTAMP"),
                nullable=False,
            )
        )
    return cols


def upgrade():
    # 1) professionals
    op.create_table(
        "professionals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("speciality", sa.String(length=120), nullable=True),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column(
            "schedule_version",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_professionals")),
    )

    # 2) agenda semanal (valid_to inclusivo; NULL = aberto; weekday -1 = sem dias fixos)
    op.create_table(
        "weekly_schedule_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("professional_id", sa.Integer(), nullable=False),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column(
            "slot_duration_minutes",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("30"),
        ),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("valid_from", sa.Date(), nullable=False),
        sa.Column("valid_to", sa.Date(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "weekday >= -1 AND weekday <= 6",
            name=op.f("ck_weekly_schedule_entries_weekday_range"),
        ),
        sa.CheckConstraint(
            "weekday = -1 OR (start_time IS NOT NULL AND end_time IS NOT NULL "
            "AND end_time > start_time)",
            name=op.f("ck_weekly_schedule_entries_time_order"),
        ),
        sa.CheckConstraint(
            "slot_duration_minutes >= 5 AND slot_duration_minutes <= 480",
            name=op.f("ck_weekly_schedule_entries_slot_duration_range"),
        ),
        sa.CheckConstraint(
            "valid_to IS NULL OR valid_to >= valid_from",
            name=op.f("ck_weekly_schedule_entries_validity_order"),
        ),
        sa.ForeignKeyConstraint(
            ["professional_id"],
            ["professionals.id"],
            name=op.f("fk_weekly_schedule_entries_professional_id_professionals"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_weekly_schedule_entries")),
    )
    op.create_index(
        op.f("ix_weekly_schedule_entries_professional_id"),
        "weekly_schedule_entries",
        ["professional_id"],
    )
    op.create_index(
        "ix_wse_professional_validity",
        "weekly_schedule_entries",
        ["professional_id", "valid_from"],
    )

    # 3) datas pontuais
    op.create_table(
        "schedule_exceptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("professional_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column(
            "slot_duration_minutes",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("30"),
        ),
        sa.Column("observations", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "end_time > start_time", name=op.f("ck_schedule_exceptions_time_order")
        ),
        sa.CheckConstraint(
            "slot_duration_minutes >= 5 AND slot_duration_minutes <= 480",
            name=op.f("ck_schedule_exceptions_slot_duration_range"),
        ),
        sa.ForeignKeyConstraint(
            ["professional_id"],
            ["professionals.id"],
            name=op.f("fk_schedule_exceptions_professional_id_professionals"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_schedule_exceptions")),
        sa.UniqueConstraint("professional_id", "date", name="uq_exception_prof_date"),
    )
    op.create_index(
        op.f("ix_schedule_exceptions_professional_id"),
        "schedule_exceptions",
        ["professional_id"],
    )

    # 4) bloqueios (UTC)
    op.create_table(
        "block_periods",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("professional_id", sa.Integer(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=True),
        *_timestamps(with_updated=False),
        sa.CheckConstraint(
            "ends_at > starts_at", name=op.f("ck_block_periods_time_order")
        ),
        sa.ForeignKeyConstraint(
            ["professional_id"],
            ["professionals.id"],
            name=op.f("fk_block_periods_professional_id_professionals"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_block_periods")),
    )
    op.create_index(
        "ix_block_prof_starts", "block_periods", ["professional_id", "starts_at"]
    )

    # 5) auditoria
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("professional_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity", sa.String(length=80), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("timestamp_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip", PortableINET(), nullable=True),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_audit_logs")),
    )
    op.create_index("ix_audit_timestamp_utc", "audit_logs", ["timestamp_utc"])
    op.create_index("ix_audit_professional_id", "audit_logs", ["professional_id"])


def downgrade():
    op.drop_index("ix_audit_professional_id", table_name="audit_logs")
    op.drop_index("ix_audit_timestamp_utc", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_block_prof_starts", table_name="block_periods")
    op.drop_table("block_periods")

    op.drop_index(
        op.f("ix_schedule_exceptions_professional_id"),
        table_name="schedule_exceptions",
    )
    op.drop_table("schedule_exceptions")

    op.drop_index("ix_wse_professional_validity", table_name="weekly_schedule_entries")
    op.drop_index(
        op.f("ix_weekly_schedule_entries_professional_id"),
        table_name="weekly_schedule_entries",
    )
    op.drop_table("weekly_schedule_entries")

    op.drop_table("professionals")
