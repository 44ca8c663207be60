"""initial

Revision ID: 0001
Revises: 
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "owners",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("role", sa.Enum("ADMIN", "CLIENT", name="ownerrole"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "owner_numbers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("owners.id", ondelete="CASCADE"), nullable=False),
        sa.Column("number", sa.String(length=64), nullable=False),
    )
    op.create_index("ix_owner_numbers_owner_id", "owner_numbers", ["owner_id"])

    op.create_table(
        "call_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("owners.id", ondelete="CASCADE"), nullable=False),
        sa.Column("caller", sa.String(length=64)),
        sa.Column("called", sa.String(length=64)),
        sa.Column(
            "intent_code",
            sa.Enum("RDV", "INFO", "URGENCE", "ANNULATION", "CONSULTATION", name="intentcode"),
            nullable=False,
        ),
        sa.Column("status", sa.Enum("COMPLETED", "FAILED", "MISSED", name="callstatus"), nullable=False),
        sa.Column("duration_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("first_name", sa.String(length=120)),
        sa.Column("last_name", sa.String(length=120)),
        sa.Column("birthdate", sa.Date()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("steps", sa.JSON(), nullable=False),
        sa.Column("stats", sa.JSON(), nullable=False),
    )
    op.create_index("ix_call_events_intent_code", "call_events", ["intent_code"])
    op.create_index("ix_call_events_owner_created", "call_events", ["owner_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_call_events_owner_created", table_name="call_events")
    op.drop_index("ix_call_events_intent_code", table_name="call_events")
    op.drop_table("call_events")
    op.drop_index("ix_owner_numbers_owner_id", table_name="owner_numbers")
    op.drop_table("owner_numbers")
    op.drop_table("owners")
