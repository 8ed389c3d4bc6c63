"""create raffle tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from rafflepot.models.id_type import Amount


revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "rounds",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("entry_fee", Amount(), nullable=False),
        sa.Column("draw_interval", sa.Integer(), nullable=False),
        sa.Column("last_draw_timestamp", sa.BigInteger(), nullable=False),
        sa.Column(
            "state",
            sa.Enum(
                "open",
                "calculating",
                name="round_state",
                native_enum=False,
                create_constraint=True,
                length=20,
            ),
            nullable=False,
        ),
        sa.Column("cycle", sa.Integer(), nullable=False),
        sa.Column("pot_balance", Amount(), nullable=False),
        sa.Column("recent_winner", sa.String(length=255), nullable=True),
        sa.Column("pending_request_id", sa.String(length=255), nullable=True),
        sa.Column("provider_endpoint", sa.String(length=255), nullable=True),
        sa.Column("gas_lane", sa.String(length=255), nullable=True),
        sa.Column("subscription_id", sa.String(length=255), nullable=True),
        sa.Column("callback_gas_limit", sa.Integer(), nullable=False),
        sa.Column("request_confirmations", sa.Integer(), nullable=False),
        sa.Column("num_words", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("entry_fee >= 0", name=op.f("ck_rounds_entry_fee_non_negative")),
        sa.CheckConstraint(
            "draw_interval >= 0", name=op.f("ck_rounds_draw_interval_non_negative")
        ),
        sa.CheckConstraint(
            "pot_balance >= 0", name=op.f("ck_rounds_pot_balance_non_negative")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_rounds")),
        sa.UniqueConstraint("name", name="rounds_name_key"),
    )
    op.create_table(
        "raffle_entries",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("round_id", ID_TYPE, nullable=False),
        sa.Column("cycle", sa.Integer(), nullable=False),
        sa.Column("participant", sa.String(length=255), nullable=False),
        sa.Column("amount", Amount(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "amount >= 0", name=op.f("ck_raffle_entries_amount_non_negative")
        ),
        sa.ForeignKeyConstraint(
            ["round_id"],
            ["rounds.id"],
            name=op.f("fk_raffle_entries_round_id_rounds"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_raffle_entries")),
    )
    op.create_index(
        "ix_raffle_entries_round_cycle",
        "raffle_entries",
        ["round_id", "cycle"],
        unique=False,
    )
    op.create_table(
        "draw_requests",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("round_id", ID_TYPE, nullable=False),
        sa.Column("cycle", sa.Integer(), nullable=False),
        sa.Column("request_id", sa.String(length=255), nullable=False),
        sa.Column("participant_count", sa.Integer(), nullable=False),
        sa.Column("pot_balance", Amount(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("random_value", sa.Text(), nullable=True),
        sa.Column("winner_index", sa.Integer(), nullable=True),
        sa.Column("winner", sa.String(length=255), nullable=True),
        sa.Column("payout_amount", Amount(), nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("fulfilled_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending','fulfilled')",
            name=op.f("ck_draw_requests_status_enum"),
        ),
        sa.ForeignKeyConstraint(
            ["round_id"],
            ["rounds.id"],
            name=op.f("fk_draw_requests_round_id_rounds"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_draw_requests")),
        sa.UniqueConstraint("round_id", "request_id", name="uq_draw_request_handle"),
    )
    op.create_index(
        op.f("ix_draw_requests_round_id"), "draw_requests", ["round_id"], unique=False
    )
    op.create_index(
        "ix_draw_requests_status", "draw_requests", ["status"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_draw_requests_status", table_name="draw_requests")
    op.drop_index(op.f("ix_draw_requests_round_id"), table_name="draw_requests")
    op.drop_table("draw_requests")
    op.drop_index("ix_raffle_entries_round_cycle", table_name="raffle_entries")
    op.drop_table("raffle_entries")
    op.drop_table("rounds")
