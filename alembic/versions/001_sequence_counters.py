"""sequence_counters

Durable document counters, one row per (tenant_id, series, period).
Rows are never deleted by the application.

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - create the sequence_counters table."""

    op.create_table(
        "sequence_counters",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("series", sa.String(length=32), nullable=False),
        sa.Column("period", sa.String(length=16), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "tenant_id", "series", "period", name="uq_sequence_counters_key"
        ),
        sa.CheckConstraint(
            "sequence >= 0", name="ck_sequence_counters_sequence_non_negative"
        ),
    )
    op.create_index(
        "ix_sequence_counters_tenant_id", "sequence_counters", ["tenant_id"]
    )


def downgrade() -> None:
    """Downgrade schema - drop the sequence_counters table."""
    op.drop_index("ix_sequence_counters_tenant_id", table_name="sequence_counters")
    op.drop_table("sequence_counters")
