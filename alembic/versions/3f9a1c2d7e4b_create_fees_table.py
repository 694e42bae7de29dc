"""create fees table

Revision ID: 3f9a1c2d7e4b
Revises:
Create Date: 2026-01-30 13:37:44.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f9a1c2d7e4b'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "fees",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        # Enum values (e.g. "LabFee", "active") stored as plain VARCHAR
        sa.Column("fee_type", sa.String(20), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_by", sa.String(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount > 0", name="ck_fees_amount_positive"),
    )
    op.create_index("ix_fees_tenant_id", "fees", ["tenant_id"])
    op.create_index("ix_fees_fee_type", "fees", ["fee_type"])
    op.create_index("ix_fees_status", "fees", ["status"])
    op.create_index("ix_fees_created_at", "fees", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_fees_created_at", table_name="fees")
    op.drop_index("ix_fees_status", table_name="fees")
    op.drop_index("ix_fees_fee_type", table_name="fees")
    op.drop_index("ix_fees_tenant_id", table_name="fees")
    op.drop_table("fees")
