"""add model usage ledger table

Revision ID: model_usage_2026
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "model_usage_2026"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "model_usage",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("model_name", sa.String(length=255), nullable=False),
        sa.Column("image_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("usage_date", sa.String(length=10), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.UniqueConstraint(
            "user_id", "model_name", "usage_date", name="uq_model_usage_user_model_date"
        ),
    )
    op.create_index("ix_model_usage_timestamp", "model_usage", ["timestamp"], unique=False)
    op.create_index("ix_model_usage_user_id", "model_usage", ["user_id"], unique=False)
    op.create_index("ix_model_usage_model_name", "model_usage", ["model_name"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_model_usage_model_name", table_name="model_usage")
    op.drop_index("ix_model_usage_user_id", table_name="model_usage")
    op.drop_index("ix_model_usage_timestamp", table_name="model_usage")
    op.drop_table("model_usage")
