"""month-scoped categories and rollovers

Revision ID: 202601150900
Revises:
Create Date: 2026-01-15 09:00:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


revision = "202601150900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("category_id", sa.String(length=36), primary_key=True),
        sa.Column("month", sa.String(length=7), nullable=False),
        sa.Column(
            "type",
            sa.Enum("income", "expense", name="categorytype"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("expected", sa.Numeric(12, 2), nullable=False),
        sa.Column("tags", sa.Text(), nullable=True),
        sa.Column(
            "require_all", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "amount_sign",
            sa.Enum("positive", "negative", name="amountsign"),
            nullable=True,
        ),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("ix_categories_month", "categories", ["month"])

    op.create_table(
        "rollovers",
        sa.Column("rollover_id", sa.String(length=36), primary_key=True),
        sa.Column("source_month", sa.String(length=7), nullable=False),
        sa.Column("from_category", sa.String(length=200), nullable=False),
        sa.Column("to_category", sa.String(length=200), nullable=False),
        sa.Column("to_month", sa.String(length=7), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("ix_rollovers_source_month", "rollovers", ["source_month"])
    op.create_index("ix_rollovers_to_month", "rollovers", ["to_month"])


def downgrade() -> None:
    op.drop_index("ix_rollovers_to_month", table_name="rollovers")
    op.drop_index("ix_rollovers_source_month", table_name="rollovers")
    op.drop_table("rollovers")

    op.drop_index("ix_categories_month", table_name="categories")
    op.drop_table("categories")
