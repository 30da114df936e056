"""Add log views

Revision ID: 3f1c9a7d2b64
Revises:
Create Date: 2026-10-18 12:00:00.000000+00:00

"""
# pylint: disable=no-member, invalid-name, missing-function-docstring, unused-import, no-name-in-module

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3f1c9a7d2b64"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "log_views",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            autoincrement=True,
            nullable=False,
        ),
        sa.Column("log_type", sa.String(), nullable=False),
        sa.Column("tenant_id", sa.BigInteger(), nullable=False),
        sa.Column("view_hash", sa.String(), nullable=False),
        sa.Column("cache_columns", sa.JSON(), nullable=False),
        sa.Column("extraction_query", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "log_type",
            "tenant_id",
            "view_hash",
            name="uq_log_views_log_type_tenant_id_view_hash",
        ),
    )


def downgrade():
    op.drop_table("log_views")
