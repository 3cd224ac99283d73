"""register sessions with a single open session

Revision ID: 0002_register_sessions
Revises: 0001_catalog_coupons
Create Date: 2026-09-03 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_register_sessions"
down_revision = "0001_catalog_coupons"
branch_labels = None
depends_on = None


class GUID(sa.TypeDecorator):
    impl = sa.CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(sa.CHAR(36))


def upgrade() -> None:
    op.create_table(
        "register_sessions",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("operator_id", sa.String(length=64), nullable=False),
        sa.Column("initial_fund", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="OPEN"),
        sa.Column("opened_at", sa.DateTime(), nullable=False),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column("expected_balance", sa.Numeric(12, 2), nullable=True),
        sa.Column("actual_balance", sa.Numeric(12, 2), nullable=True),
        sa.Column("difference", sa.Numeric(12, 2), nullable=True),
        sa.Column("notes", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_register_sessions_operator_id", "register_sessions", ["operator_id"])
    op.create_index(
        "uq_register_sessions_single_open",
        "register_sessions",
        ["status"],
        unique=True,
        sqlite_where=sa.text("status = 'OPEN'"),
        postgresql_where=sa.text("status = 'OPEN'"),
    )


def downgrade() -> None:
    op.drop_index("uq_register_sessions_single_open", table_name="register_sessions")
    op.drop_index("ix_register_sessions_operator_id", table_name="register_sessions")
    op.drop_table("register_sessions")
