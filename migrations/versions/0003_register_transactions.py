"""register transactions, lines and coupon use ledger

Revision ID: 0003_register_transactions
Revises: 0002_register_sessions
Create Date: 2026-09-08 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0003_register_transactions"
down_revision = "0002_register_sessions"
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
        "register_transactions",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("session_id", GUID(), sa.ForeignKey("register_sessions.id"), nullable=False),
        sa.Column("operator_id", sa.String(length=64), nullable=False),
        sa.Column("customer_id", sa.String(length=64), nullable=True),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_type", sa.String(length=20), nullable=True),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("coupon_id", GUID(), sa.ForeignKey("coupons.id"), nullable=True),
        sa.Column("coupon_code", sa.String(length=64), nullable=True),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", sa.String(length=10), nullable=False),
        sa.Column("amount_paid", sa.Numeric(12, 2), nullable=True),
        sa.Column("change_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_register_transactions_session_id", "register_transactions", ["session_id"])
    op.create_index("ix_register_transactions_created_at", "register_transactions", ["created_at"])

    op.create_table(
        "register_transaction_lines",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("transaction_id", GUID(), sa.ForeignKey("register_transactions.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(length=10), nullable=False),
        sa.Column("item_id", GUID(), nullable=False),
        sa.Column("event_id", GUID(), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("line_total", sa.Numeric(12, 2), nullable=False),
        sa.UniqueConstraint("transaction_id", "position", name="uq_register_transaction_line_position"),
    )
    op.create_index(
        "ix_register_transaction_lines_transaction_id",
        "register_transaction_lines",
        ["transaction_id"],
    )

    op.create_table(
        "coupon_uses",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("coupon_id", GUID(), sa.ForeignKey("coupons.id"), nullable=False),
        sa.Column("transaction_id", GUID(), sa.ForeignKey("register_transactions.id"), nullable=False),
        sa.Column("customer_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_coupon_uses_coupon_id", "coupon_uses", ["coupon_id"])
    op.create_index("ix_coupon_uses_transaction_id", "coupon_uses", ["transaction_id"])
    op.create_index("ix_coupon_uses_customer_id", "coupon_uses", ["customer_id"])
    op.create_index(
        "uq_coupon_uses_coupon_customer",
        "coupon_uses",
        ["coupon_id", "customer_id"],
        unique=True,
        sqlite_where=sa.text("customer_id IS NOT NULL"),
        postgresql_where=sa.text("customer_id IS NOT NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_coupon_uses_coupon_customer", table_name="coupon_uses")
    op.drop_index("ix_coupon_uses_customer_id", table_name="coupon_uses")
    op.drop_index("ix_coupon_uses_transaction_id", table_name="coupon_uses")
    op.drop_index("ix_coupon_uses_coupon_id", table_name="coupon_uses")
    op.drop_table("coupon_uses")
    op.drop_index("ix_register_transaction_lines_transaction_id", table_name="register_transaction_lines")
    op.drop_table("register_transaction_lines")
    op.drop_index("ix_register_transactions_created_at", table_name="register_transactions")
    op.drop_index("ix_register_transactions_session_id", table_name="register_transactions")
    op.drop_table("register_transactions")
