"""transactions, status history, documents

Revision ID: 0001_transactions
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_transactions"
down_revision = None
branch_labels = None
depends_on = None


TRANSACTION_STATUSES = (
    "draft",
    "pending_review",
    "pending_approval",
    "approved",
    "rejected",
    "closed",
    "cancelled",
)


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=True, length=32)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=160), nullable=True),
        sa.Column("role", _enum("user_role", "agent", "admin"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("agent_id", sa.String(length=64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("market_type", _enum("market_type", "primary", "secondary"), nullable=True),
        sa.Column("transaction_type", _enum("transaction_type", "sale", "lease"), nullable=True),
        sa.Column("transaction_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("property_details", sa.JSON(), nullable=True),
        sa.Column("client_name", sa.String(length=255), nullable=True),
        sa.Column("client_email", sa.String(length=255), nullable=True),
        sa.Column("client_phone", sa.String(length=50), nullable=True),
        sa.Column("client_type", _enum("client_type", "buyer", "seller", "tenant", "landlord"), nullable=True),
        sa.Column("client_id_number", sa.String(length=100), nullable=True),
        sa.Column("co_broking_type", _enum("co_broking_type", "direct", "co_broke"), nullable=True),
        sa.Column("co_broking_agent_name", sa.String(length=255), nullable=True),
        sa.Column("co_broking_agency_name", sa.String(length=255), nullable=True),
        sa.Column("co_broking_agent_ren", sa.String(length=100), nullable=True),
        sa.Column("total_price", sa.Numeric(15, 2), nullable=True),
        sa.Column("annual_rent", sa.Numeric(15, 2), nullable=True),
        sa.Column("commission_value", sa.Numeric(15, 2), nullable=True),
        sa.Column("commission_type", _enum("commission_type", "percentage", "fixed_amount"), nullable=True),
        sa.Column("commission_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("status", _enum("transaction_status", *TRANSACTION_STATUSES), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_transactions_agent_id", "transactions", ["agent_id"])
    op.create_index("ix_transactions_agent_created", "transactions", ["agent_id", "created_at"])
    op.create_index("ix_transactions_status", "transactions", ["status"])

    op.create_table(
        "transaction_status_history",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "transaction_id",
            sa.String(length=36),
            sa.ForeignKey("transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", _enum("transaction_status", *TRANSACTION_STATUSES), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("changed_by", sa.String(length=64), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index(
        "ix_transaction_status_history_transaction_id",
        "transaction_status_history",
        ["transaction_id"],
    )

    op.create_table(
        "transaction_documents",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "transaction_id",
            sa.String(length=36),
            sa.ForeignKey("transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("document_name", sa.String(length=255), nullable=False),
        sa.Column("document_url", sa.Text(), nullable=False),
        sa.Column(
            "document_type",
            _enum("document_type", "agreement", "kyc", "payment_proof", "title_deed", "spa", "moi", "other"),
            nullable=True,
        ),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("uploaded_by", sa.String(length=64), sa.ForeignKey("users.id"), nullable=True),
    )
    op.create_index(
        "ix_transaction_documents_transaction_id",
        "transaction_documents",
        ["transaction_id"],
    )


def downgrade():
    op.drop_index("ix_transaction_documents_transaction_id", table_name="transaction_documents")
    op.drop_table("transaction_documents")
    op.drop_index("ix_transaction_status_history_transaction_id", table_name="transaction_status_history")
    op.drop_table("transaction_status_history")
    op.drop_index("ix_transactions_status", table_name="transactions")
    op.drop_index("ix_transactions_agent_created", table_name="transactions")
    op.drop_index("ix_transactions_agent_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
