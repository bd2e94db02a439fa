"""ledger tables

Revision ID: 3a7d5e1f9c2b
Revises:
Create Date: 2026-10-01 10:00:00.000000+05:30

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3a7d5e1f9c2b"
down_revision = None
branch_labels = None
depends_on = None


investment_request_status = sa.Enum(
    "pending_execution", "executed", name="investment_request_status"
)
allocation_status = sa.Enum("active", "closed", name="allocation_status")
transaction_type = sa.Enum(
    "purchase", "profit_payout", "redemption", name="transaction_type"
)
transaction_status = sa.Enum("completed", "failed", name="transaction_status")
notification_type = sa.Enum("info", "dividend", name="notification_type")
payout_frequency = sa.Enum("monthly", "quarterly", "yearly", name="payout_frequency")


def upgrade() -> None:
    op.create_table(
        "investor",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("investor_code", sa.String(length=50), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=True),
        sa.Column("total_invested", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("current_value", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("total_profit_loss", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_investor_investor_code"), "investor", ["investor_code"], unique=True)

    op.create_table(
        "fund_plan",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("plan_code", sa.String(length=50), nullable=False),
        sa.Column("plan_name", sa.String(length=200), nullable=False),
        sa.Column("nav", sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column("total_aum", sa.Numeric(precision=16, scale=2), nullable=False),
        sa.Column("total_investors", sa.Integer(), nullable=False),
        sa.Column("profit_payout_frequency", payout_frequency, nullable=False),
        sa.Column("auto_payout_enabled", sa.Boolean(), nullable=False),
        sa.Column("expected_return_percent", sa.Numeric(precision=6, scale=3), nullable=False),
        sa.Column("last_auto_payout_month", sa.String(length=7), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_fund_plan_plan_code"), "fund_plan", ["plan_code"], unique=True)

    op.create_table(
        "fund_wallet",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("investor_id", sa.Integer(), nullable=False),
        sa.Column("available_balance", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("locked_balance", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("total_deposited", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("total_withdrawn", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("last_transaction_date", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["investor_id"], ["investor.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_fund_wallet_investor_id"), "fund_wallet", ["investor_id"], unique=True)

    op.create_table(
        "investment_request",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("investor_id", sa.Integer(), nullable=False),
        sa.Column("fund_plan_id", sa.Integer(), nullable=False),
        sa.Column("requested_amount", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("status", investment_request_status, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("executed_at", sa.DateTime(), nullable=True),
        sa.Column("executed_by", sa.String(length=100), nullable=True),
        sa.Column("allocation_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["investor_id"], ["investor.id"]),
        sa.ForeignKeyConstraint(["fund_plan_id"], ["fund_plan.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_investment_request_investor_id"), "investment_request", ["investor_id"])
    op.create_index(op.f("ix_investment_request_fund_plan_id"), "investment_request", ["fund_plan_id"])
    op.create_index(op.f("ix_investment_request_status"), "investment_request", ["status"])

    op.create_table(
        "fund_allocation",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("investor_id", sa.Integer(), nullable=False),
        sa.Column("fund_plan_id", sa.Integer(), nullable=False),
        sa.Column("units_held", sa.Numeric(precision=24, scale=8), nullable=False),
        sa.Column("nav_at_creation", sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column("total_invested", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("current_value", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("status", allocation_status, nullable=False),
        sa.Column("investment_request_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("valued_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["investor_id"], ["investor.id"]),
        sa.ForeignKeyConstraint(["fund_plan_id"], ["fund_plan.id"]),
        sa.ForeignKeyConstraint(["investment_request_id"], ["investment_request.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("investment_request_id"),
    )
    op.create_index(
        "ix_fund_allocation_investor_plan",
        "fund_allocation",
        ["investor_id", "fund_plan_id", "status"],
    )
    op.create_index("ix_fund_allocation_status", "fund_allocation", ["status"])

    op.create_table(
        "fund_transaction",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("investor_id", sa.Integer(), nullable=False),
        sa.Column("fund_plan_id", sa.Integer(), nullable=False),
        sa.Column("allocation_id", sa.Integer(), nullable=True),
        sa.Column("transaction_type", transaction_type, nullable=False),
        sa.Column("amount", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("units", sa.Numeric(precision=24, scale=8), nullable=True),
        sa.Column("nav", sa.Numeric(precision=14, scale=4), nullable=True),
        sa.Column("status", transaction_status, nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("batch_id", sa.String(length=32), nullable=True),
        sa.Column("transaction_date", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["investor_id"], ["investor.id"]),
        sa.ForeignKeyConstraint(["fund_plan_id"], ["fund_plan.id"]),
        sa.ForeignKeyConstraint(["allocation_id"], ["fund_allocation.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_fund_transaction_batch_id"), "fund_transaction", ["batch_id"])
    op.create_index(
        "ix_fund_transaction_allocation_type",
        "fund_transaction",
        ["allocation_id", "transaction_type"],
    )
    op.create_index(
        "ix_fund_transaction_type_date",
        "fund_transaction",
        ["transaction_type", "transaction_date"],
    )

    op.create_table(
        "investor_notification",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("investor_id", sa.Integer(), nullable=False),
        sa.Column("notification_type", notification_type, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("related_allocation_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["investor_id"], ["investor.id"]),
        sa.ForeignKeyConstraint(["related_allocation_id"], ["fund_allocation.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_investor_notification_investor_id"),
        "investor_notification",
        ["investor_id"],
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_investor_notification_investor_id"), table_name="investor_notification")
    op.drop_table("investor_notification")

    op.drop_index("ix_fund_transaction_type_date", table_name="fund_transaction")
    op.drop_index("ix_fund_transaction_allocation_type", table_name="fund_transaction")
    op.drop_index(op.f("ix_fund_transaction_batch_id"), table_name="fund_transaction")
    op.drop_table("fund_transaction")

    op.drop_index("ix_fund_allocation_status", table_name="fund_allocation")
    op.drop_index("ix_fund_allocation_investor_plan", table_name="fund_allocation")
    op.drop_table("fund_allocation")

    op.drop_index(op.f("ix_investment_request_status"), table_name="investment_request")
    op.drop_index(op.f("ix_investment_request_fund_plan_id"), table_name="investment_request")
    op.drop_index(op.f("ix_investment_request_investor_id"), table_name="investment_request")
    op.drop_table("investment_request")

    op.drop_index(op.f("ix_fund_wallet_investor_id"), table_name="fund_wallet")
    op.drop_table("fund_wallet")

    op.drop_index(op.f("ix_fund_plan_plan_code"), table_name="fund_plan")
    op.drop_table("fund_plan")

    op.drop_index(op.f("ix_investor_investor_code"), table_name="investor")
    op.drop_table("investor")

    for enum in (
        notification_type,
        payout_frequency,
        transaction_status,
        transaction_type,
        allocation_status,
        investment_request_status,
    ):
        enum.drop(op.get_bind(), checkfirst=True)
