"""
Database Models (SQLAlchemy ORM)
Ledger tables - transactions are insert-only, nothing is deleted
"""

from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Boolean,
    ForeignKey, Text, Enum as SQLEnum, Index,
)

from fund_ledger.domain.models import (
    AllocationStatus,
    InvestmentRequestStatus,
    NotificationType,
    PayoutFrequency,
    TransactionStatus,
    TransactionType,
)
from fund_ledger.infrastructure.db.database import Base
from fund_ledger.utils.time import now_ist_naive


def _enum_column(enum_cls, name: str) -> SQLEnum:
    """Store enum values (lowercase), not member names"""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


# Tables

class InvestorModel(Base):
    """Investor with aggregate totals maintained by allocation execution"""
    __tablename__ = "investor"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_code = Column(String(50), nullable=False, unique=True, index=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(254), nullable=True)

    total_invested = Column(Numeric(14, 2), nullable=False, default=0)
    current_value = Column(Numeric(14, 2), nullable=False, default=0)
    total_profit_loss = Column(Numeric(14, 2), nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=now_ist_naive)
    updated_at = Column(DateTime, nullable=True)


class FundPlanModel(Base):
    """Fund plan with aggregate AUM and investor count"""
    __tablename__ = "fund_plan"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plan_code = Column(String(50), nullable=False, unique=True, index=True)
    plan_name = Column(String(200), nullable=False)
    nav = Column(Numeric(14, 4), nullable=False)

    total_aum = Column(Numeric(16, 2), nullable=False, default=0)
    total_investors = Column(Integer, nullable=False, default=0)

    profit_payout_frequency = Column(
        _enum_column(PayoutFrequency, "payout_frequency"),
        nullable=False,
        default=PayoutFrequency.MONTHLY,
    )
    auto_payout_enabled = Column(Boolean, nullable=False, default=False)
    expected_return_percent = Column(Numeric(6, 3), nullable=False, default=0)
    last_auto_payout_month = Column(String(7), nullable=True)

    created_at = Column(DateTime, nullable=False, default=now_ist_naive)


class FundWalletModel(Base):
    """Per-investor wallet balances"""
    __tablename__ = "fund_wallet"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("investor.id"), nullable=False, unique=True, index=True)

    available_balance = Column(Numeric(14, 2), nullable=False, default=0)
    locked_balance = Column(Numeric(14, 2), nullable=False, default=0)
    total_deposited = Column(Numeric(14, 2), nullable=False, default=0)
    total_withdrawn = Column(Numeric(14, 2), nullable=False, default=0)

    last_transaction_date = Column(DateTime, nullable=True)


class InvestmentRequestModel(Base):
    """Approved investment request - status is the execution guard"""
    __tablename__ = "investment_request"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("investor.id"), nullable=False, index=True)
    fund_plan_id = Column(Integer, ForeignKey("fund_plan.id"), nullable=False, index=True)
    requested_amount = Column(Numeric(14, 2), nullable=False)

    status = Column(
        _enum_column(InvestmentRequestStatus, "investment_request_status"),
        nullable=False,
        default=InvestmentRequestStatus.PENDING_EXECUTION,
        index=True,
    )

    created_at = Column(DateTime, nullable=False, default=now_ist_naive)
    executed_at = Column(DateTime, nullable=True)
    executed_by = Column(String(100), nullable=True)
    # Plain column: fund_allocation already references this table
    allocation_id = Column(Integer, nullable=True)


class FundAllocationModel(Base):
    """One investment event and its unit holding"""
    __tablename__ = "fund_allocation"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("investor.id"), nullable=False)
    fund_plan_id = Column(Integer, ForeignKey("fund_plan.id"), nullable=False)

    units_held = Column(Numeric(24, 8), nullable=False)
    nav_at_creation = Column(Numeric(14, 4), nullable=False)
    total_invested = Column(Numeric(14, 2), nullable=False)
    current_value = Column(Numeric(14, 2), nullable=False)

    status = Column(
        _enum_column(AllocationStatus, "allocation_status"),
        nullable=False,
        default=AllocationStatus.ACTIVE,
    )
    investment_request_id = Column(
        Integer,
        ForeignKey("investment_request.id"),
        nullable=True,
        unique=True,
    )

    created_at = Column(DateTime, nullable=False, default=now_ist_naive)
    valued_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_fund_allocation_investor_plan", "investor_id", "fund_plan_id", "status"),
        Index("ix_fund_allocation_status", "status"),
    )


class FundTransactionModel(Base):
    """Ledger entry - AUDIT RECORD, never updated or deleted"""
    __tablename__ = "fund_transaction"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("investor.id"), nullable=False)
    fund_plan_id = Column(Integer, ForeignKey("fund_plan.id"), nullable=False)
    allocation_id = Column(Integer, ForeignKey("fund_allocation.id"), nullable=True)

    transaction_type = Column(
        _enum_column(TransactionType, "transaction_type"),
        nullable=False,
    )
    amount = Column(Numeric(14, 2), nullable=False)
    units = Column(Numeric(24, 8), nullable=True)
    nav = Column(Numeric(14, 4), nullable=True)
    status = Column(
        _enum_column(TransactionStatus, "transaction_status"),
        nullable=False,
    )
    payment_method = Column(String(20), nullable=False, default="wallet")
    notes = Column(Text, nullable=True)
    batch_id = Column(String(32), nullable=True, index=True)

    transaction_date = Column(DateTime, nullable=False, default=now_ist_naive)

    __table_args__ = (
        Index("ix_fund_transaction_allocation_type", "allocation_id", "transaction_type"),
        Index("ix_fund_transaction_type_date", "transaction_type", "transaction_date"),
    )


class InvestorNotificationModel(Base):
    """In-app notifications (best-effort, outside ledger units of work)"""
    __tablename__ = "investor_notification"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("investor.id"), nullable=False, index=True)
    notification_type = Column(
        _enum_column(NotificationType, "notification_type"),
        nullable=False,
    )
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    related_allocation_id = Column(Integer, ForeignKey("fund_allocation.id"), nullable=True)
    status = Column(String(20), nullable=False, default="unread")
    created_at = Column(DateTime, nullable=False, default=now_ist_naive)
