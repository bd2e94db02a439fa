"""
Domain Models - Entities
Pure ledger objects with no infrastructure dependencies
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class InvestmentRequestStatus(str, Enum):
    """Lifecycle of an approved investment request"""
    PENDING_EXECUTION = "pending_execution"
    EXECUTED = "executed"


class AllocationStatus(str, Enum):
    """Allocation status"""
    ACTIVE = "active"
    CLOSED = "closed"


class TransactionType(str, Enum):
    """Ledger transaction type"""
    PURCHASE = "purchase"
    PROFIT_PAYOUT = "profit_payout"
    REDEMPTION = "redemption"


class TransactionStatus(str, Enum):
    """Ledger transaction status"""
    COMPLETED = "completed"
    FAILED = "failed"


class PayoutFrequency(str, Enum):
    """How often a fund plan pays out profit"""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class NotificationType(str, Enum):
    """In-app notification category"""
    INFO = "info"
    DIVIDEND = "dividend"


@dataclass(frozen=True)
class Investor:
    """Investor record with derived aggregate totals"""
    id: int
    investor_code: str
    full_name: str
    email: Optional[str]
    total_invested: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")
    total_profit_loss: Decimal = Decimal("0")


@dataclass(frozen=True)
class FundPlan:
    """Fund plan with aggregate AUM and investor count"""
    id: int
    plan_code: str
    plan_name: str
    nav: Decimal
    total_aum: Decimal = Decimal("0")
    total_investors: int = 0
    profit_payout_frequency: PayoutFrequency = PayoutFrequency.MONTHLY
    auto_payout_enabled: bool = False
    expected_return_percent: Decimal = Decimal("0")
    # "YYYY-MM" of the last automated monthly payout
    last_auto_payout_month: Optional[str] = None


@dataclass(frozen=True)
class WalletAccount:
    """Per-investor balances - owned externally, mutated by the ledger"""
    id: int
    investor_id: int
    available_balance: Decimal
    locked_balance: Decimal
    total_deposited: Decimal = Decimal("0")
    total_withdrawn: Decimal = Decimal("0")
    last_transaction_date: Optional[datetime] = None


@dataclass(frozen=True)
class InvestmentRequest:
    """Approved request waiting to be turned into units"""
    id: int
    investor_id: int
    fund_plan_id: int
    requested_amount: Decimal
    status: InvestmentRequestStatus
    created_at: Optional[datetime] = None
    executed_at: Optional[datetime] = None
    executed_by: Optional[str] = None
    allocation_id: Optional[int] = None

    @property
    def is_pending(self) -> bool:
        return self.status == InvestmentRequestStatus.PENDING_EXECUTION


@dataclass(frozen=True)
class Allocation:
    """One discrete investment event and its unit holding"""
    investor_id: int
    fund_plan_id: int
    units_held: Decimal
    nav_at_creation: Decimal
    total_invested: Decimal
    current_value: Decimal
    status: AllocationStatus
    created_at: datetime
    investment_request_id: Optional[int] = None
    id: Optional[int] = None

    def __post_init__(self):
        if self.current_value < Decimal("0"):
            raise ValueError("Current value cannot be negative")
        if self.total_invested < Decimal("0"):
            raise ValueError("Total invested cannot be negative")

    @property
    def is_active(self) -> bool:
        return self.status == AllocationStatus.ACTIVE

    @property
    def profit_loss(self) -> Decimal:
        """Unrealized P&L, may be negative"""
        return self.current_value - self.total_invested


@dataclass(frozen=True)
class Transaction:
    """Immutable ledger entry - the system of record for what was paid"""
    investor_id: int
    fund_plan_id: int
    allocation_id: Optional[int]
    transaction_type: TransactionType
    amount: Decimal
    status: TransactionStatus
    transaction_date: datetime
    units: Optional[Decimal] = None
    nav: Optional[Decimal] = None
    payment_method: str = "wallet"
    notes: Optional[str] = None
    batch_id: Optional[str] = None
    id: Optional[int] = None

    def __post_init__(self):
        if self.amount < Decimal("0"):
            raise ValueError("Transaction amount cannot be negative")

    @property
    def is_completed_payout(self) -> bool:
        return (
            self.transaction_type == TransactionType.PROFIT_PAYOUT
            and self.status == TransactionStatus.COMPLETED
        )


@dataclass(frozen=True)
class InvestorNotification:
    """In-app notification row"""
    investor_id: int
    title: str
    message: str
    notification_type: NotificationType
    related_allocation_id: Optional[int] = None
    created_at: Optional[datetime] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class Position:
    """Derived investor/plan view across active allocations - not authoritative"""
    investor_id: int
    fund_plan_id: int
    allocation_count: int
    units_held: Decimal
    total_invested: Decimal
    current_value: Decimal

    @property
    def profit_loss(self) -> Decimal:
        return self.current_value - self.total_invested


@dataclass(frozen=True)
class PayoutPreview:
    """What a payout batch at a given percentage would distribute"""
    percentage: Decimal
    eligible_count: int
    total_distributable: Decimal
    total_payout: Decimal


@dataclass(frozen=True)
class PayoutItemResult:
    """Outcome for one allocation inside a batch"""
    allocation_id: int
    investor_id: int
    distributable_before: Decimal
    payout_amount: Decimal
    transaction_id: Optional[int] = None
    notified: bool = False


@dataclass(frozen=True)
class PayoutItemError:
    """Failed allocation inside a batch - nothing was written for it"""
    allocation_id: int
    reason: str


@dataclass
class PayoutBatchResult:
    """Aggregated batch summary"""
    batch_id: str
    percentage: Decimal
    notes: Optional[str]
    paid: List[PayoutItemResult] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    errors: List[PayoutItemError] = field(default_factory=list)
    # Set for automated per-plan payouts
    fund_plan_id: Optional[int] = None

    @property
    def count(self) -> int:
        return len(self.paid)

    @property
    def total_amount_paid(self) -> Decimal:
        return sum((item.payout_amount for item in self.paid), Decimal("0"))
