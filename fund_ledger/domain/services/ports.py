"""
Ledger ports.

Repository and unit-of-work protocols the ledger services depend on.
Every repository method is async; implementations live in
fund_ledger.infrastructure.db.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Protocol

from fund_ledger.domain.models import (
    Allocation,
    FundPlan,
    InvestmentRequest,
    Investor,
    Transaction,
    TransactionType,
    WalletAccount,
)


class InvestorRepository(Protocol):
    async def get(self, investor_id: int) -> Optional[Investor]:
        ...

    async def update_totals(
        self,
        investor_id: int,
        total_invested: Decimal,
        current_value: Decimal,
    ) -> None:
        """Overwrite aggregate totals; profit/loss is derived from them"""
        ...


class FundPlanRepository(Protocol):
    async def get(self, fund_plan_id: int) -> Optional[FundPlan]:
        ...

    async def add_investment(
        self,
        fund_plan_id: int,
        amount: Decimal,
        new_investor: bool,
    ) -> None:
        """Increase AUM by amount; bump investor count when new_investor"""
        ...

    async def list_auto_payout_due(self, month: str) -> List[FundPlan]:
        """Monthly auto-payout plans with a positive expected return not yet paid for month"""
        ...

    async def claim_auto_payout_month(self, fund_plan_id: int, month: str) -> bool:
        """Compare-and-set last_auto_payout_month; False when already claimed"""
        ...


class WalletRepository(Protocol):
    async def get_by_investor(self, investor_id: int) -> Optional[WalletAccount]:
        ...

    async def release_locked(self, wallet_id: int, amount: Decimal) -> WalletAccount:
        """Debit locked balance, floored at zero"""
        ...

    async def credit_available(self, wallet_id: int, amount: Decimal) -> WalletAccount:
        ...


class InvestmentRequestRepository(Protocol):
    async def get(self, request_id: int) -> Optional[InvestmentRequest]:
        ...

    async def claim_for_execution(
        self,
        request_id: int,
        executed_by: str,
        executed_at: datetime,
    ) -> bool:
        """
        Compare-and-set pending_execution -> executed.

        Returns False when the request was no longer pending.
        """
        ...

    async def attach_allocation(self, request_id: int, allocation_id: int) -> None:
        ...


class AllocationRepository(Protocol):
    async def get(self, allocation_id: int) -> Optional[Allocation]:
        ...

    async def create(self, allocation: Allocation) -> Allocation:
        ...

    async def list_active(
        self,
        investor_id: Optional[int] = None,
        fund_plan_id: Optional[int] = None,
    ) -> List[Allocation]:
        ...


class TransactionRepository(Protocol):
    async def create(self, transaction: Transaction) -> Transaction:
        ...

    async def list_for_allocation(
        self,
        allocation_id: int,
        transaction_type: Optional[TransactionType] = None,
    ) -> List[Transaction]:
        ...

    async def list_by_type(
        self,
        transaction_type: TransactionType,
        allocation_ids: Optional[Iterable[int]] = None,
    ) -> List[Transaction]:
        ...

    async def list_recent(
        self,
        transaction_type: TransactionType,
        limit: int,
    ) -> List[Transaction]:
        ...


class LedgerUnitOfWork(Protocol):
    """
    One atomic unit of ledger work.

    Leaving the context without an exception commits every write made
    through the repositories; leaving it with an exception rolls all of
    them back.
    """

    investors: InvestorRepository
    fund_plans: FundPlanRepository
    wallets: WalletRepository
    requests: InvestmentRequestRepository
    allocations: AllocationRepository
    transactions: TransactionRepository

    async def __aenter__(self) -> "LedgerUnitOfWork":
        ...

    async def __aexit__(self, exc_type, exc, tb) -> None:
        ...


UnitOfWorkFactory = Callable[[], LedgerUnitOfWork]


class LedgerNotifier(Protocol):
    """
    Best-effort investor messaging.

    Implementations raise ExternalServiceError on delivery failure and
    nothing else; callers log it and move on.
    """

    async def notify_allocation_executed(
        self,
        *,
        investor: Investor,
        fund_plan: FundPlan,
        allocation: Allocation,
    ) -> None:
        ...

    async def notify_profit_payout(
        self,
        *,
        investor: Optional[Investor],
        fund_plan: Optional[FundPlan],
        allocation_id: int,
        amount: Decimal,
        notes: Optional[str],
    ) -> None:
        ...
