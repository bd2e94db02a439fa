"""
In-memory ledger store and unit of work for domain service tests

Each unit of work edits a copy of the committed tables and writes it
back only when the block exits cleanly, so a raised error leaves the
store exactly as it was.
"""

import itertools
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

import pytest

from fund_ledger.domain.errors import ExternalServiceError, NotFoundError
from fund_ledger.domain.models import (
    Allocation,
    AllocationStatus,
    FundPlan,
    InvestmentRequest,
    InvestmentRequestStatus,
    Investor,
    PayoutFrequency,
    Transaction,
    TransactionStatus,
    TransactionType,
    WalletAccount,
)

TABLES = ("investors", "fund_plans", "wallets", "requests", "allocations", "transactions")


class LedgerTables:
    def __init__(self, source: Optional["LedgerTables"] = None):
        for table in TABLES:
            setattr(self, table, dict(getattr(source, table)) if source else {})


class LedgerStore(LedgerTables):
    """Committed state plus seeding helpers and fault injection"""

    def __init__(self):
        super().__init__()
        self._ids = itertools.count(1)
        self.commits = 0
        self.rollbacks = 0
        self.failing_wallets = set()
        self.lost_claims = set()
        self.lost_month_claims = set()

    def next_id(self) -> int:
        return next(self._ids)

    def add_investor(self, full_name="Rajesh Kumar", email="rajesh@test.com") -> Investor:
        investor_id = self.next_id()
        investor = Investor(
            id=investor_id,
            investor_code=f"INV{investor_id:03d}",
            full_name=full_name,
            email=email,
        )
        self.investors[investor_id] = investor
        return investor

    def add_plan(self, plan_name="Monthly Growth Plan", nav=Decimal("10"), **auto_payout) -> FundPlan:
        plan_id = self.next_id()
        plan = FundPlan(
            id=plan_id, plan_code=f"PLAN{plan_id}", plan_name=plan_name, nav=nav, **auto_payout
        )
        self.fund_plans[plan_id] = plan
        return plan

    def add_wallet(self, investor_id, available=Decimal("0"), locked=Decimal("0")) -> WalletAccount:
        wallet = WalletAccount(
            id=self.next_id(),
            investor_id=investor_id,
            available_balance=available,
            locked_balance=locked,
        )
        self.wallets[wallet.id] = wallet
        return wallet

    def add_request(self, investor_id, fund_plan_id, amount) -> InvestmentRequest:
        request = InvestmentRequest(
            id=self.next_id(),
            investor_id=investor_id,
            fund_plan_id=fund_plan_id,
            requested_amount=amount,
            status=InvestmentRequestStatus.PENDING_EXECUTION,
            created_at=datetime(2026, 10, 1, 10, 0),
        )
        self.requests[request.id] = request
        return request

    def add_allocation(
        self,
        investor_id,
        fund_plan_id,
        invested,
        current,
        status=AllocationStatus.ACTIVE,
    ) -> Allocation:
        allocation = Allocation(
            id=self.next_id(),
            investor_id=investor_id,
            fund_plan_id=fund_plan_id,
            units_held=invested / Decimal("10"),
            nav_at_creation=Decimal("10"),
            total_invested=invested,
            current_value=current,
            status=status,
            created_at=datetime(2026, 10, 1, 10, 0),
        )
        self.allocations[allocation.id] = allocation
        return allocation

    def add_payout(self, allocation: Allocation, amount, status=TransactionStatus.COMPLETED) -> Transaction:
        txn = Transaction(
            id=self.next_id(),
            investor_id=allocation.investor_id,
            fund_plan_id=allocation.fund_plan_id,
            allocation_id=allocation.id,
            transaction_type=TransactionType.PROFIT_PAYOUT,
            amount=amount,
            status=status,
            transaction_date=datetime(2026, 10, 2, 10, 0),
        )
        self.transactions[txn.id] = txn
        return txn

    def wallet_of(self, investor_id) -> WalletAccount:
        return next(w for w in self.wallets.values() if w.investor_id == investor_id)

    def transactions_of(self, transaction_type: TransactionType) -> List[Transaction]:
        return [t for t in self.transactions.values() if t.transaction_type == transaction_type]


# Repositories over one unit of work's working tables

class FakeInvestorRepository:
    def __init__(self, tables: LedgerTables):
        self.tables = tables

    async def get(self, investor_id):
        return self.tables.investors.get(investor_id)

    async def update_totals(self, investor_id, total_invested, current_value):
        investor = self.tables.investors[investor_id]
        self.tables.investors[investor_id] = replace(
            investor,
            total_invested=total_invested,
            current_value=current_value,
            total_profit_loss=current_value - total_invested,
        )


class FakeFundPlanRepository:
    def __init__(self, tables: LedgerTables, store: LedgerStore):
        self.tables = tables
        self.store = store

    async def get(self, fund_plan_id):
        return self.tables.fund_plans.get(fund_plan_id)

    async def add_investment(self, fund_plan_id, amount, new_investor):
        plan = self.tables.fund_plans[fund_plan_id]
        self.tables.fund_plans[fund_plan_id] = replace(
            plan,
            total_aum=plan.total_aum + amount,
            total_investors=plan.total_investors + (1 if new_investor else 0),
        )

    async def list_auto_payout_due(self, month):
        return [
            plan for plan in self.tables.fund_plans.values()
            if plan.auto_payout_enabled
            and plan.profit_payout_frequency == PayoutFrequency.MONTHLY
            and plan.expected_return_percent > 0
            and plan.last_auto_payout_month != month
        ]

    async def claim_auto_payout_month(self, fund_plan_id, month):
        # Another run claimed the month first
        if fund_plan_id in self.store.lost_month_claims:
            return False
        plan = self.tables.fund_plans[fund_plan_id]
        if plan.last_auto_payout_month == month:
            return False
        self.tables.fund_plans[fund_plan_id] = replace(plan, last_auto_payout_month=month)
        return True


class FakeWalletRepository:
    def __init__(self, tables: LedgerTables, store: LedgerStore):
        self.tables = tables
        self.store = store

    async def get_by_investor(self, investor_id):
        for wallet in self.tables.wallets.values():
            if wallet.investor_id == investor_id:
                return wallet
        return None

    async def release_locked(self, wallet_id, amount):
        wallet = self.tables.wallets[wallet_id]
        wallet = replace(wallet, locked_balance=max(Decimal("0"), wallet.locked_balance - amount))
        self.tables.wallets[wallet_id] = wallet
        return wallet

    async def credit_available(self, wallet_id, amount):
        if wallet_id in self.store.failing_wallets:
            raise RuntimeError(f"database unavailable for wallet {wallet_id}")
        wallet = self.tables.wallets.get(wallet_id)
        if wallet is None:
            raise NotFoundError("WalletAccount", wallet_id)
        wallet = replace(wallet, available_balance=wallet.available_balance + amount)
        self.tables.wallets[wallet_id] = wallet
        return wallet


class FakeInvestmentRequestRepository:
    def __init__(self, tables: LedgerTables, store: LedgerStore):
        self.tables = tables
        self.store = store

    async def get(self, request_id):
        return self.tables.requests.get(request_id)

    async def claim_for_execution(self, request_id, executed_by, executed_at):
        # Another executor committed first
        if request_id in self.store.lost_claims:
            return False
        request = self.tables.requests.get(request_id)
        if request is None or not request.is_pending:
            return False
        self.tables.requests[request_id] = replace(
            request,
            status=InvestmentRequestStatus.EXECUTED,
            executed_by=executed_by,
            executed_at=executed_at,
        )
        return True

    async def attach_allocation(self, request_id, allocation_id):
        request = self.tables.requests[request_id]
        self.tables.requests[request_id] = replace(request, allocation_id=allocation_id)


class FakeAllocationRepository:
    def __init__(self, tables: LedgerTables, store: LedgerStore):
        self.tables = tables
        self.store = store

    async def get(self, allocation_id):
        return self.tables.allocations.get(allocation_id)

    async def create(self, allocation):
        stored = replace(allocation, id=self.store.next_id())
        self.tables.allocations[stored.id] = stored
        return stored

    async def list_active(self, investor_id=None, fund_plan_id=None):
        return [
            a for _, a in sorted(self.tables.allocations.items())
            if a.is_active
            and (investor_id is None or a.investor_id == investor_id)
            and (fund_plan_id is None or a.fund_plan_id == fund_plan_id)
        ]


class FakeTransactionRepository:
    def __init__(self, tables: LedgerTables, store: LedgerStore):
        self.tables = tables
        self.store = store

    async def create(self, transaction):
        stored = replace(transaction, id=self.store.next_id())
        self.tables.transactions[stored.id] = stored
        return stored

    async def list_for_allocation(self, allocation_id, transaction_type=None):
        return [
            t for _, t in sorted(self.tables.transactions.items())
            if t.allocation_id == allocation_id
            and (transaction_type is None or t.transaction_type == transaction_type)
        ]

    async def list_by_type(self, transaction_type, allocation_ids=None):
        wanted = set(allocation_ids) if allocation_ids is not None else None
        return [
            t for _, t in sorted(self.tables.transactions.items())
            if t.transaction_type == transaction_type
            and (wanted is None or t.allocation_id in wanted)
        ]

    async def list_recent(self, transaction_type, limit):
        matching = [
            t for _, t in sorted(self.tables.transactions.items())
            if t.transaction_type == transaction_type
        ]
        return list(reversed(matching))[:limit]


class FakeUnitOfWork:
    def __init__(self, store: LedgerStore):
        self.store = store

    async def __aenter__(self):
        self.tables = LedgerTables(self.store)
        self.investors = FakeInvestorRepository(self.tables)
        self.fund_plans = FakeFundPlanRepository(self.tables, self.store)
        self.wallets = FakeWalletRepository(self.tables, self.store)
        self.requests = FakeInvestmentRequestRepository(self.tables, self.store)
        self.allocations = FakeAllocationRepository(self.tables, self.store)
        self.transactions = FakeTransactionRepository(self.tables, self.store)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            for table in TABLES:
                setattr(self.store, table, getattr(self.tables, table))
            self.store.commits += 1
        else:
            self.store.rollbacks += 1


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.allocations = []
        self.payouts = []

    async def notify_allocation_executed(self, *, investor, fund_plan, allocation):
        self.allocations.append((investor, fund_plan, allocation))
        if self.fail:
            raise ExternalServiceError("telegram", "timed out")

    async def notify_profit_payout(self, *, investor, fund_plan, allocation_id, amount, notes):
        self.payouts.append((investor, fund_plan, allocation_id, amount, notes))
        if self.fail:
            raise ExternalServiceError("email", "relay returned 503")


@pytest.fixture
def store():
    return LedgerStore()


@pytest.fixture
def uow_factory(store):
    return lambda: FakeUnitOfWork(store)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)
