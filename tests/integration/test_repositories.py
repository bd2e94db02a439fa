from datetime import datetime
from decimal import Decimal

import pytest

from fund_ledger.domain.models import (
    Allocation,
    AllocationStatus,
    InvestorNotification,
    NotificationType,
    PayoutFrequency,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from fund_ledger.infrastructure.db.repositories.allocation_repository import AllocationRepository
from fund_ledger.infrastructure.db.repositories.fund_plan_repository import FundPlanRepository
from fund_ledger.infrastructure.db.repositories.investment_request_repository import (
    InvestmentRequestRepository,
)
from fund_ledger.infrastructure.db.repositories.investor_repository import InvestorRepository
from fund_ledger.infrastructure.db.repositories.notification_repository import (
    InvestorNotificationRepository,
)
from fund_ledger.infrastructure.db.repositories.transaction_repository import TransactionRepository
from fund_ledger.infrastructure.db.repositories.wallet_repository import WalletRepository
from fund_ledger.infrastructure.db.unit_of_work import SqlAlchemyUnitOfWork


async def seed_investor_and_plan(session):
    investor = await InvestorRepository(session).create(
        investor_code="INV001", full_name="Rajesh Kumar", email="rajesh@test.com"
    )
    plan = await FundPlanRepository(session).create(
        plan_code="MGP", plan_name="Monthly Growth Plan", nav=Decimal("10")
    )
    return investor, plan


def new_allocation(investor_id, fund_plan_id, invested="200000", status=AllocationStatus.ACTIVE):
    return Allocation(
        investor_id=investor_id,
        fund_plan_id=fund_plan_id,
        units_held=Decimal(invested) / Decimal("10"),
        nav_at_creation=Decimal("10"),
        total_invested=Decimal(invested),
        current_value=Decimal(invested),
        status=status,
        created_at=datetime(2026, 10, 1, 10, 0),
    )


def payout(allocation, amount, status=TransactionStatus.COMPLETED, day=2):
    return Transaction(
        investor_id=allocation.investor_id,
        fund_plan_id=allocation.fund_plan_id,
        allocation_id=allocation.id,
        transaction_type=TransactionType.PROFIT_PAYOUT,
        amount=Decimal(amount),
        status=status,
        transaction_date=datetime(2026, 10, day, 10, 0),
        batch_id="b" * 32,
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_wallet_release_clamps_and_credit_adds(db_session):
    investor, _ = await seed_investor_and_plan(db_session)
    repo = WalletRepository(db_session)
    wallet = await repo.create(
        investor_id=investor.id,
        available_balance=Decimal("500"),
        locked_balance=Decimal("40000"),
    )

    released = await repo.release_locked(wallet.id, Decimal("15000"))
    assert released.locked_balance == Decimal("25000")

    released = await repo.release_locked(wallet.id, Decimal("100000"))
    assert released.locked_balance == Decimal("0")

    credited = await repo.credit_available(wallet.id, Decimal("3000.50"))
    assert credited.available_balance == Decimal("3500.50")
    assert credited.last_transaction_date is not None

    assert (await repo.get_by_investor(investor.id)).id == wallet.id
    assert await repo.get_by_investor(999) is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_request_claim_is_compare_and_set(db_session):
    investor, plan = await seed_investor_and_plan(db_session)
    repo = InvestmentRequestRepository(db_session)
    request = await repo.create(
        investor_id=investor.id, fund_plan_id=plan.id, requested_amount=Decimal("100000")
    )
    assert [r.id for r in await repo.list_pending()] == [request.id]

    executed_at = datetime(2026, 10, 1, 11, 0)
    assert await repo.claim_for_execution(request.id, "ops", executed_at) is True
    assert await repo.claim_for_execution(request.id, "ops", executed_at) is False

    stored = await repo.get(request.id)
    assert not stored.is_pending
    assert stored.executed_by == "ops"
    assert await repo.list_pending() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_allocations_and_positions(db_session):
    investor, plan = await seed_investor_and_plan(db_session)
    other_plan = await FundPlanRepository(db_session).create(
        plan_code="QIP", plan_name="Quarterly Income Plan", nav=Decimal("20")
    )
    repo = AllocationRepository(db_session)

    first = await repo.create(new_allocation(investor.id, plan.id, "200000"))
    second = await repo.create(new_allocation(investor.id, plan.id, "50000"))
    await repo.create(new_allocation(investor.id, other_plan.id, "100000"))
    await repo.create(new_allocation(investor.id, plan.id, "70000", status=AllocationStatus.CLOSED))

    revalued = await repo.update_current_value(first.id, Decimal("230000"))
    assert revalued.current_value == Decimal("230000")
    assert revalued.total_invested == Decimal("200000")

    active = await repo.list_active(investor_id=investor.id, fund_plan_id=plan.id)
    assert [a.id for a in active] == [first.id, second.id]

    positions = await repo.get_positions(investor.id)
    assert [p.fund_plan_id for p in positions] == [plan.id, other_plan.id]
    assert positions[0].allocation_count == 2
    assert positions[0].total_invested == Decimal("250000")
    assert positions[0].current_value == Decimal("280000")
    assert positions[0].profit_loss == Decimal("30000")

    with pytest.raises(ValueError):
        await repo.update_current_value(first.id, Decimal("-1"))


@pytest.mark.asyncio
@pytest.mark.integration
async def test_transaction_history_queries(db_session):
    investor, plan = await seed_investor_and_plan(db_session)
    allocations = AllocationRepository(db_session)
    first = await allocations.create(new_allocation(investor.id, plan.id))
    second = await allocations.create(new_allocation(investor.id, plan.id))

    repo = TransactionRepository(db_session)
    await repo.create(payout(first, "3000", day=2))
    await repo.create(payout(first, "2700", day=3))
    await repo.create(payout(second, "100", status=TransactionStatus.FAILED, day=4))

    first_history = await repo.list_for_allocation(first.id, TransactionType.PROFIT_PAYOUT)
    assert [t.amount for t in first_history] == [Decimal("3000"), Decimal("2700")]
    assert first_history[0].batch_id == "b" * 32

    assert len(await repo.list_by_type(TransactionType.PROFIT_PAYOUT)) == 3
    assert len(await repo.list_by_type(TransactionType.PROFIT_PAYOUT, [second.id])) == 1
    assert await repo.list_by_type(TransactionType.PROFIT_PAYOUT, []) == []
    assert await repo.list_by_type(TransactionType.PURCHASE) == []

    recent = await repo.list_recent(TransactionType.PROFIT_PAYOUT, 2)
    assert [t.amount for t in recent] == [Decimal("100"), Decimal("2700")]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_investor_and_plan_aggregates(db_session):
    investor, plan = await seed_investor_and_plan(db_session)

    await InvestorRepository(db_session).update_totals(
        investor.id, total_invested=Decimal("300000"), current_value=Decimal("330000")
    )
    await FundPlanRepository(db_session).add_investment(plan.id, Decimal("100000"), new_investor=True)
    await FundPlanRepository(db_session).add_investment(plan.id, Decimal("20000"), new_investor=False)

    stored_investor = await InvestorRepository(db_session).get(investor.id)
    assert stored_investor.total_profit_loss == Decimal("30000")

    stored_plan = await FundPlanRepository(db_session).get(plan.id)
    assert stored_plan.total_aum == Decimal("120000")
    assert stored_plan.total_investors == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_notification_repository(db_session):
    investor, _ = await seed_investor_and_plan(db_session)
    repo = InvestorNotificationRepository(db_session)

    await repo.create(
        InvestorNotification(
            investor_id=investor.id,
            title="Profit Payout Credited",
            message="₹3,000.00 profit has been credited to your wallet.",
            notification_type=NotificationType.DIVIDEND,
        )
    )

    stored = await repo.list_for_investor(investor.id)
    assert len(stored) == 1
    assert stored[0].notification_type == NotificationType.DIVIDEND
    assert stored[0].created_at is not None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unit_of_work_commits_or_rolls_back(session_maker):
    async with SqlAlchemyUnitOfWork(session_maker) as uow:
        investor, plan = await seed_investor_and_plan(uow.session)

    with pytest.raises(RuntimeError):
        async with SqlAlchemyUnitOfWork(session_maker) as uow:
            await uow.allocations.create(new_allocation(investor.id, plan.id))
            raise RuntimeError("boom")

    async with SqlAlchemyUnitOfWork(session_maker) as uow:
        assert await uow.investors.get(investor.id) is not None
        assert await uow.allocations.list_active() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_auto_payout_month_claim_is_compare_and_set(db_session):
    repo = FundPlanRepository(db_session)
    due = await repo.create(
        plan_code="MIP",
        plan_name="Monthly Income Plan",
        nav=Decimal("10"),
        auto_payout_enabled=True,
        expected_return_percent=Decimal("1.5"),
    )
    await repo.create(
        plan_code="QIP",
        plan_name="Quarterly Income Plan",
        nav=Decimal("10"),
        profit_payout_frequency=PayoutFrequency.QUARTERLY,
        auto_payout_enabled=True,
        expected_return_percent=Decimal("4"),
    )
    await repo.create(plan_code="MGP", plan_name="Monthly Growth Plan", nav=Decimal("10"))

    assert [p.id for p in await repo.list_auto_payout_due("2026-10")] == [due.id]

    assert await repo.claim_auto_payout_month(due.id, "2026-10") is True
    assert await repo.claim_auto_payout_month(due.id, "2026-10") is False
    assert await repo.list_auto_payout_due("2026-10") == []

    stored = await repo.get(due.id)
    assert stored.last_auto_payout_month == "2026-10"
    assert stored.expected_return_percent == Decimal("1.5")
    assert stored.profit_payout_frequency == PayoutFrequency.MONTHLY

    assert [p.id for p in await repo.list_auto_payout_due("2026-11")] == [due.id]
    assert await repo.claim_auto_payout_month(due.id, "2026-11") is True
