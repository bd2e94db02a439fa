"""
Seed sample investors, fund plans, wallets and profitable allocations.

Test fixture tooling only; the ledger never imports this module.

Usage:
    python -m scripts.seed_sample_data --create-tables
    python -m scripts.seed_sample_data --pending-requests 2
"""

import argparse
import asyncio
import logging
import uuid
from decimal import Decimal

from fund_ledger.domain.models import Allocation, AllocationStatus, PayoutFrequency
from fund_ledger.infrastructure.db.database import Base, async_session_factory, engine
from fund_ledger.infrastructure.db.repositories.allocation_repository import AllocationRepository
from fund_ledger.infrastructure.db.repositories.fund_plan_repository import FundPlanRepository
from fund_ledger.infrastructure.db.repositories.investment_request_repository import (
    InvestmentRequestRepository,
)
from fund_ledger.infrastructure.db.repositories.investor_repository import InvestorRepository
from fund_ledger.infrastructure.db.repositories.wallet_repository import WalletRepository
from fund_ledger.utils.time import now_ist_naive

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

SAMPLE_NAV = Decimal("10")
PENDING_REQUEST_AMOUNT = Decimal("50000")

SAMPLE_INVESTORS = [
    ("Rajesh Kumar", "rajesh.kumar"),
    ("Priya Sharma", "priya.sharma"),
    ("Amit Patel", "amit.patel"),
]

SAMPLE_PLANS = [
    ("MGP", "Test Monthly Growth Plan", PayoutFrequency.MONTHLY, Decimal("10")),
    ("QIP", "Test Quarterly Income Plan", PayoutFrequency.QUARTERLY, Decimal("8")),
]

# (investor index, plan index, invested, current value)
SAMPLE_ALLOCATIONS = [
    (0, 0, Decimal("200000"), Decimal("230000")),
    (1, 0, Decimal("350000"), Decimal("400000")),
    (2, 1, Decimal("500000"), Decimal("540000")),
    (0, 1, Decimal("150000"), Decimal("165000")),
    (1, 1, Decimal("250000"), Decimal("270000")),
]


async def seed(pending_requests: int, auto_payout: bool = False) -> None:
    suffix = uuid.uuid4().hex[:8].upper()

    async with async_session_factory() as session:
        investors_repo = InvestorRepository(session)
        plans_repo = FundPlanRepository(session)
        wallets_repo = WalletRepository(session)
        allocations_repo = AllocationRepository(session)
        requests_repo = InvestmentRequestRepository(session)

        investors = []
        for i, (name, handle) in enumerate(SAMPLE_INVESTORS, start=1):
            investors.append(
                await investors_repo.create(
                    investor_code=f"TEST_INV_{suffix}_{i}",
                    full_name=name,
                    email=f"{handle}.{suffix.lower()}@test.com",
                )
            )
        logger.info(f"Created {len(investors)} sample investors")

        plans = []
        for code, name, frequency, expected_return in SAMPLE_PLANS:
            plans.append(
                await plans_repo.create(
                    plan_code=f"TEST_{code}_{suffix}",
                    plan_name=name,
                    nav=SAMPLE_NAV,
                    profit_payout_frequency=frequency,
                    auto_payout_enabled=auto_payout,
                    expected_return_percent=expected_return,
                )
            )
        logger.info(f"Created {len(plans)} sample fund plans")

        deposited = {inv.id: Decimal("0") for inv in investors}
        total_profit = Decimal("0")
        for inv_idx, plan_idx, invested, current in SAMPLE_ALLOCATIONS:
            investor, plan = investors[inv_idx], plans[plan_idx]
            allocation = await allocations_repo.create(
                Allocation(
                    investor_id=investor.id,
                    fund_plan_id=plan.id,
                    units_held=invested / SAMPLE_NAV,
                    nav_at_creation=SAMPLE_NAV,
                    total_invested=invested,
                    current_value=invested,
                    status=AllocationStatus.ACTIVE,
                    created_at=now_ist_naive(),
                )
            )
            # Valuation goes through the same path an external feed would use
            await allocations_repo.update_current_value(allocation.id, current)
            deposited[investor.id] += invested
            total_profit += current - invested
        logger.info(
            f"Created {len(SAMPLE_ALLOCATIONS)} allocations, "
            f"total distributable profit ₹{total_profit:,.2f}"
        )

        pending = [
            (investors[n % len(investors)], plans[n % len(plans)])
            for n in range(pending_requests)
        ]
        # Funds for a pending request sit in the locked balance
        locked = {inv.id: Decimal("0") for inv in investors}
        for investor, _ in pending:
            locked[investor.id] += PENDING_REQUEST_AMOUNT

        for investor in investors:
            await wallets_repo.create(
                investor_id=investor.id,
                locked_balance=locked[investor.id],
                total_deposited=deposited[investor.id] + locked[investor.id],
            )
        logger.info("Created wallets for all investors")

        for investor, plan in pending:
            request = await requests_repo.create(
                investor_id=investor.id,
                fund_plan_id=plan.id,
                requested_amount=PENDING_REQUEST_AMOUNT,
            )
            logger.info(f"Created pending request {request.id} for {investor.full_name}")

        await session.commit()

    logger.info("Sample data generation complete")


async def main(args: argparse.Namespace) -> None:
    if args.create_tables:
        async with engine.begin() as conn:
            from fund_ledger.infrastructure.db import models  # noqa: F401
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created")

    try:
        await seed(args.pending_requests, args.auto_payout)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed sample fund ledger data")
    parser.add_argument("--create-tables", action="store_true", help="Create tables before seeding")
    parser.add_argument("--pending-requests", type=int, default=0, help="Pending investment requests to create")
    parser.add_argument("--auto-payout", action="store_true", help="Enable monthly auto-payout on the sample plans")
    asyncio.run(main(parser.parse_args()))
