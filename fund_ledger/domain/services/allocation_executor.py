"""
ALLOCATION EXECUTOR
Approved investment request -> unit holding

RESPONSIBILITIES:
- Convert the requested amount to units at the given NAV
- Create the Allocation and its purchase Transaction
- Move money out of the wallet's locked balance
- Flip the request to executed exactly once
- Refresh investor and fund plan aggregates

RULES:
- All writes for one request commit together or not at all
- The request status compare-and-set is the only concurrency guard
- Notifications run after commit and never undo it
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fund_ledger.domain.errors import (
    ConcurrencyError,
    ExternalServiceError,
    InvalidNavError,
    NotFoundError,
)
from fund_ledger.domain.models import (
    Allocation,
    AllocationStatus,
    InvestmentRequestStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from fund_ledger.domain.services.ports import LedgerNotifier, UnitOfWorkFactory
from fund_ledger.utils.time import now_ist_naive

logger = logging.getLogger(__name__)


NAV_PRECISION = Decimal("0.0001")
UNITS_PRECISION = Decimal("0.00000001")


def _to_nav(nav) -> Decimal:
    # Stored as Numeric(14, 4); a NAV that rounds to zero is rejected
    try:
        value = Decimal(str(nav)).quantize(NAV_PRECISION, rounding=ROUND_HALF_UP)
    except ArithmeticError:
        raise InvalidNavError(nav)
    if value <= Decimal("0"):
        raise InvalidNavError(nav)
    return value


class AllocationExecutor:
    """Executes approved investment requests against a unit of work"""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifier: Optional[LedgerNotifier] = None,
    ):
        self.uow_factory = uow_factory
        self.notifier = notifier

    async def execute(
        self,
        request_id: int,
        nav,
        executed_by: str = "admin",
    ) -> Allocation:
        """
        Execute one investment request at `nav`

        Args:
            request_id: InvestmentRequest id
            nav: Net asset value per unit, must be > 0
            executed_by: Operator recorded on the request

        Returns:
            The new Allocation

        Raises:
            ValidationError: nav <= 0
            NotFoundError: request, investor, fund plan or wallet missing
            ConcurrencyError: request not pending execution
        """
        nav_value = _to_nav(nav)

        async with self.uow_factory() as uow:
            request = await uow.requests.get(request_id)
            if request is None:
                raise NotFoundError("InvestmentRequest", request_id)
            if not request.is_pending:
                raise ConcurrencyError(request.id, request.status.value)

            investor = await uow.investors.get(request.investor_id)
            if investor is None:
                raise NotFoundError("Investor", request.investor_id)

            fund_plan = await uow.fund_plans.get(request.fund_plan_id)
            if fund_plan is None:
                raise NotFoundError("FundPlan", request.fund_plan_id)

            wallet = await uow.wallets.get_by_investor(request.investor_id)
            if wallet is None:
                raise NotFoundError("WalletAccount", f"investor {request.investor_id}")

            amount = request.requested_amount
            if wallet.locked_balance < amount:
                logger.warning(
                    "Wallet %s locked balance %s is below request %s amount %s; "
                    "clamping locked balance at zero",
                    wallet.id, wallet.locked_balance, request.id, amount,
                )

            # Checked before our own allocation exists
            existing_in_plan = await uow.allocations.list_active(
                investor_id=investor.id,
                fund_plan_id=fund_plan.id,
            )

            executed_at = now_ist_naive()
            claimed = await uow.requests.claim_for_execution(
                request.id, executed_by, executed_at
            )
            if not claimed:
                raise ConcurrencyError(
                    request.id, InvestmentRequestStatus.EXECUTED.value
                )

            units = (amount / nav_value).quantize(UNITS_PRECISION, rounding=ROUND_HALF_UP)
            allocation = await uow.allocations.create(
                Allocation(
                    investor_id=investor.id,
                    fund_plan_id=fund_plan.id,
                    units_held=units,
                    nav_at_creation=nav_value,
                    total_invested=amount,
                    current_value=amount,
                    status=AllocationStatus.ACTIVE,
                    created_at=executed_at,
                    investment_request_id=request.id,
                )
            )

            await uow.transactions.create(
                Transaction(
                    investor_id=investor.id,
                    fund_plan_id=fund_plan.id,
                    allocation_id=allocation.id,
                    transaction_type=TransactionType.PURCHASE,
                    amount=amount,
                    status=TransactionStatus.COMPLETED,
                    transaction_date=executed_at,
                    units=units,
                    nav=nav_value,
                )
            )

            await uow.wallets.release_locked(wallet.id, amount)
            await uow.requests.attach_allocation(request.id, allocation.id)

            active = await uow.allocations.list_active(investor_id=investor.id)
            await uow.investors.update_totals(
                investor.id,
                total_invested=sum((a.total_invested for a in active), Decimal("0")),
                current_value=sum((a.current_value for a in active), Decimal("0")),
            )
            await uow.fund_plans.add_investment(
                fund_plan.id,
                amount,
                new_investor=not existing_in_plan,
            )

        logger.info(
            "Executed request %s: allocation %s, investor %s, plan %s, "
            "amount %s, nav %s, units %s",
            request.id, allocation.id, investor.id, fund_plan.id,
            amount, nav_value, units,
        )

        if self.notifier is not None:
            try:
                await self.notifier.notify_allocation_executed(
                    investor=investor,
                    fund_plan=fund_plan,
                    allocation=allocation,
                )
            except ExternalServiceError as exc:
                logger.warning(
                    "Allocation %s executed but notification failed: %s",
                    allocation.id, exc.message,
                )

        return allocation
