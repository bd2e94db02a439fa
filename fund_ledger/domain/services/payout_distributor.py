"""
PAYOUT DISTRIBUTOR
Batch distribution of a percentage of distributable profit

RESPONSIBILITIES:
- Validate the payout percentage
- Select eligible allocations through ProfitLedger
- Per allocation: fresh recompute, wallet credit + payout transaction
- Best-effort investor notification after each committed payout
- Aggregate paid / skipped / failed items into one batch result
- Monthly auto-payout of each plan's expected return, capped at distributable profit

RULES:
- Each allocation is its own unit of work (credit + transaction are atomic)
- One failing allocation never aborts the batch
- Idempotency comes from recomputing against payout history, not from locks
- Never subtract the payout from current_value
- A plan is auto-paid at most once per month (compare-and-set on the plan)
"""

import logging
import re
import uuid
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from fund_ledger.domain.errors import (
    ExternalServiceError,
    InvalidPayoutMonthError,
    LedgerError,
    NotFoundError,
)
from fund_ledger.domain.models import (
    Allocation,
    FundPlan,
    Investor,
    PayoutBatchResult,
    PayoutItemError,
    PayoutItemResult,
    PayoutPreview,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from fund_ledger.domain.services.ports import LedgerNotifier, UnitOfWorkFactory
from fund_ledger.domain.services.profit_ledger import ZERO, ProfitLedger, validate_percentage
from fund_ledger.utils.rate_limit import RateLimiter
from fund_ledger.utils.time import now_ist_naive

logger = logging.getLogger(__name__)

# (allocation, distributable profit) -> amount to pay
PayoutRule = Callable[[Allocation, Decimal], Decimal]

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _to_month(month: Optional[str]) -> str:
    if month is None:
        return now_ist_naive().strftime("%Y-%m")
    if not isinstance(month, str) or not _MONTH_RE.match(month):
        raise InvalidPayoutMonthError(month)
    return month


class PayoutDistributor:
    """Runs payout batches over the current allocation set"""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        ledger: Optional[ProfitLedger] = None,
        notifier: Optional[LedgerNotifier] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.uow_factory = uow_factory
        self.ledger = ledger or ProfitLedger()
        self.notifier = notifier
        self.rate_limiter = rate_limiter or RateLimiter()

    async def preview(self, percentage) -> PayoutPreview:
        """Totals a batch at `percentage` would pay right now"""
        pct = validate_percentage(percentage)
        async with self.uow_factory() as uow:
            allocations = await uow.allocations.list_active()
            history = await uow.transactions.list_by_type(
                TransactionType.PROFIT_PAYOUT,
                allocation_ids=[a.id for a in allocations],
            )
        return self.ledger.summarize(allocations, history, pct)

    async def history(self, limit: int = 10) -> List[Transaction]:
        """Most recent profit payout transactions, newest first"""
        async with self.uow_factory() as uow:
            return await uow.transactions.list_recent(
                TransactionType.PROFIT_PAYOUT, limit
            )

    async def eligible_allocations(
        self,
        allocation_ids: Optional[Iterable[int]] = None,
    ) -> List[Allocation]:
        async with self.uow_factory() as uow:
            allocations = await uow.allocations.list_active()
            if allocation_ids is not None:
                wanted = set(allocation_ids)
                allocations = [a for a in allocations if a.id in wanted]
            history = await uow.transactions.list_by_type(
                TransactionType.PROFIT_PAYOUT,
                allocation_ids=[a.id for a in allocations],
            )
        return self.ledger.eligible_allocations(allocations, history)

    async def run_payout_batch(
        self,
        percentage,
        notes: Optional[str] = None,
        allocation_ids: Optional[Iterable[int]] = None,
    ) -> PayoutBatchResult:
        """
        Distribute `percentage` of each eligible allocation's distributable profit

        Args:
            percentage: 1..100
            notes: Admin notes stored on every payout transaction
            allocation_ids: Restrict the batch to these allocations

        Returns:
            PayoutBatchResult with paid items, skipped ids and per-item errors

        Raises:
            ValidationError: percentage outside 1..100 (nothing is processed)
        """
        pct = validate_percentage(percentage)
        result = PayoutBatchResult(
            batch_id=uuid.uuid4().hex,
            percentage=pct,
            notes=notes,
        )

        candidates = await self.eligible_allocations(allocation_ids)
        logger.info(
            "Payout batch %s: %d eligible allocation(s) at %s%%",
            result.batch_id, len(candidates), pct,
        )

        await self._pay_candidates(
            result,
            candidates,
            payout_for=lambda allocation, distributable: self.ledger.payout_amount(
                distributable, pct
            ),
            notes_for=lambda allocation: notes or f"Profit payout - {pct}% of distributable profit",
        )
        return result

    async def run_monthly_auto_payout(self, month: Optional[str] = None) -> List[PayoutBatchResult]:
        """
        Pay each auto-payout plan's expected monthly return, once per month

        Every active allocation in a due plan receives
        total_invested * expected_return_percent / 100, capped at its
        distributable profit. A plan is claimed for `month` before anything
        is paid, so a second run for the same month pays nothing.

        Args:
            month: "YYYY-MM", defaults to the current IST month

        Returns:
            One PayoutBatchResult per plan this run claimed
        """
        month = _to_month(month)

        async with self.uow_factory() as uow:
            plans = await uow.fund_plans.list_auto_payout_due(month)

        results = []
        for plan in plans:
            async with self.uow_factory() as uow:
                claimed = await uow.fund_plans.claim_auto_payout_month(plan.id, month)
            if not claimed:
                logger.info(
                    "Auto payout %s: plan %s already claimed by another run", month, plan.id
                )
                continue

            pct = plan.expected_return_percent
            pct_text = f"{pct.normalize():f}"
            result = PayoutBatchResult(
                batch_id=uuid.uuid4().hex,
                percentage=pct,
                notes=None,
                fund_plan_id=plan.id,
            )
            async with self.uow_factory() as uow:
                allocations = await uow.allocations.list_active(fund_plan_id=plan.id)
                history = await uow.transactions.list_by_type(
                    TransactionType.PROFIT_PAYOUT,
                    allocation_ids=[a.id for a in allocations],
                )
            candidates = self.ledger.eligible_allocations(allocations, history)
            logger.info(
                "Auto payout %s: plan %s, %d eligible allocation(s) at %s%% of invested",
                month, plan.id, len(candidates), pct_text,
            )

            await self._pay_candidates(
                result,
                candidates,
                payout_for=lambda allocation, distributable, pct=pct: self.ledger.auto_payout_amount(
                    allocation, distributable, pct
                ),
                notes_for=lambda allocation, pct_text=pct_text: (
                    f"Automated monthly profit payout ({pct_text}% of "
                    f"₹{allocation.total_invested:,})"
                ),
            )
            results.append(result)

        return results

    async def _pay_candidates(
        self,
        result: PayoutBatchResult,
        candidates: List[Allocation],
        payout_for: PayoutRule,
        notes_for: Callable[[Allocation], str],
    ) -> None:
        for candidate in candidates:
            await self.rate_limiter.acquire()
            try:
                paid = await self._pay_allocation(
                    candidate.id, result.batch_id, payout_for, notes_for
                )
            except LedgerError as exc:
                logger.error(
                    "Payout batch %s: allocation %s failed: %s",
                    result.batch_id, candidate.id, exc.message,
                )
                result.errors.append(PayoutItemError(candidate.id, exc.message))
                continue
            except Exception as exc:
                logger.exception(
                    "Payout batch %s: allocation %s failed unexpectedly",
                    result.batch_id, candidate.id,
                )
                result.errors.append(PayoutItemError(candidate.id, str(exc)))
                continue

            if paid is None:
                result.skipped.append(candidate.id)
                continue

            item, investor, fund_plan = paid
            result.paid.append(await self._notify(item, investor, fund_plan, result.notes))

        logger.info(
            "Payout batch %s complete: paid %d, total %s, skipped %d, failed %d",
            result.batch_id, result.count, result.total_amount_paid,
            len(result.skipped), len(result.errors),
        )

    async def _pay_allocation(
        self,
        allocation_id: int,
        batch_id: str,
        payout_for: PayoutRule,
        notes_for: Callable[[Allocation], str],
    ) -> Optional[Tuple[PayoutItemResult, Optional[Investor], Optional[FundPlan]]]:
        """Credit + transaction for one allocation; None when nothing to pay"""
        async with self.uow_factory() as uow:
            allocation = await uow.allocations.get(allocation_id)
            if allocation is None:
                raise NotFoundError("Allocation", allocation_id)
            if not allocation.is_active:
                return None

            # Fresh history: an earlier or concurrent batch may have paid since selection
            history = await uow.transactions.list_for_allocation(
                allocation.id, TransactionType.PROFIT_PAYOUT
            )
            distributable = self.ledger.distributable_profit(allocation, history)
            payout = payout_for(allocation, distributable)
            if payout <= ZERO:
                return None

            wallet = await uow.wallets.get_by_investor(allocation.investor_id)
            if wallet is None:
                raise NotFoundError(
                    "WalletAccount", f"investor {allocation.investor_id}"
                )

            await uow.wallets.credit_available(wallet.id, payout)
            txn = await uow.transactions.create(
                Transaction(
                    investor_id=allocation.investor_id,
                    fund_plan_id=allocation.fund_plan_id,
                    allocation_id=allocation.id,
                    transaction_type=TransactionType.PROFIT_PAYOUT,
                    amount=payout,
                    status=TransactionStatus.COMPLETED,
                    transaction_date=now_ist_naive(),
                    notes=notes_for(allocation),
                    batch_id=batch_id,
                )
            )

            # Read only for the message; a missing record does not block the payout
            investor = await uow.investors.get(allocation.investor_id)
            fund_plan = await uow.fund_plans.get(allocation.fund_plan_id)

        logger.info(
            "Credited %s to wallet %s for allocation %s (distributable was %s)",
            payout, wallet.id, allocation.id, distributable,
        )
        item = PayoutItemResult(
            allocation_id=allocation.id,
            investor_id=allocation.investor_id,
            distributable_before=distributable,
            payout_amount=payout,
            transaction_id=txn.id,
        )
        return item, investor, fund_plan

    async def _notify(
        self,
        item: PayoutItemResult,
        investor: Optional[Investor],
        fund_plan: Optional[FundPlan],
        notes: Optional[str],
    ) -> PayoutItemResult:
        if self.notifier is None:
            return item

        try:
            await self.notifier.notify_profit_payout(
                investor=investor,
                fund_plan=fund_plan,
                allocation_id=item.allocation_id,
                amount=item.payout_amount,
                notes=notes,
            )
        except ExternalServiceError as exc:
            logger.warning(
                "Payout for allocation %s committed but notification failed: %s",
                item.allocation_id, exc.message,
            )
            return item

        return replace(item, notified=True)
