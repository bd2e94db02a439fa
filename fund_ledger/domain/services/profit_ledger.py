"""
PROFIT LEDGER
Distributable profit derived from allocation value and payout history

RESPONSIBILITIES:
- Unrealized profit per allocation
- Sum of completed profit payouts per allocation
- Distributable = unrealized - already paid, floored at zero
- Eligibility filter and payout preview

RULES:
- Pure computation: no repositories, no I/O, no mutation
- Always recomputed from history, never from a cached remainder
"""

from collections import defaultdict
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Sequence

from fund_ledger.domain.errors import InvalidPayoutPercentageError
from fund_ledger.domain.models import Allocation, PayoutPreview, Transaction

ZERO = Decimal("0")
CENT = Decimal("0.01")
MIN_PAYOUT_PERCENTAGE = Decimal("1")
MAX_PAYOUT_PERCENTAGE = Decimal("100")


def round2(amount: Decimal) -> Decimal:
    """Round a money amount to cents (half-up)"""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def validate_percentage(percentage) -> Decimal:
    """
    Coerce and validate a payout percentage.

    Raises:
        InvalidPayoutPercentageError: outside 1..100 or not a number
    """
    try:
        value = Decimal(str(percentage))
    except ArithmeticError:
        raise InvalidPayoutPercentageError(percentage)

    if not value.is_finite() or not MIN_PAYOUT_PERCENTAGE <= value <= MAX_PAYOUT_PERCENTAGE:
        raise InvalidPayoutPercentageError(percentage)
    return value


class ProfitLedger:
    """Profit arithmetic over allocation snapshots and transaction history"""

    def unrealized_profit(self, allocation: Allocation) -> Decimal:
        return max(ZERO, allocation.current_value - allocation.total_invested)

    def already_paid(
        self,
        allocation: Allocation,
        history: Iterable[Transaction],
    ) -> Decimal:
        """Sum of completed profit payouts recorded against this allocation"""
        return sum(
            (
                txn.amount
                for txn in history
                if txn.allocation_id == allocation.id and txn.is_completed_payout
            ),
            ZERO,
        )

    def distributable_profit(
        self,
        allocation: Allocation,
        history: Iterable[Transaction],
    ) -> Decimal:
        """
        Profit still eligible for distribution

        Args:
            allocation: Allocation snapshot
            history: Transactions; entries for other allocations, other
                types or failed status are ignored

        Returns:
            max(0, unrealized - already paid)
        """
        unrealized = self.unrealized_profit(allocation)
        if unrealized <= ZERO:
            return ZERO
        return max(ZERO, unrealized - self.already_paid(allocation, history))

    def payout_amount(self, distributable: Decimal, percentage: Decimal) -> Decimal:
        return round2(distributable * percentage / Decimal("100"))

    def auto_payout_amount(
        self,
        allocation: Allocation,
        distributable: Decimal,
        expected_return_percent: Decimal,
    ) -> Decimal:
        """Expected monthly return on the invested amount, capped at distributable profit"""
        expected = allocation.total_invested * expected_return_percent / Decimal("100")
        return min(round2(expected), distributable.quantize(CENT, rounding=ROUND_DOWN))

    def eligible_allocations(
        self,
        allocations: Iterable[Allocation],
        history: Iterable[Transaction],
    ) -> List[Allocation]:
        """Active allocations with distributable profit > 0"""
        by_allocation = self._group_history(history)
        return [
            allocation
            for allocation in allocations
            if allocation.is_active
            and self.distributable_profit(
                allocation, by_allocation.get(allocation.id, ())
            ) > ZERO
        ]

    def summarize(
        self,
        allocations: Iterable[Allocation],
        history: Iterable[Transaction],
        percentage,
    ) -> PayoutPreview:
        """What a batch at `percentage` would pay, without paying it"""
        pct = validate_percentage(percentage)
        by_allocation = self._group_history(history)

        eligible_count = 0
        total_distributable = ZERO
        total_payout = ZERO
        for allocation in allocations:
            if not allocation.is_active:
                continue
            distributable = self.distributable_profit(
                allocation, by_allocation.get(allocation.id, ())
            )
            if distributable <= ZERO:
                continue
            eligible_count += 1
            total_distributable += distributable
            total_payout += self.payout_amount(distributable, pct)

        return PayoutPreview(
            percentage=pct,
            eligible_count=eligible_count,
            total_distributable=total_distributable,
            total_payout=total_payout,
        )

    @staticmethod
    def _group_history(
        history: Iterable[Transaction],
    ) -> Mapping[int, Sequence[Transaction]]:
        grouped: Dict[int, List[Transaction]] = defaultdict(list)
        for txn in history:
            if txn.allocation_id is not None:
                grouped[txn.allocation_id].append(txn)
        return grouped
