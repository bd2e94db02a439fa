"""
SERVICE - LEDGER OPERATIONS

Wires the allocation executor and payout distributor to the database and
the notification channels. This is the surface the admin API calls:
- execute_allocation(request_id, nav)
- run_payout_batch(percentage, notes)
"""

from decimal import Decimal
from typing import List, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from fund_ledger.config import settings
from fund_ledger.domain.models import Allocation, PayoutBatchResult, PayoutPreview, Transaction
from fund_ledger.domain.services.allocation_executor import AllocationExecutor
from fund_ledger.domain.services.payout_distributor import PayoutDistributor
from fund_ledger.domain.services.ports import LedgerNotifier
from fund_ledger.domain.services.profit_ledger import ProfitLedger
from fund_ledger.infrastructure.db.database import get_session_factory
from fund_ledger.infrastructure.db.unit_of_work import unit_of_work_factory
from fund_ledger.services.notification_service import NotificationService
from fund_ledger.utils.rate_limit import RateLimiter


class LedgerService:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        notifier: Optional[LedgerNotifier] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        uow_factory = unit_of_work_factory(session_factory)
        if notifier is None:
            notifier = NotificationService(session_factory)

        self.executor = AllocationExecutor(uow_factory, notifier)
        self.distributor = PayoutDistributor(
            uow_factory,
            ledger=ProfitLedger(),
            notifier=notifier,
            rate_limiter=rate_limiter or RateLimiter(settings.PAYOUT_MAX_ITEMS_PER_SECOND),
        )

    async def execute_allocation(
        self,
        request_id: int,
        nav: Decimal,
        executed_by: str = "admin",
    ) -> Allocation:
        return await self.executor.execute(request_id, nav, executed_by=executed_by)

    async def run_payout_batch(
        self,
        percentage: Decimal,
        notes: Optional[str] = None,
    ) -> PayoutBatchResult:
        return await self.distributor.run_payout_batch(percentage, notes)

    async def run_monthly_auto_payout(self, month: Optional[str] = None) -> List[PayoutBatchResult]:
        return await self.distributor.run_monthly_auto_payout(month)

    async def preview_payout(self, percentage: Decimal) -> PayoutPreview:
        return await self.distributor.preview(percentage)

    async def payout_history(self, limit: Optional[int] = None) -> List[Transaction]:
        return await self.distributor.history(limit or settings.PAYOUT_HISTORY_LIMIT)


def get_ledger_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> LedgerService:
    """FastAPI dependency"""
    return LedgerService(session_factory)
