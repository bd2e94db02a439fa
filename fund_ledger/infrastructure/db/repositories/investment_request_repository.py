"""
Investment Request Repository
Request status is flipped with a compare-and-set UPDATE
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fund_ledger.domain.models import InvestmentRequest, InvestmentRequestStatus
from fund_ledger.infrastructure.db.models import InvestmentRequestModel


class InvestmentRequestRepository:
    """Repository for InvestmentRequest"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, request_id: int) -> Optional[InvestmentRequest]:
        result = await self.session.execute(
            select(InvestmentRequestModel)
            .where(InvestmentRequestModel.id == request_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def create(
        self,
        *,
        investor_id: int,
        fund_plan_id: int,
        requested_amount: Decimal,
    ) -> InvestmentRequest:
        model = InvestmentRequestModel(
            investor_id=investor_id,
            fund_plan_id=fund_plan_id,
            requested_amount=requested_amount,
            status=InvestmentRequestStatus.PENDING_EXECUTION,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def list_pending(self) -> List[InvestmentRequest]:
        """Requests waiting for execution, newest first"""
        result = await self.session.execute(
            select(InvestmentRequestModel)
            .where(InvestmentRequestModel.status == InvestmentRequestStatus.PENDING_EXECUTION)
            .order_by(InvestmentRequestModel.created_at.desc(), InvestmentRequestModel.id.desc())
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def claim_for_execution(
        self,
        request_id: int,
        executed_by: str,
        executed_at: datetime,
    ) -> bool:
        """
        pending_execution -> executed, only if still pending

        Returns:
            True if this call performed the transition
        """
        result = await self.session.execute(
            update(InvestmentRequestModel)
            .where(
                InvestmentRequestModel.id == request_id,
                InvestmentRequestModel.status == InvestmentRequestStatus.PENDING_EXECUTION,
            )
            .values(
                status=InvestmentRequestStatus.EXECUTED,
                executed_by=executed_by,
                executed_at=executed_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def attach_allocation(self, request_id: int, allocation_id: int) -> None:
        await self.session.execute(
            update(InvestmentRequestModel)
            .where(InvestmentRequestModel.id == request_id)
            .values(allocation_id=allocation_id)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _to_domain(model: InvestmentRequestModel) -> InvestmentRequest:
        return InvestmentRequest(
            id=model.id,
            investor_id=model.investor_id,
            fund_plan_id=model.fund_plan_id,
            requested_amount=Decimal(str(model.requested_amount)),
            status=InvestmentRequestStatus(model.status),
            created_at=model.created_at,
            executed_at=model.executed_at,
            executed_by=model.executed_by,
            allocation_id=model.allocation_id,
        )
