"""
Allocation Repository
One row per investment event; positions are derived with GROUP BY
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fund_ledger.domain.errors import NotFoundError
from fund_ledger.domain.models import Allocation, AllocationStatus, Position
from fund_ledger.infrastructure.db.models import FundAllocationModel
from fund_ledger.utils.time import now_ist_naive


class AllocationRepository:
    """Repository for FundAllocation"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, allocation_id: int) -> Optional[Allocation]:
        result = await self.session.execute(
            select(FundAllocationModel)
            .where(FundAllocationModel.id == allocation_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def create(self, allocation: Allocation) -> Allocation:
        """
        Persist a new allocation

        Args:
            allocation: Allocation domain object (id ignored)

        Returns:
            Allocation with its database id
        """
        model = FundAllocationModel(
            investor_id=allocation.investor_id,
            fund_plan_id=allocation.fund_plan_id,
            units_held=allocation.units_held,
            nav_at_creation=allocation.nav_at_creation,
            total_invested=allocation.total_invested,
            current_value=allocation.current_value,
            status=allocation.status,
            investment_request_id=allocation.investment_request_id,
            created_at=allocation.created_at,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_domain(model)

    async def list_active(
        self,
        investor_id: Optional[int] = None,
        fund_plan_id: Optional[int] = None,
    ) -> List[Allocation]:
        stmt = (
            select(FundAllocationModel)
            .where(FundAllocationModel.status == AllocationStatus.ACTIVE)
            .order_by(FundAllocationModel.id)
            .execution_options(populate_existing=True)
        )
        if investor_id is not None:
            stmt = stmt.where(FundAllocationModel.investor_id == investor_id)
        if fund_plan_id is not None:
            stmt = stmt.where(FundAllocationModel.fund_plan_id == fund_plan_id)

        result = await self.session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    async def update_current_value(self, allocation_id: int, current_value: Decimal) -> Allocation:
        """
        Record a new valuation for an allocation

        Used by the external valuation feed and fixture tooling; payouts
        never touch current_value.
        """
        if current_value < Decimal("0"):
            raise ValueError("Current value cannot be negative")

        await self.session.execute(
            update(FundAllocationModel)
            .where(FundAllocationModel.id == allocation_id)
            .values(current_value=current_value, valued_at=now_ist_naive())
            .execution_options(synchronize_session=False)
        )
        allocation = await self.get(allocation_id)
        if allocation is None:
            raise NotFoundError("Allocation", allocation_id)
        return allocation

    async def get_positions(self, investor_id: int) -> List[Position]:
        """
        Aggregate view per fund plan across active allocations

        Returns:
            One Position per plan the investor holds
        """
        result = await self.session.execute(
            select(
                FundAllocationModel.fund_plan_id,
                func.count(FundAllocationModel.id).label("allocation_count"),
                func.sum(FundAllocationModel.units_held).label("units_held"),
                func.sum(FundAllocationModel.total_invested).label("total_invested"),
                func.sum(FundAllocationModel.current_value).label("current_value"),
            )
            .where(
                FundAllocationModel.investor_id == investor_id,
                FundAllocationModel.status == AllocationStatus.ACTIVE,
            )
            .group_by(FundAllocationModel.fund_plan_id)
            .order_by(FundAllocationModel.fund_plan_id)
        )

        return [
            Position(
                investor_id=investor_id,
                fund_plan_id=row.fund_plan_id,
                allocation_count=row.allocation_count,
                units_held=Decimal(str(row.units_held or 0)),
                total_invested=Decimal(str(row.total_invested or 0)),
                current_value=Decimal(str(row.current_value or 0)),
            )
            for row in result.all()
        ]

    @staticmethod
    def _to_domain(model: FundAllocationModel) -> Allocation:
        return Allocation(
            id=model.id,
            investor_id=model.investor_id,
            fund_plan_id=model.fund_plan_id,
            units_held=Decimal(str(model.units_held)),
            nav_at_creation=Decimal(str(model.nav_at_creation)),
            total_invested=Decimal(str(model.total_invested)),
            current_value=Decimal(str(model.current_value)),
            status=AllocationStatus(model.status),
            created_at=model.created_at,
            investment_request_id=model.investment_request_id,
        )
