"""
Investor Repository
Investor records and their aggregate totals
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fund_ledger.domain.models import Investor
from fund_ledger.infrastructure.db.models import InvestorModel
from fund_ledger.utils.time import now_ist_naive


class InvestorRepository:
    """Repository for Investor"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def get(self, investor_id: int) -> Optional[Investor]:
        result = await self.session.execute(
            select(InvestorModel)
            .where(InvestorModel.id == investor_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def create(
        self,
        *,
        investor_code: str,
        full_name: str,
        email: Optional[str] = None,
    ) -> Investor:
        model = InvestorModel(
            investor_code=investor_code,
            full_name=full_name,
            email=email,
            total_invested=Decimal("0"),
            current_value=Decimal("0"),
            total_profit_loss=Decimal("0"),
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def update_totals(
        self,
        investor_id: int,
        total_invested: Decimal,
        current_value: Decimal,
    ) -> None:
        """
        Overwrite aggregate totals

        Args:
            investor_id: Investor ID
            total_invested: Sum over active allocations
            current_value: Sum over active allocations
        """
        await self.session.execute(
            update(InvestorModel)
            .where(InvestorModel.id == investor_id)
            .values(
                total_invested=total_invested,
                current_value=current_value,
                total_profit_loss=current_value - total_invested,
                updated_at=now_ist_naive(),
            )
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _to_domain(model: InvestorModel) -> Investor:
        return Investor(
            id=model.id,
            investor_code=model.investor_code,
            full_name=model.full_name,
            email=model.email,
            total_invested=Decimal(str(model.total_invested)),
            current_value=Decimal(str(model.current_value)),
            total_profit_loss=Decimal(str(model.total_profit_loss)),
        )
