"""
Fund Plan Repository
Fund plans, AUM and investor count
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fund_ledger.domain.models import FundPlan, PayoutFrequency
from fund_ledger.infrastructure.db.models import FundPlanModel


class FundPlanRepository:
    """Repository for FundPlan"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, fund_plan_id: int) -> Optional[FundPlan]:
        result = await self.session.execute(
            select(FundPlanModel)
            .where(FundPlanModel.id == fund_plan_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def create(
        self,
        *,
        plan_code: str,
        plan_name: str,
        nav: Decimal,
        profit_payout_frequency: PayoutFrequency = PayoutFrequency.MONTHLY,
        auto_payout_enabled: bool = False,
        expected_return_percent: Decimal = Decimal("0"),
    ) -> FundPlan:
        model = FundPlanModel(
            plan_code=plan_code,
            plan_name=plan_name,
            nav=nav,
            total_aum=Decimal("0"),
            total_investors=0,
            profit_payout_frequency=profit_payout_frequency,
            auto_payout_enabled=auto_payout_enabled,
            expected_return_percent=expected_return_percent,
            last_auto_payout_month=None,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def add_investment(
        self,
        fund_plan_id: int,
        amount: Decimal,
        new_investor: bool,
    ) -> None:
        """
        Increase AUM and, for an investor's first active allocation, the investor count

        Done as a single UPDATE so concurrent executions cannot lose increments.
        """
        await self.session.execute(
            update(FundPlanModel)
            .where(FundPlanModel.id == fund_plan_id)
            .values(
                total_aum=FundPlanModel.total_aum + amount,
                total_investors=FundPlanModel.total_investors + (1 if new_investor else 0),
            )
            .execution_options(synchronize_session=False)
        )

    async def list_auto_payout_due(self, month: str) -> List[FundPlan]:
        result = await self.session.execute(
            select(FundPlanModel)
            .where(
                FundPlanModel.auto_payout_enabled.is_(True),
                FundPlanModel.profit_payout_frequency == PayoutFrequency.MONTHLY,
                FundPlanModel.expected_return_percent > 0,
                or_(
                    FundPlanModel.last_auto_payout_month.is_(None),
                    FundPlanModel.last_auto_payout_month != month,
                ),
            )
            .order_by(FundPlanModel.id)
            .execution_options(populate_existing=True)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def claim_auto_payout_month(self, fund_plan_id: int, month: str) -> bool:
        """
        Mark the plan paid for `month` unless another run already did

        Returns:
            True when this call set last_auto_payout_month
        """
        result = await self.session.execute(
            update(FundPlanModel)
            .where(
                FundPlanModel.id == fund_plan_id,
                or_(
                    FundPlanModel.last_auto_payout_month.is_(None),
                    FundPlanModel.last_auto_payout_month != month,
                ),
            )
            .values(last_auto_payout_month=month)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def _to_domain(model: FundPlanModel) -> FundPlan:
        return FundPlan(
            id=model.id,
            plan_code=model.plan_code,
            plan_name=model.plan_name,
            nav=Decimal(str(model.nav)),
            total_aum=Decimal(str(model.total_aum)),
            total_investors=model.total_investors,
            profit_payout_frequency=model.profit_payout_frequency,
            auto_payout_enabled=bool(model.auto_payout_enabled),
            expected_return_percent=Decimal(str(model.expected_return_percent)),
            last_auto_payout_month=model.last_auto_payout_month,
        )
