"""
Investor Notification Repository
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fund_ledger.domain.models import InvestorNotification, NotificationType
from fund_ledger.infrastructure.db.models import InvestorNotificationModel


class InvestorNotificationRepository:
    """Repository for in-app investor notifications"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, notification: InvestorNotification) -> InvestorNotification:
        model = InvestorNotificationModel(
            investor_id=notification.investor_id,
            notification_type=notification.notification_type,
            title=notification.title,
            message=notification.message,
            related_allocation_id=notification.related_allocation_id,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def list_for_investor(self, investor_id: int) -> List[InvestorNotification]:
        result = await self.session.execute(
            select(InvestorNotificationModel)
            .where(InvestorNotificationModel.investor_id == investor_id)
            .order_by(InvestorNotificationModel.id)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    @staticmethod
    def _to_domain(model: InvestorNotificationModel) -> InvestorNotification:
        return InvestorNotification(
            id=model.id,
            investor_id=model.investor_id,
            title=model.title,
            message=model.message,
            notification_type=NotificationType(model.notification_type),
            related_allocation_id=model.related_allocation_id,
            created_at=model.created_at,
        )
