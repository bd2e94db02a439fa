"""
Transaction Repository
Append-only ledger entries. There is deliberately no update or delete.
"""

from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fund_ledger.domain.models import Transaction, TransactionStatus, TransactionType
from fund_ledger.infrastructure.db.models import FundTransactionModel


class TransactionRepository:
    """Repository for FundTransaction"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: Transaction) -> Transaction:
        """
        Append a ledger entry

        Args:
            transaction: Transaction domain object (id ignored)

        Returns:
            Stored transaction with id
        """
        model = FundTransactionModel(
            investor_id=transaction.investor_id,
            fund_plan_id=transaction.fund_plan_id,
            allocation_id=transaction.allocation_id,
            transaction_type=transaction.transaction_type,
            amount=transaction.amount,
            units=transaction.units,
            nav=transaction.nav,
            status=transaction.status,
            payment_method=transaction.payment_method,
            notes=transaction.notes,
            batch_id=transaction.batch_id,
            transaction_date=transaction.transaction_date,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def list_for_allocation(
        self,
        allocation_id: int,
        transaction_type: Optional[TransactionType] = None,
    ) -> List[Transaction]:
        stmt = (
            select(FundTransactionModel)
            .where(FundTransactionModel.allocation_id == allocation_id)
            .order_by(FundTransactionModel.transaction_date, FundTransactionModel.id)
        )
        if transaction_type is not None:
            stmt = stmt.where(FundTransactionModel.transaction_type == transaction_type)

        result = await self.session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    async def list_by_type(
        self,
        transaction_type: TransactionType,
        allocation_ids: Optional[Iterable[int]] = None,
    ) -> List[Transaction]:
        stmt = (
            select(FundTransactionModel)
            .where(FundTransactionModel.transaction_type == transaction_type)
            .order_by(FundTransactionModel.transaction_date, FundTransactionModel.id)
        )
        if allocation_ids is not None:
            ids = list(allocation_ids)
            if not ids:
                return []
            stmt = stmt.where(FundTransactionModel.allocation_id.in_(ids))

        result = await self.session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    async def list_recent(
        self,
        transaction_type: TransactionType,
        limit: int,
    ) -> List[Transaction]:
        """Newest first"""
        result = await self.session.execute(
            select(FundTransactionModel)
            .where(FundTransactionModel.transaction_type == transaction_type)
            .order_by(
                FundTransactionModel.transaction_date.desc(),
                FundTransactionModel.id.desc(),
            )
            .limit(limit)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    @staticmethod
    def _to_domain(model: FundTransactionModel) -> Transaction:
        return Transaction(
            id=model.id,
            investor_id=model.investor_id,
            fund_plan_id=model.fund_plan_id,
            allocation_id=model.allocation_id,
            transaction_type=TransactionType(model.transaction_type),
            amount=Decimal(str(model.amount)),
            status=TransactionStatus(model.status),
            transaction_date=model.transaction_date,
            units=Decimal(str(model.units)) if model.units is not None else None,
            nav=Decimal(str(model.nav)) if model.nav is not None else None,
            payment_method=model.payment_method,
            notes=model.notes,
            batch_id=model.batch_id,
        )
