"""
SQLAlchemy unit of work

One AsyncSession per unit: commit when the block exits cleanly,
roll back when it raises.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fund_ledger.infrastructure.db.repositories.allocation_repository import AllocationRepository
from fund_ledger.infrastructure.db.repositories.fund_plan_repository import FundPlanRepository
from fund_ledger.infrastructure.db.repositories.investment_request_repository import (
    InvestmentRequestRepository,
)
from fund_ledger.infrastructure.db.repositories.investor_repository import InvestorRepository
from fund_ledger.infrastructure.db.repositories.transaction_repository import TransactionRepository
from fund_ledger.infrastructure.db.repositories.wallet_repository import WalletRepository


class SqlAlchemyUnitOfWork:
    """Ledger repositories bound to one session / database transaction"""

    session: AsyncSession

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self.session = self.session_factory()
        self.investors = InvestorRepository(self.session)
        self.fund_plans = FundPlanRepository(self.session)
        self.wallets = WalletRepository(self.session)
        self.requests = InvestmentRequestRepository(self.session)
        self.allocations = AllocationRepository(self.session)
        self.transactions = TransactionRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                await self.session.commit()
            else:
                await self.session.rollback()
        finally:
            await self.session.close()


def unit_of_work_factory(session_factory: async_sessionmaker):
    """Callable handed to the ledger services"""
    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory)
    return factory
