"""
Wallet Repository

Wallets are created outside the ledger; the ledger only moves money:
- locked -> invested on allocation execution (clamped at zero)
- profit payouts credited to available
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fund_ledger.domain.errors import NotFoundError
from fund_ledger.domain.models import WalletAccount
from fund_ledger.infrastructure.db.models import FundWalletModel
from fund_ledger.utils.time import now_ist_naive


class WalletRepository:
    """Repository for FundWallet"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, wallet_id: int) -> Optional[WalletAccount]:
        result = await self.session.execute(
            select(FundWalletModel)
            .where(FundWalletModel.id == wallet_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def get_by_investor(self, investor_id: int) -> Optional[WalletAccount]:
        result = await self.session.execute(
            select(FundWalletModel)
            .where(FundWalletModel.investor_id == investor_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def create(
        self,
        *,
        investor_id: int,
        available_balance: Decimal = Decimal("0"),
        locked_balance: Decimal = Decimal("0"),
        total_deposited: Decimal = Decimal("0"),
    ) -> WalletAccount:
        model = FundWalletModel(
            investor_id=investor_id,
            available_balance=available_balance,
            locked_balance=locked_balance,
            total_deposited=total_deposited,
            total_withdrawn=Decimal("0"),
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def release_locked(self, wallet_id: int, amount: Decimal) -> WalletAccount:
        """
        Debit locked balance by amount, never below zero

        Returns:
            Updated wallet
        """
        await self.session.execute(
            update(FundWalletModel)
            .where(FundWalletModel.id == wallet_id)
            .values(
                locked_balance=case(
                    (FundWalletModel.locked_balance > amount, FundWalletModel.locked_balance - amount),
                    else_=Decimal("0"),
                ),
                last_transaction_date=now_ist_naive(),
            )
            .execution_options(synchronize_session=False)
        )
        return await self._require(wallet_id)

    async def credit_available(self, wallet_id: int, amount: Decimal) -> WalletAccount:
        """
        Add amount to available balance

        Returns:
            Updated wallet
        """
        await self.session.execute(
            update(FundWalletModel)
            .where(FundWalletModel.id == wallet_id)
            .values(
                available_balance=FundWalletModel.available_balance + amount,
                last_transaction_date=now_ist_naive(),
            )
            .execution_options(synchronize_session=False)
        )
        return await self._require(wallet_id)

    async def _require(self, wallet_id: int) -> WalletAccount:
        wallet = await self.get(wallet_id)
        if wallet is None:
            raise NotFoundError("WalletAccount", wallet_id)
        return wallet

    @staticmethod
    def _to_domain(model: FundWalletModel) -> WalletAccount:
        return WalletAccount(
            id=model.id,
            investor_id=model.investor_id,
            available_balance=Decimal(str(model.available_balance)),
            locked_balance=Decimal(str(model.locked_balance)),
            total_deposited=Decimal(str(model.total_deposited)),
            total_withdrawn=Decimal(str(model.total_withdrawn)),
            last_transaction_date=model.last_transaction_date,
        )
