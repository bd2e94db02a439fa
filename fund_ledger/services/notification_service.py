"""
NOTIFICATION SERVICE

Best-effort investor messaging after ledger commits:
- in-app notification row (own session, never the ledger's)
- Telegram message to the operations chat
- email through the configured relay webhook

Delivery failures surface as ExternalServiceError only.
"""

import logging
from decimal import Decimal
from typing import List, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from fund_ledger.config import settings
from fund_ledger.domain.errors import ExternalServiceError
from fund_ledger.domain.models import (
    Allocation,
    FundPlan,
    Investor,
    InvestorNotification,
    NotificationType,
)
from fund_ledger.infrastructure.db.repositories.notification_repository import (
    InvestorNotificationRepository,
)
from fund_ledger.utils.logging_redaction import redact_message

logger = logging.getLogger(__name__)


def format_inr(amount: Decimal) -> str:
    return f"₹{amount:,.2f}"


class NotificationService:
    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.session_factory = session_factory
        self.http_client = http_client
        self.enabled = settings.NOTIFICATIONS_ENABLED
        self.timeout = settings.NOTIFICATION_TIMEOUT_SECONDS

    async def notify_allocation_executed(
        self,
        *,
        investor: Investor,
        fund_plan: FundPlan,
        allocation: Allocation,
    ) -> None:
        message = (
            f"Your investment of {format_inr(allocation.total_invested)} in "
            f"{fund_plan.plan_name} has been allocated. "
            f"Units: {allocation.units_held:.4f} at NAV {allocation.nav_at_creation}"
        )
        await self._deliver(
            notification=InvestorNotification(
                investor_id=investor.id,
                title="Allocation Executed",
                message=message,
                notification_type=NotificationType.INFO,
                related_allocation_id=allocation.id,
            ),
            telegram_text=(
                f"[INFO] Allocation executed\n\n{investor.full_name} "
                f"({investor.investor_code}): {message}"
            ),
        )

    async def notify_profit_payout(
        self,
        *,
        investor: Optional[Investor],
        fund_plan: Optional[FundPlan],
        allocation_id: int,
        amount: Decimal,
        notes: Optional[str],
    ) -> None:
        if investor is None:
            logger.info(
                "Payout notification for allocation %s skipped (investor record missing)",
                allocation_id,
            )
            return

        plan_name = fund_plan.plan_name if fund_plan else "your fund plan"
        message = (
            f"{format_inr(amount)} profit from {plan_name} has been credited to your wallet."
        )

        email = None
        if investor.email:
            note_block = f"Note: {notes}\n\n" if notes else ""
            email = {
                "to": investor.email,
                "subject": f"Profit Payout - {plan_name}",
                "body": (
                    f"Dear {investor.full_name},\n\n"
                    f"We are pleased to inform you that a profit payout of "
                    f"{format_inr(amount)} from your investment in {plan_name} "
                    f"has been credited to your wallet.\n\n"
                    f"{note_block}"
                    f"Thank you for investing with us.\n\n"
                    f"Best Regards,\n{settings.EMAIL_SENDER_NAME}"
                ),
            }

        await self._deliver(
            notification=InvestorNotification(
                investor_id=investor.id,
                title="Profit Payout Credited",
                message=message,
                notification_type=NotificationType.DIVIDEND,
                related_allocation_id=allocation_id,
            ),
            telegram_text=(
                f"[INFO] Profit payout\n\n{investor.full_name} "
                f"({investor.investor_code}): {message}"
            ),
            email=email,
        )

    async def _deliver(
        self,
        notification: InvestorNotification,
        telegram_text: str,
        email: Optional[dict] = None,
    ) -> None:
        """Try every channel; raise once if any of them failed"""
        if not self.enabled:
            logger.info("Notifications disabled; skipping '%s'", notification.title)
            return

        failures: List[str] = []

        try:
            await self._record_in_app(notification)
        except ExternalServiceError as exc:
            failures.append(exc.message)

        try:
            await self._send_telegram(telegram_text)
        except ExternalServiceError as exc:
            failures.append(exc.message)

        if email is not None:
            try:
                await self._send_email(**email)
            except ExternalServiceError as exc:
                failures.append(exc.message)

        if failures:
            raise ExternalServiceError("notification", "; ".join(failures))

    async def _record_in_app(self, notification: InvestorNotification) -> None:
        if self.session_factory is None:
            return
        try:
            async with self.session_factory() as session:
                await InvestorNotificationRepository(session).create(notification)
                await session.commit()
        except SQLAlchemyError as exc:
            raise ExternalServiceError("in-app notification", str(exc))

    async def _send_telegram(self, text: str) -> None:
        token = settings.TELEGRAM_BOT_TOKEN
        chat_id = settings.TELEGRAM_CHAT_ID

        if not settings.TELEGRAM_ENABLED or not token or not chat_id:
            logger.debug("Telegram alert skipped (disabled or missing credentials)")
            return

        await self._post(
            "telegram",
            f"https://api.telegram.org/bot{token}/sendMessage",
            {"chat_id": chat_id, "text": text},
        )

    async def _send_email(self, to: str, subject: str, body: str) -> None:
        if not settings.EMAIL_WEBHOOK_URL:
            logger.debug("Email to %s skipped (EMAIL_WEBHOOK_URL not set)", to)
            return

        await self._post(
            "email",
            settings.EMAIL_WEBHOOK_URL,
            {"to": to, "subject": subject, "body": body},
        )

    async def _post(self, service: str, url: str, payload: dict) -> None:
        try:
            if self.http_client is not None:
                resp = await self.http_client.post(url, json=payload, timeout=self.timeout)
                resp.raise_for_status()
                return
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            detail = redact_message(str(exc)) or exc.__class__.__name__
            raise ExternalServiceError(service, detail)
