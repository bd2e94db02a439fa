"""
Profit Payout Routes
Preview, run and review profit payout batches
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List, Optional
import logging

from fund_ledger.config import settings
from fund_ledger.domain.errors import ValidationError
from fund_ledger.domain.models import PayoutBatchResult
from fund_ledger.services.ledger_service import LedgerService, get_ledger_service
from fund_ledger.utils.time import to_ist_iso_db

logger = logging.getLogger(__name__)
router = APIRouter()


# ------------------------------------------------------------------
# Request / Response models
# ------------------------------------------------------------------

class RunPayoutRequest(BaseModel):
    percentage: Decimal = Field(..., description="Percentage of distributable profit (1-100)")
    notes: Optional[str] = Field(None, max_length=1000)


class AutoPayoutRequest(BaseModel):
    month: Optional[str] = Field(None, description="YYYY-MM, defaults to the current IST month")


class PayoutItemResponse(BaseModel):
    allocation_id: int
    investor_id: int
    distributable_before: float
    payout_amount: float
    transaction_id: Optional[int]
    notified: bool


class PayoutErrorResponse(BaseModel):
    allocation_id: int
    reason: str


class PayoutBatchResponse(BaseModel):
    batch_id: str
    percentage: float
    fund_plan_id: Optional[int] = None
    count: int
    total_amount_paid: float
    paid: List[PayoutItemResponse]
    skipped: List[int]
    errors: List[PayoutErrorResponse]


class PayoutPreviewResponse(BaseModel):
    percentage: float
    eligible_count: int
    total_distributable: float
    total_payout: float


class PayoutHistoryItem(BaseModel):
    id: int
    allocation_id: Optional[int]
    investor_id: int
    fund_plan_id: int
    amount: float
    status: str
    batch_id: Optional[str]
    notes: Optional[str]
    transaction_date: str


# ------------------------------------------------------------------
# Routes
# ------------------------------------------------------------------

@router.post("", response_model=PayoutBatchResponse)
async def run_payout_batch(
    request: RunPayoutRequest,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Distribute a percentage of distributable profit to every eligible allocation

    Failed allocations are reported in `errors`; the rest are still paid.
    """
    try:
        result = await ledger.run_payout_batch(request.percentage, request.notes)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    return _batch_response(result)


@router.post("/auto", response_model=List[PayoutBatchResponse])
async def run_monthly_auto_payout(
    request: AutoPayoutRequest,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Pay each auto-payout plan its expected monthly return, capped at distributable profit

    Plans already paid for the month are left out of the response.
    """
    try:
        results = await ledger.run_monthly_auto_payout(request.month)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    return [_batch_response(result) for result in results]


@router.get("/preview", response_model=PayoutPreviewResponse)
async def preview_payout(
    percentage: Decimal = Query(Decimal(str(settings.DEFAULT_PAYOUT_PERCENTAGE))),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """What a batch at `percentage` would pay right now (no writes)"""
    try:
        preview = await ledger.preview_payout(percentage)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    return PayoutPreviewResponse(
        percentage=float(preview.percentage),
        eligible_count=preview.eligible_count,
        total_distributable=float(preview.total_distributable),
        total_payout=float(preview.total_payout),
    )


@router.get("/history", response_model=List[PayoutHistoryItem])
async def payout_history(
    limit: Optional[int] = Query(None, ge=1, le=500),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Most recent profit payout transactions"""
    transactions = await ledger.payout_history(limit)
    return [
        PayoutHistoryItem(
            id=txn.id,
            allocation_id=txn.allocation_id,
            investor_id=txn.investor_id,
            fund_plan_id=txn.fund_plan_id,
            amount=float(txn.amount),
            status=txn.status.value,
            batch_id=txn.batch_id,
            notes=txn.notes,
            transaction_date=to_ist_iso_db(txn.transaction_date),
        )
        for txn in transactions
    ]


def _batch_response(result: PayoutBatchResult) -> PayoutBatchResponse:
    return PayoutBatchResponse(
        batch_id=result.batch_id,
        percentage=float(result.percentage),
        fund_plan_id=result.fund_plan_id,
        count=result.count,
        total_amount_paid=float(result.total_amount_paid),
        paid=[
            PayoutItemResponse(
                allocation_id=item.allocation_id,
                investor_id=item.investor_id,
                distributable_before=float(item.distributable_before),
                payout_amount=float(item.payout_amount),
                transaction_id=item.transaction_id,
                notified=item.notified,
            )
            for item in result.paid
        ],
        skipped=result.skipped,
        errors=[
            PayoutErrorResponse(allocation_id=err.allocation_id, reason=err.reason)
            for err in result.errors
        ],
    )
