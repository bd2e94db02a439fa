"""
Allocation Routes
Execute approved investment requests; read derived positions
"""

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List, Optional
import logging

from fund_ledger.domain.errors import ConcurrencyError, NotFoundError, ValidationError
from fund_ledger.infrastructure.db.database import get_db
from fund_ledger.infrastructure.db.repositories.allocation_repository import AllocationRepository
from fund_ledger.infrastructure.db.repositories.investment_request_repository import (
    InvestmentRequestRepository,
)
from fund_ledger.services.ledger_service import LedgerService, get_ledger_service
from fund_ledger.utils.time import to_ist_iso_db

logger = logging.getLogger(__name__)
router = APIRouter()


# ------------------------------------------------------------------
# Request / Response models
# ------------------------------------------------------------------

class ExecuteAllocationRequest(BaseModel):
    request_id: int = Field(..., gt=0)
    # Validated by the executor so nav <= 0 maps to the ledger's ValidationError
    nav: Decimal = Field(..., description="NAV per unit at execution")
    executed_by: str = Field("admin", max_length=100)


class AllocationResponse(BaseModel):
    id: int
    investor_id: int
    fund_plan_id: int
    investment_request_id: Optional[int]
    units_held: float
    nav_at_creation: float
    total_invested: float
    current_value: float
    status: str
    created_at: str


class PendingRequestResponse(BaseModel):
    id: int
    investor_id: int
    fund_plan_id: int
    requested_amount: float
    created_at: Optional[str]


class PositionResponse(BaseModel):
    fund_plan_id: int
    allocation_count: int
    units_held: float
    total_invested: float
    current_value: float
    profit_loss: float


# ------------------------------------------------------------------
# Routes
# ------------------------------------------------------------------

@router.post("/execute", response_model=AllocationResponse)
async def execute_allocation(
    request: ExecuteAllocationRequest,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Execute an approved investment request at the given NAV

    - 400: NAV <= 0
    - 404: request / investor / plan / wallet missing
    - 409: request already executed
    """
    try:
        allocation = await ledger.execute_allocation(
            request.request_id, request.nav, executed_by=request.executed_by
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message)
    except ConcurrencyError as exc:
        raise HTTPException(status_code=409, detail=exc.message)

    return AllocationResponse(
        id=allocation.id,
        investor_id=allocation.investor_id,
        fund_plan_id=allocation.fund_plan_id,
        investment_request_id=allocation.investment_request_id,
        units_held=float(allocation.units_held),
        nav_at_creation=float(allocation.nav_at_creation),
        total_invested=float(allocation.total_invested),
        current_value=float(allocation.current_value),
        status=allocation.status.value,
        created_at=to_ist_iso_db(allocation.created_at),
    )


@router.get("/pending", response_model=List[PendingRequestResponse])
async def list_pending_requests(db: AsyncSession = Depends(get_db)):
    """Investment requests waiting for execution"""
    pending = await InvestmentRequestRepository(db).list_pending()
    return [
        PendingRequestResponse(
            id=req.id,
            investor_id=req.investor_id,
            fund_plan_id=req.fund_plan_id,
            requested_amount=float(req.requested_amount),
            created_at=to_ist_iso_db(req.created_at) if req.created_at else None,
        )
        for req in pending
    ]


@router.get("/positions/{investor_id}", response_model=List[PositionResponse])
async def get_positions(investor_id: int, db: AsyncSession = Depends(get_db)):
    """Derived per-plan view over the investor's active allocations"""
    positions = await AllocationRepository(db).get_positions(investor_id)
    return [
        PositionResponse(
            fund_plan_id=p.fund_plan_id,
            allocation_count=p.allocation_count,
            units_held=float(p.units_held),
            total_invested=float(p.total_invested),
            current_value=float(p.current_value),
            profit_loss=float(p.profit_loss),
        )
        for p in positions
    ]
