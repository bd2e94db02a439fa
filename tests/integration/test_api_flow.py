from datetime import datetime
from decimal import Decimal

import pytest

from fund_ledger.domain.models import Allocation, AllocationStatus
from fund_ledger.infrastructure.db.repositories.allocation_repository import AllocationRepository
from fund_ledger.infrastructure.db.repositories.fund_plan_repository import FundPlanRepository
from fund_ledger.infrastructure.db.repositories.investment_request_repository import (
    InvestmentRequestRepository,
)
from fund_ledger.infrastructure.db.repositories.investor_repository import InvestorRepository
from fund_ledger.infrastructure.db.repositories.wallet_repository import WalletRepository


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_execute_and_payout(client, session_maker):
    async with session_maker() as session:
        investor = await InvestorRepository(session).create(
            investor_code="INV001", full_name="Priya Sharma", email="priya@test.com"
        )
        plan = await FundPlanRepository(session).create(
            plan_code="MGP", plan_name="Monthly Growth Plan", nav=Decimal("50")
        )
        await WalletRepository(session).create(
            investor_id=investor.id, locked_balance=Decimal("100000")
        )
        request = await InvestmentRequestRepository(session).create(
            investor_id=investor.id, fund_plan_id=plan.id, requested_amount=Decimal("100000")
        )
        await session.commit()

    resp = await client.get("/api/v1/allocations/pending")
    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()] == [request.id]

    resp = await client.post(
        "/api/v1/allocations/execute", json={"request_id": request.id, "nav": 0}
    )
    assert resp.status_code == 400

    resp = await client.post(
        "/api/v1/allocations/execute", json={"request_id": 9999, "nav": 50}
    )
    assert resp.status_code == 404

    resp = await client.post(
        "/api/v1/allocations/execute",
        json={"request_id": request.id, "nav": 50, "executed_by": "ops"},
    )
    assert resp.status_code == 200
    allocation = resp.json()
    assert allocation["units_held"] == 2000.0
    assert allocation["current_value"] == 100000.0
    assert allocation["status"] == "active"
    assert allocation["created_at"].endswith("+05:30")

    resp = await client.post(
        "/api/v1/allocations/execute", json={"request_id": request.id, "nav": 50}
    )
    assert resp.status_code == 409

    async with session_maker() as session:
        await AllocationRepository(session).update_current_value(allocation["id"], Decimal("130000"))
        await session.commit()

    resp = await client.get("/api/v1/payouts/preview", params={"percentage": 10})
    assert resp.status_code == 200
    assert resp.json()["eligible_count"] == 1
    assert resp.json()["total_payout"] == 3000.0

    resp = await client.get("/api/v1/payouts/preview", params={"percentage": 0})
    assert resp.status_code == 400

    resp = await client.post("/api/v1/payouts", json={"percentage": 10, "notes": "October"})
    assert resp.status_code == 200
    batch = resp.json()
    assert batch["count"] == 1
    assert batch["total_amount_paid"] == 3000.0
    assert batch["errors"] == []

    resp = await client.post("/api/v1/payouts", json={"percentage": 10})
    assert resp.json()["total_amount_paid"] == 2700.0

    resp = await client.post("/api/v1/payouts", json={"percentage": 150})
    assert resp.status_code == 400

    resp = await client.get("/api/v1/payouts/history", params={"limit": 5})
    assert resp.status_code == 200
    history = resp.json()
    assert [h["amount"] for h in history] == [2700.0, 3000.0]
    assert history[1]["notes"] == "October"
    assert history[1]["batch_id"] == batch["batch_id"]

    resp = await client.get(f"/api/v1/allocations/positions/{investor.id}")
    assert resp.status_code == 200
    positions = resp.json()
    assert len(positions) == 1
    assert positions[0]["current_value"] == 130000.0
    assert positions[0]["profit_loss"] == 30000.0


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_health_and_ready(client):
    resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}

    resp = await client.get("/ready")
    assert resp.json() == {"status": "ready", "db_connected": True}


def test_create_app_mounts_ledger_routes():
    from fund_ledger.main import create_app

    paths = {route.path for route in create_app().routes}
    assert "/api/v1/allocations/execute" in paths
    assert "/api/v1/payouts" in paths
    assert "/api/v1/payouts/history" in paths
    assert "/api/v1/payouts/auto" in paths


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_monthly_auto_payout(client, session_maker):
    async with session_maker() as session:
        investor = await InvestorRepository(session).create(
            investor_code="INV002", full_name="Amit Patel", email=None
        )
        plan = await FundPlanRepository(session).create(
            plan_code="MIP",
            plan_name="Monthly Income Plan",
            nav=Decimal("10"),
            auto_payout_enabled=True,
            expected_return_percent=Decimal("2"),
        )
        await WalletRepository(session).create(investor_id=investor.id)
        allocation = await AllocationRepository(session).create(
            Allocation(
                investor_id=investor.id,
                fund_plan_id=plan.id,
                units_held=Decimal("20000"),
                nav_at_creation=Decimal("10"),
                total_invested=Decimal("200000"),
                current_value=Decimal("201000"),
                status=AllocationStatus.ACTIVE,
                created_at=datetime(2026, 10, 1, 10, 0),
            )
        )
        await session.commit()

    resp = await client.post("/api/v1/payouts/auto", json={"month": "2026-13"})
    assert resp.status_code == 400

    resp = await client.post("/api/v1/payouts/auto", json={"month": "2026-10"})
    assert resp.status_code == 200
    batches = resp.json()
    assert len(batches) == 1
    assert batches[0]["fund_plan_id"] == plan.id
    assert batches[0]["paid"][0]["allocation_id"] == allocation.id
    # 2% of 200000 capped at the 1000 of profit
    assert batches[0]["total_amount_paid"] == 1000.0

    resp = await client.post("/api/v1/payouts/auto", json={"month": "2026-10"})
    assert resp.json() == []

    resp = await client.get("/api/v1/payouts/history")
    assert [h["notes"] for h in resp.json()] == [
        "Automated monthly profit payout (2% of ₹200,000.00)"
    ]
