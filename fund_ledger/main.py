"""
FastAPI Main Application
Admin surface for the fund allocation and profit payout ledger
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager
from typing import AsyncGenerator
import logging

from fund_ledger.config import settings
from fund_ledger.core.logging import setup_logging
from fund_ledger.infrastructure.db.database import init_db, close_db
from fund_ledger.api.routes import allocations, health, payouts

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Database setup on startup, connection pool disposal on shutdown
    """
    logger.info("Starting fund ledger (%s)", settings.APP_ENV)
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down fund ledger")
    await close_db()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Fund Ledger",
        description="Allocation execution and profit payout ledger",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(health.router, tags=["Health"])
    app.include_router(allocations.router, prefix="/api/v1/allocations", tags=["Allocations"])
    app.include_router(payouts.router, prefix="/api/v1/payouts", tags=["Profit Payouts"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fund_ledger.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
