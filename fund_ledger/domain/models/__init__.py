"""
Domain Models Package
Export all ledger entities
"""

from .entities import (
    # Enums
    AllocationStatus,
    InvestmentRequestStatus,
    NotificationType,
    PayoutFrequency,
    TransactionStatus,
    TransactionType,

    # Entities
    Allocation,
    FundPlan,
    InvestmentRequest,
    Investor,
    InvestorNotification,
    Transaction,
    WalletAccount,

    # Derived views / results
    PayoutBatchResult,
    PayoutItemError,
    PayoutItemResult,
    PayoutPreview,
    Position,
)

__all__ = [
    # Enums
    "AllocationStatus",
    "InvestmentRequestStatus",
    "NotificationType",
    "PayoutFrequency",
    "TransactionStatus",
    "TransactionType",

    # Entities
    "Allocation",
    "FundPlan",
    "InvestmentRequest",
    "Investor",
    "InvestorNotification",
    "Transaction",
    "WalletAccount",

    # Derived views / results
    "PayoutBatchResult",
    "PayoutItemError",
    "PayoutItemResult",
    "PayoutPreview",
    "Position",
]
