"""
Ledger domain errors.

Everything the allocation and payout core raises is defined here.
The API layer maps these to HTTP responses; no framework imports allowed.
"""


class LedgerError(Exception):
    """Base error for all ledger errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class ValidationError(LedgerError):
    """Invalid NAV or payout percentage. Nothing was written."""


class InvalidNavError(ValidationError):
    def __init__(self, nav) -> None:
        super().__init__(f"NAV must be positive, got {nav}")
        self.nav = nav


class InvalidPayoutPercentageError(ValidationError):
    def __init__(self, percentage) -> None:
        super().__init__(
            f"Payout percentage must be between 1 and 100, got {percentage}"
        )
        self.percentage = percentage


class InvalidPayoutMonthError(ValidationError):
    def __init__(self, month) -> None:
        super().__init__(f"Payout month must be YYYY-MM, got {month}")
        self.month = month


class NotFoundError(LedgerError):
    """A referenced record does not exist."""

    def __init__(self, entity: str, key) -> None:
        super().__init__(f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class ConcurrencyError(LedgerError):
    """Investment request is no longer pending execution."""

    def __init__(self, request_id: int, status: str) -> None:
        super().__init__(
            f"Investment request {request_id} is not pending execution "
            f"(status: {status})"
        )
        self.request_id = request_id
        self.status = status


class ExternalServiceError(LedgerError):
    """Notification or email delivery failed. Never affects financial state."""

    def __init__(self, service: str, detail: str) -> None:
        super().__init__(f"{service} failed: {detail}")
        self.service = service
        self.detail = detail
