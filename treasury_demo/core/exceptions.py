"""Exceptions raised by the onboarding and money-movement flows."""
from typing import List, Optional


class TreasuryDemoError(Exception):
    """Base exception for demo backend errors."""

    pass


class ValidationError(TreasuryDemoError):
    """
    Raised when submitted fields fail validation.

    Carries every violation found, not just the first one.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))

    @classmethod
    def from_pydantic(cls, error: Exception) -> "ValidationError":
        """Build from a pydantic ValidationError, one entry per failing field."""
        messages = []
        for item in error.errors():  # type: ignore[attr-defined]
            field = ".".join(str(part) for part in item["loc"]) or "body"
            messages.append(f"{field}: {item['msg']}")
        return cls(messages)


class NotFoundError(TreasuryDemoError):
    """Raised when an expected Stripe resource does not exist."""

    def __init__(self, resource: str, account_id: Optional[str] = None):
        message = f"No {resource} found"
        if account_id:
            message = f"{message} for account {account_id}"
        super().__init__(message)
        self.resource = resource
        self.account_id = account_id


class SessionError(TreasuryDemoError):
    """Raised when the request carries no valid session."""

    pass
