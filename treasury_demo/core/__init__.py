"""Core onboarding and money-movement logic."""
from .countries import COUNTRY_CONFIG, CountryConfig, get_country_config
from .exceptions import NotFoundError, SessionError, TreasuryDemoError, ValidationError
from .models import (
    FinancialProduct,
    NetworkType,
    Session,
    SettlementOutcome,
    StripeAccount,
    SupportedCountry,
    TransactionResult,
)

__all__ = [
    "COUNTRY_CONFIG",
    "CountryConfig",
    "FinancialProduct",
    "NetworkType",
    "NotFoundError",
    "Session",
    "SessionError",
    "SettlementOutcome",
    "StripeAccount",
    "SupportedCountry",
    "TransactionResult",
    "TreasuryDemoError",
    "ValidationError",
    "get_country_config",
]
