"""
Domain types shared by the onboarding and money-movement flows.

Sessions are stored by the login flow as camelCase JSON, so the models accept
both the aliases and the Python field names.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SupportedCountry(str, Enum):
    """Countries a demo account can be created in (ISO 3166-1 alpha-2)."""

    US = "US"
    GB = "GB"
    AT = "AT"
    BE = "BE"
    CY = "CY"
    DE = "DE"
    EE = "EE"
    ES = "ES"
    FI = "FI"
    FR = "FR"
    GR = "GR"
    HR = "HR"
    IE = "IE"
    IT = "IT"
    LT = "LT"
    LU = "LU"
    LV = "LV"
    MT = "MT"
    NL = "NL"
    PT = "PT"
    SI = "SI"
    SK = "SK"


class FinancialProduct(str, Enum):
    """Product flavour of the demo. Only embedded finance has Treasury."""

    EMBEDDED_FINANCE = "embedded-finance"
    EXPENSE_MANAGEMENT = "expense-management"

    @property
    def has_treasury(self) -> bool:
        return self is FinancialProduct.EMBEDDED_FINANCE


class NetworkType(str, Enum):
    """Payment networks accepted for outbound payments."""

    ACH = "ach"
    US_DOMESTIC_WIRE = "us_domestic_wire"


class TransactionResult(str, Enum):
    """Terminal state requested by the caller for a test-mode payment."""

    POSTED = "posted"
    FAILED = "failed"


class SettlementOutcome(Enum):
    """What happens to an outbound payment after it is created."""

    UNFORCED = "unforced"
    POSTED = "posted"
    FAILED = "failed"

    @classmethod
    def from_transaction_result(
        cls, result: Optional[TransactionResult]
    ) -> "SettlementOutcome":
        if result is None:
            return cls.UNFORCED
        return cls(result.value)


class StripeAccount(BaseModel):
    """Connected account bound to the session."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    account_id: str = Field(..., alias="accountId")
    platform: str = Field(..., description="Platform the account lives on")


class Session(BaseModel):
    """Authenticated demo user, read-only for the duration of a request."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    email: str
    country: SupportedCountry
    stripe_account: StripeAccount = Field(..., alias="stripeAccount")
    financial_product: Optional[FinancialProduct] = Field(
        default=None, alias="financialProduct"
    )
