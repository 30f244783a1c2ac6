"""
Outbound payments from a connected account's Treasury financial account.

Flow:
1. Validate the request and normalize the amount to minor units
2. Resolve the account's first financial account
3. Create the outbound payment to Stripe's test bank account
4. Optionally force the payment to posted or failed (test mode only)

Every step waits for the previous one. Nothing is retried.
"""
import re
from typing import Any, Dict, Mapping, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from treasury_demo.integrations.stripe_client import StripeClientFactory
from treasury_demo.monitoring.metrics import metrics

from .countries import get_country_config
from .exceptions import NotFoundError, ValidationError
from .models import NetworkType, SettlementOutcome, Session, TransactionResult

logger = structlog.get_logger(__name__)

# Stripe test routing/account numbers; payments to them stay pending until forced
TEST_ROUTING_NUMBER = "110000000"
TEST_ACCOUNT_NUMBER = "000000000009"
RECIPIENT_EMAIL = "jenny@example.com"
RECIPIENT_PHONE = "7135551212"
STATEMENT_DESCRIPTOR = "Descriptor"

# Non-wire networks do not need the recipient address but the field is required
PLACEHOLDER_ADDRESS = {
    "city": "Alvin",
    "state": "TX",
    "postal_code": "77511",
    "line1": "123 Main St.",
}

# ASCII digits only, with a bounded number of whole units
MAX_WHOLE_DIGITS = 15
_WHOLE_UNITS = re.compile(r"[0-9]{1,%d}" % MAX_WHOLE_DIGITS)
_TWO_DECIMALS = re.compile(r"[0-9]{1,%d}\.[0-9]{2}" % MAX_WHOLE_DIGITS)
AMOUNT_FORMAT_MESSAGE = (
    f"must be at most {MAX_WHOLE_DIGITS} whole-unit digits, optionally with exactly two decimals"
)


def is_valid_amount(amount: str) -> bool:
    value = amount.strip()
    return bool(_TWO_DECIMALS.fullmatch(value) or _WHOLE_UNITS.fullmatch(value))


def to_minor_units(amount: str) -> int:
    """
    Convert a submitted amount to minor currency units.

    Accepted forms:
    - "12.34": exactly two decimals, the separator is dropped -> 1234
    - "12": whole major units -> 1200

    Anything else ("0.5", "12.345", "-3", "1e3") is rejected rather than
    rescaled.

    Raises:
        ValidationError: If the amount is not in an accepted form
    """
    value = amount.strip()
    if _TWO_DECIMALS.fullmatch(value):
        return int(value.replace(".", ""))
    if _WHOLE_UNITS.fullmatch(value):
        return int(value) * 100
    raise ValidationError([f"amount: '{amount}' {AMOUNT_FORMAT_MESSAGE}"])


class OutboundPaymentRequest(BaseModel):
    """Body of a send money request."""

    model_config = ConfigDict(populate_by_name=True)

    amount: str
    network: NetworkType
    name: str = Field(..., min_length=1)
    transaction_result: Optional[TransactionResult] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, alias="postalCode")
    line1: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_string(cls, v: Any) -> Any:
        """Integer JSON numbers are taken as their decimal string."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: str) -> str:
        """Reject amounts whose minor-unit value would be ambiguous."""
        if not is_valid_amount(v):
            raise ValueError(AMOUNT_FORMAT_MESSAGE)
        return v.strip()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Recipient name must not be blank."""
        if not v.strip():
            raise ValueError("name must not be empty")
        return v

    @model_validator(mode="after")
    def wire_requires_address(self) -> "OutboundPaymentRequest":
        """Wire transfers need the recipient's address."""
        if self.network is NetworkType.US_DOMESTIC_WIRE:
            missing = [
                alias
                for alias, value in (
                    ("city", self.city),
                    ("state", self.state),
                    ("postalCode", self.postal_code),
                    ("line1", self.line1),
                )
                if not value
            ]
            if missing:
                raise ValueError(
                    f"{', '.join(missing)} required for {NetworkType.US_DOMESTIC_WIRE.value}"
                )
        return self

    @property
    def settlement(self) -> SettlementOutcome:
        return SettlementOutcome.from_transaction_result(self.transaction_result)

    def billing_address(self) -> Dict[str, str]:
        """Recipient address as sent to Stripe."""
        if self.network is NetworkType.US_DOMESTIC_WIRE:
            address = {
                "city": self.city,
                "state": self.state,
                "postal_code": self.postal_code,
                "line1": self.line1,
            }
        else:
            address = dict(PLACEHOLDER_ADDRESS)
        address["country"] = "US"
        return address


def parse_outbound_payment_request(data: Mapping[str, Any]) -> OutboundPaymentRequest:
    """
    Validate a send money body.

    Raises:
        ValidationError: With every violation found
    """
    submitted = {key: value for key, value in data.items() if value is not None}
    try:
        return OutboundPaymentRequest.model_validate(submitted)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


class OutboundPaymentOrchestrator:
    """Sends money out of a connected account's financial account."""

    def __init__(self, stripe_clients: StripeClientFactory):
        self.stripe_clients = stripe_clients

    @staticmethod
    def build_payment_params(
        request: OutboundPaymentRequest,
        financial_account_id: str,
        amount: int,
        currency: str,
    ) -> Dict[str, Any]:
        """Parameters for the outbound payment creation call."""
        return {
            "financial_account": financial_account_id,
            "amount": amount,
            "currency": currency,
            "statement_descriptor": STATEMENT_DESCRIPTOR,
            "destination_payment_method_data": {
                "type": "us_bank_account",
                "us_bank_account": {
                    "account_holder_type": "company",
                    "routing_number": TEST_ROUTING_NUMBER,
                    "account_number": TEST_ACCOUNT_NUMBER,
                },
                "billing_details": {
                    "email": RECIPIENT_EMAIL,
                    "phone": RECIPIENT_PHONE,
                    "address": request.billing_address(),
                    "name": request.name,
                },
            },
            "destination_payment_method_options": {
                "us_bank_account": {"network": request.network.value},
            },
        }

    async def send_money(self, session: Session, body: Mapping[str, Any]) -> str:
        """
        Create an outbound payment and apply the requested settlement.

        Args:
            session: Current session
            body: Submitted send money form

        Returns:
            str: ID of the created outbound payment

        Raises:
            ValidationError: If the form or amount is invalid
            NotFoundError: If the account has no financial account
            RemoteCallError: If a Stripe call fails
        """
        request = parse_outbound_payment_request(body)
        amount = to_minor_units(request.amount)

        account_id = session.stripe_account.account_id
        stripe_client = self.stripe_clients.for_platform(session.stripe_account.platform)

        financial_accounts = await stripe_client.list_financial_accounts(account_id)
        if not financial_accounts:
            raise NotFoundError("financial account", account_id)
        financial_account = financial_accounts[0]

        params = self.build_payment_params(
            request,
            financial_account_id=financial_account.id,
            amount=amount,
            currency=get_country_config(session.country).currency,
        )
        outbound_payment = await stripe_client.create_outbound_payment(account_id, params)

        settlement = request.settlement
        if settlement is SettlementOutcome.POSTED:
            await stripe_client.post_outbound_payment(account_id, outbound_payment.id)
        elif settlement is SettlementOutcome.FAILED:
            await stripe_client.fail_outbound_payment(account_id, outbound_payment.id)

        metrics.record_outbound_payment(request.network.value, settlement.value, amount)
        logger.info(
            "money_sent",
            account_id=account_id,
            outbound_payment_id=outbound_payment.id,
            network=request.network.value,
            amount=amount,
            settlement=settlement.value,
        )
        return outbound_payment.id
