"""
Account enrichment for Connect onboarding.

In demo mode the connected account is filled with fabricated KYC data that
Stripe's test mode verifies automatically, so the operator can skip the
hosted onboarding forms. Outside demo mode only the real business name is
sent and the user is always sent through hosted onboarding.

Test-mode values used here are documented at
https://stripe.com/docs/connect/testing
"""
import time
from typing import Any, Callable, Dict, Mapping, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from treasury_demo.integrations.stripe_client import StripeClientFactory
from treasury_demo.monitoring.metrics import metrics

from .countries import get_country_config, resolve_fake_address
from .exceptions import ValidationError
from .models import FinancialProduct, Session, SupportedCountry

logger = structlog.get_logger(__name__)

# Merchant category code for "computer software stores"
DEMO_MCC = "5734"
DEMO_PRODUCT_DESCRIPTION = "Some demo product"
DEMO_BUSINESS_URL = "https://some-company.com"
DEMO_FISCAL_YEAR_END = "2023-12-31"

DEFAULT_TAX_ID = "000000000"
# Germany expects a commercial register number
TAX_ID_OVERRIDES: Dict[SupportedCountry, str] = {
    SupportedCountry.DE: "HRA000000000",
}

ADDRESS_VERIFICATION_SENTINEL = "address_full_match"
VERIFIED_DOB = {"day": 1, "month": 1, "year": 1901}
# 000-000-0000 is the documented test number but Stripe currently rejects it
DEMO_PHONE = "2015550123"
DEMO_FIRST_NAME = "John"
DEMO_LAST_NAME = "Smith"
TOS_ACCEPTANCE_IP = "8.8.8.8"

ONBOARDING_REFRESH_PATH = "/onboard"
ONBOARDING_RETURN_PATH = "/onboard"
SKIP_ONBOARDING_REDIRECT = "/"


class BusinessDetails(BaseModel):
    """Onboarding form accepted outside demo mode."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    business_name: str = Field(..., alias="businessName")

    @field_validator("business_name")
    @classmethod
    def validate_business_name(cls, v: str) -> str:
        """Business name must not be blank."""
        if not v.strip():
            raise ValueError("businessName must not be empty")
        return v


class DemoBusinessDetails(BusinessDetails):
    """Onboarding form accepted in demo mode."""

    skip_onboarding: bool = Field(default=False, alias="skipOnboarding")


def validate_business_details(data: Mapping[str, Any], demo_mode: bool) -> BusinessDetails:
    """
    Validate the onboarding form against the schema for the current mode.

    Fields sent as null are treated as absent. Every violation is reported.

    Raises:
        ValidationError: If any field is invalid
    """
    schema = DemoBusinessDetails if demo_mode else BusinessDetails
    submitted = {key: value for key, value in data.items() if value is not None}
    try:
        return schema.model_validate(submitted)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


def tos_acceptance(now: Callable[[], float] = time.time) -> Dict[str, Any]:
    """Faked terms-of-service acceptance record."""
    return {"date": int(now()), "ip": TOS_ACCEPTANCE_IP}


class AccountEnrichmentPlanner:
    """
    Builds account update payloads.

    The planner is pure: it only decides what to send.
    """

    def __init__(
        self,
        demo_mode: bool,
        default_product: FinancialProduct = FinancialProduct.EMBEDDED_FINANCE,
        clock: Callable[[], float] = time.time,
    ):
        self.demo_mode = demo_mode
        self.default_product = default_product
        self.clock = clock

    def product_for(self, session: Session) -> FinancialProduct:
        return session.financial_product or self.default_product

    def plan(
        self, session: Session, business_name: str, skip_onboarding: bool = False
    ) -> Dict[str, Any]:
        """
        Build the account update payload for a session.

        Args:
            session: Current session
            business_name: Validated business name
            skip_onboarding: Whether the user skips hosted onboarding

        Returns:
            Dict[str, Any]: Parameters for the account update call
        """
        if not self.demo_mode:
            return {"business_profile": {"name": business_name}}

        country = session.country
        product = self.product_for(session)
        acceptance = tos_acceptance(self.clock)

        payload: Dict[str, Any] = {
            "business_type": "individual",
            "business_profile": {
                "name": business_name,
                "mcc": DEMO_MCC,
                "product_description": DEMO_PRODUCT_DESCRIPTION,
                "url": DEMO_BUSINESS_URL,
                "annual_revenue": {
                    "amount": 0,
                    "currency": get_country_config(country).currency,
                    "fiscal_year_end": DEMO_FISCAL_YEAR_END,
                },
                "estimated_worker_count": 1,
            },
            "company": {
                "name": business_name,
                "tax_id": TAX_ID_OVERRIDES.get(country, DEFAULT_TAX_ID),
            },
            "individual": {
                "address": self._address(country, product),
                "dob": dict(VERIFIED_DOB),
                "email": session.email,
                "first_name": DEMO_FIRST_NAME,
                "last_name": DEMO_LAST_NAME,
                "phone": DEMO_PHONE,
            },
            "settings": self._settings(product, acceptance),
        }

        if skip_onboarding:
            payload["tos_acceptance"] = dict(acceptance)

        return payload

    @staticmethod
    def _address(country: SupportedCountry, product: FinancialProduct) -> Dict[str, str]:
        fake_address = resolve_fake_address(country, product)
        address = {
            "line1": ADDRESS_VERIFICATION_SENTINEL,
            "city": fake_address.city,
            "postal_code": fake_address.postal_code,
            "country": country.value,
        }
        if fake_address.state:
            address["state"] = fake_address.state
        return address

    @staticmethod
    def _settings(product: FinancialProduct, acceptance: Dict[str, Any]) -> Dict[str, Any]:
        settings: Dict[str, Any] = {"card_issuing": {"tos_acceptance": dict(acceptance)}}
        if product.has_treasury:
            settings["treasury"] = {"tos_acceptance": dict(acceptance)}
        return settings


class OnboardingService:
    """
    Runs the onboarding request: validate, update the account, pick a redirect.
    """

    def __init__(
        self,
        planner: AccountEnrichmentPlanner,
        stripe_clients: StripeClientFactory,
        app_base_url: str,
    ):
        self.planner = planner
        self.stripe_clients = stripe_clients
        self.app_base_url = app_base_url.rstrip("/")

    @property
    def demo_mode(self) -> bool:
        return self.planner.demo_mode

    async def onboard(self, session: Session, body: Mapping[str, Any]) -> str:
        """
        Update the session's account and return where to send the user next.

        Raises:
            ValidationError: If the submitted form is invalid
            RemoteCallError: If a Stripe call fails
        """
        try:
            details = validate_business_details(body, self.demo_mode)
        except ValidationError as e:
            logger.warning("onboarding_validation_failed", errors=e.errors)
            metrics.record_onboarding("invalid")
            raise

        skip_onboarding = isinstance(details, DemoBusinessDetails) and details.skip_onboarding
        account_id = session.stripe_account.account_id
        stripe_client = self.stripe_clients.for_platform(session.stripe_account.platform)

        payload = self.planner.plan(session, details.business_name, skip_onboarding)
        await stripe_client.update_account(account_id, payload)

        logger.info(
            "account_enriched",
            account_id=account_id,
            country=session.country.value,
            demo_mode=self.demo_mode,
            skip_onboarding=skip_onboarding,
        )

        if self.demo_mode and skip_onboarding:
            metrics.record_onboarding("skipped")
            return SKIP_ONBOARDING_REDIRECT

        onboarding_url = await stripe_client.create_account_onboarding_link(
            account_id,
            refresh_url=f"{self.app_base_url}{ONBOARDING_REFRESH_PATH}",
            return_url=f"{self.app_base_url}{ONBOARDING_RETURN_PATH}",
        )
        metrics.record_onboarding("onboarding_link")
        return onboarding_url
