"""
Stripe API client for Connect onboarding and Treasury money movement.

Implements:
- Per-platform API keys (one client per platform)
- Error classification for logging and metrics
- Non-blocking calls (SDK calls run in a worker thread)

Calls are never retried here. Failures are wrapped in RemoteCallError and
propagate to the caller.
"""
import asyncio
import time
import uuid
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, TypeVar

import stripe
import structlog

from treasury_demo.monitoring.metrics import metrics

if TYPE_CHECKING:
    from treasury_demo.config import Settings

logger = structlog.get_logger(__name__)

T = TypeVar("T")

FINANCIAL_ADDRESS_EXPANSION = "data.financial_addresses.aba.account_number"


class RemoteErrorType(Enum):
    """Classification of Stripe errors."""

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    RATE_LIMIT = "rate_limit"


class RemoteCallError(Exception):
    """Raised when a Stripe API call fails."""

    def __init__(
        self,
        message: str,
        error_type: RemoteErrorType,
        operation: str,
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize remote call error.

        Args:
            message: Error message
            error_type: Classification of error
            operation: Client operation that failed
            original_error: Original Stripe exception
        """
        super().__init__(message)
        self.error_type = error_type
        self.operation = operation
        self.original_error = original_error


class StripeClient:
    """
    Stripe API wrapper bound to a single platform.

    Every call authenticates with the platform's secret key and, where the
    resource belongs to a connected account, sends the Stripe-Account header.
    """

    def __init__(self, platform: str, api_key: str, api_version: Optional[str] = None):
        """
        Initialize Stripe client.

        Args:
            platform: Platform identifier the client is bound to
            api_key: Secret key of that platform
            api_version: Optional pinned API version
        """
        self.platform = platform
        self._api_key = api_key
        self._api_version = api_version

    def _options(self, stripe_account: Optional[str] = None) -> Dict[str, Any]:
        options: Dict[str, Any] = {"api_key": self._api_key}
        if self._api_version:
            options["stripe_version"] = self._api_version
        if stripe_account:
            options["stripe_account"] = stripe_account
        return options

    @staticmethod
    def _classify_error(error: stripe.StripeError) -> RemoteErrorType:
        """
        Classify Stripe error.

        Args:
            error: Stripe error

        Returns:
            RemoteErrorType: Error classification
        """
        if isinstance(error, stripe.RateLimitError):
            return RemoteErrorType.RATE_LIMIT
        elif isinstance(error, (stripe.APIConnectionError, stripe.APIError)):
            return RemoteErrorType.TRANSIENT
        elif isinstance(
            error,
            (
                stripe.CardError,
                stripe.InvalidRequestError,
                stripe.AuthenticationError,
                stripe.PermissionError,
            ),
        ):
            return RemoteErrorType.PERMANENT
        else:
            return RemoteErrorType.TRANSIENT

    async def _call(self, operation: str, func: Callable[[], T]) -> T:
        """
        Run a blocking SDK call off the event loop.

        Args:
            operation: Operation name for logs and metrics
            func: Zero-argument callable performing the SDK call

        Returns:
            The SDK call result

        Raises:
            RemoteCallError: If Stripe rejects the call or is unreachable
        """
        start_time = time.time()
        try:
            result = await asyncio.to_thread(func)
        except stripe.StripeError as e:
            error_type = self._classify_error(e)
            metrics.record_stripe_api_call(operation, "error", time.time() - start_time)
            metrics.record_stripe_api_error(error_type.value)
            logger.error(
                "stripe_api_error",
                operation=operation,
                platform=self.platform,
                error_type=error_type.value,
                error_code=getattr(e, "code", None),
                error_message=str(e),
            )
            raise RemoteCallError(
                message=str(e),
                error_type=error_type,
                operation=operation,
                original_error=e,
            ) from e

        metrics.record_stripe_api_call(operation, "success", time.time() - start_time)
        return result

    async def update_account(self, account_id: str, params: Dict[str, Any]) -> stripe.Account:
        """
        Update a connected account.

        Args:
            account_id: Connected account ID
            params: Account update parameters

        Returns:
            stripe.Account: Updated account
        """
        logger.info("updating_account", account_id=account_id, platform=self.platform)

        def _update() -> stripe.Account:
            return stripe.Account.modify(account_id, **params, **self._options())

        return await self._call("update_account", _update)

    async def create_account_onboarding_link(
        self, account_id: str, refresh_url: str, return_url: str
    ) -> str:
        """
        Create a Connect onboarding link for an account.

        Returns:
            str: The hosted onboarding URL
        """
        logger.info("creating_account_link", account_id=account_id, platform=self.platform)

        def _create() -> stripe.AccountLink:
            return stripe.AccountLink.create(
                account=account_id,
                refresh_url=refresh_url,
                return_url=return_url,
                type="account_onboarding",
                **self._options(),
            )

        account_link = await self._call("create_account_link", _create)
        return account_link.url

    async def list_financial_accounts(self, account_id: str) -> List[Any]:
        """
        List the Treasury financial accounts of a connected account.

        ABA account numbers are expanded on every entry.
        """
        logger.info("listing_financial_accounts", account_id=account_id)

        def _list() -> stripe.ListObject:
            return stripe.treasury.FinancialAccount.list(
                expand=[FINANCIAL_ADDRESS_EXPANSION],
                **self._options(stripe_account=account_id),
            )

        financial_accounts = await self._call("list_financial_accounts", _list)
        return list(financial_accounts.data)

    async def create_outbound_payment(
        self,
        account_id: str,
        params: Dict[str, Any],
        idempotency_key: Optional[str] = None,
    ) -> stripe.treasury.OutboundPayment:
        """
        Create a Treasury outbound payment on a connected account.

        Args:
            account_id: Connected account ID
            params: Outbound payment parameters
            idempotency_key: Optional idempotency key (generated if absent)

        Returns:
            stripe.treasury.OutboundPayment: Created payment
        """
        idempotency_key = idempotency_key or str(uuid.uuid4())
        logger.info(
            "creating_outbound_payment",
            account_id=account_id,
            amount=params.get("amount"),
            currency=params.get("currency"),
            idempotency_key=idempotency_key,
        )

        def _create() -> stripe.treasury.OutboundPayment:
            return stripe.treasury.OutboundPayment.create(
                idempotency_key=idempotency_key,
                **params,
                **self._options(stripe_account=account_id),
            )

        outbound_payment = await self._call("create_outbound_payment", _create)

        logger.info(
            "outbound_payment_created",
            outbound_payment_id=outbound_payment.id,
            status=outbound_payment.status,
        )
        return outbound_payment

    async def post_outbound_payment(
        self, account_id: str, outbound_payment_id: str
    ) -> stripe.treasury.OutboundPayment:
        """Test mode only: transition an outbound payment to posted."""
        logger.info("posting_outbound_payment", outbound_payment_id=outbound_payment_id)

        def _post() -> stripe.treasury.OutboundPayment:
            return stripe.treasury.OutboundPayment.TestHelpers.post(
                outbound_payment_id, **self._options(stripe_account=account_id)
            )

        return await self._call("post_outbound_payment", _post)

    async def fail_outbound_payment(
        self, account_id: str, outbound_payment_id: str
    ) -> stripe.treasury.OutboundPayment:
        """Test mode only: transition an outbound payment to failed."""
        logger.info("failing_outbound_payment", outbound_payment_id=outbound_payment_id)

        def _fail() -> stripe.treasury.OutboundPayment:
            return stripe.treasury.OutboundPayment.TestHelpers.fail(
                outbound_payment_id, **self._options(stripe_account=account_id)
            )

        return await self._call("fail_outbound_payment", _fail)


class StripeClientFactory:
    """Builds a StripeClient for a platform from the configured keys."""

    def __init__(self, settings: "Settings"):
        self.settings = settings
        stripe.max_network_retries = settings.stripe_max_network_retries

    def for_platform(self, platform: str) -> StripeClient:
        return StripeClient(
            platform=platform,
            api_key=self.settings.secret_key_for(platform),
            api_version=self.settings.stripe_api_version,
        )
