"""
Unit tests for outbound payments.
"""
from typing import Any, Callable, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest

from treasury_demo.core.exceptions import NotFoundError, ValidationError
from treasury_demo.core.models import (
    NetworkType,
    Session,
    SettlementOutcome,
    SupportedCountry,
    TransactionResult,
)
from treasury_demo.core.outbound_payments import (
    PLACEHOLDER_ADDRESS,
    OutboundPaymentOrchestrator,
    parse_outbound_payment_request,
    to_minor_units,
)
from treasury_demo.integrations.stripe_client import RemoteCallError, RemoteErrorType

WIRE_ADDRESS = {
    "city": "Austin",
    "state": "TX",
    "postalCode": "73301",
    "line1": "1 Congress Ave",
}


def ach_body(**overrides: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"amount": "12.34", "network": "ach", "name": "Jenny Rosen"}
    body.update(overrides)
    return body


class TestAmountNormalization:
    """Test suite for amount conversion to minor units."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "amount, expected",
        [
            ("12.34", 1234),
            ("12", 1200),
            ("0.50", 50),
            ("0", 0),
            (" 7 ", 700),
        ],
    )
    def test_valid_amounts(self, amount: str, expected: int) -> None:
        """Test the two accepted forms."""
        assert to_minor_units(amount) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "amount",
        [
            "0.5",
            "12.345",
            "12.",
            ".50",
            "-1",
            "1e3",
            "abc",
            "",
            "\u0661\u0662.\u0663\u0664",
            "\uff11\uff12",
            "1" * 16,
        ],
    )
    def test_ambiguous_or_malformed_amounts_rejected(self, amount: str) -> None:
        """Test that amounts are never silently rescaled."""
        with pytest.raises(ValidationError, match="amount"):
            to_minor_units(amount)

    @pytest.mark.unit
    def test_oversized_amount_rejected_by_form(self) -> None:
        """Test that a huge digit string is a validation error, not a crash."""
        with pytest.raises(ValidationError, match="amount"):
            parse_outbound_payment_request(ach_body(amount="9" * 5000))


class TestOutboundPaymentRequest:
    """Test suite for send money form validation."""

    @pytest.mark.unit
    def test_integer_amount_accepted(self) -> None:
        """Test that a JSON integer amount is read as whole units."""
        request = parse_outbound_payment_request(ach_body(amount=25))

        assert request.amount == "25"

    @pytest.mark.unit
    def test_settlement_outcome(self) -> None:
        """Test the mapping from transaction result to settlement outcome."""
        assert parse_outbound_payment_request(ach_body()).settlement is SettlementOutcome.UNFORCED
        assert (
            parse_outbound_payment_request(ach_body(transaction_result="posted")).settlement
            is SettlementOutcome.POSTED
        )
        assert (
            parse_outbound_payment_request(ach_body(transaction_result="failed")).settlement
            is SettlementOutcome.FAILED
        )

    @pytest.mark.unit
    def test_all_violations_reported(self) -> None:
        """Test that every invalid field is reported together."""
        with pytest.raises(ValidationError) as exc_info:
            parse_outbound_payment_request(
                {"amount": "0.5", "network": "carrier_pigeon", "transaction_result": "lost"}
            )

        message = str(exc_info.value)
        for field in ("amount", "network", "name", "transaction_result"):
            assert field in message

    @pytest.mark.unit
    def test_blank_name_rejected(self) -> None:
        """Test that a whitespace-only recipient name is rejected."""
        with pytest.raises(ValidationError, match="name must not be empty"):
            parse_outbound_payment_request(ach_body(name="   "))

    @pytest.mark.unit
    def test_wire_requires_address(self) -> None:
        """Test that wires without a recipient address are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            parse_outbound_payment_request(
                ach_body(network="us_domestic_wire", city="Austin", line1="1 Congress Ave")
            )

        message = str(exc_info.value)
        assert "state" in message
        assert "postalCode" in message

    @pytest.mark.unit
    def test_wire_uses_submitted_address(self) -> None:
        """Test that wires use the caller's address verbatim."""
        request = parse_outbound_payment_request(
            ach_body(network="us_domestic_wire", **WIRE_ADDRESS)
        )

        assert request.billing_address() == {
            "city": "Austin",
            "state": "TX",
            "postal_code": "73301",
            "line1": "1 Congress Ave",
            "country": "US",
        }

    @pytest.mark.unit
    def test_other_networks_use_placeholder_address(self) -> None:
        """Test that submitted address fields are ignored for ACH."""
        request = parse_outbound_payment_request(ach_body(**WIRE_ADDRESS))

        assert request.billing_address() == {**PLACEHOLDER_ADDRESS, "country": "US"}


class TestOutboundPaymentOrchestrator:
    """Test suite for the send money flow."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_creates_payment(
        self,
        stripe_clients: MagicMock,
        stripe_client: AsyncMock,
        session_factory: Callable[..., Session],
    ) -> None:
        """Test the outbound payment parameters."""
        orchestrator = OutboundPaymentOrchestrator(stripe_clients)

        payment_id = await orchestrator.send_money(session_factory(), ach_body())

        assert payment_id == "obp_test_123"
        stripe_client.list_financial_accounts.assert_awaited_once_with("acct_test_123")
        account_id, params = stripe_client.create_outbound_payment.await_args.args
        assert account_id == "acct_test_123"
        assert params["financial_account"] == "fa_test_123"
        assert params["amount"] == 1234
        assert params["currency"] == "usd"
        assert params["statement_descriptor"] == "Descriptor"
        method_data = params["destination_payment_method_data"]
        assert method_data["us_bank_account"] == {
            "account_holder_type": "company",
            "routing_number": "110000000",
            "account_number": "000000000009",
        }
        assert method_data["billing_details"]["name"] == "Jenny Rosen"
        assert method_data["billing_details"]["email"] == "jenny@example.com"
        assert method_data["billing_details"]["phone"] == "7135551212"
        assert params["destination_payment_method_options"] == {
            "us_bank_account": {"network": "ach"}
        }

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_currency_follows_session_country(
        self,
        stripe_clients: MagicMock,
        stripe_client: AsyncMock,
        session_factory: Callable[..., Session],
    ) -> None:
        """Test that the currency comes from the country table."""
        orchestrator = OutboundPaymentOrchestrator(stripe_clients)

        await orchestrator.send_money(session_factory(SupportedCountry.GB), ach_body(amount="5"))

        _, params = stripe_client.create_outbound_payment.await_args.args
        assert params["currency"] == "gbp"
        assert params["amount"] == 500

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_wire_billing_address(
        self,
        stripe_clients: MagicMock,
        stripe_client: AsyncMock,
        session_factory: Callable[..., Session],
    ) -> None:
        """Test that wires carry the submitted address."""
        orchestrator = OutboundPaymentOrchestrator(stripe_clients)

        await orchestrator.send_money(
            session_factory(), ach_body(network=NetworkType.US_DOMESTIC_WIRE.value, **WIRE_ADDRESS)
        )

        _, params = stripe_client.create_outbound_payment.await_args.args
        address = params["destination_payment_method_data"]["billing_details"]["address"]
        assert address["city"] == "Austin"
        assert address["postal_code"] == "73301"
        assert params["destination_payment_method_options"]["us_bank_account"]["network"] == (
            "us_domestic_wire"
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "transaction_result, posts, fails",
        [
            (TransactionResult.POSTED.value, 1, 0),
            (TransactionResult.FAILED.value, 0, 1),
            (None, 0, 0),
        ],
    )
    async def test_settlement_forcing(
        self,
        stripe_clients: MagicMock,
        stripe_client: AsyncMock,
        session_factory: Callable[..., Session],
        transaction_result: Any,
        posts: int,
        fails: int,
    ) -> None:
        """Test that exactly the requested test helper is called."""
        orchestrator = OutboundPaymentOrchestrator(stripe_clients)

        await orchestrator.send_money(
            session_factory(), ach_body(transaction_result=transaction_result)
        )

        assert stripe_client.post_outbound_payment.await_count == posts
        assert stripe_client.fail_outbound_payment.await_count == fails
        if posts:
            stripe_client.post_outbound_payment.assert_awaited_with("acct_test_123", "obp_test_123")
        if fails:
            stripe_client.fail_outbound_payment.assert_awaited_with("acct_test_123", "obp_test_123")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_financial_account(
        self,
        stripe_clients: MagicMock,
        stripe_client: AsyncMock,
        session_factory: Callable[..., Session],
    ) -> None:
        """Test that an account without a financial account cannot send money."""
        stripe_client.list_financial_accounts.return_value = []
        orchestrator = OutboundPaymentOrchestrator(stripe_clients)

        with pytest.raises(NotFoundError, match="financial account"):
            await orchestrator.send_money(session_factory(), ach_body())

        stripe_client.create_outbound_payment.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_amount_makes_no_calls(
        self,
        stripe_clients: MagicMock,
        stripe_client: AsyncMock,
        session_factory: Callable[..., Session],
    ) -> None:
        """Test that amount validation happens before any Stripe call."""
        orchestrator = OutboundPaymentOrchestrator(stripe_clients)

        with pytest.raises(ValidationError):
            await orchestrator.send_money(session_factory(), ach_body(amount="0.5"))

        stripe_client.list_financial_accounts.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_creation_error_skips_forcing(
        self,
        stripe_clients: MagicMock,
        stripe_client: AsyncMock,
        session_factory: Callable[..., Session],
    ) -> None:
        """Test that a failed creation propagates without forcing calls."""
        stripe_client.create_outbound_payment.side_effect = RemoteCallError(
            "Insufficient funds", RemoteErrorType.PERMANENT, "create_outbound_payment"
        )
        orchestrator = OutboundPaymentOrchestrator(stripe_clients)

        with pytest.raises(RemoteCallError):
            await orchestrator.send_money(session_factory(), ach_body(transaction_result="posted"))

        stripe_client.post_outbound_payment.assert_not_called()
