"""
Pytest configuration and fixtures.
"""
from typing import Any, AsyncGenerator, Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from treasury_demo.api.dependencies import (
    get_session,
    get_stripe_client_factory,
)
from treasury_demo.api.main import create_app
from treasury_demo.config import Settings
from treasury_demo.core.models import FinancialProduct, Session, StripeAccount, SupportedCountry
from treasury_demo.integrations.stripe_client import StripeClient, StripeClientFactory

ONBOARDING_URL = "https://connect.stripe.com/setup/e/acct_test_123/abc"


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "stripe_secret_key": "sk_test_fake_key_for_testing",
        "app_name": "treasury-demo-test",
        "app_env": "test",
        "app_base_url": "http://localhost:3000",
        "log_level": "DEBUG",
        "debug": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_session(
    country: SupportedCountry = SupportedCountry.US,
    financial_product: Optional[FinancialProduct] = FinancialProduct.EMBEDDED_FINANCE,
) -> Session:
    return Session(
        email="owner@example.com",
        country=country,
        stripe_account=StripeAccount(account_id="acct_test_123", platform="US"),
        financial_product=financial_product,
    )


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Build settings isolated from the environment file."""
    return make_settings


@pytest.fixture
def session_factory() -> Callable[..., Session]:
    """Build sessions for any country/product."""
    return make_session


@pytest.fixture
def stripe_client() -> AsyncMock:
    """Stripe client double with realistic return values."""
    client = AsyncMock(spec=StripeClient)
    client.create_account_onboarding_link.return_value = ONBOARDING_URL

    financial_account = MagicMock()
    financial_account.id = "fa_test_123"
    client.list_financial_accounts.return_value = [financial_account]

    outbound_payment = MagicMock()
    outbound_payment.id = "obp_test_123"
    outbound_payment.status = "processing"
    client.create_outbound_payment.return_value = outbound_payment
    return client


@pytest.fixture
def stripe_clients(stripe_client: AsyncMock) -> MagicMock:
    """Factory returning the same client double for every platform."""
    factory = MagicMock(spec=StripeClientFactory)
    factory.for_platform.return_value = stripe_client
    return factory


@pytest.fixture
def app_factory(stripe_clients: MagicMock) -> Callable[..., Any]:
    """Build an app with a fixed session and the Stripe double."""

    def _build(
        demo_mode: bool = True,
        session: Optional[Session] = None,
        with_session: bool = True,
        **settings_overrides: Any,
    ) -> Any:
        app = create_app(make_settings(demo_mode=demo_mode, **settings_overrides))
        app.dependency_overrides[get_stripe_client_factory] = lambda: stripe_clients
        if with_session:
            current = session or make_session()
            app.dependency_overrides[get_session] = lambda: current
        return app

    return _build


@pytest_asyncio.fixture
async def client_for() -> AsyncGenerator[Callable[..., AsyncClient], Any]:
    """Open HTTP clients against built apps and close them afterwards."""
    clients: list[AsyncClient] = []

    def _open(app: Any) -> AsyncClient:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        client = AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _open

    for client in clients:
        await client.aclose()
