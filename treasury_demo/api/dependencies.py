"""
FastAPI dependencies wiring settings, sessions and services.

Everything is read from the application the request belongs to, so an app
built with explicit settings never falls back to the environment. Tests
replace these through app.dependency_overrides.
"""
import structlog
from fastapi import Depends, Request

from treasury_demo.config import Settings
from treasury_demo.core.enrichment import AccountEnrichmentPlanner, OnboardingService
from treasury_demo.core.models import Session
from treasury_demo.core.outbound_payments import OutboundPaymentOrchestrator
from treasury_demo.integrations.session_store import SessionStore
from treasury_demo.integrations.stripe_client import StripeClientFactory


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_stripe_client_factory(request: Request) -> StripeClientFactory:
    return request.app.state.stripe_clients


async def get_session(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    store: SessionStore = Depends(get_session_store),
) -> Session:
    """Session of the current request; raises SessionError without one."""
    session = await store.get(request.cookies.get(settings.session_cookie_name))
    structlog.contextvars.bind_contextvars(
        account_id=session.stripe_account.account_id,
        platform=session.stripe_account.platform,
        country=session.country.value,
    )
    return session


def get_onboarding_service(
    settings: Settings = Depends(get_app_settings),
    stripe_clients: StripeClientFactory = Depends(get_stripe_client_factory),
) -> OnboardingService:
    planner = AccountEnrichmentPlanner(
        demo_mode=settings.demo_mode,
        default_product=settings.default_financial_product,
    )
    return OnboardingService(planner, stripe_clients, settings.app_base_url)


def get_outbound_payment_orchestrator(
    stripe_clients: StripeClientFactory = Depends(get_stripe_client_factory),
) -> OutboundPaymentOrchestrator:
    return OutboundPaymentOrchestrator(stripe_clients)
