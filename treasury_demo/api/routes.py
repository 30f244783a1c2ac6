"""
API routes for onboarding and money movement.

Both endpoints only accept POST; the router answers 405 for other methods.
"""
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from treasury_demo.core.enrichment import OnboardingService
from treasury_demo.core.exceptions import ValidationError
from treasury_demo.core.models import Session
from treasury_demo.core.outbound_payments import OutboundPaymentOrchestrator
from treasury_demo.integrations.session_store import SessionStore
from treasury_demo.monitoring.health import HealthCheck

from .dependencies import (
    get_onboarding_service,
    get_outbound_payment_orchestrator,
    get_session,
    get_session_store,
)
from .schemas import ApiResponse, HealthCheckResponse, api_response

logger = structlog.get_logger(__name__)

api_router = APIRouter(prefix="/api", tags=["demo"])
monitoring_router = APIRouter(tags=["monitoring"])


def validation_error_response(error: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=api_response(success=False, error_message=str(error)),
    )


@api_router.post(
    "/onboard",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Enrich the connected account",
    description="Update the account with the business name (and demo KYC data) and pick a redirect",
)
async def onboard(
    body: Dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
    service: OnboardingService = Depends(get_onboarding_service),
) -> Any:
    """Onboard the session's connected account."""
    try:
        redirect_url = await service.onboard(session, body)
    except ValidationError as e:
        logger.warning("api_onboard_validation_error", error=str(e))
        return validation_error_response(e)

    return api_response(success=True, data={"redirectUrl": redirect_url})


@api_router.post(
    "/send_money",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Send an outbound payment",
    description="Create a Treasury outbound payment and optionally force its settlement",
)
async def send_money(
    body: Dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
    orchestrator: OutboundPaymentOrchestrator = Depends(get_outbound_payment_orchestrator),
) -> Any:
    """Send money from the session's financial account."""
    try:
        await orchestrator.send_money(session, body)
    except ValidationError as e:
        logger.warning("api_send_money_validation_error", error=str(e))
        return validation_error_response(e)

    return api_response(success=True)


@monitoring_router.get(
    "/health/live",
    response_model=HealthCheckResponse,
    summary="Liveness probe",
)
async def liveness(store: SessionStore = Depends(get_session_store)) -> Dict[str, Any]:
    """Liveness probe endpoint."""
    return await HealthCheck(store).liveness()


@monitoring_router.get(
    "/health/ready",
    response_model=HealthCheckResponse,
    summary="Readiness probe",
)
async def readiness(store: SessionStore = Depends(get_session_store)) -> Dict[str, Any]:
    """Readiness probe endpoint."""
    result = await HealthCheck(store).readiness()
    if result["status"] != "healthy":
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=result)
    return result


@monitoring_router.get(
    "/metrics",
    summary="Prometheus metrics",
    include_in_schema=False,
)
async def prometheus_metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
