"""
Liveness and health check endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from app import __version__
from app.dependencies import Verification
from app.models import HealthResponse, PingResponse

router = APIRouter(prefix="/api", tags=["health"])


@router.get(
    "/ping",
    response_model=PingResponse,
    operation_id="ping",
    summary="Liveness probe",
)
async def ping() -> PingResponse:
    return PingResponse(ok=True)


@router.get(
    "/health",
    response_model=HealthResponse,
    operation_id="getHealth",
    summary="Health check",
)
async def get_health(service: Verification) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        email_provider=service.dispatcher.provider_name,
    )
