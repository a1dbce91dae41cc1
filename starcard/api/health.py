"""
Health check endpoints.

Provides liveness and readiness probes with a storage connectivity check.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from starcard.api.dependencies import get_controller
from starcard.db.storage import StorageReadError
from starcard.services.card_controller import CardController

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    storage: str | None = None
    analysis: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    controller: Annotated[CardController, Depends(get_controller)],
) -> HealthResponse:
    """
    Readiness probe.

    Checks the storage can be read. Returns 503 if it cannot. Reports
    whether analysis is configured, which does not affect readiness.
    """
    analysis = "configured" if controller.gateway.configured else "unconfigured"
    try:
        controller.store.storage.get_item(controller.store.key)
    except (StorageReadError, SQLAlchemyError):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", storage="unavailable", analysis=analysis)
    return HealthResponse(status="ready", storage="connected", analysis=analysis)
