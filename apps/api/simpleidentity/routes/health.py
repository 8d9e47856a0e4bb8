"""Liveness route."""

from typing import Annotated

from fastapi import APIRouter, Depends

from simpleidentity.core.config import Settings, get_settings
from simpleidentity.schemas.auth import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/healthz", response_model=HealthResponse)
async def healthz(settings: Annotated[Settings, Depends(get_settings)]) -> HealthResponse:
    return HealthResponse(status="ok", version=settings.version)
