"""Health check: no auth required."""

from __future__ import annotations

import time

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.app import API_VERSION
from src.api.dependencies import get_engine
from src.signals.engine import SignalEngine

router = APIRouter(prefix="/api/v1", tags=["health"])

_STARTED_AT = time.monotonic()


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_sec: int
    evaluations: int
    rug_warnings: int
    convergence_tokens: int
    tracked_pools: int
    ranked_wallets: int


@router.get("/health", response_model=HealthResponse)
async def health_check(engine: SignalEngine = Depends(get_engine)) -> HealthResponse:
    """Liveness plus in-memory store sizes."""
    return HealthResponse(
        status="ok",
        version=API_VERSION,
        uptime_sec=int(time.monotonic() - _STARTED_AT),
        **engine.stats,
    )
