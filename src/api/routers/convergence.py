"""Convergence endpoints: report ranked-wallet buys, read cohort state."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from src.api.dependencies import get_engine
from src.signals.convergence import token_key
from src.signals.engine import SignalEngine

router = APIRouter(prefix="/api/v1/convergence", tags=["convergence"])


class WalletHit(BaseModel):
    token: str = Field(..., min_length=1, max_length=100)
    wallet: str = Field(..., min_length=1, max_length=100)
    # Omit to rank the wallet from its observed activity
    tier: str | None = Field(None, pattern=r"^[SABCsabc]$")


@router.post("/hits")
async def report_hit(
    hit: WalletHit,
    engine: SignalEngine = Depends(get_engine),
) -> dict[str, Any]:
    if not token_key(hit.token):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty token")

    if hit.tier is None:
        record, state = engine.note_wallet_activity(hit.token, hit.wallet)
        tier = record.tier.value
    else:
        tier = hit.tier.upper()
        state = engine.note_wallet_hit(hit.token, hit.wallet, tier)

    return {
        "accepted": tier in ("S", "A"),
        "wallet_tier": tier,
        "convergence": state.to_dict(),
    }


@router.get("")
async def list_convergence(
    limit: int = Query(30, ge=1, le=200),
    engine: SignalEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Tokens with live hits in the window, strongest first."""
    items = [s.to_dict() for s in engine.convergence.list_top(limit)]
    return {"window_sec": engine.convergence.window_sec, "items": items}


@router.get("/{token}")
async def get_convergence(
    token: str,
    engine: SignalEngine = Depends(get_engine),
) -> dict[str, Any]:
    if not token_key(token):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty token")
    return engine.convergence.get(token).to_dict()
