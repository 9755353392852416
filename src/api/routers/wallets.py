"""Wallet ranking endpoints (in-memory only)."""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src.api.dependencies import get_engine
from src.signals.engine import SignalEngine

router = APIRouter(prefix="/api/v1/wallets", tags=["wallets"])


class WalletActivity(BaseModel):
    wallet: str = Field(..., min_length=1, max_length=100)
    token: str | None = Field(None, max_length=100)


class WalletOutcome(BaseModel):
    wallet: str = Field(..., min_length=1, max_length=100)
    outcome: Literal["win", "loss"]


@router.post("/activity")
async def wallet_activity(
    body: WalletActivity,
    engine: SignalEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Record a buy by ``wallet``; with a token it also feeds convergence."""
    if body.token:
        record, state = engine.note_wallet_activity(body.token, body.wallet)
        return {"wallet": record.to_dict(), "convergence": state.to_dict()}
    record = engine.wallets.note_activity(body.wallet)
    return {"wallet": record.to_dict(), "convergence": None}


@router.post("/outcome")
async def wallet_outcome(
    body: WalletOutcome,
    engine: SignalEngine = Depends(get_engine),
) -> dict[str, Any]:
    if body.outcome == "win":
        record = engine.wallets.note_win(body.wallet)
    else:
        record = engine.wallets.note_loss(body.wallet)
    return {"wallet": record.to_dict()}


@router.get("/top")
async def top_wallets(
    limit: int = Query(20, ge=1, le=200),
    engine: SignalEngine = Depends(get_engine),
) -> dict[str, Any]:
    return {"items": [r.to_dict() for r in engine.wallets.top_wallets(limit)]}
