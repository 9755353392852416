"""Decision endpoints: evaluate a caller overlay or a DexScreener link."""

from typing import Any

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from loguru import logger
from pydantic import BaseModel, Field

from config.settings import settings
from src.api.app import limiter
from src.api.dependencies import get_dex_client, get_engine
from src.parsers.dexscreener.client import DexScreenerClient, parse_dexscreener_url
from src.parsers.dexscreener.models import DexScreenerPair
from src.signals.engine import SignalEngine
from src.signals.overlay import from_dexscreener_pair

router = APIRouter(prefix="/api/v1/decision", tags=["decision"])


class DecisionRequest(BaseModel):
    overlay: Any = None
    tier: str | None = Field(None, max_length=20)
    token: str | None = Field(None, max_length=100)
    pool_id: str | None = Field(None, max_length=160)

    model_config = {"extra": "ignore"}


def _pair_summary(pair: DexScreenerPair) -> dict[str, Any]:
    return {
        "chain": pair.chainId,
        "dex": pair.dexId,
        "pair_address": pair.pairAddress,
        "url": pair.url,
        "token_address": pair.token_address,
        "symbol": pair.baseToken.symbol if pair.baseToken else None,
        "price_usd": pair.priceUsd,
    }


@router.post("")
@limiter.limit(settings.api_rate_limit)
async def decide_overlay(
    request: Request,
    body: DecisionRequest,
    engine: SignalEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Evaluate a caller-built overlay (never fails on malformed fields)."""
    result = engine.evaluate_detailed(body.overlay, body.tier, token=body.token, pool_id=body.pool_id)
    return {**result.to_dict(), "token": body.token, "pool_id": body.pool_id}


@router.get("")
@limiter.limit(settings.api_rate_limit)
async def decide_dexscreener(
    request: Request,
    url: str = Query(..., max_length=300, description="dexscreener.com pair or token link"),
    tier: str | None = Query(None, max_length=20),
    engine: SignalEngine = Depends(get_engine),
    client: DexScreenerClient = Depends(get_dex_client),
) -> dict[str, Any]:
    """Fetch the linked pair, build an overlay from it and evaluate."""
    ref = parse_dexscreener_url(url)
    if ref is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Expected a dexscreener.com/<chain>/<pair> or /token/<address> link",
        )

    try:
        pair = await client.resolve(ref)
    except httpx.HTTPError as e:
        logger.warning(f"[API] DexScreener lookup failed for {ref.chain}/{ref.id[:12]}: {type(e).__name__}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Market data provider unavailable",
        ) from e
    if pair is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pair not found")

    overlay = from_dexscreener_pair(pair)
    pool_id = f"{pair.chainId}:{pair.pairAddress}" if pair.pairAddress else None
    result = engine.evaluate_detailed(overlay, tier, token=pair.token_address, pool_id=pool_id)
    return {**result.to_dict(), "pair": _pair_summary(pair)}
