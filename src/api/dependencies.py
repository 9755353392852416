"""FastAPI dependency injection: signal engine and DexScreener client."""

from __future__ import annotations

from config.settings import settings
from src.parsers.dexscreener.client import DexScreenerClient
from src.parsers.rate_limiter import RateLimiter
from src.signals.engine import SignalEngine

_engine: SignalEngine | None = None
_dex_client: DexScreenerClient | None = None


def get_engine() -> SignalEngine:
    """Return the process-wide engine (stores live as long as the process)."""
    global _engine
    if _engine is None:
        _engine = SignalEngine.from_settings(settings)
    return _engine


def get_dex_client() -> DexScreenerClient:
    global _dex_client
    if _dex_client is None:
        _dex_client = DexScreenerClient(
            rate_limiter=RateLimiter(settings.dexscreener_max_rps, burst=2),
        )
    return _dex_client


async def close_dex_client() -> None:
    global _dex_client
    if _dex_client is not None:
        await _dex_client.close()
        _dex_client = None
