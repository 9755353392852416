import asyncio
from dataclasses import dataclass
from urllib.parse import quote, urlparse

import httpx
from loguru import logger

from src.parsers.dexscreener.models import DexScreenerPair
from src.parsers.rate_limiter import RateLimiter

BASE_URL = "https://api.dexscreener.com"
MAX_RETRIES = 3
RETRY_DELAYS = [1.0, 2.0, 4.0]
MAX_ID_LENGTH = 100


@dataclass(frozen=True)
class DexScreenerRef:
    """What a dexscreener.com link points at."""

    chain: str | None
    id: str
    is_token: bool = False


def parse_dexscreener_url(url: str | None) -> DexScreenerRef | None:
    """Parse a dexscreener.com page link.

    Supported paths: ``/<chain>/<pair>``, ``/pair/<chain>/<pair>`` and
    ``/token/<address>``. Returns None for anything else.
    """
    if not url or not isinstance(url, str):
        return None
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None
    host = (parsed.hostname or "").lower()
    if parsed.scheme not in ("http", "https") or not (
        host == "dexscreener.com" or host.endswith(".dexscreener.com")
    ):
        return None

    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) >= 3 and parts[0] == "pair":
        chain, ident, is_token = parts[1], parts[2], False
    elif len(parts) >= 2 and parts[0] == "token":
        chain, ident, is_token = None, parts[1], True
    elif len(parts) >= 2:
        chain, ident, is_token = parts[0], parts[1], False
    else:
        return None

    if len(ident) > MAX_ID_LENGTH:
        return None
    return DexScreenerRef(chain=chain.lower() if chain else None, id=ident, is_token=is_token)


def best_by_liquidity(pairs: list[DexScreenerPair]) -> DexScreenerPair | None:
    if not pairs:
        return None
    return max(pairs, key=lambda p: p.liquidity_usd)


def _parse_pairs(data: object) -> list[DexScreenerPair]:
    if isinstance(data, list):
        raw = data
    elif isinstance(data, dict):
        raw = data.get("pairs") or data.get("pair") or []
        if not isinstance(raw, list):
            raw = [raw]
    else:
        raw = []
    return [DexScreenerPair.model_validate(p) for p in raw if isinstance(p, dict)]


class DexScreenerClient:
    """Async REST client for DexScreener public API (no auth required)."""

    def __init__(self, rate_limiter: RateLimiter | None = None, max_rps: float = 1.0) -> None:
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            timeout=10.0,
            headers={"Accept": "application/json"},
        )
        self._rate_limiter = rate_limiter or RateLimiter(max_rps)

    async def _request_with_retry(self, path: str, params: dict | None = None) -> httpx.Response:
        """Execute GET with retry on 429/timeout."""
        for attempt in range(MAX_RETRIES):
            await self._rate_limiter.acquire()
            try:
                response = await self._client.get(path, params=params)
                if response.status_code == 429:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    retry_after = response.headers.get("Retry-After")
                    if retry_after:
                        delay = max(float(retry_after), delay)
                    logger.debug(f"[DEXSCREENER] 429 rate limited, retrying in {delay}s")
                    await asyncio.sleep(delay)
                    continue
                response.raise_for_status()
                return response
            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES - 1:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[DEXSCREENER] {type(e).__name__}, retrying in {delay}s")
                    await asyncio.sleep(delay)
                else:
                    raise
        # Final attempt, no retry
        await self._rate_limiter.acquire()
        response = await self._client.get(path, params=params)
        response.raise_for_status()
        return response

    async def get_token_pairs(self, token_address: str, chain: str = "solana") -> list[DexScreenerPair]:
        """Get all pools for a token on ``chain``."""
        response = await self._request_with_retry(
            f"/token-pairs/v1/{quote(chain, safe='')}/{quote(token_address, safe='')}"
        )
        return _parse_pairs(response.json())

    async def get_pair(self, chain: str, pair_id: str) -> DexScreenerPair | None:
        """Fetch a pair by chain + pair address.

        Links often carry the token address instead of the pool address, so
        when the pair endpoint has nothing the id is retried as a token and
        the deepest pool wins.
        """
        path = f"/latest/dex/pairs/{quote(chain, safe='')}/{quote(pair_id, safe='')}"
        try:
            response = await self._request_with_retry(path)
            pairs = _parse_pairs(response.json())
            if pairs:
                return pairs[0]
        except httpx.HTTPStatusError as e:
            logger.debug(f"[DEXSCREENER] Pair lookup {chain}/{pair_id[:12]} -> {e.response.status_code}")

        pair = best_by_liquidity(await self.get_token_pairs(pair_id, chain=chain))
        if pair is None:
            logger.debug(f"[DEXSCREENER] No pools for {chain}/{pair_id[:12]}")
        return pair

    async def search_best_pair(self, query: str) -> DexScreenerPair | None:
        """Search pairs by token address or symbol, return the deepest pool."""
        response = await self._request_with_retry("/latest/dex/search", params={"q": query})
        return best_by_liquidity(_parse_pairs(response.json()))

    async def resolve(self, ref: DexScreenerRef) -> DexScreenerPair | None:
        if ref.is_token or not ref.chain:
            return await self.search_best_pair(ref.id)
        return await self.get_pair(ref.chain, ref.id)

    async def close(self) -> None:
        await self._client.aclose()
