"""Tests for the DexScreener client, link parser and rate limiter."""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from src.parsers.dexscreener.client import (
    DexScreenerClient,
    DexScreenerRef,
    best_by_liquidity,
    parse_dexscreener_url,
)
from src.parsers.dexscreener.models import DexScreenerPair
from src.parsers.rate_limiter import RateLimiter
from src.signals.overlay import from_dexscreener_pair


def _pair(address: str = "PairAddr111", liquidity: float = 50_000, **extra) -> dict:
    payload = {
        "chainId": "solana",
        "dexId": "raydium",
        "pairAddress": address,
        "baseToken": {"address": "MintAddr111", "symbol": "PEPE"},
        "quoteToken": {"address": "So11111111111111111111111111111111111111112", "symbol": "SOL"},
        "priceUsd": "0.0012",
        "liquidity": {"usd": liquidity},
        "volume": {"h24": 180_000, "m5": 2_500},
        "priceChange": {"m5": 1.5, "h1": 6.2, "h24": 40},
        "txns": {"m5": {"buys": 30, "sells": 12}},
        "fdv": 1_200_000,
        "pairCreatedAt": 1_700_000_000_000,
    }
    payload.update(extra)
    return payload


def _response(status: int, json: object = None, headers: dict | None = None) -> httpx.Response:
    return httpx.Response(
        status,
        json=json,
        headers=headers,
        request=httpx.Request("GET", "https://api.dexscreener.com/test"),
    )


def _client(*responses: httpx.Response) -> DexScreenerClient:
    client = DexScreenerClient(max_rps=100.0)
    client._client = AsyncMock()
    client._client.get = AsyncMock(side_effect=list(responses))
    return client


class TestParseUrl:
    def test_chain_pair_link(self) -> None:
        ref = parse_dexscreener_url("https://dexscreener.com/solana/PairAddr111?maker=x")
        assert ref == DexScreenerRef(chain="solana", id="PairAddr111", is_token=False)

    def test_pair_prefix_and_case(self) -> None:
        ref = parse_dexscreener_url("https://www.dexscreener.com/pair/BSC/0xAbC")
        assert ref == DexScreenerRef(chain="bsc", id="0xAbC")

    def test_token_link(self) -> None:
        ref = parse_dexscreener_url("https://dexscreener.com/token/MintAddr111")
        assert ref is not None
        assert ref.is_token is True
        assert ref.chain is None

    @pytest.mark.parametrize(
        "url",
        [
            None,
            "",
            "not a url",
            "ftp://dexscreener.com/solana/abc",
            "https://evil.example/solana/abc",
            "https://dexscreener.com.evil.io/solana/abc",
            "https://dexscreener.com/solana",
            "https://dexscreener.com/solana/" + "x" * 101,
        ],
    )
    def test_rejected(self, url) -> None:
        assert parse_dexscreener_url(url) is None


class TestModels:
    def test_pair_helpers(self) -> None:
        pair = DexScreenerPair.model_validate(_pair())
        assert pair.liquidity_usd == Decimal(50_000)
        assert pair.token_address == "MintAddr111"
        assert pair.age_minutes(now_ms=1_700_000_000_000 + 120_000) == 2
        assert DexScreenerPair().age_minutes() is None
        assert DexScreenerPair().token_address is None

    def test_missing_liquidity_sorts_last(self) -> None:
        deep = DexScreenerPair.model_validate(_pair("Deep", liquidity=90_000))
        bare = DexScreenerPair.model_validate(_pair("Bare", liquidity=None))
        assert bare.liquidity_usd == 0
        assert best_by_liquidity([bare, deep]) is deep
        assert best_by_liquidity([]) is None

    def test_overlay_from_pair(self) -> None:
        overlay = from_dexscreener_pair(_pair(), now_ms=1_700_000_000_000 + 30 * 60_000)
        assert overlay.liquidity_usd == 50_000
        assert overlay.volume_24h_usd == 180_000
        assert overlay.volume_5m == 2_500
        assert overlay.price_change_1h == pytest.approx(6.2)
        assert overlay.buys_5m == 30
        assert overlay.sells_5m == 12
        assert overlay.pair_age_minutes == pytest.approx(30)

    def test_overlay_from_bad_payload(self) -> None:
        overlay = from_dexscreener_pair({"baseToken": "oops"})
        assert overlay.liquidity_usd is None
        assert from_dexscreener_pair(None).liquidity_usd is None


class TestDexScreenerClient:
    @pytest.mark.asyncio
    async def test_get_pair(self) -> None:
        client = _client(_response(200, {"pairs": [_pair()]}))
        pair = await client.get_pair("solana", "PairAddr111")
        assert pair is not None
        assert pair.pairAddress == "PairAddr111"
        path = client._client.get.call_args.args[0]
        assert path == "/latest/dex/pairs/solana/PairAddr111"

    @pytest.mark.asyncio
    async def test_get_pair_falls_back_to_token_pools(self) -> None:
        client = _client(
            _response(404, {"error": "not found"}),
            _response(200, [_pair("Thin", 5_000), _pair("Deep", 250_000)]),
        )
        pair = await client.get_pair("solana", "MintAddr111")
        assert pair is not None
        assert pair.pairAddress == "Deep"
        path = client._client.get.call_args_list[1].args[0]
        assert path == "/token-pairs/v1/solana/MintAddr111"

    @pytest.mark.asyncio
    async def test_get_pair_empty_result_falls_back(self) -> None:
        client = _client(_response(200, {"pairs": None}), _response(200, []))
        assert await client.get_pair("solana", "Nothing") is None
        assert client._client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_retries_on_429(self) -> None:
        client = _client(
            _response(429, {}, headers={"Retry-After": "1"}),
            _response(200, {"pairs": [_pair()]}),
        )
        with patch("src.parsers.dexscreener.client.asyncio.sleep", new=AsyncMock()) as sleep:
            pair = await client.get_pair("solana", "PairAddr111")
        assert pair is not None
        assert client._client.get.await_count == 2
        sleep.assert_any_await(1.0)

    @pytest.mark.asyncio
    async def test_server_error_propagates(self) -> None:
        client = _client(_response(503, {}))
        with pytest.raises(httpx.HTTPStatusError):
            await client.search_best_pair("PEPE")

    @pytest.mark.asyncio
    async def test_search_best_pair(self) -> None:
        client = _client(_response(200, {"pairs": [_pair("A", 10_000), _pair("B", 70_000)]}))
        pair = await client.search_best_pair("PEPE")
        assert pair is not None
        assert pair.pairAddress == "B"
        call = client._client.get.call_args
        assert call.args[0] == "/latest/dex/search"
        assert call.kwargs["params"] == {"q": "PEPE"}

    @pytest.mark.asyncio
    async def test_resolve_token_ref_searches(self) -> None:
        client = _client(_response(200, {"pairs": [_pair()]}))
        pair = await client.resolve(DexScreenerRef(chain=None, id="MintAddr111", is_token=True))
        assert pair is not None
        assert client._client.get.call_args.args[0] == "/latest/dex/search"


class TestRateLimiter:
    def test_rejects_non_positive_rate(self) -> None:
        with pytest.raises(ValueError):
            RateLimiter(0)

    @pytest.mark.asyncio
    async def test_burst_then_wait(self) -> None:
        limiter = RateLimiter(max_rps=2.0, burst=2)
        assert limiter.max_rps == 2.0
        with patch("src.parsers.rate_limiter.asyncio.sleep", new=AsyncMock()) as sleep:
            await limiter.acquire()
            await limiter.acquire()
            sleep.assert_not_awaited()
            await limiter.acquire()
            sleep.assert_awaited_once()
