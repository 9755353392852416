import time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    """DexScreener adds fields without notice; unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")


class DexScreenerToken(_Payload):
    address: str
    name: str | None = None
    symbol: str | None = None


class DexScreenerWindows(_Payload):
    """Per-window numbers (volume, signed % price change)."""

    m5: Decimal | None = None
    h1: Decimal | None = None
    h6: Decimal | None = None
    h24: Decimal | None = None


class DexScreenerLiquidity(_Payload):
    usd: Decimal | None = None
    base: Decimal | None = None
    quote: Decimal | None = None


class DexScreenerTxns(_Payload):
    buys: int | None = None
    sells: int | None = None


class DexScreenerTxnsByPeriod(_Payload):
    m5: DexScreenerTxns | None = None
    h1: DexScreenerTxns | None = None
    h6: DexScreenerTxns | None = None
    h24: DexScreenerTxns | None = None


class DexScreenerPair(_Payload):
    chainId: str = ""
    dexId: str = ""
    url: str | None = None
    pairAddress: str = ""
    labels: list[str] = Field(default_factory=list)
    baseToken: DexScreenerToken | None = None
    quoteToken: DexScreenerToken | None = None
    priceUsd: str | None = None
    priceChange: DexScreenerWindows | None = None
    volume: DexScreenerWindows | None = None
    liquidity: DexScreenerLiquidity | None = None
    fdv: Decimal | None = None
    marketCap: Decimal | None = None
    pairCreatedAt: int | None = None  # epoch ms
    txns: DexScreenerTxnsByPeriod | None = None

    @property
    def liquidity_usd(self) -> Decimal:
        if self.liquidity and self.liquidity.usd is not None:
            return self.liquidity.usd
        return Decimal(0)

    @property
    def token_address(self) -> str | None:
        return self.baseToken.address if self.baseToken else None

    def age_minutes(self, now_ms: float | None = None) -> float | None:
        if not self.pairCreatedAt:
            return None
        now_ms = time.time() * 1000 if now_ms is None else now_ms
        return max(0.0, (now_ms - self.pairCreatedAt) / 60_000)
