"""Market overlay: the normalized per-pair snapshot the decision core reads.

All fields are optional. Normalization happens once, here, at the boundary:
malformed numbers become ``None`` instead of raising, so every downstream
formula can treat ``None`` as "unknown" and pick its cautious branch.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.parsers.dexscreener.models import DexScreenerPair
from src.signals.types import ConvergenceStatus, EntryZoneKind, TrapSeverity, WalletTier

if TYPE_CHECKING:
    from src.signals.pool_history import PoolDelta


def to_float(value: Any) -> float | None:
    """Coerce numbers and numeric strings to a finite float, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            num = float(value)
        except (OverflowError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip().rstrip("%").replace(",", "")
        if not text:
            return None
        try:
            num = float(text)
        except ValueError:
            return None
    else:
        return None
    return num if math.isfinite(num) else None


def _non_negative(value: Any) -> float | None:
    num = to_float(value)
    if num is None or num < 0:
        return None
    return num


def _non_negative_int(value: Any) -> int | None:
    num = _non_negative(value)
    return None if num is None else int(num)


def _strict_bool(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class RugReading(BaseModel):
    """Caller-supplied rug estimate (overrides the computed score)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    risk: float | None = None
    crash: bool | None = None

    @field_validator("risk", mode="before")
    @classmethod
    def _clean_risk(cls, v: Any) -> float | None:
        num = to_float(v)
        return None if num is None else max(0.0, min(100.0, num))

    @field_validator("crash", mode="before")
    @classmethod
    def _clean_crash(cls, v: Any) -> bool | None:
        return _strict_bool(v)


class ConvergenceReading(BaseModel):
    """Caller-supplied convergence state for the token."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    status: ConvergenceStatus = ConvergenceStatus.NONE
    strength: int = 0
    s_count: int = Field(0, validation_alias=_alias("s_count", "sCount"))
    a_count: int = Field(0, validation_alias=_alias("a_count", "aCount"))

    @field_validator("status", mode="before")
    @classmethod
    def _clean_status(cls, v: Any) -> ConvergenceStatus:
        if isinstance(v, str) and v.strip().upper() in ConvergenceStatus.__members__:
            return ConvergenceStatus(v.strip().upper())
        return ConvergenceStatus.NONE

    @field_validator("strength", "s_count", "a_count", mode="before")
    @classmethod
    def _clean_counts(cls, v: Any) -> int:
        return _non_negative_int(v) or 0


class TrapReading(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    trap: bool = False
    severity: TrapSeverity = TrapSeverity.LOW

    @field_validator("trap", mode="before")
    @classmethod
    def _clean_trap(cls, v: Any) -> bool:
        return v is True

    @field_validator("severity", mode="before")
    @classmethod
    def _clean_severity(cls, v: Any) -> TrapSeverity:
        if isinstance(v, str) and v.strip().upper() in TrapSeverity.__members__:
            return TrapSeverity(v.strip().upper())
        return TrapSeverity.LOW


class EntryZoneReading(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    zone: EntryZoneKind = EntryZoneKind.NEUTRAL

    @field_validator("zone", mode="before")
    @classmethod
    def _clean_zone(cls, v: Any) -> EntryZoneKind:
        if isinstance(v, str) and v.strip().upper() in EntryZoneKind.__members__:
            return EntryZoneKind(v.strip().upper())
        return EntryZoneKind.NEUTRAL


_NON_NEGATIVE_FIELDS = (
    "liquidity_usd",
    "volume_24h_usd",
    "volume_5m",
    "fdv",
    "liquidity_drop_pct",
    "pair_age_minutes",
    "volume_5m_baseline",
)
_SIGNED_FIELDS = (
    "price_change_5m",
    "price_change_1h",
    "price_change_24h",
    "volume_change_pct",
    "liquidity_change_pct",
)
_COUNT_FIELDS = ("buys_5m", "sells_5m", "tx_5m_prev", "sell_streak_count")
_HISTORY_FIELDS = (
    "liquidity_drop_pct",
    "volume_change_pct",
    "liquidity_change_pct",
    "buy_ratio_prev",
    "tx_5m_prev",
    "volume_5m_baseline",
    "sell_streak_count",
)


class MarketOverlay(BaseModel):
    """Snapshot of market metrics for one trading pair at one point in time."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    # --- Market data (DexScreener-style) ---
    liquidity_usd: float | None = Field(
        None, validation_alias=_alias("liquidity_usd", "liquidityUsd", "dexLiquidityUsd")
    )
    volume_24h_usd: float | None = Field(
        None, validation_alias=_alias("volume_24h_usd", "volume24hUsd", "dexVolume24hUsd")
    )
    volume_5m: float | None = Field(None, validation_alias=_alias("volume_5m", "volume5m"))
    fdv: float | None = None
    price_change_5m: float | None = Field(
        None, validation_alias=_alias("price_change_5m", "priceChange5m")
    )
    price_change_1h: float | None = Field(
        None, validation_alias=_alias("price_change_1h", "priceChange1h")
    )
    price_change_24h: float | None = Field(
        None, validation_alias=_alias("price_change_24h", "priceChange24h")
    )
    buys_5m: int | None = Field(None, validation_alias=_alias("buys_5m", "buys5m"))
    sells_5m: int | None = Field(None, validation_alias=_alias("sells_5m", "sells5m"))
    pair_age_minutes: float | None = Field(
        None, validation_alias=_alias("pair_age_minutes", "pairAgeMinutes")
    )

    # --- Cross-poll state (filled by PoolHistoryCache) ---
    liquidity_drop_pct: float | None = Field(
        None, validation_alias=_alias("liquidity_drop_pct", "liquidityDropPct", "liqDropPct")
    )
    volume_change_pct: float | None = Field(
        None, validation_alias=_alias("volume_change_pct", "volumeChangePct")
    )
    liquidity_change_pct: float | None = Field(
        None, validation_alias=_alias("liquidity_change_pct", "liquidityChangePct")
    )
    buy_ratio_prev: float | None = Field(
        None, validation_alias=_alias("buy_ratio_prev", "buyRatioPrev")
    )
    tx_5m_prev: int | None = Field(None, validation_alias=_alias("tx_5m_prev", "tx5mPrev"))
    volume_5m_baseline: float | None = Field(
        None, validation_alias=_alias("volume_5m_baseline", "volume5mBaseline")
    )
    sell_streak_count: int | None = Field(
        None, validation_alias=_alias("sell_streak_count", "sellStreakCount")
    )

    # --- Upstream readings ---
    score: float | None = None  # alpha score 0-100
    rising: bool | None = None
    breakout: bool | None = None
    social_velocity: float | None = Field(
        None, validation_alias=_alias("social_velocity", "socialVelocity")
    )
    wallet_tier: WalletTier | None = Field(
        None, validation_alias=_alias("wallet_tier", "walletTier")
    )
    rug: RugReading | None = None
    convergence: ConvergenceReading | None = None
    liquidity_trap: TrapReading | None = Field(
        None, validation_alias=_alias("liquidity_trap", "liquidityTrap", "liqTrap")
    )
    entry_zone: EntryZoneReading | None = Field(
        None, validation_alias=_alias("entry_zone", "entryZone")
    )

    @field_validator(*_NON_NEGATIVE_FIELDS, mode="before")
    @classmethod
    def _clean_non_negative(cls, v: Any) -> float | None:
        return _non_negative(v)

    @field_validator(*_SIGNED_FIELDS, mode="before")
    @classmethod
    def _clean_signed(cls, v: Any) -> float | None:
        return to_float(v)

    @field_validator(*_COUNT_FIELDS, mode="before")
    @classmethod
    def _clean_counts(cls, v: Any) -> int | None:
        return _non_negative_int(v)

    @field_validator("score", "social_velocity", mode="before")
    @classmethod
    def _clean_percent_scale(cls, v: Any) -> float | None:
        num = to_float(v)
        return None if num is None else max(0.0, min(100.0, num))

    @field_validator("buy_ratio_prev", mode="before")
    @classmethod
    def _clean_ratio(cls, v: Any) -> float | None:
        num = to_float(v)
        if num is None or not 0.0 <= num <= 1.0:
            return None
        return num

    @field_validator("rising", "breakout", mode="before")
    @classmethod
    def _clean_flags(cls, v: Any) -> bool | None:
        return _strict_bool(v)

    @field_validator("wallet_tier", mode="before")
    @classmethod
    def _clean_wallet_tier(cls, v: Any) -> WalletTier | None:
        if isinstance(v, str) and v.strip().upper() in WalletTier.__members__:
            return WalletTier(v.strip().upper())
        return None

    @field_validator("rug", mode="before")
    @classmethod
    def _clean_rug(cls, v: Any) -> Any:
        # Older callers send the bare risk number instead of {"risk": n}
        if to_float(v) is not None:
            return {"risk": v}
        return v if isinstance(v, (Mapping, RugReading)) else None

    @field_validator("convergence", "liquidity_trap", "entry_zone", mode="before")
    @classmethod
    def _clean_nested(cls, v: Any) -> Any:
        if isinstance(v, (Mapping, BaseModel)):
            return v
        return None

    # --- Derived helpers ---

    @property
    def tx_5m(self) -> int:
        return (self.buys_5m or 0) + (self.sells_5m or 0)

    @property
    def buy_ratio_5m(self) -> float | None:
        """Share of buys among 5m transactions, None without trades."""
        total = self.tx_5m
        if total <= 0:
            return None
        return (self.buys_5m or 0) / total

    def with_history(self, delta: PoolDelta | None) -> MarketOverlay:
        """Fill cross-poll fields from ``delta`` where the caller left them empty."""
        if delta is None:
            return self
        update = {}
        for name in _HISTORY_FIELDS:
            if getattr(self, name) is None and getattr(delta, name, None) is not None:
                update[name] = getattr(delta, name)
        return self.model_copy(update=update) if update else self

    def with_readings(self, **readings: Any) -> MarketOverlay:
        """Fill upstream readings (convergence, rising, ...) not already set."""
        update = {k: v for k, v in readings.items() if v is not None and getattr(self, k) is None}
        return self.model_copy(update=update) if update else self


def from_dexscreener_pair(
    pair: DexScreenerPair | Mapping[str, Any] | None,
    now_ms: float | None = None,
) -> MarketOverlay:
    """Build an overlay from a DexScreener pair payload.

    Only market data is filled; cross-poll fields need the pool history.
    """
    if isinstance(pair, Mapping):
        try:
            pair = DexScreenerPair.model_validate(dict(pair))
        except ValidationError:
            return MarketOverlay()
    if not isinstance(pair, DexScreenerPair):
        return MarketOverlay()

    m5 = pair.txns.m5 if pair.txns else None

    return normalize_overlay({
        "liquidity_usd": pair.liquidity.usd if pair.liquidity else None,
        "volume_24h_usd": pair.volume.h24 if pair.volume else None,
        "volume_5m": pair.volume.m5 if pair.volume else None,
        "fdv": pair.fdv,
        "price_change_5m": pair.priceChange.m5 if pair.priceChange else None,
        "price_change_1h": pair.priceChange.h1 if pair.priceChange else None,
        "price_change_24h": pair.priceChange.h24 if pair.priceChange else None,
        "buys_5m": m5.buys if m5 else None,
        "sells_5m": m5.sells if m5 else None,
        "pair_age_minutes": pair.age_minutes(now_ms),
    })


def normalize_overlay(raw: MarketOverlay | Mapping[str, Any] | None) -> MarketOverlay:
    """Build a MarketOverlay from whatever the caller handed us.

    Never raises: anything that is not a mapping (or fails validation as a
    whole) degrades to an empty overlay, which the core treats cautiously.
    """
    if isinstance(raw, MarketOverlay):
        return raw
    if not isinstance(raw, Mapping):
        return MarketOverlay()
    try:
        return MarketOverlay.model_validate(dict(raw))
    except ValidationError as e:
        logger.debug(f"[OVERLAY] Unusable overlay payload, using empty overlay: {e.error_count()} errors")
        return MarketOverlay()
