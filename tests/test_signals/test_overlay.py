"""Tests for overlay normalization at the input boundary."""

from decimal import Decimal

from src.parsers.dexscreener.models import DexScreenerPair
from src.signals.overlay import (
    MarketOverlay,
    from_dexscreener_pair,
    normalize_overlay,
    to_float,
)
from src.signals.pool_history import PoolDelta
from src.signals.types import ConvergenceStatus, EntryZoneKind, TrapSeverity, WalletTier


class TestToFloat:
    def test_numbers_and_strings(self) -> None:
        assert to_float(5) == 5.0
        assert to_float(Decimal("1.5")) == 1.5
        assert to_float(" 12.5% ") == 12.5
        assert to_float("1,200") == 1200.0

    def test_garbage_is_none(self) -> None:
        assert to_float("abc") is None
        assert to_float("") is None
        assert to_float(None) is None
        assert to_float(True) is None
        assert to_float([1]) is None

    def test_non_finite_is_none(self) -> None:
        assert to_float(float("nan")) is None
        assert to_float(float("inf")) is None
        assert to_float("-inf") is None

    def test_huge_int_is_none(self) -> None:
        assert to_float(10**400) is None
        assert to_float(-(10**400)) is None
        assert to_float("1" * 400) is None


class TestNormalizeOverlay:
    def test_none_and_non_mapping_give_empty_overlay(self) -> None:
        assert normalize_overlay(None) == MarketOverlay()
        assert normalize_overlay("liquidity=5") == MarketOverlay()
        assert normalize_overlay([1, 2, 3]) == MarketOverlay()

    def test_existing_overlay_passes_through(self) -> None:
        overlay = MarketOverlay(liquidity_usd=10_000)
        assert normalize_overlay(overlay) is overlay

    def test_camel_case_aliases(self) -> None:
        overlay = normalize_overlay({
            "liquidityUsd": 60000,
            "volume24hUsd": "220000",
            "priceChange1h": 9,
            "priceChange5m": "1.5",
            "liqDropPct": 12,
        })
        assert overlay.liquidity_usd == 60000
        assert overlay.volume_24h_usd == 220000
        assert overlay.price_change_1h == 9
        assert overlay.price_change_5m == 1.5
        assert overlay.liquidity_drop_pct == 12

    def test_dex_prefixed_aliases(self) -> None:
        overlay = normalize_overlay({"dexLiquidityUsd": 1000, "dexVolume24hUsd": 2000})
        assert overlay.liquidity_usd == 1000
        assert overlay.volume_24h_usd == 2000

    def test_negative_magnitudes_become_none(self) -> None:
        overlay = normalize_overlay({"liquidity_usd": -5, "fdv": -1, "buys_5m": -3})
        assert overlay.liquidity_usd is None
        assert overlay.fdv is None
        assert overlay.buys_5m is None

    def test_signed_changes_keep_sign(self) -> None:
        overlay = normalize_overlay({"price_change_5m": -25})
        assert overlay.price_change_5m == -25

    def test_nan_and_unparsable_become_none(self) -> None:
        overlay = normalize_overlay({
            "liquidity_usd": float("nan"),
            "volume_24h_usd": "lots",
            "price_change_1h": {"h1": 3},
        })
        assert overlay.liquidity_usd is None
        assert overlay.volume_24h_usd is None
        assert overlay.price_change_1h is None

    def test_non_bool_flags_become_none(self) -> None:
        overlay = normalize_overlay({"rising": "true", "breakout": 1})
        assert overlay.rising is None
        assert overlay.breakout is None

    def test_bare_rug_number(self) -> None:
        overlay = normalize_overlay({"rug": 70})
        assert overlay.rug is not None
        assert overlay.rug.risk == 70
        assert overlay.rug.crash is None

    def test_rug_risk_clamped(self) -> None:
        assert normalize_overlay({"rug": {"risk": 140}}).rug.risk == 100
        assert normalize_overlay({"rug": {"risk": -5}}).rug.risk == 0

    def test_rug_garbage_dropped(self) -> None:
        assert normalize_overlay({"rug": "high"}).rug is None

    def test_nested_readings(self) -> None:
        overlay = normalize_overlay({
            "convergence": {"status": "strong", "sCount": 2, "aCount": "1"},
            "liqTrap": {"trap": True, "severity": "high"},
            "entryZone": {"zone": "chase"},
            "walletTier": "s",
        })
        assert overlay.convergence.status == ConvergenceStatus.STRONG
        assert overlay.convergence.s_count == 2
        assert overlay.convergence.a_count == 1
        assert overlay.liquidity_trap.trap is True
        assert overlay.liquidity_trap.severity == TrapSeverity.HIGH
        assert overlay.entry_zone.zone == EntryZoneKind.CHASE
        assert overlay.wallet_tier == WalletTier.S

    def test_unknown_enum_values_fall_back(self) -> None:
        overlay = normalize_overlay({
            "convergence": {"status": "MEGA"},
            "entry_zone": {"zone": "LATE"},
            "wallet_tier": "Z",
        })
        assert overlay.convergence.status == ConvergenceStatus.NONE
        assert overlay.entry_zone.zone == EntryZoneKind.NEUTRAL
        assert overlay.wallet_tier is None

    def test_buy_ratio_helpers(self) -> None:
        overlay = normalize_overlay({"buys_5m": 30, "sells_5m": 10})
        assert overlay.tx_5m == 40
        assert overlay.buy_ratio_5m == 0.75
        assert normalize_overlay({}).buy_ratio_5m is None

    def test_score_clamped(self) -> None:
        assert normalize_overlay({"score": 250}).score == 100
        assert normalize_overlay({"score": "x"}).score is None


class TestWithHistory:
    def test_fills_only_missing_fields(self) -> None:
        overlay = normalize_overlay({"liquidity_drop_pct": 5})
        delta = PoolDelta(liquidity_drop_pct=40.0, volume_change_pct=20.0, sell_streak_count=2)
        merged = overlay.with_history(delta)
        assert merged.liquidity_drop_pct == 5
        assert merged.volume_change_pct == 20.0
        assert merged.sell_streak_count == 2

    def test_none_delta(self) -> None:
        overlay = MarketOverlay()
        assert overlay.with_history(None) is overlay


class TestFromDexScreenerPair:
    def test_maps_market_fields(self) -> None:
        pair = DexScreenerPair.model_validate({
            "chainId": "solana",
            "pairAddress": "PairAddr",
            "liquidity": {"usd": 60000},
            "volume": {"h24": 220000, "m5": 4000},
            "priceChange": {"m5": 1.2, "h1": 9, "h24": 30},
            "txns": {"m5": {"buys": 20, "sells": 8}},
            "fdv": 900000,
            "pairCreatedAt": 1_700_000_000_000,
        })
        overlay = from_dexscreener_pair(pair, now_ms=1_700_000_000_000 + 90 * 60_000)
        assert overlay.liquidity_usd == 60000
        assert overlay.volume_24h_usd == 220000
        assert overlay.volume_5m == 4000
        assert overlay.price_change_1h == 9
        assert overlay.buys_5m == 20
        assert overlay.sells_5m == 8
        assert overlay.fdv == 900000
        assert overlay.pair_age_minutes == 90

    def test_accepts_raw_mapping(self) -> None:
        overlay = from_dexscreener_pair({"liquidity": {"usd": "1500"}})
        assert overlay.liquidity_usd == 1500

    def test_empty_payload(self) -> None:
        assert from_dexscreener_pair(None) == MarketOverlay()
        assert from_dexscreener_pair({"liquidity": "oops"}) == MarketOverlay()
