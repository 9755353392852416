"""Breakout detection: price/volume ignition on the current pair."""

from __future__ import annotations

from dataclasses import dataclass, field

from src.signals.overlay import MarketOverlay

VOLUME_ACCEL_PCT = 15.0
LIQUIDITY_ACCEL_PCT = 5.0


@dataclass
class BreakoutResult:
    breakout: bool = False
    triggers: list[str] = field(default_factory=list)


def detect_breakout(overlay: MarketOverlay) -> BreakoutResult:
    """Return which breakout conditions fire (any one is enough).

    Period-over-period acceleration needs ``volume_change_pct`` /
    ``liquidity_change_pct`` from the pool history cache; without a fresh
    previous poll those stay None and only the price rules apply.
    """
    chg1h = overlay.price_change_1h or 0.0
    vol = overlay.volume_24h_usd or 0.0
    liq = overlay.liquidity_usd or 0.0

    triggers: list[str] = []
    if chg1h >= 8:
        triggers.append(f"1h move +{chg1h:.1f}%")
    if vol >= 120_000 and chg1h >= 3:
        triggers.append("Volume-backed 1h move")
    if liq >= 50_000 and chg1h >= 2:
        triggers.append("Liquidity-backed 1h move")
    if overlay.volume_change_pct is not None and overlay.volume_change_pct >= VOLUME_ACCEL_PCT:
        triggers.append(f"Volume accelerating (+{overlay.volume_change_pct:.0f}%)")
    if overlay.liquidity_change_pct is not None and overlay.liquidity_change_pct >= LIQUIDITY_ACCEL_PCT:
        triggers.append(f"Liquidity growing (+{overlay.liquidity_change_pct:.0f}%)")

    return BreakoutResult(breakout=bool(triggers), triggers=triggers)
