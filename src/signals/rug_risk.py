"""Rug-risk estimator: 0-100 heuristic risk score from DEX pair metrics.

Pure function, no IO. Missing numbers count as zero, which lands them in
the cautious branch of every band (unknown liquidity is "very low").

Scoring breakdown (additive, base 18):
- Liquidity band: +2 to +35
- FDV/liquidity ratio: 0 to +22 (+6 when either side unknown)
- Crash windows: 5m <= -18% +32, 1h <= -35% +28, 24h <= -70% +22
- Liquidity drain between polls: +14 to +40
- 5m sell pressure: -6 to +18
- Volume without liquidity: +14
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.signals.overlay import MarketOverlay
from src.signals.types import RugLevel

BASE_RISK = 18
MAX_REASONS = 6

CRASH_5M_PCT = -18.0
CRASH_1H_PCT = -35.0
CRASH_24H_PCT = -70.0
WEAK_BUY_RATIO = 0.38
STRONG_BUY_RATIO = 0.65
MIN_FLOW_TXNS = 12
DRAIN_PCT = 18.0
HARD_FAIL_RISK = 85
HARD_FAIL_MIN_LIQUIDITY = 5_000.0
HARD_FAIL_FDV_RATIO = 500.0


@dataclass
class RugRiskResult:
    """Result of rug-risk estimation for one overlay."""

    risk: int = 0
    level: RugLevel = RugLevel.MIN
    hard_fail: bool = False
    crash: bool = False
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "risk": self.risk,
            "level": self.level.value,
            "hard_fail": self.hard_fail,
            "crash": self.crash,
            "reasons": list(self.reasons),
        }


def risk_level(risk: float) -> RugLevel:
    """Bucket a 0-100 risk into a level (non-decreasing in ``risk``)."""
    if risk >= 80:
        return RugLevel.EXTREME
    if risk >= 65:
        return RugLevel.HIGH
    if risk >= 45:
        return RugLevel.MED
    if risk >= 25:
        return RugLevel.LOW
    return RugLevel.MIN


def _is_hard_fail(risk: int, liquidity: float, fdv: float) -> bool:
    # Any single catastrophic signal fails hard, regardless of the sum
    if risk >= HARD_FAIL_RISK:
        return True
    if liquidity < HARD_FAIL_MIN_LIQUIDITY:
        return True
    return fdv > 0 and liquidity > 0 and fdv / liquidity > HARD_FAIL_FDV_RATIO


def compute_rug_risk(overlay: MarketOverlay) -> RugRiskResult:
    """Estimate rug risk for a market overlay. Never raises."""
    liq = overlay.liquidity_usd or 0.0
    vol24 = overlay.volume_24h_usd or 0.0
    fdv = overlay.fdv or 0.0
    chg5m = overlay.price_change_5m or 0.0
    chg1h = overlay.price_change_1h or 0.0
    chg24h = overlay.price_change_24h or 0.0
    liq_drop = overlay.liquidity_drop_pct or 0.0

    risk = BASE_RISK
    reasons: list[str] = []

    # --- Liquidity band ---
    if liq < 5_000:
        risk += 35
        reasons.append(f"Very low liquidity (${liq:,.0f})")
    elif liq < 10_000:
        risk += 26
        reasons.append(f"Low liquidity (${liq:,.0f})")
    elif liq < 25_000:
        risk += 14
        reasons.append(f"Thin liquidity (${liq:,.0f})")
    else:
        risk += 2
        reasons.append("Liquidity looks ok")

    # --- FDV / liquidity ---
    if fdv > 0 and liq > 0:
        ratio = fdv / liq
        if ratio >= 500:
            risk += 22
            reasons.append(f"FDV/liquidity extreme ({ratio:.0f}x)")
        elif ratio >= 250:
            risk += 14
            reasons.append(f"FDV/liquidity high ({ratio:.0f}x)")
    else:
        risk += 6
        reasons.append("FDV or liquidity unknown")

    # --- Crash windows (independent, additive) ---
    crash_5m = chg5m <= CRASH_5M_PCT
    crash_1h = chg1h <= CRASH_1H_PCT
    if crash_5m:
        risk += 32
        reasons.append(f"Crash 5m ({chg5m:.1f}%)")
    if crash_1h:
        risk += 28
        reasons.append(f"Crash 1h ({chg1h:.1f}%)")
    if chg24h <= CRASH_24H_PCT:
        risk += 22
        reasons.append(f"Crash 24h ({chg24h:.1f}%)")

    # --- Liquidity drain between polls ---
    if liq_drop >= 45:
        risk += 40
        reasons.append(f"Liquidity pulled ({liq_drop:.0f}%)")
    elif liq_drop >= 30:
        risk += 26
        reasons.append(f"Liquidity draining ({liq_drop:.0f}%)")
    elif liq_drop >= DRAIN_PCT:
        risk += 14
        reasons.append(f"Liquidity dropping ({liq_drop:.0f}%)")

    # --- 5m transaction flow ---
    tx5 = overlay.tx_5m
    buy_ratio = overlay.buy_ratio_5m
    if tx5 >= MIN_FLOW_TXNS and buy_ratio is not None:
        if buy_ratio <= WEAK_BUY_RATIO:
            risk += 18
            reasons.append(f"Sell pressure (buys {buy_ratio:.0%} of 5m txns)")
        elif buy_ratio >= STRONG_BUY_RATIO:
            risk -= 6
            reasons.append(f"Buy dominant (buys {buy_ratio:.0%} of 5m txns)")

    # --- Volume without liquidity support ---
    if vol24 >= 300_000 and liq < 25_000:
        risk += 14
        reasons.append("High volume without liquidity support")

    risk = max(0, min(100, risk))

    # Crash needs a price break plus confirmation from flow or liquidity.
    # No 5m trades at all counts as weak flow.
    weak_flow = buy_ratio is None or buy_ratio <= WEAK_BUY_RATIO
    draining = liq_drop >= DRAIN_PCT
    crash = (crash_5m or crash_1h) and (weak_flow or draining)

    return RugRiskResult(
        risk=risk,
        level=risk_level(risk),
        hard_fail=_is_hard_fail(risk, liq, fdv),
        crash=crash,
        reasons=reasons[:MAX_REASONS],
    )


def apply_rug_reading(result: RugRiskResult, overlay: MarketOverlay) -> RugRiskResult:
    """Merge a caller-supplied rug reading into a computed result.

    A supplied ``risk`` replaces the computed score (level and hard-fail are
    re-derived); a supplied ``crash=True`` is OR-ed in.
    """
    reading = overlay.rug
    if reading is None:
        return result
    risk = result.risk if reading.risk is None else int(round(reading.risk))
    return RugRiskResult(
        risk=risk,
        level=risk_level(risk),
        hard_fail=_is_hard_fail(risk, overlay.liquidity_usd or 0.0, overlay.fdv or 0.0),
        crash=result.crash or reading.crash is True,
        reasons=result.reasons,
    )
