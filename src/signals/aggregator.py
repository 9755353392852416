"""Confidence aggregator: explainable linear scorer over all signals.

Every adjustment appends one reason, so any confidence value can be traced
back term by term. Pure function, no IO.

Breakdown (baseline 55, clamped to 1-99):
- Rug risk: -16 to +10
- Liquidity trap: -20 to 0
- Alpha score: -12 to +18
- Rising / breakout: -6 to +10 / -6 to +12
- Convergence: -3 to +18
- Liquidity / volume: -12 to +10 / -8 to +10
- Entry zone: -18 to +8
- Social velocity: 0 to +4
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.signals.convergence import ConvergenceState
from src.signals.entry_zone import EntryZone
from src.signals.liquidity_trap import LiquidityTrap
from src.signals.overlay import ConvergenceReading, MarketOverlay
from src.signals.rug_risk import RugRiskResult
from src.signals.types import ConvergenceStatus, EntryZoneKind, TrapSeverity

BASELINE_CONFIDENCE = 55
MIN_CONFIDENCE = 1
MAX_CONFIDENCE = 99

CONVERGENCE_POINTS = {
    ConvergenceStatus.STRONG: 18,
    ConvergenceStatus.MED: 9,
    ConvergenceStatus.WEAK: 3,
    ConvergenceStatus.NONE: -3,
}


@dataclass
class ConfidenceResult:
    confidence: int = BASELINE_CONFIDENCE
    reasons: list[str] = field(default_factory=list)


def clamp_confidence(value: float, ceiling: int = MAX_CONFIDENCE) -> int:
    return int(max(MIN_CONFIDENCE, min(ceiling, MAX_CONFIDENCE, round(value))))


def aggregate(
    overlay: MarketOverlay,
    *,
    score: float,
    rug: RugRiskResult,
    trap: LiquidityTrap,
    entry: EntryZone,
    convergence: ConvergenceState | ConvergenceReading,
    rising: bool,
    breakout: bool,
    social_velocity: float | None = None,
) -> ConfidenceResult:
    confidence = BASELINE_CONFIDENCE
    reasons: list[str] = []

    # --- Rug gradient ---
    if rug.risk <= 35:
        confidence += 10
        reasons.append("Rug risk reasonable")
    elif rug.risk >= 65:
        confidence -= 16
        reasons.append("High rug risk")

    # --- Liquidity trap ---
    if trap.trap:
        confidence -= 20 if trap.severity == TrapSeverity.HIGH else 12
        reasons.append(f"Liquidity trap ({trap.severity})")

    # --- Alpha score ---
    if score >= 85:
        confidence += 18
        reasons.append("Alpha score very high")
    elif score >= 78:
        confidence += 10
        reasons.append("Alpha score high")
    elif score < 60:
        confidence -= 12
        reasons.append("Alpha score low")

    # --- Momentum ---
    if rising:
        confidence += 10
        reasons.append("Social/flow rising")
    else:
        confidence -= 6
        reasons.append("No acceleration")

    if breakout:
        confidence += 12
        reasons.append("Breakout confirmed")
    else:
        confidence -= 6
        reasons.append("No breakout confirmation")

    # --- Convergence ---
    status = convergence.status
    confidence += CONVERGENCE_POINTS[status]
    if status == ConvergenceStatus.STRONG:
        reasons.append(f"Convergence STRONG (S:{convergence.s_count} A:{convergence.a_count})")
    elif status == ConvergenceStatus.NONE:
        reasons.append("No convergence yet")
    else:
        reasons.append(f"Convergence {status}")

    # --- Liquidity / volume ---
    liq = overlay.liquidity_usd or 0.0
    vol = overlay.volume_24h_usd or 0.0
    if liq >= 50_000:
        confidence += 10
        reasons.append("Liquidity healthy")
    elif liq >= 15_000:
        confidence += 4
        reasons.append("Liquidity acceptable")
    else:
        confidence -= 12
        reasons.append("Liquidity low")

    if vol >= 250_000:
        confidence += 10
        reasons.append("Volume strong")
    elif vol >= 120_000:
        confidence += 6
        reasons.append("Volume decent")
    elif 0 < vol < 60_000:
        confidence -= 8
        reasons.append("Volume weak")

    # --- Entry zone ---
    if entry.zone == EntryZoneKind.CHASE:
        confidence -= 18
        reasons.append("Entry = CHASE (overextended)")
    elif entry.zone == EntryZoneKind.EARLY:
        confidence += 8
        reasons.append("Entry = EARLY (better RR)")

    # --- Social velocity ---
    if social_velocity is not None:
        if social_velocity >= 60:
            confidence += 4
            reasons.append("Social velocity HIGH")
        elif social_velocity >= 30:
            confidence += 2
            reasons.append("Social velocity MED")

    return ConfidenceResult(confidence=clamp_confidence(confidence), reasons=reasons)
