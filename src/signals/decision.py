"""Decision state machine: WAIT → ARM → READY → ENTER, plus RUG_WARNING.

Rules are evaluated in priority order; the first match wins:

1. RUG_WARNING (hard override): crash window, liquidity pulled, risk over
   the tier's warning threshold, or (tiers with early signals) a confirmed
   sell streak with fast negative momentum.
2. ENTER: score/rug bars, rising, no trap, not chasing, plus either the
   standard confirmation (breakout or size, and a converging cohort) or the
   early path on leading indicators.
3. READY: score/rug bars and rising or breakout.
4. ARM: score/rug bars.
5. WAIT.

Confidence is then capped per state so the number shown to the user never
implies a stronger action than the one chosen.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.signals.aggregator import ConfidenceResult, clamp_confidence
from src.signals.convergence import ConvergenceState
from src.signals.entry_zone import EntryZone
from src.signals.leading_indicators import LeadingIndicators
from src.signals.liquidity_trap import LiquidityTrap
from src.signals.overlay import ConvergenceReading, MarketOverlay
from src.signals.rug_risk import CRASH_1H_PCT, CRASH_5M_PCT, DRAIN_PCT, RugRiskResult
from src.signals.tiers import TierId, TierThresholds
from src.signals.types import ConvergenceStatus, DecisionAction, EntryZoneKind

MAX_REASONS = 7

STATE_CEILINGS = {
    DecisionAction.ENTER: 85,
    DecisionAction.READY: 75,
    DecisionAction.ARM: 65,
    DecisionAction.WAIT: 50,
}

LIQUIDITY_PULL_PCT = 35.0
EARLY_RUG_5M_PCT = -10.0
EARLY_RUG_DROP_PCT = 25.0

RUG_CONFIDENCE_CRASH = 98
RUG_CONFIDENCE_RISK = 92
RUG_CONFIDENCE_EARLY = 85

_CONFIRMING_CONVERGENCE = (ConvergenceStatus.STRONG, ConvergenceStatus.MED)


@dataclass
class Decision:
    action: DecisionAction = DecisionAction.WAIT
    confidence: int = STATE_CEILINGS[DecisionAction.WAIT]
    reasons: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "confidence": self.confidence,
            "reasons": list(self.reasons),
            "tags": list(self.tags),
        }


def _rug_warning(
    overlay: MarketOverlay,
    tier: TierId,
    thresholds: TierThresholds,
    rug: RugRiskResult,
    indicators: LeadingIndicators,
) -> Decision | None:
    chg5m = overlay.price_change_5m or 0.0
    chg1h = overlay.price_change_1h or 0.0
    liq_drop = overlay.liquidity_drop_pct or 0.0

    crash_now = (
        rug.crash
        or chg5m <= CRASH_5M_PCT
        or chg1h <= CRASH_1H_PCT
        or liq_drop >= LIQUIDITY_PULL_PCT
    )
    over_threshold = rug.risk >= thresholds.rug_warning_threshold
    early_rug = (
        thresholds.early_signals
        and indicators.sell_streak
        and (chg5m <= EARLY_RUG_5M_PCT or liq_drop >= EARLY_RUG_DROP_PCT)
        and indicators.count >= thresholds.min_confirmations
    )
    if not (crash_now or over_threshold or early_rug):
        return None

    why = ["Rug/crash conditions detected"]
    if chg5m <= CRASH_5M_PCT:
        why.append(f"Crash 5m ({chg5m:.1f}%)")
    if chg1h <= CRASH_1H_PCT:
        why.append(f"Crash 1h ({chg1h:.1f}%)")
    if liq_drop >= DRAIN_PCT:
        why.append(f"Liquidity drop ({liq_drop:.0f}%)")
    if indicators.sell_streak:
        why.append(f"Sell streak ({overlay.sell_streak_count or 0} polls)")
    why.append(f"Rug risk {rug.risk}/100")

    if crash_now:
        confidence, trigger = RUG_CONFIDENCE_CRASH, "CRASH"
    elif over_threshold:
        confidence, trigger = RUG_CONFIDENCE_RISK, "RISK"
    else:
        confidence, trigger = RUG_CONFIDENCE_EARLY, "EARLY"

    return Decision(
        action=DecisionAction.RUG_WARNING,
        confidence=confidence,
        reasons=why[:MAX_REASONS],
        tags=[
            "RUG:WARNING",
            f"TRIGGER:{trigger}",
            f"RUG:{rug.risk}",
            f"CHG5M:{chg5m:g}",
            f"LIQDROP:{liq_drop:g}",
            f"INDICATORS:{indicators.count}",
            f"TIER:{tier}",
        ],
    )


def decide(
    overlay: MarketOverlay,
    *,
    tier: TierId,
    thresholds: TierThresholds,
    score: float,
    rug: RugRiskResult,
    trap: LiquidityTrap,
    entry: EntryZone,
    convergence: ConvergenceState | ConvergenceReading,
    rising: bool,
    breakout: bool,
    indicators: LeadingIndicators,
    confidence: ConfidenceResult,
) -> Decision:
    """Pick exactly one action for the given signals. Total: never raises."""
    warning = _rug_warning(overlay, tier, thresholds, rug, indicators)
    if warning is not None:
        return warning

    liq = overlay.liquidity_usd or 0.0
    vol = overlay.volume_24h_usd or 0.0
    risk = rug.risk
    reasons = list(confidence.reasons)

    base_enter = (
        score >= thresholds.score_enter
        and risk <= thresholds.rug_max_enter
        and rising
        and not trap.trap
        and entry.zone != EntryZoneKind.CHASE
    )
    standard_enter = (
        base_enter
        and (
            breakout
            or (liq >= thresholds.enter_min_liquidity_usd and vol >= thresholds.enter_min_volume_usd)
        )
        and convergence.status in _CONFIRMING_CONVERGENCE
    )
    early_enter = (
        thresholds.early_signals
        and base_enter
        and indicators.count >= thresholds.min_confirmations
        and indicators.bullish
        and (liq >= thresholds.early_min_liquidity_usd or vol >= thresholds.early_min_volume_usd)
    )

    if standard_enter or early_enter:
        action = DecisionAction.ENTER
        if early_enter and not standard_enter:
            reasons.insert(0, f"Early entry ({indicators.count} indicators)")
    elif (
        score >= thresholds.score_ready
        and risk <= thresholds.rug_max_ready
        and (rising or breakout)
    ):
        action = DecisionAction.READY
    elif score >= thresholds.score_arm and risk <= thresholds.rug_max_arm:
        action = DecisionAction.ARM
    else:
        action = DecisionAction.WAIT

    return Decision(
        action=action,
        confidence=clamp_confidence(confidence.confidence, ceiling=STATE_CEILINGS[action]),
        reasons=reasons[:MAX_REASONS],
        tags=[
            f"SCORE:{score:g}",
            f"RUG:{risk}",
            "ACCEL:ON" if rising else "ACCEL:OFF",
            "BREAKOUT:ON" if breakout else "BREAKOUT:OFF",
            f"CHG5M:{overlay.price_change_5m or 0:g}",
            f"LIQDROP:{overlay.liquidity_drop_pct or 0:g}",
            f"CONV:{convergence.status}",
            f"TRAP:{trap.severity}" if trap.trap else "TRAP:OFF",
            f"ENTRY:{entry.zone}",
            f"TIER:{tier}",
            f"INDICATORS:{indicators.count}",
        ],
    )
