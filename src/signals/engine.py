"""Signal evaluation: overlay in, decision out.

``evaluate`` / ``evaluate_detailed`` are pure and total: no IO, no shared
state, safe to call concurrently from any request handler.

``SignalEngine`` wraps the pure evaluator with the stores that need memory
across polls (convergence hits, pool history, social velocity, wallet
ranks). Stores are explicit objects handed in at construction so tests
can inject a fake clock.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from threading import Lock
from typing import Any

from loguru import logger

from src.signals.aggregator import aggregate
from src.signals.alpha_score import compute_alpha_score
from src.signals.breakout import BreakoutResult, detect_breakout
from src.signals.convergence import ConvergenceState, ConvergenceTracker, token_key
from src.signals.decision import Decision, decide
from src.signals.entry_zone import EntryZone, compute_entry_zone
from src.signals.leading_indicators import LeadingIndicators, detect_leading_indicators
from src.signals.liquidity_trap import LiquidityTrap, compute_liquidity_trap
from src.signals.overlay import ConvergenceReading, MarketOverlay, normalize_overlay
from src.signals.pool_history import PoolHistoryCache
from src.signals.rug_risk import RugRiskResult, apply_rug_reading, compute_rug_risk
from src.signals.tiers import (
    TierId,
    TierThresholds,
    build_tier_table,
    get_thresholds,
    resolve_tier,
)
from src.signals.types import DecisionAction, TrapSeverity, WalletTier
from src.signals.velocity import VelocityBook
from src.signals.wallet_rank import WalletRanker, WalletRecord

OverlayInput = MarketOverlay | Mapping[str, Any] | None


@dataclass
class Evaluation:
    """Decision plus every intermediate reading, for display and audit."""

    tier: TierId
    decision: Decision
    score: float
    rug: RugRiskResult
    trap: LiquidityTrap
    entry: EntryZone
    breakout: BreakoutResult
    rising: bool
    convergence: ConvergenceReading
    indicators: LeadingIndicators

    def to_dict(self) -> dict:
        return {
            "tier": self.tier.value,
            **self.decision.to_dict(),
            "score": self.score,
            "rug": self.rug.to_dict(),
            "liquidity_trap": self.trap.to_dict(),
            "entry_zone": self.entry.to_dict(),
            "breakout": self.breakout.breakout,
            "breakout_triggers": list(self.breakout.triggers),
            "rising": self.rising,
            "convergence": self.convergence.model_dump(mode="json"),
            "indicators": self.indicators.to_dict(),
        }


def _resolve_trap(overlay: MarketOverlay) -> LiquidityTrap:
    reading = overlay.liquidity_trap
    if reading is None:
        return compute_liquidity_trap(overlay)
    computed = compute_liquidity_trap(overlay)
    return LiquidityTrap(
        trap=reading.trap,
        severity=reading.severity if reading.trap else TrapSeverity.LOW,
        ratio=computed.ratio,
        reason=computed.reason if computed.trap == reading.trap else "Reported by caller",
    )


def _resolve_entry(overlay: MarketOverlay) -> EntryZone:
    if overlay.entry_zone is not None:
        return EntryZone.of(overlay.entry_zone.zone)
    return compute_entry_zone(overlay)


def evaluate_detailed(
    overlay: OverlayInput,
    tier: object = None,
    *,
    tiers: Mapping[TierId, TierThresholds] | None = None,
) -> Evaluation:
    """Run every estimator, the aggregator and the state machine."""
    overlay = normalize_overlay(overlay)
    tier_id = resolve_tier(tier)
    thresholds = get_thresholds(tier_id, tiers)

    convergence = overlay.convergence or ConvergenceReading()
    rug = apply_rug_reading(compute_rug_risk(overlay), overlay)
    trap = _resolve_trap(overlay)
    entry = _resolve_entry(overlay)

    breakout_result = detect_breakout(overlay)
    if overlay.breakout is not None:
        breakout_result = BreakoutResult(
            breakout=overlay.breakout,
            triggers=breakout_result.triggers if overlay.breakout else [],
        )
    rising = overlay.rising is True

    score = overlay.score if overlay.score is not None else compute_alpha_score(overlay, convergence)
    indicators = detect_leading_indicators(overlay, thresholds)

    confidence = aggregate(
        overlay,
        score=score,
        rug=rug,
        trap=trap,
        entry=entry,
        convergence=convergence,
        rising=rising,
        breakout=breakout_result.breakout,
        social_velocity=overlay.social_velocity,
    )
    decision = decide(
        overlay,
        tier=tier_id,
        thresholds=thresholds,
        score=score,
        rug=rug,
        trap=trap,
        entry=entry,
        convergence=convergence,
        rising=rising,
        breakout=breakout_result.breakout,
        indicators=indicators,
        confidence=confidence,
    )
    return Evaluation(
        tier=tier_id,
        decision=decision,
        score=score,
        rug=rug,
        trap=trap,
        entry=entry,
        breakout=breakout_result,
        rising=rising,
        convergence=convergence,
        indicators=indicators,
    )


def evaluate(
    overlay: OverlayInput,
    tier: object = None,
    *,
    tiers: Mapping[TierId, TierThresholds] | None = None,
) -> Decision:
    """Map a market overlay to exactly one Decision for the given tier."""
    return evaluate_detailed(overlay, tier, tiers=tiers).decision


class SignalEngine:
    """Evaluator bound to the cross-poll stores."""

    def __init__(
        self,
        *,
        convergence: ConvergenceTracker | None = None,
        pool_history: PoolHistoryCache | None = None,
        velocity: VelocityBook | None = None,
        wallets: WalletRanker | None = None,
        tiers: Mapping[TierId, TierThresholds] | None = None,
        default_tier: object = TierId.BASIC,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.convergence = convergence or ConvergenceTracker(clock=clock)
        self.pool_history = pool_history or PoolHistoryCache(clock=clock)
        self.velocity = velocity or VelocityBook(clock=clock)
        self.wallets = wallets or WalletRanker(clock=clock)
        self.tiers = dict(tiers) if tiers else None
        self.default_tier = resolve_tier(default_tier)

        self._evaluations = 0
        self._rug_warnings = 0
        self._counter_lock = Lock()

    @classmethod
    def from_settings(cls, settings: Any, clock: Callable[[], float] = time.time) -> SignalEngine:
        """Build an engine with store sizes and tier overrides from config."""
        return cls(
            convergence=ConvergenceTracker(window_sec=settings.convergence_window_sec, clock=clock),
            pool_history=PoolHistoryCache(
                max_age_sec=settings.pool_history_max_age_sec,
                max_samples=settings.pool_history_max_samples,
                max_pools=settings.pool_history_max_pools,
                clock=clock,
            ),
            velocity=VelocityBook(
                window_size=settings.velocity_window_size,
                min_delta=settings.velocity_min_delta,
                min_now=settings.velocity_min_now,
                max_age_sec=settings.velocity_max_age_sec,
                max_tokens=settings.velocity_max_tokens,
                clock=clock,
            ),
            wallets=WalletRanker(clock=clock),
            tiers=build_tier_table(settings.tier_overrides),
            default_tier=settings.default_tier,
            clock=clock,
        )

    @property
    def stats(self) -> dict:
        return {
            "evaluations": self._evaluations,
            "rug_warnings": self._rug_warnings,
            "convergence_tokens": len(self.convergence.tokens),
            "tracked_pools": len(self.pool_history),
            "ranked_wallets": len(self.wallets),
        }

    def note_wallet_hit(self, token: str, wallet: str, tier: WalletTier | str) -> ConvergenceState:
        """Record a ranked-wallet buy and return the token's new state."""
        self.convergence.note(token, wallet, tier)
        return self.convergence.get(token)

    def note_wallet_activity(self, token: str, wallet: str) -> tuple[WalletRecord, ConvergenceState]:
        """Rank ``wallet`` from its activity, then feed S/A hits to convergence."""
        record = self.wallets.note_activity(wallet, token_key(token))
        self.convergence.note(token, wallet, record.tier)
        return record, self.convergence.get(token)

    def push_social_velocity(self, token: str, value: object) -> float:
        return self.velocity.push(token_key(token), value)

    def evaluate_detailed(
        self,
        overlay: OverlayInput,
        tier: object = None,
        *,
        token: str | None = None,
        pool_id: str | None = None,
    ) -> Evaluation:
        """Enrich ``overlay`` from the stores, then evaluate.

        ``pool_id`` records this poll in the pool history (drop/acceleration
        come from the previous fresh poll). ``token`` pulls convergence and
        social velocity unless the caller already supplied them.
        """
        overlay = normalize_overlay(overlay)
        tier_id = resolve_tier(tier) if tier is not None else self.default_tier

        if pool_id:
            overlay = overlay.with_history(self.pool_history.observe(pool_id, overlay))
        if token:
            key = token_key(token)
            overlay = overlay.with_readings(
                convergence=self.convergence.get(key).to_reading(),
                rising=self.velocity.is_rising(key),
                social_velocity=self.velocity.current(key),
            )

        result = evaluate_detailed(overlay, tier_id, tiers=self.tiers)
        decision = result.decision
        with self._counter_lock:
            self._evaluations += 1
            if decision.action == DecisionAction.RUG_WARNING:
                self._rug_warnings += 1

        label = token_key(token)[:12] if token else (pool_id or "-")[:24]
        if decision.action == DecisionAction.RUG_WARNING:
            logger.warning(
                f"[DECISION] {label} RUG_WARNING conf={decision.confidence} "
                f"risk={result.rug.risk} tier={tier_id}: {'; '.join(decision.reasons[1:4])}"
            )
        else:
            logger.debug(
                f"[DECISION] {label} {decision.action} conf={decision.confidence} "
                f"score={result.score:g} risk={result.rug.risk} tier={tier_id}"
            )
        return result

    def evaluate(
        self,
        overlay: OverlayInput,
        tier: object = None,
        *,
        token: str | None = None,
        pool_id: str | None = None,
    ) -> Decision:
        return self.evaluate_detailed(overlay, tier, token=token, pool_id=pool_id).decision
