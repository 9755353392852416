"""Subscription tier threshold tables for the decision state machine.

The state machine itself is tier-agnostic: every tier-dependent number
(score bars, rug tolerance, confirmation counts, leading-indicator
sensitivity) lives in a frozen ``TierThresholds`` row looked up by ``TierId``.
Higher tiers get lower score bars, more rug tolerance and the early
entry / early rug paths.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from enum import StrEnum

from loguru import logger


class TierId(StrEnum):
    BASIC = "BASIC"
    PRO = "PRO"
    PROPLUS = "PROPLUS"


@dataclass(frozen=True)
class TierThresholds:
    """Decision thresholds for one subscription tier."""

    score_enter: float
    score_ready: float
    score_arm: float
    rug_max_enter: float
    rug_max_ready: float
    rug_max_arm: float
    rug_warning_threshold: float
    min_confirmations: int
    volume_surge_multiplier: float
    tx_accel_threshold: float
    buy_ratio_accel_min: float
    sell_streak_max: int
    early_signals: bool = False  # early entry + early rug paths
    enter_min_liquidity_usd: float = 50_000
    enter_min_volume_usd: float = 120_000
    early_min_liquidity_usd: float = 30_000
    early_min_volume_usd: float = 80_000


DEFAULT_TIER_THRESHOLDS: dict[TierId, TierThresholds] = {
    TierId.BASIC: TierThresholds(
        score_enter=78,
        score_ready=70,
        score_arm=62,
        rug_max_enter=60,
        rug_max_ready=65,
        rug_max_arm=70,
        rug_warning_threshold=82,
        min_confirmations=3,
        volume_surge_multiplier=3.0,
        tx_accel_threshold=1.8,
        buy_ratio_accel_min=0.15,
        sell_streak_max=4,
    ),
    TierId.PRO: TierThresholds(
        score_enter=72,
        score_ready=65,
        score_arm=58,
        rug_max_enter=65,
        rug_max_ready=70,
        rug_max_arm=75,
        rug_warning_threshold=85,
        min_confirmations=2,
        volume_surge_multiplier=2.5,
        tx_accel_threshold=1.5,
        buy_ratio_accel_min=0.12,
        sell_streak_max=5,
        early_signals=True,
    ),
    TierId.PROPLUS: TierThresholds(
        score_enter=68,
        score_ready=62,
        score_arm=55,
        rug_max_enter=68,
        rug_max_ready=72,
        rug_max_arm=78,
        rug_warning_threshold=88,
        min_confirmations=2,
        volume_surge_multiplier=2.0,
        tx_accel_threshold=1.4,
        buy_ratio_accel_min=0.10,
        sell_streak_max=6,
        early_signals=True,
    ),
}

_TIER_ALIASES = {
    "BASIC": TierId.BASIC,
    "FREE": TierId.BASIC,
    "PRO": TierId.PRO,
    "PROPLUS": TierId.PROPLUS,
    "PRO+": TierId.PROPLUS,
    "PRO_PLUS": TierId.PROPLUS,
    "PRO-PLUS": TierId.PROPLUS,
}


def resolve_tier(value: object) -> TierId:
    """Map a tier name (any case, ``PRO+`` accepted) to a TierId.

    Unknown or missing values fall back to BASIC.
    """
    if isinstance(value, TierId):
        return value
    if not isinstance(value, str):
        return TierId.BASIC
    return _TIER_ALIASES.get(value.strip().upper(), TierId.BASIC)


def build_tier_table(
    overrides: Mapping[str, Mapping[str, object]] | None = None,
) -> dict[TierId, TierThresholds]:
    """Return the threshold table with config overrides applied.

    Override keys are tier names; values map TierThresholds field names to
    new values. Unknown tiers or fields are skipped with a warning.
    """
    table = dict(DEFAULT_TIER_THRESHOLDS)
    if not overrides:
        return table

    known = {f.name for f in fields(TierThresholds)}
    for tier_name, values in overrides.items():
        tier = _TIER_ALIASES.get(str(tier_name).strip().upper())
        if tier is None:
            logger.warning(f"[TIERS] Ignoring overrides for unknown tier {tier_name!r}")
            continue
        changes = {}
        for key, val in (values or {}).items():
            if key not in known:
                logger.warning(f"[TIERS] Ignoring unknown threshold {tier}.{key}")
                continue
            changes[key] = val
        if changes:
            table[tier] = replace(table[tier], **changes)
            logger.info(f"[TIERS] {tier} overrides applied: {sorted(changes)}")
    return table


def get_thresholds(
    tier: object,
    table: Mapping[TierId, TierThresholds] | None = None,
) -> TierThresholds:
    """Threshold row for ``tier``; BASIC when the tier is unknown."""
    table = table or DEFAULT_TIER_THRESHOLDS
    resolved = resolve_tier(tier)
    return table.get(resolved) or table.get(TierId.BASIC) or DEFAULT_TIER_THRESHOLDS[TierId.BASIC]
