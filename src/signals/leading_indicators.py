"""Leading indicators: flow changes that tend to precede a price move.

Sensitivities come from the tier row, so paid tiers confirm on weaker
acceleration. Without cross-poll history the tx and volume ratios default
to 1.0 and do not fire. The previous buy ratio defaults to 0.5, so a 5m
buy share above 0.5 + ``buy_ratio_accel_min`` fires on a first poll.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.signals.overlay import MarketOverlay
from src.signals.tiers import TierThresholds

NEUTRAL_BUY_RATIO = 0.5
SELL_STREAK_FLOOR = 3
SELL_STREAK_OFFSET = 2


@dataclass
class LeadingIndicators:
    buy_ratio_accel: bool = False
    tx_accel: bool = False
    volume_surge: bool = False
    sell_streak: bool = False

    @property
    def count(self) -> int:
        return sum((self.buy_ratio_accel, self.tx_accel, self.volume_surge, self.sell_streak))

    @property
    def bullish(self) -> bool:
        return self.buy_ratio_accel or self.tx_accel or self.volume_surge

    def to_dict(self) -> dict:
        return {
            "buy_ratio_accel": self.buy_ratio_accel,
            "tx_accel": self.tx_accel,
            "volume_surge": self.volume_surge,
            "sell_streak": self.sell_streak,
            "count": self.count,
        }


def sell_streak_trigger(thresholds: TierThresholds) -> int:
    """Streak length that counts as a warning for this tier."""
    return max(SELL_STREAK_FLOOR, thresholds.sell_streak_max - SELL_STREAK_OFFSET)


def detect_leading_indicators(
    overlay: MarketOverlay,
    thresholds: TierThresholds,
) -> LeadingIndicators:
    buy_ratio = overlay.buy_ratio_5m
    if buy_ratio is None:
        buy_ratio = NEUTRAL_BUY_RATIO
    prev_ratio = overlay.buy_ratio_prev if overlay.buy_ratio_prev is not None else NEUTRAL_BUY_RATIO

    tx5 = overlay.tx_5m
    tx_prev = overlay.tx_5m_prev or 0
    tx_ratio = tx5 / tx_prev if tx_prev > 0 else 1.0

    vol5 = overlay.volume_5m or 0.0
    baseline = overlay.volume_5m_baseline if overlay.volume_5m_baseline is not None else vol5
    surge_ratio = vol5 / baseline if baseline > 0 else 1.0

    return LeadingIndicators(
        buy_ratio_accel=buy_ratio - prev_ratio > thresholds.buy_ratio_accel_min,
        tx_accel=tx_ratio >= thresholds.tx_accel_threshold,
        volume_surge=surge_ratio >= thresholds.volume_surge_multiplier,
        sell_streak=(overlay.sell_streak_count or 0) >= sell_streak_trigger(thresholds),
    )
