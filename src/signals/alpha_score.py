"""Alpha score: 0-100 conviction score used when no upstream score is given.

Scoring breakdown:
- Base: 20
- Wallet tier of the triggering cohort: 0-50 pts (S 50, A 35, B 20, C 10)
- Social velocity: 0-30 pts
- Liquidity: -4 to +18 pts
- 24h volume: -2 to +12 pts
- Momentum (1h / 24h): -12 to +14 pts
"""

from __future__ import annotations

from src.signals.convergence import ConvergenceState
from src.signals.overlay import ConvergenceReading, MarketOverlay
from src.signals.types import ConvergenceStatus, WalletTier

BASE_SCORE = 20

WALLET_TIER_POINTS = {
    WalletTier.S: 50,
    WalletTier.A: 35,
    WalletTier.B: 20,
    WalletTier.C: 10,
}

# A converging cohort stands in for the wallet tier when none was reported
CONVERGENCE_WALLET_TIER = {
    ConvergenceStatus.STRONG: WalletTier.S,
    ConvergenceStatus.MED: WalletTier.A,
    ConvergenceStatus.WEAK: WalletTier.B,
}


def effective_wallet_tier(
    overlay: MarketOverlay,
    convergence: ConvergenceState | ConvergenceReading | None = None,
) -> WalletTier | None:
    if overlay.wallet_tier is not None:
        return overlay.wallet_tier
    if convergence is None:
        return None
    return CONVERGENCE_WALLET_TIER.get(convergence.status)


def compute_alpha_score(
    overlay: MarketOverlay,
    convergence: ConvergenceState | ConvergenceReading | None = None,
) -> int:
    score = BASE_SCORE

    tier = effective_wallet_tier(overlay, convergence)
    if tier is not None:
        score += WALLET_TIER_POINTS[tier]

    if overlay.social_velocity:
        score += min(30, int(overlay.social_velocity // 3))

    liq = overlay.liquidity_usd or 0.0
    if liq >= 100_000:
        score += 18
    elif liq >= 50_000:
        score += 14
    elif liq >= 20_000:
        score += 10
    elif liq >= 10_000:
        score += 6
    elif liq >= 5_000:
        score += 3
    else:
        score -= 4

    vol = overlay.volume_24h_usd or 0.0
    if vol >= 500_000:
        score += 12
    elif vol >= 200_000:
        score += 9
    elif vol >= 100_000:
        score += 7
    elif vol >= 25_000:
        score += 4
    else:
        score -= 2

    chg1h = overlay.price_change_1h
    if chg1h is not None:
        if chg1h >= 80:
            score += 8
        elif chg1h >= 30:
            score += 5
        elif chg1h <= -40:
            score -= 6

    chg24h = overlay.price_change_24h
    if chg24h is not None:
        if chg24h >= 200:
            score += 6
        elif chg24h <= -60:
            score -= 6

    return max(0, min(100, score))
