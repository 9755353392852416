"""Liquidity trap detection: heavy volume on a pool too thin to exit."""

from __future__ import annotations

from dataclasses import dataclass

from src.signals.overlay import MarketOverlay
from src.signals.types import TrapSeverity

NO_LIQUIDITY_RATIO = 9999.0


@dataclass
class LiquidityTrap:
    trap: bool = False
    severity: TrapSeverity = TrapSeverity.LOW
    ratio: float = 0.0  # volume / liquidity, diagnostics only
    reason: str = "No obvious trap"

    def to_dict(self) -> dict:
        return {
            "trap": self.trap,
            "severity": self.severity.value,
            "ratio": self.ratio,
            "reason": self.reason,
        }


def compute_liquidity_trap(overlay: MarketOverlay) -> LiquidityTrap:
    liq = overlay.liquidity_usd or 0.0
    vol = overlay.volume_24h_usd or 0.0

    thin = vol >= 300_000 and liq < 25_000
    very_thin = vol >= 600_000 and liq < 50_000
    trap = thin or very_thin

    if very_thin:
        severity = TrapSeverity.HIGH
    elif thin:
        severity = TrapSeverity.MED
    else:
        severity = TrapSeverity.LOW

    ratio = round(vol / liq, 2) if liq > 0 else NO_LIQUIDITY_RATIO

    return LiquidityTrap(
        trap=trap,
        severity=severity,
        ratio=ratio,
        reason="High volume without liquidity support (possible trap)" if trap else "No obvious trap",
    )
