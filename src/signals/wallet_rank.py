"""In-memory wallet ranking: tiers tracked wallets by observed outcomes.

Every wallet starts at score 60 (tier A). Activity nudges the score up,
wins and losses move it by 10. Tiers: S >= 80, A >= 60, B >= 40, else C.
State lives only in memory.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, replace
from threading import Lock

from loguru import logger

from src.signals.types import WalletTier

START_SCORE = 60
ACTIVITY_BONUS = 2
OUTCOME_DELTA = 10


def tier_for_score(score: int) -> WalletTier:
    if score >= 80:
        return WalletTier.S
    if score >= 60:
        return WalletTier.A
    if score >= 40:
        return WalletTier.B
    return WalletTier.C


@dataclass
class WalletRecord:
    address: str
    tier: WalletTier = WalletTier.A
    score: int = START_SCORE
    wins: int = 0
    losses: int = 0
    last_seen: float = 0.0
    last_token: str | None = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["tier"] = self.tier.value
        return d


class WalletRanker:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._wallets: dict[str, WalletRecord] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._wallets)

    def _ensure(self, address: str) -> WalletRecord:
        rec = self._wallets.get(address)
        if rec is None:
            rec = WalletRecord(address=address)
            self._wallets[address] = rec
        return rec

    def _adjust(self, rec: WalletRecord, delta: int) -> None:
        old_tier = rec.tier
        rec.score = max(0, min(100, rec.score + delta))
        rec.tier = tier_for_score(rec.score)
        if rec.tier != old_tier:
            logger.info(f"[WALLETS] {rec.address[:12]} tier {old_tier} -> {rec.tier} (score={rec.score})")

    def note_activity(self, address: str, token: str | None = None) -> WalletRecord:
        with self._lock:
            rec = self._ensure(address)
            rec.last_seen = self._clock()
            rec.last_token = token or rec.last_token
            self._adjust(rec, ACTIVITY_BONUS)
            return replace(rec)

    def note_win(self, address: str) -> WalletRecord:
        with self._lock:
            rec = self._ensure(address)
            rec.wins += 1
            self._adjust(rec, OUTCOME_DELTA)
            return replace(rec)

    def note_loss(self, address: str) -> WalletRecord:
        with self._lock:
            rec = self._ensure(address)
            rec.losses += 1
            self._adjust(rec, -OUTCOME_DELTA)
            return replace(rec)

    def get_tier(self, address: str) -> WalletTier:
        """Tier of a known wallet; unknown wallets read as the starting tier."""
        with self._lock:
            rec = self._wallets.get(address)
            return rec.tier if rec else tier_for_score(START_SCORE)

    def top_wallets(self, limit: int = 20) -> list[WalletRecord]:
        """Snapshots of the best wallets; later updates do not show through."""
        with self._lock:
            records = [replace(r) for r in self._wallets.values()]
        records.sort(key=lambda r: (-r.score, -r.wins, r.losses))
        return records[: max(0, limit)]
