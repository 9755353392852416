"""Convergence tracking: several ranked wallets buying the same token.

Keeps a short rolling log of (wallet, tier) hits per token. Reads prune
anything older than the window and classify the distinct S/A wallets:

  STRONG  >= 2 S-tier wallets, or >= 1 S-tier and >= 2 A-tier
  MED     >= 1 S-tier, or >= 2 A-tier
  WEAK    any hit
  NONE    nothing in the window

Tokens are keyed by contract address (see ``token_key``).
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from loguru import logger

from src.signals.overlay import ConvergenceReading
from src.signals.types import ConvergenceStatus, WalletTier

DEFAULT_WINDOW_SEC = 12 * 60

_EVM_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")
_BASE58_ADDRESS = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def token_key(token: str | None) -> str:
    """Canonical map key for a token.

    EVM addresses are case-insensitive hex and get lowercased; base58
    (Solana) addresses are case-sensitive and kept as-is. Anything else is
    treated as a ticker fallback: ``$`` stripped, uppercased.
    """
    text = str(token or "").strip()
    if not text:
        return ""
    if _EVM_ADDRESS.match(text):
        return text.lower()
    if _BASE58_ADDRESS.match(text):
        return text
    return text.lstrip("$").upper()


@dataclass(frozen=True)
class _Hit:
    wallet: str
    tier: WalletTier
    ts: float


@dataclass(frozen=True)
class ConvergenceState:
    token: str
    status: ConvergenceStatus = ConvergenceStatus.NONE
    strength: int = 0
    s_count: int = 0
    a_count: int = 0
    total: int = 0

    def to_reading(self) -> ConvergenceReading:
        return ConvergenceReading(
            status=self.status,
            strength=self.strength,
            s_count=self.s_count,
            a_count=self.a_count,
        )

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "status": self.status.value,
            "strength": self.strength,
            "s_count": self.s_count,
            "a_count": self.a_count,
            "total": self.total,
        }


def classify_convergence(s_count: int, a_count: int, total: int) -> ConvergenceStatus:
    if s_count >= 2 or (s_count >= 1 and a_count >= 2):
        return ConvergenceStatus.STRONG
    if s_count >= 1 or a_count >= 2:
        return ConvergenceStatus.MED
    if total >= 1:
        return ConvergenceStatus.WEAK
    return ConvergenceStatus.NONE


def convergence_strength(s_count: int, a_count: int) -> int:
    return max(0, min(100, s_count * 45 + a_count * 18))


class ConvergenceTracker:
    """Sliding-window store of ranked-wallet hits per token.

    All mutation (append, prune, evict) happens under one lock, so
    concurrent ``note``/``get`` calls from request handlers and watchers
    cannot lose updates between prune and insert.
    """

    TRACKED_TIERS = (WalletTier.S, WalletTier.A)

    def __init__(
        self,
        window_sec: float = DEFAULT_WINDOW_SEC,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._window_sec = window_sec
        self._clock = clock
        self._hits: dict[str, list[_Hit]] = {}
        self._lock = Lock()

    @property
    def window_sec(self) -> float:
        return self._window_sec

    @property
    def tokens(self) -> list[str]:
        """Token keys with at least one live hit."""
        with self._lock:
            now = self._clock()
            for key in list(self._hits):
                self._prune(key, now)
            return list(self._hits)

    def note(
        self,
        token: str | None,
        wallet: str | None,
        tier: WalletTier | str | None,
        ts: float | None = None,
    ) -> bool:
        """Record that ``wallet`` (of ``tier``) hit ``token``.

        Returns False when the hit is ignored (blank token/wallet, or a tier
        other than S/A).
        """
        key = token_key(token)
        wallet = str(wallet or "").strip()
        tier_id = _parse_tier(tier)
        if not key or not wallet or tier_id not in self.TRACKED_TIERS:
            return False

        with self._lock:
            now = self._clock()
            self._hits.setdefault(key, []).append(
                _Hit(wallet=wallet, tier=tier_id, ts=now if ts is None else ts)
            )
            self._prune(key, now)
            state = self._state(key)

        if state.status == ConvergenceStatus.STRONG:
            logger.info(
                f"[CONVERGENCE] {key[:12]} STRONG: S={state.s_count} A={state.a_count} "
                f"strength={state.strength}"
            )
        else:
            logger.debug(f"[CONVERGENCE] {key[:12]} +{tier_id}:{wallet[:8]} -> {state.status}")
        return True

    def get(self, token: str | None) -> ConvergenceState:
        """Current convergence for ``token`` (prunes expired hits first)."""
        key = token_key(token)
        with self._lock:
            self._prune(key, self._clock())
            return self._state(key)

    def list_top(self, limit: int = 30) -> list[ConvergenceState]:
        """Tokens with live hits, strongest first."""
        with self._lock:
            now = self._clock()
            for key in list(self._hits):
                self._prune(key, now)
            states = [self._state(key) for key in self._hits]

        states.sort(key=lambda s: (s.strength, s.total), reverse=True)
        return states[: max(0, limit)]

    def _prune(self, key: str, now: float) -> None:
        hits = self._hits.get(key)
        if hits is None:
            return
        cutoff = now - self._window_sec
        fresh = [h for h in hits if h.ts >= cutoff]
        if fresh:
            self._hits[key] = fresh
        else:
            del self._hits[key]

    def _state(self, key: str) -> ConvergenceState:
        hits = self._hits.get(key, [])
        s_wallets = {h.wallet for h in hits if h.tier == WalletTier.S}
        a_wallets = {h.wallet for h in hits if h.tier == WalletTier.A}
        s_count = len(s_wallets)
        a_count = len(a_wallets)
        total = len(s_wallets | a_wallets)
        return ConvergenceState(
            token=key,
            status=classify_convergence(s_count, a_count, total),
            strength=convergence_strength(s_count, a_count),
            s_count=s_count,
            a_count=a_count,
            total=total,
        )


def _parse_tier(tier: WalletTier | str | None) -> WalletTier | None:
    if isinstance(tier, WalletTier):
        return tier
    if isinstance(tier, str) and tier.strip().upper() in WalletTier.__members__:
        return WalletTier(tier.strip().upper())
    return None
