"""Pool history cache: last few polls per pool for cross-poll signals.

Liquidity drop, volume/liquidity acceleration, the previous buy ratio and
the sell streak all need "what did this pool look like last time". The
cache keeps a short bounded deque per pool; readings older than
``max_age_sec`` are treated as absent so a stale poll can never fake a
drop or an acceleration.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from loguru import logger

from src.signals.overlay import MarketOverlay

DEFAULT_MAX_AGE_SEC = 12 * 60
DEFAULT_MAX_SAMPLES = 12
DEFAULT_MAX_POOLS = 50_000
DROP_LOG_PCT = 18.0


@dataclass(frozen=True)
class PoolObservation:
    ts: float
    liquidity_usd: float | None = None
    volume_24h_usd: float | None = None
    volume_5m: float | None = None
    buys_5m: int | None = None
    sells_5m: int | None = None

    @property
    def tx_5m(self) -> int | None:
        if self.buys_5m is None and self.sells_5m is None:
            return None
        return (self.buys_5m or 0) + (self.sells_5m or 0)

    @property
    def buy_ratio(self) -> float | None:
        tx = self.tx_5m
        if not tx:
            return None
        return (self.buys_5m or 0) / tx

    @property
    def sell_dominant(self) -> bool:
        return (self.sells_5m or 0) > (self.buys_5m or 0)


@dataclass(frozen=True)
class PoolDelta:
    """Change of the current poll against the previous fresh one."""

    previous: PoolObservation | None = None
    liquidity_drop_pct: float | None = None
    liquidity_change_pct: float | None = None
    volume_change_pct: float | None = None
    buy_ratio_prev: float | None = None
    tx_5m_prev: int | None = None
    volume_5m_baseline: float | None = None
    sell_streak_count: int | None = None


def _pct_change(prev: float | None, cur: float | None) -> float | None:
    if prev is None or cur is None or prev <= 0:
        return None
    return (cur - prev) / prev * 100


class PoolHistoryCache:
    """Bounded, staleness-aware history of polls keyed by pool identity."""

    def __init__(
        self,
        max_age_sec: float = DEFAULT_MAX_AGE_SEC,
        max_samples: int = DEFAULT_MAX_SAMPLES,
        max_pools: int = DEFAULT_MAX_POOLS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._max_age_sec = max_age_sec
        self._max_samples = max(2, max_samples)
        self._max_pools = max(1, max_pools)
        self._clock = clock
        self._pools: dict[str, deque[PoolObservation]] = {}
        self._last_sweep: float | None = None
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._pools)

    def previous(self, pool_id: str) -> PoolObservation | None:
        """Most recent fresh observation for ``pool_id``, if any."""
        with self._lock:
            samples = self._fresh(pool_id, self._clock())
            return samples[-1] if samples else None

    def delta(self, pool_id: str, overlay: MarketOverlay) -> PoolDelta:
        """Compare ``overlay`` with history without recording it."""
        with self._lock:
            now = self._clock()
            current = self._to_observation(overlay, now)
            return self._delta(self._fresh(pool_id, now), current)

    def observe(self, pool_id: str, overlay: MarketOverlay) -> PoolDelta:
        """Record ``overlay`` as the latest poll and return its delta."""
        with self._lock:
            now = self._clock()
            current = self._to_observation(overlay, now)
            self._sweep(now)
            samples = self._fresh(pool_id, now)
            delta = self._delta(samples, current)
            samples.append(current)
            # Re-insert so dict order stays least-recently-polled first
            self._pools.pop(pool_id, None)
            self._pools[pool_id] = samples
            while len(self._pools) > self._max_pools:
                del self._pools[next(iter(self._pools))]

        if delta.liquidity_drop_pct is not None and delta.liquidity_drop_pct >= DROP_LOG_PCT:
            prev_liq = delta.previous.liquidity_usd if delta.previous else None
            logger.warning(
                f"[POOLS] {pool_id[:24]} liquidity -{delta.liquidity_drop_pct:.0f}% "
                f"(${prev_liq or 0:,.0f} -> ${current.liquidity_usd or 0:,.0f})"
            )
        return delta

    def forget(self, pool_id: str) -> None:
        with self._lock:
            self._pools.pop(pool_id, None)

    def _sweep(self, now: float) -> None:
        """Drop pools with no fresh poll. Runs at most once per ``max_age_sec``."""
        if self._last_sweep is not None and now - self._last_sweep < self._max_age_sec:
            return
        self._last_sweep = now
        cutoff = now - self._max_age_sec
        stale = [pid for pid, samples in self._pools.items() if not samples or samples[-1].ts < cutoff]
        for pid in stale:
            del self._pools[pid]
        if stale:
            logger.debug(f"[POOLS] Evicted {len(stale)} stale pools, {len(self._pools)} tracked")

    def _fresh(self, pool_id: str, now: float) -> deque[PoolObservation]:
        cutoff = now - self._max_age_sec
        samples = self._pools.get(pool_id)
        fresh: deque[PoolObservation] = deque(maxlen=self._max_samples)
        if samples:
            fresh.extend(s for s in samples if s.ts >= cutoff)
        if samples is not None and not fresh:
            del self._pools[pool_id]
        return fresh

    @staticmethod
    def _to_observation(overlay: MarketOverlay, now: float) -> PoolObservation:
        return PoolObservation(
            ts=now,
            liquidity_usd=overlay.liquidity_usd,
            volume_24h_usd=overlay.volume_24h_usd,
            volume_5m=overlay.volume_5m,
            buys_5m=overlay.buys_5m,
            sells_5m=overlay.sells_5m,
        )

    @staticmethod
    def _delta(history: deque[PoolObservation], current: PoolObservation) -> PoolDelta:
        sell_streak = None
        if current.tx_5m is not None:
            sell_streak = 0
            for obs in (current, *reversed(history)):
                if obs.tx_5m is None or not obs.sell_dominant:
                    break
                sell_streak += 1

        if not history:
            return PoolDelta(sell_streak_count=sell_streak)

        prev = history[-1]
        liq_change = _pct_change(prev.liquidity_usd, current.liquidity_usd)
        baseline_samples = [s.volume_5m for s in history if s.volume_5m]
        baseline = sum(baseline_samples) / len(baseline_samples) if baseline_samples else None

        return PoolDelta(
            previous=prev,
            liquidity_drop_pct=None if liq_change is None else max(0.0, -liq_change),
            liquidity_change_pct=liq_change,
            volume_change_pct=_pct_change(prev.volume_24h_usd, current.volume_24h_usd),
            buy_ratio_prev=prev.buy_ratio,
            tx_5m_prev=prev.tx_5m,
            volume_5m_baseline=baseline,
            sell_streak_count=sell_streak,
        )
