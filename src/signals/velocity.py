"""Social velocity tracking: is chatter about a token accelerating?"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from threading import Lock

from loguru import logger

from src.signals.overlay import to_float

DEFAULT_MAX_AGE_SEC = 30 * 60
DEFAULT_MAX_TOKENS = 20_000


class VelocityTracker:
    """Rolling window of 0-100 velocity samples for one token."""

    def __init__(self, window_size: int = 10, clock: Callable[[], float] = time.time) -> None:
        self._samples: deque[tuple[float, float]] = deque(maxlen=max(3, window_size))
        self._clock = clock

    def __len__(self) -> int:
        return len(self._samples)

    def push(self, value: object) -> float:
        v = max(0.0, min(100.0, to_float(value) or 0.0))
        self._samples.append((self._clock(), v))
        return v

    @property
    def last_ts(self) -> float | None:
        return self._samples[-1][0] if self._samples else None

    def current(self) -> float:
        return self._samples[-1][1] if self._samples else 0.0

    def is_rising(self, min_delta: float = 6.0, min_now: float = 20.0) -> bool:
        """Last three samples non-decreasing, ending high enough, with enough lift."""
        if len(self._samples) < 3:
            return False
        a, b, c = (v for _, v in list(self._samples)[-3:])
        return c >= min_now and b >= a and c >= b and (c - a) >= min_delta

    def slope(self) -> float:
        if len(self._samples) < 2:
            return 0.0
        return self._samples[-1][1] - self._samples[0][1]


class VelocityBook:
    """Per-token velocity trackers."""

    def __init__(
        self,
        window_size: int = 10,
        min_delta: float = 6.0,
        min_now: float = 20.0,
        max_age_sec: float = DEFAULT_MAX_AGE_SEC,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._window_size = window_size
        self._min_delta = min_delta
        self._min_now = min_now
        self._max_age_sec = max_age_sec
        self._max_tokens = max(1, max_tokens)
        self._clock = clock
        self._trackers: dict[str, VelocityTracker] = {}
        self._last_sweep: float | None = None
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._trackers)

    def push(self, token: str, value: object) -> float:
        with self._lock:
            self._sweep(self._clock())
            tracker = self._trackers.pop(token, None)
            if tracker is None:
                tracker = VelocityTracker(self._window_size, self._clock)
            # Re-insert so dict order stays least-recently-pushed first
            self._trackers[token] = tracker
            while len(self._trackers) > self._max_tokens:
                del self._trackers[next(iter(self._trackers))]
            return tracker.push(value)

    def current(self, token: str) -> float | None:
        with self._lock:
            tracker = self._trackers.get(token)
            return tracker.current() if tracker else None

    def is_rising(self, token: str) -> bool | None:
        """None when the token has never been sampled."""
        with self._lock:
            tracker = self._trackers.get(token)
            if tracker is None:
                return None
            return tracker.is_rising(self._min_delta, self._min_now)

    def _sweep(self, now: float) -> None:
        """Drop tokens with no sample in ``max_age_sec``. At most once per window."""
        if self._last_sweep is not None and now - self._last_sweep < self._max_age_sec:
            return
        self._last_sweep = now
        cutoff = now - self._max_age_sec
        stale = [k for k, t in self._trackers.items() if t.last_ts is None or t.last_ts < cutoff]
        for key in stale:
            del self._trackers[key]
        if stale:
            logger.debug(f"[VELOCITY] Evicted {len(stale)} idle tokens, {len(self._trackers)} tracked")

