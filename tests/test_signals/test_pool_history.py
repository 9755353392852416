"""Tests for the pool history cache (cross-poll deltas)."""

import pytest

from src.signals.overlay import normalize_overlay
from src.signals.pool_history import PoolHistoryCache

POOL = "solana:PairAddr111"


def _poll(liq=50_000, vol=100_000, vol5=2_000, buys=10, sells=10):
    return normalize_overlay({
        "liquidity_usd": liq,
        "volume_24h_usd": vol,
        "volume_5m": vol5,
        "buys_5m": buys,
        "sells_5m": sells,
    })


class TestPoolHistoryCache:
    def test_first_poll_has_no_previous(self, clock) -> None:
        cache = PoolHistoryCache(clock=clock)
        delta = cache.observe(POOL, _poll())
        assert delta.previous is None
        assert delta.liquidity_drop_pct is None
        assert delta.volume_change_pct is None
        assert len(cache) == 1

    def test_liquidity_drop_and_changes(self, clock) -> None:
        cache = PoolHistoryCache(clock=clock)
        cache.observe(POOL, _poll(liq=100_000, vol=200_000))
        clock.advance(60)
        delta = cache.observe(POOL, _poll(liq=60_000, vol=250_000))
        assert delta.liquidity_drop_pct == pytest.approx(40.0)
        assert delta.liquidity_change_pct == pytest.approx(-40.0)
        assert delta.volume_change_pct == pytest.approx(25.0)

    def test_growth_is_not_a_drop(self, clock) -> None:
        cache = PoolHistoryCache(clock=clock)
        cache.observe(POOL, _poll(liq=50_000))
        clock.advance(30)
        delta = cache.observe(POOL, _poll(liq=55_000))
        assert delta.liquidity_drop_pct == 0.0
        assert delta.liquidity_change_pct == pytest.approx(10.0)

    def test_previous_flow_carried(self, clock) -> None:
        cache = PoolHistoryCache(clock=clock)
        cache.observe(POOL, _poll(buys=6, sells=14, vol5=1_000))
        clock.advance(30)
        cache.observe(POOL, _poll(buys=10, sells=10, vol5=3_000))
        clock.advance(30)
        delta = cache.observe(POOL, _poll(buys=30, sells=10, vol5=8_000))
        assert delta.buy_ratio_prev == 0.5
        assert delta.tx_5m_prev == 20
        assert delta.volume_5m_baseline == pytest.approx(2_000)

    def test_stale_reading_is_absent(self, clock) -> None:
        cache = PoolHistoryCache(max_age_sec=720, clock=clock)
        cache.observe(POOL, _poll(liq=100_000))
        clock.advance(721)
        delta = cache.observe(POOL, _poll(liq=10_000))
        assert delta.previous is None
        assert delta.liquidity_drop_pct is None

    def test_sell_streak_counts_consecutive_polls(self, clock) -> None:
        cache = PoolHistoryCache(clock=clock)
        cache.observe(POOL, _poll(buys=10, sells=5))
        for _ in range(3):
            clock.advance(20)
            delta = cache.observe(POOL, _poll(buys=3, sells=9))
        assert delta.sell_streak_count == 3

    def test_sell_streak_reset_by_buy_poll(self, clock) -> None:
        cache = PoolHistoryCache(clock=clock)
        cache.observe(POOL, _poll(buys=1, sells=9))
        clock.advance(20)
        delta = cache.observe(POOL, _poll(buys=9, sells=1))
        assert delta.sell_streak_count == 0

    def test_delta_does_not_record(self, clock) -> None:
        cache = PoolHistoryCache(clock=clock)
        cache.observe(POOL, _poll(liq=100_000))
        clock.advance(10)
        cache.delta(POOL, _poll(liq=10_000))
        assert cache.previous(POOL).liquidity_usd == 100_000

    def test_max_samples_bounded(self, clock) -> None:
        cache = PoolHistoryCache(max_samples=3, clock=clock)
        for i in range(10):
            cache.observe(POOL, _poll(vol5=1_000 * (i + 1)))
            clock.advance(5)
        delta = cache.delta(POOL, _poll())
        # Baseline over the last 3 samples only: 8k, 9k, 10k
        assert delta.volume_5m_baseline == pytest.approx(9_000)

    def test_forget(self, clock) -> None:
        cache = PoolHistoryCache(clock=clock)
        cache.observe(POOL, _poll())
        cache.forget(POOL)
        assert cache.previous(POOL) is None
        assert len(cache) == 0

    def test_stale_pools_swept(self, clock) -> None:
        cache = PoolHistoryCache(max_age_sec=720, clock=clock)
        for i in range(1000):
            cache.observe(f"solana:Pair{i}", _poll())
        assert len(cache) == 1000
        clock.advance(10_000)
        cache.observe(POOL, _poll())
        assert len(cache) == 1

    def test_sweep_keeps_fresh_pools(self, clock) -> None:
        cache = PoolHistoryCache(max_age_sec=720, clock=clock)
        cache.observe("solana:Old", _poll())
        clock.advance(600)
        cache.observe("solana:Recent", _poll())
        clock.advance(200)
        cache.observe(POOL, _poll())
        assert cache.previous("solana:Old") is None
        assert cache.previous("solana:Recent") is not None
        assert len(cache) == 2

    def test_max_pools_evicts_least_recent(self, clock) -> None:
        cache = PoolHistoryCache(max_pools=2, clock=clock)
        cache.observe("solana:A", _poll())
        cache.observe("solana:B", _poll())
        clock.advance(5)
        cache.observe("solana:A", _poll())
        cache.observe("solana:C", _poll())
        assert len(cache) == 2
        assert cache.previous("solana:B") is None
        assert cache.previous("solana:A") is not None
