"""Tests for the in-memory wallet ranker."""

from src.signals.types import WalletTier
from src.signals.wallet_rank import START_SCORE, WalletRanker, tier_for_score


def test_tier_cutpoints():
    assert tier_for_score(80) == WalletTier.S
    assert tier_for_score(79) == WalletTier.A
    assert tier_for_score(60) == WalletTier.A
    assert tier_for_score(59) == WalletTier.B
    assert tier_for_score(40) == WalletTier.B
    assert tier_for_score(39) == WalletTier.C


def test_unknown_wallet_reads_start_tier(clock):
    ranker = WalletRanker(clock=clock)
    assert ranker.get_tier("nobody") == tier_for_score(START_SCORE)
    assert len(ranker) == 0


def test_activity_nudges_score(clock):
    ranker = WalletRanker(clock=clock)
    rec = ranker.note_activity("w1", "PEPE")
    assert rec.score == START_SCORE + 2
    assert rec.last_token == "PEPE"
    assert rec.last_seen == clock.now


def test_wins_promote_to_s(clock):
    ranker = WalletRanker(clock=clock)
    ranker.note_win("w1")
    rec = ranker.note_win("w1")
    assert rec.score == START_SCORE + 20
    assert rec.tier == WalletTier.S
    assert ranker.get_tier("w1") == WalletTier.S


def test_losses_demote(clock):
    ranker = WalletRanker(clock=clock)
    ranker.note_loss("w1")
    ranker.note_loss("w1")
    rec = ranker.note_loss("w1")
    assert rec.score == START_SCORE - 30
    assert rec.tier == WalletTier.C
    assert rec.losses == 3


def test_score_bounded(clock):
    ranker = WalletRanker(clock=clock)
    for _ in range(10):
        ranker.note_loss("w1")
    assert ranker.note_loss("w1").score == 0


def test_top_wallets_sorted(clock):
    ranker = WalletRanker(clock=clock)
    ranker.note_win("good")
    ranker.note_loss("bad")
    ranker.note_activity("meh")
    top = ranker.top_wallets()
    assert [r.address for r in top] == ["good", "meh", "bad"]
    assert top[0].to_dict()["tier"] == "A"
    assert len(ranker.top_wallets(limit=1)) == 1


def test_returned_records_are_snapshots(clock):
    ranker = WalletRanker(clock=clock)
    first = ranker.note_win("w1")
    ranker.note_win("w1")
    assert first.score == START_SCORE + 10
    assert first.wins == 1

    first.score = 0
    assert ranker.get_tier("w1") == WalletTier.S

    top = ranker.top_wallets()
    ranker.note_loss("w1")
    assert top[0].losses == 0
