"""Tests for loguru setup."""

from loguru import logger

from src.utils.logger import _is_decision_record, setup_logger


def test_decision_filter():
    assert _is_decision_record({"message": "[DECISION] PEPE ENTER conf=85"})
    assert _is_decision_record({"message": "[POOLS] solana:P1 liquidity -40%"})
    assert not _is_decision_record({"message": "[API] GET /api/v1/health -> 200"})


def test_decision_sink_only_gets_decisions(tmp_path):
    setup_logger(level="WARNING", log_dir=str(tmp_path))
    try:
        logger.info("[API] GET /api/v1/health -> 200 (1ms)")
        logger.warning("[DECISION] PEPE RUG_WARNING conf=98")
    finally:
        logger.remove()

    decision_logs = list(tmp_path.glob("decisions_*.log"))
    assert len(decision_logs) == 1
    text = decision_logs[0].read_text(encoding="utf-8")
    assert "RUG_WARNING" in text
    assert "[API]" not in text
    # Main sink is gzip-compressed when closed
    assert list(tmp_path.glob("moon_signal_*"))
