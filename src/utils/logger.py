import os
import sys

from loguru import logger

DECISION_PREFIXES = ("[DECISION]", "[POOLS]")


def _is_decision_record(record) -> bool:
    return record["message"].startswith(DECISION_PREFIXES)


def setup_logger(*, json_logs: bool = False, level: str = "INFO", log_dir: str = "logs") -> None:
    """Configure loguru for the signal service.

    Console level comes from LOG_LEVEL env, falling back to ``level``.
    ``{log_dir}/moon_signal_*.log`` keeps everything at DEBUG; a separate
    ``decisions_*.log`` keeps only decision and pool-drop lines so a day of
    calls can be replayed or audited without the request noise.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=console_level)
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
        )

    logger.add(
        f"{log_dir}/moon_signal_{{time:YYYY-MM-DD}}.log",
        rotation="20 MB",
        retention="3 days",
        compression="gz",
        level="DEBUG",
        serialize=json_logs,
    )
    logger.add(
        f"{log_dir}/decisions_{{time:YYYY-MM-DD}}.log",
        rotation="1 day",
        retention="14 days",
        level="DEBUG",
        filter=_is_decision_record,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {message}",
    )
