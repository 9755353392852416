"""Entry point for the moon-signal decision API."""

import asyncio
import signal

from loguru import logger

from config.settings import settings
from src.api.dependencies import close_dex_client, get_engine
from src.api.server import run_api_server
from src.utils.logger import setup_logger


async def main() -> None:
    setup_logger(json_logs=settings.json_logs, level=settings.log_level)

    # Tier overrides are applied here, before the first request
    engine = get_engine()
    logger.info(
        f"Starting moon-signal: default tier {engine.default_tier}, "
        f"convergence window {engine.convergence.window_sec:.0f}s, "
        f"DexScreener {settings.dexscreener_max_rps:g} rps"
    )

    loop = asyncio.get_running_loop()
    stop = asyncio.Event()

    def _on_signal() -> None:
        logger.info("Shutdown signal received")
        stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _on_signal)

    api_task = asyncio.create_task(run_api_server())
    _, pending = await asyncio.wait(
        [api_task, asyncio.create_task(stop.wait())],
        return_when=asyncio.FIRST_COMPLETED,
    )

    for task in pending:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    await close_dex_client()
    stats = engine.stats
    logger.info(
        f"Shutdown complete ({stats['evaluations']} evaluations, "
        f"{stats['rug_warnings']} rug warnings)"
    )


if __name__ == "__main__":
    asyncio.run(main())
