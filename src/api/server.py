"""API server: runs uvicorn inside the existing asyncio event loop."""

from __future__ import annotations

import uvicorn
from loguru import logger

from config.settings import settings


async def run_api_server() -> None:
    """Start uvicorn serving the decision API.

    Uses ``uvicorn.Server.serve()`` which is fully async, so the caller
    owns the loop and shutdown.
    """
    from src.api.app import create_app

    app = create_app()
    config = uvicorn.Config(
        app=app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="warning",
        loop="none",  # use the existing event loop
    )
    server = uvicorn.Server(config)
    logger.info(f"Decision API starting on http://{settings.api_host}:{settings.api_port}")
    await server.serve()
