"""Entry point for the Shiptivity API.

Starts the FastAPI application under Uvicorn.  Host and port come from
the ``HOST`` and ``PORT`` environment variables (see
``shiptivity_api.app.core.config``); the database location from
``DATABASE_URL``.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from shiptivity_api.app.core.config import settings
from shiptivity_api.app.main import app


async def run_api() -> None:
    """Serve the API until the process is stopped.

    Uvicorn handles SIGINT/SIGTERM; every request opens and closes its
    own database connection, so nothing else needs closing on exit.
    """
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info("app running on port %s", settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(run_api())
    except (KeyboardInterrupt, SystemExit):
        pass
