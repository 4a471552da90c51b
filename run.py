"""Entry point for the Phonebook API.

Starts the FastAPI application with Uvicorn.  Host, port and the
database location are read from environment variables (or a ``.env``
file in the working directory): ``HOST``, ``PORT`` and
``DATABASE_URL``.  Defaults are ``0.0.0.0``, ``3001`` and
``phonebook.db``.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from phonebook_api.app.core.config import settings
from phonebook_api.app.main import app


async def main() -> None:
    """Serve the API until interrupted."""
    config = Config(app=app, host=settings.host, port=settings.port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    logging.getLogger(__name__).info("Server running on port %s", settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
