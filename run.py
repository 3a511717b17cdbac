"""Entry point for the Delegation Portal API.

Launches the FastAPI application with uvicorn.  Intended to be run
from the project root, for example under Docker where only a single
Python file is specified.

Host and port are read from the ``HOST`` and ``PORT`` environment
variables (defaults ``0.0.0.0`` and ``8000``).  Application settings
such as ``DATABASE_URL`` or ``SECRET_KEY`` are read by
``delegation_portal_api.app.core.config``.

Usage:
    python run.py
"""
import asyncio
import logging
import os

from uvicorn import Config, Server

from delegation_portal_api.app.main import app


async def main() -> None:
    """Serve the API until interrupted."""
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level="info")
    server = Server(config)
    logging.getLogger(__name__).info("Starting Delegation Portal API on %s:%s", host, port)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
