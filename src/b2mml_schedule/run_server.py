"""Executable entry point for the schedule FastAPI application.

Environment Variables:
    PORT (int): Override listening port (default 8000).

Example:
    $ python -m b2mml_schedule.run_server
    $ PORT=9000 python -m b2mml_schedule.run_server

For production, invoke uvicorn directly:
    uvicorn b2mml_schedule.app:app --host 0.0.0.0 --port 8000 --workers 4
"""

from __future__ import annotations

import logging
import os

import uvicorn

from .app import app

logger = logging.getLogger(__name__)


def main() -> None:
    """Launch uvicorn on ``0.0.0.0:$PORT``."""
    port = int(os.getenv("PORT", "8000"))
    logger.info("Starting schedule service on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
