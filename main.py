"""Entry point: ``python main.py`` or ``uvicorn main:app``."""

from __future__ import annotations

import sys

import uvicorn

from app.errors import ConfigurationError
from server.app import create_app
from server.config import get_settings
from server.logging_config import configure_logging, logger

app = create_app()


def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    try:
        settings.require_complete()
    except ConfigurationError as exc:
        logger.error("Refusing to start: %s", exc)
        sys.exit(1)
    uvicorn.run(app, host=settings.server_host, port=settings.server_port)


if __name__ == "__main__":
    run()
