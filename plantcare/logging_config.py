from __future__ import annotations

import logging

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Chatty libraries: every Ollama call and every dashboard poll is a request.
_QUIET_LOGGERS = ("urllib3", "httpx", "uvicorn.access")


def resolve_level(name: str | None) -> int:
    """Map "debug" / "INFO" / None to a logging level, INFO when unknown."""
    level = logging.getLevelName((name or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: str | None = None) -> None:
    """Set up root handlers and the ``plantcare.*`` logger level.

    ``level`` overrides LOG_LEVEL. Repeat calls only adjust levels.
    """
    resolved = resolve_level(level or settings.LOG_LEVEL)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("plantcare").setLevel(resolved)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
