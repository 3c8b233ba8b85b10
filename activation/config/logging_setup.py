"""Attach a stream handler to the ``activation`` logger from LoggingConfig."""
from __future__ import annotations

import json
import logging

from .schemas.observability import LoggingConfig

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload = {
            "ts": record.created,
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(cfg: LoggingConfig | None = None) -> logging.Logger:
    cfg = cfg or LoggingConfig()
    logger = logging.getLogger("activation")
    logger.setLevel(_LEVELS[cfg.level])
    # Replace only the handler we installed earlier
    for h in list(logger.handlers):
        if getattr(h, "_activation_handler", False):
            logger.removeHandler(h)
    h = logging.StreamHandler()
    h._activation_handler = True  # type: ignore[attr-defined]
    if cfg.format == "json":
        h.setFormatter(_JsonFormatter())
    else:
        h.setFormatter(
            logging.Formatter("[%(name)s] %(levelname)s %(message)s")
        )
    logger.addHandler(h)
    return logger
