# src/rentwise/adapters/logging_utils.py
import json
import logging
import sys
from datetime import date
from typing import Any

from .config import config


def _jsonable(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line; `extra={"context": {...}}` is merged in."""

    def format(self, record):
        payload = {
            "ts": record.created,
            "level": record.levelname,
            "logger": record.name,
            "env": config.ENV,
            "message": record.getMessage(),
        }
        ctx = getattr(record, "context", None)
        if isinstance(ctx, dict):
            payload.update(ctx)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_jsonable)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonLogFormatter())
        logger.addHandler(handler)
        logger.setLevel(config.LOG_LEVEL.upper())
        logger.propagate = False
    return logger
