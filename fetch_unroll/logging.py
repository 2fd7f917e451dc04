"""JSON-lines logging for fetch and unroll runs.

Every module logs through the single ``fetch_unroll`` logger, one JSON object per
line on stderr:

- INFO: the URL being fetched, a failed fetch, entries skipped because they are
  not directories or regular files, a save destination left untouched, and the
  final saved/unrolled summary
- WARNING: entries or links leaving the destination, and rollback after a failure
- DEBUG: redirect hops, destination cleanup/creation, and the strip depth chosen

The level defaults to INFO and can be set with ``FETCH_UNROLL_LOG_LEVEL``.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any

LEVEL_ENV = "FETCH_UNROLL_LOG_LEVEL"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _level_from_env() -> int:
    name = os.environ.get(LEVEL_ENV, "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str = "fetch_unroll") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())
    return logger
