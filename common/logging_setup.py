from __future__ import annotations

import json
import logging
import os
import sys
from typing import Optional

from common.utils import iso_now_ms

# uvicorn installs its own handlers; these are rerouted through the root
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line:
      {"ts": "2024-05-01T12:00:00.123Z", "lvl": "INFO", "name": "preview.cache",
       "thread": "prefetch_0", "msg": "stored preview", "extra": {"key": "og:/alice"}}
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "ts": iso_now_ms(),
            "lvl": record.levelname,
            "name": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
        }
        # log.info("...", extra={"extra": {...}})
        fields = getattr(record, "extra", None)
        if isinstance(fields, dict):
            payload["extra"] = fields
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None, *, force: bool = False) -> None:
    """
    JSON to stdout on the root logger, once per process (`force` redoes it).
    Level: `level` arg, else $LOG_LEVEL, else INFO; unknown names fall back to INFO.
    """
    root = logging.getLogger()
    if getattr(root, "_content_configured", False) and not force:
        return

    lvl = logging.getLevelName((level or os.environ.get("LOG_LEVEL") or "INFO").upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(lvl)

    for name in SERVER_LOGGERS:
        server_log = logging.getLogger(name)
        server_log.handlers.clear()
        server_log.propagate = True

    root._content_configured = True  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
