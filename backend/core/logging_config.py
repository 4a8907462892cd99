"""Logging setup.

Development gets plain one-line records; production (`log_format="json"`)
gets one JSON object per line so log aggregation can parse them.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.config import get_settings

_HANDLER_NAME = "zonegrid"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data)


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Install the project handler on the root logger (idempotent)."""
    settings = get_settings()
    level = level or settings.log_level
    fmt = fmt or settings.log_format

    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))

    root.addHandler(handler)
    root.setLevel(level.upper())
