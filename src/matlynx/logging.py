"""
Logging setup.

Call setup_logging() once at process start (web app factory, CLI entry
point). Modules log through logging.getLogger(__name__) and pass
structured fields with extra=.
"""

import json
import logging
import sys
from typing import Any

from matlynx.settings import get_settings

# Attributes every LogRecord has; anything else came in through extra=
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}

_configured = False


class JsonFormatter(logging.Formatter):
    """One JSON object per line, including extra= fields."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                data[key] = value
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """
    Configure the root logger.

    Safe to call multiple times; only the first call installs a handler.

    Args:
        level: Log level name (defaults to settings.LOG_LEVEL)
        json_output: Emit JSON lines (defaults to settings.LOG_JSON)
    """
    global _configured
    settings = get_settings()
    level = (level or settings.LOG_LEVEL).upper()
    if json_output is None:
        json_output = settings.LOG_JSON

    root = logging.getLogger()
    root.setLevel(level)

    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
    root.addHandler(handler)
    _configured = True
