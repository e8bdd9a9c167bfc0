"""Logging setup for wren processes.

wren logs through the standard library under the ``wren`` logger tree:

- ``wren.server``: dispatcher errors and disconnects
- ``wren.access``: one line per request from ``RequestLogger``

Libraries should not configure logging, so nothing here runs on import.
``App.run()`` calls ``configure_logging`` with the app's config; tests
and embedding applications leave it alone and use their own handlers.
"""

import json
import logging
import sys
import time
from typing import Any

_HANDLER_NAME = "wren"

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    Adds ``request_id`` when the record carries one (``extra=``).
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z",
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id is not None:
            payload["request_id"] = request_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str = "info", fmt: str = "text") -> logging.Logger:
    """Install a single stderr handler on the ``wren`` logger.

    Calling it again replaces the handler instead of stacking another.

    Raises:
        ValueError: Unknown *level* or *fmt*.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        msg = f"Unknown log level {level!r}"
        raise ValueError(msg)

    if fmt == "json":
        formatter: logging.Formatter = JSONFormatter()
    elif fmt == "text":
        formatter = logging.Formatter(TEXT_FORMAT)
    else:
        msg = f"Unknown log format {fmt!r}; expected 'text' or 'json'"
        raise ValueError(msg)

    root = logging.getLogger("wren")
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(numeric)
    return root
