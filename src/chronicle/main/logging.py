import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from rich.logging import RichHandler

from chronicle.main.config import get_loglevel
from chronicle.main.request_context import get_request_context

JSON_LOGS_ENABLED = os.getenv("JSON_LOGS", "true").lower() in {"1", "true", "yes", "on"}

# Attributes every LogRecord carries; anything else arrived through ``extra``
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class ContextJSONFormatter(logging.Formatter):
    """One JSON object per line: message, request context and ``extra`` fields.

    Audit writes pass the identity of the affected record through ``extra``
    so a lost write can be reconciled from the logs alone.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in get_request_context().items():
            if value is not None:
                payload.setdefault(key, value)

        for key, value in vars(record).items():
            if key in _STANDARD_RECORD_ATTRS or key.startswith("_") or value is None:
                continue
            payload.setdefault(key, value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info

        return json.dumps(payload, default=str)


def _quiet_sqlalchemy():
    for name in ("sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.orm", "sqlalchemy.dialects"):
        sa_logger = logging.getLogger(name)
        sa_logger.setLevel(logging.WARNING)
        sa_logger.propagate = False


_quiet_sqlalchemy()


class SimpleLogger(logging.Logger):
    FORMAT_STRING = "%(asctime)s | %(levelname)s | %(name)s : %(message)s"

    def __init__(self, name="chronicle", level=logging.WARNING, json_logs=None):
        logging.Logger.__init__(self, name, level)

        if json_logs is None:
            json_logs = JSON_LOGS_ENABLED

        handler: logging.Handler
        if json_logs:
            handler = logging.StreamHandler(stream=sys.stdout)
            handler.setFormatter(ContextJSONFormatter())
        else:
            handler = RichHandler(rich_tracebacks=True, markup=False, show_path=True)

        handler.setLevel(level)
        self.addHandler(handler)


def get_logger(module_name: str):
    # Not registered with the logging manager, so handlers are attached here
    return SimpleLogger(name=module_name, level=get_loglevel())
