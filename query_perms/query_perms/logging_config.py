"""Log formatting and handler setup.

With ``QUERY_PERMS_STRUCTURED_LOGGING=true`` every record is emitted as a
single-line JSON object::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "WARNING",
        "logger": "query_perms.resolver.permissions",
        "message": "Error calculating permissions for query: ...",
        "query": { ... },            // present when passed via extra={"query": ...}
        "exc_info": "Traceback ..."  // present only on exceptions
    }

Otherwise a plain text format is used.
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

from query_perms.config import Settings

_TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        query = getattr(record, "query", None)
        if query is not None:
            payload["query"] = query

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings) -> logging.Handler:
    """Install a stream handler on the root logger according to *settings*.

    Replaces any handlers previously installed by this function, so it is
    safe to call more than once.
    """
    handler = logging.StreamHandler()
    if settings.structured_logging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    handler.set_name("query_perms")

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == "query_perms":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(settings.log_level)
    return handler
