"""
logging_config.py — One-time stdlib logging setup for the app.

Every record carries the current request's trace id (or "-" outside a
request) so log lines can be matched with the traceId in error bodies.
"""

from __future__ import annotations

import logging
import sys

from flask import g, has_request_context

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(trace_id)s] - %(message)s"


class TraceIdFilter(logging.Filter):

    def filter(self, record: logging.LogRecord) -> bool:
        trace_id = "-"
        if has_request_context():
            trace_id = g.get("trace_id", "-")
        record.trace_id = trace_id
        return True


def configure_logging(app) -> None:
    root = logging.getLogger()
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    app.logger.setLevel(level)
    logging.getLogger("movie_api").setLevel(level)

    if any(isinstance(f, TraceIdFilter) for h in root.handlers for f in h.filters):
        return  # already configured (multiple apps in one process, e.g. tests)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(TraceIdFilter())
    root.addHandler(handler)
    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)
