"""
middleware/request_context.py — Per-request trace id and access logging.

before_request:
  - g.trace_id = incoming X-Request-ID header, or a fresh uuid4 hex
  - logs method, path, query string and user agent
after_request:
  - echoes X-Request-ID on the response
  - logs status code and elapsed milliseconds
"""

from __future__ import annotations

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Request-ID"


def register_request_context(app: Flask) -> None:

    @app.before_request
    def start_request() -> None:
        g.trace_id = request.headers.get(TRACE_HEADER) or uuid.uuid4().hex
        g.request_started = time.perf_counter()

        logger.info(
            "%s %s query=%r user_agent=%r",
            request.method,
            request.path,
            request.query_string.decode("utf-8", "replace"),
            request.headers.get("User-Agent", ""),
        )

    @app.after_request
    def finish_request(response):
        trace_id = g.get("trace_id")
        if trace_id:
            response.headers[TRACE_HEADER] = trace_id

        started = g.get("request_started")
        elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.path,
            response.status_code,
            elapsed_ms,
        )
        return response
