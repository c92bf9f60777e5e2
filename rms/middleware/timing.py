"""
Request timing middleware.

Assigns or propagates X-Request-ID, adds X-Request-Duration-Ms to every
response and logs each API request: slow ones at WARNING, 5xx at ERROR.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

# Polled by load balancers; not worth a log line each.
_SKIP_LOG = frozenset({"/api/v1/health/ready", "/api/v1/health/live"})

SLOW_THRESHOLD_MS = 1000


def _resident_scope():
    view_args = request.view_args or {}
    return view_args.get("resident_id") or request.args.get("resident_id")


def init_request_timing(app: Flask):
    """Register before/after hooks for request timing."""

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _log_request(response):
        start = getattr(g, "request_start", None)
        if start is None:
            return response

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"
        response.headers["X-Request-ID"] = getattr(g, "request_id", "")

        if request.path in _SKIP_LOG:
            return response

        view_args = request.view_args or {}
        extra = {
            "method": request.method,
            "path": request.path,
            "status": response.status_code,
            "duration_ms": duration_ms,
            "remote_addr": request.remote_addr,
            "request_id": getattr(g, "request_id", ""),
            "resident_id": _resident_scope(),
            "assessment_id": view_args.get("assessment_id"),
        }
        if duration_ms > SLOW_THRESHOLD_MS:
            level, label = logging.WARNING, "Slow request"
        elif response.status_code >= 500:
            level, label = logging.ERROR, "Server error"
        else:
            level, label = logging.DEBUG, "Request"
        logger.log(level, "%s: %s %s %d (%.0fms)", label, request.method, request.path,
                   response.status_code, duration_ms, extra=extra)
        return response
