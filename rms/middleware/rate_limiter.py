"""
Rate limiting — per-blueprint limits on top of the app's Flask-Limiter.

The Limiter is created in ``rms/__init__.py`` with no default limits; this
module applies limits per route category:

    - assessments (submit / acknowledge / delete): 60/minute
    - residents, reference and user listings:      200/minute
    - health:                                      exempt

Disabled when TESTING or when RATELIMIT_ENABLED is false.

Usage:
    from rms.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    bp = app.blueprints.get("assessments")
    if bp:
        limiter.limit(WRITE_LIMIT)(bp)

    for bp_name in ("residents", "reference", "users"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured — write: %s, read: %s", WRITE_LIMIT, READ_LIMIT)
