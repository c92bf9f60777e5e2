"""
RMS - Residency Management System
Flask Application Factory.

Usage:
    from rms import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from rms.config import config
from rms.middleware.diagnostics import run_startup_diagnostics
from rms.middleware.logging_config import configure_logging
from rms.middleware.rate_limiter import init_rate_limits
from rms.middleware.timing import init_request_timing
from rms.models import db
from rms.utils.errors import E, api_error

logger = logging.getLogger(__name__)


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit; applied per blueprint
    storage_uri=os.getenv("REDIS_URL", "memory://"),
)


def create_app(config_name=None, store_factory=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.
        store_factory: Zero-argument callable returning an ``AssessmentStore``
                       for each request. Defaults to the SQL store over
                       ``db.session``.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    if store_factory is None:
        from rms.services.sql_store import SqlAssessmentStore

        def store_factory():
            return SqlAssessmentStore(db.session)
    app.extensions["rms_store_factory"] = store_factory

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from rms.models import assessment as _assessment_models  # noqa: F401
    from rms.models import epa as _epa_models                # noqa: F401
    from rms.models import program as _program_models        # noqa: F401

    # ── Blueprints ───────────────────────────────────────────────────────
    from rms.blueprints.assessment_bp import assessment_bp
    from rms.blueprints.health_bp import health_bp
    from rms.blueprints.reference_bp import reference_bp
    from rms.blueprints.resident_bp import resident_bp
    from rms.blueprints.user_bp import user_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(resident_bp)
    app.register_blueprint(assessment_bp)
    app.register_blueprint(reference_bp)
    app.register_blueprint(user_bp)

    init_rate_limits(app, limiter)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        """Create tables and load the General Surgery demo dataset."""
        from rms.services.seed import seed_demo
        db.create_all()
        counts = seed_demo()
        if counts:
            logger.info("Seeded demo data: %s", counts)
        else:
            logger.info("Demo data already present.")

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        from flask import request
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.METHOD_NOT_ALLOWED, "Method not allowed")

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")

    # ── Startup diagnostics ──────────────────────────────────────────────
    run_startup_diagnostics(app)

    return app
