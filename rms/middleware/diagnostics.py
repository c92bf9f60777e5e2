"""
Startup diagnostics — runs once when the Flask app starts.

Checks the database and logs a summary banner.
"""

import logging
import sys

from flask import Flask
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError

from rms.models import db

logger = logging.getLogger(__name__)


def run_startup_diagnostics(app: Flask):
    """Run diagnostic checks during app startup."""
    if app.config.get("TESTING"):
        return

    issues: list[str] = []

    with app.app_context():
        py = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"

        db_status = "ok"
        db_uri = str(app.config.get("SQLALCHEMY_DATABASE_URI", ""))
        db_type = "PostgreSQL" if "postgresql" in db_uri else "SQLite" if "sqlite" in db_uri else "unknown"
        table_count = "?"
        try:
            db.session.execute(db.text("SELECT 1"))
            table_count = len(sa_inspect(db.engine).get_table_names())
            if table_count == 0:
                issues.append("No tables found — run 'flask db upgrade' or 'flask seed-demo'")
        except SQLAlchemyError as exc:
            db_status = "FAILED"
            issues.append(f"Database unreachable: {exc}")
        finally:
            db.session.remove()

        ratelimit = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
        db_line = f"{db_type} ({db_status})"

        banner = f"""
╔══════════════════════════════════════════════════════════════╗
║  {app.config.get('API_NAME', 'RMS API')} — Startup Diagnostics{' ' * max(0, 37 - len(app.config.get('API_NAME', 'RMS API')))}║
╠══════════════════════════════════════════════════════════════╣
║  Python      : {py:<46s}║
║  Version     : {str(app.config.get('API_VERSION', '')):<46s}║
║  Debug       : {str(app.debug):<46s}║
║  Database    : {db_line:<46s}║
║  Tables      : {str(table_count):<46s}║
║  Specialty   : {str(app.config.get('RMS_SPECIALTY_CODE')):<46s}║
║  Rate limits : {ratelimit.split('://')[0]:<46s}║
╚══════════════════════════════════════════════════════════════╝"""
        logger.info(banner)

        if issues:
            logger.warning("Startup issues detected:")
            for issue in issues:
                logger.warning("  ⚠ %s", issue)
        else:
            logger.info("✅ All startup checks passed")
