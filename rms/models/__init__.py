"""
RMS - Residency Management System
Database handle shared by all models.

Usage:
    from rms.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
