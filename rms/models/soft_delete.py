"""
Soft Delete Mixin.

Adds ``deleted_at`` / ``deleted_by`` columns and query helpers. Models using
this mixin are marked as deleted rather than physically removed; read paths
filter on ``deleted_at IS NULL``.

Usage:
    class EpaAssessment(SoftDeleteMixin, db.Model):
        ...

    # Soft delete
    obj.soft_delete(by="fac-patel")
    db.session.commit()

    # Query only active records
    EpaAssessment.query_active().all()
"""

from datetime import datetime, timezone

from rms.models import db


class SoftDeleteMixin:
    """Mixin that adds soft delete support to any SQLAlchemy model."""

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, default=None, index=True)
    deleted_by = db.Column(db.String(36), nullable=True, default=None)

    def soft_delete(self, by=None, at=None):
        """Mark this record as deleted."""
        self.deleted_at = at or datetime.now(timezone.utc)
        self.deleted_by = by

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @classmethod
    def query_active(cls):
        """Return a query that excludes soft-deleted records."""
        return cls.query.filter(cls.deleted_at.is_(None))
