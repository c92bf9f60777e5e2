"""
RMS - Residency Management System
EPA assessment model — one observed-performance event.

Immutable after creation except for the acknowledgment fields and the
soft-delete fields. Soft-deleted rows are excluded from every aggregation.
"""

from rms.models import db
from rms.models.program import _utcnow, _uuid
from rms.models.soft_delete import SoftDeleteMixin


CASE_URGENCIES = ("elective", "urgent", "emergent")
CASE_COMPLEXITIES = ("straightforward", "moderate", "complex")
LOCATION_TYPES = ("or", "clinic", "icu", "ed", "ward", "other")
ENTRY_METHODS = ("mobile_ios", "mobile_android", "web")


class EpaAssessment(SoftDeleteMixin, db.Model):
    __tablename__ = "epa_assessments"
    __table_args__ = (
        db.CheckConstraint("entrustment_level BETWEEN 1 AND 5", name="ck_epa_assessments_level"),
        db.Index("ix_epa_assessments_resident_epa", "resident_id", "epa_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    resident_id = db.Column(db.String(36), db.ForeignKey("residents.id"), nullable=False, index=True)
    assessor_id = db.Column(db.String(36), db.ForeignKey("faculty.id"), nullable=False, index=True)
    epa_id = db.Column(db.Integer, db.ForeignKey("epas.id"), nullable=False, index=True)
    entrustment_level = db.Column(db.Integer, nullable=False, comment="1-5")
    assessment_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True,
                                comment="When the observation happened")
    submission_date = db.Column(db.DateTime(timezone=True), nullable=False,
                                comment="When it was recorded")

    # Context (all optional)
    clinical_site_id = db.Column(db.String(36), db.ForeignKey("clinical_sites.id"), nullable=True)
    case_urgency = db.Column(db.String(20), nullable=True)
    case_complexity = db.Column(db.String(20), nullable=True)
    patient_asa_class = db.Column(db.Integer, nullable=True, comment="1-6")
    procedure_duration_min = db.Column(db.Integer, nullable=True)
    complications = db.Column(db.Boolean, nullable=True)
    location_type = db.Column(db.String(20), nullable=True)
    location_details = db.Column(db.String(200), nullable=True)

    narrative_feedback = db.Column(db.Text, nullable=True)
    entry_method = db.Column(db.String(20), nullable=False, default="web")

    acknowledged = db.Column(db.Boolean, nullable=False, default=False)
    acknowledged_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<EpaAssessment {self.id} epa={self.epa_id} L{self.entrustment_level}>"
