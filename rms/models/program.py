"""
RMS - Residency Management System
Program and people models.

Models:
    - Program: a residency program within one specialty
    - User: any person in the system (name, email)
    - Resident: a user training in a program at a PGY level
    - Faculty: a user who assesses residents
    - ClinicalSite: a location where training happens

Architecture chain: Program → Resident / Faculty → EpaAssessment
"""

import uuid
from datetime import datetime, timezone

from rms.models import db


RESIDENT_STATUSES = {"active", "leave", "remediation", "completed", "withdrawn"}


def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


def format_training_level(level):
    """Render a PGY integer as its display label: 3 → "PGY-3"."""
    if level is None:
        return None
    return f"PGY-{int(level)}"


class Program(db.Model):
    """A residency program. EPAs are looked up through its specialty."""

    __tablename__ = "programs"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(200), nullable=False)
    specialty_code = db.Column(db.String(50), nullable=False, index=True)
    acgme_program_id = db.Column(db.String(20), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "specialty_code": self.specialty_code,
            "acgme_program_id": self.acgme_program_id,
        }

    def __repr__(self):
        return f"<Program {self.id}: {self.name[:40]}>"


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    email = db.Column(db.String(200), nullable=False, unique=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    photo_url = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<User {self.id}: {self.full_name}>"


class Resident(db.Model):
    """A trainee. ``pgy_level`` selects the applicable EPA requirement."""

    __tablename__ = "residents"
    __table_args__ = (
        db.UniqueConstraint("user_id", "program_id", name="uq_residents_user_program"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
    program_id = db.Column(db.String(36), db.ForeignKey("programs.id"), nullable=False, index=True)
    pgy_level = db.Column(db.Integer, nullable=False, comment="Current PGY level (1-10)")
    status = db.Column(db.String(20), nullable=False, default="active")
    medical_school = db.Column(db.String(200), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    user = db.relationship("User")
    program = db.relationship("Program")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "program_id": self.program_id,
            "first_name": self.user.first_name if self.user else None,
            "last_name": self.user.last_name if self.user else None,
            "email": self.user.email if self.user else None,
            "photo_url": self.user.photo_url if self.user else None,
            "pgy_level": format_training_level(self.pgy_level),
            "status": self.status,
            "medical_school": self.medical_school,
        }

    def __repr__(self):
        return f"<Resident {self.id} PGY-{self.pgy_level}>"


class Faculty(db.Model):
    """An assessor. ``EpaAssessment.assessor_id`` references this table."""

    __tablename__ = "faculty"
    __table_args__ = (
        db.UniqueConstraint("user_id", "program_id", name="uq_faculty_user_program"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
    program_id = db.Column(db.String(36), db.ForeignKey("programs.id"), nullable=False, index=True)
    rank = db.Column(db.String(50), nullable=True)
    is_core_faculty = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    user = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "first_name": self.user.first_name if self.user else None,
            "last_name": self.user.last_name if self.user else None,
            "email": self.user.email if self.user else None,
            "photo_url": self.user.photo_url if self.user else None,
            "rank": self.rank,
            "is_core_faculty": bool(self.is_core_faculty),
        }

    def __repr__(self):
        return f"<Faculty {self.id}>"


class ClinicalSite(db.Model):
    __tablename__ = "clinical_sites"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(200), nullable=False)
    institution_name = db.Column(db.String(200), nullable=True)
    site_classification = db.Column(db.String(20), nullable=False, default="primary")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "institution_name": self.institution_name,
            "site_classification": self.site_classification,
        }
