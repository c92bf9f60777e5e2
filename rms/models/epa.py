"""
RMS - Residency Management System
EPA reference data and the requirement catalog.

Models:
    - Epa: a fixed competency activity within a specialty
    - EpaRequirement: the passing bar for one EPA at one PGY level, or at
      graduation when ``pgy_level`` is NULL

EPAs are never deleted, only deactivated. ``display_order`` is unique per
specialty and defines iteration order for progress output.
"""

from rms.models import db


# ── Constants ────────────────────────────────────────────────────────────────

EPA_CATEGORIES = ("preoperative", "intraoperative", "postoperative", "longitudinal", "professional")

ENTRUSTMENT_LEVELS = (1, 2, 3, 4, 5)

# level → (short name, description)
ENTRUSTMENT_DESCRIPTIONS = {
    1: ("Observe", "Allowed to observe only"),
    2: ("Direct", "Allowed to act with direct supervision (supervisor physically present)"),
    3: ("Indirect", "Allowed to act with indirect supervision (supervisor immediately available)"),
    4: ("Available", "Allowed to act independently with distant supervision (supervisor available by phone)"),
    5: ("Independent", "Allowed to supervise others performing this activity"),
}


class Epa(db.Model):
    """An Entrustable Professional Activity."""

    __tablename__ = "epas"
    __table_args__ = (
        db.UniqueConstraint("specialty_code", "display_order", name="uq_epas_specialty_order"),
    )

    id = db.Column(db.Integer, primary_key=True)
    specialty_code = db.Column(db.String(50), nullable=False, index=True)
    epa_number = db.Column(db.String(20), nullable=False)
    title = db.Column(db.String(300), nullable=False)
    short_name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(30), nullable=False, comment="preoperative/intraoperative/...")
    display_order = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self):
        return {
            "id": self.id,
            "epa_number": self.epa_number,
            "title": self.title,
            "short_name": self.short_name,
            "category": self.category,
            "display_order": self.display_order,
        }

    def __repr__(self):
        return f"<Epa {self.epa_number}: {self.short_name}>"


class EpaRequirement(db.Model):
    """Minimum count of assessments at or above ``min_level`` for one EPA.

    ``pgy_level`` NULL marks the graduation row, used only when no row exists
    for the resident's exact level.
    """

    __tablename__ = "epa_requirements"
    __table_args__ = (
        db.UniqueConstraint("program_id", "epa_id", "pgy_level", name="uq_epa_requirements_scope"),
        db.CheckConstraint("min_level BETWEEN 1 AND 5", name="ck_epa_requirements_min_level"),
        db.CheckConstraint("min_count >= 0", name="ck_epa_requirements_min_count"),
    )

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(db.String(36), db.ForeignKey("programs.id", ondelete="CASCADE"),
                           nullable=False, index=True)
    epa_id = db.Column(db.Integer, db.ForeignKey("epas.id"), nullable=False, index=True)
    pgy_level = db.Column(db.Integer, nullable=True, comment="NULL = graduation requirement")
    min_count = db.Column(db.Integer, nullable=False)
    min_level = db.Column(db.Integer, nullable=False)

    def __repr__(self):
        scope = f"PGY-{self.pgy_level}" if self.pgy_level is not None else "graduation"
        return f"<EpaRequirement epa={self.epa_id} {scope}: {self.min_count}@L{self.min_level}>"
