"""
``AssessmentStore`` over the Flask-SQLAlchemy models.

Transaction policy: writes commit inside the store; the services above never
touch the session. ``OperationalError`` / ``DisconnectionError`` roll the
session back and surface as ``StoreUnavailableError``; ``IntegrityError`` rolls
back and surfaces as ``ValidationError``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy import or_, select
from sqlalchemy.exc import DisconnectionError, IntegrityError, OperationalError

from rms.core.exceptions import StoreUnavailableError, ValidationError
from rms.models.assessment import EpaAssessment
from rms.models.epa import Epa, EpaRequirement
from rms.models.program import ClinicalSite, Faculty, Program, Resident
from rms.services.requirements import pick_requirement
from rms.services.store import (
    AssessmentRecord,
    AssessmentStore,
    EpaRecord,
    NewAssessment,
    RequirementRecord,
    ResidentRecord,
)
from rms.utils.helpers import as_utc

logger = logging.getLogger(__name__)


def epa_record(epa: Epa) -> EpaRecord:
    return EpaRecord(
        id=epa.id,
        number=epa.epa_number,
        title=epa.title,
        short_name=epa.short_name,
        category=epa.category,
        display_order=epa.display_order,
    )


def assessment_record(row: EpaAssessment) -> AssessmentRecord:
    return AssessmentRecord(
        id=row.id,
        resident_id=row.resident_id,
        assessor_id=row.assessor_id,
        epa_id=row.epa_id,
        level=row.entrustment_level,
        assessed_at=as_utc(row.assessment_date),
        submitted_at=as_utc(row.submission_date),
        clinical_site_id=row.clinical_site_id,
        case_urgency=row.case_urgency,
        case_complexity=row.case_complexity,
        patient_asa_class=row.patient_asa_class,
        procedure_duration_min=row.procedure_duration_min,
        complications=row.complications,
        location_type=row.location_type,
        location_details=row.location_details,
        narrative=row.narrative_feedback,
        entry_method=row.entry_method,
        acknowledged=bool(row.acknowledged),
        acknowledged_at=as_utc(row.acknowledged_at),
    )


class SqlAssessmentStore(AssessmentStore):

    def __init__(self, session):
        self.session = session

    @contextmanager
    def _guarded(self, operation):
        try:
            yield
        except (OperationalError, DisconnectionError) as exc:
            self.session.rollback()
            logger.exception("Assessment store unavailable during %s", operation)
            raise StoreUnavailableError() from exc
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning("Integrity error during %s: %s", operation, exc.orig)
            raise ValidationError("Assessment conflicts with stored data",
                                  details={"assessment": str(exc.orig)}) from exc

    # ── Reads ───────────────────────────────────────────────────────────

    def get_resident(self, resident_id):
        with self._guarded("get_resident"):
            row = self.session.get(Resident, resident_id)
        if row is None:
            return None
        return ResidentRecord(
            id=row.id,
            program_id=row.program_id,
            training_level=row.pgy_level,
            status=row.status,
        )

    def list_active_epas(self, program_id):
        stmt = (
            select(Epa)
            .join(Program, Program.specialty_code == Epa.specialty_code)
            .where(Program.id == program_id, Epa.is_active.is_(True))
            .order_by(Epa.display_order)
        )
        with self._guarded("list_active_epas"):
            rows = self.session.execute(stmt).scalars().all()
        return [epa_record(e) for e in rows]

    def get_epa(self, epa_id):
        with self._guarded("get_epa"):
            row = self.session.get(Epa, epa_id)
        if row is None or not row.is_active:
            return None
        return epa_record(row)

    def assessor_exists(self, assessor_id):
        with self._guarded("assessor_exists"):
            return self.session.get(Faculty, assessor_id) is not None

    def clinical_site_exists(self, site_id):
        with self._guarded("clinical_site_exists"):
            return self.session.get(ClinicalSite, site_id) is not None

    def list_assessments(self, resident_id=None, epa_id=None, assessor_id=None, limit=None):
        stmt = select(EpaAssessment).where(EpaAssessment.deleted_at.is_(None))
        if resident_id is not None:
            stmt = stmt.where(EpaAssessment.resident_id == resident_id)
        if epa_id is not None:
            stmt = stmt.where(EpaAssessment.epa_id == epa_id)
        if assessor_id is not None:
            stmt = stmt.where(EpaAssessment.assessor_id == assessor_id)
        stmt = stmt.order_by(EpaAssessment.assessment_date.desc(), EpaAssessment.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._guarded("list_assessments"):
            rows = self.session.execute(stmt).scalars().all()
        return [assessment_record(r) for r in rows]

    def _live_row(self, assessment_id):
        row = self.session.get(EpaAssessment, assessment_id)
        if row is None or row.is_deleted:
            return None
        return row

    def get_assessment(self, assessment_id):
        with self._guarded("get_assessment"):
            row = self._live_row(assessment_id)
        return assessment_record(row) if row is not None else None

    def list_requirements(self, program_id):
        stmt = select(EpaRequirement).where(EpaRequirement.program_id == program_id)
        with self._guarded("list_requirements"):
            rows = self.session.execute(stmt).scalars().all()
        return [
            RequirementRecord(
                program_id=r.program_id,
                epa_id=r.epa_id,
                training_level=r.pgy_level,
                target_count=r.min_count,
                target_level=r.min_level,
            )
            for r in rows
        ]

    def resolve_requirement(self, program_id, epa_id, training_level):
        stmt = select(EpaRequirement).where(
            EpaRequirement.program_id == program_id,
            EpaRequirement.epa_id == epa_id,
            or_(EpaRequirement.pgy_level == training_level, EpaRequirement.pgy_level.is_(None)),
        )
        with self._guarded("resolve_requirement"):
            rows = self.session.execute(stmt).scalars().all()
        return pick_requirement(
            [
                RequirementRecord(r.program_id, r.epa_id, r.pgy_level, r.min_count, r.min_level)
                for r in rows
            ],
            epa_id,
            training_level,
        )

    # ── Writes ──────────────────────────────────────────────────────────

    def insert_assessment(self, new: NewAssessment) -> str:
        row = EpaAssessment(
            resident_id=new.resident_id,
            assessor_id=new.assessor_id,
            epa_id=new.epa_id,
            entrustment_level=new.level,
            assessment_date=new.assessed_at,
            submission_date=new.submitted_at,
            clinical_site_id=new.clinical_site_id,
            case_urgency=new.case_urgency,
            case_complexity=new.case_complexity,
            patient_asa_class=new.patient_asa_class,
            procedure_duration_min=new.procedure_duration_min,
            complications=new.complications,
            location_type=new.location_type,
            location_details=new.location_details,
            narrative_feedback=new.narrative,
            entry_method=new.entry_method,
            acknowledged=False,
        )
        with self._guarded("insert_assessment"):
            self.session.add(row)
            self.session.commit()
        return row.id

    def set_acknowledged(self, assessment_id, at):
        with self._guarded("set_acknowledged"):
            row = self._live_row(assessment_id)
            if row is None:
                return None
            previous = as_utc(row.acknowledged_at)
            row.acknowledged = True
            row.acknowledged_at = previous if previous is not None and previous > at else at
            self.session.commit()
            return assessment_record(row)

    def soft_delete_assessment(self, assessment_id, deleted_by, at):
        with self._guarded("soft_delete_assessment"):
            row = self._live_row(assessment_id)
            if row is None:
                return False
            row.soft_delete(by=deleted_by, at=at)
            self.session.commit()
            return True
