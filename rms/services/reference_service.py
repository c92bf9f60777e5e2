"""
Reference-data queries — users, residents, faculty, EPAs, clinical sites — and
the display fields joined onto assessment listings.

These read the ORM directly; they have no business rules and are not part of
the ``AssessmentStore`` boundary. The assessment listing, detail and inbox
routes use ``describe_assessments`` for names, so they need the SQL database
even when ``create_app`` is given another ``store_factory``. Progress and the
write path go through the store only.
"""

import logging

from sqlalchemy import func, select

from rms.core.exceptions import NotFoundError
from rms.models import db
from rms.models.assessment import EpaAssessment
from rms.models.epa import ENTRUSTMENT_DESCRIPTIONS, Epa
from rms.models.program import ClinicalSite, Faculty, Resident, User, format_training_level
from rms.utils.helpers import isoformat

logger = logging.getLogger(__name__)


def list_residents(status="active"):
    """Residents with ``status``, senior first, then by last name."""
    stmt = (
        select(Resident)
        .join(User, User.id == Resident.user_id)
        .where(Resident.status == status)
        .order_by(Resident.pgy_level.desc(), User.last_name, User.first_name)
    )
    residents = db.session.execute(stmt).scalars().all()

    counts = dict(
        db.session.execute(
            select(EpaAssessment.resident_id, func.count(EpaAssessment.id))
            .where(EpaAssessment.deleted_at.is_(None))
            .group_by(EpaAssessment.resident_id)
        ).all()
    )
    result = []
    for r in residents:
        d = r.to_dict()
        d["assessment_count"] = counts.get(r.id, 0)
        result.append(d)
    return result


def list_faculty():
    stmt = (
        select(Faculty)
        .join(User, User.id == Faculty.user_id)
        .where(Faculty.is_active.is_(True))
        .order_by(User.last_name, User.first_name)
    )
    return [f.to_dict() for f in db.session.execute(stmt).scalars().all()]


def list_epas(specialty_code, category=None):
    stmt = (
        select(Epa)
        .where(Epa.specialty_code == specialty_code, Epa.is_active.is_(True))
        .order_by(Epa.display_order)
    )
    if category is not None:
        stmt = stmt.where(Epa.category == category)
    return [e.to_dict() for e in db.session.execute(stmt).scalars().all()]


def list_clinical_sites():
    stmt = (
        select(ClinicalSite)
        .where(ClinicalSite.is_active.is_(True))
        .order_by(ClinicalSite.site_classification, ClinicalSite.name)
    )
    return [s.to_dict() for s in db.session.execute(stmt).scalars().all()]


def entrustment_levels():
    return [
        {"level": level, "name": name, "description": description}
        for level, (name, description) in sorted(ENTRUSTMENT_DESCRIPTIONS.items())
    ]


# ── People directory ─────────────────────────────────────────────────────


def _memberships(user_ids):
    """Resident and active faculty rows per user id."""
    residents, faculty = {}, {}
    if user_ids:
        for r in db.session.execute(
                select(Resident).where(Resident.user_id.in_(user_ids))).scalars():
            residents[r.user_id] = r
        for f in db.session.execute(
                select(Faculty).where(Faculty.user_id.in_(user_ids),
                                      Faculty.is_active.is_(True))).scalars():
            faculty[f.user_id] = f
    return residents, faculty


def _roles(resident, faculty):
    roles = []
    if resident is not None:
        roles.append({"role": "resident", "program_id": resident.program_id})
    if faculty is not None:
        roles.append({"role": "faculty", "program_id": faculty.program_id})
    return roles


def _user_dict(user):
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "photo_url": user.photo_url,
    }


def list_users():
    """Active users by last name, each with its role names."""
    stmt = (
        select(User)
        .where(User.is_active.is_(True))
        .order_by(User.last_name, User.first_name)
    )
    users = db.session.execute(stmt).scalars().all()
    residents, faculty = _memberships([u.id for u in users])

    result = []
    for u in users:
        roles = [r["role"] for r in _roles(residents.get(u.id), faculty.get(u.id))]
        d = _user_dict(u)
        d["role"] = roles[0] if roles else None
        d["roles"] = roles
        result.append(d)
    return result


def get_user(user_id):
    """One active user with roles and the linked resident / faculty record.

    Raises:
        NotFoundError: unknown or inactive user.
    """
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        raise NotFoundError(resource="User", resource_id=user_id)

    residents, faculty = _memberships([user.id])
    resident, fac = residents.get(user.id), faculty.get(user.id)
    roles = _roles(resident, fac)

    d = _user_dict(user)
    d["role"] = roles[0]["role"] if roles else None
    d["roles"] = roles
    d["resident"] = None if resident is None else {
        "id": resident.id,
        "pgy_level": format_training_level(resident.pgy_level),
        "status": resident.status,
        "medical_school": resident.medical_school,
    }
    d["faculty"] = None if fac is None else {
        "id": fac.id,
        "rank": fac.rank,
        "is_core_faculty": bool(fac.is_core_faculty),
    }
    return d


# ── Assessment display fields ────────────────────────────────────────────


def _names_by_id(model, ids):
    if not ids:
        return {}
    stmt = (
        select(model.id, User.first_name, User.last_name)
        .join(User, User.id == model.user_id)
        .where(model.id.in_(ids))
    )
    return {row.id: (row.first_name, row.last_name) for row in db.session.execute(stmt)}


def describe_assessments(records):
    """Render ``AssessmentRecord``s with EPA, people and site names attached."""
    records = list(records)
    epa_ids = {r.epa_id for r in records}
    site_ids = {r.clinical_site_id for r in records if r.clinical_site_id}

    epas = {}
    if epa_ids:
        epas = {e.id: e for e in db.session.execute(
            select(Epa).where(Epa.id.in_(epa_ids))).scalars()}
    sites = {}
    if site_ids:
        sites = {s.id: s for s in db.session.execute(
            select(ClinicalSite).where(ClinicalSite.id.in_(site_ids))).scalars()}
    assessors = _names_by_id(Faculty, {r.assessor_id for r in records})
    residents = _names_by_id(Resident, {r.resident_id for r in records})

    out = []
    for r in records:
        epa = epas.get(r.epa_id)
        site = sites.get(r.clinical_site_id)
        a_first, a_last = assessors.get(r.assessor_id, (None, None))
        r_first, r_last = residents.get(r.resident_id, (None, None))
        out.append({
            "id": r.id,
            "resident_id": r.resident_id,
            "resident_first_name": r_first,
            "resident_last_name": r_last,
            "assessor_id": r.assessor_id,
            "assessor_first_name": a_first,
            "assessor_last_name": a_last,
            "epa_id": r.epa_id,
            "epa_number": epa.epa_number if epa else None,
            "epa_title": epa.title if epa else None,
            "epa_short_name": epa.short_name if epa else None,
            "epa_category": epa.category if epa else None,
            "entrustment_level": r.level,
            "assessment_date": isoformat(r.assessed_at),
            "submission_date": isoformat(r.submitted_at),
            "clinical_site_id": r.clinical_site_id,
            "site_name": site.name if site else None,
            "case_urgency": r.case_urgency,
            "case_complexity": r.case_complexity,
            "patient_asa_class": r.patient_asa_class,
            "procedure_duration_min": r.procedure_duration_min,
            "complications": r.complications,
            "location_type": r.location_type,
            "location_details": r.location_details,
            "narrative_feedback": r.narrative,
            "entry_method": r.entry_method,
            "acknowledged": r.acknowledged,
            "acknowledged_at": isoformat(r.acknowledged_at),
        })
    return out


def resident_summary(resident_record):
    """Small header block for progress responses."""
    return {
        "id": resident_record.id,
        "program_id": resident_record.program_id,
        "pgy_level": format_training_level(resident_record.training_level),
    }
