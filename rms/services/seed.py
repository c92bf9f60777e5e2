"""
Demo data for a General Surgery residency (``flask seed-demo``).

Loads the 18 General Surgery EPAs, one program, its clinical sites, faculty,
residents PGY-1..5, a handful of assessments and a requirement catalog with
level-specific rows plus a graduation row per EPA.

Idempotent: if the demo program already exists nothing is written.
"""

import logging
from datetime import datetime, timezone

from rms.models import db
from rms.models.assessment import EpaAssessment
from rms.models.epa import Epa, EpaRequirement
from rms.models.program import ClinicalSite, Faculty, Program, Resident, User

logger = logging.getLogger(__name__)

PROGRAM_ID = "prog-mgh-surg"
SPECIALTY = "general_surgery"

# (id, title, short name, category)
GENERAL_SURGERY_EPAS = [
    (1, "Preoperative Assessment and Informed Consent", "Preop Assessment", "preoperative"),
    (2, "Preoperative Planning", "Preop Planning", "preoperative"),
    (3, "Appendectomy (Laparoscopic or Open)", "Appendectomy", "intraoperative"),
    (4, "Inguinal Hernia Repair", "Hernia Repair", "intraoperative"),
    (5, "Laparoscopic Cholecystectomy", "Lap Chole", "intraoperative"),
    (6, "Bowel Resection", "Bowel Resection", "intraoperative"),
    (7, "Soft Tissue Mass Excision", "Soft Tissue", "intraoperative"),
    (8, "Central Venous Catheter Insertion", "Central Line", "intraoperative"),
    (9, "Trauma Laparotomy", "Trauma Lap", "intraoperative"),
    (10, "Create Intestinal Stoma", "Stoma Creation", "intraoperative"),
    (11, "Postoperative Management", "Postop Mgmt", "postoperative"),
    (12, "Recognition and Management of Complications", "Complications", "postoperative"),
    (13, "Multi-day Patient Management", "Continuity Care", "longitudinal"),
    (14, "End-of-Life Care", "End of Life", "longitudinal"),
    (15, "Care Transitions and Handoffs", "Handoffs", "longitudinal"),
    (16, "Leading a Healthcare Team", "Team Leadership", "professional"),
    (17, "Systems-Based Practice and Patient Safety", "Patient Safety", "professional"),
    (18, "Practice-Based Learning and Quality Improvement", "QI/PBLI", "professional"),
]

CLINICAL_SITES = [
    ("site-mgh-main", "MGH Main Campus", "Massachusetts General Hospital", "primary"),
    ("site-mgh-or", "MGH Surgical OR Suite", "Massachusetts General Hospital", "primary"),
    ("site-mgh-sicu", "MGH Surgical ICU", "Massachusetts General Hospital", "primary"),
    ("site-mgh-clinic", "MGH Surgical Clinic", "Massachusetts General Hospital", "primary"),
    ("site-bwh-or", "BWH Surgical OR Suite", "Brigham and Women's Hospital", "affiliate"),
    ("site-va-surg", "VA Boston Surgical Service", "VA Boston Healthcare System", "va"),
    ("site-nwh-surg", "Newton-Wellesley Surgical Service", "Newton-Wellesley Hospital", "community"),
]

# (faculty id, first, last, rank, core)
FACULTY = [
    ("fac-martinez", "Julia", "Martinez", "associate_professor", True),
    ("fac-patel", "Rajesh", "Patel", "professor", True),
    ("fac-thompson", "Lisa", "Thompson", "assistant_professor", True),
    ("fac-kim", "David", "Kim", "associate_professor", True),
    ("fac-williams", "Robert", "Williams", "professor", True),
]

# (resident id, first, last, pgy, medical school)
RESIDENTS = [
    ("res-chen", "Sarah", "Chen", 5, "Harvard Medical School"),
    ("res-rodriguez", "Michael", "Rodriguez", 4, "Stanford University"),
    ("res-johnson", "Emma", "Johnson", 3, "Johns Hopkins"),
    ("res-pham", "Kevin", "Pham", 2, "UCSF"),
    ("res-oconnor", "Megan", "O'Connor", 1, "Yale"),
    ("res-singh", "Arjun", "Singh", 1, "Columbia"),
]

# (id, resident, assessor, epa, level, date, site, urgency, asa, duration, location, details, method, ack)
ASSESSMENTS = [
    ("assess-001", "res-rodriguez", "fac-patel", 5, 3, "2024-10-15T14:30:00", "site-mgh-or",
     "elective", 2, 55, "or", "OR 5", "mobile_ios", True),
    ("assess-002", "res-rodriguez", "fac-martinez", 5, 3, "2024-11-03T09:15:00", "site-mgh-or",
     "urgent", 2, 68, "or", "OR 3", "mobile_ios", True),
    ("assess-003", "res-rodriguez", "fac-patel", 5, 4, "2024-12-10T15:45:00", "site-mgh-or",
     "elective", 3, 72, "or", "OR 5", "mobile_ios", True),
    ("assess-004", "res-rodriguez", "fac-thompson", 5, 4, "2025-01-20T11:00:00", "site-bwh-or",
     "elective", 2, 48, "or", "OR 8", "web", False),
    ("assess-005", "res-rodriguez", "fac-patel", 3, 4, "2024-11-20T02:30:00", "site-mgh-or",
     "emergent", 2, 35, "or", "OR 2", "mobile_ios", True),
    ("assess-006", "res-rodriguez", "fac-martinez", 4, 3, "2024-12-05T08:00:00", "site-mgh-or",
     "elective", 2, 90, "or", "OR 4", "mobile_android", True),
    ("assess-010", "res-johnson", "fac-martinez", 5, 3, "2024-11-12T14:00:00", "site-bwh-or",
     "elective", 2, 65, "or", "OR 6", "mobile_ios", True),
    ("assess-011", "res-johnson", "fac-kim", 6, 2, "2024-12-01T10:30:00", "site-mgh-or",
     "urgent", 3, 180, "or", "OR 1", "mobile_ios", True),
    ("assess-012", "res-johnson", "fac-patel", 8, 4, "2025-01-15T16:00:00", "site-mgh-sicu",
     "urgent", 3, 15, "icu", "SICU Bed 4", "web", True),
    ("assess-021", "res-oconnor", "fac-thompson", 1, 3, "2024-10-05T09:00:00", "site-mgh-clinic",
     "elective", 1, 30, "clinic", "Surgical Clinic Room 4", "web", True),
    ("assess-022", "res-oconnor", "fac-kim", 11, 2, "2024-11-20T07:00:00", "site-mgh-main",
     "elective", 2, None, "ward", "Ellison 12", "mobile_ios", False),
]

# (epa, pgy or None for graduation, min count, min level)
LEVEL_REQUIREMENTS = [
    (1, 1, 2, 2), (3, 1, 2, 2), (11, 1, 3, 2),
    (3, 2, 3, 3), (4, 2, 2, 3),
    (3, 3, 3, 3), (4, 3, 3, 3), (5, 3, 3, 3),
    (5, 4, 5, 4), (6, 4, 3, 3), (8, 4, 3, 4),
]
GRADUATION_MIN_COUNT = 5
GRADUATION_MIN_LEVEL = 4


def _ts(text):
    return datetime.fromisoformat(text).replace(tzinfo=timezone.utc)


def _email(first, last):
    return f"{first[0]}{last}".lower().replace("'", "") + "@partners.org"


def seed_demo():
    """Insert the demo dataset. Returns a count per entity, empty when skipped."""
    if db.session.get(Program, PROGRAM_ID) is not None:
        logger.info("Demo program %s already present — skipping seed", PROGRAM_ID)
        return {}

    db.session.add(Program(
        id=PROGRAM_ID, name="MGH General Surgery Residency",
        specialty_code=SPECIALTY, acgme_program_id="1234567890",
    ))
    for epa_id, title, short, category in GENERAL_SURGERY_EPAS:
        db.session.add(Epa(
            id=epa_id, specialty_code=SPECIALTY, epa_number=f"GS-{epa_id:02d}",
            title=title, short_name=short, category=category, display_order=epa_id,
        ))
    for site_id, name, institution, classification in CLINICAL_SITES:
        db.session.add(ClinicalSite(
            id=site_id, name=name, institution_name=institution,
            site_classification=classification,
        ))
    for fac_id, first, last, rank, core in FACULTY:
        user_id = "user-" + fac_id.split("-", 1)[1]
        db.session.add(User(id=user_id, first_name=first, last_name=last,
                            email=_email(first, last)))
        db.session.add(Faculty(id=fac_id, user_id=user_id, program_id=PROGRAM_ID,
                               rank=rank, is_core_faculty=core))
    for res_id, first, last, pgy, school in RESIDENTS:
        user_id = "user-" + res_id.split("-", 1)[1]
        db.session.add(User(id=user_id, first_name=first, last_name=last, email=_email(first, last)))
        db.session.add(Resident(id=res_id, user_id=user_id, program_id=PROGRAM_ID,
                                pgy_level=pgy, medical_school=school))
    db.session.flush()

    for (a_id, res, fac, epa, level, when, site, urgency, asa, duration,
         location, details, method, ack) in ASSESSMENTS:
        db.session.add(EpaAssessment(
            id=a_id, resident_id=res, assessor_id=fac, epa_id=epa,
            entrustment_level=level, assessment_date=_ts(when), submission_date=_ts(when),
            clinical_site_id=site, case_urgency=urgency, patient_asa_class=asa,
            procedure_duration_min=duration, location_type=location,
            location_details=details, entry_method=method, acknowledged=ack,
            acknowledged_at=_ts(when) if ack else None,
        ))

    for epa, pgy, count, level in LEVEL_REQUIREMENTS:
        db.session.add(EpaRequirement(program_id=PROGRAM_ID, epa_id=epa, pgy_level=pgy,
                                      min_count=count, min_level=level))
    for epa_id, *_ in GENERAL_SURGERY_EPAS:
        db.session.add(EpaRequirement(program_id=PROGRAM_ID, epa_id=epa_id, pgy_level=None,
                                      min_count=GRADUATION_MIN_COUNT,
                                      min_level=GRADUATION_MIN_LEVEL))
    db.session.commit()

    counts = {
        "epas": len(GENERAL_SURGERY_EPAS),
        "clinical_sites": len(CLINICAL_SITES),
        "faculty": len(FACULTY),
        "residents": len(RESIDENTS),
        "assessments": EpaAssessment.query_active().count(),
        "requirements": len(LEVEL_REQUIREMENTS) + len(GENERAL_SURGERY_EPAS),
    }
    logger.info("Demo data seeded: %s", counts)
    return counts
