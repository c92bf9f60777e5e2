"""
Shared pytest fixtures for the RMS test suite.

Provides:
    - app: Flask application (session-scoped, in-memory SQLite)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - catalog: Program, EPAs, faculty, residents and requirements via the ORM
    - add_assessment: ORM factory for EpaAssessment rows
    - memory_store: InMemoryAssessmentStore with the same catalog
"""

from datetime import datetime, timedelta, timezone

import pytest

from rms import create_app
from rms.models import db as _db
from rms.models.assessment import EpaAssessment
from rms.models.epa import Epa, EpaRequirement
from rms.models.program import ClinicalSite, Faculty, Program, Resident, User
from rms.services.memory_store import InMemoryAssessmentStore

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def at(days):
    """BASE_TIME shifted by ``days``."""
    return BASE_TIME + timedelta(days=days)


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── ORM catalog ──────────────────────────────────────────────────────────


def _user(uid, first, last):
    u = User(id=uid, first_name=first, last_name=last, email=f"{uid}@example.org")
    _db.session.add(u)
    return u


@pytest.fixture()
def catalog():
    """Program "prog-1" with three active EPAs and one inactive.

    Residents: res-3 (PGY-3, Adams), res-5 (PGY-5, Baker).
    Faculty: fac-1 (Young), fac-2 (Zimmer).
    Requirements: EPA 1 → PGY-3 5@L3 and graduation 8@L4; EPA 2 → graduation 2@L2.
    """
    _db.session.add(Program(id="prog-1", name="Test Surgery", specialty_code="general_surgery"))
    # Display order deliberately differs from id order.
    for epa_id, order, short in ((1, 2, "Lap Chole"), (2, 1, "Preop"), (3, 3, "Hernia")):
        _db.session.add(Epa(
            id=epa_id, specialty_code="general_surgery", epa_number=f"GS-{epa_id:02d}",
            title=f"{short} title", short_name=short, category="intraoperative",
            display_order=order,
        ))
    _db.session.add(Epa(id=4, specialty_code="general_surgery", epa_number="GS-04",
                        title="Retired", short_name="Retired", category="professional",
                        display_order=4, is_active=False))
    _db.session.add(ClinicalSite(id="site-1", name="Main OR", site_classification="primary"))

    _user("u-fac-1", "Ada", "Young")
    _user("u-fac-2", "Ben", "Zimmer")
    _user("u-res-3", "Cara", "Adams")
    _user("u-res-5", "Dan", "Baker")
    _db.session.flush()
    _db.session.add(Faculty(id="fac-1", user_id="u-fac-1", program_id="prog-1"))
    _db.session.add(Faculty(id="fac-2", user_id="u-fac-2", program_id="prog-1"))
    _db.session.add(Resident(id="res-3", user_id="u-res-3", program_id="prog-1", pgy_level=3))
    _db.session.add(Resident(id="res-5", user_id="u-res-5", program_id="prog-1", pgy_level=5))

    _db.session.add(EpaRequirement(program_id="prog-1", epa_id=1, pgy_level=3,
                                   min_count=5, min_level=3))
    _db.session.add(EpaRequirement(program_id="prog-1", epa_id=1, pgy_level=None,
                                   min_count=8, min_level=4))
    _db.session.add(EpaRequirement(program_id="prog-1", epa_id=2, pgy_level=None,
                                   min_count=2, min_level=2))
    _db.session.commit()
    return {"program_id": "prog-1", "residents": ["res-3", "res-5"], "faculty": ["fac-1", "fac-2"]}


@pytest.fixture()
def add_assessment():
    """Factory: add_assessment(resident_id, epa_id, level, days=0, **overrides)."""
    counter = {"n": 0}

    def _make(resident_id, epa_id, level, days=0, assessor_id="fac-1",
              acknowledged=False, deleted=False, **kw):
        counter["n"] += 1
        row = EpaAssessment(
            id=kw.pop("id", f"a-{counter['n']:03d}"),
            resident_id=resident_id,
            assessor_id=assessor_id,
            epa_id=epa_id,
            entrustment_level=level,
            assessment_date=at(days),
            submission_date=at(days),
            acknowledged=acknowledged,
            acknowledged_at=at(days) if acknowledged else None,
            **kw,
        )
        if deleted:
            row.soft_delete(by="fac-1", at=at(days + 1))
        _db.session.add(row)
        _db.session.commit()
        return row.id

    return _make


# ── In-memory store ──────────────────────────────────────────────────────


@pytest.fixture()
def memory_store():
    """Same shape as ``catalog`` but held in an InMemoryAssessmentStore."""
    store = InMemoryAssessmentStore()
    store.add_program("prog-1")
    store.add_epa(1, display_order=2, short_name="Lap Chole")
    store.add_epa(2, display_order=1, short_name="Preop")
    store.add_epa(3, display_order=3, short_name="Hernia")
    store.add_epa(4, display_order=4, short_name="Retired", is_active=False)
    store.add_assessor("fac-1")
    store.add_assessor("fac-2")
    store.add_site("site-1")
    store.add_resident("res-3", "prog-1", 3)
    store.add_resident("res-5", "prog-1", 5)
    store.add_requirement("prog-1", 1, 3, 5, 3)
    store.add_requirement("prog-1", 1, None, 8, 4)
    store.add_requirement("prog-1", 2, None, 2, 2)
    return store
