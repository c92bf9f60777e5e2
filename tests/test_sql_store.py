"""
RMS - Residency Management System
Tests — SqlAssessmentStore over the ORM, plus store outages.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from rms.core.exceptions import StoreUnavailableError, ValidationError
from rms.models import db as _db
from rms.models.assessment import EpaAssessment
from rms.models.epa import EpaRequirement
from rms.services.sql_store import SqlAssessmentStore
from rms.services.store import NewAssessment

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def store():
    return SqlAssessmentStore(_db.session)


class TestReads:
    def test_resident_record(self, store, catalog):
        rec = store.get_resident("res-3")
        assert rec.program_id == "prog-1"
        assert rec.training_level == 3
        assert rec.status == "active"
        assert store.get_resident("nobody") is None

    def test_active_epas_ordered(self, store, catalog):
        assert [e.id for e in store.list_active_epas("prog-1")] == [2, 1, 3]

    def test_inactive_epa_hidden(self, store, catalog):
        assert store.get_epa(4) is None
        assert store.get_epa(1).short_name == "Lap Chole"

    def test_assessor_exists(self, store, catalog):
        assert store.assessor_exists("fac-2")
        assert not store.assessor_exists("res-3")

    def test_requirements(self, store, catalog):
        rows = store.list_requirements("prog-1")
        assert len(rows) == 3
        assert store.resolve_requirement("prog-1", 1, 3).target_count == 5
        assert store.resolve_requirement("prog-1", 1, 5).target_count == 8
        assert store.resolve_requirement("prog-1", 3, 3) is None

    def test_resolve_requirement_ignores_other_levels(self, store, catalog):
        _db.session.add(EpaRequirement(program_id="prog-1", epa_id=3, pgy_level=4,
                                       min_count=2, min_level=2))
        _db.session.commit()
        assert store.resolve_requirement("prog-1", 3, 3) is None
        assert store.resolve_requirement("prog-1", 3, 4).target_count == 2

    def test_list_newest_first_without_deleted(self, store, catalog, add_assessment):
        add_assessment("res-3", 1, 2, days=1)
        add_assessment("res-3", 1, 3, days=3)
        add_assessment("res-3", 1, 4, days=2, deleted=True)
        records = store.list_assessments(resident_id="res-3")
        assert [r.level for r in records] == [3, 2]
        assert records[0].assessed_at.tzinfo is not None


class TestWrites:
    def test_insert_unacknowledged(self, store, catalog):
        new = NewAssessment(resident_id="res-3", assessor_id="fac-1", epa_id=1, level=4,
                            assessed_at=T0, submitted_at=T0)
        aid = store.insert_assessment(new)
        rec = store.get_assessment(aid)
        assert rec.level == 4
        assert rec.acknowledged is False
        assert rec.acknowledged_at is None
        assert rec.entry_method == "web"

    def test_acknowledged_at_never_moves_back(self, store, catalog, add_assessment):
        aid = add_assessment("res-3", 1, 3)
        first = store.set_acknowledged(aid, T0)
        assert first.acknowledged is True
        assert first.acknowledged_at == T0

        earlier = store.set_acknowledged(aid, T0 - timedelta(hours=1))
        assert earlier.acknowledged_at == T0

        later = store.set_acknowledged(aid, T0 + timedelta(hours=1))
        assert later.acknowledged_at == T0 + timedelta(hours=1)

    def test_acknowledge_missing_or_deleted(self, store, catalog, add_assessment):
        aid = add_assessment("res-3", 1, 3, deleted=True)
        assert store.set_acknowledged(aid, T0) is None
        assert store.set_acknowledged("missing", T0) is None

    def test_soft_delete(self, store, catalog, add_assessment):
        aid = add_assessment("res-3", 1, 3)
        assert store.soft_delete_assessment(aid, "fac-2", T0) is True
        assert store.get_assessment(aid) is None
        row = _db.session.get(EpaAssessment, aid)
        assert row.deleted_by == "fac-2"
        assert store.soft_delete_assessment(aid, "fac-2", T0) is False

    def test_integrity_error_rolls_back_as_validation_error(self, store, catalog):
        new = NewAssessment(resident_id="res-3", assessor_id="fac-1", epa_id=1, level=3,
                            assessed_at=T0, submitted_at=T0, clinical_site_id="no-such-site")
        with pytest.raises(ValidationError):
            store.insert_assessment(new)
        assert store.list_assessments(resident_id="res-3") == []
        assert store.clinical_site_exists("site-1")
        assert not store.clinical_site_exists("no-such-site")


class TestOutage:
    @staticmethod
    def _broken_session():
        session = MagicMock()
        session.get.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
        return session

    def test_read_raises_store_unavailable(self):
        session = self._broken_session()
        store = SqlAssessmentStore(session)
        with pytest.raises(StoreUnavailableError):
            store.get_resident("res-3")
        session.rollback.assert_called_once()

    def test_list_raises_store_unavailable(self):
        store = SqlAssessmentStore(self._broken_session())
        with pytest.raises(StoreUnavailableError):
            store.list_assessments(resident_id="res-3")

    def test_api_returns_503(self, app, client, monkeypatch):
        broken = SqlAssessmentStore(self._broken_session())
        monkeypatch.setitem(app.extensions, "rms_store_factory", lambda: broken)

        res = client.get("/api/v1/residents/res-3/progress")
        assert res.status_code == 503
        assert res.get_json()["code"] == "ERR_STORE_UNAVAILABLE"

        res = client.patch("/api/v1/assessments/a-001/acknowledge")
        assert res.status_code == 503
