"""
RMS - Residency Management System
Tests — assessment API: submit, list, detail, acknowledge, soft delete.
"""

from datetime import datetime

import pytest

from rms.models import db as _db
from rms.models.assessment import EpaAssessment


def _payload(**kw):
    data = {"resident_id": "res-3", "faculty_id": "fac-1", "epa_id": 1, "entrustment_level": 3}
    data.update(kw)
    return data


class TestSubmit:
    def test_create(self, client, catalog):
        res = client.post("/api/v1/assessments", json=_payload(
            observation_date="2025-02-03", case_complexity="moderate",
            procedure_duration_min=0, complications=False, clinical_site_id="site-1",
        ))
        assert res.status_code == 201
        body = res.get_json()
        assert body["message"] == "Assessment created"

        row = _db.session.get(EpaAssessment, body["id"])
        assert row.assessor_id == "fac-1"
        assert row.entrustment_level == 3
        assert row.acknowledged is False
        assert row.entry_method == "web"
        assert row.procedure_duration_min == 0
        assert row.complications is False
        assert row.case_complexity == "moderate"
        assert row.assessment_date.replace(tzinfo=None) == datetime(2025, 2, 3)

    def test_missing_required(self, client, catalog):
        res = client.post("/api/v1/assessments", json={"resident_id": "res-3"})
        assert res.status_code == 422
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_REQUIRED"
        assert set(body["details"]) == {"assessor_id", "epa_id", "entrustment_level"}
        assert _db.session.query(EpaAssessment).count() == 0

    def test_out_of_range_level(self, client, catalog):
        res = client.post("/api/v1/assessments", json=_payload(entrustment_level=6))
        assert res.status_code == 422
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_non_json_body(self, client, catalog):
        res = client.post("/api/v1/assessments", data="not json", content_type="text/plain")
        assert res.status_code == 400

    def test_json_array_body(self, client, catalog):
        res = client.post("/api/v1/assessments", json=[1, 2])
        assert res.status_code == 400

    @pytest.mark.parametrize("override", [
        {"resident_id": "nobody"},
        {"faculty_id": "fac-x"},
        {"epa_id": 4},
        {"clinical_site_id": "no-such-site"},
    ])
    def test_unknown_reference(self, client, catalog, override):
        res = client.post("/api/v1/assessments", json=_payload(**override))
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"
        assert _db.session.query(EpaAssessment).count() == 0


class TestListAndDetail:
    def test_list_filters(self, client, catalog, add_assessment):
        add_assessment("res-3", 1, 3, days=1)
        add_assessment("res-3", 2, 4, days=2, assessor_id="fac-2")
        add_assessment("res-5", 1, 5, days=3)
        add_assessment("res-5", 1, 5, days=4, deleted=True)

        all_rows = client.get("/api/v1/assessments").get_json()
        assert len(all_rows) == 3
        assert all_rows[0]["resident_id"] == "res-5"

        by_resident = client.get("/api/v1/assessments?resident_id=res-3").get_json()
        assert {a["epa_id"] for a in by_resident} == {1, 2}

        by_faculty = client.get("/api/v1/assessments?faculty_id=fac-2").get_json()
        assert [a["assessor_id"] for a in by_faculty] == ["fac-2"]

        by_epa = client.get("/api/v1/assessments?epa_id=1&limit=1").get_json()
        assert len(by_epa) == 1
        assert by_epa[0]["epa_number"] == "GS-01"

    def test_bad_limit(self, client, catalog):
        assert client.get("/api/v1/assessments?limit=zero").status_code == 422
        assert client.get("/api/v1/assessments?limit=0").status_code == 422

    def test_bad_epa_filter(self, client, catalog):
        assert client.get("/api/v1/assessments?epa_id=x").status_code == 422

    def test_detail(self, client, catalog, add_assessment):
        aid = add_assessment("res-3", 1, 4, narrative_feedback="Good case.")
        res = client.get(f"/api/v1/assessments/{aid}")
        assert res.status_code == 200
        body = res.get_json()
        assert body["narrative_feedback"] == "Good case."
        assert body["epa_title"] == "Lap Chole title"

    def test_detail_missing_and_deleted(self, client, catalog, add_assessment):
        aid = add_assessment("res-3", 1, 4, deleted=True)
        assert client.get(f"/api/v1/assessments/{aid}").status_code == 404
        assert client.get("/api/v1/assessments/missing").status_code == 404


class TestAcknowledge:
    def test_acknowledge(self, client, catalog, add_assessment):
        aid = add_assessment("res-3", 1, 3)
        res = client.patch(f"/api/v1/assessments/{aid}/acknowledge")
        assert res.status_code == 200
        body = res.get_json()
        assert body["id"] == aid
        assert body["acknowledged"] is True
        assert body["acknowledged_at"] is not None
        unacked = client.get("/api/v1/residents/res-3/unacknowledged").get_json()
        assert unacked == []

    def test_repeat_is_idempotent_and_monotonic(self, client, catalog, add_assessment):
        aid = add_assessment("res-3", 1, 3)
        first = client.patch(f"/api/v1/assessments/{aid}/acknowledge").get_json()
        second = client.patch(f"/api/v1/assessments/{aid}/acknowledge")
        assert second.status_code == 200
        body = second.get_json()
        assert body["acknowledged"] is True
        assert body["acknowledged_at"] >= first["acknowledged_at"]

    def test_missing(self, client, catalog):
        res = client.patch("/api/v1/assessments/missing/acknowledge")
        assert res.status_code == 404
        assert res.get_json()["error"] == "Assessment id=missing not found"

    def test_soft_deleted(self, client, catalog, add_assessment):
        aid = add_assessment("res-3", 1, 3, deleted=True)
        assert client.patch(f"/api/v1/assessments/{aid}/acknowledge").status_code == 404


class TestDelete:
    def test_soft_delete(self, client, catalog, add_assessment):
        aid = add_assessment("res-3", 1, 5)
        res = client.delete(f"/api/v1/assessments/{aid}", json={"deleted_by": "fac-1"})
        assert res.status_code == 204

        row = _db.session.get(EpaAssessment, aid)
        assert row.is_deleted
        assert row.deleted_by == "fac-1"

        progress = client.get("/api/v1/residents/res-3/progress").get_json()
        assert progress["stats"]["total_assessments"] == 0

    def test_delete_twice(self, client, catalog, add_assessment):
        aid = add_assessment("res-3", 1, 5)
        assert client.delete(f"/api/v1/assessments/{aid}").status_code == 204
        assert client.delete(f"/api/v1/assessments/{aid}").status_code == 404
