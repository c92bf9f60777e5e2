"""
RMS - Residency Management System
Tests — resident API: roster, progress, unacknowledged inbox.
"""


class TestResidentList:
    def test_senior_first(self, client, catalog, add_assessment):
        add_assessment("res-3", 1, 3)
        res = client.get("/api/v1/residents")
        assert res.status_code == 200
        data = res.get_json()
        assert [r["id"] for r in data] == ["res-5", "res-3"]
        assert data[0]["pgy_level"] == "PGY-5"
        assert data[1]["last_name"] == "Adams"
        assert data[1]["assessment_count"] == 1

    def test_status_filter(self, client, catalog):
        assert client.get("/api/v1/residents?status=leave").get_json() == []
        res = client.get("/api/v1/residents?status=retired")
        assert res.status_code == 422
        assert "status" in res.get_json()["details"]


class TestProgress:
    def test_progress_shape(self, client, catalog, add_assessment):
        add_assessment("res-3", 1, 3, days=0)
        add_assessment("res-3", 1, 4, days=2, assessor_id="fac-2")
        add_assessment("res-3", 2, 2, days=1)
        add_assessment("res-3", 2, 3, days=1)

        res = client.get("/api/v1/residents/res-3/progress")
        assert res.status_code == 200
        body = res.get_json()
        assert body["resident"]["pgy_level"] == "PGY-3"
        assert [p["epa_id"] for p in body["progress"]] == [2, 1, 3]

        epa1 = body["progress"][1]
        assert epa1["short_name"] == "Lap Chole"
        assert epa1["total_assessments"] == 2
        assert (epa1["level_3"], epa1["level_4"]) == (1, 1)
        assert epa1["highest_level"] == 4
        assert epa1["last_assessment"].startswith("2025-01-03T12:00:00")
        assert epa1["requirement"] == {
            "target_count": 5, "target_level": 3, "current_count_at_level": 2,
            "is_met": False, "deficit": 3,
        }

        epa3 = body["progress"][2]
        assert epa3["total_assessments"] == 0
        assert epa3["highest_level"] is None
        assert epa3["last_assessment"] is None
        assert epa3["requirement"] is None

        assert body["stats"] == {
            "total_assessments": 4,
            "epas_assessed": 2,
            "unique_assessors": 2,
            "avg_level": 3.0,
            "requirements_met": 1,
            "requirements_total": 2,
        }

    def test_graduation_fallback_for_pgy5(self, client, catalog):
        body = client.get("/api/v1/residents/res-5/progress").get_json()
        epa1 = next(p for p in body["progress"] if p["epa_id"] == 1)
        assert epa1["requirement"]["target_count"] == 8
        assert epa1["requirement"]["target_level"] == 4

    def test_zero_assessments(self, client, catalog):
        body = client.get("/api/v1/residents/res-5/progress").get_json()
        assert len(body["progress"]) == 3
        assert body["stats"]["avg_level"] == 0
        assert body["stats"]["total_assessments"] == 0

    def test_soft_deleted_excluded(self, client, catalog, add_assessment):
        add_assessment("res-3", 1, 2)
        add_assessment("res-3", 1, 5, days=4, deleted=True)
        body = client.get("/api/v1/residents/res-3/progress").get_json()
        epa1 = next(p for p in body["progress"] if p["epa_id"] == 1)
        assert epa1["total_assessments"] == 1
        assert epa1["level_5"] == 0
        assert epa1["highest_level"] == 2
        assert body["stats"]["avg_level"] == 2.0

    def test_unknown_resident(self, client, catalog):
        res = client.get("/api/v1/residents/nobody/progress")
        assert res.status_code == 404
        body = res.get_json()
        assert body["error"] == "Resident id=nobody not found"
        assert body["code"] == "ERR_NOT_FOUND"

    def test_served_from_injected_store_without_orm_rows(self, app, client, memory_store,
                                                         monkeypatch):
        monkeypatch.setitem(app.extensions, "rms_store_factory", lambda: memory_store)
        res = client.get("/api/v1/residents/res-3/progress")
        assert res.status_code == 200
        body = res.get_json()
        assert body["resident"]["pgy_level"] == "PGY-3"
        assert [p["epa_id"] for p in body["progress"]] == [2, 1, 3]
        assert body["stats"]["requirements_total"] == 2


class TestUnacknowledged:
    def test_newest_first_with_display_fields(self, client, catalog, add_assessment):
        older = add_assessment("res-3", 1, 3, days=1, clinical_site_id="site-1")
        newer = add_assessment("res-3", 2, 2, days=5)
        add_assessment("res-3", 1, 4, days=3, acknowledged=True)
        add_assessment("res-3", 1, 4, days=6, deleted=True)
        add_assessment("res-5", 1, 4, days=7)

        res = client.get("/api/v1/residents/res-3/unacknowledged")
        assert res.status_code == 200
        data = res.get_json()
        assert [a["id"] for a in data] == [newer, older]
        assert data[1]["epa_short_name"] == "Lap Chole"
        assert data[1]["assessor_last_name"] == "Young"
        assert data[1]["resident_first_name"] == "Cara"
        assert data[1]["site_name"] == "Main OR"
        assert data[1]["acknowledged"] is False
        assert data[0]["assessment_date"] == "2025-01-06T12:00:00+00:00"

    def test_unknown_resident(self, client, catalog):
        assert client.get("/api/v1/residents/nobody/unacknowledged").status_code == 404
