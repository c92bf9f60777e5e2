"""
RMS - Residency Management System
Tests — user directory API.
"""

from rms.models import db as _db
from rms.models.program import User


class TestUserList:
    def test_active_users_by_last_name(self, client, catalog):
        _db.session.add(User(id="u-gone", first_name="Old", last_name="Aaron",
                             email="gone@example.org", is_active=False))
        _db.session.commit()

        res = client.get("/api/v1/users")
        assert res.status_code == 200
        users = res.get_json()
        assert [u["last_name"] for u in users] == ["Adams", "Baker", "Young", "Zimmer"]

    def test_roles(self, client, catalog):
        _db.session.add(User(id="u-admin", first_name="Pat", last_name="Coordinator",
                             email="pat@example.org"))
        _db.session.commit()

        users = {u["id"]: u for u in client.get("/api/v1/users").get_json()}
        assert users["u-res-3"]["role"] == "resident"
        assert users["u-fac-1"]["roles"] == ["faculty"]
        assert users["u-admin"]["role"] is None
        assert users["u-admin"]["roles"] == []
        assert users["u-res-3"]["email"] == "u-res-3@example.org"


class TestUserDetail:
    def test_resident_user(self, client, catalog):
        res = client.get("/api/v1/users/u-res-3")
        assert res.status_code == 200
        user = res.get_json()
        assert user["first_name"] == "Cara"
        assert user["role"] == "resident"
        assert user["roles"] == [{"role": "resident", "program_id": "prog-1"}]
        assert user["resident"] == {
            "id": "res-3", "pgy_level": "PGY-3", "status": "active", "medical_school": None,
        }
        assert user["faculty"] is None

    def test_faculty_user(self, client, catalog):
        user = client.get("/api/v1/users/u-fac-2").get_json()
        assert user["role"] == "faculty"
        assert user["resident"] is None
        assert user["faculty"] == {"id": "fac-2", "rank": None, "is_core_faculty": False}

    def test_unknown_user(self, client, catalog):
        res = client.get("/api/v1/users/00000000-0000-0000-0000-000000000000")
        assert res.status_code == 404
        body = res.get_json()
        assert body["code"] == "ERR_NOT_FOUND"
        assert body["error"] == "User id=00000000-0000-0000-0000-000000000000 not found"

    def test_inactive_user(self, client, catalog):
        _db.session.get(User, "u-fac-2").is_active = False
        _db.session.commit()
        assert client.get("/api/v1/users/u-fac-2").status_code == 404
