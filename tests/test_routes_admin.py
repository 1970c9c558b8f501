"""Tests for the password-gated admin surface."""

import bcrypt
import pytest

from models import AuditLog
from scheduling.booking import create_booking

from conftest import ADMIN_PASSWORD


class TestAuth:
    def test_admin_page_redirects_to_login(self, client):
        resp = client.get("/admin")
        assert resp.status_code == 302
        assert resp.headers["Location"].startswith("/admin/login?next=")

    def test_admin_api_is_401(self, client):
        resp = client.get("/api/admin/bookings")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Authentication required"

    def test_login_page_renders(self, client):
        resp = client.get("/admin/login?next=/admin")
        assert resp.status_code == 200
        assert b"<form" in resp.data

    def test_wrong_password(self, client):
        resp = client.post("/admin/login", json={"password": "nope"})
        assert resp.status_code == 401
        assert AuditLog.query.filter_by(action="ADMIN_LOGIN_FAIL").count() == 1

    def test_form_login_redirects_to_next(self, client):
        resp = client.post("/admin/login", data={"password": ADMIN_PASSWORD, "next": "/admin"})
        assert resp.status_code == 303
        assert resp.headers["Location"].endswith("/admin")
        assert client.get("/admin").status_code == 200

    def test_open_redirect_ignored(self, client):
        resp = client.post("/admin/login", data={"password": ADMIN_PASSWORD, "next": "//evil.example"})
        assert resp.headers["Location"].endswith("/admin")

    def test_bcrypt_hash_preferred(self, app, client):
        app.config["ADMIN_PASSWORD_HASH"] = bcrypt.hashpw(b"hashed-one", bcrypt.gensalt(rounds=4)).decode()
        assert client.post("/admin/login", json={"password": ADMIN_PASSWORD}).status_code == 401
        assert client.post("/admin/login", json={"password": "hashed-one"}).status_code == 200

    def test_login_rate_limited(self, app, client):
        app.config["LOGIN_RATE_MAX_REQUESTS"] = 2
        for _ in range(2):
            client.post("/admin/login", json={"password": "nope"})
        resp = client.post("/admin/login", json={"password": ADMIN_PASSWORD})
        assert resp.status_code == 429

    def test_logout_revokes_session(self, admin_client):
        client, headers = admin_client
        assert client.post("/admin/logout", headers=headers).status_code == 200
        assert client.get("/api/admin/bookings").status_code == 401


class TestCsrf:
    def test_mutation_without_token_rejected(self, admin_client):
        client, _ = admin_client
        resp = client.post("/api/admin/blocks", json={"block_date": "2030-03-04"})
        assert resp.status_code == 403

    def test_mutation_with_token_allowed(self, admin_client):
        client, headers = admin_client
        resp = client.post("/api/admin/blocks", json={"block_date": "2030-03-04"}, headers=headers)
        assert resp.status_code == 201


class TestBookings:
    @pytest.fixture
    def seeded(self, app, booking_payload):
        create_booking(booking_payload)
        create_booking(dict(booking_payload, name="Sipho Dlamini", email="sipho@example.com",
                            date="2030-03-06", reason="Back pain"))

    def test_list_and_filters(self, admin_client, seeded):
        client, _ = admin_client
        assert len(client.get("/api/admin/bookings").get_json()["bookings"]) == 2

        by_q = client.get("/api/admin/bookings?q=BACK").get_json()["bookings"]
        assert [b["name"] for b in by_q] == ["Sipho Dlamini"]

        by_range = client.get("/api/admin/bookings?start=2030-03-05&end=2030-03-31").get_json()["bookings"]
        assert [b["date"] for b in by_range] == ["2030-03-06"]

        assert client.get("/api/admin/bookings?status=pending").get_json()["bookings"] == []
        assert client.get("/api/admin/bookings?status=bogus").status_code == 400

    def test_stats_flag(self, admin_client, seeded):
        client, _ = admin_client
        data = client.get("/api/admin/bookings?stats=1").get_json()
        assert data["stats"]["bookings"]["total"] == 2
        assert data["stats"]["payments"]["total"] == 700
        assert data["stats"]["load"]["capacity_buffer"] == 100

    def test_stats_follow_filters(self, admin_client, seeded):
        client, _ = admin_client
        data = client.get("/api/admin/bookings?start=2030-03-05&end=2030-03-31&stats=1").get_json()
        assert [b["date"] for b in data["bookings"]] == ["2030-03-06"]
        assert data["stats"]["bookings"]["total"] == 1
        assert data["stats"]["payments"]["total"] == 350

    def test_search_treats_wildcards_literally(self, admin_client, booking_payload):
        client, _ = admin_client
        create_booking(dict(booking_payload, reason="Wants 50% dose"))
        create_booking(dict(booking_payload, time="11:00", reason="Took 500mg"))
        create_booking(dict(booking_payload, time="11:45", name="Jo_Ann", reason="Rash"))

        found = client.get("/api/admin/bookings", query_string={"q": "50%"}).get_json()["bookings"]
        assert [b["reason"] for b in found] == ["Wants 50% dose"]

        found = client.get("/api/admin/bookings", query_string={"q": "o_a"}).get_json()["bookings"]
        assert [b["name"] for b in found] == ["Jo_Ann"]

        # "i N" in "Thandi Nkosi" would match an unescaped underscore
        assert client.get("/api/admin/bookings", query_string={"q": "i_n"}).get_json()["bookings"] == []

    def test_manual_add_is_pending(self, admin_client, booking_payload):
        client, headers = admin_client
        resp = client.post("/api/admin/bookings", json=booking_payload, headers=headers)
        assert resp.status_code == 201
        booking = resp.get_json()["booking"]
        assert booking["status"] == "pending"
        assert booking["payment_method"] == "Manual"

    def test_get_and_patch(self, admin_client, seeded, mailer):
        client, headers = admin_client
        assert client.get("/api/admin/bookings/1").get_json()["booking"]["name"] == "Thandi Nkosi"
        assert client.get("/api/admin/bookings/99").status_code == 404

        resp = client.patch("/api/admin/bookings/1", json={"status": "completed"}, headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["booking"]["status"] == "completed"
        assert mailer.sent[-1]["subject"] == "Thank you for your consult today"

    def test_patch_missing_booking(self, admin_client):
        client, headers = admin_client
        resp = client.patch("/api/admin/bookings/99", json={"status": "paid"}, headers=headers)
        assert resp.status_code == 404


class TestBlocks:
    def test_crud_with_body_id(self, admin_client):
        client, headers = admin_client
        created = client.post(
            "/api/admin/blocks",
            json={"date": "2030-03-04", "scope": "slot", "window": "8:00-9:30"},
            headers=headers,
        ).get_json()["block"]
        assert created["block_window"] == "08:00–09:30"

        resp = client.patch("/api/admin/blocks", json={"id": created["id"], "scope": "day"}, headers=headers)
        assert resp.get_json()["block"]["scope"] == "day"

        assert len(client.get("/api/admin/blocks").get_json()["blocks"]) == 1
        assert client.delete("/api/admin/blocks", json={"id": created["id"]}, headers=headers).status_code == 200
        assert client.get("/api/admin/blocks").get_json()["blocks"] == []

    def test_delete_by_path_and_missing(self, admin_client):
        client, headers = admin_client
        created = client.post("/api/admin/blocks", json={"block_date": "2030-03-04"}, headers=headers).get_json()
        assert client.delete(f"/api/admin/blocks/{created['block']['id']}", headers=headers).status_code == 200
        assert client.delete("/api/admin/blocks/999", headers=headers).status_code == 404

    def test_id_required(self, admin_client):
        client, headers = admin_client
        assert client.delete("/api/admin/blocks", json={}, headers=headers).status_code == 400

    def test_block_hides_slots(self, admin_client):
        client, headers = admin_client
        days = client.get("/api/availability/slots").get_json()["days"]
        target = days[-1]["id"]
        client.post("/api/admin/blocks", json={"block_date": target}, headers=headers)
        days = client.get("/api/availability/slots").get_json()["days"]
        assert next(d for d in days if d["id"] == target)["times"] == []
