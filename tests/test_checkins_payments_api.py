"""
tests/test_checkins_payments_api.py -- Integration tests for /api/checkins and /api/payments.

Coverage:
  - Both resources require a token for every route
  - Check-in: unknown member / staff 400, extra body keys 400, check-out
    set once (second attempt 409), missing check-in 404, delete admin-only
  - Payment: server-set date, amount > 0, optional package, admin-only
    corrections limited to member/package/amount/staff

Fixtures used (from conftest.py):
  - api: ApiContext with admin and staff tokens
"""

from __future__ import annotations

import pytest

from gym.models import Member, Package


@pytest.fixture(scope="module")
def member_id(api) -> int:
    package_id = api.gym_store.create_package(Package(package_name="Day Pass", price=150, duration_days=1))
    return api.gym_store.create_member(
        Member(first_name="Malee", last_name="Dee", package_id=package_id, start_date="2024-03-01 00:00:00")
    )


class TestCheckins:
    def test_requires_token(self, api):
        assert api.client.get("/api/checkins").status_code == 401

    def test_unknown_member_is_400(self, api):
        resp = api.client.post("/api/checkins", json={"member_id": 9999, "staff_id": api.staff_id}, headers=api.staff)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "invalid member_id"

    def test_unknown_staff_is_400(self, api, member_id):
        resp = api.client.post("/api/checkins", json={"member_id": member_id, "staff_id": 9999}, headers=api.staff)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "invalid staff_id"

    def test_extra_key_is_400(self, api, member_id):
        body = {"member_id": member_id, "staff_id": api.staff_id, "check_in_time": "2020-01-01 00:00:00"}
        resp = api.client.post("/api/checkins", json=body, headers=api.staff)
        assert resp.status_code == 400

    def test_check_in_and_out(self, api, member_id):
        resp = api.client.post("/api/checkins", json={"member_id": member_id, "staff_id": api.staff_id}, headers=api.staff)
        assert resp.status_code == 201
        checkin = resp.json()
        assert checkin["check_out_time"] is None
        assert checkin["first_name"] == "Malee"
        assert checkin["staff_name"] == "Test Staff"

        url = f"/api/checkins/{checkin['checkin_id']}/checkout"
        first = api.client.put(url, headers=api.staff)
        assert first.status_code == 200
        assert first.json()["check_out_time"] is not None

        second = api.client.put(url, headers=api.staff)
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "already_checked_out"

        listed = api.client.get("/api/checkins", headers=api.staff).json()
        assert checkin["checkin_id"] in [c["checkin_id"] for c in listed]

    def test_checkout_missing_is_404(self, api):
        assert api.client.put("/api/checkins/99999/checkout", headers=api.staff).status_code == 404

    def test_delete_is_admin_only(self, api, member_id):
        resp = api.client.post("/api/checkins", json={"member_id": member_id, "staff_id": api.staff_id}, headers=api.staff)
        url = f"/api/checkins/{resp.json()['checkin_id']}"
        assert api.client.delete(url, headers=api.staff).status_code == 403
        assert api.client.delete(url, headers=api.admin).status_code == 200
        assert api.client.get(url, headers=api.admin).status_code == 404


class TestPayments:
    def test_requires_token(self, api):
        assert api.client.get("/api/payments").status_code == 401

    def test_create_sets_date(self, api, member_id):
        body = {"member_id": member_id, "amount": 150, "staff_id": api.staff_id}
        resp = api.client.post("/api/payments", json=body, headers=api.staff)
        assert resp.status_code == 201
        data = resp.json()
        assert data["amount"] == 150.0
        assert data["package_id"] is None
        assert len(data["payment_date"]) == len("2024-01-01 00:00:00")

    def test_client_cannot_set_date(self, api, member_id):
        body = {"member_id": member_id, "amount": 150, "staff_id": api.staff_id, "payment_date": "2020-01-01"}
        resp = api.client.post("/api/payments", json=body, headers=api.staff)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "invalid field payment_date"

    def test_zero_amount_is_400(self, api, member_id):
        body = {"member_id": member_id, "amount": 0, "staff_id": api.staff_id}
        assert api.client.post("/api/payments", json=body, headers=api.staff).status_code == 400

    def test_correction_is_admin_only(self, api, member_id):
        body = {"member_id": member_id, "amount": 100, "staff_id": api.staff_id}
        payment_id = api.client.post("/api/payments", json=body, headers=api.staff).json()["payment_id"]
        url = f"/api/payments/{payment_id}"

        assert api.client.put(url, json={"amount": 120}, headers=api.staff).status_code == 403

        resp = api.client.put(url, json={"amount": 120}, headers=api.admin)
        assert resp.status_code == 200
        assert resp.json()["amount"] == 120.0

    def test_correction_of_missing_payment_is_404(self, api):
        assert api.client.put("/api/payments/99999", json={"amount": 5}, headers=api.admin).status_code == 404

    def test_delete_payment(self, api, member_id):
        body = {"member_id": member_id, "amount": 75, "staff_id": api.staff_id}
        payment_id = api.client.post("/api/payments", json=body, headers=api.staff).json()["payment_id"]
        assert api.client.delete(f"/api/payments/{payment_id}", headers=api.admin).status_code == 200
        assert api.client.get(f"/api/payments/{payment_id}", headers=api.admin).status_code == 404
