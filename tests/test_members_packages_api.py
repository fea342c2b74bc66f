"""
tests/test_members_packages_api.py -- Integration tests for /api/packages and /api/members.

Coverage:
  - Reads are public; writes need an admin token (401 / 403 otherwise)
  - Package uniqueness: duplicate create and rename are 409, own name is fine
  - Package delete blocked while a member uses it
  - Member partial updates: empty body, unknown key, bad is_active,
    unknown package, expiry before start, null clears
  - 404 for missing rows, checked after body shape
  - Repeating the same partial update leaves the same row
  - Oversized integers in bodies and paths are 400, not 500

Fixtures used (from conftest.py):
  - api: ApiContext with admin and staff tokens
"""

from __future__ import annotations

import pytest


@pytest.fixture(scope="module")
def gold(api) -> dict:
    resp = api.client.post(
        "/api/packages",
        json={"package_name": "Gold", "price": 1500, "duration_days": 30, "description": "Gold tier"},
        headers=api.admin,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture(scope="module")
def somchai(api, gold) -> dict:
    resp = api.client.post(
        "/api/members",
        json={
            "first_name": "Somchai",
            "last_name": "Jaidee",
            "phone_number": "0812345678",
            "package_id": gold["package_id"],
            "start_date": "2024-01-01",
            "expiry_date": "2024-01-31",
        },
        headers=api.admin,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestPackages:
    def test_create_returns_row(self, gold):
        assert gold["package_name"] == "Gold"
        assert gold["price"] == 1500.0
        assert gold["duration_days"] == 30

    def test_list_is_public(self, api, gold):
        resp = api.client.get("/api/packages")
        assert resp.status_code == 200
        assert "Gold" in [p["package_name"] for p in resp.json()]

    def test_create_requires_token(self, api):
        resp = api.client.post("/api/packages", json={"package_name": "Free", "price": 0, "duration_days": 1})
        assert resp.status_code == 401

    def test_create_requires_admin(self, api):
        resp = api.client.post(
            "/api/packages", json={"package_name": "Free", "price": 0, "duration_days": 1}, headers=api.staff
        )
        assert resp.status_code == 403

    def test_duplicate_name_is_409(self, api, gold):
        resp = api.client.post(
            "/api/packages", json={"package_name": "Gold", "price": 10, "duration_days": 1}, headers=api.admin
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["message"] == "package name already exists"

    def test_rename_to_taken_name_is_409(self, api, gold):
        resp = api.client.post(
            "/api/packages", json={"package_name": "Silver", "price": 900, "duration_days": 30}, headers=api.admin
        )
        silver_id = resp.json()["package_id"]
        resp = api.client.put(f"/api/packages/{silver_id}", json={"package_name": "Gold"}, headers=api.admin)
        assert resp.status_code == 409

    def test_rename_to_own_name_is_ok(self, api, gold):
        resp = api.client.put(
            f"/api/packages/{gold['package_id']}", json={"package_name": "Gold", "price": 1600}, headers=api.admin
        )
        assert resp.status_code == 200
        assert resp.json()["price"] == 1600.0

    def test_negative_price_is_400(self, api, gold):
        resp = api.client.put(f"/api/packages/{gold['package_id']}", json={"price": -5}, headers=api.admin)
        assert resp.status_code == 400

    def test_in_use_package_cannot_be_deleted(self, api, gold, somchai):
        resp = api.client.delete(f"/api/packages/{gold['package_id']}", headers=api.admin)
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "package_in_use"

    def test_missing_package_is_404(self, api):
        assert api.client.get("/api/packages/99999").status_code == 404
        assert api.client.delete("/api/packages/99999", headers=api.admin).status_code == 404


class TestMembers:
    def test_create_returns_normalized_row(self, somchai, gold):
        assert somchai["start_date"] == "2024-01-01 00:00:00"
        assert somchai["expiry_date"] == "2024-01-31 00:00:00"
        assert somchai["package_name"] == "Gold"
        assert somchai["is_active"] == 1

    def test_list_and_detail_are_public(self, api, somchai):
        assert api.client.get("/api/members").status_code == 200
        resp = api.client.get(f"/api/members/{somchai['member_id']}")
        assert resp.status_code == 200
        assert resp.json()["first_name"] == "Somchai"

    def test_update_requires_admin(self, api, somchai):
        resp = api.client.put(f"/api/members/{somchai['member_id']}", json={"is_active": 0}, headers=api.staff)
        assert resp.status_code == 403

    def test_empty_body_is_400(self, api, somchai):
        resp = api.client.put(f"/api/members/{somchai['member_id']}", json={}, headers=api.admin)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "no fields provided"

    def test_empty_body_on_missing_member_is_400(self, api):
        resp = api.client.put("/api/members/99999", json={}, headers=api.admin)
        assert resp.status_code == 400

    def test_missing_member_is_404(self, api):
        resp = api.client.put("/api/members/99999", json={"first_name": "Anna"}, headers=api.admin)
        assert resp.status_code == 404

    def test_unknown_key_is_400(self, api, somchai):
        resp = api.client.put(f"/api/members/{somchai['member_id']}", json={"email": "a@b.c"}, headers=api.admin)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "invalid field email"

    def test_is_active_two_is_400(self, api, somchai):
        resp = api.client.put(f"/api/members/{somchai['member_id']}", json={"is_active": 2}, headers=api.admin)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"].startswith("invalid is_active")

    def test_unknown_package_is_400(self, api, somchai):
        resp = api.client.put(f"/api/members/{somchai['member_id']}", json={"package_id": 9999}, headers=api.admin)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "invalid package_id"

    def test_expiry_before_start_is_400(self, api, somchai):
        resp = api.client.put(
            f"/api/members/{somchai['member_id']}", json={"expiry_date": "2023-06-01"}, headers=api.admin
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "expiry_date cannot be before start_date"

    def test_rejected_update_writes_nothing(self, api, somchai):
        url = f"/api/members/{somchai['member_id']}"
        resp = api.client.put(url, json={"first_name": "Changed", "is_active": 7}, headers=api.admin)
        assert resp.status_code == 400
        assert api.client.get(url).json()["first_name"] == "Somchai"

    def test_partial_update_and_null_clear(self, api, somchai):
        url = f"/api/members/{somchai['member_id']}"
        resp = api.client.put(url, json={"is_active": False, "phone_number": None}, headers=api.admin)
        assert resp.status_code == 200
        data = resp.json()
        assert data["is_active"] == 0
        assert data["phone_number"] is None
        assert data["last_name"] == "Jaidee"

    def test_create_with_missing_field_is_400(self, api, gold):
        resp = api.client.post(
            "/api/members",
            json={"first_name": "Anna", "last_name": "Smith", "package_id": gold["package_id"]},
            headers=api.admin,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "start_date is required"

    def test_delete_member(self, api, gold):
        resp = api.client.post(
            "/api/members",
            json={"first_name": "Temp", "last_name": "Member", "package_id": gold["package_id"], "start_date": "2024-02-01"},
            headers=api.admin,
        )
        member_id = resp.json()["member_id"]
        assert api.client.delete(f"/api/members/{member_id}", headers=api.admin).status_code == 200
        assert api.client.get(f"/api/members/{member_id}").status_code == 404

    def test_repeated_update_is_idempotent(self, api, somchai):
        url = f"/api/members/{somchai['member_id']}"
        body = {"last_name": "Rakdee", "expiry_date": "2024-12-31"}
        first = api.client.put(url, json=body, headers=api.admin)
        second = api.client.put(url, json=body, headers=api.admin)
        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()
        assert second.json()["expiry_date"] == "2024-12-31 00:00:00"

    def test_create_with_unknown_package_is_400(self, api):
        resp = api.client.post(
            "/api/members",
            json={"first_name": "Anna", "last_name": "Smith", "package_id": 9999, "start_date": "2024-02-01"},
            headers=api.admin,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "invalid package_id"


class TestOversizedNumbers:
    """Integers beyond the SQLite INTEGER range are client errors, never storage errors."""

    def test_huge_price_is_400(self, api):
        resp = api.client.post(
            "/api/packages", json={"package_name": "Huge", "price": 10**400, "duration_days": 30}, headers=api.admin
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_price"

    def test_huge_duration_is_400(self, api):
        resp = api.client.post(
            "/api/packages", json={"package_name": "Forever", "price": 10, "duration_days": 2**70}, headers=api.admin
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_duration_days"

    def test_huge_package_reference_is_400(self, api):
        resp = api.client.post(
            "/api/members",
            json={"first_name": "Anna", "last_name": "Smith", "package_id": 2**70, "start_date": "2024-02-01"},
            headers=api.admin,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "invalid package_id"

    @pytest.mark.parametrize("path", [f"/api/members/{2**70}", f"/api/packages/{2**70}", "/api/members/0"])
    def test_out_of_range_path_id_is_400(self, api, path):
        resp = api.client.get(path)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_out_of_range_id_on_write_is_400(self, api):
        resp = api.client.put(f"/api/members/{2**70}", json={"first_name": "Anna"}, headers=api.admin)
        assert resp.status_code == 400
