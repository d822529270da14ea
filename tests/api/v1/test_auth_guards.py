from fastapi.testclient import TestClient

from tests.utils.auth import get_internal_headers


def test_root(test_client: TestClient):
    response = test_client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "Membership Seat Service is running"


def test_admin_routes_reject_members(test_client: TestClient):
    response = test_client.post(
        "/api/v1/designations", json={"code": "PRESIDENT", "name": "President"}
    )
    assert response.status_code == 403

    response = test_client.post("/api/v1/memberships/mbr_1/approve")
    assert response.status_code == 403

    response = test_client.post(
        "/api/v1/memberships/mbr_1/reassign/apply",
        json={"target": {"cell": "c", "designation": "d", "level": "NATIONAL"}},
    )
    assert response.status_code == 403


def test_payment_callback_requires_internal_key(test_client: TestClient):
    body = {"membership_id": "mbr_1", "provider_ref": "pay_1", "status": "SUCCESS"}

    response = test_client.post("/api/v1/payments/confirm", json=body)
    assert response.status_code == 401

    response = test_client.post(
        "/api/v1/payments/confirm", json=body, headers={"X-Internal-Api-Key": "wrong"}
    )
    assert response.status_code == 401


def test_expiry_sweep_requires_internal_key(test_client: TestClient):
    assert test_client.post("/api/v1/internal/memberships/expire").status_code == 401


def test_join_validates_level(test_client: TestClient):
    response = test_client.post(
        "/api/v1/memberships/join",
        json={"cell": "GENERAL_BODY", "designation": "PRESIDENT", "level": "GALACTIC"},
    )
    assert response.status_code == 422


def test_payment_status_must_be_terminal(test_client: TestClient):
    response = test_client.post(
        "/api/v1/payments/confirm",
        json={"membership_id": "mbr_1", "provider_ref": "pay_1", "status": "PENDING"},
        headers=get_internal_headers(),
    )
    assert response.status_code == 422
