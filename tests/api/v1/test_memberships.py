from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.utils.auth import (
    get_admin_authentication_headers,
    get_internal_headers,
    get_user_authentication_headers,
)

ADMIN = get_admin_authentication_headers()
USER_1 = get_user_authentication_headers("user_1", name="Asha Rao")
USER_2 = get_user_authentication_headers("user_2")

NATIONAL_PRESIDENT = {"cell": "GENERAL_BODY", "designation": "PRESIDENT", "level": "NATIONAL"}


def _seed_catalog(client: TestClient, **designation):
    response = client.post(
        "/api/v1/cells", json={"name": "General Body", "code": "GENERAL_BODY"}, headers=ADMIN
    )
    assert response.status_code == 201
    body = {"code": "PRESIDENT", "name": "President", "default_capacity": 1}
    body.update(designation)
    response = client.post("/api/v1/designations", json=body, headers=ADMIN)
    assert response.status_code == 201
    return response.json()


def test_president_seat_end_to_end(test_client_e2e: TestClient, db_session: Session):
    """
    One PRESIDENT seat at NATIONAL level: the first join gets seat 1 and
    waits for approval, the second is turned away.
    """
    _seed_catalog(test_client_e2e)

    # 1. Availability before anyone joins
    response = test_client_e2e.get("/api/v1/availability", params=NATIONAL_PRESIDENT)
    assert response.status_code == 200
    assert response.json()["seats_remaining"] == 1
    assert response.json()["fee"] == 0

    # 2. First join
    response = test_client_e2e.post(
        "/api/v1/memberships/join", json=NATIONAL_PRESIDENT, headers=USER_1
    )
    assert response.status_code == 201
    membership = response.json()
    assert membership["seat_sequence"] == 1
    assert membership["status"] == "PENDING_APPROVAL"
    assert membership["payment_status"] == "NOT_REQUIRED"
    assert membership["full_name"] == "Asha Rao"

    # 3. Same user again gets the same membership
    response = test_client_e2e.post(
        "/api/v1/memberships/join", json=NATIONAL_PRESIDENT, headers=USER_1
    )
    assert response.status_code == 201
    assert response.json()["id"] == membership["id"]

    # 4. Second user is turned away
    response = test_client_e2e.post(
        "/api/v1/memberships/join", json=NATIONAL_PRESIDENT, headers=USER_2
    )
    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "NO_SEATS_AVAILABLE"
    assert error["reason"] == "BUCKET_FULL"
    assert error["retryable"] is False

    # 5. Only the owner (or an admin) can read it
    url = f"/api/v1/memberships/{membership['id']}"
    assert test_client_e2e.get(url, headers=USER_1).status_code == 200
    assert test_client_e2e.get(url, headers=USER_2).status_code == 403

    # 6. No credential before activation
    response = test_client_e2e.get(f"{url}/id-card", headers=USER_1)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "ID_CARD_NOT_FOUND"

    # 7. Admin approves
    response = test_client_e2e.post(f"{url}/approve", headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["status"] == "ACTIVE"

    response = test_client_e2e.get(f"{url}/id-card", headers=USER_1)
    assert response.status_code == 200
    card = response.json()
    assert card["status"] == "GENERATED"
    assert card["card_number"].startswith("HRCI-")
    assert card["designation_name"] == "President"

    # 8. Availability now shows the bucket full
    response = test_client_e2e.get("/api/v1/availability", params=NATIONAL_PRESIDENT)
    assert response.json()["seats_remaining"] == 0


def test_paid_join_activates_on_payment(test_client_e2e: TestClient, db_session: Session):
    _seed_catalog(test_client_e2e, default_capacity=5, default_fee=10000)

    response = test_client_e2e.post(
        "/api/v1/memberships/join", json=NATIONAL_PRESIDENT, headers=USER_1
    )
    membership = response.json()
    assert membership["status"] == "PENDING_PAYMENT"
    assert membership["fee_amount"] == 10000

    callback = {"membership_id": membership["id"], "provider_ref": "pay_abc", "status": "SUCCESS"}
    response = test_client_e2e.post(
        "/api/v1/payments/confirm", json=callback, headers=get_internal_headers()
    )
    assert response.status_code == 200
    assert response.json()["status"] == "ACTIVE"
    expires_at = response.json()["expires_at"]

    # Replayed callback changes nothing
    response = test_client_e2e.post(
        "/api/v1/payments/confirm", json=callback, headers=get_internal_headers()
    )
    assert response.status_code == 200
    assert response.json()["expires_at"] == expires_at

    response = test_client_e2e.get(f"/api/v1/memberships/{membership['id']}", headers=USER_1)
    payments = response.json()["payments"]
    assert len(payments) == 1
    assert payments[0]["status"] == "SUCCESS"

    response = test_client_e2e.get("/api/v1/memberships", headers=USER_1)
    assert [m["id"] for m in response.json()] == [membership["id"]]
    assert test_client_e2e.get("/api/v1/memberships", headers=USER_2).json() == []


def test_unknown_membership_payment(test_client_e2e: TestClient, db_session: Session):
    response = test_client_e2e.post(
        "/api/v1/payments/confirm",
        json={"membership_id": "mbr_missing", "provider_ref": "pay_x", "status": "FAILED"},
        headers=get_internal_headers(),
    )
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "MEMBERSHIP_NOT_FOUND"


def test_revoke_and_renew(test_client_e2e: TestClient, db_session: Session):
    _seed_catalog(test_client_e2e)
    membership = test_client_e2e.post(
        "/api/v1/memberships/join", json=NATIONAL_PRESIDENT, headers=USER_1
    ).json()
    url = f"/api/v1/memberships/{membership['id']}"

    # Renewal needs an active or expired membership
    response = test_client_e2e.post(f"{url}/renew", json={}, headers=ADMIN)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_TRANSITION"

    test_client_e2e.post(f"{url}/approve", headers=ADMIN)
    response = test_client_e2e.post(f"{url}/renew", json={"validity_days": 30}, headers=ADMIN)
    assert response.status_code == 200

    response = test_client_e2e.post(f"{url}/revoke", json={"reason": "left"}, headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["status"] == "REVOKED"
    card = test_client_e2e.get(f"{url}/id-card", headers=USER_1).json()
    assert card["status"] == "REVOKED"

    # The seat is free again
    response = test_client_e2e.post(
        "/api/v1/memberships/join", json=NATIONAL_PRESIDENT, headers=USER_2
    )
    assert response.status_code == 201
    assert response.json()["seat_sequence"] == 2


def test_reissue_is_admin_only(test_client_e2e: TestClient, db_session: Session):
    _seed_catalog(test_client_e2e)
    membership = test_client_e2e.post(
        "/api/v1/memberships/join", json=NATIONAL_PRESIDENT, headers=USER_1
    ).json()
    url = f"/api/v1/memberships/{membership['id']}"
    test_client_e2e.post(f"{url}/approve", headers=ADMIN)

    first = test_client_e2e.post(f"{url}/id-card", json={}, headers=USER_1)
    assert first.status_code == 200

    response = test_client_e2e.post(f"{url}/id-card", json={"reissue": True}, headers=USER_1)
    assert response.status_code == 403

    response = test_client_e2e.post(f"{url}/id-card", json={"reissue": True}, headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["card_number"] != first.json()["card_number"]


def test_reassignment_preview_and_apply(test_client_e2e: TestClient, db_session: Session):
    _seed_catalog(test_client_e2e, code="MEMBER", name="Member", default_capacity=10, default_fee=100)
    test_client_e2e.post(
        "/api/v1/designations",
        json={"code": "SECRETARY", "name": "Secretary", "default_capacity": 2, "default_fee": 300},
        headers=ADMIN,
    )
    membership = test_client_e2e.post(
        "/api/v1/memberships/join",
        json={"cell": "GENERAL_BODY", "designation": "MEMBER", "level": "NATIONAL"},
        headers=USER_1,
    ).json()
    test_client_e2e.post(
        "/api/v1/payments/confirm",
        json={"membership_id": membership["id"], "provider_ref": "pay_1", "status": "SUCCESS"},
        headers=get_internal_headers(),
    )
    url = f"/api/v1/memberships/{membership['id']}"
    body = {"target": {"cell": "GENERAL_BODY", "designation": "SECRETARY", "level": "NATIONAL"}}

    response = test_client_e2e.post(f"{url}/reassign/preview", json=body, headers=ADMIN)
    assert response.status_code == 200
    preview = response.json()
    assert preview["pricing_delta"] == 200
    assert preview["amount_due"] == 200
    assert preview["target_seat_sequence"] == 1
    assert preview["accepted"] is True

    version = test_client_e2e.get(url, headers=ADMIN).json()["version"]
    stale = {**body, "expected_version": version - 1}
    response = test_client_e2e.post(f"{url}/reassign/apply", json=stale, headers=ADMIN)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONCURRENT_MODIFICATION"
    assert response.headers["Retry-After"] == "5"

    response = test_client_e2e.post(
        f"{url}/reassign/apply", json={**body, "expected_version": version}, headers=ADMIN
    )
    assert response.status_code == 200
    moved = response.json()
    assert moved["status"] == "PENDING_PAYMENT"
    assert moved["seat_sequence"] == 1
    assert moved["fee_amount"] == 300


def test_expiry_sweep_endpoint(test_client_e2e: TestClient, db_session: Session):
    response = test_client_e2e.post(
        "/api/v1/internal/memberships/expire", headers=get_internal_headers()
    )
    assert response.status_code == 200
    assert response.json() == {"expired": 0}

    response = test_client_e2e.get(
        "/api/v1/internal/scheduler/status", headers=get_internal_headers()
    )
    assert response.json()["status"] == "not_initialized"
