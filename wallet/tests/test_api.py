"""
HTTP Tests for the Wallet API
"""

import pytest
from decimal import Decimal
from uuid import UUID

from fastapi.testclient import TestClient

from wallet.api import app, get_wallet_service


UNKNOWN_ID = "00000000-0000-0000-0000-000000000000"


@pytest.fixture
def client(service):
    app.dependency_overrides[get_wallet_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_wallet_service, None)


def _register(client, role):
    response = client.post("/register", json={"type": role, "name": "Test", "phone": "9000000000"})
    assert response.status_code == 201
    return response.json()["id"]


class TestReferralFlow:
    """End-to-end referral and withdrawal flow."""

    def test_full_flow(self, client):
        customer_id = _register(client, "customer")
        assert float(client.get(f"/wallet/{customer_id}").json()["balance"]) == 0

        response = client.post("/initiate-referral", json={
            "customer_id": customer_id, "vendor_name": "Sharma Tea Stall", "vendor_location": "Pune",
        })
        assert response.status_code == 201
        vendor_id = response.json()["vendor_id"]
        assert response.json()["status"] == "initiated"

        response = client.post("/vendor-register", json={
            "vendor_id": vendor_id, "vendor_details": {"name": "Sharma"}, "agreement_accepted": True,
        })
        assert response.status_code == 200
        assert response.json()["referral"]["status"] == "registered"

        for user_id in (customer_id, vendor_id):
            wallet = client.get(f"/wallet/{user_id}").json()
            assert float(wallet["balance"]) == 120
            assert len(wallet["transactions"]) == 1

        response = client.post("/withdraw", json={"user_id": customer_id, "amount": "120"})
        assert response.status_code == 200
        assert float(response.json()["balance"]) == 0

        response = client.post("/withdraw", json={"user_id": customer_id, "amount": "1"})
        assert response.status_code == 403

    def test_vendor_register_twice_conflicts(self, client):
        customer_id = _register(client, "customer")
        vendor_id = client.post("/initiate-referral", json={
            "customer_id": customer_id, "vendor_name": "Ravi Stores",
        }).json()["vendor_id"]
        payload = {"vendor_id": vendor_id, "agreement_accepted": True}

        assert client.post("/vendor-register", json=payload).status_code == 200
        assert client.post("/vendor-register", json=payload).status_code == 409
        assert float(client.get(f"/wallet/{customer_id}").json()["balance"]) == 120

    def test_vendor_register_unknown(self, client):
        response = client.post("/vendor-register", json={"vendor_id": UNKNOWN_ID})
        assert response.status_code == 404


class TestWithdrawErrors:
    """HTTP status mapping for withdrawal failures."""

    def test_unknown_user(self, client):
        response = client.post("/withdraw", json={"user_id": UNKNOWN_ID, "amount": "10"})
        assert response.status_code == 404

    def test_below_minimum(self, client, service):
        customer_id = _register(client, "customer")
        service.store.credit(UUID(customer_id), Decimal("500"))

        response = client.post("/withdraw", json={"user_id": customer_id, "amount": "100"})
        assert response.status_code == 400
        assert "Minimum" in response.json()["detail"]

    def test_insufficient_balance(self, client):
        vendor_id = _register(client, "vendor")

        response = client.post("/withdraw", json={"user_id": vendor_id, "amount": "10"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Insufficient balance"

    def test_sub_cent_amount_rejected(self, client, service):
        vendor_id = _register(client, "vendor")
        service.store.credit(UUID(vendor_id), Decimal("120"))

        response = client.post("/withdraw", json={"user_id": vendor_id, "amount": "1E-30"})

        assert response.status_code == 400
        assert float(client.get(f"/wallet/{vendor_id}").json()["balance"]) == 120

    def test_invalid_role_rejected(self, client):
        response = client.post("/register", json={"type": "admin"})
        assert response.status_code == 422


class TestWalletAndSweep:
    """Wallet reads and the sweep endpoint."""

    def test_unknown_wallet_zero_state(self, client, service):
        wallet = client.get(f"/wallet/{UNKNOWN_ID}").json()
        assert float(wallet["balance"]) == 0
        assert wallet["transactions"] == []
        assert wallet["provisioned"] is False
        assert len(service.locks) == 0

    def test_eod_sweep(self, client, service):
        vendor_id = _register(client, "vendor")
        service.store.credit(UUID(vendor_id), Decimal("50"))

        response = client.post("/eod-auto-withdraw")

        assert response.status_code == 200
        assert response.json()["swept"] == 1
        assert float(client.get(f"/wallet/{vendor_id}").json()["balance"]) == 0

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"
