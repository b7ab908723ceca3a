"""
HTTP-level tests: error rendering, auth, and the payment/video endpoints
with the database and outside services replaced through dependency_overrides.
"""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from homexrei.api.routes.deals import get_video_client
from homexrei.api.routes.payments import get_gateway
from homexrei.db.session import get_db
from homexrei.main import app
from homexrei.services.auth.jwt import create_access_token
from homexrei.services.video.client import VideoResult


@pytest.fixture
def gateway():
    return MagicMock()


@pytest.fixture
def video_client():
    client = MagicMock()
    client.generate.return_value = VideoResult(video_url="https://cdn.example.com/v.mp4", video_key="v/1")
    return client


@pytest.fixture
def client(db, gateway, video_client):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_video_client] = lambda: video_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _auth(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


class TestAuth:
    def test_missing_token(self, client):
        response = client.get("/credits/balance")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_bad_token(self, client):
        response = client.get("/credits/balance", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_unknown_user(self, client):
        response = client.get("/credits/balance", headers={"Authorization": f"Bearer {create_access_token('ghost')}"})
        assert response.status_code == 401

    def test_balance(self, client, user_factory):
        user = user_factory(credits=4)
        response = client.get("/credits/balance", headers=_auth(user))
        assert response.status_code == 200
        assert response.json() == {"user_id": user.id, "credits": 4.0}


class TestPaymentRoutes:
    def test_checkout_invalid_amount(self, client, user_factory, gateway):
        response = client.post("/payments/checkout-session", json={"amount": 50}, headers=_auth(user_factory()))
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid amount"}
        gateway.create_checkout_session.assert_not_called()

    def test_checkout_uses_origin(self, client, user_factory, gateway):
        gateway.create_checkout_session.return_value = {"id": "cs_1", "url": "https://checkout.stripe.com/cs_1"}
        headers = {**_auth(user_factory()), "Origin": "https://homexrei.example.com"}

        response = client.post("/payments/checkout-session", json={"amount": 1000}, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"url": "https://checkout.stripe.com/cs_1", "session_id": "cs_1"}
        success_url = gateway.create_checkout_session.call_args.kwargs["success_url"]
        assert success_url.startswith("https://homexrei.example.com/payment-success")

    def test_verify_not_paid(self, client, user_factory, gateway):
        user = user_factory()
        gateway.retrieve_session.return_value = {
            "id": "cs_1",
            "payment_status": "unpaid",
            "metadata": {"user_id": user.id},
        }
        response = client.post("/payments/verify", json={"sessionId": "cs_1"}, headers=_auth(user))
        assert response.status_code == 200
        assert response.json() == {"success": False, "status": "unpaid", "message": "Payment not completed"}

    def test_verify_paid(self, client, user_factory, gateway):
        user = user_factory(credits=5)
        gateway.retrieve_session.return_value = {
            "id": "cs_1",
            "payment_status": "paid",
            "amount_total": 1000,
            "metadata": {"user_id": user.id, "payment_type": "credits", "credits_to_add": "10"},
        }

        response = client.post("/payments/verify", json={"sessionId": "cs_1"}, headers=_auth(user))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["credits_added"] == 10
        assert body["new_balance"] == 15
        assert body["already_processed"] is False

    def test_verify_without_session_id(self, client, user_factory):
        response = client.post("/payments/verify", json={}, headers=_auth(user_factory()))
        assert response.status_code == 400
        assert response.json() == {"error": "Session ID required"}


class TestDealRoutes:
    def test_video_needs_credits(self, client, user_factory, deal_factory, video_client):
        owner = user_factory(credits=0)
        deal = deal_factory(owner)

        response = client.post(f"/deals/{deal.id}/video", headers=_auth(owner))

        assert response.status_code == 402
        assert response.json() == {"error": "Insufficient credits", "required": 1.0, "current": 0.0}
        video_client.generate.assert_not_called()

    def test_video_generated(self, client, user_factory, deal_factory):
        owner = user_factory(credits=2)
        deal = deal_factory(owner)
        response = client.post(f"/deals/{deal.id}/video", headers=_auth(owner))
        assert response.status_code == 200
        assert response.json()["credits_remaining"] == 1

    def test_financing(self, client, user_factory, deal_factory):
        deal = deal_factory(
            user_factory(),
            owner_financing_available=True,
            min_down_payment_percent=20,
            interest_rate=6.5,
            term_years=30,
        )
        response = client.get(f"/deals/{deal.id}/financing")
        assert response.status_code == 200
        assert response.json()["monthly_pi"] == pytest.approx(2275.44, abs=0.01)

    def test_financing_not_offered(self, client, user_factory, deal_factory):
        deal = deal_factory(user_factory())
        assert client.get(f"/deals/{deal.id}/financing").status_code == 409

    def test_financing_unknown_deal(self, client):
        assert client.get("/deals/missing/financing").status_code == 404


class TestLeadChargeRoutes:
    def test_contact_provider_bills_lead(self, client, user_factory):
        provider = user_factory()
        payload = {"provider_email": provider.email, "project_title": "Kitchen remodel"}

        response = client.post("/lead-charges/contact", json=payload, headers=_auth(user_factory()))

        assert response.status_code == 201
        assert response.json()["lead_amount"] == 25.0
        listed = client.get("/lead-charges", headers=_auth(provider)).json()
        assert [c["project_title"] for c in listed] == ["Kitchen remodel"]

    def test_contact_requires_auth(self, client):
        response = client.post("/lead-charges/contact", json={"provider_email": "a@b.com", "project_title": "x"})
        assert response.status_code == 401


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert "X-Request-Id" in response.headers
