"""Tests for the FastAPI server."""

import uuid
from types import SimpleNamespace

import pytest
from agents.exceptions import AgentsException
from fastapi.testclient import TestClient

from ecoagent.errors import ConfigurationUnavailableError
from ecoagent.server import create_app

AUTH = {"Authorization": "Bearer test-token"}


class FakeRunner:
    """Stands in for the Agents SDK runner."""

    calls = []
    reply = "Happy to help with your booking!"
    error = None

    @classmethod
    async def run(cls, agent, input_items):
        cls.calls.append((agent, input_items))
        if cls.error is not None:
            raise cls.error
        return SimpleNamespace(final_output=cls.reply)


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.setattr(FakeRunner, "calls", [])
    monkeypatch.setattr(FakeRunner, "error", None)
    monkeypatch.setattr("ecoagent.server.Runner", FakeRunner)
    return FakeRunner


@pytest.fixture
def client(config, notifier, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with TestClient(create_app(config)) as test_client:
        test_client.app.state.gateway.notifier = notifier
        yield test_client


def chat(client, message="Hello", **extra):
    return client.post("/chat", json={"history": [], "newMessage": message, **extra}, headers=AUTH)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "ecoagent-api"}


class TestAuth:
    """Test bearer token checks."""

    def test_missing_token(self, client, runner):
        response = client.post("/chat", json={"newMessage": "Hello"})

        assert response.status_code == 401
        assert "error" in response.json()
        assert runner.calls == []

    def test_wrong_token(self, client, runner):
        response = client.post(
            "/chat", json={"newMessage": "Hello"}, headers={"Authorization": "Bearer nope"}
        )

        assert response.status_code == 401

    def test_wrong_scheme(self, client):
        response = client.post("/live-config", headers={"Authorization": "Basic test-token"})

        assert response.status_code == 401


class TestChat:
    """Test the chat endpoint."""

    def test_reply(self, client, runner):
        response = client.post(
            "/chat",
            json={
                "history": [
                    {"role": "user", "text": "Hi"},
                    {"role": "assistant", "text": "Hello! How can I help?"},
                ],
                "newMessage": "I need a cleaning",
                "systemInstruction": "Be brief.",
            },
            headers=AUTH,
        )

        assert response.status_code == 200
        assert response.json() == {"responseText": "Happy to help with your booking!"}
        agent, items = runner.calls[0]
        assert agent.instructions == "Be brief."
        assert items == [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello! How can I help?"},
            {"role": "user", "content": "I need a cleaning"},
        ]

    def test_default_instructions(self, client, runner):
        chat(client)

        agent, _ = runner.calls[0]
        assert "Ecocleans" in agent.instructions

    def test_rate_limited(self, client, runner):
        statuses = [chat(client).status_code for _ in range(4)]

        assert statuses == [200, 200, 200, 429]
        assert len(runner.calls) == 3

    @pytest.mark.parametrize("message", ["   ", "x" * 5001, "<script>alert(1)</script>"])
    def test_invalid_message(self, client, runner, message):
        response = chat(client, message)

        assert response.status_code == 400
        assert response.json()["error"]
        assert runner.calls == []

    def test_malformed_body(self, client, runner):
        response = client.post("/chat", json={"history": "nope"}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request body"}

    def test_model_failure(self, client, runner):
        runner.error = AgentsException("model unavailable")

        response = chat(client)

        assert response.status_code == 502
        assert response.json() == {"error": "Failed to get AI response"}


class TestLiveConfig:
    """Test ephemeral credential minting."""

    def test_credential(self, client, config, monkeypatch):
        async def mint(cfg):
            return "ek_123"

        monkeypatch.setattr("ecoagent.server.mint_realtime_secret", mint)

        response = client.post("/live-config", headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {
            "apiKey": "ek_123",
            "model": config.realtime_model,
            "voice": config.realtime_voice,
        }

    def test_unavailable(self, client, monkeypatch):
        async def mint(cfg):
            raise ConfigurationUnavailableError("no key")

        monkeypatch.setattr("ecoagent.server.mint_realtime_secret", mint)

        response = client.post("/live-config", headers=AUTH)

        assert response.status_code == 503
        assert response.json() == {"error": "Live voice is unavailable"}


class TestBookings:
    """Test booking creation and update."""

    def test_create_then_update(self, client):
        created = client.post(
            "/bookings",
            json={"customerName": "Sarah Jones", "phoneNumber": "204-555-1234"},
            headers=AUTH,
        )
        booking_id = created.json()["id"]

        updated = client.post("/bookings", json={"id": booking_id, "bedrooms": 3}, headers=AUTH)

        assert created.status_code == 200
        assert updated.json() == {"id": booking_id, "success": True}
        record = client.app.state.booking_store.get(booking_id)
        assert record.customer_name == "Sarah Jones"
        assert record.bedrooms == 3
        assert len(client.app.state.gateway.notifier.notifications) == 1

    def test_invalid_values_dropped(self, client):
        response = client.post(
            "/bookings",
            json={"customer_name": "Tom", "email": "not-an-email", "bedrooms": 99},
            headers=AUTH,
        )

        record = client.app.state.booking_store.get(response.json()["id"])
        assert record.customer_name == "Tom"
        assert record.email is None
        assert record.bedrooms is None

    def test_contact_required_for_new_booking(self, client):
        response = client.post("/bookings", json={"bedrooms": 3}, headers=AUTH)

        assert response.status_code == 400
        assert client.app.state.booking_store.count() == 0

    def test_invalid_id(self, client):
        response = client.post("/bookings", json={"id": "not-a-uuid", "bedrooms": 3}, headers=AUTH)

        assert response.status_code == 400

    def test_unknown_id(self, client):
        response = client.post(
            "/bookings", json={"id": str(uuid.uuid4()), "bedrooms": 3}, headers=AUTH
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Booking not found"}

    def test_requires_token(self, client):
        assert client.post("/bookings", json={"customerName": "Tom"}).status_code == 401


class TestNotifications:
    """Test the booking notification endpoint."""

    def test_accepted(self, client):
        response = client.post(
            "/notifications/booking",
            json={"id": "b-1", "customer_name": "Sarah Jones"},
            headers={"X-Notification-Secret": "s3cret"},
        )

        assert response.status_code == 200
        # No Resend key is configured in tests
        assert response.json() == {"success": True, "emailSent": False}

    @pytest.mark.parametrize("headers", [{}, {"X-Notification-Secret": "wrong"}])
    def test_rejected(self, client, headers):
        response = client.post("/notifications/booking", json={"id": "b-1"}, headers=headers)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
