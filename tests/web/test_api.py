"""HTTP-level tests: auth flow and error mapping."""

import pytest
from fakes import FakeDatabase
from fastapi.testclient import TestClient

from aura.app import App
from aura.config import Config
from aura.web.server import create_fastapi_app

PHONE = {"country_code": "+60", "phone_no": "123456789"}


def make_client(debug: bool = True) -> TestClient:
    config = Config(database_url="mongodb://localhost:27017/aura_test", debug=debug, _env_file=None)  # type: ignore[call-arg]
    app = App(config, FakeDatabase())  # type: ignore[arg-type]
    return TestClient(create_fastapi_app(app, config))


@pytest.fixture
def client():
    with make_client() as client:
        yield client


def register(client: TestClient, phone: dict[str, str], name: str) -> str:
    otp = client.post("/api/v1/auth/otp", json=phone).json()["otp"]
    response = client.post("/api/v1/auth/register", json={**phone, "otp": otp, "name": name, "sex": "female"})
    assert response.status_code == 201
    return response.json()["token"]


class TestAuthFlow:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_unregistered_login_then_register(self, client):
        otp = client.post("/api/v1/auth/otp", json=PHONE).json()["otp"]

        login = client.post("/api/v1/auth/login", json={**PHONE, "otp": otp})
        assert login.status_code == 202
        assert login.json()["registration_required"] is True

        registered = client.post("/api/v1/auth/register", json={**PHONE, "otp": otp, "name": "Alice", "sex": "female"})
        assert registered.status_code == 201
        body = registered.json()
        assert body["user"]["id"].startswith("US")

        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json()["name"] == "Alice"
        assert me.json()["chats"] == {}

    def test_registered_login_returns_token(self, client):
        register(client, PHONE, "Alice")
        otp = client.post("/api/v1/auth/otp", json=PHONE).json()["otp"]

        login = client.post("/api/v1/auth/login", json={**PHONE, "otp": otp})

        assert login.status_code == 200
        assert login.json()["token"]
        assert client.post("/api/v1/auth/login", json={**PHONE, "otp": otp}).status_code == 400

    def test_logout_invalidates_token(self, client):
        token = register(client, PHONE, "Alice")
        headers = {"Authorization": f"Bearer {token}"}

        assert client.post("/api/v1/auth/logout", headers=headers).status_code == 204
        assert client.get("/api/v1/profile", headers=headers).status_code == 401

    def test_otp_hidden_outside_debug(self):
        with make_client(debug=False) as client:
            response = client.post("/api/v1/auth/otp", json=PHONE)
        assert response.status_code == 200
        assert response.json()["otp"] is None


class TestErrors:
    def test_invalid_phone(self, client):
        response = client.post("/api/v1/auth/otp", json={"country_code": "+60", "phone_no": "0123"})
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_not_authenticated(self, client):
        response = client.get("/api/v1/profile")
        assert response.status_code == 401
        assert response.json() == {"message": "Authentication failed", "type": "authentication_error"}

    def test_not_found_and_precondition_failed(self, client):
        headers = {"Authorization": f"Bearer {register(client, PHONE, 'Alice')}"}

        missing = client.get("/api/v1/chats/CH251100000099", headers=headers)
        assert missing.status_code == 404
        assert missing.json()["type"] == "not_found"

        chat = client.post("/api/v1/chats", json={"participant_ids": []}, headers=headers)
        assert chat.status_code == 422

        me = client.get("/api/v1/auth/me", headers=headers).json()
        chat = client.post("/api/v1/chats", json={"participant_ids": [me["id"]]}, headers=headers).json()
        duplicate = client.post(f"/api/v1/chats/{chat['id']}/members", json={"user_id": me["id"]}, headers=headers)
        assert duplicate.status_code == 409
        assert duplicate.json()["type"] == "precondition_failed"


class TestChatsOverHttp:
    def test_message_updates_other_members_entry(self, client):
        alice = {"Authorization": f"Bearer {register(client, PHONE, 'Alice')}"}
        bob = {"Authorization": f"Bearer {register(client, {'country_code': '+60', 'phone_no': '123456780'}, 'Bob')}"}
        bob_id = client.get("/api/v1/auth/me", headers=bob).json()["id"]

        chat = client.post("/api/v1/chats", json={"participant_ids": [bob_id]}, headers=alice).json()
        sent = client.post(f"/api/v1/chats/{chat['id']}/messages", json={"message": "hi Bob"}, headers=alice)
        assert sent.status_code == 201
        assert sent.json()["id"].startswith("MS")

        chats = client.get("/api/v1/chats", headers=bob).json()
        assert [(entry["id"], entry["last_message"], entry["unread_count"]) for entry in chats] == [
            (chat["id"], "hi Bob", 1)
        ]


class TestServerPlumbing:
    def test_request_id_echoed_or_generated(self, client):
        given = client.get("/health", headers={"X-Request-ID": "gateway-42"})
        assert given.headers["X-Request-ID"] == "gateway-42"

        generated = client.get("/health")
        assert len(generated.headers["X-Request-ID"]) == 32

    def test_openapi_marks_public_routes(self, client):
        schema = client.get("/openapi.json").json()

        assert schema["paths"]["/api/v1/auth/login"]["post"]["security"] == []
        assert schema["paths"]["/api/v1/profile"]["get"]["security"] == [{"BearerAuth": []}, {"AuthTokenCookie": []}]
        assert {"BearerAuth": []} in schema["security"]
        assert "travel-plans" in {tag["name"] for tag in schema["tags"]}

    def test_stale_cookie_does_not_shadow_bearer(self, client):
        token = register(client, PHONE, "Alice")
        client.cookies.set("auth_token", "expired-token")

        response = client.get("/api/v1/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["name"] == "Alice"


class TestReferencesOverHttp:
    def test_create_then_forbidden_for_others(self, client):
        alice = {"Authorization": f"Bearer {register(client, PHONE, 'Alice')}"}
        bob = {"Authorization": f"Bearer {register(client, {'country_code': '+60', 'phone_no': '123456780'}, 'Bob')}"}
        body = {
            "reference_name": "Friday run",
            "title": "Night run",
            "event_type": "sport",
            "event_status": "open",
            "location": {"id": "LOC253000000001", "name": "KLCC Park", "address": "Kuala Lumpur", "lat": 3.15, "lng": 101.71},
            "participant_ids": [],
            "max_participants": 4,
            "desc": "5k around the park",
        }

        created = client.post("/api/v1/references", json=body, headers=alice)
        assert created.status_code == 201
        reference_id = created.json()["id"]
        assert reference_id.startswith("RF")

        assert [item["id"] for item in client.get("/api/v1/references", headers=alice).json()] == [reference_id]
        assert client.get(f"/api/v1/references/{reference_id}", headers=bob).status_code == 403
        assert client.delete(f"/api/v1/references/{reference_id}", headers=bob).status_code == 403
        assert client.delete(f"/api/v1/references/{reference_id}", headers=alice).status_code == 204
        assert client.get(f"/api/v1/references/{reference_id}", headers=alice).status_code == 404
