"""
HTTP-level tests for the v1 API.

Each test runs against a fresh SQLite file; the first user registered
through the API becomes the administrator.
"""

import json
import sqlite3

import pytest

from delegation_portal_api.app.services.operation_store import OperationStore


def _register(client, email, password="password123"):
    response = client.post("/api/v1/users/", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    login = client.post("/api/v1/users/login", json={"email": email, "password": password})
    assert login.status_code == 200, login.text
    return {"Authorization": f"Bearer {login.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return _register(client, "admin@example.com")


@pytest.fixture
def alice_headers(client, admin_headers):
    return _register(client, "alice@example.com")


@pytest.fixture
def bob_headers(client, admin_headers):
    return _register(client, "bob@example.com")


def _create(client, headers, **overrides):
    payload = {"name": "X", "client_name": "C1", "type": "Souscription", "operation_type": "PER"}
    payload.update(overrides)
    response = client.post("/api/v1/operations/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestUsers:

    def test_first_user_is_admin(self, client, admin_headers, alice_headers):
        assert client.get("/api/v1/users/me", headers=admin_headers).json()["is_admin"] is True
        me = client.get("/api/v1/users/me", headers=alice_headers).json()
        assert me["email"] == "alice@example.com"
        assert me["is_admin"] is False

    def test_duplicate_email_conflicts(self, client, alice_headers):
        response = client.post("/api/v1/users/", json={"email": "alice@example.com", "password": "password123"})
        assert response.status_code == 409

    def test_wrong_password(self, client, alice_headers):
        response = client.post("/api/v1/users/login", json={"email": "alice@example.com", "password": "nope"})
        assert response.status_code == 401

    def test_invalid_token_is_rejected(self, client):
        response = client.get("/api/v1/operations/", headers={"Authorization": "Bearer not.a.token"})
        assert response.status_code == 401


class TestOperationsApi:

    def test_create_operation(self, client, alice_headers):
        body = _create(client, alice_headers)

        assert body["status"] == "En attente"
        assert body["type"] == "Souscription"
        assert body["form_data"] == {}

    def test_unknown_type_is_coerced(self, client, alice_headers):
        body = _create(client, alice_headers, type="Rachat")
        assert body["type"] == "Actes de Gestion"

    def test_missing_required_field_is_422(self, client, alice_headers):
        response = client.post("/api/v1/operations/", json={"name": "X"}, headers=alice_headers)
        assert response.status_code == 422

    def test_anonymous_requests_are_401(self, client, alice_headers):
        operation = _create(client, alice_headers)
        payload = {"name": "X", "client_name": "C1", "type": "Souscription", "operation_type": "PER"}

        assert client.post("/api/v1/operations/", json=payload).status_code == 401
        assert client.get("/api/v1/operations/").status_code == 401
        response = client.patch(f"/api/v1/operations/{operation['id']}/status", json={"status": "En cours"})
        assert response.status_code == 401
        assert response.headers.get("WWW-Authenticate") == "Bearer"

    def test_list_is_empty_then_newest_first(self, client, alice_headers, bob_headers):
        assert client.get("/api/v1/operations/", headers=alice_headers).json() == []

        first = _create(client, alice_headers, name="first")
        _create(client, bob_headers, name="other")
        second = _create(client, alice_headers, name="second")

        listed = client.get("/api/v1/operations/", headers=alice_headers).json()
        assert [op["id"] for op in listed] == [second["id"], first["id"]]

    def test_owner_updates_status(self, client, alice_headers):
        operation = _create(client, alice_headers)
        response = client.patch(
            f"/api/v1/operations/{operation['id']}/status",
            json={"status": "Terminé"},
            headers=alice_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Terminé"

    def test_non_owner_gets_403_and_status_is_kept(self, client, alice_headers, bob_headers):
        operation = _create(client, alice_headers)
        response = client.patch(
            f"/api/v1/operations/{operation['id']}/status",
            json={"status": "En cours"},
            headers=bob_headers,
        )
        assert response.status_code == 403

        detail = client.get(f"/api/v1/operations/{operation['id']}", headers=alice_headers).json()
        assert detail["status"] == "En attente"

    def test_admin_updates_any_operation(self, client, admin_headers, alice_headers):
        operation = _create(client, alice_headers)
        response = client.patch(
            f"/api/v1/operations/{operation['id']}/status",
            json={"status": "En cours"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "En cours"

    def test_unknown_operation_is_404(self, client, alice_headers):
        response = client.patch(
            "/api/v1/operations/missing/status", json={"status": "En cours"}, headers=alice_headers
        )
        assert response.status_code == 404
        assert client.get("/api/v1/operations/missing", headers=alice_headers).status_code == 404

    def test_invalid_status_is_422(self, client, alice_headers):
        operation = _create(client, alice_headers)
        response = client.patch(
            f"/api/v1/operations/{operation['id']}/status",
            json={"status": "Annulé"},
            headers=alice_headers,
        )
        assert response.status_code == 422

    def test_detail_view_is_owner_only(self, client, alice_headers, bob_headers):
        operation = _create(client, alice_headers, notes="à rappeler")

        detail = client.get(f"/api/v1/operations/{operation['id']}", headers=alice_headers)
        assert detail.status_code == 200
        assert detail.json()["notes"] == "à rappeler"
        assert client.get(f"/api/v1/operations/{operation['id']}", headers=bob_headers).status_code == 403

    def test_seed_and_test_triggers(self, client, alice_headers):
        seed = client.post("/api/v1/operations/seed", headers=alice_headers)
        assert seed.status_code == 200
        assert seed.json()["client_name"] == "Client Seed"
        assert client.post("/api/v1/operations/seed", headers=alice_headers).json() is None

        test_op = client.post("/api/v1/operations/test", headers=alice_headers)
        assert test_op.status_code == 201
        assert test_op.json()["name"] == "Test Operation"

    def test_store_failure_is_500(self, client, alice_headers, monkeypatch):
        def fail(user_id, limit=None):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(OperationStore, "find_many", fail)
        response = client.get("/api/v1/operations/", headers=alice_headers)
        assert response.status_code == 500
        assert response.json() == {"detail": "Storage failure"}


class TestFormsApi:

    def test_catalog(self, client):
        body = client.get("/api/v1/forms/").json()
        assert set(body["categories"]) == {"Souscription", "Actes de Gestion"}
        assert client.get("/api/v1/forms/per").json()["operation_type"] == "PER"
        assert client.get("/api/v1/forms/unknown").status_code == 404

    def test_submission_creates_operation(self, client, alice_headers):
        message = json.dumps({
            "event": "Tally.FormSubmitted",
            "payload": {
                "id": "sub_1",
                "formId": "mKa4yX",
                "fields": [
                    {"title": "Nom du client", "answer": {"value": "Dupont"}},
                    {"title": "Commentaires", "answer": {"value": "urgent"}},
                ],
            },
        })
        response = client.post(
            "/api/v1/forms/assurance-vie/submissions",
            content=message,
            headers={**alice_headers, "Content-Type": "text/plain"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["created"] is True
        assert body["operation"]["client_name"] == "Dupont"
        assert body["operation"]["notes"] == "urgent"
        assert body["operation"]["name"] == "Assurance Vie - Dupont"

    def test_unrelated_message_is_ignored(self, client, alice_headers):
        response = client.post(
            "/api/v1/forms/per/submissions",
            content='{"event": "Tally.FormPageView"}',
            headers={**alice_headers, "Content-Type": "text/plain"},
        )
        assert response.status_code == 200
        assert response.json() == {"created": False, "operation": None}
        assert client.get("/api/v1/operations/", headers=alice_headers).json() == []

    def test_anonymous_submission_is_401(self, client):
        message = json.dumps({"event": "Tally.FormSubmitted", "payload": {"fields": []}})
        response = client.post("/api/v1/forms/per/submissions", content=message)
        assert response.status_code == 401

    def test_direct_submit(self, client, alice_headers):
        response = client.post("/api/v1/forms/scpi-pp/direct", headers=alice_headers)
        assert response.status_code == 201
        assert response.json()["name"] == "SCPI Pleine Propriété - Direct Submit"


class TestPreferencesApi:

    def test_onboarding_flag_round_trip(self, client, alice_headers, bob_headers):
        assert client.get("/api/v1/preferences/has_seen_onboarding", headers=alice_headers).status_code == 404

        response = client.put(
            "/api/v1/preferences/has_seen_onboarding",
            json={"value": True, "type": "bool"},
            headers=alice_headers,
        )
        assert response.status_code == 200
        assert response.json()["value"] is True

        assert client.get("/api/v1/preferences/has_seen_onboarding", headers=alice_headers).json()["value"] is True
        # Preferences are per user.
        assert client.get("/api/v1/preferences/has_seen_onboarding", headers=bob_headers).status_code == 404

    def test_list_and_overwrite(self, client, alice_headers):
        client.put("/api/v1/preferences/page_size", json={"value": 10, "type": "int"}, headers=alice_headers)
        client.put("/api/v1/preferences/page_size", json={"value": "25", "type": "int"}, headers=alice_headers)

        listed = client.get("/api/v1/preferences/", headers=alice_headers).json()
        assert [(p["key"], p["value"]) for p in listed] == [("page_size", 25)]

    def test_unconvertible_value_is_422(self, client, alice_headers):
        response = client.put(
            "/api/v1/preferences/page_size", json={"value": "many", "type": "int"}, headers=alice_headers
        )
        assert response.status_code == 422

    def test_anonymous_is_401(self, client):
        assert client.get("/api/v1/preferences/").status_code == 401


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
