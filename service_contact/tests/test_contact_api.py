"""
Unit tests for the contact service HTTP surface.
"""

import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from service_contact.app.main import ContactService, create_app
from shared.config import ContactConfig
from shared.errors import StorageFailure

ADMIN = ("admin", "s3cret")


class TestContactService:
    """Test cases for ContactService."""

    @pytest.fixture
    def messages_file(self, tmp_path):
        return tmp_path / "data" / "messages.json"

    @pytest.fixture
    def config(self, messages_file):
        return ContactConfig(
            _env_file=None,
            messages_file=str(messages_file),
            admin_user=ADMIN[0],
            admin_pass=ADMIN[1],
            static_dir=None,
            rate_limit_window_ms=60_000,
            rate_limit_max=6,
        )

    @pytest.fixture
    def service(self, config):
        return ContactService(config)

    @pytest.fixture
    def client(self, service):
        return TestClient(service.app)

    @pytest.fixture
    def submission(self):
        return {"name": "Ada", "email": "ada@example.com", "message": "Hello there"}

    def test_startup_creates_empty_store(self, service, messages_file):
        assert json.loads(messages_file.read_text()) == []

    def test_submit_contact(self, client, submission):
        response = client.post("/api/contact", json=submission)

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["message"] == "Message received. Thank you!"
        assert data["data"]["name"] == "Ada"
        assert data["data"]["submitterAddress"] == "testclient"
        assert isinstance(data["data"]["id"], int)
        assert data["data"]["receivedAt"].endswith("Z")
        assert response.headers["X-RateLimit-Limit"] == "6"
        assert response.headers["X-RateLimit-Remaining"] == "5"

    def test_submit_sanitizes_markup(self, client, submission):
        submission["name"] = "<script>"
        client.post("/api/contact", json=submission)

        response = client.get("/api/messages", auth=ADMIN)

        assert response.json()[0]["name"] == "&lt;script&gt;"
        assert "<script>" not in response.text

    def test_submit_missing_field(self, client, submission, messages_file):
        submission["name"] = ""

        response = client.post("/api/contact", json=submission)

        assert response.status_code == 400
        assert response.json()["error"] == "Name, email and message are required."
        assert json.loads(messages_file.read_text()) == []

    def test_submit_message_length_boundary(self, client, submission):
        submission["message"] = "a" * 5000
        assert client.post("/api/contact", json=submission).status_code == 200

        submission["message"] = "a" * 5001
        response = client.post("/api/contact", json=submission)
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Message too long."
        assert data["code"] == "VALIDATION_ERROR"

    def test_submit_invalid_json(self, client):
        response = client.post(
            "/api/contact",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON body."

    def test_submit_oversized_body(self, client, submission):
        submission["padding"] = "x" * 20_000

        response = client.post("/api/contact", json=submission)

        assert response.status_code == 413
        assert response.json()["code"] == "PAYLOAD_TOO_LARGE"

    def test_submit_oversized_integer_literal(self, client, messages_file):
        body = b'{"name": "Ada", "email": "ada@example.com", "message": ' + b"9" * 5000 + b"}"

        response = client.post("/api/contact", content=body, headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON body."
        assert json.loads(messages_file.read_text()) == []

    def test_submit_deeply_nested_json(self, client):
        response = client.post(
            "/api/contact",
            content=b"[" * 10_000,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON body."

    def test_submit_declared_length_rejected_before_read(self, client, submission):
        response = client.post(
            "/api/contact",
            content=json.dumps(submission).encode(),
            headers={"Content-Type": "application/json", "Content-Length": "10000000"},
        )

        assert response.status_code == 413
        assert response.json()["code"] == "PAYLOAD_TOO_LARGE"

    def test_submit_chunked_body_capped(self, client):
        chunks = (b"x" * 1024 for _ in range(20))

        response = client.post(
            "/api/contact",
            content=chunks,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 413

    def test_rejected_submission_keeps_rate_limit_headers(self, client, submission):
        del submission["email"]

        response = client.post("/api/contact", json=submission)

        assert response.status_code == 400
        assert response.headers["X-RateLimit-Limit"] == "6"
        assert response.headers["X-RateLimit-Remaining"] == "5"

        response = client.post("/api/contact", content=b"{bad", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.headers["X-RateLimit-Remaining"] == "4"

    def test_submit_rate_limited(self, client, submission):
        for _ in range(6):
            assert client.post("/api/contact", json=submission).status_code == 200

        response = client.post("/api/contact", json=submission)

        assert response.status_code == 429
        assert response.json()["error"] == "Too many submissions, please wait a bit."
        assert int(response.headers["Retry-After"]) > 0
        assert response.headers["X-RateLimit-Remaining"] == "0"

    def test_rate_limit_runs_before_validation(self, client):
        for _ in range(6):
            assert client.post("/api/contact", json={}).status_code == 400

        assert client.post("/api/contact", json={}).status_code == 429

    def test_submit_storage_failure(self, client, service, submission):
        with patch.object(service.store, "append", side_effect=StorageFailure("Server error saving message.")):
            response = client.post("/api/contact", json=submission)

        assert response.status_code == 500
        assert response.json()["error"] == "Server error saving message."

    def test_messages_requires_credentials(self, client):
        response = client.get("/api/messages")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == 'Basic realm="Admin Area"'
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Authentication required."

    def test_messages_wrong_password(self, client):
        response = client.get("/api/messages", auth=("admin", "wrong"))

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == 'Basic realm="Admin Area"'

    def test_messages_first_run_empty(self, client):
        response = client.get("/api/messages", auth=ADMIN)

        assert response.status_code == 200
        assert response.json() == []

    def test_messages_newest_first(self, client, submission):
        for i in range(3):
            submission["message"] = f"note {i}"
            client.post("/api/contact", json=submission)

        response = client.get("/api/messages", auth=ADMIN)

        assert [m["message"] for m in response.json()] == ["note 2", "note 1", "note 0"]

    def test_messages_corrupt_store(self, client, messages_file):
        messages_file.write_text("{oops")

        response = client.get("/api/messages", auth=ADMIN)

        assert response.status_code == 500
        assert response.json()["code"] == "STORAGE_ERROR"

    def test_messages_refused_without_configured_admin(self, config):
        config.admin_user = None
        config.admin_pass = None
        client = TestClient(create_app(config))

        response = client.get("/api/messages", auth=("admin", "password"))

        assert response.status_code == 401

    def test_health(self, client, submission):
        client.post("/api/contact", json=submission)

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "contact"
        assert data["status"] == "ok"
        assert data["dependencies"] == {"store": "ok", "stored_messages": 1}

    def test_health_with_corrupt_store(self, client, messages_file):
        messages_file.write_text("[1, 2")

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "error"

    def test_metrics_endpoint(self, client, submission):
        client.post("/api/contact", json=submission)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'contact_submissions_total{outcome="accepted"} 1.0' in response.text

    def test_security_and_request_id_headers(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_static_site_does_not_shadow_api(self, config, tmp_path):
        site = tmp_path / "public"
        site.mkdir()
        (site / "index.html").write_text("<h1>Hi</h1>")
        config.static_dir = str(site)
        client = TestClient(create_app(config))

        assert client.get("/").text == "<h1>Hi</h1>"
        assert client.get("/api/messages").status_code == 401

    def test_static_site_falls_back_to_index(self, config, tmp_path):
        site = tmp_path / "public"
        site.mkdir()
        (site / "index.html").write_text("<h1>Hi</h1>")
        (site / "style.css").write_text("body {}")
        config.static_dir = str(site)
        client = TestClient(create_app(config))

        response = client.get("/about/team")

        assert response.status_code == 200
        assert response.text == "<h1>Hi</h1>"
        assert client.get("/style.css").text == "body {}"
        assert client.get("/health").json()["status"] == "ok"
        assert client.get("/metrics").status_code == 200
        assert client.get("/api/messages", auth=ADMIN).json() == []

    def test_static_site_without_index_is_plain_not_found(self, config, tmp_path):
        site = tmp_path / "public"
        site.mkdir()
        config.static_dir = str(site)
        client = TestClient(create_app(config))

        response = client.get("/missing")

        assert response.status_code == 404
        assert response.text == "Not found"
        assert response.headers["content-type"].startswith("text/plain")

    def test_unknown_path_without_site_is_plain_not_found(self, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.text == "Not found"
        assert client.get("/api/messages").status_code == 401
        assert client.get("/health").status_code == 200


class TestContactConfig:
    """Test cases for environment-sourced configuration."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ADMIN_USER", "operator")
        monkeypatch.setenv("CONTACT_ADMIN_PASS", "hunter2")
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("CONTACT_RATE_LIMIT_MAX", "3")

        config = ContactConfig(_env_file=None)

        assert config.admin_user == "operator"
        assert config.admin_pass == "hunter2"
        assert config.port == 8080
        assert config.rate_limit_max == 3
        assert config.admin_configured is True

    def test_defaults(self, monkeypatch):
        for name in ("ADMIN_USER", "ADMIN_PASS", "CONTACT_ADMIN_USER", "CONTACT_ADMIN_PASS"):
            monkeypatch.delenv(name, raising=False)

        config = ContactConfig(_env_file=None)

        assert config.admin_configured is False
        assert config.rate_limit_window_ms == 60_000
        assert config.rate_limit_max == 6
        assert config.max_message_length == 5000
