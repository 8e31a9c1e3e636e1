"""Tests for the secrets API."""

import re

import pytest

from tests.test_utils import FailingStore

UUID_RE = re.compile(r"^[0-9a-f]{8}-([0-9a-f]{4}-){3}[0-9a-f]{12}$")


def store_secret(client, secret="hunter2", expiration=3600):
    return client.post("/v1/secret", json={"secret": secret, "expiration": expiration})


class TestCreateSecret:
    """Tests for POST /v1/secret."""

    @pytest.mark.parametrize("expiration", [3600, 86400, 604800])
    def test_valid_expirations_are_stored(self, client, expiration):
        response = store_secret(client, expiration=expiration)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "secret stored"
        assert UUID_RE.match(data["key"])
        assert response.headers["content-type"] == "application/json"

    @pytest.mark.parametrize("expiration", [0, -3600, 60, 3599, 3601, 86401, 604801, 2**31])
    def test_invalid_expiration_rejected(self, client, store, expiration):
        response = store_secret(client, secret="x", expiration=expiration)

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid expiration specified"}
        assert len(store) == 0

    def test_max_length_secret_accepted(self, client):
        response = store_secret(client, secret="a" * 10_000)
        assert response.status_code == 200

    def test_too_long_secret_rejected(self, client, store):
        response = store_secret(client, secret="a" * 10_001)

        assert response.status_code == 400
        assert response.json() == {"message": "Message is too long"}
        assert len(store) == 0

    def test_length_is_counted_in_bytes(self, client):
        # 5000 two-byte characters is 10,000 bytes; one more tips it over
        assert store_secret(client, secret="é" * 5000).status_code == 200
        response = store_secret(client, secret="é" * 5001)
        assert response.status_code == 400
        assert response.json() == {"message": "Message is too long"}

    def test_expiration_checked_before_length(self, client):
        response = store_secret(client, secret="a" * 10_001, expiration=60)
        assert response.json() == {"message": "Invalid expiration specified"}

    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"not json",
            b"[]",
            b'{"secret": "x"}',
            b'{"expiration": 3600}',
            b'{"secret": 12, "expiration": 3600}',
            b'{"secret": "x", "expiration": "3600"}',
            b'{"secret": "x", "expiration": 3600.5}',
        ],
    )
    def test_unparseable_body_rejected(self, client, store, body):
        response = client.post(
            "/v1/secret", content=body, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Unable to parse json"}
        assert len(store) == 0

    @pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE", "TRACE", "FOO"])
    def test_other_methods_rejected(self, client, method):
        response = client.request(method, "/v1/secret")

        assert response.status_code == 400
        assert "Bad Request" in response.json()["message"]

    def test_store_failure_returns_500_without_key(self, make_client):
        failing_client = make_client(FailingStore({"put"}))

        response = store_secret(failing_client)

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to store secret in database"}
        assert "memcached" not in response.text

    def test_custom_token_generator_is_used(self, make_client, store):
        token = "00000000-0000-4000-8000-000000000000"
        custom_client = make_client(store, token_generator=lambda: token)

        response = store_secret(custom_client)

        assert response.json()["key"] == token


class TestRetrieveSecret:
    """Tests for GET /v1/secret/{id}."""

    def test_round_trip_then_gone(self, client):
        create_response = store_secret(client, secret="hunter2", expiration=3600)
        key = create_response.json()["key"]

        first = client.get(f"/v1/secret/{key}")
        assert first.status_code == 200
        assert first.json() == {"secret": "hunter2", "message": "OK"}

        second = client.get(f"/v1/secret/{key}")
        assert second.status_code == 404
        assert second.json() == {"message": "Secret not found"}

    def test_payload_returned_exactly(self, client):
        payload = "line one\nline two\té☃ \"quoted\" {json: true}"
        key = store_secret(client, secret=payload).json()["key"]

        response = client.get(f"/v1/secret/{key}")

        assert response.json()["secret"] == payload

    def test_empty_secret_round_trips(self, client):
        key = store_secret(client, secret="").json()["key"]

        response = client.get(f"/v1/secret/{key}")

        assert response.status_code == 200
        assert response.json()["secret"] == ""

    def test_secrets_are_independent(self, client):
        key_a = store_secret(client, secret="a").json()["key"]
        key_b = store_secret(client, secret="b").json()["key"]

        assert key_a != key_b
        assert client.get(f"/v1/secret/{key_a}").json()["secret"] == "a"
        assert client.get(f"/v1/secret/{key_b}").json()["secret"] == "b"

    def test_unknown_uuid_not_found(self, client):
        response = client.get("/v1/secret/0d3b1d2e-6c5a-11ee-b962-0242ac120002")

        assert response.status_code == 404
        assert response.json() == {"message": "Secret not found"}

    @pytest.mark.parametrize(
        "secret_id",
        [
            "not-a-uuid",
            "",
            "0D3B1D2E-6C5A-11EE-B962-0242AC120002",
            "0d3b1d2e6c5a11eeb9620242ac120002",
            "0d3b1d2e-6c5a-11ee-b962-0242ac12000",
            "0d3b1d2e-6c5a-11ee-b962-0242ac120002/extra",
        ],
    )
    def test_malformed_id_is_bad_url(self, make_client, secret_id):
        failing = FailingStore({"get", "delete"})
        bad_url_client = make_client(failing)

        response = bad_url_client.get(f"/v1/secret/{secret_id}")

        assert response.status_code == 400
        assert response.json() == {"message": "Bad URL"}
        assert failing.calls == []

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE", "TRACE", "FOO"])
    def test_other_methods_do_not_consume(self, client, method):
        key = store_secret(client).json()["key"]

        response = client.request(method, f"/v1/secret/{key}")
        assert response.status_code == 400
        assert "Bad Request" in response.json()["message"]

        assert client.get(f"/v1/secret/{key}").status_code == 200

    def test_head_does_not_consume(self, client):
        key = store_secret(client).json()["key"]

        assert client.head(f"/v1/secret/{key}").status_code == 400
        assert client.get(f"/v1/secret/{key}").status_code == 200

    def test_read_failure_returns_generic_500(self, make_client):
        failing_client = make_client(FailingStore({"get"}))

        response = failing_client.get("/v1/secret/0d3b1d2e-6c5a-11ee-b962-0242ac120002")

        assert response.status_code == 500
        assert response.json() == {"message": "Unable to receive secret from database"}

    def test_delete_failure_still_returns_secret(self, make_client):
        failing = FailingStore({"delete"})
        failing_client = make_client(failing)
        key = store_secret(failing_client).json()["key"]

        response = failing_client.get(f"/v1/secret/{key}")

        assert response.status_code == 200
        assert response.json() == {"secret": "hunter2", "message": "OK"}
        # Known weakness: the secret lingers until its TTL
        assert failing_client.get(f"/v1/secret/{key}").status_code == 200


class TestHealthAndUi:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_method_not_allowed_elsewhere_is_untouched(self, client):
        response = client.post("/health")

        assert response.status_code == 405
        assert response.json() == {"detail": "Method Not Allowed"}

    def test_ui_not_mounted_without_directory(self, client):
        assert client.get("/").status_code == 404

    def test_ui_served_from_public_dir(self, make_client, store, tmp_path):
        from relay.config import Settings

        public = tmp_path / "public"
        public.mkdir()
        (public / "index.html").write_text("<html><body>relay</body></html>")
        ui_client = make_client(store, settings=Settings(public_dir=str(public)))

        index = ui_client.get("/")
        assert index.status_code == 200
        assert "relay" in index.text

        # API routes win over the UI mount
        key = store_secret(ui_client).json()["key"]
        assert ui_client.get(f"/v1/secret/{key}").json()["secret"] == "hunter2"
        assert ui_client.get("/v1/secret").status_code == 400
