import pytest
from fastapi.testclient import TestClient

from relay.config import Settings
from relay.main import create_app
from relay.middleware.rate_limit import limiter
from relay.services.storage_service import MemorySecretStore, SecretStore


@pytest.fixture
def store():
    """Fresh in-memory store for each test."""
    return MemorySecretStore()


@pytest.fixture
def app_settings(tmp_path):
    """Settings pointing the UI at a directory that does not exist."""
    return Settings(memcached=None, public_dir=str(tmp_path / "no-ui"), cors_origins=[])


@pytest.fixture
def make_client(app_settings):
    """Factory for test clients over a given store, with rate limiting disabled."""
    clients = []
    original_enabled = limiter.enabled
    limiter.enabled = False

    def _make(store: SecretStore, settings=None, token_generator=None) -> TestClient:
        app = create_app(settings or app_settings, store=store, token_generator=token_generator)
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make

    for test_client in clients:
        test_client.__exit__(None, None, None)
    limiter.enabled = original_enabled


@pytest.fixture
def client(make_client, store):
    return make_client(store)
