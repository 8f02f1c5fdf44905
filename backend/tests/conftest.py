from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from backend.app import create_app
from backend.auth.models import Role
from backend.auth.users import create_user
from backend.catalog.data_store import load_catalog
from backend.config import DEFAULT_APP_CONFIG, AppConfig
from backend.notifications.config import QueueConfig
from backend.notifications.dispatcher import EmailDispatcher
from backend.notifications.fake_transport import FakeEmailAdapter
from backend.notifications.queue import EmailQueue
from backend.payments.fake_gateway import FakeGateway
from backend.storage.document_store import DocumentStore

FAST_QUEUE = QueueConfig(max_attempts=3, retry_delay_ms=5, pacing_ms=0)

CREDENTIALS = {
    "customer": {"email": "asha@example.com", "password": "secret123"},
    "other": {"email": "bikash@example.com", "password": "secret456"},
    "admin": {"email": "admin@example.com", "password": "admin123"},
}


@pytest.fixture
def store() -> DocumentStore:
    return DocumentStore()


@pytest.fixture
def catalog_store(store) -> DocumentStore:
    load_catalog(store, DEFAULT_APP_CONFIG.catalog_path)
    return store


@pytest.fixture
def email_transport() -> FakeEmailAdapter:
    return FakeEmailAdapter()


@pytest.fixture
def email_queue(email_transport) -> EmailQueue:
    # Jobs stay queued until a test drains them explicitly.
    return EmailQueue(EmailDispatcher(email_transport).handlers(), FAST_QUEUE, autostart=False)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def users(store) -> dict:
    phones = {"customer": "9800000001", "other": "9800000002", "admin": "9800000003"}
    names = {"customer": "Asha Rai", "other": "Bikash Thapa", "admin": "Admin"}
    return {
        who: create_user(
            store,
            names[who],
            creds["email"],
            phones[who],
            creds["password"],
            role=Role.admin if who == "admin" else Role.customer,
        )
        for who, creds in CREDENTIALS.items()
    }


@pytest.fixture
def app(store, email_queue, gateway, tmp_path):
    config = AppConfig(
        session_secret="test-secret",
        seed_catalog=False,
        upload_dir=tmp_path / "uploads",
        admin_email="",
        admin_password="",
    )
    return create_app(config, store=store, email_queue=email_queue, gateway=gateway)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def login(client, users):
    """Log ``client`` in as one of the seeded users and return that user."""

    def _login(who: str = "customer"):
        resp = client.post("/auth/login", json=CREDENTIALS[who])
        assert resp.status_code == 200, resp.text
        return users[who]

    return _login
