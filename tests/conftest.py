"""
Test configuration and shared fixtures for the dental booking test suite.

Uses an in-memory SQLite record store per test, so each test starts from an
empty database, and a temporary directory as local blob storage.
"""

import pytest
from typing import Dict, Generator

import bcrypt
from fastapi.testclient import TestClient

from api.dependencies import get_snapshot, get_storage, get_store
from core import config
from core.database import RecordStore
from main import app
from services.auth_service import AuthService
from services.snapshot_service import ScheduleSnapshot
from utils.file_storage import LocalBlobStorage

# Import all models to ensure they're registered on Base.metadata
from models import Appointment, Patient, PatientUpload, AdminSession  # noqa: F401

APP_ID = "dental"
LOCATION_ID = "consultorio-paris-rizo"

# March 2025: the 9th is a Sunday, so the 10th..15th run Monday..Saturday
SUNDAY = "2025-03-09"
MONDAY = "2025-03-10"
TUESDAY = "2025-03-11"
SATURDAY = "2025-03-15"

ADMIN_EMAIL = "doctora@example.com"
ADMIN_PASSWORD = "s3cret-pass"


@pytest.fixture
def store() -> Generator[RecordStore, None, None]:
    """
    Provide a fresh in-memory record store with all tables created.
    """
    record_store = RecordStore("sqlite://").init()
    record_store.create_tables()

    yield record_store

    record_store.drop_tables()
    record_store.dispose()


@pytest.fixture
def storage(tmp_path) -> LocalBlobStorage:
    """Local blob storage rooted in a temporary directory."""
    return LocalBlobStorage(str(tmp_path / "blobs"), "http://testserver/static/uploads")


@pytest.fixture
def snapshot() -> ScheduleSnapshot:
    return ScheduleSnapshot(APP_ID)


@pytest.fixture
def admin_account(monkeypatch) -> Dict[str, str]:
    """Configure a single admin account (low bcrypt cost to keep tests fast)."""
    password_hash = bcrypt.hashpw(ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")
    monkeypatch.setattr(config, "ADMIN_ACCOUNTS", {ADMIN_EMAIL: password_hash})
    return {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}


@pytest.fixture
def client(store, storage, snapshot) -> Generator[TestClient, None, None]:
    """
    TestClient wired to the per-test store, storage and snapshot.

    The lifespan is not run; dependencies are overridden instead.
    """
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_snapshot] = lambda: snapshot

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(store, admin_account) -> Dict[str, str]:
    """Authorization header of a signed-in admin."""
    result = AuthService.sign_in_with_password(store, admin_account["email"], admin_account["password"])
    return {"Authorization": f"Bearer {result.access_token}"}


@pytest.fixture
def sample_contact_data():
    """Sample booking contact data for tests."""
    return {
        "name": "Ana López",
        "phone": "5512345678",
        "email": "ana@example.com",
    }
