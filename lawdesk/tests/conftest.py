"""
Shared test fixtures
====================

Every test that touches the database gets a fresh SQLite file and upload
directory under tmp_path.
"""

import pytest
from pathlib import Path

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


@pytest.fixture
def sqlalchemy_db(tmp_path, monkeypatch):
    """Configure a fresh SQLAlchemy SQLite DB and upload dir for tests."""
    from lawdesk import auth
    from lawdesk.config import get_settings
    from lawdesk.db.session import reset_engine, init_db
    from lawdesk.storage import reset_document_store

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'lawdesk_test.db'}")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setattr(auth, "_pwd_context", None)
    get_settings.cache_clear()
    reset_document_store()
    reset_engine()
    init_db()

    yield tmp_path

    from lawdesk.api import app
    app.dependency_overrides.clear()
    reset_engine()
    reset_document_store()
    get_settings.cache_clear()


@pytest.fixture
def client(sqlalchemy_db):
    from fastapi.testclient import TestClient
    from lawdesk.api import app
    return TestClient(app)


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client, role="citizen", username="jane", email="jane@example.com",
             password="secret1", **extra) -> dict:
    """Register through the API and return the response data (token + user)."""
    body = {
        "role": role,
        "username": username,
        "email": email,
        "password": password,
        "confirmPassword": password,
        **extra,
    }
    response = client.post("/api/auth/register", json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def user_token(client):
    return register(client)["token"]


@pytest.fixture
def admin_token(sqlalchemy_db):
    from lawdesk.auth import get_auth_service, issue_token
    from lawdesk.db.session import get_db_session

    with get_db_session() as db:
        admin = get_auth_service(db).ensure_admin("admin@example.com", "adminpass", "root")
        return issue_token(admin.id, admin.role)
