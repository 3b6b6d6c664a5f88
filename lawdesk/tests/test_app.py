"""
App-level Tests
===============

Health check, security headers, error envelope, engine setup and startup
bootstrap.
"""

from fastapi.testclient import TestClient

from lawdesk.config import DEFAULT_JWT_SECRET, Settings, get_settings
from lawdesk.db.models import User, UserRole
from lawdesk.db.session import SessionLocal, _engine_options, get_db_session, get_engine
from lawdesk.errors import (
    AuthenticationError,
    ConflictError,
    ExternalServiceError,
    InvalidTokenError,
    NotFoundError,
    ServiceError,
    StorageError,
    UnsupportedTypeError,
    ValidationError,
)


class TestErrors:

    def test_status_codes(self):
        assert ValidationError().status_code == 400
        assert UnsupportedTypeError().status_code == 400
        assert ConflictError().status_code == 409
        assert AuthenticationError().status_code == 401
        assert InvalidTokenError().status_code == 403
        assert NotFoundError().status_code == 404
        assert ExternalServiceError().status_code == 502
        assert StorageError().status_code == 500

    def test_hierarchy_and_messages(self):
        assert isinstance(UnsupportedTypeError(), ValidationError)
        assert isinstance(InvalidTokenError(), AuthenticationError)
        assert isinstance(StorageError(), ServiceError)
        assert NotFoundError("Case not found").message == "Case not found"
        assert NotFoundError().message == "Not found"


class TestSettings:

    def test_cors_origins_parsing(self):
        settings = Settings(cors_allow_origins=' "http://a.test/" , http://b.test,, ')
        assert settings.cors_origins() == ["http://a.test", "http://b.test"]

    def test_validate_config_warnings(self):
        settings = Settings(jwt_secret_key=DEFAULT_JWT_SECRET, ai_api_key=None, admin_email="a@b.c", admin_password=None)
        warnings = settings.validate_config()
        assert any("JWT_SECRET_KEY" in w for w in warnings)
        assert any("AI_API_KEY" in w for w in warnings)
        assert any("ADMIN_EMAIL" in w for w in warnings)


class TestEngine:

    def test_engine_follows_database_url(self, sqlalchemy_db, monkeypatch):
        first = get_engine()
        assert get_engine() is first
        assert SessionLocal.kw["bind"] is first

        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{sqlalchemy_db / 'other.db'}")
        second = get_engine()
        assert second is not first
        assert SessionLocal.kw["bind"] is second

    def test_engine_options(self, monkeypatch):
        monkeypatch.setenv("DB_POOL_SIZE", "7")
        assert _engine_options("sqlite:///x.db")["connect_args"] == {"check_same_thread": False}
        options = _engine_options("postgresql://u:p@db/lawdesk")
        assert options["pool_size"] == 7
        assert options["pool_pre_ping"] is True
        assert "connect_args" not in options


class TestApp:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "Strict-Transport-Security" not in response.headers

    def test_hsts_behind_https_proxy(self, client):
        response = client.get("/health", headers={"X-Forwarded-Proto": "https"})
        assert response.headers["Strict-Transport-Security"].startswith("max-age=")

    def test_unknown_route_uses_envelope(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.json() == {"status": False, "message": "Not Found", "data": {}}

    def test_malformed_json_is_400(self, client):
        response = client.post("/api/auth/login", content=b"{not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request"

    def test_startup_bootstraps_admin(self, sqlalchemy_db, monkeypatch):
        from lawdesk.api import app

        monkeypatch.setenv("ADMIN_EMAIL", "boot@example.com")
        monkeypatch.setenv("ADMIN_PASSWORD", "bootpass")
        get_settings.cache_clear()

        with TestClient(app) as client:
            login = client.post("/api/auth/login", json={"email": "boot@example.com", "password": "bootpass"})
            assert login.status_code == 200
            assert login.json()["data"]["user"]["role"] == "admin"

        # Restart does not duplicate the account
        with TestClient(app):
            pass
        with get_db_session() as db:
            admins = db.query(User).filter(User.role == UserRole.ADMIN).all()
            assert [a.email for a in admins] == ["boot@example.com"]
