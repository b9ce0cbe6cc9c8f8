"""
Test fixtures and shared setup.

Every DB-backed test gets its own in-memory SQLite database (StaticPool keeps
the single connection alive), so tests never see each other's rows.
Pure-function tests (fees, sanitizer, scoring, validator) need no DB at all.
"""

import os
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# ── Override settings BEFORE importing app modules ────────────────────────────
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/practice_billing_test_exports")
os.environ.setdefault("BALANCE_RETRY_BASE_DELAY_SECONDS", "0")

from billing_core.database import get_db
from billing_core.main import app
from billing_core.models import Base
from billing_core.settings import settings


# ── Test engine ───────────────────────────────────────────────────────────────


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    TestSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestSessionLocal()
    yield session
    session.close()


@pytest.fixture
def export_dir(tmp_path, monkeypatch) -> str:
    path = str(tmp_path / "exports")
    monkeypatch.setattr(settings, "local_storage_path", path)
    return path


@pytest.fixture
def client(db: Session, export_dir) -> TestClient:
    """
    FastAPI test client with the DB dependency overridden to use the test session.
    """

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ── Data builder fixtures ─────────────────────────────────────────────────────


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def valid_configuration_data() -> dict:
    return {
        "client_id": "ACME-001",
        "client_name": "Acme Insurance Co.",
        "format": "LEDES1998B",
        "utbms_mapping": {
            "activity_codes": {"deposition_prep": "L310"},
            "expense_codes": {"court_reporter": "E200"},
            "task_codes": {"legal_research": "L120"},
            "default_activity_code": "L110",
            "default_expense_code": "E100",
        },
        "billing_rates": {"Partner": "$450.00", "Associate": 275, "Paralegal": "125.5"},
    }


@pytest.fixture
def sample_trust_account(db: Session):
    from billing_core.models.trust import TrustAccount

    account = TrustAccount(name="Smith Retainer", client_id="SMITH-01", balance_cents=50000)
    db.add(account)
    db.commit()
    return account
