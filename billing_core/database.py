"""
SQLAlchemy engine and session setup.

Usage in FastAPI route handlers:
    from billing_core.database import get_db
    def my_route(db: Session = Depends(get_db)): ...

Usage in scripts / export jobs:
    from billing_core.database import SessionLocal
    with SessionLocal() as db:
        ...
"""

from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from billing_core.settings import settings


def _engine_options() -> dict:
    # SQLite connections are single-threaded by default and do not take pool sizing
    if settings.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


# ── Engine ─────────────────────────────────────────────────────────────────
engine = create_engine(
    settings.database_url,
    echo=False,
    **_engine_options(),
)

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    class_=Session,
)


# ── FastAPI dependency ──────────────────────────────────────────────────────
def get_db() -> Generator[Session, None, None]:
    """Yield a database session, ensuring it is closed after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ── Schema bootstrap ────────────────────────────────────────────────────────
def create_tables() -> None:
    """Create every mapped table that does not exist yet."""
    from billing_core.models import Base

    Base.metadata.create_all(bind=engine)


# ── Health check helper ─────────────────────────────────────────────────────
def check_db_connection() -> bool:
    """Return True if the database is reachable. Used by /health endpoint."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
