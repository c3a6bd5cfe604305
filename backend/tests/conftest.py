import os

# Must be set before app.core.config builds its cached settings.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.db.base import Base
from app.main import app
from app.services.rate_limit import clear_rate_limiter
from app.services.schedule_lock import clear_schedule_locks


def _testing_sessionmaker():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session():
    TestingSessionLocal = _testing_sessionmaker()
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        clear_schedule_locks()


@pytest.fixture()
def client():
    # Rate limiter and lock registry are process-wide; reset them between tests.
    clear_rate_limiter()
    clear_schedule_locks()
    TestingSessionLocal = _testing_sessionmaker()

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    clear_rate_limiter()
    clear_schedule_locks()
