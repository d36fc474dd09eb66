import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("GENERATION_SERVICE_URL", "http://generator.test/timetables")

import pytest
from fastapi.testclient import TestClient #gives you a fake http client that can call your FastAPI routes without running a real server.
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from classgrid.api.deps import get_db
from classgrid.db.base import Base
from classgrid.main import app
from classgrid.schemas.timetable import RosterEntry
from classgrid.services.period_calendar import get_period_calendar
from classgrid.services.save_guard import clear_save_guard
import classgrid.models  # noqa: F401


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture() #test client
def client(session_factory): #fake http client
    clear_save_guard() #a save left open by an earlier failing test would otherwise block the class.

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    clear_save_guard()


@pytest.fixture()
def calendar():
    return get_period_calendar()


@pytest.fixture()
def roster():
    return [
        RosterEntry(name="Mrs. A", subjects=["Mathematics"]),
        RosterEntry(name="Mr. B", subjects=["English", "Literature"]),
        RosterEntry(name="Dr. C", subjects=["Basic Science", "Mathematics"]),
    ]
