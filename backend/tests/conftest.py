import pytest
from fastapi.testclient import TestClient #gives you a fake http client that can call the FastAPI routes without running a real server.
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import smart_scheduler.models  # noqa: F401
from smart_scheduler.api.deps import get_db
from smart_scheduler.db.base import Base
from smart_scheduler.main import app
from smart_scheduler.services.repository import SqlScheduleRepository
from smart_scheduler.services.schedule_engine import ScheduleEngine


@pytest.fixture()
def session_factory():
    engine = create_engine( #create isolated DB
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture()
def sql_repository(session_factory):
    return SqlScheduleRepository(session_factory)


@pytest.fixture() #test client
def client(session_factory, sql_repository):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    # installed before startup so the lifespan does not build one against the real database
    app.state.schedule_engine = ScheduleEngine(sql_repository)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.state.schedule_engine = None
