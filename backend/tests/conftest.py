from __future__ import annotations

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure the project root (which exposes the ``backend`` package) is on ``sys.path``
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "0"

from backend.app.database import Base, get_db  # noqa: E402
from backend.app.main import app  # noqa: E402
from backend.app import models  # noqa: E402
from factories import make_client, make_journey, make_trip  # noqa: E402

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite needs explicit BEGIN handling for SAVEPOINT to work
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, _record) -> None:
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(connection) -> None:
    connection.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    join_transaction_mode="create_savepoint",
)


@pytest.fixture(scope="session", autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            db_session.expire_all()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def scenario_a_trip() -> models.Trip:
    """Completed trip with the two hauls of the reference billing example."""

    return make_trip(
        "trip-1",
        journeys=[
            make_journey("journey-1", "trip-1", "client-1", client_advance="10000"),
            make_journey(
                "journey-2",
                "trip-1",
                "client-1",
                weight="15",
                rate_per_ton="2000",
                client_advance="5000",
                created_at=datetime(2025, 1, 9, 14, 30),
            ),
        ],
    )


@pytest.fixture
def persisted_scenario(db_session: Session, scenario_a_trip: models.Trip) -> dict:
    client = make_client()
    db_session.add(client)
    db_session.add(scenario_a_trip)
    db_session.commit()
    return {"client": client, "trip": scenario_a_trip}
