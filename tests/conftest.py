"""Pytest configuration and fixtures for the core and API tests."""

import os
from datetime import date

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recipe_costing.database import Base, get_db, init_db
from recipe_costing.dependencies import get_today
from recipe_costing.main import app

TODAY = date(2024, 3, 20)


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean in-memory database for each test function.

    Every connection shares one SQLite database through StaticPool so that
    the tables created here are visible to the request sessions.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    init_db(bind=engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    yield session_factory

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def client(test_db):
    """TestClient with the database and "today" pinned."""

    def override_get_db():
        db = test_db()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def vendor(client):
    response = client.post("/api/vendors/", json={"name": "Restaurant Depot", "phone": "555-0100"})
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def flour(client, vendor):
    """Flour bought as one 5 lb bag for $12.00, base cost 2.40 per lb."""
    response = client.post("/api/ingredients/", json={
        "name": "Flour",
        "cost_per_unit": 12.00,
        "quantity": 5,
        "unit_type": "lb",
        "vendor_id": vendor["id"],
    })
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def box(client):
    response = client.post("/api/packing/", json={"name": "Pastry Box", "price": 0.25})
    assert response.status_code == 201
    return response.json()
