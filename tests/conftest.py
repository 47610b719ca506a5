"""Shared test fixtures."""

import json
import os
import tempfile

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Force test config BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="bucktrax-logs-")

from bucktrax.db import get_db, init_db
from bucktrax.models.property import Property
from bucktrax.models.property_feature import PropertyFeature


@pytest.fixture
def engine():
    """Fresh in-memory database shared across connections via StaticPool."""
    eng = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db_session(engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def prop(db_session):
    p = Property(name="North Ridge Farm")
    db_session.add(p)
    db_session.commit()
    db_session.refresh(p)
    return p


@pytest.fixture
def add_feature(db_session):
    """Factory: store a point feature and return the row."""

    def _add(property_id, classification, lon, lat, weight=None, name=None):
        row = PropertyFeature(
            property_id=property_id,
            classification_type=int(classification),
            geometry=json.dumps({"type": "Point", "coordinates": [lon, lat]}),
            name=name,
            notes="",
            weight=weight,
        )
        db_session.add(row)
        db_session.commit()
        db_session.refresh(row)
        return row

    return _add


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient

    from bucktrax.main import app

    def _override():
        yield db_session

    app.dependency_overrides[get_db] = _override
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

