"""
Shared fixtures: in-memory SQLite store, sessions, API client and record factories
"""
import os

# Settings are read at import time; keep tests off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_ON_STARTUP", "false")

import pytest
from datetime import date
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db, make_engine
from app.main import app
from app.services.record_store import UniversityStore, ProfileStore, TaskStore


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """TestClient whose requests use the in-memory store"""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_university(db):
    """Factory for universities; requirements are derived from the flat fields"""
    def make(name="Stanford University", **fields):
        data = {
            "name": name,
            "country": "USA",
            "program": "Undergraduate",
            "major": "Computer Science",
        }
        data.update(fields)
        return UniversityStore(db).create(data)

    return make


@pytest.fixture
def stanford(make_university):
    """SAT avg 1500, two recommendation letters, early deadline 2026-11-01"""
    return make_university(
        sat_avg=1500,
        rec_letters_required=2,
        deadline_early=date(2026, 11, 1),
    )


@pytest.fixture
def profile_store(db):
    return ProfileStore(db)


@pytest.fixture
def task_store(db):
    return TaskStore(db)
