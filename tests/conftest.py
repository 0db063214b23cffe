"""Shared fixtures for the relationship-ledger test suite."""
import os

# Set env vars BEFORE any app imports
os.environ.setdefault("COOKIE_SECRET", "test-secret-key-for-testing")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ledger.db import get_db
from ledger.models import Base
from ledger import auth, catalog, crud


# Ensure auth module uses test cookie secret
auth.COOKIE_SECRET = os.environ["COOKIE_SECRET"]


# ── Database fixtures ──

@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with the full schema."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


# ── User fixtures ──

@pytest.fixture
def user_alice(db):
    return auth.create_user(db, "alice@example.com", "Alice", "password123")


@pytest.fixture
def user_bob(db):
    return auth.create_user(db, "bob@example.com", "Bob", "password456", locale="es-ES")


@pytest.fixture
def alice_types(db, user_alice):
    """Alice's preloaded relationship types keyed by canonical name."""
    return {rt.name: rt for rt in catalog.list_types(db, user_alice.id)}


# ── Person fixtures ──

@pytest.fixture
def make_person(db, user_alice):
    """Factory: create a person owned by Alice."""
    def _factory(name, **kwargs):
        return crud.create_person(db, user_alice.id, name, **kwargs)
    return _factory


@pytest.fixture
def family(db, user_alice, alice_types, make_person):
    """Dad -PARENT-> Kid, Mom -SPOUSE-> Dad, Mom -PARENT-> Kid; Kid is Alice's friend."""
    dad = make_person("Dad")
    mom = make_person("Mom")
    kid = make_person("Kid", relationship_to_user_id=alice_types["FRIEND"].id)
    crud.create_relationship(db, user_alice.id, dad.id, kid.id, alice_types["PARENT"].id)
    crud.create_relationship(db, user_alice.id, mom.id, dad.id, alice_types["SPOUSE"].id)
    crud.create_relationship(db, user_alice.id, mom.id, kid.id, alice_types["PARENT"].id)
    return {"dad": dad, "mom": mom, "kid": kid}


# ── FastAPI app fixtures ──

@pytest.fixture
def app_with_db(engine):
    """FastAPI app with get_db pointing at the test database."""
    from ledger.main import app

    Session = sessionmaker(bind=engine, autoflush=False)

    def override_get_db():
        s = Session()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app_with_db):
    """Unauthenticated TestClient."""
    return TestClient(app_with_db, raise_server_exceptions=False)


def _make_authenticated_client(app, engine, email, name, password):
    """Helper: create a user and return an authenticated TestClient."""
    s = sessionmaker(bind=engine)()
    try:
        try:
            user = auth.create_user(s, email, name, password)
        except ValueError:
            user = auth.get_user_by_email(s, email)
        user_id = user.id
    finally:
        s.close()
    token = auth.create_session_token(user_id)
    tc = TestClient(app, raise_server_exceptions=False, cookies={"session": token})
    tc._test_user_id = user_id
    return tc


@pytest.fixture
def auth_client(app_with_db, engine):
    return _make_authenticated_client(app_with_db, engine, "alice@test.com", "Alice", "password123")


@pytest.fixture
def make_authenticated_client(app_with_db, engine):
    def _factory(email, name, password):
        return _make_authenticated_client(app_with_db, engine, email, name, password)
    return _factory
