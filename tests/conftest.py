import os
import tempfile

# Settings are read at import time, so the environment must be in place first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_SIGNUP_KEY"] = "test-admin-key"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["AUDIT_LOG_DIR"] = tempfile.mkdtemp(prefix="inzozi-audit-")

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from inzozi.db.base import SessionLocal, engine, get_db
from inzozi.models import Base
from inzozi.main import app
from inzozi.models.role import AppRole
from inzozi.services.auth import create_access_token_for_user, create_user
from inzozi.services.member import approve_member

ADMIN_KEY = "test-admin-key"
PASSWORD = "secret123"
NOW = datetime(2026, 1, 1, 9, 0, 0)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_member(db, email="member@example.com", full_name="Aline Uwase", approved=True):
    user = create_user(db, email=email, password=PASSWORD, full_name=full_name)
    if approved:
        approve_member(db, user.id)
    return user


def make_admin(db, email="admin@example.com"):
    return create_user(
        db, email=email, password=PASSWORD, full_name="Group Admin",
        role=AppRole.ADMIN, admin_key=ADMIN_KEY
    )


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token_for_user(user)}"}


@pytest.fixture
def member(db):
    return make_member(db)


@pytest.fixture
def admin(db):
    return make_admin(db)


@pytest.fixture
def member_headers(member):
    return auth_headers(member)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
