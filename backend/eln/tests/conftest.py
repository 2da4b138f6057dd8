import os
os.environ["TESTING"] = "1"
os.environ.setdefault("SECRET_KEY", "test-secret")
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path
import shutil

import uuid

sys.path.append(str(Path(__file__).resolve().parents[2]))

from eln.main import app
from eln.database import Base, enable_sqlite_foreign_keys, get_db
from eln import models

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def upload_dir(tmp_path):
    d = tmp_path / "uploads"
    d.mkdir()
    os.environ["UPLOAD_DIR"] = str(d)
    yield
    shutil.rmtree(d, ignore_errors=True)

@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(session, *, email: str | None = None, team: models.Team | None = None, is_admin: bool = False):
    """Insert a user directly, optionally as a member of ``team``."""

    user = models.User(
        email=email or f"user-{uuid.uuid4()}@example.com",
        hashed_password="placeholder",
        full_name="Test User",
        is_admin=is_admin,
    )
    session.add(user)
    session.flush()
    if team is not None:
        session.add(models.TeamMember(team_id=team.id, user_id=user.id, role="member"))
    session.commit()
    session.refresh(user)
    return user


def make_team(session, name: str = "Lab"):
    team = models.Team(name=name)
    session.add(team)
    session.commit()
    session.refresh(team)
    return team


def ensure_access_token(client, *, email: str | None = None, password: str = "secret"):
    """Register ``email`` or log in when it already exists; return ``(token, email)``."""

    normalized_email = email or f"user-{uuid.uuid4()}@example.com"
    payload = {"email": normalized_email, "password": password, "full_name": "Toto Le sysadmin"}
    resp = client.post("/api/auth/register", json=payload)
    if resp.status_code == 200:
        data = resp.json()
    else:
        body = resp.json() if resp.headers.get("content-type", "").startswith("application/json") else {}
        if resp.status_code == 400 and body.get("detail") == "Email already registered":
            login_resp = client.post("/api/auth/login", json={"email": normalized_email, "password": password})
            assert login_resp.status_code == 200, f"Login failed for existing user {normalized_email}: {login_resp.text}"
            data = login_resp.json()
        else:
            raise AssertionError(f"Unexpected auth bootstrap failure for {normalized_email}: {resp.status_code} {resp.text}")
    token = data.get("access_token")
    if not token:
        raise AssertionError(f"Authentication response missing token for {normalized_email}: {data}")
    return token, normalized_email


def ensure_auth_headers(client, *, email: str | None = None, password: str = "secret"):
    token, normalized_email = ensure_access_token(client, email=email, password=password)
    return {"Authorization": f"Bearer {token}"}, normalized_email


def join_team(client, owner_headers, member_email: str) -> str:
    """Create a team owned by ``owner_headers`` and add ``member_email`` to it."""

    team = client.post("/api/teams/", json={"name": f"team-{uuid.uuid4()}"}, headers=owner_headers)
    assert team.status_code == 200, team.text
    team_id = team.json()["id"]
    added = client.post(
        f"/api/teams/{team_id}/members",
        json={"email": member_email},
        headers=owner_headers,
    )
    assert added.status_code == 200, added.text
    return team_id
