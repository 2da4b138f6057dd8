import uuid

from eln.auth import create_access_token, decode_access_token, get_password_hash, verify_password
from datetime import timedelta


def test_register_and_login(client):
    email = f"{uuid.uuid4()}@example.com"
    resp = client.post("/api/auth/register", json={"email": email, "password": "secret"})
    assert resp.status_code == 200
    assert "access_token" in resp.json()

    dup = client.post("/api/auth/register", json={"email": email, "password": "secret"})
    assert dup.status_code == 400

    login = client.post("/api/auth/login", json={"email": email, "password": "secret"})
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == email

    bad = client.post("/api/auth/login", json={"email": email, "password": "wrong"})
    assert bad.status_code == 401


def test_password_hash_roundtrip():
    hashed = get_password_hash("s3cret")
    assert hashed.startswith("pbkdf2_sha256$")
    assert verify_password("s3cret", hashed)
    assert not verify_password("other", hashed)
    assert not verify_password("s3cret", "garbage")


def test_tampered_and_expired_tokens(client):
    token = create_access_token({"sub": "someone@example.com"})
    assert decode_access_token(token)["sub"] == "someone@example.com"
    body, digest = token.rsplit(".", 1)
    assert decode_access_token(f"{body}.{'0' * len(digest)}") is None

    expired = create_access_token({"sub": "someone@example.com"}, expires_delta=timedelta(minutes=-1))
    assert decode_access_token(expired) is None
    resp = client.get("/api/users/me", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 401


def test_metrics_endpoint(client):
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert b"request_count" in resp.content
