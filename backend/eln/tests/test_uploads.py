import hashlib
import os

from .conftest import ensure_auth_headers


def test_upload_roundtrip(client):
    headers, _ = ensure_auth_headers(client)
    exp_id = client.post("/api/experiments", json={"title": "Imaging"}, headers=headers).json()["id"]
    base = f"/api/experiments/{exp_id}/uploads"
    payload = b"\x89PNG fake image bytes"

    resp = client.post(
        base,
        files={"upload": ("cells.png", payload, "image/png")},
        data={"comment": "day 3"},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    upload = resp.json()
    assert upload["real_name"] == "cells.png"
    assert upload["filesize"] == len(payload)
    assert upload["hash"] == hashlib.sha256(payload).hexdigest()
    assert upload["comment"] == "day 3"

    stored = [os.path.join(root, f) for root, _, files in os.walk(os.environ["UPLOAD_DIR"]) for f in files]
    assert len(stored) == 1

    download = client.get(f"{base}/{upload['id']}/download", headers=headers)
    assert download.status_code == 200
    assert download.content == payload
    assert "cells.png" in download.headers["content-disposition"]

    entity = client.get(f"/api/experiments/{exp_id}", headers=headers).json()
    assert [u["id"] for u in entity["uploads"]] == [upload["id"]]

    assert client.delete(f"{base}/{upload['id']}", headers=headers).status_code == 200
    assert client.get(base, headers=headers).json() == []
    assert client.get(f"{base}/{upload['id']}/download", headers=headers).status_code == 404
    stored = [f for _, _, files in os.walk(os.environ["UPLOAD_DIR"]) for f in files]
    assert stored == []


def test_upload_needs_write_access(client):
    owner, _ = ensure_auth_headers(client)
    other, _ = ensure_auth_headers(client)
    exp_id = client.post("/api/experiments", json={"title": "Private"}, headers=owner).json()["id"]
    resp = client.post(
        f"/api/experiments/{exp_id}/uploads",
        files={"upload": ("a.txt", b"data", "text/plain")},
        headers=other,
    )
    assert resp.status_code == 403
