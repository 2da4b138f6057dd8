from .conftest import ensure_auth_headers, join_team


def test_comment_crud(client):
    headers, _ = ensure_auth_headers(client)
    item_id = client.post("/api/items", json={"title": "Centrifuge"}, headers=headers).json()["id"]
    base = f"/api/items/{item_id}/comments"

    create = client.post(base, json={"comment": "First"}, headers=headers)
    assert create.status_code == 200
    comment_id = create.json()["id"]
    assert create.json()["comment"] == "First"

    assert any(c["id"] == comment_id for c in client.get(base, headers=headers).json())

    upd = client.patch(f"{base}/{comment_id}", json={"comment": "Updated"}, headers=headers)
    assert upd.status_code == 200
    assert upd.json()["comment"] == "Updated"

    assert client.delete(f"{base}/{comment_id}", headers=headers).status_code == 200
    assert all(c["id"] != comment_id for c in client.get(base, headers=headers).json())


def test_reader_may_comment_but_not_edit_others(client):
    owner, _ = ensure_auth_headers(client)
    member, member_email = ensure_auth_headers(client)
    join_team(client, owner, member_email)
    exp_id = client.post("/api/experiments", json={"title": "Team exp"}, headers=owner).json()["id"]
    base = f"/api/experiments/{exp_id}/comments"

    mine = client.post(base, json={"comment": "From a reader"}, headers=member)
    assert mine.status_code == 200
    owners = client.post(base, json={"comment": "From the owner"}, headers=owner).json()["id"]

    assert client.patch(f"{base}/{owners}", json={"comment": "edited"}, headers=member).status_code == 403
    assert client.delete(f"{base}/{owners}", headers=member).status_code == 403
    assert client.delete(f"{base}/{mine.json()['id']}", headers=member).status_code == 200


def test_empty_comment_rejected(client):
    headers, _ = ensure_auth_headers(client)
    exp_id = client.post("/api/experiments", json={"title": "Exp"}, headers=headers).json()["id"]
    resp = client.post(f"/api/experiments/{exp_id}/comments", json={"comment": " "}, headers=headers)
    assert resp.status_code == 400
