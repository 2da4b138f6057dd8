from .conftest import ensure_auth_headers, join_team


def create(client, headers, entity_type, title):
    return client.post(f"/api/{entity_type}", json={"title": title}, headers=headers).json()["id"]


def test_link_endpoints(client):
    headers, _ = ensure_auth_headers(client)
    exp_id = create(client, headers, "experiments", "Exp")
    item_id = create(client, headers, "items", "Reagent")
    base = f"/api/experiments/{exp_id}/items_links"

    resp = client.post(f"{base}/{item_id}", json={"action": "create"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"id": item_id}
    # posting again keeps a single link
    client.post(f"{base}/{item_id}", headers=headers)

    links = client.get(base, headers=headers).json()
    assert [link["itemid"] for link in links] == [item_id]
    assert links[0]["title"] == "Reagent"
    assert [link["itemid"] for link in client.get(f"{base}/{item_id}", headers=headers).json()] == [item_id]

    related = client.get(f"/api/items/{item_id}/experiments_links/related", headers=headers).json()
    assert [r["entityid"] for r in related] == [exp_id]
    # experiment targets carry no bookable flag
    assert "is_bookable" not in related[0]

    assert client.delete(f"{base}/{item_id}", headers=headers).json() == {"deleted": True}
    assert client.delete(f"{base}/{item_id}", headers=headers).json() == {"deleted": False}
    assert client.get(base, headers=headers).json() == []


def test_link_to_self_and_missing_target(client):
    headers, _ = ensure_auth_headers(client)
    item_id = create(client, headers, "items", "Self")
    resp = client.post(f"/api/items/{item_id}/items_links/{item_id}", headers=headers)
    assert resp.json() == {"id": 0}
    resp = client.post(f"/api/items/{item_id}/items_links/999999", headers=headers)
    assert resp.status_code == 404


def test_link_invalid_action(client):
    headers, _ = ensure_auth_headers(client)
    exp_id = create(client, headers, "experiments", "Exp")
    item_id = create(client, headers, "items", "Item")
    resp = client.post(
        f"/api/experiments/{exp_id}/items_links/{item_id}", json={"action": "archive"}, headers=headers
    )
    assert resp.status_code == 400


def test_unknown_link_kind(client):
    headers, _ = ensure_auth_headers(client)
    exp_id = create(client, headers, "experiments", "Exp")
    assert client.get(f"/api/experiments/{exp_id}/templates_links", headers=headers).status_code == 422


def test_import_links_from_item(client):
    headers, _ = ensure_auth_headers(client)
    exp_id = create(client, headers, "experiments", "Exp")
    kit = create(client, headers, "items", "Kit")
    part = create(client, headers, "items", "Part")
    client.post(f"/api/items/{kit}/items_links/{part}", headers=headers)

    resp = client.post(f"/api/experiments/{exp_id}/items_links/{kit}", json={"action": "duplicate"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"id": 1}
    links = client.get(f"/api/experiments/{exp_id}/items_links", headers=headers).json()
    assert [link["itemid"] for link in links] == [part]


def test_delete_link_requires_write(client):
    owner, _ = ensure_auth_headers(client)
    member, member_email = ensure_auth_headers(client)
    join_team(client, owner, member_email)
    exp_id = create(client, owner, "experiments", "Exp")
    item_id = create(client, owner, "items", "Item")
    base = f"/api/experiments/{exp_id}/items_links"
    client.post(f"{base}/{item_id}", headers=owner)

    assert client.post(f"{base}/{item_id}", headers=member).status_code == 403
    assert client.delete(f"{base}/{item_id}", headers=member).status_code == 403
    assert [link["itemid"] for link in client.get(base, headers=member).json()] == [item_id]
