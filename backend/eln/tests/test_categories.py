from .conftest import ensure_auth_headers


def test_category_crud(client):
    headers, _ = ensure_auth_headers(client)
    resp = client.post("/api/experiments_categories", json={"title": "Cloning", "color": "ff0000"}, headers=headers)
    assert resp.status_code == 200
    category_id = resp.json()["id"]
    listed = client.get("/api/experiments_categories", headers=headers).json()
    assert category_id in [c["id"] for c in listed]

    exp_id = client.post("/api/experiments", json={"title": "Exp", "category_id": category_id}, headers=headers).json()["id"]
    data = client.get(f"/api/experiments/{exp_id}", headers=headers).json()
    assert data["category_title"] == "Cloning"
    assert data["category_color"] == "ff0000"


def test_default_status_applies_to_new_experiments(client):
    headers, _ = ensure_auth_headers(client)
    client.post("/api/teams/", json={"name": "Status lab"}, headers=headers)
    running = client.post(
        "/api/statuses",
        json={"title": "Running", "entity_type": "experiments", "is_default": True},
        headers=headers,
    ).json()
    exp_id = client.post("/api/experiments", json={"title": "Exp"}, headers=headers).json()["id"]
    data = client.get(f"/api/experiments/{exp_id}", headers=headers).json()
    assert data["status"] == running["id"]
    assert data["status_title"] == "Running"

    statuses = client.get("/api/statuses", params={"entity_type": "experiments"}, headers=headers).json()
    assert running["id"] in [s["id"] for s in statuses]


def test_status_for_wrong_kind(client):
    headers, _ = ensure_auth_headers(client)
    resp = client.post("/api/statuses", json={"title": "Nope", "entity_type": "items_types"}, headers=headers)
    assert resp.status_code == 400

    item_status = client.post("/api/statuses", json={"title": "Ordered", "entity_type": "items"}, headers=headers)
    exp_id = client.post("/api/experiments", json={"title": "Exp"}, headers=headers).json()["id"]
    resp = client.patch(f"/api/experiments/{exp_id}", json={"status": item_status.json()["id"]}, headers=headers)
    assert resp.status_code == 400
