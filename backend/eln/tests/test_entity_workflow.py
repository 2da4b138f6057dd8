"""Drive an experiment and an item through their whole life over the API."""

from .conftest import ensure_auth_headers


def edit_entity(client, headers, base):
    resp = client.patch(base, json={"date": "2021-05-01"}, headers=headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["date"] == "2021-05-01"

    resp = client.patch(base, json={"title": "Updated from the workflow"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["title"] == "Updated from the workflow"

    # tag
    tag = client.post(f"{base}/tags", json={"tag": "some tag"}, headers=headers)
    assert tag.status_code == 200, tag.text
    assert [t["tag"] for t in client.get(base, headers=headers).json()["tags"]] == ["some tag"]
    removed = client.delete(f"{base}/tags/{tag.json()['id']}", headers=headers)
    assert removed.status_code == 200
    assert client.get(base, headers=headers).json()["tags"] == []

    # step
    step = client.post(f"{base}/steps", json={"body": "some step"}, headers=headers)
    assert step.status_code == 200
    step_id = step.json()["id"]
    assert [s["body"] for s in client.get(base, headers=headers).json()["steps"]] == ["some step"]
    done = client.patch(f"{base}/steps/{step_id}", json={"action": "finish"}, headers=headers)
    assert done.status_code == 200
    assert done.json()["finished"] is True
    assert done.json()["finished_time"] is not None
    assert client.delete(f"{base}/steps/{step_id}", headers=headers).status_code == 200
    assert client.get(f"{base}/steps", headers=headers).json() == []


def comment_entity(client, headers, base):
    created = client.post(f"{base}/comments", json={"comment": "This is a very nice experiment"}, headers=headers)
    assert created.status_code == 200, created.text
    assert created.json()["fullname"] == "Toto Le sysadmin"
    comments = client.get(base, headers=headers).json()["comments"]
    assert [c["comment"] for c in comments] == ["This is a very nice experiment"]
    assert client.delete(f"{base}/comments/{created.json()['id']}", headers=headers).status_code == 200
    assert client.get(base, headers=headers).json()["comments"] == []


def duplicate_entity(client, headers, entity_type, entity_id):
    resp = client.post(f"/api/{entity_type}/{entity_id}/duplicate", headers=headers)
    assert resp.status_code == 200
    dup_id = resp.json()["id"]
    assert dup_id != entity_id
    dup = client.get(f"/api/{entity_type}/{dup_id}", headers=headers).json()
    assert dup["title"] == "Updated from the workflow I"
    assert dup["elabid"] != client.get(f"/api/{entity_type}/{entity_id}", headers=headers).json()["elabid"]
    destroy_entity(client, headers, entity_type, dup_id)


def destroy_entity(client, headers, entity_type, entity_id):
    resp = client.delete(f"/api/{entity_type}/{entity_id}", headers=headers)
    assert resp.status_code == 200
    assert client.get(f"/api/{entity_type}/{entity_id}", headers=headers).status_code == 403
    listed = client.get(f"/api/{entity_type}", params={"state": [1, 2]}, headers=headers).json()
    assert entity_id not in [e["id"] for e in listed]


def test_experiment_workflow(client):
    headers, _ = ensure_auth_headers(client)
    template = client.post("/api/experiments_templates", json={"title": "Default template"}, headers=headers)
    assert template.status_code == 200, template.text
    success = client.post(
        "/api/statuses",
        json={"title": "Success", "entity_type": "experiments", "color": "54aa08"},
        headers=headers,
    )
    assert success.status_code == 200, success.text

    created = client.post("/api/experiments", json={"template": template.json()["id"]}, headers=headers)
    assert created.status_code == 200, created.text
    experiment_id = created.json()["id"]
    base = f"/api/experiments/{experiment_id}"
    assert client.get(base, headers=headers).json()["title"] == "Default template"

    edit_entity(client, headers, base)

    status = client.patch(base, json={"status": success.json()["id"]}, headers=headers)
    assert status.status_code == 200
    assert status.json()["status_title"] == "Success"

    comment_entity(client, headers, base)
    duplicate_entity(client, headers, "experiments", experiment_id)
    destroy_entity(client, headers, "experiments", experiment_id)


def test_item_workflow(client):
    headers, _ = ensure_auth_headers(client)
    generated = client.post("/api/items_types", json={"title": "Generated"}, headers=headers)
    microscope = client.post("/api/items_types", json={"title": "Microscope"}, headers=headers)
    assert generated.status_code == 200 and microscope.status_code == 200

    created = client.post("/api/items", json={"category_id": generated.json()["id"]}, headers=headers)
    assert created.status_code == 200, created.text
    item_id = created.json()["id"]
    base = f"/api/items/{item_id}"
    assert client.get(base, headers=headers).json()["category_title"] == "Generated"

    edit_entity(client, headers, base)

    category = client.patch(base, json={"category": microscope.json()["id"]}, headers=headers)
    assert category.status_code == 200
    assert category.json()["category_title"] == "Microscope"

    comment_entity(client, headers, base)
    duplicate_entity(client, headers, "items", item_id)
    destroy_entity(client, headers, "items", item_id)
