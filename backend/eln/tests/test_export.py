import csv
import io
import json

import pytest

from eln.entities import Entity
from eln.enums import Action, EntityType
from eln.exceptions import ImproperActionError, ResourceNotFoundError
from eln.export import MakeCsv, MakeJson, make_exporter
from .conftest import ensure_auth_headers, make_team, make_user


@pytest.fixture
def readable_trio(db):
    team = make_team(db)
    alice = make_user(db, team=team)
    outsider = make_user(db)
    ids = []
    for title, metadata in (("A", '{"extra_fields": {"pH": {"value": "7"}}}'), ("B", None), ("C", None)):
        entity = Entity(db, alice, EntityType.EXPERIMENTS)
        ids.append(entity.create(title=title))
        if metadata:
            entity.patch(Action.UPDATE, {"metadata": metadata})
    # B is private to its owner
    private = Entity(db, alice, EntityType.EXPERIMENTS, ids[1])
    private.patch(Action.UPDATE, {"canread": "user", "canwrite": "user"})
    for entity_id in (ids[0], ids[2]):
        Entity(db, alice, EntityType.EXPERIMENTS, entity_id).patch(Action.UPDATE, {"canread": "organization"})
    return alice, outsider, ids


def test_json_export_skips_unreadable(db, readable_trio):
    _, outsider, ids = readable_trio
    maker = MakeJson(Entity(db, outsider, EntityType.EXPERIMENTS), ids)
    content = maker.get_file_content()
    records = json.loads(content)

    assert [r["title"] for r in records] == ["A", "C"]
    assert records[0]["metadata"] == {"extra_fields": {"pH": {"value": "7"}}}
    assert records[1]["metadata"] is None
    assert maker.get_file_name() == "export-elabftw.json"
    assert maker.content_size == len(content.encode("utf-8"))


def test_json_export_for_owner_keeps_everything(db, readable_trio):
    alice, _, ids = readable_trio
    records = json.loads(MakeJson(Entity(db, alice, EntityType.EXPERIMENTS), ids).get_file_content())
    assert [r["id"] for r in records] == ids


def test_json_export_skips_deleted(db, readable_trio):
    alice, _, ids = readable_trio
    Entity(db, alice, EntityType.EXPERIMENTS, ids[2]).destroy()
    records = json.loads(MakeJson(Entity(db, alice, EntityType.EXPERIMENTS), ids).get_file_content())
    assert [r["id"] for r in records] == ids[:2]


def test_invalid_metadata_exports_as_null(db, readable_trio):
    alice, _, ids = readable_trio
    entity = Entity(db, alice, EntityType.EXPERIMENTS, ids[0])
    entity.row.meta = "{not json"
    db.commit()
    records = json.loads(MakeJson(Entity(db, alice, EntityType.EXPERIMENTS), ids[:1]).get_file_content())
    assert records[0]["metadata"] is None


def test_non_ascii_size_is_counted_in_bytes(db, readable_trio):
    alice, _, ids = readable_trio
    Entity(db, alice, EntityType.EXPERIMENTS, ids[0]).patch(Action.UPDATE, {"title": "Réaction à 37°C"})
    maker = MakeJson(Entity(db, alice, EntityType.EXPERIMENTS), ids[:1])
    content = maker.get_file_content()
    assert "Réaction à 37°C" in content
    assert maker.content_size > len(content)


def test_missing_id_is_fatal(db, readable_trio):
    alice, _, ids = readable_trio
    maker = MakeJson(Entity(db, alice, EntityType.EXPERIMENTS), [ids[0], 999999])
    with pytest.raises(ResourceNotFoundError):
        maker.get_file_content()


def test_csv_export(db, readable_trio):
    _, outsider, ids = readable_trio
    maker = make_exporter("csv", Entity(db, outsider, EntityType.EXPERIMENTS), ids)
    assert isinstance(maker, MakeCsv)
    rows = list(csv.reader(io.StringIO(maker.get_file_content())))
    assert rows[0] == MakeCsv.columns
    assert [row[2] for row in rows[1:]] == ["A", "C"]
    assert maker.get_file_name() == "export-elabftw.csv"


def test_unknown_format():
    with pytest.raises(ImproperActionError):
        make_exporter("pdf", None, [])


def test_export_endpoint(client):
    headers, _ = ensure_auth_headers(client)
    first = client.post("/api/items", json={"title": "Ethanol"}, headers=headers).json()["id"]
    second = client.post("/api/items", json={"title": "Acetone"}, headers=headers).json()["id"]
    client.patch(f"/api/items/{first}", json={"metadata": {"cas": "64-17-5"}}, headers=headers)

    resp = client.get(
        "/api/export",
        params={"entity_type": "items", "ids": f"{first},{second}"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    assert "export-elabftw.json" in resp.headers["content-disposition"]
    assert int(resp.headers["content-length"]) == len(resp.content)
    data = resp.json()
    assert [r["title"] for r in data] == ["Ethanol", "Acetone"]
    assert data[0]["metadata"] == {"cas": "64-17-5"}


def test_export_endpoint_rejects_bad_ids(client):
    headers, _ = ensure_auth_headers(client)
    resp = client.get("/api/export", params={"entity_type": "items", "ids": "1,x"}, headers=headers)
    assert resp.status_code == 400
    resp = client.get(
        "/api/export", params={"entity_type": "items", "ids": "1", "format": "pdf"}, headers=headers
    )
    assert resp.status_code == 400
