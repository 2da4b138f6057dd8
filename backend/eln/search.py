from typing import Optional
from elasticsearch import Elasticsearch
from sqlalchemy.orm import Query, Session
import os

ES_URL = os.environ.get("ELASTICSEARCH_URL")
_es_client: Optional[Elasticsearch] = None

if ES_URL:
    _es_client = Elasticsearch(ES_URL)

INDEX_PREFIX = "eln_"


def _index_name(entity_type: str) -> str:
    return f"{INDEX_PREFIX}{entity_type}"


def index_entity(entity_type: str, row):
    if not _es_client:
        return
    doc = {
        "id": row.id,
        "title": row.title,
        "body": row.body or "",
        "elabid": getattr(row, "elabid", None),
        "state": row.state,
    }
    _es_client.index(index=_index_name(entity_type), id=str(row.id), document=doc)


def delete_entity(entity_type: str, entity_id: int):
    if not _es_client:
        return
    _es_client.options(ignore_status=[404]).delete(index=_index_name(entity_type), id=str(entity_id))


def search_entities(db: Session, model, entity_type: str, query: str) -> Query:
    """Return an ORM query over ``model`` restricted to rows matching ``query``."""
    if _es_client:
        res = _es_client.search(
            index=_index_name(entity_type),
            query={
                "multi_match": {
                    "query": query,
                    "fields": ["title^2", "body", "elabid"],
                }
            },
        )
        ids = [int(hit["_id"]) for hit in res["hits"]["hits"]]
        return db.query(model).filter(model.id.in_(ids))
    # fallback simple LIKE search
    pattern = f"%{query}%"
    return db.query(model).filter(model.title.ilike(pattern) | model.body.ilike(pattern))
