from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..auth import get_current_user
from ..enums import EntityType, LinkKind
from .. import models, schemas
from .entities import load_entity

router = APIRouter(prefix="/api/{entity_type}/{entity_id}/{link_kind}", tags=["links"])


@router.get("", response_model=List[schemas.LinkOut], response_model_exclude_unset=True)
async def list_links(
    entity_type: EntityType,
    entity_id: int,
    link_kind: LinkKind,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = load_entity(db, user, entity_type, entity_id)
    return entity.links(link_kind).read_all()


@router.get("/related", response_model=List[schemas.RelatedOut], response_model_exclude_unset=True)
async def list_related(
    entity_type: EntityType,
    entity_id: int,
    link_kind: LinkKind,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = load_entity(db, user, entity_type, entity_id)
    return entity.links(link_kind).read_related()


@router.get("/{link_id}", response_model=List[schemas.LinkOut], response_model_exclude_unset=True)
async def get_link(
    entity_type: EntityType,
    entity_id: int,
    link_kind: LinkKind,
    link_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = load_entity(db, user, entity_type, entity_id)
    return entity.links(link_kind, link_id).read_one()


@router.post("/{link_id}", response_model=schemas.CreatedOut)
async def post_link(
    entity_type: EntityType,
    entity_id: int,
    link_kind: LinkKind,
    link_id: int,
    payload: schemas.LinkAction = schemas.LinkAction(),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = load_entity(db, user, entity_type, entity_id, "write")
    result = entity.links(link_kind, link_id).post_action(payload.action, payload.model_dump())
    return schemas.CreatedOut(id=result)


@router.delete("/{link_id}")
async def delete_link(
    entity_type: EntityType,
    entity_id: int,
    link_kind: LinkKind,
    link_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = load_entity(db, user, entity_type, entity_id)
    return {"deleted": entity.links(link_kind, link_id).destroy()}
