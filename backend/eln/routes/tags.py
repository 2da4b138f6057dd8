from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..auth import get_current_user
from ..enums import EntityType
from ..subresources import Tags
from .. import models, schemas
from .entities import load_entity

router = APIRouter(prefix="/api/{entity_type}/{entity_id}/tags", tags=["tags"])


@router.post("", response_model=schemas.TagOut)
async def create_tag(
    entity_type: EntityType,
    entity_id: int,
    tag: schemas.TagCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    tags = Tags(load_entity(db, user, entity_type, entity_id, "write"))
    tag_id = tags.create(tag.tag)
    return next(t for t in tags.read_all() if t["id"] == tag_id)


@router.get("", response_model=List[schemas.TagOut])
async def list_tags(
    entity_type: EntityType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return Tags(load_entity(db, user, entity_type, entity_id)).read_all()


@router.delete("/{tag_id}")
async def delete_tag(
    entity_type: EntityType,
    entity_id: int,
    tag_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = load_entity(db, user, entity_type, entity_id, "write")
    if not Tags(entity, tag_id).destroy():
        raise HTTPException(status_code=404, detail="Tag not found")
    return {"detail": "deleted"}
